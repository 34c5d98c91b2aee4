import json
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from loader.fetcher import HTTPFetcher
from loader.locator import DEFAULT_SCHEME, normalize_url, validate_url
from rewriter.engine import rewrite
from rewriter.rules import RewriteRules
from service.config import Config

logger = structlog.get_logger(__name__)

FORM_CONTENT_TYPES = ('application/x-www-form-urlencoded', 'multipart/form-data')


# Request model
class FetchRequest(BaseModel):
    url: Optional[str] = None


# Response models
class FetchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    content: str
    title: str
    original_url: str = Field(alias="originalUrl")


class ErrorResponse(BaseModel):
    error: str


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


async def read_fetch_request(request: Request) -> FetchRequest:
    """Read the locator from a JSON or form-encoded body; an unreadable body has no locator."""
    content_type = request.headers.get('content-type', '').lower()
    try:
        if content_type.startswith(FORM_CONTENT_TYPES):
            form = await request.form()
            data = {key: value for key, value in form.items() if isinstance(value, str)}
        else:
            body = await request.body()
            data = json.loads(body) if body.strip() else {}
        return FetchRequest.model_validate(data if isinstance(data, dict) else {})
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
        logger.warning("fetch_request_unreadable", content_type=content_type, error=str(e))
        return FetchRequest()


def create_app(config: Optional[Config] = None, fetcher=None) -> FastAPI:
    """Build the proxy app; a fetcher created here is closed on shutdown."""
    config = config or Config()
    owns_fetcher = fetcher is None
    if owns_fetcher:
        fetcher = HTTPFetcher.from_config(config.fetcher)
    rules = RewriteRules.from_config(config.rewrite)
    default_scheme = config.get('fetcher', 'default_scheme', default=DEFAULT_SCHEME)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("app_started", rules=repr(rules))
        yield
        if owns_fetcher:
            await fetcher.aclose()
        logger.info("app_stopped")

    app = FastAPI(title="faleproxy", lifespan=lifespan)
    app.state.config = config
    app.state.fetcher = fetcher
    app.state.rules = rules

    @app.post(
        "/fetch",
        response_model=FetchResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def fetch_page(payload: FetchRequest = Depends(read_fetch_request)):
        """
        Fetch a page and return it with brand tokens rewritten in its text
        """
        url = payload.url
        if not url or not url.strip():
            logger.warning("fetch_request_missing_url")
            return _error(400, "URL is required")

        target = normalize_url(url, default_scheme)
        validation = validate_url(target)
        if not validation['valid']:
            return _error(400, f"Invalid URL: {validation['reason']}")

        try:
            result = await fetcher.fetch(target)
            if not result.success:
                logger.warning("fetch_failed", url=target, status_code=result.status_code, error=result.error)
                return _error(500, f"Failed to fetch content: {result.error}")

            rewritten = await run_in_threadpool(rewrite, result.text, rules)
        except Exception as e:
            logger.error("fetch_request_error", url=target, error=str(e), exc_info=True)
            return _error(500, f"Failed to fetch content: {e}")

        logger.info("document_rewritten",
                    url=target,
                    size=len(rewritten.html),
                    replacements=rewritten.replacements,
                    title=rewritten.title)

        return FetchResponse(
            content=rewritten.html,
            title=rewritten.title,
            original_url=url,
        )

    @app.get("/health")
    async def health_check():
        return {"status": "ok"}

    return app

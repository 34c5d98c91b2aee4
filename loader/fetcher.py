import re
from typing import Optional, Dict
import httpx
import structlog
from datetime import datetime, timezone
import time

logger = structlog.get_logger(__name__)

CHARSET_RE = re.compile(r'charset\s*=\s*["\']?\s*([a-zA-Z0-9_.:-]+)', re.IGNORECASE)

ALLOWED_CONTENT_TYPES = (
    'text/html',
    'application/xhtml+xml',
    'application/xml',
    'text/xml',
)


class FetchResult:
    def __init__(
        self,
        url: str,
        status_code: int,
        content: bytes = b'',
        headers: Dict[str, str] = None,
        final_url: str = None,
        fetch_time: float = 0.0,
        error: str = None,
        content_type: str = None,
        encoding: str = None
    ):
        """Initialize a FetchResult with HTTP response data and metadata."""
        self.url = url
        self.status_code = status_code
        self.content = content
        self.headers = headers or {}
        self.final_url = final_url or url
        self.fetch_time = fetch_time
        self.error = error
        self.content_type = content_type
        self.encoding = encoding
        self.timestamp = datetime.now(timezone.utc)

    @property
    def success(self) -> bool:
        """Check if the fetch was successful (no error and 2xx status code)."""
        return self.error is None and 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        """Decode the response content to text using detected or fallback encoding."""
        if not self.content:
            return ""
        encoding = self.encoding or 'utf-8'
        try:
            return self.content.decode(encoding)
        except (LookupError, UnicodeDecodeError):
            try:
                return self.content.decode('utf-8', errors='replace')
            except UnicodeDecodeError:
                return self.content.decode('latin-1', errors='replace')

    @property
    def size(self) -> int:
        """Get the size of the response content in bytes."""
        return len(self.content)


class HTTPFetcher:
    def __init__(
        self,
        user_agent: str = 'Faleproxy/1.0',
        timeout: float = 30.0,
        max_redirects: int = 5,
        max_response_size: int = 10 * 1024 * 1024,  # 10MB
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the HTTP fetcher; ``transport`` is passed through to httpx."""
        self.user_agent = user_agent
        self.timeout = float(timeout)
        self.max_redirects = int(max_redirects)
        self.max_response_size = int(max_response_size)

        headers = {
                'User-Agent': self.user_agent,
                'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
                'Accept-Language': 'en-US,en;q=0.5',
                'Accept-Encoding': 'gzip, deflate',
                'Connection': 'keep-alive',
                'Upgrade-Insecure-Requests': '1',
            }
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=True,
            max_redirects=self.max_redirects,
            headers=headers,
            limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
            transport=transport,
        )

    @classmethod
    def from_config(cls, section: Optional[Dict] = None, **kwargs) -> "HTTPFetcher":
        """Build a fetcher from the ``fetcher`` config section."""
        section = section or {}
        for key in ('user_agent', 'timeout', 'max_redirects', 'max_response_size'):
            if section.get(key) is not None:
                kwargs.setdefault(key, section[key])
        return cls(**kwargs)

    async def fetch(self, url: str, headers: Dict[str, str] = None) -> FetchResult:
        """Fetch a URL and return a FetchResult containing response data."""
        merged_headers = {}
        if headers:
            merged_headers.update(headers)

        start_time = time.time()
        logger.debug("fetch_started", url=url)

        try:
            async with self._client.stream('GET', url, headers=merged_headers) as response:
                fetch_time = time.time() - start_time
                response_headers = dict(response.headers)
                final_url = str(response.url)
                content_type = response.headers.get('content-type', '').lower()

                if not 200 <= response.status_code < 300:
                    logger.warning("fetch_bad_status", url=url, status_code=response.status_code)
                    return FetchResult(
                        url=url,
                        status_code=response.status_code,
                        headers=response_headers,
                        final_url=final_url,
                        fetch_time=fetch_time,
                        content_type=content_type,
                        error=f"Request failed with status code {response.status_code}"
                    )

                content_length = response.headers.get('content-length')
                if content_length and content_length.isdigit() and int(content_length) > self.max_response_size:
                    logger.warning("fetch_content_too_large", url=url, content_length=int(content_length))
                    return FetchResult(
                        url=url,
                        status_code=response.status_code,
                        headers=response_headers,
                        final_url=final_url,
                        fetch_time=fetch_time,
                        content_type=content_type,
                        error=f"Content too large: {content_length} bytes > {self.max_response_size} bytes"
                    )

                if not self._should_fetch_content(content_type):
                    logger.warning("fetch_unsupported_content_type", url=url, content_type=content_type)
                    return FetchResult(
                        url=url,
                        status_code=response.status_code,
                        headers=response_headers,
                        final_url=final_url,
                        fetch_time=fetch_time,
                        content_type=content_type,
                        error=f"Unsupported content type: {content_type}"
                    )

                content = b''
                async for chunk in response.aiter_bytes(chunk_size=8192):
                    content += chunk
                    if len(content) > self.max_response_size:
                        logger.warning("fetch_response_truncated", url=url, max_bytes=self.max_response_size)
                        content = content[:self.max_response_size]
                        break

            encoding = self._extract_encoding(response_headers, content)
            fetch_time = time.time() - start_time
            logger.info("fetch_completed",
                        url=url,
                        status_code=response.status_code,
                        size=len(content),
                        fetch_time=round(fetch_time, 3))

            return FetchResult(
                url=url,
                status_code=response.status_code,
                content=content,
                headers=response_headers,
                final_url=final_url,
                fetch_time=fetch_time,
                content_type=content_type,
                encoding=encoding
            )

        except httpx.TimeoutException as e:
            error = f"Timeout after {self.timeout}s: {str(e) or type(e).__name__}"
            logger.warning("fetch_timeout", url=url, error=error)

        except httpx.ConnectError as e:
            error = f"Connection error: {str(e) or type(e).__name__}"
            logger.warning("fetch_connect_error", url=url, error=error)

        except httpx.TooManyRedirects as e:
            error = f"Too many redirects: {str(e)}"
            logger.warning("fetch_too_many_redirects", url=url, error=error)

        except (httpx.HTTPError, httpx.InvalidURL) as e:
            error = f"{type(e).__name__}: {str(e)}"
            logger.error("fetch_failed", url=url, error=error)

        return FetchResult(
            url=url,
            status_code=0,
            fetch_time=time.time() - start_time,
            error=error
        )

    def _should_fetch_content(self, content_type: str) -> bool:
        """Determine if content should be fetched based on content type."""
        if not content_type:
            return True

        content_type = content_type.lower()

        for allowed_type in ALLOWED_CONTENT_TYPES:
            if content_type.startswith(allowed_type):
                return True

        if content_type.startswith('text/'):
            return True

        return False

    def _extract_encoding(self, headers: Dict[str, str], content: bytes) -> Optional[str]:
        """Extract character encoding from HTTP headers or HTML content."""
        content_type = headers.get('content-type', '')
        match = CHARSET_RE.search(content_type)
        if match:
            return match.group(1).lower()

        if content:
            match = CHARSET_RE.search(content[:1024].decode('utf-8', errors='ignore'))
            if match:
                return match.group(1).lower()

        return 'utf-8'

    async def aclose(self):
        await self._client.aclose()

import re
import structlog
from urllib.parse import urlparse

logger = structlog.get_logger(__name__)

SCHEME_RE = re.compile(r'^[a-zA-Z]+://')

DEFAULT_SCHEME = 'http'


def normalize_url(url: str, default_scheme: str = DEFAULT_SCHEME) -> str:
    """Prefix ``default_scheme://`` when the locator has no ``scheme://`` of its own."""
    url = (url or '').strip()
    if not url or SCHEME_RE.match(url):
        return url
    return f"{default_scheme}://{url}"


def validate_url(url: str) -> dict:
    """Reject locators with nothing to fetch.

    Unsupported schemes and non-HTML resources are left to the fetch, which
    reports them as fetch failures.
    """
    if not url or not isinstance(url, str):
        logger.warning("invalid_url_format", url=url)
        return {
            "valid": False,
            "reason": "Empty or invalid URL"
        }

    try:
        parsed = urlparse(url)
    except ValueError as e:
        logger.warning("unparseable_url", url=url, error=str(e))
        return {
            "valid": False,
            "reason": f"Unparseable URL: {e}"
        }

    if not parsed.hostname:
        logger.warning("missing_url_host", url=url, scheme=parsed.scheme)
        return {
            "valid": False,
            "reason": "Missing host"
        }

    return {
        "valid": True,
        "reason": "Valid URL"
    }

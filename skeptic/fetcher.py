from typing import Optional
from urllib.parse import urlsplit
import logging
import httpx, tldextract

from .config import FETCH_TIMEOUT, USER_AGENT
from .schemas import RawDocument

log = logging.getLogger("uvicorn.error")

HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
}

class InvalidURL(ValueError):
    pass

class FetchError(Exception):
    """Upstream page could not be retrieved. status_code is None on transport errors."""

    def __init__(self, status_code: Optional[int], reason: str):
        super().__init__(reason)
        self.status_code = status_code
        self.reason = reason

def validate_url(url: str) -> str:
    url = (url or "").strip()
    if not url:
        raise InvalidURL("Valid URL is required")
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise InvalidURL("Invalid URL format")
    return url

# bundled suffix list only; no network lookup on first use
_tld = tldextract.TLDExtract(suffix_list_urls=())

def source_domain(url: str) -> str:
    e = _tld(url)
    return ".".join([p for p in [e.domain, e.suffix] if p])

async def fetch_html(url: str, timeout: float = FETCH_TIMEOUT,
                     transport: Optional[httpx.AsyncBaseTransport] = None) -> RawDocument:
    url = validate_url(url)
    try:
        async with httpx.AsyncClient(follow_redirects=True, headers=HEADERS,
                                     timeout=timeout, transport=transport) as c:
            r = await c.get(url)
    except httpx.HTTPError as e:
        log.warning(f"fetch failed for {url}: {e}")
        raise FetchError(None, f"Failed to fetch article: {e}") from e

    if not r.is_success:
        raise FetchError(r.status_code, f"Failed to fetch article: {r.status_code} {r.reason_phrase}")

    log.info(f"fetched {source_domain(url)} ({len(r.text)} chars)")
    return RawDocument(url=url, html=r.text)

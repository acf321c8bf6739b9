import asyncio
import ipaddress
import logging
from typing import Optional
from urllib.parse import urlsplit

import aiohttp

from ..models import FetchResult, ParseResult
from ..parsers.json_ld import parse_json_ld
from .html_parser import extract_metadata, extract_text_from_html, looks_like_html

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (compatible; MeetMeAtTheFair/1.0; +https://meetmeatthefair.com)"
)
DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}
ACCEPTED_CONTENT_TYPES = ("text/html", "text/plain", "application/xhtml+xml")

_INTERNAL_SUFFIXES = (".local", ".internal", ".localhost")


def is_valid_url(url: str) -> bool:
    """True for absolute http(s) URLs with a host."""
    try:
        parts = urlsplit((url or "").strip())
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.hostname)


def is_internal_url(url: str) -> bool:
    """True when a URL points at a loopback, private, or link-local host."""
    if not is_valid_url(url):
        return True
    hostname = (urlsplit(url.strip()).hostname or "").lower()
    if hostname == "localhost" or hostname.endswith(_INTERNAL_SUFFIXES):
        return True
    try:
        address = ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_reserved
        or address.is_unspecified
    )


class ContentFetcher:
    """Retrieves a page and reduces it to text plus metadata."""

    def __init__(self, timeout: int = 15, user_agent: str = DEFAULT_USER_AGENT):
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.headers = {"User-Agent": user_agent, **DEFAULT_HEADERS}
        self.logger = logging.getLogger(self.__class__.__name__)

    async def fetch(
        self, url: str, session: Optional[aiohttp.ClientSession] = None
    ) -> FetchResult:
        """
        Fetch a page. Network and HTTP failures come back as an
        unsuccessful FetchResult with a user-facing message.
        """
        url = (url or "").strip()
        if not is_valid_url(url):
            return FetchResult.failure("Please enter a valid URL")
        if is_internal_url(url):
            self.logger.warning(f"Refusing to fetch internal URL: {url}")
            return FetchResult.failure("Internal URLs are not allowed")

        if session is None:
            async with aiohttp.ClientSession(
                timeout=self.timeout, headers=self.headers
            ) as own_session:
                return await self._fetch(own_session, url)
        return await self._fetch(session, url)

    async def _fetch(self, session: aiohttp.ClientSession, url: str) -> FetchResult:
        try:
            self.logger.debug(f"Fetching page: {url}")
            async with session.get(
                url, headers=self.headers, timeout=self.timeout
            ) as response:
                if response.status == 403:
                    return FetchResult.failure(
                        "Could not access page (403 Forbidden). "
                        "Try pasting the content manually."
                    )
                elif response.status == 404:
                    return FetchResult.failure(
                        "Page not found (404). Please check the URL."
                    )
                elif not 200 <= response.status < 300:
                    return FetchResult.failure(
                        f"Failed to fetch page ({response.status})"
                    )

                content_type = response.headers.get("Content-Type", "").lower()
                if not any(accepted in content_type for accepted in ACCEPTED_CONTENT_TYPES):
                    return FetchResult.failure("URL does not point to an HTML page")

                html = await response.text(errors="replace")

        except asyncio.TimeoutError:
            self.logger.warning(f"Timed out fetching {url}")
            return FetchResult.failure(
                "Page took too long to load. Try pasting the content manually."
            )
        except aiohttp.ClientError as e:
            self.logger.warning(f"Network error fetching {url}: {e}")
            return FetchResult.failure(
                "Could not fetch page. Try pasting the content manually."
            )

        metadata = extract_metadata(html)
        content = extract_text_from_html(html)
        self.logger.info(
            f"Fetched {url}: {len(content)} chars of text, "
            f"JSON-LD {'found' if metadata.json_ld else 'not found'}"
        )
        return FetchResult(
            success=True,
            content=content,
            title=metadata.title,
            description=metadata.description,
            og_image=metadata.og_image,
            json_ld=metadata.json_ld,
        )

    def from_pasted(self, text: str) -> FetchResult:
        """Treat pasted text (or pasted HTML source) as fetched content."""
        if not text or not text.strip():
            return FetchResult.failure("Please paste some content")

        if looks_like_html(text):
            metadata = extract_metadata(text)
            return FetchResult(
                success=True,
                content=extract_text_from_html(text),
                title=metadata.title,
                description=metadata.description,
                og_image=metadata.og_image,
                json_ld=metadata.json_ld,
            )
        return FetchResult(success=True, content=text.strip())

    async def fetch_schema_org(self, url: str) -> ParseResult:
        """Fetch a page and parse only its Event JSON-LD."""
        result = await self.fetch(url)
        if not result.success:
            return ParseResult(success=False, status="error", error=result.error)
        if not result.json_ld:
            return ParseResult(
                success=False,
                status="not_found",
                error="No schema.org Event markup found on page",
            )
        return parse_json_ld(result.json_ld)

"""HTML helpers: page text for the model, page metadata, links."""

import json
import logging
import re
from typing import Any, List, Optional
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup, Comment

from ..models import PageMetadata
from ..parsers.json_ld import find_event

logger = logging.getLogger(__name__)

MAX_CONTENT_LENGTH = 50 * 1024
TRUNCATION_MARKER = "\n[Content truncated...]"

_STRIPPED_TAGS = ["script", "style", "noscript"]
_BLOCK_TAGS = ["p", "div", "h1", "h2", "h3", "h4", "h5", "h6", "li", "tr"]
_BREAK_TAGS = ["br", "hr"]

_HTML_SNIFF = re.compile(r"<(?:html|head|body|meta|div|script)\b", re.I)


def looks_like_html(text: str) -> bool:
    return bool(_HTML_SNIFF.search(text or ""))


def _normalize_whitespace(text: str) -> str:
    text = text.replace("\xa0", " ")
    text = re.sub(r"[ \t\r\f\v]+", " ", text)
    text = re.sub(r" ?\n ?", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def extract_text_from_html(html: str) -> str:
    """Reduce an HTML page to readable text, keeping block boundaries as newlines."""
    soup = BeautifulSoup(html, "html.parser")

    for tag in soup.find_all(_STRIPPED_TAGS):
        tag.extract()
    for comment in soup.find_all(string=lambda s: isinstance(s, Comment)):
        comment.extract()

    for tag in soup.find_all(_BREAK_TAGS):
        tag.replace_with("\n")
    for tag in soup.find_all(_BLOCK_TAGS):
        tag.append("\n")

    text = _normalize_whitespace(soup.get_text(" "))
    if len(text) > MAX_CONTENT_LENGTH:
        text = text[:MAX_CONTENT_LENGTH] + TRUNCATION_MARKER
    return text


def _meta_content(soup: BeautifulSoup, **attrs: str) -> Optional[str]:
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return None
    content = (tag.get("content") or "").strip()
    return content or None


def _load_json_ld_blocks(soup: BeautifulSoup) -> List[Any]:
    blocks = []
    for script in soup.find_all("script", type="application/ld+json"):
        try:
            blocks.append(json.loads(script.string or script.get_text() or ""))
        except (json.JSONDecodeError, TypeError):
            logger.debug("Skipping malformed JSON-LD block")
    return blocks


def extract_metadata(html: str) -> PageMetadata:
    """Read title, description, og:image and the first Event JSON-LD block."""
    soup = BeautifulSoup(html, "html.parser")
    metadata = PageMetadata()

    if soup.title and soup.title.string:
        metadata.title = soup.title.string.strip() or None
    if not metadata.title:
        metadata.title = _meta_content(soup, property="og:title")

    metadata.description = _meta_content(soup, name="description") or _meta_content(
        soup, property="og:description"
    )
    metadata.og_image = _meta_content(soup, property="og:image")

    for block in _load_json_ld_blocks(soup):
        event = find_event(block)
        if event is not None:
            metadata.json_ld = event
            break

    return metadata


def extract_links(html: str, base_url: str) -> List[str]:
    """Unique absolute http(s) links in document order."""
    soup = BeautifulSoup(html, "html.parser")
    links: List[str] = []
    for anchor in soup.find_all("a", href=True):
        try:
            url = urljoin(base_url, anchor["href"].strip())
        except ValueError:
            continue
        if urlsplit(url).scheme not in ("http", "https"):
            continue
        if url not in links:
            links.append(url)
    return links

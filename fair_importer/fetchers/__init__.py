from .content import ContentFetcher, is_internal_url, is_valid_url
from .html_parser import (
    extract_links,
    extract_metadata,
    extract_text_from_html,
    looks_like_html,
)

__all__ = [
    "ContentFetcher",
    "is_internal_url",
    "is_valid_url",
    "extract_links",
    "extract_metadata",
    "extract_text_from_html",
    "looks_like_html",
]

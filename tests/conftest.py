"""Shared fixtures for the fair importer test suite."""

import json
from typing import Any, Callable, Dict, List
from unittest.mock import AsyncMock, MagicMock

import pytest

from fair_importer.api import ImportService
from fair_importer.models import (
    DuplicateCheck,
    ExtractedEvent,
    ExtractResult,
    FetchResult,
    PageMetadata,
    PromoterRef,
    VenueRef,
)

FAIR_JSON_LD: Dict[str, Any] = {
    "@context": "https://schema.org",
    "@type": "Event",
    "name": "Lake County Fair",
    "startDate": "2025-07-15",
    "endDate": "2025-07-20",
    "location": {
        "@type": "Place",
        "name": "Lake County Fairgrounds",
        "address": {
            "@type": "PostalAddress",
            "streetAddress": "1060 E Peterson Rd",
            "addressLocality": "Grayslake",
            "addressRegion": "IL",
        },
    },
    "image": "https://lcfair.org/poster.jpg",
}


@pytest.fixture
def fair_json_ld() -> Dict[str, Any]:
    """A schema.org Event payload for a county fair."""
    return json.loads(json.dumps(FAIR_JSON_LD))


@pytest.fixture
def fair_page_html(fair_json_ld: Dict[str, Any]) -> str:
    """A small fair homepage with metadata and JSON-LD."""
    return (
        "<html><head>"
        "<title>Lake County Fair 2025</title>"
        '<meta name="description" content="Rides, livestock and grandstand shows.">'
        '<meta property="og:image" content="https://lcfair.org/og.jpg">'
        f'<script type="application/ld+json">{json.dumps(fair_json_ld)}</script>'
        "</head><body>"
        "<h1>Lake County Fair</h1>"
        "<p>July 15-20, 2025. Gates open 10am daily.</p>"
        "<p>Lake County Fairgrounds, Grayslake, IL</p>"
        "</body></html>"
    )


@pytest.fixture
def sample_metadata(fair_json_ld: Dict[str, Any]) -> PageMetadata:
    return PageMetadata(
        title="Lake County Fair 2025",
        description="Rides, livestock and grandstand shows.",
        og_image="https://lcfair.org/og.jpg",
        json_ld=fair_json_ld,
    )


@pytest.fixture
def sample_events() -> List[ExtractedEvent]:
    """Three extracted candidates from a multi-event page."""
    return [
        ExtractedEvent(
            name="Spring Craft Fair",
            start_date="2025-04-12",
            venue_name="Civic Center",
            venue_city="Springfield",
            venue_state="IL",
            extract_id="event-0-aaa",
        ),
        ExtractedEvent(
            name="Summer Fair",
            start_date="2025-07-15",
            end_date="2025-07-20",
            venue_name="Fairgrounds",
            extract_id="event-1-bbb",
        ),
        ExtractedEvent(
            name="Harvest Festival",
            start_date="2025-10-04",
            extract_id="event-2-ccc",
        ),
    ]


@pytest.fixture
def sample_venues() -> List[VenueRef]:
    return [
        VenueRef(id="v1", name="Lake County Fairgrounds", city="Grayslake", state="IL"),
        VenueRef(id="v2", name="Civic Center", city="Springfield", state="IL"),
        VenueRef(id="v3", name="Riverside Park", city="Aurora", state="IL"),
    ]


@pytest.fixture
def sample_promoters() -> List[PromoterRef]:
    return [
        PromoterRef(id="p1", company_name="Lake County Fair Association"),
        PromoterRef(id="p2", company_name="Midwest Events LLC"),
    ]


@pytest.fixture
def service() -> MagicMock:
    """An import service whose network calls succeed with empty results."""
    mock = MagicMock(spec=ImportService)
    mock.fetch_url = AsyncMock(
        return_value=FetchResult(success=True, content="Fair page text", title="Lake County Fair 2025")
    )
    mock.from_pasted = MagicMock(return_value=FetchResult(success=True, content="Pasted fair text"))
    mock.extract = AsyncMock(return_value=ExtractResult(success=True, events=[]))
    mock.check_duplicate = AsyncMock(return_value=DuplicateCheck(is_duplicate=False))
    mock.list_venues = AsyncMock(return_value=[])
    mock.list_promoters = AsyncMock(return_value=[])
    mock.import_event = AsyncMock()
    return mock


def _model_response(payload: Any) -> Dict[str, Any]:
    text = payload if isinstance(payload, str) else json.dumps(payload)
    return {"result": {"response": text}, "success": True, "errors": [], "messages": []}


@pytest.fixture
def model_response() -> Callable[[Any], Dict[str, Any]]:
    """Wrap a model reply the way the Workers AI REST API returns it."""
    return _model_response

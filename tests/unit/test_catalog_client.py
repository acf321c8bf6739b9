"""Unit tests for the catalog API client and the import service."""

import asyncio
import re
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest
from aioresponses import aioresponses

from fair_importer.api import CatalogClient, CatalogError, ImportService
from fair_importer.extraction import AiExtractor
from fair_importer.fetchers import ContentFetcher
from fair_importer.models import ExtractedEvent, PageMetadata

BASE_URL = "https://admin.example.com"
CHECK_DUPLICATE = re.compile(r"^https://admin\.example\.com/api/admin/import-url/check-duplicate\?.*$")


@pytest.fixture
def catalog() -> CatalogClient:
    return CatalogClient(BASE_URL + "/", api_token="token-123", timeout=5)


class TestCatalogClient:
    """Tests for CatalogClient."""

    @pytest.mark.asyncio
    async def test_list_venues_wrapped(self, catalog: CatalogClient) -> None:
        with aioresponses() as m:
            m.get(
                f"{BASE_URL}/api/admin/venues",
                payload={"venues": [{"id": 1, "name": "Fairgrounds", "city": "Grayslake", "state": "IL"}]},
            )
            venues = await catalog.list_venues()

        assert len(venues) == 1
        assert venues[0].id == "1"
        assert venues[0].city == "Grayslake"

    @pytest.mark.asyncio
    async def test_list_promoters_bare_list(self, catalog: CatalogClient) -> None:
        with aioresponses() as m:
            m.get(
                f"{BASE_URL}/api/admin/promoters",
                payload=[{"id": "p1", "companyName": "Fair Board"}, "junk"],
            )
            promoters = await catalog.list_promoters()

        assert [p.company_name for p in promoters] == ["Fair Board"]

    @pytest.mark.asyncio
    async def test_rows_without_id_are_skipped(self, catalog: CatalogClient) -> None:
        with aioresponses() as m:
            m.get(
                f"{BASE_URL}/api/admin/venues",
                payload=[{"name": "No Id Hall"}, {"id": "", "name": "Blank"}, {"id": "v1", "name": "Fairgrounds"}],
            )
            venues = await catalog.list_venues()

        assert [v.id for v in venues] == ["v1"]

    @pytest.mark.asyncio
    async def test_list_error_status(self, catalog: CatalogClient) -> None:
        with aioresponses() as m:
            m.get(f"{BASE_URL}/api/admin/venues", status=401, payload={"error": "Unauthorized"})
            with pytest.raises(CatalogError, match="Unauthorized") as exc_info:
                await catalog.list_venues()

        assert exc_info.value.status == 401

    @pytest.mark.asyncio
    async def test_check_duplicate(self, catalog: CatalogClient) -> None:
        with aioresponses() as m:
            m.get(
                CHECK_DUPLICATE,
                payload={
                    "isDuplicate": True,
                    "existingEvent": {"id": "e9", "name": "Lake County Fair", "slug": "lake-county-fair-2025"},
                },
            )
            result = await catalog.check_duplicate("https://lcfair.org/")

            (method, url), calls = next(iter(m.requests.items()))
            assert url.query["url"] == "https://lcfair.org/"

        assert result.is_duplicate
        assert result.existing_event.slug == "lake-county-fair-2025"

    @pytest.mark.asyncio
    async def test_import_event_success(self, catalog: CatalogClient) -> None:
        payload = {"event": {"name": "Fair"}, "venueOption": {"type": "none"}, "promoterId": "p1"}
        with aioresponses() as m:
            m.post(
                f"{BASE_URL}/api/admin/import-url",
                payload={"success": True, "event": {"id": "e1", "slug": "fair"}, "venueId": None},
            )
            result = await catalog.import_event(payload)

            request = next(iter(m.requests.values()))[0]
            assert request.kwargs["json"] == payload

        assert result.success
        assert result.event.slug == "fair"
        assert result.venue_id is None

    @pytest.mark.asyncio
    async def test_import_event_error_body(self, catalog: CatalogClient) -> None:
        """Test that an error status with a JSON body is an unsuccessful result."""
        with aioresponses() as m:
            m.post(f"{BASE_URL}/api/admin/import-url", status=400, payload={"error": "Missing name"})
            result = await catalog.import_event({})

        assert not result.success
        assert result.error == "Missing name"

    @pytest.mark.asyncio
    async def test_import_event_status_overrides_success(self, catalog: CatalogClient) -> None:
        with aioresponses() as m:
            m.post(f"{BASE_URL}/api/admin/import-url", status=500, payload={"success": True})
            result = await catalog.import_event({})

        assert not result.success

    @pytest.mark.asyncio
    async def test_import_event_non_json(self, catalog: CatalogClient) -> None:
        with aioresponses() as m:
            m.post(
                f"{BASE_URL}/api/admin/import-url",
                status=502,
                body="<html>Bad Gateway</html>",
                content_type="text/html",
            )
            with pytest.raises(CatalogError, match="HTTP 502"):
                await catalog.import_event({})

    @pytest.mark.asyncio
    async def test_network_errors_are_wrapped(self, catalog: CatalogClient) -> None:
        with aioresponses() as m:
            m.get(f"{BASE_URL}/api/admin/venues", exception=aiohttp.ClientConnectionError("refused"))
            m.get(f"{BASE_URL}/api/admin/promoters", exception=asyncio.TimeoutError())
            with pytest.raises(CatalogError, match="Network error"):
                await catalog.list_venues()
            with pytest.raises(CatalogError, match="Timed out"):
                await catalog.list_promoters()

    def test_auth_header(self, catalog: CatalogClient) -> None:
        assert catalog._headers()["Authorization"] == "Bearer token-123"
        assert "Authorization" not in CatalogClient(BASE_URL)._headers()


class TestImportService:
    """Tests for ImportService.extract."""

    @pytest.fixture
    def extractor(self) -> MagicMock:
        return MagicMock(spec=AiExtractor)

    @pytest.fixture
    def service(self, extractor: MagicMock, catalog: CatalogClient) -> ImportService:
        return ImportService(ContentFetcher(), extractor, catalog)

    @pytest.mark.asyncio
    async def test_fills_missing_ticket_url(self, service: ImportService, extractor: MagicMock) -> None:
        events = [
            ExtractedEvent(name="A", extract_id="event-0-a"),
            ExtractedEvent(name="B", ticket_url="https://tix.example.com/", extract_id="event-1-b"),
        ]
        confidence = {
            "event-0-a": {"name": "medium", "ticket_url": "low"},
            "event-1-b": {"name": "medium", "ticket_url": "medium"},
        }
        extractor.extract_events = AsyncMock(return_value=(events, confidence))

        result = await service.extract("page text", "https://lcfair.org/", PageMetadata())

        assert result.success
        assert result.events[0].ticket_url == "https://lcfair.org/"
        assert result.events[1].ticket_url == "https://tix.example.com/"
        assert result.confidence["event-0-a"]["ticket_url"] == "medium"
        assert result.confidence["event-1-b"]["ticket_url"] == "medium"

    @pytest.mark.asyncio
    async def test_no_url_leaves_ticket_url_empty(
        self, service: ImportService, extractor: MagicMock
    ) -> None:
        extractor.extract_events = AsyncMock(
            return_value=([ExtractedEvent(name="A", extract_id="event-0-a")], {})
        )
        result = await service.extract("page text", None, PageMetadata())
        assert result.events[0].ticket_url is None

    @pytest.mark.asyncio
    async def test_empty_content(self, service: ImportService, extractor: MagicMock) -> None:
        extractor.extract_events = AsyncMock()
        result = await service.extract("   ", "https://lcfair.org/", PageMetadata())

        assert not result.success
        assert result.error == "Content is required"
        extractor.extract_events.assert_not_called()

    @pytest.mark.asyncio
    async def test_unexpected_failure(self, service: ImportService, extractor: MagicMock) -> None:
        extractor.extract_events = AsyncMock(side_effect=RuntimeError("boom"))
        result = await service.extract("page text", None, PageMetadata())

        assert not result.success
        assert result.events == []
        assert result.error == "Could not extract event data. Please add events manually."

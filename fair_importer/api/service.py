import logging
from typing import Any, Dict, List, Optional

from ..extraction.extractor import AiExtractor
from ..fetchers.content import ContentFetcher, is_valid_url
from ..models import (
    DuplicateCheck,
    ExtractResult,
    FetchResult,
    ImportResult,
    PageMetadata,
    PromoterRef,
    VenueRef,
)
from .catalog import CatalogClient

EXTRACT_FAILED_MESSAGE = "Could not extract event data. Please add events manually."


class ImportService:
    """The backend the import wizard talks to: fetch, extract, and catalog calls."""

    def __init__(
        self, fetcher: ContentFetcher, extractor: AiExtractor, catalog: CatalogClient
    ) -> None:
        self.fetcher = fetcher
        self.extractor = extractor
        self.catalog = catalog
        self.logger = logging.getLogger(self.__class__.__name__)

    async def fetch_url(self, url: str) -> FetchResult:
        return await self.fetcher.fetch(url)

    def from_pasted(self, text: str) -> FetchResult:
        return self.fetcher.from_pasted(text)

    async def extract(
        self, content: str, url: Optional[str], metadata: PageMetadata
    ) -> ExtractResult:
        """
        Extract candidate events from page text.

        Candidates without a ticket link get the source URL. Unexpected
        failures are reported as an unsuccessful result, never raised.
        """
        if not content or not content.strip():
            return ExtractResult(success=False, error="Content is required")

        try:
            events, confidence = await self.extractor.extract_events(content, metadata)
        except Exception as e:
            self.logger.error(f"Extraction failed: {e}", exc_info=True)
            return ExtractResult(success=False, error=EXTRACT_FAILED_MESSAGE)

        if url and is_valid_url(url):
            for event in events:
                if not event.ticket_url:
                    event.ticket_url = url
                    if event.extract_id in confidence:
                        confidence[event.extract_id]["ticket_url"] = "medium"

        return ExtractResult(success=True, events=events, confidence=confidence)

    async def check_duplicate(self, url: str) -> DuplicateCheck:
        return await self.catalog.check_duplicate(url)

    async def list_venues(self) -> List[VenueRef]:
        return await self.catalog.list_venues()

    async def list_promoters(self) -> List[PromoterRef]:
        return await self.catalog.list_promoters()

    async def import_event(self, payload: Dict[str, Any]) -> ImportResult:
        return await self.catalog.import_event(payload)

from .event import ExtractedEvent, ExtractedEventData
from .results import (
    BatchError,
    CreatedEvent,
    DuplicateCheck,
    EventRef,
    ExtractResult,
    FetchResult,
    ImportResult,
    PageMetadata,
)
from .schema_org import ParseResult, SchemaOrgEventData
from .venue import PromoterRef, VenueOption, VenueRef

__all__ = [
    "ExtractedEvent",
    "ExtractedEventData",
    "BatchError",
    "CreatedEvent",
    "DuplicateCheck",
    "EventRef",
    "ExtractResult",
    "FetchResult",
    "ImportResult",
    "PageMetadata",
    "ParseResult",
    "SchemaOrgEventData",
    "PromoterRef",
    "VenueOption",
    "VenueRef",
]

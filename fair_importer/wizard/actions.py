"""Transitions the import wizard understands. Each is a small immutable record."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional

from ..models import (
    BatchError,
    CreatedEvent,
    EventRef,
    ExtractedEvent,
    PageMetadata,
    PromoterRef,
    VenueOption,
    VenueRef,
)
from .state import WizardStep


@dataclass(frozen=True)
class SetStep:
    step: WizardStep


@dataclass(frozen=True)
class SetError:
    error: str


@dataclass(frozen=True)
class SetUrl:
    url: str


@dataclass(frozen=True)
class SetDuplicateWarning:
    warning: Optional[EventRef]


@dataclass(frozen=True)
class SetManualPaste:
    manual_paste: bool


@dataclass(frozen=True)
class SetPastedContent:
    pasted_content: str


@dataclass(frozen=True)
class FetchSuccess:
    content: str
    metadata: PageMetadata = field(default_factory=PageMetadata)


@dataclass(frozen=True)
class ExtractSuccess:
    events: List[ExtractedEvent]
    confidence: Dict[str, Dict[str, str]]


@dataclass(frozen=True)
class ExtractSingle:
    event: ExtractedEvent
    confidence: Dict[str, Dict[str, str]]


@dataclass(frozen=True)
class ExtractFail:
    error: str


@dataclass(frozen=True)
class SetSelectedEventIds:
    ids: FrozenSet[str]


@dataclass(frozen=True)
class ToggleEventSelection:
    event_id: str


@dataclass(frozen=True)
class ToggleSelectAll:
    pass


@dataclass(frozen=True)
class LoadEventForReview:
    event: ExtractedEvent
    confidence: Dict[str, str]


@dataclass(frozen=True)
class UpdateExtractedData:
    changes: Dict[str, Any]


@dataclass(frozen=True)
class SetDatesConfirmed:
    confirmed: bool


@dataclass(frozen=True)
class ProceedToReview:
    selected: List[ExtractedEvent]
    first_event_confidence: Dict[str, str]


@dataclass(frozen=True)
class SaveCurrentEventEdits:
    pass


@dataclass(frozen=True)
class NavigateEvent:
    index: int
    event: ExtractedEvent
    confidence: Dict[str, str]


@dataclass(frozen=True)
class SetEventsToImport:
    events: List[ExtractedEvent]


@dataclass(frozen=True)
class SetVenueOption:
    option: VenueOption


@dataclass(frozen=True)
class SetSelectedVenueId:
    venue_id: str


@dataclass(frozen=True)
class SetNewVenue:
    name: str
    address: str = ""
    city: str = ""
    state: str = ""


@dataclass(frozen=True)
class SetNewVenueName:
    name: str


@dataclass(frozen=True)
class SetNewVenueField:
    field: str                                 # "address" | "city" | "state"
    value: str


@dataclass(frozen=True)
class SetSelectedPromoterId:
    promoter_id: str


@dataclass(frozen=True)
class SetReferenceData:
    venues: List[VenueRef]
    promoters: List[PromoterRef]


@dataclass(frozen=True)
class SetSavingProgress:
    current: int
    total: int


@dataclass(frozen=True)
class SaveComplete:
    created: List[CreatedEvent]
    batch_errors: List[BatchError]


@dataclass(frozen=True)
class RetryFailed:
    pass


@dataclass(frozen=True)
class Reset:
    pass

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional

from ..models import (
    BatchError,
    CreatedEvent,
    EventRef,
    ExtractedEvent,
    ExtractedEventData,
    PageMetadata,
    PromoterRef,
    VenueOption,
    VenueRef,
)

UNNAMED_EVENT = "Unnamed Event"


class WizardStep(str, Enum):
    URL_INPUT = "url-input"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    SELECT_EVENTS = "select-events"
    REVIEW = "review"
    VENUE = "venue"
    PROMOTER = "promoter"
    PREVIEW = "preview"
    SAVING = "saving"
    SUCCESS = "success"


@dataclass(frozen=True)
class SavingProgress:
    current: int
    total: int


@dataclass
class WizardState:
    """Everything an in-progress import knows. Only the reducer produces new states."""

    step: WizardStep = WizardStep.URL_INPUT
    error: str = ""

    # URL input
    url: str = ""
    manual_paste: bool = False
    pasted_content: str = ""
    duplicate_warning: Optional[EventRef] = None

    # Fetched content
    fetched_content: str = ""
    fetched_metadata: PageMetadata = field(default_factory=PageMetadata)
    fetched_json_ld: Optional[Dict[str, Any]] = None

    # Candidates
    extracted_events: List[ExtractedEvent] = field(default_factory=list)
    event_confidence: Dict[str, Dict[str, str]] = field(default_factory=dict)
    selected_event_ids: FrozenSet[str] = frozenset()
    current_event_index: int = 0
    events_to_import: List[ExtractedEvent] = field(default_factory=list)

    # Event under review
    extracted_data: ExtractedEventData = field(default_factory=ExtractedEventData)
    confidence: Dict[str, str] = field(default_factory=dict)
    dates_confirmed: bool = True

    # Venue
    venues: List[VenueRef] = field(default_factory=list)
    venue_option: VenueOption = field(default_factory=VenueOption.none)
    selected_venue_id: str = ""
    new_venue_name: str = ""
    new_venue_address: str = ""
    new_venue_city: str = ""
    new_venue_state: str = ""

    # Promoter
    promoters: List[PromoterRef] = field(default_factory=list)
    selected_promoter_id: str = ""

    # Saving and results
    saving_progress: Optional[SavingProgress] = None
    created_events: List[CreatedEvent] = field(default_factory=list)
    batch_errors: List[BatchError] = field(default_factory=list)

    @property
    def is_finished(self) -> bool:
        return self.step == WizardStep.SUCCESS

    @property
    def current_event(self) -> Optional[ExtractedEvent]:
        if 0 <= self.current_event_index < len(self.events_to_import):
            return self.events_to_import[self.current_event_index]
        return None

    def selected_events(self) -> List[ExtractedEvent]:
        """Selected candidates, in extraction order."""
        return [e for e in self.extracted_events if e.extract_id in self.selected_event_ids]

    def confidence_for(self, event: ExtractedEvent) -> Dict[str, str]:
        return dict(self.event_confidence.get(event.extract_id, {}))

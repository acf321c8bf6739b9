from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .event import ExtractedEvent


@dataclass
class PageMetadata:
    title: Optional[str] = None
    description: Optional[str] = None
    og_image: Optional[str] = None
    json_ld: Optional[Dict[str, Any]] = None


@dataclass
class FetchResult:
    success: bool
    content: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    og_image: Optional[str] = None
    json_ld: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def metadata(self) -> PageMetadata:
        return PageMetadata(
            title=self.title,
            description=self.description,
            og_image=self.og_image,
            json_ld=self.json_ld,
        )

    @classmethod
    def failure(cls, error: str) -> FetchResult:
        return cls(success=False, error=error)


@dataclass
class ExtractResult:
    success: bool
    events: List[ExtractedEvent] = field(default_factory=list)
    confidence: Dict[str, Dict[str, str]] = field(default_factory=dict)
    error: Optional[str] = None


@dataclass
class EventRef:
    slug: str
    id: Optional[str] = None
    name: Optional[str] = None


@dataclass
class DuplicateCheck:
    is_duplicate: bool
    existing_event: Optional[EventRef] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DuplicateCheck:
        existing = data.get("existingEvent")
        return cls(
            is_duplicate=bool(data.get("isDuplicate")),
            existing_event=(
                EventRef(
                    slug=existing.get("slug") or "",
                    id=existing.get("id"),
                    name=existing.get("name"),
                )
                if isinstance(existing, dict)
                else None
            ),
        )


@dataclass
class ImportResult:
    success: bool
    event: Optional[EventRef] = None
    venue_id: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ImportResult:
        event = data.get("event")
        venue_id = data.get("venueId")
        return cls(
            success=bool(data.get("success")),
            event=(
                EventRef(slug=event.get("slug") or "", id=event.get("id"))
                if isinstance(event, dict)
                else None
            ),
            venue_id=str(venue_id) if venue_id else None,
            error=data.get("error"),
        )


@dataclass
class CreatedEvent:
    id: Optional[str]
    slug: str
    name: str


class BatchError:
    """One event of an import batch that could not be saved."""

    def __init__(self, event_name: str, error: str) -> None:
        self.event_name = event_name
        self.error = error
        self.timestamp = datetime.now()

    def __str__(self) -> str:
        return f"{self.event_name}: {self.error}"

    def __repr__(self) -> str:
        return f"BatchError(event_name={self.event_name!r}, error={self.error!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BatchError):
            return NotImplemented
        return (self.event_name, self.error) == (other.event_name, other.error)

    def to_user_message(self) -> str:
        """Create a user-facing summary of the save failure."""
        return f"Failed to import: {self.event_name} ({self.error})"

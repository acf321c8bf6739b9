from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

PARSE_STATUSES = {"not_found", "invalid", "available", "error"}


@dataclass
class SchemaOrgEventData:
    name: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    image_url: Optional[str] = None
    ticket_url: Optional[str] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    venue_name: Optional[str] = None
    venue_address: Optional[str] = None
    venue_city: Optional[str] = None
    venue_state: Optional[str] = None
    venue_lat: Optional[float] = None
    venue_lng: Optional[float] = None
    event_status: Optional[str] = None         # e.g. "EventScheduled"
    organizer_name: Optional[str] = None
    organizer_url: Optional[str] = None


@dataclass
class ParseResult:
    success: bool
    status: str                                # "not_found" | "invalid" | "available" | "error"
    data: Optional[SchemaOrgEventData] = None
    raw_json_ld: Optional[str] = None
    error: Optional[str] = None

    def __post_init__(self):
        if self.status not in PARSE_STATUSES:
            raise ValueError(
                f"Invalid parse status '{self.status}'. "
                f"Must be one of: {sorted(PARSE_STATUSES)}"
            )

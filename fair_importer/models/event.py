from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

CONFIDENCE_LEVELS = ("high", "medium", "low")

# attribute name -> camelCase key used by the catalog API
WIRE_KEYS: Dict[str, str] = {
    "name": "name",
    "description": "description",
    "start_date": "startDate",
    "end_date": "endDate",
    "start_time": "startTime",
    "end_time": "endTime",
    "hours_vary_by_day": "hoursVaryByDay",
    "hours_notes": "hoursNotes",
    "venue_name": "venueName",
    "venue_address": "venueAddress",
    "venue_city": "venueCity",
    "venue_state": "venueState",
    "ticket_url": "ticketUrl",
    "ticket_price_min": "ticketPriceMin",
    "ticket_price_max": "ticketPriceMax",
    "image_url": "imageUrl",
}

DATA_FIELDS = tuple(WIRE_KEYS)


@dataclass
class ExtractedEventData:
    name: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[str] = None           # "YYYY-MM-DD" or "YYYY-MM-DDTHH:MM:SS"
    end_date: Optional[str] = None
    start_time: Optional[str] = None           # "HH:MM", 24h
    end_time: Optional[str] = None
    hours_vary_by_day: bool = False
    hours_notes: Optional[str] = None
    venue_name: Optional[str] = None
    venue_address: Optional[str] = None
    venue_city: Optional[str] = None
    venue_state: Optional[str] = None          # two-letter code
    ticket_url: Optional[str] = None
    ticket_price_min: Optional[float] = None
    ticket_price_max: Optional[float] = None
    image_url: Optional[str] = None

    def data_values(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in DATA_FIELDS}

    def copy_data(self) -> ExtractedEventData:
        return ExtractedEventData(**self.data_values())

    def to_dict(self) -> Dict[str, Any]:
        return {WIRE_KEYS[name]: value for name, value in self.data_values().items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ExtractedEventData:
        return cls(**_data_kwargs(data))


@dataclass
class ExtractedEvent(ExtractedEventData):
    extract_id: str = ""
    selected: bool = True

    @classmethod
    def from_data(
        cls, data: ExtractedEventData, extract_id: str, selected: bool = True
    ) -> ExtractedEvent:
        return cls(extract_id=extract_id, selected=selected, **data.data_values())

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["_extractId"] = self.extract_id
        result["_selected"] = self.selected
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ExtractedEvent:
        return cls(
            extract_id=str(data.get("_extractId", "")),
            selected=bool(data.get("_selected", True)),
            **_data_kwargs(data),
        )

    def __str__(self) -> str:
        when = self.start_date or "TBD"
        if self.end_date and self.end_date != self.start_date:
            when += f" to {self.end_date}"
        where = f" @ {self.venue_name}" if self.venue_name else ""
        return f"{when}: {self.name or 'Unnamed Event'}{where}"


def _data_kwargs(data: Dict[str, Any]) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {}
    for name, key in WIRE_KEYS.items():
        if key in data:
            kwargs[name] = data[key]
    if "hours_vary_by_day" in kwargs:
        kwargs["hours_vary_by_day"] = bool(kwargs["hours_vary_by_day"])
    return kwargs


def empty_confidence() -> Dict[str, str]:
    return {name: "low" for name in DATA_FIELDS}

"""Schema.org JSON-LD parser for Event data.

Normalizes one JSON-LD event object (as found in a page's
<script type="application/ld+json"> blocks) into SchemaOrgEventData.
"""

import json
import logging
import math
import re
from typing import Any, Dict, List, Optional

from ..models import ParseResult, SchemaOrgEventData
from .sanitizers import (
    parse_iso_datetime,
    sanitize_price,
    sanitize_state,
    sanitize_string,
    sanitize_url,
)

# Subtypes that do not contain the word "Event"
_EXTRA_EVENT_TYPES = {"Festival"}

DESCRIPTION_MAX_LENGTH = 2000
ONLINE_VENUE_NAME = "Online Event"

_LEADING_LETTERS = re.compile(r"^([A-Za-z\s]+)")


def is_event_type(ld_type: Any) -> bool:
    """True if a JSON-LD ``@type`` value declares an Event."""
    if isinstance(ld_type, list):
        return any(is_event_type(t) for t in ld_type if isinstance(t, str))
    if not isinstance(ld_type, str):
        return False
    return ld_type == "Event" or "event" in ld_type.lower() or ld_type in _EXTRA_EVENT_TYPES


def _first(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    return value


class JsonLdParser:
    """Parser for Schema.org JSON-LD event payloads."""

    def __init__(self) -> None:
        self.logger = logging.getLogger(self.__class__.__name__)

    def find_event(self, data: Any) -> Optional[Dict[str, Any]]:
        """Recursively find the first event object in JSON-LD data."""
        if isinstance(data, list):
            for item in data:
                found = self.find_event(item)
                if found is not None:
                    return found
            return None

        if not isinstance(data, dict):
            return None

        if is_event_type(data.get("@type")):
            return data

        # Handle @graph wrapper
        if "@graph" in data:
            return self.find_event(data["@graph"])

        return None

    def parse(self, payload: Any) -> ParseResult:
        if not payload or not isinstance(payload, dict):
            return ParseResult(
                success=False,
                status="not_found",
                error="No JSON-LD data provided",
            )

        raw = json.dumps(payload, indent=2)
        if not is_event_type(payload.get("@type")):
            return ParseResult(
                success=False,
                status="invalid",
                raw_json_ld=raw,
                error="JSON-LD is not an Event type",
            )

        data = SchemaOrgEventData(
            name=sanitize_string(payload.get("name")),
            description=sanitize_string(payload.get("description"), DESCRIPTION_MAX_LENGTH),
            start_date=parse_iso_datetime(payload.get("startDate")),
            end_date=parse_iso_datetime(payload.get("endDate")),
            event_status=sanitize_string(payload.get("eventStatus")),
        )

        location = _first(payload.get("location"))
        if isinstance(location, dict):
            self._parse_location(location, data)
        elif isinstance(location, str):
            data.venue_name = sanitize_string(location)

        if payload.get("image"):
            data.image_url = self._parse_image(payload["image"])

        offers = payload.get("offers")
        if isinstance(offers, dict):
            offers = [offers]
        if isinstance(offers, list) and offers:
            self._parse_offers(offers, data)

        organizer = _first(payload.get("organizer"))
        if isinstance(organizer, dict):
            data.organizer_name = sanitize_string(organizer.get("name"))
            data.organizer_url = sanitize_url(organizer.get("url"))
        elif isinstance(organizer, str):
            data.organizer_name = sanitize_string(organizer)

        self.logger.debug(f"JsonLdParser: parsed event {data.name!r}")
        return ParseResult(success=True, status="available", data=data, raw_json_ld=raw)

    def _parse_location(self, location: Dict[str, Any], data: SchemaOrgEventData) -> None:
        if location.get("@type") == "VirtualLocation":
            data.venue_name = ONLINE_VENUE_NAME
            data.venue_address = sanitize_string(location.get("url"))
            return

        data.venue_name = sanitize_string(location.get("name"))

        address = location.get("address")
        if isinstance(address, str):
            data.venue_address = sanitize_string(address)
            parts = [part.strip() for part in address.split(",")]
            if len(parts) >= 2:
                data.venue_city = parts[-2] or None
                # last part is usually "State ZIP"
                match = _LEADING_LETTERS.match(parts[-1])
                if match:
                    data.venue_state = sanitize_state(match.group(1))
        elif isinstance(address, dict):
            data.venue_address = sanitize_string(address.get("streetAddress"))
            data.venue_city = sanitize_string(address.get("addressLocality"))
            data.venue_state = sanitize_state(address.get("addressRegion"))

        geo = location.get("geo")
        if isinstance(geo, dict):
            lat = self._parse_coordinate(geo.get("latitude"))
            lng = self._parse_coordinate(geo.get("longitude"))
            if lat is not None and lng is not None:
                data.venue_lat = lat
                data.venue_lng = lng

    def _parse_coordinate(self, value: Any) -> Optional[float]:
        try:
            number = float(str(value))
        except (TypeError, ValueError):
            return None
        return None if math.isnan(number) else number

    def _parse_image(self, image: Any) -> Optional[str]:
        if isinstance(image, str):
            return sanitize_url(image)
        first = _first(image) if isinstance(image, list) else image
        if isinstance(first, str):
            return sanitize_url(first)
        if isinstance(first, dict):
            return sanitize_url(first.get("url"))
        return None

    def _parse_offers(self, offers: List[Any], data: SchemaOrgEventData) -> None:
        lows: List[float] = []
        highs: List[float] = []
        for offer in offers:
            if not isinstance(offer, dict):
                continue
            if data.ticket_url is None and offer.get("url"):
                data.ticket_url = sanitize_url(offer["url"])

            if offer.get("@type") == "AggregateOffer":
                low = sanitize_price(offer.get("lowPrice"))
                high = sanitize_price(offer.get("highPrice"))
                if low is not None:
                    lows.append(low)
                if high is not None:
                    highs.append(high)

            price = sanitize_price(offer.get("price"))
            if price is not None:
                lows.append(price)
                highs.append(price)

        data.price_min = min(lows) if lows else None
        data.price_max = max(highs) if highs else None


_parser = JsonLdParser()


def parse_json_ld(payload: Any) -> ParseResult:
    return _parser.parse(payload)


def find_event(data: Any) -> Optional[Dict[str, Any]]:
    return _parser.find_event(data)

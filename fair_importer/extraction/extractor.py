"""Language-model event extraction with sanitization and confidence scoring.

The model's output is untrusted: every field goes through the sanitizers,
unparsable responses degrade to whatever the page metadata offers, and a
model failure never propagates to the caller.
"""

import json
import logging
import re
import uuid
from typing import Any, Dict, List, Tuple

from ..models import ExtractedEvent, ExtractedEventData, PageMetadata, SchemaOrgEventData
from ..parsers.json_ld import parse_json_ld
from ..parsers.sanitizers import (
    extract_time_from_datetime,
    sanitize_date,
    sanitize_price,
    sanitize_state,
    sanitize_string,
    sanitize_time,
    sanitize_url,
)
from .client import ModelInvocationError, WorkersAiClient
from .prompts import (
    MULTI_EVENT_SYSTEM_PROMPT,
    SYSTEM_PROMPT,
    build_context,
    build_multi_event_prompt,
    build_single_event_prompt,
    truncate_content,
)

SINGLE_EVENT_CONTENT_LIMIT = 15000
MULTI_EVENT_CONTENT_LIMIT = 20000
SINGLE_EVENT_MAX_TOKENS = 1024
MULTI_EVENT_MAX_TOKENS = 4096
TEMPERATURE = 0.1
DESCRIPTION_MAX_LENGTH = 500
HOURS_NOTES_MAX_LENGTH = 500

# Keys a model may use for each field, in order of preference
FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "name": ("name", "title"),
    "description": ("description",),
    "start_date": ("startDate", "start_date", "date"),
    "end_date": ("endDate", "end_date"),
    "start_time": ("startTime", "start_time"),
    "end_time": ("endTime", "end_time"),
    "hours_vary_by_day": ("hoursVaryByDay", "hours_vary_by_day"),
    "hours_notes": ("hoursNotes", "hours_notes"),
    "venue_name": ("venueName", "venue_name", "venue", "location"),
    "venue_address": ("venueAddress", "venue_address", "address"),
    "venue_city": ("venueCity", "venue_city", "city"),
    "venue_state": ("venueState", "venue_state", "state"),
    "ticket_url": ("ticketUrl", "ticket_url", "url", "link"),
    "ticket_price_min": ("ticketPriceMin", "ticket_price_min", "price_min", "price"),
    "ticket_price_max": ("ticketPriceMax", "ticket_price_max", "price_max"),
    "image_url": ("imageUrl", "image_url", "image"),
}

_ARRAY_PATTERN = re.compile(r"\[.*\]", re.S)
_OBJECT_PATTERN = re.compile(r"\{.*\}", re.S)
_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")


def _pick(item: Dict[str, Any], field: str) -> Any:
    for key in FIELD_ALIASES[field]:
        value = item.get(key)
        if value is not None and value != "":
            return value
    return None


def _named(value: Any) -> Any:
    # models sometimes answer with a nested {"name": ...} object
    if isinstance(value, dict):
        return value.get("name") or value.get("url")
    return value


def sanitize_candidate(item: Dict[str, Any]) -> ExtractedEventData:
    """Build clean event data from one raw model candidate."""
    raw_start = _pick(item, "start_date")
    raw_end = _pick(item, "end_date")

    start_time = sanitize_time(_pick(item, "start_time"))
    end_time = sanitize_time(_pick(item, "end_time"))
    if start_time is None and raw_start is not None:
        start_time = extract_time_from_datetime(raw_start)
    if end_time is None and raw_end is not None:
        end_time = extract_time_from_datetime(raw_end)

    return ExtractedEventData(
        name=sanitize_string(_pick(item, "name")),
        description=sanitize_string(_pick(item, "description"), DESCRIPTION_MAX_LENGTH),
        start_date=sanitize_date(raw_start),
        end_date=sanitize_date(raw_end),
        start_time=start_time,
        end_time=end_time,
        hours_vary_by_day=_pick(item, "hours_vary_by_day") is True,
        hours_notes=sanitize_string(_pick(item, "hours_notes"), HOURS_NOTES_MAX_LENGTH),
        venue_name=sanitize_string(_named(_pick(item, "venue_name"))),
        venue_address=sanitize_string(_pick(item, "venue_address")),
        venue_city=sanitize_string(_pick(item, "venue_city")),
        venue_state=sanitize_state(_pick(item, "venue_state")),
        ticket_url=sanitize_url(_pick(item, "ticket_url")),
        ticket_price_min=sanitize_price(_pick(item, "ticket_price_min")),
        ticket_price_max=sanitize_price(_pick(item, "ticket_price_max")),
        image_url=sanitize_url(_named(_pick(item, "image_url"))),
    )


def structured_fields(metadata: PageMetadata) -> Dict[str, Any]:
    """Event fields as stated by the page's own JSON-LD, keyed like ExtractedEventData."""
    if not metadata.json_ld:
        return {}
    result = parse_json_ld(metadata.json_ld)
    if not result.success or result.data is None:
        return {}
    ld: SchemaOrgEventData = result.data
    raw_start = metadata.json_ld.get("startDate")
    raw_end = metadata.json_ld.get("endDate")
    return {
        "name": ld.name,
        "description": sanitize_string(ld.description, DESCRIPTION_MAX_LENGTH),
        "start_date": sanitize_date(raw_start),
        "end_date": sanitize_date(raw_end),
        "start_time": extract_time_from_datetime(raw_start),
        "end_time": extract_time_from_datetime(raw_end),
        "venue_name": ld.venue_name,
        "venue_address": ld.venue_address,
        "venue_city": ld.venue_city,
        "venue_state": ld.venue_state,
        "ticket_url": ld.ticket_url,
        "ticket_price_min": ld.price_min,
        "ticket_price_max": ld.price_max,
        "image_url": ld.image_url,
    }


def _comparable(value: Any) -> Any:
    if isinstance(value, str):
        return " ".join(value.split()).casefold()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return round(float(value), 2)
    return value


def values_agree(extracted: Any, structured: Any) -> bool:
    """True when both values are present and equal after normalization."""
    if extracted is None or structured is None:
        return False
    return _comparable(extracted) == _comparable(structured)


def compute_confidence(
    data: ExtractedEventData, structured: Dict[str, Any]
) -> Dict[str, str]:
    """Per-field confidence: low when missing, high when JSON-LD agrees, else medium."""
    confidence = {}
    for field, value in data.data_values().items():
        if value is None:
            confidence[field] = "low"
        elif values_agree(value, structured.get(field)):
            confidence[field] = "high"
        else:
            confidence[field] = "medium"
    return confidence


def apply_metadata_fallback(
    data: ExtractedEventData, metadata: PageMetadata
) -> ExtractedEventData:
    """Fill fields the model left empty from the page title, og:image and JSON-LD."""
    if not data.name and metadata.title:
        data.name = metadata.title
    if not data.image_url and metadata.og_image:
        data.image_url = metadata.og_image

    for field, value in structured_fields(metadata).items():
        if getattr(data, field) is None and value is not None:
            setattr(data, field, value)
    return data


def _load_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


def _candidate_items(parsed: Any) -> List[Dict[str, Any]]:
    if isinstance(parsed, list):
        return [item for item in parsed if isinstance(item, dict)]
    if isinstance(parsed, dict):
        if parsed.get("name") or parsed.get("title"):
            return [parsed]
        if isinstance(parsed.get("events"), list):
            return [item for item in parsed["events"] if isinstance(item, dict)]
    return []


class AiExtractor:
    def __init__(self, client: WorkersAiClient) -> None:
        self.client = client
        self.logger = logging.getLogger(self.__class__.__name__)

    async def _invoke(
        self, system_prompt: str, user_prompt: str, max_tokens: int
    ) -> str:
        try:
            return await self.client.run(
                [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                max_tokens=max_tokens,
                temperature=TEMPERATURE,
            )
        except ModelInvocationError as e:
            self.logger.warning(f"Model call failed, using page metadata only: {e}")
            return ""

    async def extract_event(
        self, content: str, metadata: PageMetadata
    ) -> Tuple[ExtractedEventData, Dict[str, str]]:
        """Extract a single event from page text."""
        truncated = truncate_content(content, SINGLE_EVENT_CONTENT_LIMIT)
        self.logger.info(f"Calling Workers AI, content length: {len(truncated)}")
        response = await self._invoke(
            SYSTEM_PROMPT,
            build_single_event_prompt(truncated, build_context(metadata)),
            SINGLE_EVENT_MAX_TOKENS,
        )
        self.logger.debug(f"Raw AI response: {response[:1500]}")

        extracted = self.parse_single_response(response, metadata)
        return extracted, compute_confidence(extracted, structured_fields(metadata))

    async def extract_events(
        self, content: str, metadata: PageMetadata
    ) -> Tuple[List[ExtractedEvent], Dict[str, Dict[str, str]]]:
        """Extract every event listed in page text."""
        truncated = truncate_content(content, MULTI_EVENT_CONTENT_LIMIT)
        self.logger.info(f"Calling Workers AI (multi), content length: {len(truncated)}")
        response = await self._invoke(
            MULTI_EVENT_SYSTEM_PROMPT,
            build_multi_event_prompt(truncated, build_context(metadata)),
            MULTI_EVENT_MAX_TOKENS,
        )
        self.logger.debug(f"Raw AI response: {response[:2000]}")

        events = self.parse_multi_response(response, metadata)
        structured = structured_fields(metadata)
        confidence = {
            event.extract_id: compute_confidence(event, structured) for event in events
        }
        self.logger.info(f"Extracted {len(events)} events")
        return events, confidence

    def parse_single_response(
        self, response: str, metadata: PageMetadata
    ) -> ExtractedEventData:
        parsed = None
        if response:
            match = _OBJECT_PATTERN.search(response)
            if match:
                parsed = _load_json(match.group())
        if isinstance(parsed, dict):
            data = sanitize_candidate(parsed)
        else:
            data = ExtractedEventData()
        return apply_metadata_fallback(data, metadata)

    def parse_multi_response(
        self, response: str, metadata: PageMetadata
    ) -> List[ExtractedEvent]:
        """
        Resolve a model response into candidates, trying in order: a JSON
        array, a single event object, an object with an ``events`` list, and
        finally a fallback event built from page metadata.
        """
        text = _CODE_FENCE.sub("", (response or "").strip())
        if not text:
            return self.fallback_events(metadata)

        attempts = [text]
        for pattern in (_ARRAY_PATTERN, _OBJECT_PATTERN):
            match = pattern.search(text)
            if match:
                attempts.append(match.group())

        for attempt in attempts:
            items = _candidate_items(_load_json(attempt))
            if items:
                return self._build_events(items, metadata)

        self.logger.warning("Could not parse model response, falling back to page metadata")
        return self.fallback_events(metadata)

    def _build_events(
        self, items: List[Dict[str, Any]], metadata: PageMetadata
    ) -> List[ExtractedEvent]:
        events = []
        for index, item in enumerate(items):
            data = sanitize_candidate(item)
            if index == 0 and not data.name and metadata.title:
                data.name = metadata.title
            if not data.image_url and metadata.og_image:
                data.image_url = metadata.og_image
            events.append(ExtractedEvent.from_data(data, extract_id=self._new_id(index)))
        return events

    def fallback_events(self, metadata: PageMetadata) -> List[ExtractedEvent]:
        """A single event from page metadata, or nothing if it has no name."""
        if not metadata.title and not metadata.json_ld:
            return []
        data = ExtractedEventData(name=metadata.title, image_url=metadata.og_image)
        if metadata.json_ld:
            structured = structured_fields(metadata)
            for field in ("name", "description", "start_date", "end_date",
                          "start_time", "end_time", "venue_name"):
                if structured.get(field) is not None:
                    setattr(data, field, structured[field])
        if not data.name:
            return []
        return [ExtractedEvent.from_data(data, extract_id=self._new_id(0, "fallback"))]

    def _new_id(self, index: int, prefix: str = "event") -> str:
        return f"{prefix}-{index}-{uuid.uuid4().hex[:12]}"

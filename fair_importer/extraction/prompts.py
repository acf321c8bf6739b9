import json

from ..models import PageMetadata

TRUNCATION_MARKER = "\n[Content truncated...]"

SYSTEM_PROMPT = (
    "You are an expert at extracting event information from webpage text. "
    "You always respond with valid JSON only, no explanations."
)

MULTI_EVENT_SYSTEM_PROMPT = (
    "You are an expert at extracting multiple event listings from webpage text. "
    "You find ALL events mentioned and return them as a JSON array. "
    "You always respond with valid JSON only, no explanations."
)

_EVENT_FIELDS = """  "name": "event title/name",
  "description": "event description (max {description_limit} chars)",
  "startDate": "YYYY-MM-DD format",
  "endDate": "YYYY-MM-DD format",
  "startTime": "HH:MM (24-hour) or null - opening time (e.g., 10am = 10:00, 6pm = 18:00)",
  "endTime": "HH:MM (24-hour) or null - closing time",
  "hoursVaryByDay": true/false - whether hours differ on different days,
  "hoursNotes": "notes about hours or per-day variations (e.g., 'Fri 5-9pm, Sat-Sun 10am-6pm')",
  "venueName": "venue or location name",
  "venueAddress": "street address",
  "venueCity": "city",
  "venueState": "2-letter state code (Maine=ME, Massachusetts=MA, New Hampshire=NH)",
  "ticketUrl": "URL for tickets",
  "ticketPriceMin": number or null,
  "ticketPriceMax": number or null,
  "imageUrl": "image URL\""""

SINGLE_EVENT_TEMPLATE = """Extract event details from this webpage content. Return ONLY a JSON object.

{context}
WEBPAGE CONTENT:
{content}

---
Find and extract these fields. Use null for any field not found:

{{
{fields}
}}

IMPORTANT PARSING RULES:
1. Page titles often look like "Event Name | Date Range | Venue" - parse the parts separately
2. Convert ALL dates to YYYY-MM-DD ("August 2-10, 2025" = startDate "2025-08-02", endDate "2025-08-10")
3. Convert ALL times to HH:MM 24-hour format (10am = 10:00, 6pm = 18:00)
4. Look for venue names like "Fairgrounds", "Convention Center", "Expo Hall"
5. Put only the event NAME in "name" (no dates or venue)
6. If hours vary by day (e.g., "Friday 5-9pm, Saturday 10am-6pm"), set hoursVaryByDay=true and describe them in hoursNotes

JSON response:"""

MULTI_EVENT_TEMPLATE = """Extract ALL events from this webpage. The page may contain one event or multiple events. Return a JSON array of events.

{context}
WEBPAGE CONTENT:
{content}

---
Return a JSON array where each event has these fields (use null for fields not found):

[
  {{
{fields}
  }}
]

IMPORTANT RULES:
1. Find ALL events on the page - there may be 1, 5, 10, or more
2. Each event listing is a separate object in the array
3. Convert ALL dates to YYYY-MM-DD format
4. Convert ALL times to HH:MM 24-hour format (10am = 10:00, 6pm = 18:00)
5. If the page lists different dates for different events, create separate entries
6. If only ONE event exists, still return an array with one element
7. If hours vary by day, set hoursVaryByDay=true and describe them in hoursNotes

JSON array response:"""


def truncate_content(content: str, limit: int) -> str:
    if len(content) > limit:
        return content[:limit] + TRUNCATION_MARKER
    return content


def build_context(metadata: PageMetadata) -> str:
    """Page title, description and structured data as extra model context."""
    lines = []
    if metadata.title:
        lines.append(f"Page title: {metadata.title}")
        if "|" in metadata.title:
            lines.append(
                '(Note: Title appears to have parts separated by "|" - parse each part)'
            )
    if metadata.description:
        lines.append(f"Page description: {metadata.description}")
    if metadata.json_ld:
        lines.append(
            f"Structured data (JSON-LD):\n{json.dumps(metadata.json_ld, indent=2)}\n"
        )
    return "\n".join(lines) + ("\n" if lines else "")


def build_single_event_prompt(content: str, context: str) -> str:
    return SINGLE_EVENT_TEMPLATE.format(
        context=context,
        content=content,
        fields=_EVENT_FIELDS.format(description_limit=500),
    )


def build_multi_event_prompt(content: str, context: str) -> str:
    fields = "\n".join(
        "  " + line for line in _EVENT_FIELDS.format(description_limit=300).splitlines()
    )
    return MULTI_EVENT_TEMPLATE.format(context=context, content=content, fields=fields)

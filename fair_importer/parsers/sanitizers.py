"""Field normalizers shared by the JSON-LD parser and the AI extractor.

Every function accepts an arbitrary value (model output is untrusted) and
returns either a normalized value or None. None, "", and the literal string
"null" are always treated as missing.
"""
import math
import re
from datetime import date, datetime
from typing import Any, Optional
from urllib.parse import urlsplit, urlunsplit

from dateutil import parser as dateutil_parser

MONTHS = {
    "january": 1, "jan": 1,
    "february": 2, "feb": 2,
    "march": 3, "mar": 3,
    "april": 4, "apr": 4,
    "may": 5,
    "june": 6, "jun": 6,
    "july": 7, "jul": 7,
    "august": 8, "aug": 8,
    "september": 9, "sep": 9, "sept": 9,
    "october": 10, "oct": 10,
    "november": 11, "nov": 11,
    "december": 12, "dec": 12,
}

US_STATES = {
    "ALABAMA": "AL",
    "ALASKA": "AK",
    "ARIZONA": "AZ",
    "ARKANSAS": "AR",
    "CALIFORNIA": "CA",
    "COLORADO": "CO",
    "CONNECTICUT": "CT",
    "DELAWARE": "DE",
    "DISTRICT OF COLUMBIA": "DC",
    "FLORIDA": "FL",
    "GEORGIA": "GA",
    "HAWAII": "HI",
    "IDAHO": "ID",
    "ILLINOIS": "IL",
    "INDIANA": "IN",
    "IOWA": "IA",
    "KANSAS": "KS",
    "KENTUCKY": "KY",
    "LOUISIANA": "LA",
    "MAINE": "ME",
    "MARYLAND": "MD",
    "MASSACHUSETTS": "MA",
    "MICHIGAN": "MI",
    "MINNESOTA": "MN",
    "MISSISSIPPI": "MS",
    "MISSOURI": "MO",
    "MONTANA": "MT",
    "NEBRASKA": "NE",
    "NEVADA": "NV",
    "NEW HAMPSHIRE": "NH",
    "NEW JERSEY": "NJ",
    "NEW MEXICO": "NM",
    "NEW YORK": "NY",
    "NORTH CAROLINA": "NC",
    "NORTH DAKOTA": "ND",
    "OHIO": "OH",
    "OKLAHOMA": "OK",
    "OREGON": "OR",
    "PENNSYLVANIA": "PA",
    "RHODE ISLAND": "RI",
    "SOUTH CAROLINA": "SC",
    "SOUTH DAKOTA": "SD",
    "TENNESSEE": "TN",
    "TEXAS": "TX",
    "UTAH": "UT",
    "VERMONT": "VT",
    "VIRGINIA": "VA",
    "WASHINGTON": "WA",
    "WEST VIRGINIA": "WV",
    "WISCONSIN": "WI",
    "WYOMING": "WY",
}

# Years accepted from the free-form dateutil fallback
MIN_FALLBACK_YEAR = 2020
MAX_FALLBACK_YEAR = 2100

_ISO_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}(T\d{2}:\d{2}(:\d{2})?)?")
_SLASH_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2,4})$")
_MONTH_DAY_YEAR = re.compile(r"^([a-z]+)\.?\s+(\d{1,2})(?:st|nd|rd|th)?,?\s*(\d{4})$", re.I)
_DAY_MONTH_YEAR = re.compile(r"^(\d{1,2})(?:st|nd|rd|th)?\s+([a-z]+)\.?,?\s*(\d{4})$", re.I)
_FOUR_DIGIT_YEAR = re.compile(r"\b\d{4}\b")

_TIME_24H = re.compile(r"^(\d{1,2}):(\d{2})$")
_TIME_12H = re.compile(r"^(\d{1,2})(?::(\d{2}))?\s*([ap])\.?m\.?$", re.I)
_EMBEDDED_ISO_TIME = re.compile(r"T(\d{2}):(\d{2})")
_ISO_DATETIME_TIME = re.compile(r"^\d{4}-\d{2}-\d{2}T(\d{2}):(\d{2})")

_NUMBER = re.compile(r"-?(?:\d+(?:\.\d+)?|\.\d+)")


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if text == "" or text.lower() == "null":
        return None
    return text


def sanitize_string(value: Any, max_length: Optional[int] = None) -> Optional[str]:
    """Trim a value to a string, truncating with an ellipsis past ``max_length``."""
    text = _clean(value)
    if text is None:
        return None
    if max_length and len(text) > max_length:
        text = text[: max_length - 3] + "..."
    return text


def _format_date(year: int, month: int, day: int) -> Optional[str]:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def sanitize_date(value: Any) -> Optional[str]:
    """Normalize a date to ``YYYY-MM-DD`` (or ``YYYY-MM-DDTHH:MM:SS``).

    ISO datetimes keep their wall-clock time so the calendar date a page
    advertises is never shifted by a timezone conversion.
    """
    text = _clean(value)
    if text is None or text.lower() == "tbd":
        return None

    if _ISO_DATE_PREFIX.match(text):
        try:
            parsed = dateutil_parser.isoparse(text)
        except (ValueError, OverflowError):
            parsed = None
        if parsed is not None:
            if "T" in text:
                return parsed.strftime("%Y-%m-%dT%H:%M:%S")
            return parsed.strftime("%Y-%m-%d")

    match = _SLASH_DATE.match(text)
    if match:
        month, day, year_text = match.groups()
        year = int(year_text)
        if len(year_text) == 2:
            year += 1900 if year >= 50 else 2000
        return _format_date(year, int(month), int(day))

    match = _MONTH_DAY_YEAR.match(text)
    if match and match.group(1).lower() in MONTHS:
        return _format_date(int(match.group(3)), MONTHS[match.group(1).lower()], int(match.group(2)))

    match = _DAY_MONTH_YEAR.match(text)
    if match and match.group(2).lower() in MONTHS:
        return _format_date(int(match.group(3)), MONTHS[match.group(2).lower()], int(match.group(1)))

    if not _FOUR_DIGIT_YEAR.search(text):
        return None
    try:
        parsed = dateutil_parser.parse(text)
    except (ValueError, OverflowError):
        return None
    if MIN_FALLBACK_YEAR <= parsed.year <= MAX_FALLBACK_YEAR:
        return parsed.strftime("%Y-%m-%d")
    return None


def _format_time(hours: int, minutes: int) -> Optional[str]:
    if 0 <= hours <= 23 and 0 <= minutes <= 59:
        return f"{hours:02d}:{minutes:02d}"
    return None


def sanitize_time(value: Any) -> Optional[str]:
    """Normalize a time to 24-hour ``HH:MM``."""
    text = _clean(value)
    if text is None or text.lower() == "tbd":
        return None

    match = _TIME_24H.match(text)
    if match:
        formatted = _format_time(int(match.group(1)), int(match.group(2)))
        if formatted:
            return formatted

    match = _TIME_12H.match(text)
    if match:
        hours = int(match.group(1))
        minutes = int(match.group(2) or 0)
        is_pm = match.group(3).lower() == "p"
        if 1 <= hours <= 12 and 0 <= minutes <= 59:
            if is_pm and hours != 12:
                hours += 12
            if not is_pm and hours == 12:
                hours = 0
            return _format_time(hours, minutes)

    match = _EMBEDDED_ISO_TIME.search(text)
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        # a bare midnight usually means "date only"
        if hours == 0 and minutes == 0:
            return None
        return _format_time(hours, minutes)

    return None


def extract_time_from_datetime(value: Any) -> Optional[str]:
    """Return the ``HH:MM`` part of an ISO datetime, or None at exactly midnight."""
    text = _clean(value)
    if text is None:
        return None
    match = _ISO_DATETIME_TIME.match(text)
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours == 0 and minutes == 0:
        return None
    return _format_time(hours, minutes)


def sanitize_state(value: Any) -> Optional[str]:
    """Map a US state to its two-letter code.

    Unknown names fall back to their first two letters uppercased, which is
    lossy ("Ontario" becomes "ON") but keeps the field populated for review.
    """
    text = _clean(value)
    if text is None:
        return None
    text = text.upper()
    if re.match(r"^[A-Z]{2}$", text):
        return text
    normalized = re.sub(r"\s+", " ", text.rstrip("."))
    if normalized in US_STATES:
        return US_STATES[normalized]
    if len(normalized) < 2:
        return None
    return normalized[:2]


def sanitize_url(value: Any) -> Optional[str]:
    """Accept absolute URLs only, returned in normalized form."""
    text = _clean(value)
    if text is None or re.search(r"\s", text):
        return None
    try:
        parts = urlsplit(text)
    except ValueError:
        return None
    if not parts.scheme or not parts.netloc:
        return None
    return urlunsplit(
        (
            parts.scheme.lower(),
            parts.netloc.lower(),
            parts.path or "/",
            parts.query,
            parts.fragment,
        )
    )


def sanitize_price(value: Any) -> Optional[float]:
    """Return a non-negative price. "free" counts as 0."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if not math.isfinite(value) or value < 0:
            return None
        return float(value)

    text = _clean(value)
    if text is None:
        return None
    if text.lower() == "free":
        return 0.0
    match = _NUMBER.search(text)
    if not match:
        return None
    number = float(match.group())
    return number if number >= 0 else None


def parse_iso_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 date or datetime. Anything else is rejected."""
    text = _clean(value)
    if text is None or not _ISO_DATE_PREFIX.match(text):
        return None
    try:
        return dateutil_parser.isoparse(text)
    except (ValueError, OverflowError):
        return None

"""Pairwise duplicate detection across catalog entities (venues, events, ...)."""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..parsers.sanitizers import parse_iso_datetime
from .similarity import combined_similarity

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.7
EXACT_MATCH_SIMILARITY = 0.99
MAX_ENTITIES = 500

Entity = Mapping[str, Any]


@dataclass
class DuplicatePair:
    entity1: Entity
    entity2: Entity
    similarity: float


def find_duplicate_pairs(
    entities: List[Entity],
    comparison_string: Callable[[Entity], str],
    threshold: float = DEFAULT_THRESHOLD,
    exact_match_key: Optional[Callable[[Entity], Optional[str]]] = None,
) -> List[DuplicatePair]:
    """
    Compare every pair of entities and keep those at or above ``threshold``.

    Two entities sharing the same non-empty exact-match key (e.g. a maps
    place id) score 0.99 whatever their text says.
    """
    pairs = []
    for i, first in enumerate(entities):
        for second in entities[i + 1:]:
            key1 = exact_match_key(first) if exact_match_key else None
            key2 = exact_match_key(second) if exact_match_key else None
            if key1 and key2 and key1 == key2:
                similarity = EXACT_MATCH_SIMILARITY
            else:
                similarity = combined_similarity(
                    comparison_string(first), comparison_string(second)
                )
            if similarity >= threshold:
                pairs.append(DuplicatePair(first, second, round(similarity, 2)))

    pairs.sort(key=lambda p: p.similarity, reverse=True)
    return pairs


def venue_comparison_string(venue: Entity) -> str:
    parts = [venue.get("name"), venue.get("city"), venue.get("state")]
    return " ".join(p for p in parts if p) or "unknown"


def event_comparison_string(event: Entity) -> str:
    parts = [event.get("name")]
    venue = event.get("venue")
    if isinstance(venue, Mapping):
        parts.append(venue.get("name"))
    # the year keeps annual editions of the same event apart
    start = parse_iso_datetime(event.get("startDate"))
    if start is not None:
        parts.append(str(start.year))
    return " ".join(p for p in parts if p) or "unknown"


def vendor_comparison_string(vendor: Entity) -> str:
    parts = [vendor.get("businessName"), vendor.get("vendorType")]
    return " ".join(p for p in parts if p) or "unknown"


def promoter_comparison_string(promoter: Entity) -> str:
    return promoter.get("companyName") or "unknown"


def _place_id(venue: Entity) -> Optional[str]:
    return venue.get("googlePlaceId")


COMPARISON_STRINGS: Dict[str, Callable[[Entity], str]] = {
    "venues": venue_comparison_string,
    "events": event_comparison_string,
    "vendors": vendor_comparison_string,
    "promoters": promoter_comparison_string,
}


def find_duplicates(
    entity_type: str, entities: List[Entity], threshold: float = DEFAULT_THRESHOLD
) -> List[DuplicatePair]:
    if entity_type not in COMPARISON_STRINGS:
        raise ValueError(
            f"Unknown entity type '{entity_type}'. "
            f"Must be one of: {sorted(COMPARISON_STRINGS)}"
        )
    if len(entities) > MAX_ENTITIES:
        logger.warning(
            f"Comparing only the first {MAX_ENTITIES} of {len(entities)} {entity_type}"
        )
        entities = entities[:MAX_ENTITIES]

    return find_duplicate_pairs(
        entities,
        COMPARISON_STRINGS[entity_type],
        threshold=threshold,
        exact_match_key=_place_id if entity_type == "venues" else None,
    )

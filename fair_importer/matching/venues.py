from dataclasses import dataclass
from typing import List, Optional

from ..models import VenueRef
from .similarity import levenshtein_similarity

MIN_SUGGESTION_SCORE = 0.4
CITY_MATCH_BONUS = 0.2
MAX_SUGGESTIONS = 5


@dataclass
class VenueSuggestion:
    venue: VenueRef
    score: float


def suggest_venues(
    name: Optional[str],
    city: Optional[str],
    venues: List[VenueRef],
    limit: int = MAX_SUGGESTIONS,
) -> List[VenueSuggestion]:
    """
    Rank known venues against an extracted venue name.

    A matching city (case-insensitive) adds a bonus, capped at 1.0. Only
    scores strictly above the floor are kept, best first.
    """
    if not name or not venues:
        return []

    wanted_city = (city or "").strip().lower()
    suggestions = []
    for venue in venues:
        score = levenshtein_similarity(name, venue.name)
        if wanted_city and (venue.city or "").strip().lower() == wanted_city:
            score = min(score + CITY_MATCH_BONUS, 1.0)
        if score > MIN_SUGGESTION_SCORE:
            suggestions.append(VenueSuggestion(venue=venue, score=score))

    suggestions.sort(key=lambda s: s.score, reverse=True)
    return suggestions[:limit]

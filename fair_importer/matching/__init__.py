from .duplicates import DuplicatePair, find_duplicate_pairs, find_duplicates
from .similarity import (
    combined_similarity,
    levenshtein_distance,
    levenshtein_similarity,
    normalize_string,
    token_jaccard_similarity,
)
from .venues import VenueSuggestion, suggest_venues

__all__ = [
    "DuplicatePair",
    "find_duplicate_pairs",
    "find_duplicates",
    "combined_similarity",
    "levenshtein_distance",
    "levenshtein_similarity",
    "normalize_string",
    "token_jaccard_similarity",
    "VenueSuggestion",
    "suggest_venues",
]

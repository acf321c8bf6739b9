"""String similarity measures used for venue suggestions and duplicate detection."""

import re
from typing import Optional, Set

from rapidfuzz.distance import Levenshtein

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_string(value: Optional[str]) -> str:
    """Lowercase, drop punctuation, collapse whitespace."""
    if not value:
        return ""
    text = _NON_ALPHANUMERIC.sub("", value.lower())
    return _WHITESPACE.sub(" ", text).strip()


def levenshtein_distance(a: str, b: str) -> int:
    """Number of single-character edits turning ``a`` into ``b``."""
    return Levenshtein.distance(a, b)


def levenshtein_similarity(a: Optional[str], b: Optional[str]) -> float:
    """1 - distance / longer length, over normalized strings. Identical is 1.0."""
    left = normalize_string(a)
    right = normalize_string(b)
    if left == right:
        return 1.0
    if not left or not right:
        return 0.0
    return Levenshtein.normalized_similarity(left, right)


def tokenize(value: Optional[str]) -> Set[str]:
    return {token for token in normalize_string(value).split(" ") if token}


def jaccard_similarity(a: Set[str], b: Set[str]) -> float:
    if not a and not b:
        return 1.0
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


def token_jaccard_similarity(a: Optional[str], b: Optional[str]) -> float:
    return jaccard_similarity(tokenize(a), tokenize(b))


def combined_similarity(
    a: Optional[str], b: Optional[str], levenshtein_weight: float = 0.6
) -> float:
    return levenshtein_similarity(a, b) * levenshtein_weight + token_jaccard_similarity(
        a, b
    ) * (1 - levenshtein_weight)

"""String similarity for suggesting raw-label aliases."""

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from rapidfuzz.distance import Levenshtein

DEFAULT_THRESHOLD = 0.7

# Candidates whose normalized form equals the target's rank just below an
# exact match.
VARIATION_SCORE = 0.99

_ABBREVIATIONS: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(r"\bexp\b\.?"), "expenses"),
    (re.compile(r"\bent\b\.?"), "entertainment"),
    (re.compile(r"\bsvcs\b\.?"), "services"),
    (re.compile(r"\bsvc\b\.?"), "service"),
    (re.compile(r"\bmgmt\b\.?"), "management"),
    (re.compile(r"\badmin\b\.?"), "administration"),
    (re.compile(r"\butil\b\.?"), "utilities"),
    (re.compile(r"\bmaint\b\.?"), "maintenance"),
    (re.compile(r"\binsur\b\.?"), "insurance"),
)


@dataclass(frozen=True)
class SimilarLabel:
    """A candidate label and its similarity to the target."""

    name: str
    similarity: float


def normalize_label(name: Optional[str]) -> str:
    """Normalize a ledger label for comparison.

    Lowercases, collapses whitespace, replaces "&" with "and", drops
    parenthetical notes such as "(Exp)" or "(2024)" and expands common
    abbreviations.
    """
    if not name:
        return ""

    normalized = re.sub(r"\s+", " ", name.lower().strip())
    normalized = normalized.replace("&", "and")
    normalized = re.sub(r"\s*\([^)]*\)\s*", " ", normalized)
    normalized = re.sub(r"\s+", " ", normalized).strip()

    for pattern, replacement in _ABBREVIATIONS:
        normalized = pattern.sub(replacement, normalized)
    return normalized


def score(a: Optional[str], b: Optional[str]) -> float:
    """Similarity between two labels in [0, 1].

    Normalized Levenshtein similarity over the lowercased, trimmed labels.
    Symmetric; 1.0 only when the normalized strings are identical.
    """
    left = (a or "").lower().strip()
    right = (b or "").lower().strip()
    if left == right:
        return 1.0
    if not left or not right:
        return 0.0
    return Levenshtein.normalized_similarity(left, right)


def find_similar(
    target: str,
    candidates: Iterable[str],
    threshold: float = DEFAULT_THRESHOLD,
) -> list[SimilarLabel]:
    """Rank candidates that look like variations of the target.

    Candidates equal to the target (case-insensitive) are skipped, since they
    are already the same label.

    Returns:
        Matches at or above the threshold, highest similarity first
    """
    if not target:
        return []

    target_key = target.lower().strip()
    normalized_target = normalize_label(target)
    results: list[SimilarLabel] = []

    for candidate in candidates:
        if not candidate or candidate.lower().strip() == target_key:
            continue

        normalized_candidate = normalize_label(candidate)
        if normalized_candidate == normalized_target:
            results.append(SimilarLabel(candidate, VARIATION_SCORE))
            continue

        similarity = score(normalized_target, normalized_candidate)
        if similarity >= threshold:
            results.append(SimilarLabel(candidate, similarity))

    return sorted(results, key=lambda s: (-s.similarity, s.name))


def are_equivalent(a: Optional[str], b: Optional[str]) -> bool:
    """Whether two labels normalize to the same text."""
    if not a or not b:
        return False
    return normalize_label(a) == normalize_label(b)

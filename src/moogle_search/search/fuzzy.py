"""Fuzzy query expansion for typo-tolerant search.

When a query returns too few results, alternate queries are generated from
vocabulary terms within a growing Damerau-Levenshtein distance of each query
term, tried most-discriminating first, and the best-scoring alternate is
offered as a suggestion.

Smart Defaults (overridable through ``Settings``):
- Expansion runs while fewer than 16 results were collected
- Edit distances 1 and 2 are explored, in that order
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
import itertools
import logging
from typing import TYPE_CHECKING

from moogle_search.domain.search import SearchItem
from moogle_search.search.query import substitute_terms
from moogle_search.search.ranking import rank


if TYPE_CHECKING:
    from moogle_search.config import Settings
    from moogle_search.search.models import EngineSnapshot, RankOutcome, StructuredQuery


logger = logging.getLogger(__name__)


def damerau_levenshtein_distance(s1: str, s2: str, max_distance: int | None = None) -> int:
    """Calculate the Damerau-Levenshtein distance between two strings.

    Uses the optimal string alignment table: insertions, deletions,
    substitutions and adjacent transpositions each cost 1, and no substring
    is edited twice.

    Args:
        s1: First string.
        s2: Second string.
        max_distance: If provided, return max_distance+1 early when
            distance is guaranteed to exceed this threshold.

    Returns:
        The edit distance between s1 and s2. If max_distance is set and
        exceeded, returns max_distance+1.

    Examples:
        >>> damerau_levenshtein_distance("ab", "ba")
        1
        >>> damerau_levenshtein_distance("kitten", "sitting")
        3
        >>> damerau_levenshtein_distance("", "abc")
        3
    """
    if not s1:
        return len(s2)
    if not s2:
        return len(s1)

    m, n = len(s1), len(s2)

    # Early check: if length difference exceeds max_distance, skip
    if max_distance is not None and abs(m - n) > max_distance:
        return max_distance + 1

    # Transpositions look two rows back
    before_prev_row: list[int] = []
    prev_row = list(range(n + 1))

    for i in range(1, m + 1):
        curr_row = [i] + [0] * n
        for j in range(1, n + 1):
            cost = 0 if s1[i - 1] == s2[j - 1] else 1
            curr_row[j] = min(
                prev_row[j] + 1,  # deletion
                curr_row[j - 1] + 1,  # insertion
                prev_row[j - 1] + cost,  # substitution
            )
            if i > 1 and j > 1 and s1[i - 1] == s2[j - 2] and s1[i - 2] == s2[j - 1]:
                curr_row[j] = min(curr_row[j], before_prev_row[j - 2] + 1)  # transposition

        if max_distance is not None and min(curr_row) > max_distance:
            return max_distance + 1

        before_prev_row, prev_row = prev_row, curr_row

    distance = prev_row[n]
    if max_distance is not None and distance > max_distance:
        return max_distance + 1
    return distance


def variants_within_distance(term: str, vocabulary: Iterable[str], distance: int) -> list[str]:
    """Vocabulary terms within ``distance`` edits of ``term``, in vocabulary order.

    At distance 0 this is ``[term]`` for a vocabulary member and empty otherwise.
    """
    return [
        candidate
        for candidate in vocabulary
        if abs(len(candidate) - len(term)) <= distance
        and damerau_levenshtein_distance(term, candidate, max_distance=distance) <= distance
    ]


def candidate_queries(snapshot: EngineSnapshot, query: StructuredQuery, depth: int) -> list[tuple[str, ...]]:
    """Alternate term sets for ``query`` at edit distance ``depth``.

    Candidates are the cross product of per-term variants, limited to sets of
    distinct terms, ordered by descending IDF sum. The original term set is
    never a candidate.
    """
    original = query.term_set
    variant_sets = [variants_within_distance(term, snapshot.vocabulary, depth) for term in original]
    candidates = [
        combination
        for combination in itertools.product(*variant_sets)
        if len(set(combination)) == len(combination) and combination != original
    ]
    # sorted() is stable, so IDF ties keep generation order
    return sorted(candidates, key=lambda combination: -sum(snapshot.idf_of(term) for term in combination))


@dataclass(frozen=True)
class FallbackOutcome:
    """Items gathered by the initial query and its alternates.

    ``attempts`` counts the alternate queries ranked.
    """

    items: tuple[SearchItem, ...]
    suggestion: str
    attempts: int


def expand_query(
    snapshot: EngineSnapshot,
    query: StructuredQuery,
    outcome: RankOutcome,
    settings: Settings,
) -> FallbackOutcome:
    """Collect results from alternate queries until enough were found.

    Args:
        snapshot: Index to search.
        query: The parsed original query.
        outcome: Result of ranking the original query (void if skipped).
        settings: Engine settings; ``min_results`` and ``max_fuzzy_depth``
            bound the expansion.

    Returns:
        All collected items, in collection order, plus the suggestion.
    """
    items: list[SearchItem] = list(outcome.items)
    collected = set(outcome.titles)
    original = query.term_set
    best_scores: dict[tuple[str, ...], float] = {}
    if outcome.max_score > 0:
        best_scores[original] = outcome.max_score

    attempts = 0
    for depth in settings.fuzzy_depths():
        if len(items) >= settings.min_results:
            break
        candidates = candidate_queries(snapshot, query, depth)
        logger.debug("Fuzzy depth %d for %r: %d candidates", depth, query.raw, len(candidates))
        for candidate in candidates:
            if len(items) >= settings.min_results:
                break
            alternate = substitute_terms(query, candidate, snapshot.term_ids)
            result = rank(snapshot, alternate, settings, exclude_titles=frozenset(collected))
            attempts += 1
            if result.max_score > 0:
                items.extend(result.items)
                collected.update(result.titles)
                best_scores[candidate] = max(best_scores.get(candidate, 0.0), result.max_score)

    suggestion = best_suggestion(list(best_scores.items()), original)

    logger.debug(
        "Fuzzy fallback for %r: %d attempts, %d items, suggestion=%r", query.raw, attempts, len(items), suggestion
    )
    return FallbackOutcome(items=tuple(items), suggestion=suggestion, attempts=attempts)


def best_suggestion(scores: Sequence[tuple[tuple[str, ...], float]], original: tuple[str, ...]) -> str:
    """Space-joined best term set, or empty when the original is best."""
    if not scores:
        return ""
    best, _ = max(scores, key=lambda entry: entry[1])
    return "" if best == original else " ".join(best)

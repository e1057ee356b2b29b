"""Ranking engine: cosine scoring, proximity boost and constraint filters."""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import TYPE_CHECKING

import numpy as np

from moogle_search.domain.search import SearchItem
from moogle_search.search.linalg import cosine_similarities
from moogle_search.search.models import RankOutcome
from moogle_search.search.phrase import get_min_span, proximity_multiplier
from moogle_search.search.snippet import build_snippet
from moogle_search.search.weighting import document_tfidf


if TYPE_CHECKING:
    from numpy.typing import NDArray

    from moogle_search.config import Settings
    from moogle_search.search.models import EngineSnapshot, StructuredQuery


logger = logging.getLogger(__name__)


def build_query_vector(snapshot: EngineSnapshot, ranking_terms: Mapping[str, int]) -> NDArray[np.float64]:
    """TF-IDF of the query, sized to the vocabulary, using the global IDF."""
    counts = np.zeros(snapshot.vocabulary_size, dtype=np.float64)
    for term, frequency in ranking_terms.items():
        term_id = snapshot.term_id(term)
        if term_id is not None:
            counts[term_id] += frequency
    return document_tfidf(counts, snapshot.idf)


def proximity_factor(snapshot: EngineSnapshot, doc_index: int, query: StructuredQuery, boost: float) -> float:
    spans = [
        get_min_span({term: snapshot.positions(doc_index, term) for term in group})
        for group in query.proximity_groups
    ]
    return proximity_multiplier(spans, boost)


def passes_constraints(snapshot: EngineSnapshot, doc_index: int, query: StructuredQuery) -> bool:
    """Apply mandatory and excluded term filters to one document."""
    for term in query.mandatory:
        if snapshot.idf_of(term) != 0 and snapshot.weight(doc_index, term) == 0:
            return False
    return all(snapshot.weight(doc_index, term) == 0 for term in query.excluded)


def rank(
    snapshot: EngineSnapshot,
    query: StructuredQuery,
    settings: Settings,
    exclude_titles: frozenset[str] = frozenset(),
) -> RankOutcome:
    """Score every document against ``query``.

    Documents whose title is in ``exclude_titles`` are not candidates. The
    returned ``max_score`` is taken over all candidates before the constraint
    filters; an attempt whose best score does not exceed
    ``settings.min_similarity`` is void.

    Args:
        snapshot: Index to search.
        query: Parsed query; ranking terms must belong to the vocabulary.
        settings: Engine settings.
        exclude_titles: Titles already collected by earlier attempts.

    Returns:
        Ranked items (descending score) with the best score seen.
    """
    if not query.ranking_terms or snapshot.document_count == 0:
        return RankOutcome.void()

    epsilon = settings.min_similarity
    query_vector = build_query_vector(snapshot, query.ranking_terms)
    scores = cosine_similarities(snapshot.weighted, query_vector, epsilon, row_norms=snapshot.document_norms)

    if exclude_titles:
        for doc_index, title in enumerate(snapshot.titles):
            if title in exclude_titles:
                scores[doc_index] = 0.0

    if query.proximity_groups:
        for doc_index in np.flatnonzero(scores > 0):
            scores[doc_index] *= proximity_factor(snapshot, int(doc_index), query, settings.proximity_boost)

    max_score = float(scores.max())
    if max_score <= epsilon:
        return RankOutcome.void()

    survivors = [
        int(doc_index)
        for doc_index in np.flatnonzero(scores > epsilon)
        if passes_constraints(snapshot, int(doc_index), query)
    ]
    survivors.sort(key=lambda doc_index: (-scores[doc_index], doc_index))

    items = tuple(
        SearchItem(
            title=snapshot.documents[doc_index].title,
            snippet=build_snippet(snapshot, doc_index, query_vector, settings),
            score=float(scores[doc_index]),
        )
        for doc_index in survivors
    )
    logger.debug("Ranked %r: %d candidates, %d results, max_score=%.4f", query.raw, len(scores), len(items), max_score)
    return RankOutcome(items=items, max_score=max_score, query_vector=query_vector)

"""Snippet extraction from a matched document's most relevant paragraphs.

Paragraphs are re-ranked against the query vector with the corpus IDF and
concatenated best-first into a bounded excerpt.

Smart Defaults (overridable through ``Settings``):
- 256 character budget, paragraphs stop once fewer than 64 remain
- A paragraph that does not fit is cut on a word boundary found in the
  last 16 characters of the remaining budget, followed by an ellipsis
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import numpy as np

from moogle_search.search.linalg import cosine_similarities
from moogle_search.search.weighting import corpus_tfidf


if TYPE_CHECKING:
    from numpy.typing import NDArray

    from moogle_search.config import Settings
    from moogle_search.search.models import EngineSnapshot


def truncate_at_word_boundary(text: str, limit: int, lookback: int) -> str:
    """Cut ``text`` to at most ``limit`` characters, preferring whitespace.

    The cut point is the last whitespace within the final ``lookback``
    characters before ``limit``. A hard cut is used when none is found.

    Args:
        text: The paragraph to cut.
        limit: Maximum characters to keep.
        lookback: How far back from ``limit`` to look for whitespace.

    Returns:
        The kept prefix with trailing whitespace removed.
    """
    if limit <= 0:
        return ""
    if len(text) <= limit:
        return text
    if text[limit].isspace():
        return text[:limit].rstrip()

    window_start = max(0, limit - lookback)
    for index in range(limit - 1, window_start - 1, -1):
        if text[index].isspace():
            return text[:index].rstrip()
    return text[:limit]


def assemble_snippet(paragraphs: Sequence[str], settings: Settings) -> str:
    """Concatenate ranked paragraphs within the snippet budget.

    A truncated paragraph is always the last fragment added.
    """
    separator = settings.snippet_separator
    remaining = settings.snippet_budget
    parts: list[str] = []

    for paragraph in paragraphs:
        if remaining < settings.snippet_min_paragraph:
            break
        joiner = separator if parts else ""
        needed = len(joiner) + len(paragraph)
        if needed <= remaining:
            parts.append(joiner + paragraph)
            remaining -= needed
            continue

        fragment = truncate_at_word_boundary(paragraph, remaining - len(joiner), settings.snippet_word_lookback)
        if fragment:
            parts.append(joiner + fragment + settings.snippet_ellipsis)
        break

    return "".join(parts)


def rank_paragraphs(
    snapshot: EngineSnapshot,
    paragraphs: Sequence[str],
    query_vector: NDArray[np.float64],
    epsilon: float = 0.0,
) -> list[int]:
    """Indices of ``paragraphs`` with non-zero similarity, best first."""
    counts = np.zeros((len(paragraphs), snapshot.vocabulary_size), dtype=np.float64)
    for row, paragraph in enumerate(paragraphs):
        for token in snapshot.reader.tokenize(paragraph):
            term_id = snapshot.term_id(token.text)
            if term_id is not None:
                counts[row, term_id] += 1

    similarities = cosine_similarities(corpus_tfidf(counts, snapshot.idf), query_vector, epsilon)
    matched = [index for index in range(len(paragraphs)) if similarities[index] > 0]
    return sorted(matched, key=lambda index: (-similarities[index], index))


def build_snippet(
    snapshot: EngineSnapshot,
    doc_index: int,
    query_vector: NDArray[np.float64] | None,
    settings: Settings,
) -> str:
    """Build the snippet of one matched document; empty if no paragraph matches."""
    if query_vector is None or snapshot.vocabulary_size == 0:
        return ""
    document = snapshot.documents[doc_index]
    paragraphs = snapshot.reader.paragraphs(document.content)
    if not paragraphs:
        return ""

    order = rank_paragraphs(snapshot, paragraphs, query_vector)
    return assemble_snippet([paragraphs[index] for index in order], settings)

"""TF-IDF weighting for the corpus and for ad hoc vectors.

Term frequency uses the augmented form ``0.5 + 0.5 * raw / max_raw`` for
non-zero counts. IDF is ``ln(N / df)`` and is 0 for terms no document
contains. The corpus IDF vector is computed once and reused for queries and
paragraphs; it is never recomputed per query.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from moogle_search.search.linalg import DimensionMismatchError, Matrix, Vector, as_array


if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray


def term_frequency(raw_counts: Vector | ArrayLike) -> NDArray[np.float64]:
    """Augmented term frequency of a single raw count vector."""
    counts = as_array(raw_counts)
    if counts.size == 0:
        return np.zeros(0, dtype=np.float64)
    max_count = counts.max()
    if max_count <= 0:
        return np.zeros_like(counts)
    return np.where(counts > 0, 0.5 + 0.5 * (counts / max_count), 0.0)


def term_frequency_matrix(raw_counts: Matrix | ArrayLike) -> NDArray[np.float64]:
    """Row-wise augmented term frequency; rows with no counts stay zero."""
    counts = raw_counts.values if isinstance(raw_counts, Matrix) else np.asarray(raw_counts)
    counts = counts.astype(np.float64, copy=False)
    if counts.size == 0:
        return np.zeros(counts.shape, dtype=np.float64)
    max_counts = counts.max(axis=1, keepdims=True)
    ratio = np.divide(counts, max_counts, out=np.zeros_like(counts), where=max_counts > 0)
    return np.where(counts > 0, 0.5 + 0.5 * ratio, 0.0)


def inverse_document_frequency(raw_counts: Matrix | ArrayLike) -> Vector:
    """IDF of every term (column) in a documents x terms count matrix."""
    counts = raw_counts.values if isinstance(raw_counts, Matrix) else np.asarray(raw_counts)
    if counts.ndim != 2:
        raise DimensionMismatchError(f"Expected a documents x terms matrix, got shape {counts.shape}")
    document_count = counts.shape[0]
    containing = np.count_nonzero(counts, axis=0).astype(np.float64)
    idf = np.zeros(counts.shape[1], dtype=np.float64)
    present = containing > 0
    idf[present] = np.log(document_count / containing[present])
    return Vector(idf)


def corpus_tfidf(raw_counts: Matrix | ArrayLike, idf: Vector | None = None) -> Matrix:
    """Weighted documents x terms matrix; computes the IDF when not supplied."""
    counts = raw_counts if isinstance(raw_counts, Matrix) else Matrix(raw_counts)
    weights = idf if idf is not None else inverse_document_frequency(counts)
    if len(weights) != counts.width:
        raise DimensionMismatchError(f"IDF length {len(weights)} does not match {counts.width} terms")
    return Matrix(term_frequency_matrix(counts) * weights.values)


def document_tfidf(raw_counts: Vector | ArrayLike, idf: Vector) -> NDArray[np.float64]:
    """TF-IDF of one ad hoc count vector (a query or a paragraph)."""
    counts = as_array(raw_counts)
    if counts.shape != idf.values.shape:
        raise DimensionMismatchError(f"Count vector length {counts.shape[0]} does not match IDF length {len(idf)}")
    return term_frequency(counts) * idf.values

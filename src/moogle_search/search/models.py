"""Search data models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

import numpy as np

from moogle_search.adapters.corpus_reader import AbstractCorpusReader, Document
from moogle_search.domain.search import SearchItem
from moogle_search.search.linalg import Matrix, Vector


if TYPE_CHECKING:
    from numpy.typing import NDArray


_EMPTY_MAPPING: Mapping = MappingProxyType({})


@dataclass(frozen=True, eq=False)
class EngineSnapshot:
    """Immutable result of indexing a corpus.

    Every query runs as a pure function of a snapshot, so any number of
    queries may share one snapshot without locking.
    """

    vocabulary: tuple[str, ...]
    documents: tuple[Document, ...]
    raw_frequencies: Matrix
    weighted: Matrix
    idf: Vector
    document_norms: NDArray[np.float64]
    term_positions: tuple[Mapping[int, tuple[int, ...]], ...]
    reader: AbstractCorpusReader
    term_ids: Mapping[str, int] = field(default_factory=lambda: _EMPTY_MAPPING)

    def __post_init__(self) -> None:
        if not self.term_ids and self.vocabulary:
            ids = {term: idx for idx, term in enumerate(self.vocabulary)}
            object.__setattr__(self, "term_ids", MappingProxyType(ids))

    @property
    def titles(self) -> tuple[str, ...]:
        return tuple(document.title for document in self.documents)

    @property
    def document_count(self) -> int:
        return len(self.documents)

    @property
    def vocabulary_size(self) -> int:
        return len(self.vocabulary)

    def term_id(self, term: str) -> int | None:
        return self.term_ids.get(term)

    def idf_of(self, term: str) -> float:
        """Global IDF of ``term``; 0 for terms outside the vocabulary."""
        term_id = self.term_id(term)
        return 0.0 if term_id is None else self.idf[term_id]

    def weight(self, doc_index: int, term: str) -> float:
        term_id = self.term_id(term)
        return 0.0 if term_id is None else self.weighted[doc_index, term_id]

    def positions(self, doc_index: int, term: str) -> tuple[int, ...]:
        term_id = self.term_id(term)
        if term_id is None:
            return ()
        return self.term_positions[doc_index].get(term_id, ())


@dataclass(frozen=True)
class StructuredQuery:
    """Parsed form of a raw query string.

    ``ranking_terms`` only holds vocabulary terms; ``original_terms`` also
    keeps out-of-vocabulary terms for fuzzy fallback. Both map a term to its
    contribution frequency and preserve query order.
    """

    ranking_terms: Mapping[str, int]
    mandatory: frozenset[str]
    excluded: frozenset[str]
    proximity_groups: tuple[tuple[str, ...], ...]
    original_terms: Mapping[str, int]
    raw: str = ""

    @classmethod
    def empty(cls, raw: str = "") -> StructuredQuery:
        return cls(_EMPTY_MAPPING, frozenset(), frozenset(), (), _EMPTY_MAPPING, raw)

    def is_empty(self) -> bool:
        return not self.original_terms

    @property
    def term_set(self) -> tuple[str, ...]:
        return tuple(self.original_terms)


@dataclass(frozen=True, eq=False)
class RankOutcome:
    """Items produced by one ranking attempt plus the best raw score seen.

    ``max_score`` is 0 when the attempt was void.
    """

    items: tuple[SearchItem, ...]
    max_score: float
    query_vector: NDArray[np.float64] | None = None

    @classmethod
    def void(cls) -> RankOutcome:
        return cls((), 0.0, None)

    @property
    def titles(self) -> frozenset[str]:
        return frozenset(item.title for item in self.items)

"""Corpus indexing into an immutable engine snapshot.

Indexing is a single sequential pass over the reader's documents: term ids
are assigned in first-seen order, so the vocabulary order depends only on
document enumeration order. The pass either completes and returns a
snapshot or raises ``IndexBuildError``; no partial index is ever exposed.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
import logging
import time
from types import MappingProxyType

import numpy as np

from moogle_search.adapters.corpus_reader import AbstractCorpusReader, Document
from moogle_search.observability.metrics import (
    INDEX_BUILD_LATENCY,
    INDEX_DOCUMENT_COUNT,
    INDEX_VOCABULARY_SIZE,
    track_latency,
)
from moogle_search.observability.tracing import create_span
from moogle_search.search.linalg import Matrix
from moogle_search.search.models import EngineSnapshot
from moogle_search.search.weighting import corpus_tfidf, inverse_document_frequency


logger = logging.getLogger(__name__)


class IndexBuildError(RuntimeError):
    """Raised when the corpus cannot be turned into an index."""


@dataclass
class _ScanState:
    """Mutable accumulator used only while scanning the corpus."""

    vocabulary: list[str] = field(default_factory=list)
    term_ids: dict[str, int] = field(default_factory=dict)
    counts: list[dict[int, int]] = field(default_factory=list)
    positions: list[dict[int, list[int]]] = field(default_factory=list)

    def add_document(self, reader: AbstractCorpusReader, document: Document) -> None:
        doc_counts: dict[int, int] = {}
        doc_positions: dict[int, list[int]] = {}
        for token in reader.tokenize(document.content):
            term_id = self.term_ids.get(token.text)
            if term_id is None:
                term_id = len(self.vocabulary)
                self.term_ids[token.text] = term_id
                self.vocabulary.append(token.text)
            doc_counts[term_id] = doc_counts.get(term_id, 0) + 1
            doc_positions.setdefault(term_id, []).append(token.position)
        self.counts.append(doc_counts)
        self.positions.append(doc_positions)

    def raw_matrix(self) -> Matrix:
        raw = np.zeros((len(self.counts), len(self.vocabulary)), dtype=np.int64)
        for doc_index, doc_counts in enumerate(self.counts):
            for term_id, count in doc_counts.items():
                raw[doc_index, term_id] = count
        return Matrix(raw, dtype=np.int64)


def _check_titles(documents: Sequence[Document]) -> None:
    seen: set[str] = set()
    for document in documents:
        if document.title in seen:
            raise IndexBuildError(f"Duplicate document title: {document.title!r}")
        seen.add(document.title)


def _read_corpus(reader: AbstractCorpusReader) -> tuple[tuple[Document, ...], _ScanState]:
    state = _ScanState()
    try:
        documents = tuple(reader.list_documents())
        _check_titles(documents)
        for document in documents:
            state.add_document(reader, document)
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("Corpus reader failed: %s", exc)
        raise IndexBuildError(f"Failed to read corpus: {exc}") from exc
    return documents, state


def build_index(reader: AbstractCorpusReader) -> EngineSnapshot:
    """Index every document of ``reader`` into an immutable snapshot.

    Raises:
        IndexBuildError: The reader failed or two documents share a title.
    """
    start = time.perf_counter()
    logger.info("Index build started (%s)", type(reader).__name__)

    with create_span("index.build", attributes={"reader": type(reader).__name__}) as span:
        with track_latency(INDEX_BUILD_LATENCY):
            documents, state = _read_corpus(reader)

            raw = state.raw_matrix()
            idf = inverse_document_frequency(raw)
            weighted = corpus_tfidf(raw, idf)
            norms = np.sqrt(np.einsum("ij,ij->i", weighted.values, weighted.values))
            norms.setflags(write=False)

            positions = tuple(
                MappingProxyType({term_id: tuple(sorted(found)) for term_id, found in doc_positions.items()})
                for doc_positions in state.positions
            )
            snapshot = EngineSnapshot(
                vocabulary=tuple(state.vocabulary),
                documents=documents,
                raw_frequencies=raw,
                weighted=weighted,
                idf=idf,
                document_norms=norms,
                term_positions=positions,
                reader=reader,
                term_ids=MappingProxyType(dict(state.term_ids)),
            )

        span.set_attribute("index.documents", snapshot.document_count)
        span.set_attribute("index.terms", snapshot.vocabulary_size)

    INDEX_DOCUMENT_COUNT.labels().set(snapshot.document_count)
    INDEX_VOCABULARY_SIZE.labels().set(snapshot.vocabulary_size)
    logger.info(
        "Index built: %d documents, %d terms in %.3fs",
        snapshot.document_count,
        snapshot.vocabulary_size,
        time.perf_counter() - start,
    )
    return snapshot


async def build_index_async(reader: AbstractCorpusReader) -> EngineSnapshot:
    """Run ``build_index`` in a worker thread so the event loop stays responsive."""
    return await asyncio.to_thread(build_index, reader)

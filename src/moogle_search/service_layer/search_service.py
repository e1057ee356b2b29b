"""Search service orchestration layer.

Combines query parsing, ranking and fuzzy fallback into one entry point.
Every query is a pure function of an immutable snapshot and its inputs, so
one ``SearchService`` can serve any number of concurrent callers.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from moogle_search.adapters.corpus_reader import AbstractCorpusReader, DirectoryCorpusReader
from moogle_search.config import Settings
from moogle_search.domain.search import SearchItem, SearchResult
from moogle_search.observability.context import bind_query
from moogle_search.observability.metrics import FUZZY_FALLBACKS, SEARCH_LATENCY, SEARCH_RESULTS, track_latency
from moogle_search.observability.tracing import create_span
from moogle_search.search.fuzzy import FallbackOutcome, expand_query
from moogle_search.search.indexer import build_index, build_index_async
from moogle_search.search.models import EngineSnapshot, RankOutcome, StructuredQuery
from moogle_search.search.query import parse_query
from moogle_search.search.ranking import rank


logger = logging.getLogger(__name__)


def _fallback_label(outcome: RankOutcome, fallback: FallbackOutcome) -> str:
    if fallback.suggestion:
        return "suggested"
    if len(fallback.items) > len(outcome.items):
        return "expanded"
    return "exhausted"


def _run_fallback(
    snapshot: EngineSnapshot,
    query: StructuredQuery,
    outcome: RankOutcome,
    settings: Settings,
) -> FallbackOutcome:
    with create_span("search.fallback", attributes={"fuzzy.max_depth": settings.max_fuzzy_depth}) as span:
        fallback = expand_query(snapshot, query, outcome, settings)
        span.set_attribute("fuzzy.attempts", fallback.attempts)
    FUZZY_FALLBACKS.labels(outcome=_fallback_label(outcome, fallback)).inc()
    if fallback.suggestion:
        logger.debug("Suggesting %r for %r", fallback.suggestion, query.raw)
    return fallback


def search(snapshot: EngineSnapshot, raw_query: str, settings: Settings | None = None) -> SearchResult:
    """Answer ``raw_query`` against ``snapshot``.

    Args:
        snapshot: Index built by ``build_index``.
        raw_query: Query text with optional ``* ! ^ ~`` operators.
        settings: Engine settings; defaults are used when omitted.

    Returns:
        Items ordered by descending score plus a suggestion, which is empty
        when no alternate query beat the original.
    """
    settings = settings or Settings()

    with bind_query(raw_query), track_latency(SEARCH_LATENCY):
        with create_span("search.query", attributes={"query.length": len(raw_query)}) as span:
            query = parse_query(raw_query, snapshot.term_ids)
            if query.is_empty():
                logger.debug("Query %r has no usable terms", raw_query)
                SEARCH_RESULTS.labels().observe(0)
                return SearchResult.empty()

            # Queries made only of unknown terms go straight to the fallback
            outcome = rank(snapshot, query, settings) if query.ranking_terms else RankOutcome.void()

            items: tuple[SearchItem, ...] = outcome.items
            suggestion = ""
            if len(items) < settings.min_results and settings.max_fuzzy_depth > 0:
                fallback = _run_fallback(snapshot, query, outcome, settings)
                items = fallback.items
                suggestion = fallback.suggestion

            ordered = tuple(sorted(items, key=lambda item: -item.score))
            span.set_attribute("search.results", len(ordered))

    SEARCH_RESULTS.labels().observe(len(ordered))
    logger.debug("Search %r returned %d results", raw_query, len(ordered))
    return SearchResult(items=ordered, suggestion=suggestion)


class SearchService:
    """High-level search orchestration service.

    Holds one immutable snapshot and the settings used for every query.
    """

    def __init__(self, snapshot: EngineSnapshot, settings: Settings | None = None):
        self.snapshot = snapshot
        self.settings = settings or Settings()

    @classmethod
    def from_reader(cls, reader: AbstractCorpusReader, settings: Settings | None = None) -> SearchService:
        """Index ``reader`` and wrap the resulting snapshot."""
        return cls(build_index(reader), settings)

    @classmethod
    async def from_reader_async(cls, reader: AbstractCorpusReader, settings: Settings | None = None) -> SearchService:
        """Index ``reader`` off the event loop and wrap the resulting snapshot."""
        return cls(await build_index_async(reader), settings)

    @classmethod
    def from_directory(
        cls,
        root: Path | str | None = None,
        settings: Settings | None = None,
    ) -> SearchService:
        """Index the text files of ``root`` (or ``settings.content_dir``).

        Raises:
            ValueError: Neither ``root`` nor ``settings.content_dir`` is set.
        """
        settings = settings or Settings()
        directory = root if root is not None else settings.content_dir
        if directory is None:
            raise ValueError("No corpus directory given; pass root or set MOOGLE_CONTENT_DIR")
        reader = DirectoryCorpusReader(directory, pattern=settings.file_pattern)
        return cls.from_reader(reader, settings)

    def search(self, raw_query: str) -> SearchResult:
        return search(self.snapshot, raw_query, self.settings)

    async def search_async(self, raw_query: str) -> SearchResult:
        """Run ``search`` in a worker thread."""
        return await asyncio.to_thread(self.search, raw_query)

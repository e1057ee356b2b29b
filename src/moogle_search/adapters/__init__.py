"""Adapters layer - corpus reader implementations.

Abstracts where documents come from; the engine only sees the reader contract.
"""

from .corpus_reader import (
    AbstractCorpusReader,
    DirectoryCorpusReader,
    Document,
    InMemoryCorpusReader,
)


__all__ = [
    "AbstractCorpusReader",
    "DirectoryCorpusReader",
    "Document",
    "InMemoryCorpusReader",
]

"""
Search indexing and query engine package.

This package provides a vector-space search stack:
- analyzers: Tokenizer configurations (word, query, paragraph)
- linalg: Vector/Matrix primitives and cosine similarity
- weighting: Augmented TF and IDF weighting
- indexer: Corpus indexing into an immutable snapshot
- query: Query operator parser
- ranking: Cosine ranking with constraint filters
- phrase: Proximity spans and boosts
- fuzzy: Edit-distance query expansion
- snippet: Paragraph-ranked snippet extraction
"""

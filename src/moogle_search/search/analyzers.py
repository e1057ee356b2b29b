"""Character-level tokenizers for corpus words, queries and paragraphs.

A tokenizer is driven by a ``TokenizerConfig`` value instead of ad hoc
callbacks. The same configuration machinery scans words, query tokens and
raw paragraphs, so corpus terms and query terms are normalized identically.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
import unicodedata


QUERY_OPERATORS = frozenset("*!^~")


@dataclass(frozen=True)
class Token:
    """A normalized word emitted by a tokenizer."""

    text: str
    position: int


@dataclass(frozen=True)
class TokenizerConfig:
    """How to split a character stream into tokens.

    ``normalize`` is applied to every character first; the normalized
    character is then tested against ``separator`` and ``keep``.
    """

    separator: Callable[[str], bool]
    keep: Callable[[str], bool]
    normalize: Callable[[str], str]


def fold_char(char: str) -> str:
    """Lowercase a character and strip its diacritics."""
    decomposed = unicodedata.normalize("NFD", char.lower())
    return decomposed[0] if decomposed else char


def fold_text(text: str) -> str:
    return "".join(fold_char(char) for char in text)


def _identity(char: str) -> str:
    return char


def _is_word_char(char: str) -> bool:
    return char.isalnum()


def _is_query_char(char: str) -> bool:
    return char.isalnum() or char in QUERY_OPERATORS


def _is_newline(char: str) -> bool:
    return char == "\n"


def _keep_all(char: str) -> bool:
    return True


WORD_CONFIG = TokenizerConfig(separator=str.isspace, keep=_is_word_char, normalize=fold_char)
QUERY_CONFIG = TokenizerConfig(separator=str.isspace, keep=_is_query_char, normalize=fold_char)
PARAGRAPH_CONFIG = TokenizerConfig(separator=_is_newline, keep=_keep_all, normalize=_identity)


class CharTokenizer:
    """Tokenizer that scans text one character at a time."""

    def __init__(self, config: TokenizerConfig) -> None:
        self.config = config

    def __call__(self, text: str) -> Iterator[Token]:
        config = self.config
        position = 0
        buffer: list[str] = []
        for raw_char in text:
            char = config.normalize(raw_char)
            if config.separator(char):
                word = "".join(buffer).strip()
                buffer.clear()
                if word:
                    yield Token(text=word, position=position)
                    position += 1
            elif config.keep(char):
                buffer.append(char)
        word = "".join(buffer).strip()
        if word:
            yield Token(text=word, position=position)


def token_texts(tokens: Iterable[Token]) -> list[str]:
    return [token.text for token in tokens]


_TOKENIZER_FACTORIES: dict[str, Callable[[], CharTokenizer]] = {
    "word": lambda: CharTokenizer(WORD_CONFIG),
    "query": lambda: CharTokenizer(QUERY_CONFIG),
    "paragraph": lambda: CharTokenizer(PARAGRAPH_CONFIG),
}


def get_tokenizer(name: str | None) -> CharTokenizer:
    """Return a tokenizer by name, defaulting to the word tokenizer."""

    if name is None:
        return _TOKENIZER_FACTORIES["word"]()
    normalized = name.lower()
    if normalized not in _TOKENIZER_FACTORIES:
        msg = f"Unknown tokenizer '{name}'. Available: {sorted(_TOKENIZER_FACTORIES)}"
        raise ValueError(msg)
    return _TOKENIZER_FACTORIES[normalized]()

"""Corpus readers that feed documents into the indexer."""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
import logging
from pathlib import Path

from moogle_search.search.analyzers import Token, get_tokenizer


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Document:
    """A corpus document; the title is its stable identifier."""

    title: str
    content: str


class AbstractCorpusReader(ABC):
    """Abstract source of documents, words and paragraphs.

    Subclasses only decide where documents come from. Tokenization and
    paragraph segmentation are shared so every reader normalizes text the
    same way.
    """

    def __init__(self) -> None:
        self._word_tokenizer = get_tokenizer("word")
        self._paragraph_tokenizer = get_tokenizer("paragraph")

    @abstractmethod
    def list_documents(self) -> Sequence[Document]:
        """Return every document in enumeration order."""
        raise NotImplementedError

    def tokenize(self, content: str) -> list[Token]:
        """Normalized words of ``content`` with their word positions."""
        return list(self._word_tokenizer(content))

    def paragraphs(self, content: str) -> list[str]:
        """Raw newline-delimited paragraphs that contain alphanumeric text."""
        return [
            token.text
            for token in self._paragraph_tokenizer(content)
            if any(char.isalnum() for char in token.text)
        ]


class InMemoryCorpusReader(AbstractCorpusReader):
    """Reader over documents already held in memory."""

    def __init__(self, documents: Mapping[str, str] | Iterable[Document | tuple[str, str]]) -> None:
        super().__init__()
        if isinstance(documents, Mapping):
            items: Iterable[Document | tuple[str, str]] = documents.items()
        else:
            items = documents
        self._documents = tuple(
            item if isinstance(item, Document) else Document(title=item[0], content=item[1]) for item in items
        )

    def list_documents(self) -> Sequence[Document]:
        return self._documents


class DirectoryCorpusReader(AbstractCorpusReader):
    """Reader over the text files of one directory.

    Files are enumerated in name order and titled by their stem.
    """

    def __init__(self, root: Path | str, pattern: str = "*.txt", encoding: str = "utf-8") -> None:
        super().__init__()
        self.root = Path(root)
        self.pattern = pattern
        self.encoding = encoding

    def list_documents(self) -> Sequence[Document]:
        if not self.root.is_dir():
            raise FileNotFoundError(f"Corpus directory not found: {self.root}")

        documents: list[Document] = []
        for path in sorted(self.root.glob(self.pattern)):
            if not path.is_file():
                continue
            logger.debug("Reading %s", path)
            documents.append(Document(title=path.stem, content=path.read_text(encoding=self.encoding)))
        return documents

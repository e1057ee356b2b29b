"""Domain models for search results.

Value objects are immutable (frozen=True) and carry no engine internals, so
hosts can serialize them directly.
"""

from pydantic import BaseModel, ConfigDict, Field


class SearchItem(BaseModel):
    """A single ranked document."""

    model_config = ConfigDict(frozen=True)

    title: str
    snippet: str = ""
    score: float = Field(ge=0.0)


class SearchResult(BaseModel):
    """Ordered items (descending score) plus an alternate-query suggestion.

    ``suggestion`` is empty when no better alternate query was found.
    """

    model_config = ConfigDict(frozen=True)

    items: tuple[SearchItem, ...] = ()
    suggestion: str = ""

    @property
    def count(self) -> int:
        return len(self.items)

    @property
    def titles(self) -> list[str]:
        return [item.title for item in self.items]

    @classmethod
    def empty(cls) -> "SearchResult":
        return cls()

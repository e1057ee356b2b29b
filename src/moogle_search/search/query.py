"""Query parser.

Query syntax is a whitespace-delimited list of terms with prefix operators:

- ``*term`` boosts the term's contribution frequency by one per star.
- ``!term`` excludes documents that contain the term.
- ``^term`` requires the term in every returned document.
- ``a ~ b`` (standalone tilde, or ``a ~b``) links neighbouring terms into a
  proximity group; ``a ~ b ~ c`` extends the same group.

Parsing is a single forward pass over tagged tokens, building an immutable
``StructuredQuery``; the token list is never edited in place.
"""

from __future__ import annotations

from collections.abc import Container, Sequence
from dataclasses import dataclass
from enum import Enum
import logging
from types import MappingProxyType

from moogle_search.search.analyzers import QUERY_OPERATORS, get_tokenizer
from moogle_search.search.models import StructuredQuery


logger = logging.getLogger(__name__)

PROXIMITY_OPERATOR = "~"


class TokenKind(str, Enum):
    PLAIN = "plain"
    MANDATORY = "mandatory"
    EXCLUDED = "excluded"
    PROXIMITY_LINK = "proximity_link"


@dataclass(frozen=True)
class ClassifiedToken:
    """A query token tagged with its role.

    ``term`` is the operator-free term (empty for proximity links) and
    ``boost`` counts its ``*`` prefixes.
    """

    kind: TokenKind
    term: str = ""
    boost: int = 0

    @property
    def is_term(self) -> bool:
        return self.kind is not TokenKind.PROXIMITY_LINK

    @property
    def frequency(self) -> int:
        return 1 + self.boost


def _classify(text: str) -> list[ClassifiedToken]:
    if set(text) == {PROXIMITY_OPERATOR}:
        return [ClassifiedToken(TokenKind.PROXIMITY_LINK)]

    prefix_length = 0
    while prefix_length < len(text) and text[prefix_length] in QUERY_OPERATORS:
        prefix_length += 1
    prefix = text[:prefix_length]
    term = "".join(char for char in text if char not in QUERY_OPERATORS)
    if not term:
        return []

    if "!" in prefix:
        kind = TokenKind.EXCLUDED
    elif "^" in prefix:
        kind = TokenKind.MANDATORY
    else:
        kind = TokenKind.PLAIN
    classified = [ClassifiedToken(kind, term, prefix.count("*"))]
    # "a ~b" links like "a ~ b"
    if PROXIMITY_OPERATOR in prefix:
        classified.insert(0, ClassifiedToken(TokenKind.PROXIMITY_LINK))
    return classified


def classify_tokens(raw: str) -> tuple[ClassifiedToken, ...]:
    """Tokenize ``raw`` with query normalization and tag every token.

    Tokens that are left empty once their operators are stripped are dropped.
    """
    tokenizer = get_tokenizer("query")
    return tuple(classified for token in tokenizer(raw) for classified in _classify(token.text))


def _proximity_groups(tokens: Sequence[ClassifiedToken]) -> list[list[str]]:
    """Collect linked term runs; dangling or doubled links are no-ops."""
    groups: list[list[str]] = []
    previous_term_index: int | None = None
    group_tail_index: int | None = None
    pending_link = False

    for index, token in enumerate(tokens):
        if token.kind is TokenKind.PROXIMITY_LINK:
            previous = tokens[index - 1] if index > 0 else None
            if previous is not None and previous.is_term:
                pending_link = True
            continue

        if pending_link and previous_term_index is not None:
            if group_tail_index == previous_term_index:
                groups[-1].append(token.term)
            else:
                groups.append([tokens[previous_term_index].term, token.term])
            group_tail_index = index
        pending_link = False
        previous_term_index = index

    return groups


def parse_query(raw: str, vocabulary: Container[str]) -> StructuredQuery:
    """Parse ``raw`` into a ``StructuredQuery`` against ``vocabulary``.

    Out-of-vocabulary terms are kept only in ``original_terms`` so the fuzzy
    fallback can look for close variants. Excluded terms take precedence over
    plain occurrences of the same term.
    """
    tokens = classify_tokens(raw)

    excluded_terms = {token.term for token in tokens if token.kind is TokenKind.EXCLUDED}
    excluded = frozenset(term for term in excluded_terms if term in vocabulary)

    original: dict[str, int] = {}
    ranking: dict[str, int] = {}
    mandatory: set[str] = set()
    for token in tokens:
        if not token.is_term or token.term in excluded_terms:
            continue
        original[token.term] = original.get(token.term, 0) + token.frequency
        if token.term in vocabulary:
            ranking[token.term] = ranking.get(token.term, 0) + token.frequency
        if token.kind is TokenKind.MANDATORY:
            mandatory.add(token.term)

    groups: list[tuple[str, ...]] = []
    for group in _proximity_groups(tokens):
        members = tuple(dict.fromkeys(term for term in group if term not in excluded_terms))
        if len(members) >= 2 and members not in groups:
            groups.append(members)

    query = StructuredQuery(
        ranking_terms=MappingProxyType(ranking),
        mandatory=frozenset(mandatory),
        excluded=excluded,
        proximity_groups=tuple(groups),
        original_terms=MappingProxyType(original),
        raw=raw,
    )
    logger.debug(
        "Parsed query %r: ranking=%s mandatory=%s excluded=%s groups=%s oov=%s",
        raw,
        list(ranking),
        sorted(mandatory),
        sorted(excluded),
        groups,
        [term for term in original if term not in ranking],
    )
    return query


def substitute_terms(
    query: StructuredQuery,
    replacements: Sequence[str],
    vocabulary: Container[str],
) -> StructuredQuery:
    """Rewrite ``query`` with its original terms replaced positionally.

    ``replacements[i]`` takes the place of the i-th original term and inherits
    its frequency, mandatory flag and proximity-group membership. The excluded
    set is carried over unchanged.
    """
    originals = list(query.original_terms)
    if len(replacements) != len(originals):
        raise ValueError(f"Expected {len(originals)} replacement terms, got {len(replacements)}")
    mapping = dict(zip(originals, replacements, strict=True))

    original: dict[str, int] = {}
    ranking: dict[str, int] = {}
    for source, target in mapping.items():
        frequency = query.original_terms[source]
        original[target] = original.get(target, 0) + frequency
        if target in vocabulary:
            ranking[target] = ranking.get(target, 0) + frequency

    groups: list[tuple[str, ...]] = []
    for group in query.proximity_groups:
        members = tuple(dict.fromkeys(mapping.get(term, term) for term in group))
        if len(members) >= 2 and members not in groups:
            groups.append(members)

    return StructuredQuery(
        ranking_terms=MappingProxyType(ranking),
        mandatory=frozenset(mapping.get(term, term) for term in query.mandatory),
        excluded=query.excluded,
        proximity_groups=tuple(groups),
        original_terms=MappingProxyType(original),
        raw=" ".join(replacements),
    )

"""Command-line search over a directory of plain-text documents.

Builds the index once, then answers the query given on the command line or,
when none is given, one query per line of standard input.
"""

# ruff: noqa: T201  # CLI intentionally prints results

from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path
import sys
import textwrap

from pydantic import ValidationError

from moogle_search.config import Settings
from moogle_search.domain.search import SearchResult
from moogle_search.observability.logging import configure_logging
from moogle_search.observability.metrics import get_metrics, init_metrics
from moogle_search.observability.tracing import init_tracing
from moogle_search.search.indexer import IndexBuildError
from moogle_search.service_layer.search_service import SearchService


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="moogle-search",
        description="Search a directory of plain-text documents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent(
            """
            Query operators:
              *term     boost a term (repeatable)
              !term     exclude documents containing the term
              ^term     require the term
              a ~ b     reward documents where a and b occur close together

            Examples:
              moogle-search --content-dir ./Content "^cat ~ sat"
              printf 'cat\\ndog\\n' | moogle-search --content-dir ./Content --json
            """
        ).strip(),
    )
    parser.add_argument("query", nargs="*", help="Query words (default: read one query per stdin line)")
    parser.add_argument(
        "--content-dir",
        type=Path,
        default=None,
        help="Corpus directory (default: MOOGLE_CONTENT_DIR)",
    )
    parser.add_argument("--pattern", default=None, help="Glob selecting corpus files (default: *.txt)")
    parser.add_argument(
        "--min-results",
        type=int,
        default=None,
        help="Run fuzzy fallback while fewer results than this were found (default: 16)",
    )
    parser.add_argument("--limit", type=int, default=10, help="Maximum results printed per query (default: 10)")
    parser.add_argument("--json", action="store_true", help="Print each result set as JSON")
    parser.add_argument(
        "--metrics-file",
        type=Path,
        default=None,
        help="Write Prometheus metrics to this file after the last query",
    )
    parser.add_argument(
        "--log-level",
        default="warning",
        help="Logging level for diagnostics (default: warning)",
    )
    return parser


def _build_settings(args: argparse.Namespace) -> Settings:
    overrides: dict[str, object] = {}
    if args.content_dir is not None:
        overrides["content_dir"] = args.content_dir
    if args.pattern is not None:
        overrides["file_pattern"] = args.pattern
    if args.min_results is not None:
        overrides["min_results"] = args.min_results
    return Settings(**overrides)


def _print_result(query: str, result: SearchResult, limit: int) -> None:
    print(f"=== {query} ===")
    if not result.items:
        print("No results.")
    for rank, item in enumerate(result.items[:limit], start=1):
        print(f"{rank:>3}. {item.title}  ({item.score:.4f})")
        if item.snippet:
            print(textwrap.indent(item.snippet, "     "))
    remaining = result.count - limit
    if remaining > 0:
        print(f"     ... {remaining} more result(s)")
    if result.suggestion:
        print(f"Did you mean: {result.suggestion}")
    print()


def _queries(args: argparse.Namespace) -> list[str]:
    if args.query:
        return [" ".join(args.query)]
    return [line.strip() for line in sys.stdin if line.strip()]


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)

    try:
        settings = _build_settings(args)
    except ValidationError as exc:
        print(f"Invalid settings: {exc}", file=sys.stderr)
        return 1

    configure_logging(args.log_level, json_output=settings.log_json)
    init_metrics(service_name="moogle-search")
    init_tracing(service_name="moogle-search")

    try:
        service = SearchService.from_directory(settings=settings)
    except (ValueError, FileNotFoundError, IndexBuildError) as exc:
        print(f"Cannot build index: {exc}", file=sys.stderr)
        return 1

    for query in _queries(args):
        result = service.search(query)
        if args.json:
            limited = result.model_copy(update={"items": result.items[: args.limit]})
            print(limited.model_dump_json())
        else:
            _print_result(query, result, args.limit)

    if args.metrics_file is not None:
        args.metrics_file.write_bytes(get_metrics())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

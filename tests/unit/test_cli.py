"""Unit tests for the moogle-search command line."""

import io
import logging

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
import orjson
import pytest

from moogle_search import cli
from moogle_search.observability import tracing as tracing_module


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.unit
class TestMain:
    def test_prints_ranked_results_with_suggestion(self, content_dir, capsys):
        exit_code = cli.main(["--content-dir", str(content_dir), "--min-results", "1", "xat"])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "=== xat ===" in out
        assert "  1. doc1  (0.7071)" in out
        assert "     the cat sat" in out
        assert "Did you mean: cat" in out

    def test_joins_query_words(self, content_dir, capsys):
        cli.main(["--content-dir", str(content_dir), "--min-results", "1", "^cat", "~", "sat"])
        assert "=== ^cat ~ sat ===" in capsys.readouterr().out

    def test_no_results(self, content_dir, capsys):
        cli.main(["--content-dir", str(content_dir), "zebra"])
        assert "No results." in capsys.readouterr().out

    def test_limit_reports_remaining_results(self, content_dir, capsys):
        cli.main(["--content-dir", str(content_dir), "--limit", "1", "cat"])

        out = capsys.readouterr().out
        assert "  1. doc1" in out
        assert "doc2" not in out
        assert "... 1 more result(s)" in out

    def test_json_output(self, content_dir, capsys):
        cli.main(["--content-dir", str(content_dir), "--min-results", "1", "--json", "xat"])

        payload = orjson.loads(capsys.readouterr().out.splitlines()[0])
        assert payload["suggestion"] == "cat"
        assert [item["title"] for item in payload["items"]] == ["doc1"]

    def test_reads_queries_from_stdin(self, content_dir, capsys, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO("cat\n\n  dog  \n"))

        cli.main(["--content-dir", str(content_dir), "--min-results", "1", "--json"])

        lines = capsys.readouterr().out.splitlines()
        assert [orjson.loads(line)["items"][0]["title"] for line in lines] == ["doc1", "doc2"]

    def test_content_dir_from_environment(self, content_dir, capsys, monkeypatch):
        monkeypatch.setenv("MOOGLE_CONTENT_DIR", str(content_dir))
        assert cli.main(["--min-results", "1", "dog"]) == 0
        assert "doc2" in capsys.readouterr().out

    def test_environment_is_read_on_every_run(self, content_dir, tmp_path_factory, capsys, monkeypatch):
        other_dir = tmp_path_factory.mktemp("birds")
        (other_dir / "doc3.txt").write_text("a bird flew", encoding="utf-8")
        (other_dir / "doc4.txt").write_text("a fish swam", encoding="utf-8")

        monkeypatch.setenv("MOOGLE_CONTENT_DIR", str(content_dir))
        cli.main(["--min-results", "1", "--json", "dog"])
        monkeypatch.setenv("MOOGLE_CONTENT_DIR", str(other_dir))
        cli.main(["--min-results", "1", "--json", "bird"])

        lines = capsys.readouterr().out.splitlines()
        assert [orjson.loads(line)["items"][0]["title"] for line in lines] == ["doc2", "doc3"]

    def test_writes_metrics_file(self, content_dir, tmp_path_factory):
        metrics_file = tmp_path_factory.mktemp("metrics") / "moogle.prom"

        cli.main(["--content-dir", str(content_dir), "--metrics-file", str(metrics_file), "cat"])

        exposition = metrics_file.read_text(encoding="utf-8")
        assert "moogle_index_document_count 2.0" in exposition
        assert "moogle_search_latency_seconds_count" in exposition

    def test_initializes_tracing(self, content_dir, monkeypatch):
        monkeypatch.setitem(tracing_module._tracer_holder, "tracer", None)

        cli.main(["--content-dir", str(content_dir), "cat"])

        assert isinstance(trace.get_tracer_provider(), TracerProvider)
        assert tracing_module._tracer_holder["tracer"] is not None


@pytest.mark.unit
class TestMainErrors:
    def test_missing_directory(self, tmp_path, capsys):
        exit_code = cli.main(["--content-dir", str(tmp_path / "missing"), "cat"])

        assert exit_code == 1
        assert "Cannot build index" in capsys.readouterr().err

    def test_no_directory_configured(self, capsys):
        assert cli.main(["cat"]) == 1
        assert "MOOGLE_CONTENT_DIR" in capsys.readouterr().err

    def test_invalid_settings(self, content_dir, capsys):
        assert cli.main(["--content-dir", str(content_dir), "--min-results", "-1", "cat"]) == 1
        assert "Invalid settings" in capsys.readouterr().err

    def test_help_mentions_operators(self, capsys):
        with pytest.raises(SystemExit):
            cli.main(["--help"])
        assert "Query operators" in capsys.readouterr().out

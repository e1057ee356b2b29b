"""Unit tests for logging, tracing and metrics helpers."""

import json
import logging
import sys
from unittest.mock import Mock

from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode
import pytest

from moogle_search.observability import (
    SEARCH_LATENCY,
    JsonFormatter,
    bind_query,
    configure_logging,
    create_span,
    get_metrics,
    get_trace_context,
    set_trace_context,
    tracing as tracing_module,
    track_latency,
)
from moogle_search.observability.context import update_span_id
from moogle_search.observability.metrics import MetricBridge
from moogle_search.search.indexer import build_index
from moogle_search.service_layer import search


def _record(msg="test message", level=logging.INFO, name="moogle_search.search.ranking"):
    return logging.LogRecord(
        name=name,
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def span_exporter(monkeypatch):
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    monkeypatch.setitem(tracing_module._tracer_holder, "tracer", provider.get_tracer("test"))
    return exporter


@pytest.mark.unit
class TestJsonFormatter:
    """Tests for structured JSON logging."""

    def test_format_includes_trace_context(self):
        data = json.loads(JsonFormatter().format(_record()))

        assert data["message"] == "test message"
        assert data["level"] == "INFO"
        assert data["component"] == "ranking"
        assert "timestamp" in data
        assert data["trace_id"]
        assert data["span_id"]

    def test_format_includes_bound_query(self):
        with bind_query("^cat ~ sat"):
            data = json.loads(JsonFormatter().format(_record()))
        assert data["query"] == "^cat ~ sat"

    def test_query_is_unbound_afterwards(self):
        with bind_query("cat"):
            pass
        assert "query" not in get_trace_context()

    def test_format_includes_extra_fields(self):
        record = _record()
        record.doc_count = 3
        record.terms = {"sat", "cat"}
        data = json.loads(JsonFormatter().format(record))

        assert data["doc_count"] == 3
        assert data["terms"] == ["cat", "sat"]

    def test_format_truncates_and_redacts(self):
        record = _record(msg="x" * 5000)
        record.token = "hunter2"
        record.note = "y" * 1000
        data = json.loads(JsonFormatter().format(record))

        assert data["message"].endswith("...")
        assert len(data["message"]) == JsonFormatter.MAX_MESSAGE_LEN + 3
        assert data["token"] == "[REDACTED]"
        assert len(data["note"]) == JsonFormatter.MAX_EXTRA_LEN + 3

    def test_format_includes_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord("x", logging.ERROR, "t.py", 1, "failed", (), exc_info=sys.exc_info())
        data = json.loads(JsonFormatter().format(record))
        assert "ValueError: boom" in data["exception"]


@pytest.mark.unit
class TestTraceContext:
    def test_get_trace_context_generates_ids(self):
        set_trace_context("", "")
        ctx = get_trace_context()
        assert len(ctx["trace_id"]) == 32
        assert len(ctx["span_id"]) == 16

    def test_update_span_id_preserves_trace_id(self):
        set_trace_context("a" * 32, "b" * 16)
        update_span_id("c" * 16)
        assert get_trace_context() == {"trace_id": "a" * 32, "span_id": "c" * 16}


@pytest.mark.unit
class TestCreateSpan:
    def test_records_attributes(self, span_exporter):
        with create_span("search.query", attributes={"query.length": 3}) as span:
            span.set_attribute("search.results", 1)

        (finished,) = span_exporter.get_finished_spans()
        assert finished.name == "search.query"
        assert finished.attributes["query.length"] == 3
        assert finished.attributes["search.results"] == 1

    def test_updates_trace_context_span_id(self, span_exporter):
        with create_span("index.build") as span:
            expected = format(span.get_span_context().span_id, "016x")
            assert get_trace_context()["span_id"] == expected

    def test_marks_errors(self, span_exporter):
        with pytest.raises(RuntimeError), create_span("index.build"):
            raise RuntimeError("failed")

        (finished,) = span_exporter.get_finished_spans()
        assert finished.status.status_code is StatusCode.ERROR

    def test_search_emits_spans(self, cat_snapshot, span_exporter):
        search(cat_snapshot, "xat")

        names = [span.name for span in span_exporter.get_finished_spans()]
        assert names == ["search.fallback", "search.query"]

    def test_index_build_emits_span(self, span_exporter, cat_reader):
        build_index(cat_reader)

        (finished,) = span_exporter.get_finished_spans()
        assert finished.name == "index.build"
        assert finished.attributes["index.documents"] == 2
        assert finished.attributes["index.terms"] == 5


@pytest.mark.unit
class TestMetrics:
    def test_get_metrics_returns_bytes(self, cat_snapshot):
        output = get_metrics()
        assert isinstance(output, bytes)
        assert b"moogle_index_document_count" in output
        assert b"moogle_fuzzy_fallbacks" in output

    def test_track_latency_observes_once(self):
        histogram = Mock()
        with track_latency(histogram, outcome="ok"):
            pass
        histogram.labels.assert_called_once_with(outcome="ok")
        histogram.labels.return_value.observe.assert_called_once()

    def test_track_latency_observes_on_error(self):
        histogram = Mock()
        with pytest.raises(ValueError), track_latency(histogram):
            raise ValueError("boom")
        histogram.labels.return_value.observe.assert_called_once()

    def test_real_histogram_accepts_unlabelled_observation(self):
        with track_latency(SEARCH_LATENCY):
            pass

    def test_metric_bridge_unknown_kind_raises(self):
        bridge = MetricBridge(Mock(), otel_name="x", otel_description="x", otel_kind="summary")
        with pytest.raises(ValueError, match="Unknown metric kind"):
            bridge.inc({}, 1.0)


@pytest.mark.unit
class TestConfigureLogging:
    def test_sets_level(self, restore_root_logger):
        configure_logging(level="DEBUG")
        assert restore_root_logger.level == logging.DEBUG

    def test_replaces_handlers_with_json_handler(self, restore_root_logger):
        configure_logging(level="INFO")
        assert len(restore_root_logger.handlers) == 1
        assert isinstance(restore_root_logger.handlers[0].formatter, JsonFormatter)

    def test_plain_text_formatter(self, restore_root_logger):
        configure_logging(level="INFO", json_output=False)
        formatter = restore_root_logger.handlers[0].formatter
        assert not isinstance(formatter, JsonFormatter)
        assert "%(asctime)s" in formatter._fmt

    def test_logger_overrides(self, restore_root_logger):
        configure_logging(level="INFO", logger_levels={"moogle_search.search.fuzzy": "ERROR"})
        assert logging.getLogger("moogle_search.search.fuzzy").level == logging.ERROR
        logging.getLogger("moogle_search.search.fuzzy").setLevel(logging.NOTSET)

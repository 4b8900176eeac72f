"""Unit tests for observability module."""

import json
import logging

from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode
import pytest

from docsite_search.config import SearchSettings
from docsite_search.observability import (
    SEARCH_LATENCY,
    JsonFormatter,
    bind_version,
    configure_logging,
    configure_logging_from_settings,
    create_span,
    get_metrics,
    get_metrics_content_type,
    get_trace_context,
    init_metrics,
    init_tracing,
    metrics as metrics_module,
    set_trace_context,
    tracing as tracing_module,
    track_latency,
    update_span_id,
)


def _record(msg: str, level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(
        name="docsite_search.search.indexer",
        level=level,
        pathname="indexer.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


@pytest.fixture
def span_exporter(monkeypatch):
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    monkeypatch.setitem(tracing_module._tracer_holder, "tracer", provider.get_tracer("test"))
    return exporter


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    named = {name: logging.getLogger(name).level for name in ("opentelemetry", "docsite_search.search")}
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, named_level in named.items():
        logging.getLogger(name).setLevel(named_level)


@pytest.mark.unit
class TestJsonFormatter:
    """Tests for structured JSON logging."""

    def test_format_includes_trace_context(self):
        data = json.loads(JsonFormatter().format(_record("indexed")))

        assert data["message"] == "indexed"
        assert data["level"] == "INFO"
        assert data["component"] == "indexer"
        assert "timestamp" in data
        assert "trace_id" in data
        assert "span_id" in data

    def test_format_includes_version_from_context(self):
        set_trace_context("a" * 32, "b" * 16, version="v2")

        data = json.loads(JsonFormatter().format(_record("switch")))

        assert data["version"] == "v2"
        assert data["trace_id"] == "a" * 32

    def test_format_includes_extra_fields(self):
        record = _record("skipped", logging.WARNING)
        record.document_id = "guide"

        data = json.loads(JsonFormatter().format(record))

        assert data["document_id"] == "guide"

    def test_format_truncates_and_redacts(self):
        record = _record("x" * 5000)
        record.api_key = "secret"

        data = json.loads(JsonFormatter().format(record))

        assert data["message"].endswith("...")
        assert data["api_key"] == "[REDACTED]"

    def test_json_default_handles_set_and_bytes(self):
        formatter = JsonFormatter()

        assert formatter._json_default({3, 1, 2}) == [1, 2, 3]
        assert formatter._json_default(b"ok") == "ok"


@pytest.mark.unit
class TestTraceContext:
    """Tests for trace context propagation."""

    def test_get_trace_context_generates_ids(self):
        ctx = get_trace_context()

        assert len(ctx["trace_id"]) == 32
        assert len(ctx["span_id"]) == 16

    def test_update_span_id_preserves_trace_id(self):
        set_trace_context("c" * 32, "d" * 16, version="v1")
        update_span_id("e" * 16)

        ctx = get_trace_context()
        assert ctx["trace_id"] == "c" * 32
        assert ctx["span_id"] == "e" * 16
        assert ctx["version"] == "v1"

    def test_bind_version_keeps_ids(self):
        set_trace_context("f" * 32, "a" * 16)
        bind_version("v3")

        ctx = get_trace_context()
        assert ctx["version"] == "v3"
        assert ctx["trace_id"] == "f" * 32


@pytest.mark.unit
class TestTracing:
    """Tests for OpenTelemetry tracing."""

    def test_init_tracing_applies_resource_attributes(self):
        provider = init_tracing("test-service", resource_attributes={"service.version": "2.0.0"})

        assert provider.resource.attributes["service.version"] == "2.0.0"

    def test_create_span_records_attributes(self, span_exporter):
        with create_span("search.query", attributes={"search.scope": "all"}):
            pass

        spans = span_exporter.get_finished_spans()
        assert spans[0].name == "search.query"
        assert spans[0].attributes["search.scope"] == "all"

    def test_create_span_marks_errors(self, span_exporter):
        with pytest.raises(RuntimeError), create_span("search.build_index"):
            raise RuntimeError("boom")

        span = span_exporter.get_finished_spans()[0]
        assert span.status.status_code is StatusCode.ERROR
        assert any(event.name == "exception" for event in span.events)

    def test_create_span_updates_logging_context(self, span_exporter):
        with create_span("search.query") as span:
            expected = format(span.get_span_context().span_id, "016x")
            assert get_trace_context()["span_id"] == expected
            assert get_trace_context()["trace_id"] == format(span.get_span_context().trace_id, "032x")

    def test_get_tracer_initializes_when_missing(self, monkeypatch):
        monkeypatch.setitem(tracing_module._tracer_holder, "tracer", None)

        assert tracing_module.get_tracer() is not None


@pytest.mark.unit
class TestMetrics:
    """Tests for Prometheus metrics."""

    def test_init_metrics_returns_provider(self):
        assert init_metrics() is init_metrics()

    def test_track_latency_records_histogram(self):
        with track_latency(SEARCH_LATENCY, engine="metrics-test", scope="current"):
            pass

        assert b'docsite_search_latency_seconds_count{engine="metrics-test",scope="current"}' in get_metrics()

    def test_gauge_set_is_reflected(self):
        metrics_module.INDEX_CHUNK_COUNT.labels(engine="gauge-test").set(12)
        metrics_module.INDEX_CHUNK_COUNT.labels(engine="gauge-test").set(4)

        assert b'docsite_index_chunk_count{engine="gauge-test"} 4.0' in get_metrics()

    def test_metric_bridge_unknown_kind_raises(self):
        with pytest.raises(ValueError, match="Unknown metric kind"):
            metrics_module.MetricBridge("summary", "docsite_bad_metric", "bad", ["engine"])

    def test_counter_increments_by_label(self):
        metrics_module.INGESTION_ERRORS.labels(reason="CounterTest").inc()
        metrics_module.INGESTION_ERRORS.labels(reason="CounterTest").inc(2)

        assert b'docsite_ingestion_errors_total{reason="CounterTest"} 3.0' in get_metrics()

    def test_get_metrics_content_type(self):
        assert get_metrics_content_type() == metrics_module.CONTENT_TYPE_LATEST


@pytest.mark.unit
@pytest.mark.usefixtures("restore_root_logger")
class TestConfigureLogging:
    """Tests for logging configuration."""

    def test_configure_logging_sets_level(self):
        configure_logging(level="DEBUG")

        assert logging.getLogger().level == logging.DEBUG

    def test_configure_logging_json_formatter(self):
        configure_logging(level="INFO")

        assert isinstance(logging.getLogger().handlers[0].formatter, JsonFormatter)

    def test_configure_logging_non_json_formatter(self):
        configure_logging(level="INFO", json_output=False)

        formatter = logging.getLogger().handlers[0].formatter
        assert "%(asctime)s" in formatter._style._fmt

    def test_configure_logging_overrides(self):
        configure_logging(level="INFO", logger_levels={"docsite_search.search": "ERROR"})

        assert logging.getLogger("docsite_search.search").level == logging.ERROR

    def test_configure_logging_from_settings(self):
        configure_logging_from_settings(SearchSettings(log_level="warning", json_logs=False))

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert not isinstance(root.handlers[0].formatter, JsonFormatter)

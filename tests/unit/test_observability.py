"""Unit tests for observability module."""

import io
import logging
import sys

import orjson
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode
import pytest

from zen_search.observability import (
    INDEX_BUILD_LATENCY,
    QUERY_LATENCY,
    JsonFormatter,
    configure_logging,
    create_span,
    get_metrics,
    get_metrics_content_type,
    get_trace_context,
    init_tracing,
    set_trace_context,
    trace_context,
    track_latency,
    update_trace_context,
)


def _record(name="zen_search.search.query", msg="test message", **extra):
    record = logging.LogRecord(
        name=name,
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def reset_trace_context():
    token = trace_context.set(None)
    yield
    trace_context.reset(token)


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    exporter = InMemorySpanExporter()
    init_tracing("test-service").add_span_processor(SimpleSpanProcessor(exporter))
    return exporter


class TestJsonFormatter:
    def test_format_includes_trace_context_and_component(self):
        set_trace_context("a" * 32, "b" * 16, entity_type="Tickets")

        output = orjson.loads(JsonFormatter().format(_record()))

        assert output["message"] == "test message"
        assert output["level"] == "INFO"
        assert output["logger"] == "zen_search.search.query"
        assert output["component"] == "query"
        assert output["trace_id"] == "a" * 32
        assert output["span_id"] == "b" * 16
        assert output["entity_type"] == "Tickets"

    def test_extras_are_included_and_secrets_redacted(self):
        output = orjson.loads(JsonFormatter().format(_record(field="name", token="abc", paths={"b", "a"})))

        assert output["field"] == "name"
        assert output["token"] == "[REDACTED]"
        assert output["paths"] == ["a", "b"]

    def test_long_messages_are_truncated(self):
        output = orjson.loads(JsonFormatter().format(_record(msg="x" * 3000)))

        assert len(output["message"]) == JsonFormatter.MAX_MESSAGE_LEN + 3

    def test_exception_text_is_included(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()

        output = orjson.loads(JsonFormatter().format(record))

        assert "ValueError: boom" in output["exception"]


class TestConfigureLogging:
    def test_json_output(self):
        stream = io.StringIO()
        configure_logging("debug", json_output=True, stream=stream)

        logging.getLogger("zen_search.test").debug("hello %s", "world")

        assert orjson.loads(stream.getvalue().splitlines()[-1])["message"] == "hello world"
        assert logging.getLogger().level == logging.DEBUG

    def test_plain_output_and_logger_overrides(self):
        stream = io.StringIO()
        configure_logging("info", json_output=False, logger_levels={"zen_search.noisy": "error"}, stream=stream)

        logging.getLogger("zen_search.noisy").warning("suppressed")
        logging.getLogger("zen_search.test").info("shown")

        output = stream.getvalue()
        assert "suppressed" not in output
        assert "INFO [zen_search.test] shown" in output


class TestTraceContext:
    def test_get_trace_context_generates_ids_once(self):
        first = get_trace_context()

        assert len(first["trace_id"]) == 32
        assert len(first["span_id"]) == 16
        assert get_trace_context() == first

    def test_update_trace_context_merges(self):
        set_trace_context("t" * 32, "s" * 16)
        token = update_trace_context(entity_type="Users")

        assert get_trace_context() == {"trace_id": "t" * 32, "span_id": "s" * 16, "entity_type": "Users"}
        trace_context.reset(token)
        assert get_trace_context() == {"trace_id": "t" * 32, "span_id": "s" * 16}


class TestTracing:
    def test_init_tracing_is_idempotent(self):
        assert init_tracing("a") is init_tracing("b")

    def test_create_span_records_attributes_and_exposes_ids(self, span_exporter):
        with create_span("zen_search.test", attributes={"search.field": "_id"}) as span:
            inside = dict(get_trace_context())

        finished = span_exporter.get_finished_spans()[-1]
        assert finished.name == "zen_search.test"
        assert finished.attributes["search.field"] == "_id"
        assert inside["span_id"] == format(span.get_span_context().span_id, "016x")
        assert get_trace_context().get("span_id") != inside["span_id"]

    def test_create_span_marks_errors_and_reraises(self, span_exporter):
        with pytest.raises(RuntimeError, match="boom"), create_span("zen_search.failing"):
            raise RuntimeError("boom")

        finished = span_exporter.get_finished_spans()[-1]
        assert finished.status.status_code == StatusCode.ERROR
        assert finished.events[0].name == "exception"


class TestMetrics:
    def test_track_latency_observes_labelled_histograms(self):
        sample = QUERY_LATENCY.labels(entity_type="Metrics")
        before = sample._sum.get()

        with track_latency(QUERY_LATENCY, entity_type="Metrics"):
            pass

        assert sample._sum.get() >= before

    def test_track_latency_observes_on_error(self):
        count_before = _histogram_count("zen_search_index_build_seconds")

        with pytest.raises(ValueError), track_latency(INDEX_BUILD_LATENCY):
            raise ValueError("fail")

        assert _histogram_count("zen_search_index_build_seconds") == count_before + 1

    def test_get_metrics_exposes_instruments(self):
        body = get_metrics().decode("utf-8")

        assert "zen_search_queries" in body
        assert "zen_search_index_documents" in body
        assert get_metrics_content_type().startswith("text/plain")


def _histogram_count(name: str) -> float:
    for metric in INDEX_BUILD_LATENCY.collect():
        for sample in metric.samples:
            if sample.name == f"{name}_count":
                return sample.value
    return 0.0

"""Tests for tracing helpers."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from global_accelerator_operator import tracing


@pytest.fixture(autouse=True)
def reset_tracer():
    yield
    tracing._tracer = None
    tracing._provider = None


class TestTraceSpan:
    """Test cases for trace_span."""

    def test_noop_without_tracer(self):
        """Test that spans are skipped until tracing is initialized."""
        with tracing.trace_span("reconcile_accelerator", kind="Accelerator") as span:
            assert span is None

    def test_exceptions_propagate_without_tracer(self):
        with pytest.raises(RuntimeError):
            with tracing.trace_span("delete"):
                raise RuntimeError("boom")

    def test_none_attributes_skipped(self):
        """Test that attributes without a value are not sent to the tracer."""
        tracer = MagicMock()
        tracing._tracer = tracer

        with tracing.trace_span("update", kind="Accelerator", attributes={"accelerator.arn": None, "a": 1}):
            pass

        attrs = tracer.start_as_current_span.call_args.kwargs["attributes"]
        assert attrs == {"a": 1, "resource.kind": "Accelerator"}


class TestInitializeTracing:
    """Test cases for initialize_tracing and shutdown_tracing."""

    def test_disabled(self, monkeypatch):
        monkeypatch.setenv("OTEL_TRACES_ENABLED", "false")

        tracing.initialize_tracing()

        assert tracing.get_tracer() is None

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("0.25", 0.25), ("2", 1.0), ("-1", 0.0), ("half", 1.0)],
    )
    def test_sample_ratio(self, monkeypatch, raw, expected):
        monkeypatch.setenv("OTEL_TRACES_SAMPLER_ARG", raw)

        assert tracing._sample_ratio() == expected

    def test_shutdown_flushes_provider(self):
        """Test that shutdown stops the provider and disables spans."""
        provider = MagicMock()
        tracing._provider = provider
        tracing._tracer = MagicMock()

        tracing.shutdown_tracing()

        provider.shutdown.assert_called_once()
        assert tracing.get_tracer() is None

    def test_shutdown_without_init(self):
        tracing.shutdown_tracing()

        assert tracing.get_tracer() is None

    @patch("global_accelerator_operator.tracing.TracerProvider", side_effect=RuntimeError("bad exporter"))
    def test_init_failure_is_not_fatal(self, mock_provider, monkeypatch):
        monkeypatch.delenv("OTEL_TRACES_ENABLED", raising=False)

        tracing.initialize_tracing()

        assert tracing.get_tracer() is None

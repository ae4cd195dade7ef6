"""Tests for Prometheus metrics."""

from __future__ import annotations

import pytest
from prometheus_client import REGISTRY

from global_accelerator_operator import metrics


class TestMetricsExist:
    """Test that all expected metrics are registered."""

    @pytest.mark.parametrize(
        "metric,name",
        [
            (metrics.reconcile_total, "reconcile"),
            (metrics.reconcile_duration_seconds, "reconcile_duration_seconds"),
            (metrics.accelerator_operations_total, "accelerator_operations"),
            (metrics.wait_attempts_total, "wait_attempts"),
            (metrics.wait_duration_seconds, "wait_duration_seconds"),
            (metrics.provider_connectivity_total, "provider_connectivity"),
            (metrics.drift_detected_total, "drift_detected"),
            (metrics.api_call_total, "api_call"),
            (metrics.api_call_duration_seconds, "api_call_duration_seconds"),
            (metrics.rate_limit_hits_total, "rate_limit_hits"),
            (metrics.error_total, "error"),
            (metrics.resource_status_total, "resource_status"),
        ],
    )
    def test_metric_name(self, metric, name):
        """Test that metric names carry the operator prefix."""
        # Counters drop the "_total" suffix from _name
        assert metric._name == f"global_accelerator_operator_{name}"


class TestMetricsRecording:
    """Test that metrics record values."""

    def test_accelerator_operations(self):
        """Test that accelerator operation counts are recorded by label."""
        labels = {"operation": "create", "result": "success"}
        before = REGISTRY.get_sample_value("global_accelerator_operator_accelerator_operations_total", labels) or 0

        metrics.accelerator_operations_total.labels(**labels).inc()

        after = REGISTRY.get_sample_value("global_accelerator_operator_accelerator_operations_total", labels)
        assert after == before + 1

    def test_wait_duration(self):
        """Test that wait durations are observed."""
        labels = {"result": "success"}
        before = REGISTRY.get_sample_value("global_accelerator_operator_wait_duration_seconds_count", labels) or 0

        metrics.wait_duration_seconds.labels(**labels).observe(42.0)

        after = REGISTRY.get_sample_value("global_accelerator_operator_wait_duration_seconds_count", labels)
        assert after == before + 1

"""Prometheus metrics for the Global Accelerator Operator."""

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "global_accelerator_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "global_accelerator_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[1.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0, 600.0],
)

# Accelerator lifecycle metrics
accelerator_operations_total = Counter(
    "global_accelerator_operator_accelerator_operations_total",
    "Total number of accelerator lifecycle operations",
    ["operation", "result"],
)

# Provisioning wait metrics
wait_attempts_total = Counter(
    "global_accelerator_operator_wait_attempts_total",
    "Total number of status observations made while waiting for provisioning",
    ["observation"],
)

wait_duration_seconds = Histogram(
    "global_accelerator_operator_wait_duration_seconds",
    "Duration of provisioning waits in seconds",
    ["result"],
    buckets=[5.0, 15.0, 30.0, 60.0, 120.0, 300.0, 600.0],
)

# Provider connectivity metrics
provider_connectivity_total = Counter(
    "global_accelerator_operator_provider_connectivity_total",
    "Provider connectivity status changes",
    ["provider", "status"],
)

# Configuration drift detection metrics
drift_detected_total = Counter(
    "global_accelerator_operator_drift_detected_total",
    "Total number of configuration drift detections",
    ["kind", "resource_type"],
)

# API call metrics
api_call_total = Counter(
    "global_accelerator_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "global_accelerator_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

rate_limit_hits_total = Counter(
    "global_accelerator_operator_rate_limit_hits_total",
    "Total number of rate limit hits",
    ["api_type"],
)

# Error metrics
error_total = Counter(
    "global_accelerator_operator_error_total",
    "Total number of errors",
    ["kind", "error_type"],
)

# Resource status metrics
resource_status_total = Counter(
    "global_accelerator_operator_resource_status_total",
    "Resource status observations",
    ["kind", "status"],
)

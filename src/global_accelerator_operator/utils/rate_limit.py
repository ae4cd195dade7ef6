"""Rate limiting utilities for API calls."""

from __future__ import annotations

import os
import time
from functools import wraps
from typing import Any, Callable, TypeVar

from kubernetes.client.exceptions import ApiException

from .. import metrics

_F = TypeVar("_F", bound=Callable[..., Any])

# Rate limit configuration
_K8S_RATE_LIMIT_PER_SECOND = float(os.getenv("K8S_RATE_LIMIT_PER_SECOND", "10.0"))
_AWS_RATE_LIMIT_PER_SECOND = float(os.getenv("AWS_RATE_LIMIT_PER_SECOND", "5.0"))

# Track last call times
_k8s_last_call_time: float = 0.0
_aws_last_call_time: float = 0.0


def rate_limit_k8s(func: _F) -> _F:
    """Decorator to rate limit Kubernetes API calls.

    Enforces a minimum interval between calls to avoid overwhelming the
    Kubernetes API server.
    """
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        global _k8s_last_call_time
        min_interval = 1.0 / _K8S_RATE_LIMIT_PER_SECOND

        time_since_last_call = time.time() - _k8s_last_call_time
        if time_since_last_call < min_interval:
            metrics.rate_limit_hits_total.labels(api_type="k8s").inc()
            time.sleep(min_interval - time_since_last_call)

        _k8s_last_call_time = time.time()
        return func(*args, **kwargs)

    return wrapper  # type: ignore


def rate_limit_aws(func: _F) -> _F:
    """Decorator to rate limit Global Accelerator API calls.

    The Global Accelerator control plane throttles aggressively, and a single
    reconcile issues a describe call per poll.
    """
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        global _aws_last_call_time
        min_interval = 1.0 / _AWS_RATE_LIMIT_PER_SECOND

        time_since_last_call = time.time() - _aws_last_call_time
        if time_since_last_call < min_interval:
            metrics.rate_limit_hits_total.labels(api_type="aws").inc()
            time.sleep(min_interval - time_since_last_call)

        _aws_last_call_time = time.time()
        return func(*args, **kwargs)

    return wrapper  # type: ignore


def handle_rate_limit_error(e: Exception, max_retries: int = 3) -> bool:
    """Check if a Kubernetes API exception is a rate limit error and back off.

    Args:
        e: Exception raised by the Kubernetes client
        max_retries: Maximum number of retries

    Returns:
        True if the caller should retry, False otherwise
    """
    if not isinstance(e, ApiException):
        handle_rate_limit_error._retry_count = 0  # type: ignore
        return False

    # Kubernetes API rate limit errors typically return 429 or 503
    if e.status == 429 or (e.status == 503 and "rate limit" in str(e).lower()):
        # Exponential backoff: 1s, 2s, 4s
        retry_count = getattr(handle_rate_limit_error, "_retry_count", 0)
        if retry_count < max_retries:
            time.sleep(2 ** retry_count)
            handle_rate_limit_error._retry_count = retry_count + 1  # type: ignore
            return True
        handle_rate_limit_error._retry_count = 0  # type: ignore
        return False

    handle_rate_limit_error._retry_count = 0  # type: ignore
    return False

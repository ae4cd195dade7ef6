"""Provider lookup shared by the Accelerator handlers."""

from __future__ import annotations

import time
from typing import Any

from kubernetes import client

from .. import metrics
from ..constants import API_GROUP, COND_READY, KIND_PROVIDER
from ..utils.cache import get_cached_object, make_cache_key, set_cached_object
from ..utils.rate_limit import handle_rate_limit_error, rate_limit_k8s

PROVIDER_VERSION = "v1alpha1"
PROVIDER_PLURAL = "providers"

# Reads throttled by the API server are retried this many times in total
PROVIDER_READ_ATTEMPTS = 4


def resolve_provider_ref(spec: dict[str, Any], namespace: str) -> tuple[str | None, str]:
    """Return the name and namespace of the Provider an accelerator references.

    The namespace defaults to the accelerator's own.
    """
    ref = spec.get("providerRef") or {}
    return ref.get("name"), ref.get("namespace") or namespace


def get_provider_with_cache(
    api: Any,
    provider_name: str,
    provider_ns: str,
) -> dict[str, Any]:
    """Get provider CRD with caching.

    Args:
        api: Kubernetes CustomObjectsApi instance
        provider_name: Name of the provider
        provider_ns: Namespace of the provider

    Returns:
        Provider CRD object

    Raises:
        client.exceptions.ApiException: If provider not found or API error
    """
    cache_key = make_cache_key(KIND_PROVIDER, provider_ns, provider_name)
    cached_provider = get_cached_object(cache_key)
    if cached_provider is not None:
        metrics.api_call_total.labels(api_type="k8s", operation="get_provider", result="cache_hit").inc()
        return cached_provider

    read = rate_limit_k8s(api.get_namespaced_custom_object)
    attempt = 0
    while True:
        attempt += 1
        start_time = time.time()
        try:
            provider_obj = read(
                group=API_GROUP,
                version=PROVIDER_VERSION,
                namespace=provider_ns,
                plural=PROVIDER_PLURAL,
                name=provider_name,
            )
        except Exception as e:
            metrics.api_call_total.labels(api_type="k8s", operation="get_provider", result="error").inc()
            # handle_rate_limit_error sleeps before returning True
            if attempt < PROVIDER_READ_ATTEMPTS and handle_rate_limit_error(e):
                continue
            raise
        finally:
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation="get_provider").observe(
                time.time() - start_time
            )

        metrics.api_call_total.labels(api_type="k8s", operation="get_provider", result="success").inc()
        set_cached_object(cache_key, provider_obj)
        return provider_obj


def _ready_condition(provider_obj: dict[str, Any]) -> dict[str, Any] | None:
    for cond in (provider_obj.get("status") or {}).get("conditions", []):
        if cond.get("type") == COND_READY:
            return cond
    return None


def is_provider_ready(provider_obj: dict[str, Any]) -> bool:
    """Check the Ready condition of a Provider object."""
    cond = _ready_condition(provider_obj)
    return cond is not None and cond.get("status") == "True"


def provider_not_ready_reason(provider_obj: dict[str, Any]) -> str:
    """Describe why a Provider is not ready, for surfacing on dependents."""
    cond = _ready_condition(provider_obj)
    if cond is None:
        return "Provider has not been reconciled yet"
    return cond.get("message") or f"Provider Ready condition is {cond.get('status')}"


def get_k8s_client() -> client.CustomObjectsApi:
    """Get Kubernetes CustomObjectsApi client."""
    from kubernetes import config

    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()

    return client.CustomObjectsApi()

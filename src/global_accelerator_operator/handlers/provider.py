"""Handler for Provider CRD.

A Provider carries the credentials and API region used to reach the
Global Accelerator control plane. Reconciling one resolves the credentials,
probes the API and publishes the outcome as conditions that Accelerator
handlers consult before touching the provider.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import kopf

from .. import metrics
from ..builders.provider import create_provider_from_spec
from ..constants import API_GROUP_VERSION, DEFAULT_API_REGION, KIND_PROVIDER
from ..services.aws.client import GlobalAcceleratorProvider
from ..tracing import trace_span
from ..utils.cache import invalidate_cache, make_cache_key
from ..utils.conditions import (
    set_auth_valid_condition,
    set_endpoint_reachable_condition,
    set_ready_condition,
)
from ..utils.errors import sanitize_exception
from ..utils.events import emit_validate_succeeded
from .base import BaseHandler


class ProviderHandler(BaseHandler):
    """Handler for Provider resources."""

    def __init__(self):
        super().__init__(KIND_PROVIDER)

    def _cache_key(self, meta: dict[str, Any]) -> str:
        return make_cache_key(KIND_PROVIDER, meta.get("namespace", "default"), meta.get("name", ""))

    def _validate(self, spec: dict[str, Any], meta: dict[str, Any]) -> None:
        auth = spec.get("auth")
        if auth is not None and not isinstance(auth, dict):
            self.handle_validation_error(meta, "auth must be an object")

        region = spec.get("region", DEFAULT_API_REGION)
        if region != DEFAULT_API_REGION and not spec.get("endpoint"):
            self.log_warning(
                meta,
                f"Global Accelerator is only served from {DEFAULT_API_REGION}, requests to {region} will likely fail",
                reason="UnusualRegion",
                region=region,
            )

    def _record_failure(self, meta: dict[str, Any], what: str, reason: str, error: Exception) -> str:
        message = sanitize_exception(error)
        metrics.error_total.labels(kind=KIND_PROVIDER, error_type=type(error).__name__).inc()
        self.log_error(meta, f"{what} failed: {message}", error=error, reason=reason)
        return message

    def _resolve_credentials(
        self,
        spec: dict[str, Any],
        meta: dict[str, Any],
    ) -> tuple[GlobalAcceleratorProvider | None, str]:
        """Build the provider, returning ``None`` and a message when credentials are unusable."""
        with trace_span("create_provider", kind=KIND_PROVIDER):
            try:
                provider = create_provider_from_spec(spec, meta)
            except Exception as e:
                return None, f"Authentication failed: {self._record_failure(meta, 'Provider build', 'AuthFailed', e)}"
        source = "secret references" if spec.get("auth") else "default credential chain"
        return provider, f"Credentials resolved from {source}"

    def _probe(self, provider: GlobalAcceleratorProvider, meta: dict[str, Any]) -> tuple[bool, str]:
        name = meta.get("name", "unknown")
        with trace_span("test_connectivity", kind=KIND_PROVIDER, attributes={"provider.region": provider.region}):
            try:
                connected = provider.test_connectivity()
            except Exception as e:
                metrics.provider_connectivity_total.labels(provider=name, status="error").inc()
                message = self._record_failure(meta, "Connectivity test", "ConnectivityFailed", e)
                return False, f"Connectivity test failed: {message}"

        metrics.provider_connectivity_total.labels(
            provider=name, status="connected" if connected else "disconnected"
        ).inc()
        if connected:
            return True, f"Global Accelerator API reachable in {provider.region}"
        return False, f"Global Accelerator API unreachable in {provider.region}"

    def reconcile(
        self,
        spec: dict[str, Any],
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
    ) -> None:
        """Reconcile Provider resource."""
        name = meta.get("name", "unknown")

        with trace_span("reconcile_provider", kind=KIND_PROVIDER, attributes={"provider.name": name}):
            self._validate(spec, meta)
            emit_validate_succeeded(meta)

            # Accelerators must not keep using a stale copy of this provider
            invalidate_cache(self._cache_key(meta))

            provider, auth_message = self._resolve_credentials(spec, meta)
            conditions = set_auth_valid_condition(status.get("conditions", []), provider is not None, auth_message)

            if provider is None:
                connected, endpoint_message = False, "Skipped until credentials resolve"
            else:
                connected, endpoint_message = self._probe(provider, meta)
            conditions = set_endpoint_reachable_condition(conditions, connected, endpoint_message)
            conditions = set_ready_condition(
                conditions, connected, "Provider is ready" if connected else "Provider is not ready"
            )

            # lastConnectTime keeps the last successful probe across failures
            last_connect = datetime.now(timezone.utc).isoformat() if connected else status.get("lastConnectTime")
            self.update_resource_status(
                patch,
                meta,
                connected,
                {
                    "connected": connected,
                    "region": provider.region if provider is not None else spec.get("region", DEFAULT_API_REGION),
                    "lastConnectTime": last_connect,
                    "conditions": conditions,
                },
            )

    def delete(
        self,
        spec: dict[str, Any],
        meta: dict[str, Any],
        patch: kopf.Patch,
    ) -> None:
        """Forget the cached provider and release the finalizer.

        Accelerators that still reference this provider are left alone; their
        next reconcile reports the provider as missing.
        """
        self.log_info(meta, "Provider is being deleted", event="deletion", reason="Deletion")
        invalidate_cache(self._cache_key(meta))
        self.remove_finalizer(meta, patch)


_handler = ProviderHandler()


@kopf.on.create(API_GROUP_VERSION, KIND_PROVIDER)
@kopf.on.update(API_GROUP_VERSION, KIND_PROVIDER)
@kopf.on.resume(API_GROUP_VERSION, KIND_PROVIDER)
def handle_provider(
    spec: dict[str, Any],
    meta: dict[str, Any],
    status: dict[str, Any],
    patch: kopf.Patch,
    **kwargs: Any,
) -> None:
    """Handle Provider resource reconciliation."""
    _handler.ensure_finalizer(meta, patch)
    _handler.reconcile_with_metrics(meta, lambda: _handler.reconcile(spec, meta, status, patch))


@kopf.on.delete(API_GROUP_VERSION, KIND_PROVIDER)
def handle_provider_delete(
    spec: dict[str, Any],
    meta: dict[str, Any],
    patch: kopf.Patch,
    **kwargs: Any,
) -> None:
    """Handle Provider resource deletion."""
    _handler.delete(spec, meta, patch)

"""Handler for Accelerator CRD.

The CRD status is the persisted record of an accelerator: its ARN, the
observed state projected by the reconciler and the last applied desired
state (``appliedSpec``), which is the baseline for the next update diff.
"""

from __future__ import annotations

import os
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Iterator

import kopf
from kubernetes import client

from .. import metrics
from ..builders.accelerator import create_desired_state_from_spec, resolve_timeouts
from ..builders.provider import create_provider_from_spec
from ..constants import (
    ACCELERATOR_STATUS_DEPLOYED,
    API_GROUP_VERSION,
    COND_CREATION_FAILED,
    COND_PROVIDER_NOT_READY,
    COND_UPDATE_FAILED,
    DELETION_POLICY_DELETE,
    DELETION_POLICY_RETAIN,
    KIND_ACCELERATOR,
)
from ..errors import (
    AcceleratorError,
    AttributesUpdateFailedError,
    CreateFailedError,
    ProvisioningTimeoutError,
)
from ..projector import desired_state_from_observed, desired_state_to_dict, observed_state_to_status
from ..reconciler import AcceleratorReconciler, diff_desired_state
from ..services.aws.models import DesiredState, ObservedState
from ..tracing import add_span_attribute, trace_span
from ..utils.conditions import (
    remove_condition,
    set_creation_failed_condition,
    set_provisioning_condition,
    set_ready_condition,
    set_update_failed_condition,
)
from ..utils.context import bind_context
from ..utils.errors import sanitize_exception
from ..utils.events import (
    emit_accelerator_created,
    emit_accelerator_deleted,
    emit_accelerator_gone,
    emit_accelerator_updated,
    emit_provisioning_timeout,
    emit_validate_succeeded,
)
from .base import BaseHandler
from .shared import (
    get_k8s_client,
    get_provider_with_cache,
    is_provider_ready,
    provider_not_ready_reason,
    resolve_provider_ref,
)

DRIFT_CHECK_INTERVAL_SECONDS = int(os.getenv("DRIFT_CHECK_INTERVAL_SECONDS", "300"))
PROVISIONING_RETRY_DELAY_SECONDS = int(os.getenv("PROVISIONING_RETRY_DELAY_SECONDS", "30"))


class AcceleratorHandler(BaseHandler):
    """Handler for Accelerator resources."""

    def __init__(self):
        """Initialize accelerator handler."""
        super().__init__(KIND_ACCELERATOR)
        # uids with a reconcile or delete running in this process
        self._in_flight: set[str] = set()
        self._in_flight_lock = threading.Lock()

    @contextmanager
    def claim(self, meta: dict[str, Any]) -> Iterator[bool]:
        """Mark the accelerator busy for the duration of the block.

        kopf serializes change handlers per object but runs timers beside
        them; only one of either may touch an accelerator at a time.

        Yields:
            False when another handler already holds the accelerator
        """
        uid = meta.get("uid", "")
        with self._in_flight_lock:
            acquired = uid not in self._in_flight
            if acquired:
                self._in_flight.add(uid)
        try:
            yield acquired
        finally:
            if acquired:
                with self._in_flight_lock:
                    self._in_flight.discard(uid)

    def build_reconciler(
        self,
        spec: dict[str, Any],
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
    ) -> AcceleratorReconciler:
        """Resolve the referenced Provider and build a reconciler bound to it."""
        provider_name, provider_ns = resolve_provider_ref(spec, meta.get("namespace", "default"))
        if not provider_name:
            self.handle_validation_error(meta, "providerRef.name is required")

        try:
            create_timeout, update_timeout = resolve_timeouts(spec)
        except ValueError as e:
            self.handle_validation_error(meta, f"invalid timeouts: {e}")

        api = get_k8s_client()
        try:
            provider_obj = get_provider_with_cache(api, provider_name, provider_ns)
        except client.exceptions.ApiException as e:
            if e.status == 404:
                self.handle_provider_not_found(
                    meta, status, patch, f"Provider {provider_name} not found in namespace {provider_ns}"
                )
            raise

        if not is_provider_ready(provider_obj):
            self.handle_provider_not_ready(
                meta,
                status,
                patch,
                provider_name,
                f"Provider {provider_name} is not ready: {provider_not_ready_reason(provider_obj)}",
            )

        provider_client = create_provider_from_spec(provider_obj.get("spec", {}), provider_obj.get("metadata", {}))
        return AcceleratorReconciler(
            provider_client,
            create_timeout=create_timeout,
            update_timeout=update_timeout,
        )

    def _record_observed(
        self,
        patch: kopf.Patch,
        meta: dict[str, Any],
        conditions: list[dict[str, Any]],
        observed: ObservedState,
        applied: DesiredState,
    ) -> None:
        conditions = remove_condition(conditions, COND_CREATION_FAILED)
        conditions = remove_condition(conditions, COND_UPDATE_FAILED)
        conditions = remove_condition(conditions, COND_PROVIDER_NOT_READY)
        deployed = observed.status == ACCELERATOR_STATUS_DEPLOYED
        conditions = set_provisioning_condition(
            conditions, not deployed, f"Accelerator status is {observed.status or 'unknown'}"
        )
        conditions = set_ready_condition(
            conditions,
            deployed,
            f"Accelerator {observed.name} is deployed" if deployed else "Accelerator is provisioning",
        )
        status_data = observed_state_to_status(observed)
        status_data.update({
            "appliedSpec": desired_state_to_dict(applied),
            "lastSyncTime": datetime.now(timezone.utc).isoformat(),
            "conditions": conditions,
        })
        self.update_resource_status(patch, meta, deployed, status_data)

    def _fail(
        self,
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        error: AcceleratorError,
        condition_fn: Any,
        status_data: dict[str, Any] | None = None,
    ) -> None:
        """Record a lifecycle failure and raise the matching kopf error."""
        self.handle_reconciliation_error(meta, status, patch, error, condition_fn=condition_fn, status_data=status_data)
        if isinstance(error, ProvisioningTimeoutError):
            # The provider keeps provisioning; observe again on the next pass.
            message = sanitize_exception(error)
            emit_provisioning_timeout(meta, message)
            raise kopf.TemporaryError(message, delay=PROVISIONING_RETRY_DELAY_SECONDS) from error
        raise error

    def _create(
        self,
        reconciler: AcceleratorReconciler,
        desired: DesiredState,
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        conditions: list[dict[str, Any]],
    ) -> None:
        with trace_span("create", kind=KIND_ACCELERATOR):
            try:
                observed = reconciler.create(desired)
            except AcceleratorError as e:
                status_data: dict[str, Any] = {}
                arn = getattr(e, "arn", None)
                if arn and not isinstance(e, CreateFailedError):
                    # The accelerator exists even though create did not finish;
                    # keep its ARN and leave attributes for the next pass.
                    status_data = {
                        "acceleratorArn": arn,
                        "appliedSpec": desired_state_to_dict(replace(desired, attributes=None)),
                    }
                self._fail(meta, status, patch, e, set_creation_failed_condition, status_data)
                return

        emit_accelerator_created(meta, observed.id)
        add_span_attribute("accelerator.arn", observed.id)
        self.log_info(meta, f"Created accelerator {observed.id}", reason="AcceleratorCreated", accelerator_arn=observed.id)
        self._record_observed(patch, meta, conditions, observed, desired)

    def _update(
        self,
        reconciler: AcceleratorReconciler,
        arn: str,
        desired: DesiredState,
        previous: DesiredState,
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        conditions: list[dict[str, Any]],
    ) -> None:
        with trace_span("update", kind=KIND_ACCELERATOR, attributes={"accelerator.arn": arn}):
            try:
                result = reconciler.update(arn, desired, previous)
            except AcceleratorError as e:
                status_data: dict[str, Any] = {}
                partial = getattr(e, "result", None)
                if isinstance(e, AttributesUpdateFailedError) and partial is not None and partial.base_updated:
                    # Base fields are applied; only attributes remain pending.
                    applied = replace(desired, attributes=previous.attributes)
                    status_data["appliedSpec"] = desired_state_to_dict(applied)
                    self.log_warning(
                        meta,
                        f"Accelerator {arn} base fields updated but attributes update failed",
                        reason="PartialUpdate",
                        accelerator_arn=arn,
                    )
                self._fail(meta, status, patch, e, set_update_failed_condition, status_data)
                return

        if result.observed is None:
            self._discard_record(meta, patch, arn)
            raise kopf.TemporaryError(f"Accelerator {arn} disappeared during update", delay=PROVISIONING_RETRY_DELAY_SECONDS)

        if result.changed:
            fields = list(result.diff.changed_fields)
            emit_accelerator_updated(meta, arn, fields)
            self.log_info(meta, f"Updated accelerator {arn}", reason="AcceleratorUpdated", accelerator_arn=arn, fields=fields)
        self._record_observed(patch, meta, conditions, result.observed, desired)

    def _discard_record(self, meta: dict[str, Any], patch: kopf.Patch, arn: str) -> None:
        """Forget an accelerator that no longer exists remotely."""
        self.log_warning(meta, f"Accelerator {arn} no longer exists, removing from status", reason="AcceleratorGone", accelerator_arn=arn)
        emit_accelerator_gone(meta, arn)
        metrics.drift_detected_total.labels(kind=KIND_ACCELERATOR, resource_type="removed").inc()
        patch.status.update({
            "acceleratorArn": None,
            "status": None,
            "dnsName": None,
            "ipSets": None,
            "appliedSpec": None,
        })

    def reconcile(
        self,
        spec: dict[str, Any],
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        correct_drift: bool = False,
    ) -> None:
        """Reconcile Accelerator resource.

        Args:
            spec: Accelerator CRD spec
            meta: Resource metadata
            status: Resource status (the persisted record)
            patch: Kopf patch object
            correct_drift: Diff against the observed accelerator instead of
                the last applied spec, so out-of-band changes are reverted
        """
        name = meta.get("name", "unknown")

        with trace_span("reconcile_accelerator", kind=KIND_ACCELERATOR, attributes={"accelerator.resource": name}):
            try:
                desired = create_desired_state_from_spec(spec)
            except ValueError as e:
                self.handle_validation_error(meta, str(e))

            reconciler = self.build_reconciler(spec, meta, status, patch)
            emit_validate_succeeded(meta)

            imported_arn = spec.get("acceleratorArn")
            arn = status.get("acceleratorArn") or imported_arn

            with bind_context(accelerator_arn=arn):
                self._converge(reconciler, arn, imported_arn, desired, meta, status, patch, correct_drift)

    def _converge(
        self,
        reconciler: AcceleratorReconciler,
        arn: str | None,
        imported_arn: str | None,
        desired: DesiredState,
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        correct_drift: bool,
    ) -> None:
        conditions = list(status.get("conditions", []))
        observed = None
        if arn:
            try:
                observed = reconciler.read(arn)
            except AcceleratorError as e:
                self._fail(meta, status, patch, e, set_update_failed_condition)
                return
            if observed is None:
                self._discard_record(meta, patch, arn)
                if arn == imported_arn:
                    raise kopf.PermanentError(f"Accelerator {arn} referenced by spec.acceleratorArn does not exist")

        if observed is None:
            self._create(reconciler, desired, meta, status, patch, conditions)
            return

        if observed.status != ACCELERATOR_STATUS_DEPLOYED:
            # A previous pass gave up waiting; wait again before mutating.
            try:
                reconciler.wait_for_deployed(arn, reconciler.update_timeout)
                observed = reconciler.read(arn)
            except AcceleratorError as e:
                self._fail(meta, status, patch, e, set_update_failed_condition, {"acceleratorArn": arn})
                return
            if observed is None:
                self._discard_record(meta, patch, arn)
                if arn == imported_arn:
                    raise kopf.PermanentError(f"Accelerator {arn} referenced by spec.acceleratorArn does not exist")
                self._create(reconciler, desired, meta, status, patch, conditions)
                return

        applied_spec = status.get("appliedSpec")
        if correct_drift or not applied_spec or status.get("acceleratorArn") != arn:
            previous = desired_state_from_observed(observed)
        else:
            previous = create_desired_state_from_spec(applied_spec)

        if correct_drift:
            drift = diff_desired_state(previous, desired)
            for field_name in drift.changed_fields:
                metrics.drift_detected_total.labels(kind=KIND_ACCELERATOR, resource_type=field_name).inc()
            if not drift.empty:
                self.log_info(
                    meta,
                    f"Drift detected on accelerator {arn}",
                    reason="DriftDetected",
                    fields=list(drift.changed_fields),
                )

        self._update(reconciler, arn, desired, previous, meta, status, patch, conditions)

    def delete(
        self,
        spec: dict[str, Any],
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
    ) -> None:
        """Handle Accelerator resource deletion."""
        arn = status.get("acceleratorArn")
        deletion_policy = spec.get("deletionPolicy", DELETION_POLICY_DELETE)

        self.log_info(meta, "Accelerator is being deleted", event="deletion", reason="Deletion",
                      accelerator_arn=arn, deletion_policy=deletion_policy)

        if not arn:
            self.remove_finalizer(meta, patch)
            return

        if deletion_policy == DELETION_POLICY_RETAIN:
            self.log_info(meta, f"Retaining accelerator {arn} per deletionPolicy=Retain",
                          reason="AcceleratorRetained", accelerator_arn=arn)
            self.remove_finalizer(meta, patch)
            return

        try:
            reconciler = self.build_reconciler(spec, meta, status, patch)
        except (kopf.PermanentError, kopf.TemporaryError, ValueError) as e:
            # Without a usable provider the accelerator cannot be reached
            self.log_error(meta, f"Cannot delete accelerator {arn}", error=e, reason="DeletionFailed", accelerator_arn=arn)
            self.remove_finalizer(meta, patch)
            return

        with trace_span("delete", kind=KIND_ACCELERATOR, attributes={"accelerator.arn": arn}):
            reconciler.delete(arn)

        emit_accelerator_deleted(meta, arn)
        self.log_info(meta, f"Deleted accelerator {arn}", reason="AcceleratorDeleted", accelerator_arn=arn)
        self.remove_finalizer(meta, patch)


# Global handler instance
_handler = AcceleratorHandler()


@kopf.on.create(API_GROUP_VERSION, KIND_ACCELERATOR)
@kopf.on.update(API_GROUP_VERSION, KIND_ACCELERATOR)
@kopf.on.resume(API_GROUP_VERSION, KIND_ACCELERATOR)
def handle_accelerator(
    spec: dict[str, Any],
    meta: dict[str, Any],
    status: dict[str, Any],
    patch: kopf.Patch,
    **kwargs: Any,
) -> None:
    """Handle Accelerator resource reconciliation."""
    _handler.ensure_finalizer(meta, patch)
    with _handler.claim(meta) as acquired:
        if not acquired:
            raise kopf.TemporaryError(
                "Another reconcile of this accelerator is running", delay=PROVISIONING_RETRY_DELAY_SECONDS
            )
        _handler.reconcile_with_metrics(meta, lambda: _handler.reconcile(spec, meta, status, patch))


@kopf.timer(API_GROUP_VERSION, KIND_ACCELERATOR, interval=DRIFT_CHECK_INTERVAL_SECONDS, idle=DRIFT_CHECK_INTERVAL_SECONDS)
def handle_accelerator_drift(
    spec: dict[str, Any],
    meta: dict[str, Any],
    status: dict[str, Any],
    patch: kopf.Patch,
    **kwargs: Any,
) -> None:
    """Periodically revert out-of-band changes to the accelerator."""
    if not status.get("acceleratorArn"):
        return
    with _handler.claim(meta) as acquired:
        if not acquired:
            # The running handler leaves the accelerator converged
            return
        _handler.reconcile_with_metrics(
            meta, lambda: _handler.reconcile(spec, meta, status, patch, correct_drift=True)
        )


@kopf.on.delete(API_GROUP_VERSION, KIND_ACCELERATOR)
def handle_accelerator_delete(
    spec: dict[str, Any],
    meta: dict[str, Any],
    status: dict[str, Any],
    patch: kopf.Patch,
    **kwargs: Any,
) -> None:
    """Handle Accelerator resource deletion."""
    with _handler.claim(meta) as acquired:
        if not acquired:
            raise kopf.TemporaryError(
                "Accelerator is still being reconciled", delay=PROVISIONING_RETRY_DELAY_SECONDS
            )
        _handler.delete(spec, meta, status, patch)

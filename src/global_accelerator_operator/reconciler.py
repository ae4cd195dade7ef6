"""Accelerator lifecycle reconciliation.

``AcceleratorReconciler`` drives one accelerator through create, read, update
and delete against an injected ``AcceleratorAPI``. Mutations are followed by a
blocking wait until the accelerator reports ``DEPLOYED``; the flow log
attributes sub-resource is only touched once the accelerator is stable.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Callable

from botocore.exceptions import BotoCoreError, ClientError

from . import metrics
from .constants import (
    ACCELERATOR_STATUS_DEPLOYED,
    ACCELERATOR_STATUS_IN_PROGRESS,
    DEFAULT_CREATE_TIMEOUT_SECONDS,
    DEFAULT_UPDATE_TIMEOUT_SECONDS,
    KIND_ACCELERATOR,
)
from .errors import (
    AcceleratorNotFoundError,
    AttributesReadError,
    AttributesUpdateFailedError,
    CreateFailedError,
    DeleteFailedError,
    UpdateFailedError,
)
from .projector import project_accelerator
from .services.aws.models import DesiredState, FlowLogConfig, ObservedState
from .services.globalaccelerator.base import AcceleratorAPI
from .tracing import trace_span
from .waiter import DEFAULT_MAX_INTERVAL, DEFAULT_MIN_INTERVAL, StateWaiter

logger = logging.getLogger(__name__)

PROVIDER_ERRORS = (BotoCoreError, ClientError, AcceleratorNotFoundError)

BASE_FIELDS = ("name", "ip_address_type", "enabled")


def new_idempotency_token() -> str:
    """Generate a unique token for a create request."""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class StateDiff:
    """Fields that differ between the previous and the new desired state."""

    changed_fields: tuple[str, ...] = ()

    @property
    def base_changed(self) -> bool:
        return any(f in BASE_FIELDS for f in self.changed_fields)

    @property
    def attributes_changed(self) -> bool:
        return "attributes" in self.changed_fields

    @property
    def empty(self) -> bool:
        return not self.changed_fields


def _optional_changed(previous: object, desired: object) -> bool:
    # Optional-computed values left unset keep whatever the provider has.
    return desired is not None and desired != previous


def _attributes_changed(previous: FlowLogConfig | None, desired: FlowLogConfig | None) -> bool:
    # Dropping the attributes block (count 1 -> 0) is not a change.
    if desired is None:
        return False
    if previous is None:
        return True
    return (
        desired.flow_logs_enabled != previous.flow_logs_enabled
        or _optional_changed(previous.flow_logs_s3_bucket or "", desired.flow_logs_s3_bucket)
        or _optional_changed(previous.flow_logs_s3_prefix or "", desired.flow_logs_s3_prefix)
    )


def diff_desired_state(previous: DesiredState, desired: DesiredState) -> StateDiff:
    """Compute which field groups need a remote mutation."""
    changed: list[str] = []
    if desired.name != previous.name:
        changed.append("name")
    if _optional_changed(previous.ip_address_type, desired.ip_address_type):
        changed.append("ip_address_type")
    if _optional_changed(previous.enabled, desired.enabled):
        changed.append("enabled")
    if _attributes_changed(previous.attributes, desired.attributes):
        changed.append("attributes")
    return StateDiff(tuple(changed))


@dataclass
class UpdateResult:
    """Outcome of a two-step update.

    The base-field step and the attributes step are applied independently;
    a failure in the second does not undo the first.
    """

    diff: StateDiff = field(default_factory=StateDiff)
    base_updated: bool = False
    attributes_updated: bool = False
    observed: ObservedState | None = None

    @property
    def changed(self) -> bool:
        return self.base_updated or self.attributes_updated


class AcceleratorReconciler:
    """Reconcile a single accelerator against the provider."""

    def __init__(
        self,
        api: AcceleratorAPI,
        create_timeout: float = DEFAULT_CREATE_TIMEOUT_SECONDS,
        update_timeout: float = DEFAULT_UPDATE_TIMEOUT_SECONDS,
        min_poll_interval: float = DEFAULT_MIN_INTERVAL,
        max_poll_interval: float = DEFAULT_MAX_INTERVAL,
        token_factory: Callable[[], str] = new_idempotency_token,
        waiter_factory: Callable[..., StateWaiter] = StateWaiter,
    ) -> None:
        self.api = api
        self.create_timeout = create_timeout
        self.update_timeout = update_timeout
        self.min_poll_interval = min_poll_interval
        self.max_poll_interval = max_poll_interval
        self.token_factory = token_factory
        self.waiter_factory = waiter_factory

    def _retrieve(self, arn: str) -> dict | None:
        try:
            return self.api.describe_accelerator(arn)
        except AcceleratorNotFoundError:
            return None

    def wait_for_deployed(self, arn: str, timeout: float) -> ObservedState:
        """Block until the accelerator reports DEPLOYED."""

        def refresh() -> tuple[ObservedState | None, str | None]:
            accelerator = self._retrieve(arn)
            if accelerator is None:
                return None, None
            observed = project_accelerator(accelerator)
            return observed, observed.status

        logger.debug(f"Waiting for Global Accelerator accelerator ({arn}) availability")
        with trace_span("wait_for_accelerator", kind=KIND_ACCELERATOR, attributes={"accelerator.arn": arn}):
            waiter = self.waiter_factory(
                refresh,
                pending={ACCELERATOR_STATUS_IN_PROGRESS},
                target={ACCELERATOR_STATUS_DEPLOYED},
                timeout=timeout,
                min_interval=self.min_poll_interval,
                max_interval=self.max_poll_interval,
                resource_id=arn,
            )
            return waiter.wait()

    def update_attributes(self, arn: str, attributes: FlowLogConfig) -> None:
        """Apply flow log attributes to a stable accelerator."""
        with trace_span("update_accelerator_attributes", kind=KIND_ACCELERATOR, attributes={"accelerator.arn": arn}):
            try:
                self.api.update_accelerator_attributes(
                    arn,
                    flow_logs_enabled=attributes.flow_logs_enabled,
                    flow_logs_s3_bucket=attributes.flow_logs_s3_bucket,
                    flow_logs_s3_prefix=attributes.flow_logs_s3_prefix,
                )
            except PROVIDER_ERRORS as e:
                metrics.accelerator_operations_total.labels(operation="update_attributes", result="failed").inc()
                raise AttributesUpdateFailedError(arn, e) from e
            metrics.accelerator_operations_total.labels(operation="update_attributes", result="success").inc()

    def create(self, desired: DesiredState) -> ObservedState:
        """Create an accelerator and wait until it is deployed.

        Raises:
            CreateFailedError: The create request failed
            ProvisioningTimeoutError: The accelerator did not deploy in time
            UnexpectedStatusError: The accelerator reported an unknown status
            AttributesUpdateFailedError: Applying flow log attributes failed
        """
        with trace_span("create_accelerator", kind=KIND_ACCELERATOR, attributes={"accelerator.name": desired.name}):
            try:
                accelerator = self.api.create_accelerator(
                    desired.name,
                    idempotency_token=self.token_factory(),
                    ip_address_type=desired.ip_address_type,
                    enabled=desired.enabled,
                )
            except PROVIDER_ERRORS as e:
                metrics.accelerator_operations_total.labels(operation="create", result="failed").inc()
                raise CreateFailedError(None, e) from e

            arn = accelerator["AcceleratorArn"]
            metrics.accelerator_operations_total.labels(operation="create", result="success").inc()
            logger.info(f"Created Global Accelerator accelerator {arn}")

            self.wait_for_deployed(arn, self.create_timeout)

            if desired.attributes is not None:
                self.update_attributes(arn, desired.attributes)

            observed = self.read(arn)
            if observed is None:
                raise AcceleratorNotFoundError(arn)
            return observed

    def read(self, arn: str) -> ObservedState | None:
        """Read the accelerator and its attributes.

        Returns:
            The observed state, or None if the accelerator no longer exists

        Raises:
            AttributesReadError: The attributes sub-resource could not be read
        """
        with trace_span("read_accelerator", kind=KIND_ACCELERATOR, attributes={"accelerator.arn": arn}):
            accelerator = self._retrieve(arn)
            if accelerator is None:
                logger.warning(f"Global Accelerator accelerator ({arn}) not found, removing from state")
                return None

            try:
                attributes = self.api.describe_accelerator_attributes(arn)
            except PROVIDER_ERRORS as e:
                raise AttributesReadError(arn, e) from e

            return project_accelerator(accelerator, attributes)

    def update(self, arn: str, desired: DesiredState, previous: DesiredState) -> UpdateResult:
        """Apply the fields that changed since ``previous``.

        Base fields and attributes are applied as two independent steps. If
        the attributes step fails the base step stays applied and the raised
        ``AttributesUpdateFailedError`` carries the partial result.

        Raises:
            UpdateFailedError: The base-field update request failed
            AttributesUpdateFailedError: Applying flow log attributes failed
            ProvisioningTimeoutError: The accelerator did not redeploy in time
            UnexpectedStatusError: The accelerator reported an unknown status
        """
        diff = diff_desired_state(previous, desired)
        result = UpdateResult(diff=diff)

        with trace_span("update_accelerator", kind=KIND_ACCELERATOR, attributes={"accelerator.arn": arn}):
            if diff.base_changed:
                logger.debug(f"Update Global Accelerator accelerator {arn}: {', '.join(diff.changed_fields)}")
                try:
                    self.api.update_accelerator(
                        arn,
                        name=desired.name,
                        ip_address_type=desired.ip_address_type,
                        enabled=desired.enabled,
                    )
                except PROVIDER_ERRORS as e:
                    metrics.accelerator_operations_total.labels(operation="update", result="failed").inc()
                    raise UpdateFailedError(arn, e) from e
                result.base_updated = True
                metrics.accelerator_operations_total.labels(operation="update", result="success").inc()

                self.wait_for_deployed(arn, self.update_timeout)

            if diff.attributes_changed and desired.attributes is not None:
                try:
                    self.update_attributes(arn, desired.attributes)
                except AttributesUpdateFailedError as e:
                    e.result = result
                    raise
                result.attributes_updated = True

            result.observed = self.read(arn)
            return result

    def delete(self, arn: str) -> None:
        """Delete the accelerator. A missing accelerator counts as deleted.

        Raises:
            DeleteFailedError: The delete request failed
        """
        with trace_span("delete_accelerator", kind=KIND_ACCELERATOR, attributes={"accelerator.arn": arn}):
            try:
                self.api.delete_accelerator(arn)
            except AcceleratorNotFoundError:
                logger.info(f"Global Accelerator accelerator ({arn}) already deleted")
                metrics.accelerator_operations_total.labels(operation="delete", result="not_found").inc()
                return
            except PROVIDER_ERRORS as e:
                metrics.accelerator_operations_total.labels(operation="delete", result="failed").inc()
                raise DeleteFailedError(arn, e) from e
            metrics.accelerator_operations_total.labels(operation="delete", result="success").inc()
            logger.info(f"Deleted Global Accelerator accelerator {arn}")

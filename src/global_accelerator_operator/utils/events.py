"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_ACCELERATOR_CREATED,
    EVENT_REASON_ACCELERATOR_DELETED,
    EVENT_REASON_ACCELERATOR_GONE,
    EVENT_REASON_ACCELERATOR_UPDATED,
    EVENT_REASON_PROVISIONING_TIMEOUT,
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_RECONCILE_STARTED,
    EVENT_REASON_VALIDATE_FAILED,
    EVENT_REASON_VALIDATE_SUCCEEDED,
)


def emit_event(
    meta: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Args:
        meta: Resource metadata
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        meta,
        reason=reason,
        message=message,
        type=type_,
    )


def emit_reconcile_started(meta: dict[str, Any]) -> None:
    """Emit reconcile started event."""
    emit_event(meta, EVENT_REASON_RECONCILE_STARTED, "Reconciliation started")


def emit_reconcile_failed(meta: dict[str, Any], message: str) -> None:
    """Emit reconcile failed event."""
    emit_event(meta, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_validate_succeeded(meta: dict[str, Any]) -> None:
    """Emit validation succeeded event."""
    emit_event(meta, EVENT_REASON_VALIDATE_SUCCEEDED, "Validation succeeded")


def emit_validate_failed(meta: dict[str, Any], message: str) -> None:
    """Emit validation failed event."""
    emit_event(meta, EVENT_REASON_VALIDATE_FAILED, message, type_="Warning")


def emit_accelerator_created(meta: dict[str, Any], arn: str) -> None:
    """Emit accelerator created event."""
    emit_event(meta, EVENT_REASON_ACCELERATOR_CREATED, f"Accelerator {arn} created")


def emit_accelerator_updated(meta: dict[str, Any], arn: str, fields: list[str]) -> None:
    """Emit accelerator updated event."""
    emit_event(meta, EVENT_REASON_ACCELERATOR_UPDATED, f"Accelerator {arn} updated: {', '.join(fields)}")


def emit_accelerator_deleted(meta: dict[str, Any], arn: str) -> None:
    """Emit accelerator deleted event."""
    emit_event(meta, EVENT_REASON_ACCELERATOR_DELETED, f"Accelerator {arn} deleted")


def emit_accelerator_gone(meta: dict[str, Any], arn: str) -> None:
    """Emit event for an accelerator removed outside the operator."""
    emit_event(meta, EVENT_REASON_ACCELERATOR_GONE, f"Accelerator {arn} no longer exists", type_="Warning")


def emit_provisioning_timeout(meta: dict[str, Any], message: str) -> None:
    """Emit provisioning timeout event."""
    emit_event(meta, EVENT_REASON_PROVISIONING_TIMEOUT, message, type_="Warning")

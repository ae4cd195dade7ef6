"""Utilities for managing Kubernetes conditions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ..constants import (
    COND_AUTH_VALID,
    COND_CREATION_FAILED,
    COND_ENDPOINT_REACHABLE,
    COND_PROVIDER_NOT_READY,
    COND_PROVISIONING,
    COND_READY,
    COND_UPDATE_FAILED,
)


def update_condition(
    conditions: list[dict[str, Any]],
    condition_type: str,
    status: str,
    reason: str,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Update or add a condition to the conditions list.

    Args:
        conditions: List of existing conditions
        condition_type: Type of condition
        status: Status of condition ("True", "False", "Unknown")
        reason: Reason for the condition
        message: Human-readable message
        observed_generation: Generation when condition was observed

    Returns:
        Updated list of conditions
    """
    now = datetime.now(timezone.utc).isoformat()

    existing_idx = None
    for idx, cond in enumerate(conditions):
        if cond.get("type") == condition_type:
            existing_idx = idx
            break

    new_condition = {
        "type": condition_type,
        "status": status,
        "reason": reason,
        "message": message,
        "lastTransitionTime": now,
    }

    if observed_generation is not None:
        new_condition["observedGeneration"] = observed_generation

    if existing_idx is not None:
        existing = conditions[existing_idx]
        # Only update lastTransitionTime if status changed
        if existing.get("status") == status:
            new_condition["lastTransitionTime"] = existing.get("lastTransitionTime", now)
        conditions[existing_idx] = new_condition
    else:
        conditions.append(new_condition)

    return conditions


def remove_condition(conditions: list[dict[str, Any]], condition_type: str) -> list[dict[str, Any]]:
    """Drop a condition type from the conditions list."""
    return [cond for cond in conditions if cond.get("type") != condition_type]


def set_ready_condition(
    conditions: list[dict[str, Any]],
    status: bool,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the Ready condition."""
    return update_condition(
        conditions,
        COND_READY,
        "True" if status else "False",
        "Ready" if status else "NotReady",
        message,
        observed_generation,
    )


def set_provider_not_ready_condition(
    conditions: list[dict[str, Any]],
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the ProviderNotReady condition."""
    return update_condition(
        conditions,
        COND_PROVIDER_NOT_READY,
        "True",
        "ProviderNotReady",
        message,
        observed_generation,
    )


def set_auth_valid_condition(
    conditions: list[dict[str, Any]],
    status: bool,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the AuthValid condition."""
    return update_condition(
        conditions,
        COND_AUTH_VALID,
        "True" if status else "False",
        "AuthValid" if status else "AuthInvalid",
        message,
        observed_generation,
    )


def set_endpoint_reachable_condition(
    conditions: list[dict[str, Any]],
    status: bool,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the EndpointReachable condition."""
    return update_condition(
        conditions,
        COND_ENDPOINT_REACHABLE,
        "True" if status else "False",
        "EndpointReachable" if status else "EndpointUnreachable",
        message,
        observed_generation,
    )


def set_creation_failed_condition(
    conditions: list[dict[str, Any]],
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the CreationFailed condition."""
    return update_condition(
        conditions,
        COND_CREATION_FAILED,
        "True",
        "CreationFailed",
        message,
        observed_generation,
    )


def set_update_failed_condition(
    conditions: list[dict[str, Any]],
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the UpdateFailed condition."""
    return update_condition(
        conditions,
        COND_UPDATE_FAILED,
        "True",
        "UpdateFailed",
        message,
        observed_generation,
    )


def set_provisioning_condition(
    conditions: list[dict[str, Any]],
    status: bool,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the Provisioning condition."""
    return update_condition(
        conditions,
        COND_PROVISIONING,
        "True" if status else "False",
        "InProgress" if status else "Deployed",
        message,
        observed_generation,
    )

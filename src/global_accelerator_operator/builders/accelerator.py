"""Builder for accelerator desired state and reconciler settings."""

from __future__ import annotations

import os
import re
from typing import Any

from ..constants import (
    DEFAULT_CREATE_TIMEOUT_SECONDS,
    DEFAULT_UPDATE_TIMEOUT_SECONDS,
    IP_ADDRESS_TYPES,
)
from ..services.aws.models import DesiredState, FlowLogConfig

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_DURATION_UNITS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}


def parse_duration(value: Any) -> float:
    """Parse a timeout given as seconds or as a duration like ``10m`` or ``1h30m``.

    Raises:
        ValueError: If the value is not a positive duration
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = str(value).strip()
        try:
            seconds = float(text)
        except ValueError:
            parts = _DURATION_PART.findall(text)
            if not parts or "".join(n + u for n, u in parts) != text:
                raise ValueError(f"Invalid duration: {value!r}") from None
            seconds = sum(float(n) * _DURATION_UNITS[u] for n, u in parts)

    if seconds <= 0:
        raise ValueError(f"Duration must be positive: {value!r}")
    return seconds


def resolve_timeouts(spec: dict[str, Any]) -> tuple[float, float]:
    """Resolve create and update wait timeouts.

    ``spec.timeouts`` wins over the ``ACCELERATOR_CREATE_TIMEOUT_SECONDS`` /
    ``ACCELERATOR_UPDATE_TIMEOUT_SECONDS`` environment variables, which win
    over the 5 minute defaults.
    """
    timeouts = spec.get("timeouts") or {}
    create = timeouts.get("create") or os.getenv(
        "ACCELERATOR_CREATE_TIMEOUT_SECONDS", DEFAULT_CREATE_TIMEOUT_SECONDS
    )
    update = timeouts.get("update") or os.getenv(
        "ACCELERATOR_UPDATE_TIMEOUT_SECONDS", DEFAULT_UPDATE_TIMEOUT_SECONDS
    )
    return parse_duration(create), parse_duration(update)


def create_flow_log_config(attributes: Any) -> FlowLogConfig | None:
    """Create flow log attributes from the CRD ``attributes`` block."""
    if attributes is None:
        return None
    # The block holds at most one item; accept the single-item list form too.
    if isinstance(attributes, list):
        if len(attributes) > 1:
            raise ValueError("attributes accepts at most one item")
        if not attributes:
            return None
        attributes = attributes[0]
    if not isinstance(attributes, dict):
        raise ValueError("attributes must be an object")

    enabled = bool(attributes.get("flowLogsEnabled", False))
    bucket = attributes.get("flowLogsS3Bucket")
    if enabled and not bucket:
        raise ValueError("flowLogsS3Bucket is required when flowLogsEnabled is true")

    return FlowLogConfig(
        flow_logs_enabled=enabled,
        flow_logs_s3_bucket=bucket,
        flow_logs_s3_prefix=attributes.get("flowLogsS3Prefix"),
    )


def create_desired_state_from_spec(spec: dict[str, Any]) -> DesiredState:
    """Create a desired state from an Accelerator CRD spec.

    Args:
        spec: Accelerator CRD spec (or a persisted ``appliedSpec``)

    Returns:
        Desired accelerator state

    Raises:
        ValueError: If the spec is invalid
    """
    name = spec.get("name")
    if not name:
        raise ValueError("accelerator name is required")

    ip_address_type = spec.get("ipAddressType")
    if ip_address_type is not None and ip_address_type not in IP_ADDRESS_TYPES:
        raise ValueError(
            f"ipAddressType must be one of {', '.join(IP_ADDRESS_TYPES)}, got {ip_address_type}"
        )

    enabled = spec.get("enabled")
    if enabled is not None and not isinstance(enabled, bool):
        raise ValueError("enabled must be a boolean")

    return DesiredState(
        name=name,
        ip_address_type=ip_address_type,
        enabled=enabled,
        attributes=create_flow_log_config(spec.get("attributes")),
    )

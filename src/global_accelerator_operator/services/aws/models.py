"""Models for Global Accelerator operations."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class FlowLogConfig:
    """Flow log attributes of an accelerator."""

    flow_logs_enabled: bool = False
    flow_logs_s3_bucket: str | None = None
    flow_logs_s3_prefix: str | None = None


@dataclass(frozen=True)
class DesiredState:
    """Accelerator configuration requested by the user.

    ``ip_address_type`` and ``enabled`` are optional: when left unset the
    provider picks the value and it is never sent in an update.
    """

    name: str
    ip_address_type: str | None = None
    enabled: bool | None = None
    attributes: FlowLogConfig | None = None


@dataclass(frozen=True)
class IpSet:
    """Static IP addresses assigned to an accelerator."""

    ip_addresses: list[str] = field(default_factory=list)
    ip_family: str = ""


@dataclass(frozen=True)
class ObservedState:
    """Accelerator as reported by the provider."""

    id: str
    status: str
    name: str
    ip_address_type: str = ""
    enabled: bool = False
    dns_name: str = ""
    ip_sets: list[IpSet] = field(default_factory=list)
    attributes: FlowLogConfig | None = None

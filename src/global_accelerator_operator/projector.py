"""Projection of provider responses into observed state.

All functions here are pure: no remote calls, no side effects.
"""

from __future__ import annotations

from typing import Any

from .services.aws.models import DesiredState, FlowLogConfig, IpSet, ObservedState


def flatten_ip_sets(ip_sets: list[dict[str, Any]] | None) -> list[IpSet]:
    """Flatten the provider IP sets, preserving server order."""
    return [
        IpSet(
            ip_addresses=list(ip_set.get("IpAddresses") or []),
            ip_family=ip_set.get("IpFamily") or "",
        )
        for ip_set in ip_sets or []
    ]


def flatten_attributes(attributes: dict[str, Any] | None) -> FlowLogConfig | None:
    """Flatten the attributes sub-resource.

    A missing sub-resource yields None; missing fields default to False or "".
    """
    if attributes is None:
        return None
    return FlowLogConfig(
        flow_logs_enabled=bool(attributes.get("FlowLogsEnabled", False)),
        flow_logs_s3_bucket=attributes.get("FlowLogsS3Bucket") or "",
        flow_logs_s3_prefix=attributes.get("FlowLogsS3Prefix") or "",
    )


def project_accelerator(
    accelerator: dict[str, Any],
    attributes: dict[str, Any] | None = None,
) -> ObservedState:
    """Translate a provider accelerator (and its attributes) into observed state."""
    return ObservedState(
        id=accelerator.get("AcceleratorArn") or "",
        status=accelerator.get("Status") or "",
        name=accelerator.get("Name") or "",
        ip_address_type=accelerator.get("IpAddressType") or "",
        enabled=bool(accelerator.get("Enabled", False)),
        dns_name=accelerator.get("DnsName") or "",
        ip_sets=flatten_ip_sets(accelerator.get("IpSets")),
        attributes=flatten_attributes(attributes),
    )


def desired_state_from_observed(observed: ObservedState) -> DesiredState:
    """Build the desired state that matches what the provider reports.

    Used as the diff baseline for accelerators adopted by ARN.
    """
    return DesiredState(
        name=observed.name,
        ip_address_type=observed.ip_address_type or None,
        enabled=observed.enabled,
        attributes=observed.attributes,
    )


def flow_log_config_to_dict(config: FlowLogConfig | None) -> dict[str, Any] | None:
    """Render flow log attributes in the CRD camelCase layout."""
    if config is None:
        return None
    return {
        "flowLogsEnabled": config.flow_logs_enabled,
        "flowLogsS3Bucket": config.flow_logs_s3_bucket or "",
        "flowLogsS3Prefix": config.flow_logs_s3_prefix or "",
    }


def desired_state_to_dict(desired: DesiredState) -> dict[str, Any]:
    """Render a desired state for persistence in the CRD status."""
    data: dict[str, Any] = {"name": desired.name}
    if desired.ip_address_type is not None:
        data["ipAddressType"] = desired.ip_address_type
    if desired.enabled is not None:
        data["enabled"] = desired.enabled
    if desired.attributes is not None:
        data["attributes"] = flow_log_config_to_dict(desired.attributes)
    return data


def observed_state_to_status(observed: ObservedState) -> dict[str, Any]:
    """Render an observed state in the CRD status layout."""
    return {
        "acceleratorArn": observed.id,
        "status": observed.status,
        "name": observed.name,
        "ipAddressType": observed.ip_address_type,
        "enabled": observed.enabled,
        "dnsName": observed.dns_name,
        "ipSets": [
            {"ipAddresses": list(ip_set.ip_addresses), "ipFamily": ip_set.ip_family}
            for ip_set in observed.ip_sets
        ],
        "attributes": flow_log_config_to_dict(observed.attributes),
    }

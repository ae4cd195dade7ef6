"""Base Global Accelerator API interface."""

from __future__ import annotations

from typing import Any, Protocol


class AcceleratorAPI(Protocol):
    """Protocol defining the accelerator operations the reconciler relies on.

    Implementations raise ``AcceleratorNotFoundError`` when the provider
    reports that the accelerator does not exist and propagate any other
    provider error unchanged.
    """

    def create_accelerator(
        self,
        name: str,
        idempotency_token: str,
        ip_address_type: str | None = None,
        enabled: bool | None = None,
    ) -> dict[str, Any]:
        """Create an accelerator and return its description."""
        ...

    def describe_accelerator(self, arn: str) -> dict[str, Any]:
        """Describe an accelerator."""
        ...

    def describe_accelerator_attributes(self, arn: str) -> dict[str, Any] | None:
        """Describe the flow log attributes of an accelerator."""
        ...

    def update_accelerator(
        self,
        arn: str,
        name: str | None = None,
        ip_address_type: str | None = None,
        enabled: bool | None = None,
    ) -> dict[str, Any]:
        """Update the base fields of an accelerator."""
        ...

    def update_accelerator_attributes(
        self,
        arn: str,
        flow_logs_enabled: bool,
        flow_logs_s3_bucket: str | None = None,
        flow_logs_s3_prefix: str | None = None,
    ) -> dict[str, Any]:
        """Update the flow log attributes of an accelerator."""
        ...

    def delete_accelerator(self, arn: str) -> None:
        """Delete an accelerator."""
        ...

    def test_connectivity(self) -> bool:
        """Test connectivity to the provider."""
        ...

"""AWS Global Accelerator client implementation."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from ... import metrics
from ...constants import DEFAULT_API_REGION, ERR_CODE_ACCELERATOR_NOT_FOUND
from ...errors import AcceleratorNotFoundError
from ...utils.errors import sanitize_dict
from ...utils.rate_limit import rate_limit_aws

logger = logging.getLogger(__name__)


def is_not_found_error(error: Exception) -> bool:
    """Check whether a botocore error reports a missing accelerator."""
    if not isinstance(error, ClientError):
        return False
    return error.response.get("Error", {}).get("Code") == ERR_CODE_ACCELERATOR_NOT_FOUND


class GlobalAcceleratorProvider:
    """AWS Global Accelerator provider implementation."""

    def __init__(
        self,
        access_key: str | None = None,
        secret_key: str | None = None,
        session_token: str | None = None,
        region: str | None = None,
        endpoint: str | None = None,
        max_attempts: int = 5,
    ) -> None:
        """Initialize Global Accelerator provider.

        Args:
            access_key: Access key ID (falls back to the default credential chain)
            secret_key: Secret access key
            session_token: Optional session token for temporary credentials
            region: API region (defaults to us-west-2)
            endpoint: Optional endpoint URL override
            max_attempts: Transport-level retry attempts handled by botocore
        """
        self.region = region or DEFAULT_API_REGION
        self.endpoint = endpoint

        config = Config(retries={"max_attempts": max_attempts, "mode": "standard"})

        self.client = boto3.client(
            "globalaccelerator",
            endpoint_url=endpoint,
            region_name=self.region,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            aws_session_token=session_token,
            config=config,
        )

    def _call(self, operation: str, arn: str | None, fn: Callable[..., Any], **params: Any) -> Any:
        """Invoke a client method with rate limiting, metrics and error translation."""
        start_time = time.time()
        try:
            response = rate_limit_aws(fn)(**params)
            metrics.api_call_total.labels(api_type="aws", operation=operation, result="success").inc()
            return response
        except ClientError as e:
            if is_not_found_error(e):
                metrics.api_call_total.labels(api_type="aws", operation=operation, result="not_found").inc()
                raise AcceleratorNotFoundError(arn or "", cause=e) from e
            metrics.api_call_total.labels(api_type="aws", operation=operation, result="error").inc()
            logger.error(f"Global Accelerator {operation} failed: {e}")
            raise
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="aws", operation=operation).observe(duration)

    def create_accelerator(
        self,
        name: str,
        idempotency_token: str,
        ip_address_type: str | None = None,
        enabled: bool | None = None,
    ) -> dict[str, Any]:
        """Create an accelerator."""
        params: dict[str, Any] = {"Name": name, "IdempotencyToken": idempotency_token}
        if ip_address_type is not None:
            params["IpAddressType"] = ip_address_type
        if enabled is not None:
            params["Enabled"] = enabled

        logger.debug(f"Create Global Accelerator accelerator: {sanitize_dict(params)}")
        response = self._call("create_accelerator", None, self.client.create_accelerator, **params)
        return response["Accelerator"]

    def describe_accelerator(self, arn: str) -> dict[str, Any]:
        """Describe an accelerator."""
        response = self._call(
            "describe_accelerator", arn, self.client.describe_accelerator, AcceleratorArn=arn
        )
        return response["Accelerator"]

    def describe_accelerator_attributes(self, arn: str) -> dict[str, Any] | None:
        """Describe the flow log attributes of an accelerator."""
        response = self._call(
            "describe_accelerator_attributes",
            arn,
            self.client.describe_accelerator_attributes,
            AcceleratorArn=arn,
        )
        return response.get("AcceleratorAttributes")

    def update_accelerator(
        self,
        arn: str,
        name: str | None = None,
        ip_address_type: str | None = None,
        enabled: bool | None = None,
    ) -> dict[str, Any]:
        """Update the base fields of an accelerator."""
        params: dict[str, Any] = {"AcceleratorArn": arn}
        if name is not None:
            params["Name"] = name
        if ip_address_type is not None:
            params["IpAddressType"] = ip_address_type
        if enabled is not None:
            params["Enabled"] = enabled

        logger.debug(f"Update Global Accelerator accelerator: {sanitize_dict(params)}")
        response = self._call("update_accelerator", arn, self.client.update_accelerator, **params)
        return response.get("Accelerator", {})

    def update_accelerator_attributes(
        self,
        arn: str,
        flow_logs_enabled: bool,
        flow_logs_s3_bucket: str | None = None,
        flow_logs_s3_prefix: str | None = None,
    ) -> dict[str, Any]:
        """Update the flow log attributes of an accelerator."""
        params: dict[str, Any] = {"AcceleratorArn": arn, "FlowLogsEnabled": flow_logs_enabled}
        if flow_logs_s3_bucket is not None:
            params["FlowLogsS3Bucket"] = flow_logs_s3_bucket
        if flow_logs_s3_prefix is not None:
            params["FlowLogsS3Prefix"] = flow_logs_s3_prefix

        logger.debug(f"Update Global Accelerator accelerator attributes: {sanitize_dict(params)}")
        response = self._call(
            "update_accelerator_attributes",
            arn,
            self.client.update_accelerator_attributes,
            **params,
        )
        return response.get("AcceleratorAttributes", {})

    def delete_accelerator(self, arn: str) -> None:
        """Delete an accelerator."""
        self._call("delete_accelerator", arn, self.client.delete_accelerator, AcceleratorArn=arn)

    def test_connectivity(self) -> bool:
        """Test connectivity to the Global Accelerator API."""
        try:
            self.client.list_accelerators(MaxResults=1)
            return True
        except ClientError as e:
            logger.warning(f"Global Accelerator connectivity test failed: {e}")
            return False

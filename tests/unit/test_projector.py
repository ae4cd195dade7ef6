"""Tests for projecting provider responses into observed state."""

from __future__ import annotations

from global_accelerator_operator.projector import (
    desired_state_from_observed,
    desired_state_to_dict,
    flatten_attributes,
    flatten_ip_sets,
    observed_state_to_status,
    project_accelerator,
)
from global_accelerator_operator.services.aws.models import DesiredState, FlowLogConfig, IpSet, ObservedState

ARN = "arn:aws:globalaccelerator::123456789012:accelerator/1234abcd"

ACCELERATOR = {
    "AcceleratorArn": ARN,
    "Name": "web",
    "IpAddressType": "IPV4",
    "Enabled": True,
    "Status": "DEPLOYED",
    "DnsName": "a1234abcd.awsglobalaccelerator.com",
    "IpSets": [
        {"IpFamily": "IPv4", "IpAddresses": ["75.2.0.1", "99.83.0.1"]},
        {"IpFamily": "IPv6", "IpAddresses": ["2600:9000::1"]},
    ],
}


class TestFlattenIpSets:
    """Test cases for flatten_ip_sets."""

    def test_preserves_order(self):
        """Test that IP sets keep the order reported by the provider."""
        ip_sets = flatten_ip_sets(ACCELERATOR["IpSets"])

        assert ip_sets == [
            IpSet(["75.2.0.1", "99.83.0.1"], "IPv4"),
            IpSet(["2600:9000::1"], "IPv6"),
        ]

    def test_empty(self):
        """Test that missing IP sets flatten to an empty list."""
        assert flatten_ip_sets(None) == []
        assert flatten_ip_sets([]) == []

    def test_missing_fields(self):
        """Test that a partial IP set gets empty defaults."""
        assert flatten_ip_sets([{}]) == [IpSet([], "")]


class TestFlattenAttributes:
    """Test cases for flatten_attributes."""

    def test_absent(self):
        """Test that a missing sub-resource stays absent."""
        assert flatten_attributes(None) is None

    def test_full(self):
        """Test that all flow log fields are carried over."""
        attributes = flatten_attributes(
            {"FlowLogsEnabled": True, "FlowLogsS3Bucket": "logs", "FlowLogsS3Prefix": "ga/"}
        )
        assert attributes == FlowLogConfig(True, "logs", "ga/")

    def test_defaults(self):
        """Test that missing fields default to False and empty strings."""
        assert flatten_attributes({}) == FlowLogConfig(False, "", "")


class TestProjectAccelerator:
    """Test cases for project_accelerator."""

    def test_project(self):
        """Test projection of a full accelerator with attributes."""
        observed = project_accelerator(ACCELERATOR, {"FlowLogsEnabled": False})

        assert observed.id == ARN
        assert observed.status == "DEPLOYED"
        assert observed.name == "web"
        assert observed.ip_address_type == "IPV4"
        assert observed.enabled is True
        assert observed.dns_name == "a1234abcd.awsglobalaccelerator.com"
        assert len(observed.ip_sets) == 2
        assert observed.attributes == FlowLogConfig(False, "", "")

    def test_project_without_attributes(self):
        """Test that the base entity projects without attributes."""
        assert project_accelerator(ACCELERATOR).attributes is None

    def test_project_is_pure(self):
        """Test that projection does not modify the response."""
        response = dict(ACCELERATOR)
        project_accelerator(response)
        assert response == ACCELERATOR


class TestStatusRendering:
    """Test cases for rendering state into the CRD status."""

    def test_observed_state_to_status(self):
        """Test the status layout of an observed accelerator."""
        observed = ObservedState(
            id=ARN,
            status="DEPLOYED",
            name="web",
            ip_address_type="IPV4",
            enabled=True,
            dns_name="a1.awsglobalaccelerator.com",
            ip_sets=[IpSet(["75.2.0.1"], "IPv4")],
            attributes=FlowLogConfig(True, "logs", ""),
        )

        status = observed_state_to_status(observed)

        assert status["acceleratorArn"] == ARN
        assert status["ipSets"] == [{"ipAddresses": ["75.2.0.1"], "ipFamily": "IPv4"}]
        assert status["attributes"] == {
            "flowLogsEnabled": True,
            "flowLogsS3Bucket": "logs",
            "flowLogsS3Prefix": "",
        }

    def test_desired_state_to_dict_omits_unset(self):
        """Test that unset optional fields are not persisted."""
        assert desired_state_to_dict(DesiredState(name="web")) == {"name": "web"}

    def test_desired_state_to_dict_full(self):
        """Test that set fields are persisted in camelCase."""
        data = desired_state_to_dict(
            DesiredState(name="web", ip_address_type="IPV4", enabled=False, attributes=FlowLogConfig(True, "logs"))
        )
        assert data == {
            "name": "web",
            "ipAddressType": "IPV4",
            "enabled": False,
            "attributes": {"flowLogsEnabled": True, "flowLogsS3Bucket": "logs", "flowLogsS3Prefix": ""},
        }

    def test_desired_state_from_observed(self):
        """Test that an observed accelerator converts back into a diff baseline."""
        observed = project_accelerator(ACCELERATOR, {"FlowLogsEnabled": True})

        desired = desired_state_from_observed(observed)

        assert desired == DesiredState(
            name="web",
            ip_address_type="IPV4",
            enabled=True,
            attributes=FlowLogConfig(True, "", ""),
        )

"""Tests for desired state diffing."""

from __future__ import annotations

import pytest

from global_accelerator_operator.reconciler import StateDiff, diff_desired_state
from global_accelerator_operator.services.aws.models import DesiredState, FlowLogConfig


class TestDiffDesiredState:
    """Test cases for diff_desired_state."""

    def test_identical(self):
        """Test that identical states produce an empty diff."""
        state = DesiredState(name="web", ip_address_type="IPV4", enabled=True)
        assert diff_desired_state(state, state).empty

    def test_name_change(self):
        """Test that a renamed accelerator changes the base group."""
        diff = diff_desired_state(DesiredState(name="web"), DesiredState(name="api"))

        assert diff.changed_fields == ("name",)
        assert diff.base_changed
        assert not diff.attributes_changed

    @pytest.mark.parametrize(
        "previous,desired,changed",
        [
            (None, False, True),
            (True, False, True),
            (False, False, False),
            (True, None, False),
        ],
    )
    def test_enabled(self, previous, desired, changed):
        """Test that enabled only changes when set to a new value."""
        diff = diff_desired_state(
            DesiredState(name="web", enabled=previous),
            DesiredState(name="web", enabled=desired),
        )
        assert ("enabled" in diff.changed_fields) is changed

    def test_ip_address_type_unset_is_not_a_change(self):
        """Test that an unset ip address type keeps the provider value."""
        diff = diff_desired_state(
            DesiredState(name="web", ip_address_type="IPV4"),
            DesiredState(name="web"),
        )
        assert diff.empty

    def test_attributes_added(self):
        """Test that adding an attributes block is a change."""
        diff = diff_desired_state(
            DesiredState(name="web"),
            DesiredState(name="web", attributes=FlowLogConfig(flow_logs_enabled=False)),
        )
        assert diff.changed_fields == ("attributes",)
        assert not diff.base_changed

    def test_attributes_removed(self):
        """Test that removing the attributes block is not a change."""
        diff = diff_desired_state(
            DesiredState(name="web", attributes=FlowLogConfig(flow_logs_enabled=True)),
            DesiredState(name="web"),
        )
        assert diff.empty

    def test_attributes_enabled_toggle(self):
        """Test that toggling flow logs is a change."""
        diff = diff_desired_state(
            DesiredState(name="web", attributes=FlowLogConfig(True, "logs", "ga/")),
            DesiredState(name="web", attributes=FlowLogConfig(False, "logs", "ga/")),
        )
        assert diff.attributes_changed

    def test_attributes_bucket_change(self):
        """Test that a new bucket is a change."""
        diff = diff_desired_state(
            DesiredState(name="web", attributes=FlowLogConfig(True, "logs", "")),
            DesiredState(name="web", attributes=FlowLogConfig(True, "other", None)),
        )
        assert diff.changed_fields == ("attributes",)

    def test_attributes_unset_bucket_matches_observed_empty(self):
        """Test that an unset bucket matches the empty value the provider reports."""
        diff = diff_desired_state(
            DesiredState(name="web", attributes=FlowLogConfig(False, "", "")),
            DesiredState(name="web", attributes=FlowLogConfig(False)),
        )
        assert diff.empty

    def test_base_and_attributes(self):
        """Test that both groups are reported together."""
        diff = diff_desired_state(
            DesiredState(name="web"),
            DesiredState(name="api", enabled=False, attributes=FlowLogConfig(True, "logs")),
        )
        assert diff.changed_fields == ("name", "enabled", "attributes")
        assert diff.base_changed
        assert diff.attributes_changed


class TestStateDiff:
    """Test cases for StateDiff."""

    def test_default_is_empty(self):
        """Test that a default diff is empty."""
        diff = StateDiff()
        assert diff.empty
        assert not diff.base_changed
        assert not diff.attributes_changed

"""Tests for Kubernetes event utilities."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from global_accelerator_operator.utils.events import (
    emit_accelerator_created,
    emit_accelerator_deleted,
    emit_accelerator_gone,
    emit_accelerator_updated,
    emit_event,
    emit_provisioning_timeout,
    emit_reconcile_failed,
    emit_reconcile_started,
    emit_validate_failed,
    emit_validate_succeeded,
)

META = {"name": "web", "namespace": "default"}
ARN = "arn:aws:globalaccelerator::123456789012:accelerator/1234abcd"


class TestEmitEvent:
    """Test cases for emit_event function."""

    @patch("global_accelerator_operator.utils.events.kopf.event")
    def test_emit_event_normal(self, mock_event):
        """Test emitting a normal event."""
        emit_event(META, "TestReason", "Test message")

        mock_event.assert_called_once_with(META, reason="TestReason", message="Test message", type="Normal")

    @patch("global_accelerator_operator.utils.events.kopf.event")
    def test_emit_event_warning(self, mock_event):
        """Test emitting a warning event."""
        emit_event(META, "ErrorReason", "Error occurred", type_="Warning")

        mock_event.assert_called_once_with(META, reason="ErrorReason", message="Error occurred", type="Warning")


class TestReconcileEvents:
    """Test cases for reconciliation and validation events."""

    @patch("global_accelerator_operator.utils.events.kopf.event")
    def test_emit_reconcile_started(self, mock_event):
        emit_reconcile_started(META)

        mock_event.assert_called_once_with(
            META, reason="ReconcileStarted", message="Reconciliation started", type="Normal"
        )

    @patch("global_accelerator_operator.utils.events.kopf.event")
    def test_emit_reconcile_failed(self, mock_event):
        emit_reconcile_failed(META, "Provider aws not found")

        mock_event.assert_called_once_with(
            META, reason="ReconcileFailed", message="Provider aws not found", type="Warning"
        )

    @patch("global_accelerator_operator.utils.events.kopf.event")
    def test_emit_validate_succeeded(self, mock_event):
        emit_validate_succeeded(META)

        assert mock_event.call_args.kwargs["reason"] == "ValidateSucceeded"

    @patch("global_accelerator_operator.utils.events.kopf.event")
    def test_emit_validate_failed(self, mock_event):
        emit_validate_failed(META, "name is required")

        assert mock_event.call_args.kwargs == {
            "reason": "ValidateFailed",
            "message": "name is required",
            "type": "Warning",
        }


class TestAcceleratorEvents:
    """Test cases for accelerator lifecycle events."""

    @pytest.mark.parametrize(
        "emit,reason,event_type",
        [
            (emit_accelerator_created, "AcceleratorCreated", "Normal"),
            (emit_accelerator_deleted, "AcceleratorDeleted", "Normal"),
            (emit_accelerator_gone, "AcceleratorGone", "Warning"),
        ],
    )
    @patch("global_accelerator_operator.utils.events.kopf.event")
    def test_lifecycle_events(self, mock_event, emit, reason, event_type):
        """Test that lifecycle events name the accelerator."""
        emit(META, ARN)

        kwargs = mock_event.call_args.kwargs
        assert kwargs["reason"] == reason
        assert kwargs["type"] == event_type
        assert ARN in kwargs["message"]

    @patch("global_accelerator_operator.utils.events.kopf.event")
    def test_emit_accelerator_updated(self, mock_event):
        """Test that the update event lists the changed fields."""
        emit_accelerator_updated(META, ARN, ["name", "attributes"])

        assert mock_event.call_args.kwargs["message"] == f"Accelerator {ARN} updated: name, attributes"

    @patch("global_accelerator_operator.utils.events.kopf.event")
    def test_emit_provisioning_timeout(self, mock_event):
        emit_provisioning_timeout(META, "Timeout after 300s")

        mock_event.assert_called_once_with(
            META, reason="ProvisioningTimeout", message="Timeout after 300s", type="Warning"
        )

"""Tests for structured logging."""

from __future__ import annotations

import json
import logging
from unittest.mock import MagicMock

from global_accelerator_operator.logging import log_resource_event, sanitize_secrets
from global_accelerator_operator.utils.context import bind_context, with_correlation_id


def emit(logger, **kwargs):
    log_resource_event(
        logger,
        controller="global-accelerator-operator",
        resource_kind="Accelerator",
        resource_name="web",
        namespace="default",
        uid="uid-1",
        event="info",
        reason="AcceleratorCreated",
        message="Created accelerator",
        **kwargs,
    )


class TestLogResourceEvent:
    """Test cases for log_resource_event."""

    def test_json_payload(self):
        """Test that events are logged as a single JSON document."""
        logger = MagicMock()

        emit(logger, accelerator_arn="arn:test", level=logging.WARNING)

        level, payload = logger.log.call_args.args
        data = json.loads(payload)
        assert level == logging.WARNING
        assert data["resource"] == "Accelerator"
        assert data["reason"] == "AcceleratorCreated"
        assert data["accelerator_arn"] == "arn:test"

    def test_correlation_id(self):
        """Test that the active correlation ID is included."""
        logger = MagicMock()

        with with_correlation_id("abc123"):
            emit(logger)

        assert json.loads(logger.log.call_args.args[1])["correlation_id"] == "abc123"

    def test_secrets_redacted(self):
        """Test that credential fields never reach the log."""
        logger = MagicMock()

        emit(logger, secret_key="wJalrXUtnFEMI")

        assert "wJalrXUtnFEMI" not in logger.log.call_args.args[1]


class TestSanitizeSecrets:
    """Test cases for sanitize_secrets."""

    def test_does_not_modify_input(self):
        data = {"access_key": "AKIA", "region": "us-west-2"}

        result = sanitize_secrets(data)

        assert result == {"access_key": "***REDACTED***", "region": "us-west-2"}
        assert data["access_key"] == "AKIA"

    def test_redacts_by_key_fragment(self):
        """Test that any field whose name looks like a credential is redacted."""
        result = sanitize_secrets({"aws_session_token": "FQoG", "sessionTokenSecretRef": "creds", "fields": ["name"]})

        assert result["aws_session_token"] == "***REDACTED***"
        assert result["sessionTokenSecretRef"] == "***REDACTED***"
        assert result["fields"] == ["name"]


class TestBoundContext:
    """Test cases for fields bound to the logging context."""

    def test_bound_arn_is_logged(self):
        logger = MagicMock()

        with bind_context(accelerator_arn="arn:aws:globalaccelerator::123456789012:accelerator/abc"):
            emit(logger)

        data = json.loads(logger.log.call_args.args[1])
        assert data["accelerator_arn"] == "arn:aws:globalaccelerator::123456789012:accelerator/abc"

    def test_none_values_are_dropped(self):
        logger = MagicMock()

        with bind_context(accelerator_arn=None):
            emit(logger)

        assert "accelerator_arn" not in json.loads(logger.log.call_args.args[1])

    def test_binding_ends_with_block(self):
        """Test that bound fields do not leak past the block."""
        logger = MagicMock()

        with bind_context(accelerator_arn="arn:one"):
            pass
        emit(logger)

        assert "accelerator_arn" not in json.loads(logger.log.call_args.args[1])

    def test_no_trace_ids_outside_span(self):
        logger = MagicMock()

        emit(logger)

        assert "trace_id" not in json.loads(logger.log.call_args.args[1])

"""Structured logging configuration for the Global Accelerator Operator."""

import json
import logging
import os
import sys
from typing import Any

from .utils.context import get_context_dict

# Third-party loggers that echo request parameters or are noisy below WARNING
QUIET_LOGGERS = ("botocore", "boto3", "urllib3", "kubernetes.client.rest")

# Key fragments that mark a log field as a credential
SECRET_KEY_MARKERS = ("secret", "password", "token", "access_key", "credential")

REDACTED = "***REDACTED***"


def setup_structured_logging() -> None:
    """Configure structured JSON logging.

    ``LOG_LEVEL`` sets the operator level; ``LIBRARY_LOG_LEVEL`` sets the
    level of the AWS and Kubernetes client libraries (default ``WARNING``).
    """
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    library_level = getattr(logging, os.getenv("LIBRARY_LOG_LEVEL", "WARNING").upper(), logging.WARNING)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(library_level)


def log_resource_event(
    logger: logging.Logger,
    controller: str,
    resource_kind: str,
    resource_name: str,
    namespace: str,
    uid: str,
    event: str,
    reason: str,
    message: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """Log a structured resource event.

    The record carries the resource identity, any fields bound to the current
    context (correlation id, accelerator ARN, trace ids) and ``kwargs`` with
    credentials redacted.
    """
    log_data = {
        "controller": controller,
        "resource": resource_kind,
        "name": resource_name,
        "namespace": namespace,
        "uid": uid,
        "event": event,
        "reason": reason,
        "message": message,
    }
    log_data.update(get_context_dict())
    log_data.update(sanitize_secrets(kwargs))
    logger.log(level, json.dumps(log_data, default=str))


def _is_secret_key(key: str) -> bool:
    lowered = key.lower()
    return any(marker in lowered for marker in SECRET_KEY_MARKERS)


def sanitize_secrets(log_data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``log_data`` with credential-like fields redacted."""
    return {key: REDACTED if _is_secret_key(key) else value for key, value in log_data.items()}

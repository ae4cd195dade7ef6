"""Main entry point for the Global Accelerator Operator.

Run with ``kopf run -m global_accelerator_operator.main``.
"""

from __future__ import annotations

import os
from typing import Any

import kopf

from . import handlers  # noqa: F401  registers the kopf handlers
from . import health
from . import logging as structured_logging
from .tracing import initialize_tracing, shutdown_tracing


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    """Configure the operator."""
    structured_logging.setup_structured_logging()
    initialize_tracing()

    # Keep kopf progress out of status, which holds the accelerator record
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()

    settings.posting.level = 0
    settings.networking.request_timeout = 30.0
    # Handlers block while waiting for deployment
    settings.execution.max_workers = int(os.getenv("MAX_WORKERS", "4"))

    metrics_port = int(os.getenv("METRICS_PORT", "8080"))
    health.start_server(metrics_port)
    health.set_ready()


@kopf.on.cleanup()
def shutdown(**_: Any) -> None:
    """Report not-ready and flush pending spans."""
    health.set_ready(False)
    shutdown_tracing()

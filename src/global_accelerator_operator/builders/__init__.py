"""Builders for provider clients and accelerator desired state."""

from .accelerator import create_desired_state_from_spec, resolve_timeouts
from .provider import create_provider_from_spec

__all__ = ["create_desired_state_from_spec", "create_provider_from_spec", "resolve_timeouts"]

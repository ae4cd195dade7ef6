"""Kubernetes operator for AWS Global Accelerator accelerators."""

__version__ = "0.1.0"

"""Global Accelerator API interface."""

"""AWS Global Accelerator client and models."""

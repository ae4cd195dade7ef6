"""Provider service clients."""

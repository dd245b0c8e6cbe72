"""Per-user session control."""

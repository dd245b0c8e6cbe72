"""Quest data providers."""

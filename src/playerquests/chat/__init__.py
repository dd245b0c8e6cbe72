"""Chat prompt bridge."""

"""GUI templates, models, dynamic screens and interaction handling."""

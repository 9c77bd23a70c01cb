"""Per-frame pipeline stages."""

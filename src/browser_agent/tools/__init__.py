"""Model-facing tools."""

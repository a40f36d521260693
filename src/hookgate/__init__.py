"""hookgate: permission-gated lifecycle hooks for agent platforms."""

__version__ = "0.1.0"

"""Site publish filter, related-item resolution and dispatch engine."""

__version__ = "0.1.0"

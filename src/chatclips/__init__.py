"""Chat-spike highlight detection and clip extraction pipeline."""

__version__ = "0.1.0"

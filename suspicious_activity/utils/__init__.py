"""Utility functions for the analysis client."""

from suspicious_activity.utils.formatting import ensure_utc, format_duration, format_size

__all__ = ["ensure_utc", "format_duration", "format_size"]

"""Suspicious-activity video analysis client for the condominium admin console."""

__version__ = "0.3.0"

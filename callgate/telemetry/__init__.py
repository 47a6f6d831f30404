"""Logging for limiter activity.

This package emits deterministic per-key limiter events for auditing.
"""

from .logger import LimiterEventLogger, configure_logging

__all__ = ["LimiterEventLogger", "configure_logging"]

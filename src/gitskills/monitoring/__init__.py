"""Run monitoring and API usage counters."""

from .metrics import RunStats

__all__ = ["RunStats"]

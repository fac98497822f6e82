"""Services package for external collaborators of the sync client."""

from .stats_reporter import StatsReporter, StatsTotals

__all__ = [
    "StatsReporter",
    "StatsTotals",
]

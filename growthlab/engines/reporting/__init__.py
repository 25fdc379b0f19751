"""
Reporting Engine - statistics and the deadline watchlist.
"""

from growthlab.engines.reporting.aggregator import ReportingService, build_report
from growthlab.engines.reporting.deadlines import classify, sort_watchlist, upcoming_deadlines

__all__ = [
    "ReportingService",
    "build_report",
    "classify",
    "sort_watchlist",
    "upcoming_deadlines",
]

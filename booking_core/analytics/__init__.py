from booking_core.analytics.aggregation import (
    StatisticsCalculator,
    get_statistics,
    get_time_series,
)
from booking_core.analytics.dashboard import build_dashboard_summary

__all__ = ["StatisticsCalculator", "get_statistics", "get_time_series", "build_dashboard_summary"]

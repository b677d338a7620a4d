"""
Analytics: dimension breakdowns, trend series, pivots and commentary.
"""

from .breakdowns import (
    add_pivot_totals,
    breakdown_by,
    build_category_pivot,
    build_cluster_pivot,
    calculate_breakdown,
    category_trends,
    monthly_trend,
    weekly_trend,
)
from .insights import generate_category_insights, generate_monthly_insights, generate_weekly_insights
from .trend_patterns import TrendPattern, analyze_trend_pattern

__all__ = [
    "TrendPattern",
    "add_pivot_totals",
    "analyze_trend_pattern",
    "breakdown_by",
    "build_category_pivot",
    "build_cluster_pivot",
    "calculate_breakdown",
    "category_trends",
    "generate_category_insights",
    "generate_monthly_insights",
    "generate_weekly_insights",
    "monthly_trend",
    "weekly_trend",
]

"""Turn count series into short, severity-tagged commentary.

Callouts are generated in a fixed priority order and the list is capped at
three entries:

  1. latest vs. previous period change (or a stable-volume note)
  2. volatility (4+ points)
  3. accelerating growth
  4. deviation of the latest period from the series average (> 30%)
  5. first-to-last change over 3+ points (> 25%)

Monthly series use the same thresholds with calendar-month wording and may
add seasonal-variation and sustained-direction callouts after the shared ones.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, replace
from typing import Callable, Dict, List, Literal, Optional, Sequence

import pandas as pd

from ..standards.schemas import TrendPoint
from .breakdowns import MONTH_ABBR
from .trend_patterns import TrendPattern, analyze_trend_pattern


LOGGER = logging.getLogger("ticketpulse.analytics")

Severity = Literal["critical", "warning", "positive", "neutral"]

SEVERITY_ICONS: Dict[str, str] = {
    "critical": "alert",
    "warning": "warning",
    "positive": "success",
    "neutral": "info",
}
MAX_INSIGHTS = 3
DEVIATION_THRESHOLD = 30.0
OVERALL_THRESHOLD = 25.0
SEASONAL_MIN_POINTS = 6
SEASONAL_RANGE_THRESHOLD = 50.0
CATEGORY_MIN_CHANGE = 5.0
CATEGORY_WARNING = 15.0
CATEGORY_CRITICAL = 30.0

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


@dataclass(frozen=True)
class TrendInsight:
    severity: Severity
    title: str
    message: str
    recommendation: Optional[str] = None
    icon: str = "info"
    percent_change: Optional[float] = None
    kind: str = ""

    def to_dict(self) -> Dict[str, object]:
        return {k: v for k, v in asdict(self).items() if v is not None}


def _insight(severity: Severity, title: str, message: str, recommendation: Optional[str] = None,
             percent_change: Optional[float] = None, kind: str = "") -> TrendInsight:
    return TrendInsight(
        severity=severity,
        title=title,
        message=message,
        recommendation=recommendation,
        icon=SEVERITY_ICONS[severity],
        percent_change=percent_change,
        kind=kind,
    )


def format_month(period: str) -> str:
    """``"Jan 2025"`` or ``"2025-01"`` -> ``"January 2025"``; anything else unchanged."""
    text = (period or "").strip()
    parts = text.split(" ")
    if len(parts) == 2 and "-" not in text:
        abbr, year = parts
        if abbr[:3].title() in MONTH_ABBR:
            return f"{MONTH_NAMES[MONTH_ABBR.index(abbr[:3].title())]} {year}"
        return text
    parts = text.split("-")
    if len(parts) == 2 and parts[0].isdigit() and parts[1].isdigit() and 1 <= int(parts[1]) <= 12:
        return f"{MONTH_NAMES[int(parts[1]) - 1]} {parts[0]}"
    return text


@dataclass(frozen=True)
class _Scale:
    unit: str
    moderate: float
    major: float
    label: Callable[[str], str]


WEEKLY_SCALE = _Scale(unit="week", moderate=20.0, major=50.0, label=lambda p: p)
MONTHLY_SCALE = _Scale(unit="month", moderate=20.0, major=50.0, label=format_month)


def _weekly_change(latest: TrendPoint, previous: TrendPoint, change: int, magnitude: float,
                   pattern: TrendPattern) -> TrendInsight:
    if change > 0:
        if magnitude > WEEKLY_SCALE.major:
            return _insight(
                "critical",
                "Significant Spike Detected",
                f"Ticket volume surged by {change} tickets ({magnitude:.0f}% increase) in {latest.period}. "
                "This is a major deviation from normal patterns.",
                "Immediate investigation recommended. Check for system outages, new deployments, "
                "or emerging issues affecting multiple users.",
            )
        if magnitude > WEEKLY_SCALE.moderate:
            return _insight(
                "warning",
                "Notable Increase in Volume",
                f"{latest.period} saw {change} more tickets than {previous.period} "
                f"({magnitude:.1f}% increase). This uptick warrants attention.",
                "Review recent changes, monitor for patterns, and consider allocating additional "
                "support resources if trend continues.",
            )
        return _insight(
            "warning",
            "Slight Uptick Observed",
            f"Ticket volume increased modestly by {change} tickets ({magnitude:.1f}%) in {latest.period}.",
            "Monitor closely - this could be the start of a larger trend."
            if pattern.momentum == "accelerating"
            else "Normal fluctuation, but keep an eye on it.",
        )

    drop = abs(change)
    if magnitude > WEEKLY_SCALE.major:
        return _insight(
            "positive",
            "Dramatic Improvement",
            f"Ticket volume dropped by {drop} tickets ({magnitude:.0f}% decrease) in {latest.period}. "
            "This is a substantial improvement.",
            "Document what went well. Consider if recent initiatives (training, fixes, process "
            "improvements) contributed to this success.",
        )
    if magnitude > WEEKLY_SCALE.moderate:
        return _insight(
            "positive",
            "Significant Reduction",
            f"{latest.period} shows strong improvement with {drop} fewer tickets than {previous.period} "
            f"({magnitude:.1f}% decrease).",
            "Positive trend. Identify contributing factors to sustain this improvement.",
        )
    return _insight(
        "positive",
        "Modest Improvement",
        f"Ticket volume decreased by {drop} tickets ({magnitude:.1f}%) in {latest.period}.",
        "Heading in the right direction. Continue current practices.",
    )


def _monthly_change(latest: TrendPoint, previous: TrendPoint, change: int, magnitude: float,
                    pattern: TrendPattern) -> TrendInsight:
    current, prior = format_month(latest.period), format_month(previous.period)
    if change > 0:
        if magnitude > MONTHLY_SCALE.major:
            return _insight(
                "critical",
                "Major Monthly Increase",
                f"{current} experienced a significant surge with {change} more tickets than {prior} "
                f"({magnitude:.0f}% increase).",
                "This level of increase over a full month indicates a serious trend. Conduct "
                "comprehensive analysis and consider strategic interventions.",
            )
        if magnitude > MONTHLY_SCALE.moderate:
            return _insight(
                "warning",
                "Monthly Volume Rising",
                f"{current} saw {change} additional tickets compared to the previous month "
                f"({magnitude:.1f}% increase).",
                "Monitor for seasonal patterns or emerging issues. Consider capacity planning if trend persists.",
            )
        return _insight(
            "neutral",
            "Slight Monthly Increase",
            f"{current} had {change} more tickets ({magnitude:.1f}% increase). This is within normal variation.",
        )

    drop = abs(change)
    if magnitude > MONTHLY_SCALE.major:
        return _insight(
            "positive",
            "Outstanding Monthly Performance",
            f"{current} achieved remarkable results with {drop} fewer tickets than {prior} "
            f"({magnitude:.0f}% reduction).",
            "Exceptional performance! Analyze what drove this success and institutionalize those practices.",
        )
    if magnitude > MONTHLY_SCALE.moderate:
        return _insight(
            "positive",
            "Strong Monthly Improvement",
            f"{current} shows solid improvement with {drop} fewer tickets ({magnitude:.1f}% decrease).",
            "Positive momentum. Identify and reinforce contributing factors.",
        )
    return _insight(
        "positive",
        "Modest Monthly Improvement",
        f"{current} had {drop} fewer tickets ({magnitude:.1f}% decrease).",
    )


def _shared_insights(
    points: Sequence[TrendPoint],
    pattern: TrendPattern,
    scale: _Scale,
    change_insight: Callable[..., TrendInsight],
) -> List[TrendInsight]:
    insights: List[TrendInsight] = []
    latest, previous, first = points[-1], points[-2], points[0]
    n = len(points)
    unit = scale.unit
    change = latest.count - previous.count
    percent_change = change / previous.count * 100.0 if previous.count > 0 else 0.0
    average = sum(p.count for p in points) / n

    if change != 0:
        base = change_insight(latest, previous, change, abs(percent_change), pattern)
        insights.append(replace(base, percent_change=percent_change, kind="period_change"))
    else:
        insights.append(_insight(
            "neutral",
            "Stable Volume",
            f"{scale.label(latest.period)} maintained the same ticket volume as "
            f"{scale.label(previous.period)} ({latest.count} tickets). "
            "Consistency can indicate predictable demand.",
            percent_change=0.0,
            kind="period_change",
        ))

    if pattern.is_volatile and n >= 4:
        insights.append(_insight(
            "warning",
            "High Volatility Detected",
            f"Ticket volume is fluctuating significantly {unit}-to-{unit}. "
            "This unpredictability makes resource planning challenging.",
            "Investigate root causes of volatility. Look for recurring patterns (e.g., weekly cycles, "
            "deployment schedules) or external factors.",
            kind="volatility",
        ))

    if pattern.momentum == "accelerating" and pattern.is_increasing:
        insights.append(_insight(
            "critical",
            "Accelerating Growth",
            f"The rate of increase is accelerating - each {unit} shows larger jumps than the previous. "
            "This suggests a growing problem.",
            "Urgent action needed. This pattern often indicates a systemic issue that's compounding. "
            "Escalate to leadership.",
            kind="momentum",
        ))

    if average > 0:
        deviation = (latest.count - average) / average * 100.0
        if abs(deviation) > DEVIATION_THRESHOLD:
            above = deviation > 0
            insights.append(_insight(
                "warning" if above else "positive",
                "Well Above Average" if above else "Well Below Average",
                f"Current {unit} is {abs(deviation):.0f}% {'above' if above else 'below'} the "
                f"{n}-{unit} average of {average:.1f} tickets.",
                "This is significantly higher than typical. Ensure adequate staffing and prioritize critical issues."
                if above
                else "Enjoying a quieter period. Good time for proactive work, training, or addressing technical debt.",
                percent_change=deviation,
                kind="deviation",
            ))

    if n >= 3:
        overall = latest.count - first.count
        overall_percent = overall / first.count * 100.0 if first.count > 0 else 0.0
        if abs(overall_percent) > OVERALL_THRESHOLD:
            rising = overall > 0
            direction = "increased" if rising else "decreased"
            insights.append(_insight(
                "warning" if rising else "positive",
                f"{n}-{unit.title()} Trend: {direction.title()}",
                f"Over the past {n} {unit}s, ticket volume has {direction} by {abs(overall_percent):.0f}% "
                f"(from {first.count} to {latest.count}). "
                f"This {'concerning' if rising else 'encouraging'} trend deserves attention.",
                "Long-term upward trend suggests systemic issues. Consider root cause analysis, process "
                "improvements, or capacity planning."
                if rising
                else "Sustained improvement is excellent. Document success factors and ensure they're maintained.",
                percent_change=overall_percent,
                kind="overall_trend",
            ))
    return insights


def _insufficient(unit: str) -> List[TrendInsight]:
    return [_insight(
        "neutral",
        "Insufficient Data",
        f"Need at least 2 {unit}s of data to generate meaningful insights.",
        kind="insufficient_data",
    )]


def generate_weekly_insights(
    points: Sequence[TrendPoint],
    pattern: Optional[TrendPattern] = None,
) -> List[TrendInsight]:
    """Up to three callouts for a weekly series (20% / 50% change thresholds)."""
    if len(points) < 2:
        return _insufficient("week")
    pattern = pattern or analyze_trend_pattern(points)
    insights = _shared_insights(points, pattern, WEEKLY_SCALE, _weekly_change)
    LOGGER.debug("Generated %d weekly callouts for %d points", len(insights), len(points))
    return insights[:MAX_INSIGHTS]


def _seasonal_insight(points: Sequence[TrendPoint]) -> Optional[TrendInsight]:
    if len(points) < SEASONAL_MIN_POINTS:
        return None
    average = sum(p.count for p in points) / len(points)
    if average <= 0:
        return None
    # first occurrence wins on ties
    peak = max(points, key=lambda p: p.count)
    low = min(points, key=lambda p: p.count)
    range_percent = (peak.count - low.count) / average * 100.0
    if range_percent <= SEASONAL_RANGE_THRESHOLD:
        return None
    return _insight(
        "warning",
        "High Seasonal Variation",
        f"Ticket volume varies significantly across months. Peak was {peak.count} in "
        f"{format_month(peak.period)}, low was {low.count} in {format_month(low.period)} "
        f"({range_percent:.0f}% variation).",
        "Consider flexible staffing models or identify seasonal drivers to better manage peak periods.",
        percent_change=range_percent,
        kind="seasonal",
    )


def _sustained_insight(points: Sequence[TrendPoint], pattern: TrendPattern) -> Optional[TrendInsight]:
    if len(points) < 3:
        return None
    if pattern.is_increasing:
        return _insight(
            "warning",
            "Sustained Upward Trend",
            "Ticket volume has been consistently increasing over multiple months. "
            "This pattern suggests growing demand or unresolved systemic issues.",
            "Strategic review needed. Consider root cause analysis, process optimization, or capacity expansion.",
            kind="sustained_trend",
        )
    if pattern.is_decreasing:
        return _insight(
            "positive",
            "Sustained Improvement",
            "Ticket volume has been consistently decreasing over multiple months.",
            "Document and share success stories. Ensure improvements are sustainable.",
            kind="sustained_trend",
        )
    return None


def generate_monthly_insights(
    points: Sequence[TrendPoint],
    pattern: Optional[TrendPattern] = None,
) -> List[TrendInsight]:
    """Up to three callouts for a monthly series (20% / 50% change thresholds).

    The shared callouts come first, then seasonal variation (6+ months) and
    sustained direction (3+ months), then the cap is applied.
    """
    if len(points) < 2:
        return _insufficient("month")
    pattern = pattern or analyze_trend_pattern(points)
    insights = _shared_insights(points, pattern, MONTHLY_SCALE, _monthly_change)
    for extra in (_seasonal_insight(points), _sustained_insight(points, pattern)):
        if extra is not None:
            insights.append(extra)
    LOGGER.debug("Generated %d monthly callouts for %d points", len(insights), len(points))
    return insights[:MAX_INSIGHTS]


@dataclass(frozen=True)
class CategoryInsight:
    category: str
    change: int
    percent_change: float
    trend: Literal["increase", "decrease", "stable"]
    severity: Severity
    root_cause: str = ""
    recommendation: str = ""

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


def generate_category_insights(rows: pd.DataFrame, categories: Optional[Sequence[str]] = None) -> List[CategoryInsight]:
    """Month-over-month movement of each category in a ``category_trends`` table.

    Only moves above 5% are reported (a category with no tickets in the
    previous period has no percent change and is skipped). Sorted by absolute
    percent change, largest first.
    """

    if rows is None or len(rows) < 2:
        return []
    categories = list(categories) if categories is not None else list(rows.columns)
    latest, previous = rows.iloc[-1], rows.iloc[-2]

    found: List[CategoryInsight] = []
    for category in categories:
        latest_count = int(latest.get(category, 0) or 0)
        previous_count = int(previous.get(category, 0) or 0)
        change = latest_count - previous_count
        percent_change = change / previous_count * 100.0 if previous_count > 0 else 0.0
        if abs(percent_change) <= CATEGORY_MIN_CHANGE:
            continue

        if change > 0:
            if percent_change > CATEGORY_CRITICAL:
                found.append(CategoryInsight(
                    category, change, percent_change, "increase", "critical",
                    "Significant spike detected. Possible causes: system issues, knowledge gaps, or process changes.",
                    "Immediate investigation required. Review recent changes and provide targeted training.",
                ))
            elif percent_change > CATEGORY_WARNING:
                found.append(CategoryInsight(
                    category, change, percent_change, "increase", "warning",
                    "Moderate increase observed. May indicate emerging issues or seasonal patterns.",
                    "Monitor closely. Consider proactive communication to users.",
                ))
            else:
                found.append(CategoryInsight(category, change, percent_change, "increase", "neutral"))
        else:
            found.append(CategoryInsight(
                category, change, percent_change, "decrease", "positive",
                "Improvement detected. Possible causes: training effectiveness, system fixes, or better documentation.",
                "Document success factors. Share best practices with other teams.",
            ))

    return sorted(found, key=lambda i: abs(i.percent_change), reverse=True)

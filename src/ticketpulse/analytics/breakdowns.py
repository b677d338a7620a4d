from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import pandas as pd

from ..categories.normalizer import normalize_category
from ..categories.services import ServiceDefinition, filter_service_records, resolve_service
from ..standards.schemas import PRIORITY_CODES, CategoryBreakdown, TicketRecord, TrendPoint


LOGGER = logging.getLogger("ticketpulse.analytics")

PRIORITY_ORDER = PRIORITY_CODES + ("Unassigned",)
MONTH_ABBR = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
PIVOT_INDEX = "third_lvl_category"
TOTAL_COLUMN = "Total"
TOTAL_ROW = "TOTAL"
BLANK_CLUSTER = "Blank"

_WEEK_NUMBER_RX = re.compile(r"(\d+)")

KeyFunc = Callable[[TicketRecord], Optional[str]]


def _label(value: Optional[str], default: str) -> str:
    if value is None:
        return default
    text = str(value)
    return text if text.strip() else default


def calculate_breakdown(
    records: Sequence[TicketRecord],
    key: Union[str, KeyFunc],
    default: str = "Unknown",
    top_n: Optional[int] = None,
    order: Optional[Sequence[str]] = None,
) -> List[CategoryBreakdown]:
    """Count records per dimension value.

    Sorted by descending count with ties kept in first-occurrence order, or by
    the position in ``order`` when given (unknown values last). ``top_n``
    truncates after sorting; percentages always use the full record count.
    """

    records = list(records)
    total = len(records)
    if total == 0:
        return []
    extract: KeyFunc = key if callable(key) else (lambda r, _f=key: r.get(_f))
    labels = pd.Series([_label(extract(r), default) for r in records], dtype="object")
    counts = labels.groupby(labels, sort=False).size()

    if order is not None:
        rank = {value: idx for idx, value in enumerate(order)}
        ordered = sorted(counts.items(), key=lambda kv: rank.get(kv[0], len(rank)))
    else:
        ordered = list(counts.sort_values(ascending=False, kind="stable").items())
    if top_n is not None:
        ordered = ordered[:top_n]

    return [
        CategoryBreakdown(category=str(value), count=int(count), percentage=float(count) / total * 100.0)
        for value, count in ordered
    ]


@dataclass(frozen=True)
class DimensionSpec:
    field: str
    default: str
    top_n: Optional[int] = None
    order: Optional[Sequence[str]] = None


DIMENSIONS: Mapping[str, DimensionSpec] = MappingProxyType({
    "category": DimensionSpec("third_lvl_category", "Uncategorized"),
    "priority": DimensionSpec("priority", "Unassigned", order=PRIORITY_ORDER),
    "status": DimensionSpec("status", "Unknown"),
    "cluster": DimensionSpec("cluster", "Unassigned"),
    "affiliate": DimensionSpec("affiliate", "Unassigned", top_n=15),
    "record_type": DimensionSpec("service_record_type", "Unknown", top_n=10),
    "support_group": DimensionSpec("support_group", "Unassigned", top_n=10),
    "initiator": DimensionSpec("initiator", "Unknown", top_n=10),
})


def breakdown_by(
    records: Sequence[TicketRecord],
    dimension: str,
    top_n: Optional[int] = None,
) -> List[CategoryBreakdown]:
    """Breakdown for a named dimension; ``top_n`` overrides the dimension's default limit."""
    try:
        dim = DIMENSIONS[dimension]
    except KeyError:
        raise ValueError(f"Unknown dimension: {dimension!r}. Expected one of {sorted(DIMENSIONS)}") from None
    limit = top_n if top_n is not None else dim.top_n
    return calculate_breakdown(records, dim.field, dim.default, top_n=limit, order=dim.order)


def all_breakdowns(
    records: Sequence[TicketRecord],
    top_n_affiliates: int = 15,
    top_n_default: int = 10,
) -> Dict[str, List[CategoryBreakdown]]:
    out: Dict[str, List[CategoryBreakdown]] = {}
    for name, dim in DIMENSIONS.items():
        limit = None
        if dim.top_n is not None:
            limit = top_n_affiliates if name == "affiliate" else top_n_default
        out[name] = breakdown_by(records, name, top_n=limit)
    return out


def week_sort_key(label: str) -> int:
    m = _WEEK_NUMBER_RX.search(label or "")
    return int(m.group(1)) if m else 0


def weekly_trend(records: Iterable[TicketRecord]) -> List[TrendPoint]:
    """Ticket counts per ``week_label``, ordered by the embedded week number."""
    labels = [r.week_label for r in records if r.week_label]
    if not labels:
        return []
    counts = pd.Series(labels, dtype="object").value_counts(sort=False)
    ordered = sorted(counts.items(), key=lambda kv: week_sort_key(kv[0]))
    return [TrendPoint(period=str(label), count=int(count)) for label, count in ordered]


def _request_stamps(records: Sequence[TicketRecord]) -> pd.Series:
    return pd.to_datetime(
        pd.Series([r.request_time for r in records], dtype="object"),
        utc=True,
        errors="coerce",
        format="ISO8601",
    )


def month_label(stamp: pd.Timestamp) -> str:
    return f"{MONTH_ABBR[stamp.month - 1]} {stamp.year}"


def monthly_trend(records: Iterable[TicketRecord]) -> List[TrendPoint]:
    """Ticket counts per calendar month of ``request_time`` (``"Jan 2025"``), chronological."""
    records = list(records)
    if not records:
        return []
    stamps = _request_stamps(records).dropna()
    if stamps.empty:
        return []
    keys = stamps.dt.strftime("%Y-%m")
    counts = keys.value_counts().sort_index()
    first_stamp = stamps.groupby(keys).min()
    return [
        TrendPoint(period=month_label(first_stamp[key]), count=int(count))
        for key, count in counts.items()
    ]


def spans_multiple_months(records: Iterable[TicketRecord]) -> bool:
    """True when request times fall in more than one calendar month."""
    stamps = _request_stamps(list(records)).dropna()
    return stamps.dt.strftime("%Y-%m").nunique() > 1


def build_category_pivot(
    records: Iterable[TicketRecord],
    service: str | ServiceDefinition,
) -> pd.DataFrame:
    """Third-level category x week count table for one service.

    Categories are normalized for the service and grouped case-insensitively
    (first spelling seen is displayed; missing categories become
    ``Unassigned``). Rows: highlighted categories first, then alphabetical.
    Columns: week labels in week-number order.
    """

    definition = resolve_service(service)
    tickets = filter_service_records(records, definition)
    weeks = sorted({t.week_label for t in tickets if t.week_label}, key=week_sort_key)

    display: Dict[str, str] = {}
    rows = []
    for t in tickets:
        value = normalize_category(definition.key, t.third_lvl_category) or "Unassigned"
        lowered = value.strip().lower() or "unassigned"
        display.setdefault(lowered, value)
        rows.append((display[lowered], t.week_label))

    if not display:
        return pd.DataFrame(columns=weeks, dtype="int64").rename_axis(PIVOT_INDEX)

    frame = pd.DataFrame(rows, columns=[PIVOT_INDEX, "week_label"])
    frame = frame[frame["week_label"].notna()]
    pivot = pd.crosstab(frame[PIVOT_INDEX], frame["week_label"]) if not frame.empty else pd.DataFrame()
    pivot = pivot.reindex(index=list(display.values()), columns=weeks, fill_value=0).astype("int64")

    ordered = sorted(
        pivot.index,
        key=lambda name: (not definition.is_highlighted(name), name.lower()),
    )
    pivot = pivot.loc[ordered]
    pivot.index.name = PIVOT_INDEX
    pivot.columns.name = None
    LOGGER.debug("Category pivot for %s: %d categories x %d weeks", definition.key, len(pivot), len(weeks))
    return pivot


def add_pivot_totals(pivot: pd.DataFrame) -> pd.DataFrame:
    """Append a ``Total`` column and a ``TOTAL`` row (the export layout)."""
    out = pivot.copy()
    out[TOTAL_COLUMN] = out.sum(axis=1)
    totals = out.sum(axis=0)
    out.loc[TOTAL_ROW] = totals
    out.index.name = pivot.index.name
    return out.astype("int64")


def build_cluster_pivot(records: Iterable[TicketRecord], category: Optional[str] = None) -> pd.DataFrame:
    """Ticket counts per cluster, sorted by cluster name.

    With ``category`` only tickets whose third-level category equals it are
    counted and the count column is named after it; otherwise the column is
    ``Tickets``. Blank clusters are labelled ``Blank``.
    """

    records = list(records)
    if category is not None:
        records = [r for r in records if (r.third_lvl_category or "Unknown") == category]
    column = category if category is not None else "Tickets"
    clusters = pd.Series([_label(r.cluster, BLANK_CLUSTER) for r in records], dtype="object")
    counts = clusters.value_counts().sort_index()
    frame = counts.rename(column).to_frame()
    frame.index.name = "cluster"
    return frame.astype("int64")


def category_trends(
    records: Iterable[TicketRecord],
    service: str | ServiceDefinition,
) -> pd.DataFrame:
    """Per-month counts of each highlighted category for one service.

    Index is the month (``"Jan 2025"``) in chronological order, one column per
    highlighted category (zeros where absent). Non-highlighted categories are
    ignored.
    """

    definition = resolve_service(service)
    columns = list(definition.highlights)
    rows = []
    for t in filter_service_records(records, definition):
        if not t.request_time or not t.third_lvl_category:
            continue
        canonical = definition.canonical_highlight(normalize_category(definition.key, t.third_lvl_category))
        if canonical is not None:
            rows.append((t.request_time, canonical))
    if not rows:
        return pd.DataFrame(columns=columns, dtype="int64").rename_axis("period")

    frame = pd.DataFrame(rows, columns=["request_time", "category"])
    frame["stamp"] = pd.to_datetime(frame["request_time"], utc=True, errors="coerce", format="ISO8601")
    frame = frame.dropna(subset=["stamp"])
    frame["month"] = frame["stamp"].dt.strftime("%Y-%m")
    table = pd.crosstab(frame["month"], frame["category"]).reindex(columns=columns, fill_value=0)
    table = table.sort_index()
    labels = frame.groupby("month")["stamp"].min().map(month_label)
    table.index = [labels[m] for m in table.index]
    table.index.name = "period"
    table.columns.name = None
    return table.astype("int64")

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Sequence

import pandas as pd

from ..standards.schemas import TicketRecord


LOGGER = logging.getLogger("ticketpulse.ingestion")


def _has_week_label(record: TicketRecord) -> bool:
    return bool(record.week_label and record.week_label.strip())


def calculate_week_numbers(records: Sequence[TicketRecord]) -> List[TicketRecord]:
    """Assign relative week numbers anchored at the batch's earliest request day.

    ``week_number = floor(days_since_anchor / 7) + 1`` where the anchor is the
    minimum ``request_time`` over the whole batch, floored to midnight UTC.
    Records that already carry a ``week_label`` are returned unchanged, so
    re-running on assigned output is a no-op. Empty batches, or batches without
    any parseable date, are returned as-is.
    """

    records = list(records)
    if not records or all(_has_week_label(r) for r in records):
        return records

    stamps = pd.to_datetime(
        pd.Series([r.request_time for r in records], dtype="object"),
        utc=True,
        errors="coerce",
        format="ISO8601",
    )
    if stamps.isna().all():
        LOGGER.debug("No parseable request times; week assignment skipped")
        return records

    anchor = stamps.min().normalize()
    days = (stamps - anchor).dt.days

    out: List[TicketRecord] = []
    for record, day_offset in zip(records, days):
        if _has_week_label(record) or pd.isna(day_offset):
            out.append(record)
            continue
        week_number = int(day_offset) // 7 + 1
        out.append(replace(record, week_number=week_number, week_label=f"Week {week_number}"))
    return out

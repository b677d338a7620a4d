"""Hand parsed tickets to the persistence layer in fixed-size batches."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

import pandas as pd

from .standards.schemas import TicketRecord


LOGGER = logging.getLogger("ticketpulse.importer")

DEFAULT_BATCH_SIZE = 500
MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

Payload = Dict[str, Any]
SubmitFn = Callable[[List[Payload]], Any]


class ImportAbortedError(RuntimeError):
    """A batch failed; earlier batches stay persisted."""

    def __init__(self, message: str, persisted_count: int) -> None:
        super().__init__(message)
        self.persisted_count = persisted_count


@dataclass(frozen=True)
class ImportPeriod:
    month: int
    year: int
    label: str


def record_to_payload(record: TicketRecord) -> Payload:
    """JSON-ready mapping of the record's present fields."""
    return record.to_dict(drop_empty=True)


def derive_import_period(records: Sequence[TicketRecord], now: Optional[datetime] = None) -> ImportPeriod:
    """Month and year of the earliest parseable request time (``now`` when none)."""
    stamps = pd.to_datetime(
        pd.Series([r.request_time for r in records], dtype="object"),
        utc=True,
        errors="coerce",
        format="ISO8601",
    ).dropna()
    if stamps.empty:
        base = now or datetime.now(timezone.utc)
        month, year = base.month, base.year
    else:
        earliest = stamps.min()
        month, year = earliest.month, earliest.year
    return ImportPeriod(month=month, year=year, label=f"{MONTH_NAMES[month - 1]} {year}")


def iter_batches(records: Sequence[TicketRecord], batch_size: int = DEFAULT_BATCH_SIZE) -> Iterator[List[TicketRecord]]:
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    for start in range(0, len(records), batch_size):
        yield list(records[start:start + batch_size])


def submit_in_batches(
    records: Sequence[TicketRecord],
    submit: SubmitFn,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> int:
    """Call ``submit`` sequentially with chunks of at most ``batch_size`` payloads.

    Returns the number of records submitted. The first failing batch stops the
    import with ``ImportAbortedError``; batches already accepted are not
    rolled back.
    """

    persisted = 0
    for index, batch in enumerate(iter_batches(records, batch_size), start=1):
        payloads = [record_to_payload(r) for r in batch]
        try:
            submit(payloads)
        except Exception as exc:
            LOGGER.error("[ERROR] Batch %d failed after %d records persisted: %s", index, persisted, exc)
            raise ImportAbortedError(
                f"Import aborted at batch {index}: {exc}", persisted_count=persisted
            ) from exc
        persisted += len(batch)
        LOGGER.debug("Batch %d submitted (%d records)", index, len(batch))
    LOGGER.info("Submitted %d records", persisted)
    return persisted

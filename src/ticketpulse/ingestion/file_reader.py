"""Read uploaded ticket files (CSV or Excel) into delimiter-separated text."""
from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Optional, Sequence

import pandas as pd

from .column_mapper import ColumnMapper
from .row_parser import DEFAULT_DELIMITERS, guess_delimiter


LOGGER = logging.getLogger("ticketpulse.ingestion")

TEXT_EXTENSIONS = (".csv", ".tsv", ".txt")
EXCEL_EXTENSIONS = (".xlsx", ".xlsm", ".xls")
ALLOWED_EXTENSIONS = TEXT_EXTENSIONS + EXCEL_EXTENSIONS


@dataclass(frozen=True)
class FileReadResult:
    csv_text: str
    file_name: str
    row_count: int
    column_count: int
    sheet_name: Optional[str] = None


def validate_extension(path: Path, allowed: Iterable[str] = ALLOWED_EXTENSIONS) -> None:
    """Ensure the file has an allowed extension."""

    suffix = path.suffix.lower()
    if suffix not in {ext.lower() for ext in allowed}:
        raise ValueError(f"Unsupported file extension: {suffix}. Allowed: {list(allowed)}")


def looks_like_ticket_sheet(columns: Iterable[str], mapper: Optional[ColumnMapper] = None) -> bool:
    """True when the header row carries both a ticket-id and a request-time column."""

    mapping = (mapper or ColumnMapper()).map_headers([str(c) for c in columns])
    return mapping.has_field("ticket_id") and mapping.has_field("request_time")


def header_column_count(text: str, delimiters: Sequence[str] = DEFAULT_DELIMITERS) -> int:
    """Number of fields in the first non-blank line, split on the guessed delimiter."""

    header = next((ln for ln in text.splitlines() if ln.strip()), "")
    if not header:
        return 0
    delimiter = guess_delimiter(text, tuple(delimiters) or DEFAULT_DELIMITERS)
    return len(next(csv.reader([header], delimiter=delimiter)))


def _frame_is_empty(frame: pd.DataFrame) -> bool:
    return frame.dropna(how="all").empty


def _choose_sheet(sheets: Dict[str, pd.DataFrame], mapper: Optional[ColumnMapper]) -> tuple[str, pd.DataFrame]:
    non_empty = [(name, frame) for name, frame in sheets.items() if not _frame_is_empty(frame)]
    if not non_empty:
        raise ValueError("All sheets are empty or contain no data")
    for name, frame in non_empty:
        if looks_like_ticket_sheet(frame.columns, mapper):
            return name, frame
    LOGGER.info("No sheet has ticket headers; falling back to first non-empty sheet %s", non_empty[0][0])
    return non_empty[0]


def read_ticket_file(
    path: str | Path,
    mapper: Optional[ColumnMapper] = None,
    delimiters: Sequence[str] = DEFAULT_DELIMITERS,
) -> FileReadResult:
    """Validate and read a ticket export.

    Text files are returned verbatim (UTF-8, BOM tolerated). For workbooks the
    first sheet that looks like raw ticket data wins, otherwise the first
    non-empty sheet; the sheet is re-serialized as comma-separated text.
    """

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Input not found: {p}")
    validate_extension(p)
    if p.stat().st_size == 0:
        raise ValueError("File is empty")

    if p.suffix.lower() in TEXT_EXTENSIONS:
        text = p.read_text(encoding="utf-8-sig")
        lines = [ln for ln in text.splitlines() if ln.strip()]
        return FileReadResult(
            csv_text=text,
            file_name=p.name,
            row_count=len(lines),
            column_count=header_column_count(text, delimiters),
        )

    try:
        sheets = pd.read_excel(p, sheet_name=None, dtype=str)
    except Exception as exc:  # xlrd, openpyxl and zipfile each raise their own types
        raise ValueError(f"Failed to parse Excel file {p}: {exc}") from exc

    sheet_name, frame = _choose_sheet(sheets, mapper)
    frame = frame.dropna(how="all")
    csv_text = frame.to_csv(index=False)
    return FileReadResult(
        csv_text=csv_text,
        file_name=p.name,
        row_count=len(frame) + 1,
        column_count=len(frame.columns),
        sheet_name=sheet_name,
    )

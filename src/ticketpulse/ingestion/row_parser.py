"""Parse delimiter-separated ticket text into validated ``TicketRecord`` objects.

Problems are collected, never raised:
  - ``errors``   block the whole batch (missing required columns, tokenizer
                 failure, nothing parseable); ``data`` is then empty.
  - ``warnings`` are informational; the row is kept (surrogate ticket id,
                 unrecognized priority, field-count mismatch) or dropped
                 (missing/unparseable request time).
"""
from __future__ import annotations

import csv
import io
import logging
import re
import time
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from ..standards.schemas import DATE_FIELDS, ParseResult, TicketRecordBuilder
from .column_mapper import ColumnMapper, ColumnMapping
from .date_normalizer import parse_date
from .priority_normalizer import validate_priority


LOGGER = logging.getLogger("ticketpulse.ingestion")

DEFAULT_DELIMITERS: Tuple[str, ...] = (",", "\t", "|", ";")
_QUOTED_RX = re.compile(r'"(?:[^"]|"")*"')

# Spreadsheet row numbers: row 1 is the header
_FIRST_DATA_ROW = 2


def guess_delimiter(text: str, candidates: Sequence[str] = DEFAULT_DELIMITERS, sample_lines: int = 10) -> str:
    """Pick the candidate that splits the first lines most consistently.

    Quoted segments are ignored while counting. Ties go to the earlier
    candidate; when no candidate appears in the header line the first one is
    returned.
    """

    lines = [ln for ln in text.splitlines() if ln.strip()][:sample_lines]
    if not lines or not candidates:
        return candidates[0] if candidates else ","
    stripped = [_QUOTED_RX.sub("", ln) for ln in lines]

    best = candidates[0]
    best_score: Tuple[int, int] = (-1, -1)
    for delimiter in candidates:
        counts = [ln.count(delimiter) for ln in stripped]
        if counts[0] == 0:
            continue
        consistent = sum(1 for c in counts if c == counts[0])
        score = (consistent, counts[0])
        if score > best_score:
            best, best_score = delimiter, score
    return best


def _dedupe_headers(headers: List[str]) -> List[str]:
    """Suffix repeated header names the way pandas does (``X``, ``X.1``)."""
    seen: Dict[str, int] = {}
    out: List[str] = []
    for name in headers:
        if name in seen:
            seen[name] += 1
            out.append(f"{name}.{seen[name]}")
        else:
            seen[name] = 0
            out.append(name)
    return out


def read_delimited_text(text: str, delimiter: str) -> Tuple[pd.DataFrame, List[str]]:
    """Tokenize ``text`` into an all-string DataFrame.

    Rows with too many fields are truncated to the header width and rows with
    too few are padded with empty strings; both are reported as warnings
    instead of failing. Lines that are blank or hold only delimiters are dropped.
    """

    warnings: List[str] = []
    rows = [
        row for row in csv.reader(io.StringIO(text), delimiter=delimiter)
        if any(cell.strip() for cell in row)
    ]
    if not rows:
        return pd.DataFrame(), warnings

    header = _dedupe_headers([cell.strip() for cell in rows[0]])
    expected = len(header)
    body: List[List[str]] = []
    for idx, row in enumerate(rows[1:]):
        row_number = idx + _FIRST_DATA_ROW
        if len(row) > expected:
            warnings.append(
                f"Row {row_number}: Too many fields: expected {expected} fields but parsed {len(row)} - extra values ignored"
            )
            row = row[:expected]
        elif len(row) < expected:
            warnings.append(
                f"Row {row_number}: Too few fields: expected {expected} fields but parsed {len(row)} - row will be skipped if invalid"
            )
            row = row + [""] * (expected - len(row))
        body.append(row)
    return pd.DataFrame(body, columns=header, dtype="object"), warnings


def _surrogate_id(stamp: int, row_number: int) -> str:
    return f"AUTO-{stamp}-{row_number}"


def parse_rows(frame: pd.DataFrame, mapping: ColumnMapping) -> ParseResult:
    """Build records from an already-tokenized table and its header mapping."""

    result = ParseResult()
    stamp = int(time.time() * 1000)
    headers = [h for h in frame.columns if h in mapping.fields]

    for idx, row in enumerate(frame.to_dict("records")):
        row_number = idx + _FIRST_DATA_ROW
        builder = TicketRecordBuilder()
        for header in headers:
            cell = row.get(header)
            if cell is None or (isinstance(cell, float) and pd.isna(cell)):
                continue
            value = str(cell).strip()
            if value == "":
                continue
            field_name = mapping.fields[header]

            if field_name in DATE_FIELDS:
                parsed = parse_date(value)
                if parsed:
                    builder.set(field_name, parsed)
                elif field_name == "request_time":
                    result.warnings.append(f"Row {row_number}: Invalid date format in {header}")
            elif field_name == "priority":
                priority = validate_priority(value)
                if priority:
                    builder.set(field_name, priority)
                else:
                    result.warnings.append(f'Row {row_number}: Invalid priority value "{value}". Expected P1-P4.')
            else:
                builder.set(field_name, value)

        if not builder.has("ticket_id"):
            surrogate = _surrogate_id(stamp, row_number)
            builder.set("ticket_id", surrogate)
            result.warnings.append(f"Row {row_number}: Missing Ticket ID, generated {surrogate}")
        if not builder.has("request_time"):
            result.warnings.append(f"Row {row_number}: Missing Request Time, skipping row")
            LOGGER.debug("Dropping row %d without request time", row_number)
            continue
        result.data.append(builder.build())
    return result


def parse_ticket_frame(frame: pd.DataFrame, mapper: Optional[ColumnMapper] = None) -> ParseResult:
    """Parse a header-labelled table (e.g. a worksheet read by pandas)."""

    mapper = mapper or ColumnMapper()
    mapping = mapper.map_headers([str(c) for c in frame.columns])
    if mapping.errors:
        return ParseResult(data=[], errors=list(mapping.errors), warnings=[])

    result = parse_rows(frame, mapping)
    if not result.data:
        result.errors.append("No valid ticket data found in the input")
    if result.errors:
        result.data = []
    return result


def parse_ticket_text(
    text: str,
    delimiters: Iterable[str] = DEFAULT_DELIMITERS,
    mapper: Optional[ColumnMapper] = None,
) -> ParseResult:
    """Parse decoded spreadsheet text into tickets.

    Never raises for malformed input; see module docstring for the error
    taxonomy.
    """

    candidates = tuple(delimiters) or DEFAULT_DELIMITERS
    text = (text or "").lstrip("\ufeff")
    if not text or not text.strip():
        mapping = (mapper or ColumnMapper()).map_headers([])
        return ParseResult(data=[], errors=list(mapping.errors), warnings=[])

    try:
        delimiter = guess_delimiter(text, candidates)
        frame, tokenizer_warnings = read_delimited_text(text, delimiter)
    except (csv.Error, ValueError) as exc:
        LOGGER.warning("Tokenizer failed: %s", exc)
        return ParseResult(data=[], errors=[f"Parse error: {exc}"], warnings=[])

    result = parse_ticket_frame(frame, mapper)
    result.warnings[:0] = tokenizer_warnings
    LOGGER.info(
        "Parsed %d tickets from %d rows (%d warnings, %d errors)",
        len(result.data), len(frame), len(result.warnings), len(result.errors),
    )
    return result

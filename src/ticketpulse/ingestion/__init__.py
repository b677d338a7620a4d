"""
Ingestion: turn raw ticket exports into validated, week-labelled records.

Header mapping, date and priority normalization, row parsing and relative
week assignment. Malformed input is reported through ``ParseResult`` lists,
never raised.
"""

from .file_reader import FileReadResult, read_ticket_file
from .row_parser import parse_ticket_text
from .week_assigner import calculate_week_numbers

__all__ = [
    "FileReadResult",
    "calculate_week_numbers",
    "parse_ticket_text",
    "read_ticket_file",
]

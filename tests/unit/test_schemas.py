"""Unit tests for the ticket record builder."""
import pytest

from ticketpulse.standards.schemas import TICKET_FIELDS, TicketRecordBuilder


def test_builder_validates_required_fields():
    builder = TicketRecordBuilder().set("ticket_id", "T-1")
    assert builder.missing_required() == ["request_time"]
    with pytest.raises(ValueError):
        builder.build()
    record = builder.set("request_time", "2025-01-15T00:00:00.000Z").build()
    assert record.ticket_id == "T-1"


def test_builder_rejects_unknown_fields():
    with pytest.raises(KeyError):
        TicketRecordBuilder().set("colour", "red")


def test_later_values_replace_earlier_ones():
    record = (
        TicketRecordBuilder()
        .set("ticket_id", "T-1")
        .set("request_time", "2025-01-15T00:00:00.000Z")
        .set("status", "Open")
        .set("status", "Closed")
        .build()
    )
    assert record.status == "Closed"
    assert record.get("priority", "Unassigned") == "Unassigned"


def test_ticket_fields_cover_record():
    assert TICKET_FIELDS[:2] == ("ticket_id", "request_time")
    assert "service_record_type" in TICKET_FIELDS
    assert "process_manager" in TICKET_FIELDS

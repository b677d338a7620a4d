"""Unit tests for relative week assignment."""
from ticketpulse.ingestion.week_assigner import calculate_week_numbers
from ticketpulse.standards.schemas import TicketRecord


def _record(ticket_id, request_time, **kwargs):
    return TicketRecord(ticket_id=ticket_id, request_time=request_time, **kwargs)


def test_ten_day_span_splits_into_two_weeks():
    records = [_record(f"T-{d}", f"2025-01-{d + 1:02d}T10:00:00.000Z") for d in range(10)]
    out = calculate_week_numbers(records)
    assert [r.week_number for r in out] == [1] * 7 + [2] * 3
    assert out[0].week_label == "Week 1"
    assert out[9].week_label == "Week 2"


def test_anchor_is_floored_to_midnight():
    records = [
        _record("A", "2025-01-01T23:00:00.000Z"),
        _record("B", "2025-01-08T01:00:00.000Z"),
    ]
    out = calculate_week_numbers(records)
    assert [r.week_number for r in out] == [1, 2]


def test_anchor_uses_whole_batch_including_labelled_records():
    records = [
        _record("A", "2025-01-01T00:00:00.000Z", week_label="Imported W1"),
        _record("B", "2025-01-09T00:00:00.000Z"),
    ]
    out = calculate_week_numbers(records)
    assert out[0].week_label == "Imported W1"
    assert out[0].week_number is None
    assert out[1].week_number == 2


def test_reassigning_is_a_no_op():
    records = [_record("A", "2025-01-01T00:00:00.000Z"), _record("B", "2025-01-20T00:00:00.000Z")]
    once = calculate_week_numbers(records)
    twice = calculate_week_numbers(once)
    assert twice == once


def test_input_records_are_not_mutated():
    record = _record("A", "2025-01-01T00:00:00.000Z")
    calculate_week_numbers([record])
    assert record.week_label is None


def test_empty_and_unparseable_batches_are_returned_unchanged():
    assert calculate_week_numbers([]) == []
    records = [_record("A", "garbage")]
    assert calculate_week_numbers(records) == records

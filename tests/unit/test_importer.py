"""Unit tests for batched hand-off to the persistence layer."""
from datetime import datetime, timezone

import pytest

from ticketpulse.importer import (
    ImportAbortedError,
    derive_import_period,
    record_to_payload,
    submit_in_batches,
)
from ticketpulse.standards.schemas import TicketRecord


def _records(n):
    return [TicketRecord(ticket_id=f"T-{i}", request_time="2025-01-15T00:00:00.000Z") for i in range(n)]


def test_batches_are_submitted_sequentially():
    seen = []
    count = submit_in_batches(_records(1201), seen.append, batch_size=500)
    assert count == 1201
    assert [len(b) for b in seen] == [500, 500, 201]
    assert seen[0][0] == {"ticket_id": "T-0", "request_time": "2025-01-15T00:00:00.000Z"}


def test_failed_batch_aborts_remaining_without_rollback():
    calls = []

    def submit(batch):
        calls.append(len(batch))
        if len(calls) == 2:
            raise ConnectionError("network down")

    with pytest.raises(ImportAbortedError) as excinfo:
        submit_in_batches(_records(25), submit, batch_size=10)
    assert calls == [10, 10]
    assert excinfo.value.persisted_count == 10
    assert isinstance(excinfo.value.__cause__, ConnectionError)


def test_invalid_batch_size():
    with pytest.raises(ValueError):
        submit_in_batches(_records(1), lambda b: None, batch_size=0)


def test_empty_input_submits_nothing():
    seen = []
    assert submit_in_batches([], seen.append) == 0
    assert seen == []


def test_payload_omits_absent_fields():
    record = TicketRecord(ticket_id="T-1", request_time="2025-01-15T00:00:00.000Z", priority="P2", week_number=1)
    assert record_to_payload(record) == {
        "ticket_id": "T-1",
        "request_time": "2025-01-15T00:00:00.000Z",
        "week_number": 1,
        "priority": "P2",
    }


def test_import_period_from_earliest_request_time():
    records = [
        TicketRecord("A", "2025-03-02T00:00:00.000Z"),
        TicketRecord("B", "2025-02-27T00:00:00.000Z"),
    ]
    period = derive_import_period(records)
    assert (period.month, period.year, period.label) == (2, 2025, "February 2025")


def test_import_period_falls_back_to_now():
    now = datetime(2024, 11, 5, tzinfo=timezone.utc)
    period = derive_import_period([TicketRecord("A", "garbage")], now=now)
    assert period.label == "November 2024"

"""End-to-end tests for the TicketPulse runner and CLI."""
import json
from pathlib import Path
from textwrap import dedent

import pytest

from ticketpulse.pipeline import main, run_pipeline


def _write_config(tmp_path: Path, batch_size: int = 500) -> Path:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        dedent(
            f"""
            paths:
              logs_dir: {tmp_path / "logs"}
            ingestion:
              batch_size: {batch_size}
              column_aliases:
                ticket_id: ["incident number"]
            analytics:
              top_n_affiliates: 2
            """
        ),
        encoding="utf-8",
    )
    return config_path


def _write_export(tmp_path: Path) -> Path:
    rows = [
        "Incident Number,Request Time,Priority,Status,Sub-Category,Third Level Category,Cluster,Affiliate",
        "F-1,01/01/2025 09:00,P1,Open,Flexcube,Account maintenance - KYC,North,GH",
        "F-2,03/01/2025 10:00,High,Closed,Flexcube,Cheque book request,South,NG",
        "F-3,09/01/2025 11:00,Low,Open,Flexcube,Account Maintenance,,KE",
        "F-4,10/01/2025 12:00,Medium,Open,Flexcube,Account closure,North,GH",
        ",11/01/2025 12:00,P2,Open,IBPS,AO update,East,NG",
        "F-6,not a date,P2,Open,IBPS,AO update,East,NG",
    ]
    path = tmp_path / "tickets.csv"
    path.write_text("\n".join(rows) + "\n", encoding="utf-8")
    return path


def test_run_pipeline_end_to_end(tmp_path):
    summary = run_pipeline(_write_export(tmp_path), config_path=_write_config(tmp_path), service="flexcube")

    assert summary["rejected"] is False
    assert summary["ticket_count"] == 5
    assert any("Missing Ticket ID" in w for w in summary["warnings"])
    assert any("Missing Request Time" in w for w in summary["warnings"])

    assert summary["view"] == "weekly"
    assert summary["weekly_trend"] == [{"period": "Week 1", "count": 2}, {"period": "Week 2", "count": 3}]
    assert summary["monthly_trend"] == [{"period": "Jan 2025", "count": 5}]
    assert summary["import_period"]["label"] == "January 2025"
    assert summary["insights"][0]["severity"] == "warning"
    assert summary["insights"][0]["percent_change"] == 50

    priorities = [b["category"] for b in summary["breakdowns"]["priority"]]
    assert priorities == ["P1", "P2", "P3", "P4"]
    assert len(summary["breakdowns"]["affiliate"]) == 2

    service = summary["service"]
    assert service["ticket_count"] == 4
    pivot = {row["third_lvl_category"]: row for row in service["category_pivot"]}
    assert pivot["Account Maintenance"]["Week 1"] == 1
    assert pivot["Account Maintenance"]["Week 2"] == 1
    assert pivot["TOTAL"]["Total"] == 4
    clusters = {row["cluster"]: row["Tickets"] for row in service["cluster_pivot"]}
    assert clusters == {"Blank": 1, "North": 2, "South": 1}
    assert (tmp_path / "logs" / "system.log").exists()


def test_rejected_batch_stops_before_analytics(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("Title,Status\nPrinter,Open\n", encoding="utf-8")
    summary = run_pipeline(path, config_path=_write_config(tmp_path))
    assert summary["rejected"] is True
    assert summary["ticket_count"] == 0
    assert "breakdowns" not in summary
    assert len(summary["errors"]) == 2


def test_cli_writes_json_and_sets_exit_code(tmp_path):
    out = tmp_path / "summary.json"
    code = main([str(_write_export(tmp_path)), "--config", str(_write_config(tmp_path)), "--output", str(out)])
    assert code == 0
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["ticket_count"] == 5

    bad = tmp_path / "bad.csv"
    bad.write_text("Title\nx\n", encoding="utf-8")
    assert main([str(bad), "--config", str(_write_config(tmp_path)), "--output", str(out)]) == 1


def test_submit_uses_configured_batch_size(tmp_path):
    batches = []
    summary = run_pipeline(
        _write_export(tmp_path),
        config_path=_write_config(tmp_path, batch_size=2),
        submit=batches.append,
    )
    assert [len(b) for b in batches] == [2, 2, 1]
    assert summary["imported_count"] == 5
    assert "import_error" not in summary
    assert batches[0][0]["ticket_id"] == "F-1"


def test_failed_batch_is_reported_in_summary(tmp_path):
    seen = []

    def submit(payloads):
        if seen:
            raise ConnectionError("service unavailable")
        seen.append(payloads)

    summary = run_pipeline(
        _write_export(tmp_path),
        config_path=_write_config(tmp_path, batch_size=2),
        submit=submit,
    )
    assert summary["imported_count"] == 2
    assert "batch 2" in summary["import_error"]


def test_cli_exports_batches(tmp_path):
    export_dir = tmp_path / "batches"
    out = tmp_path / "summary.json"
    code = main([
        str(_write_export(tmp_path)),
        "--config", str(_write_config(tmp_path, batch_size=3)),
        "--output", str(out),
        "--export-dir", str(export_dir),
    ])
    assert code == 0
    files = sorted(p.name for p in export_dir.iterdir())
    assert files == ["batch_0001.json", "batch_0002.json"]
    assert len(json.loads((export_dir / "batch_0002.json").read_text(encoding="utf-8"))) == 2


@pytest.mark.parametrize("name, content", [("empty.csv", b""), ("tickets.pdf", b"%PDF"), ("missing.csv", None)])
def test_cli_returns_1_for_unreadable_input(tmp_path, name, content):
    path = tmp_path / name
    if content is not None:
        path.write_bytes(content)
    out = tmp_path / "summary.json"
    assert main([str(path), "--config", str(_write_config(tmp_path)), "--output", str(out)]) == 1
    assert not out.exists()

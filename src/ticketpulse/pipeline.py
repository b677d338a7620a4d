"""TicketPulse end-to-end run: read a ticket export, parse it, summarize it.

Stages:
  1) read the file (CSV/TSV/TXT or Excel workbook),
  2) parse rows into validated tickets,
  3) assign relative week numbers,
  4) compute breakdowns, weekly/monthly trends and commentary,
  5) optionally build the per-service category pivot and category trends.

A rejected batch (any parse error) stops after stage 2; the summary then
carries the errors and no analytics.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

import pandas as pd

from .analytics.breakdowns import (
    add_pivot_totals,
    all_breakdowns,
    build_category_pivot,
    build_cluster_pivot,
    category_trends,
    monthly_trend,
    spans_multiple_months,
    weekly_trend,
)
from .analytics.insights import (
    generate_category_insights,
    generate_monthly_insights,
    generate_weekly_insights,
)
from .analytics.trend_patterns import analyze_trend_pattern
from .categories.services import build_service_definitions, filter_service_records
from .common.config_validator import AppConfig, load_config
from .importer import ImportAbortedError, derive_import_period, submit_in_batches
from .ingestion.column_mapper import ColumnMapper
from .ingestion.file_reader import read_ticket_file
from .ingestion.row_parser import parse_ticket_text
from .ingestion.week_assigner import calculate_week_numbers
from .logging_utils import (
    end_phase_timer,
    get_logger,
    log_error,
    log_system_event,
    log_warning,
    start_phase_timer,
)
from .standards.schemas import SERVICE_KEYS


LOGGER = logging.getLogger("ticketpulse.pipeline")


def _pivot_to_rows(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    index_name = frame.index.name or "label"
    return [
        {index_name: str(label), **{str(k): int(v) for k, v in row.items()}}
        for label, row in frame.iterrows()
    ]


def _service_summary(records, config: AppConfig, service: str) -> Dict[str, Any]:
    definitions = build_service_definitions(config.services)
    definition = definitions[service]
    tickets = filter_service_records(records, definition)
    trends = category_trends(tickets, definition)
    summary: Dict[str, Any] = {
        "service": service,
        "title": definition.title,
        "ticket_count": len(tickets),
        "highlights": list(definition.highlights),
        "category_pivot": _pivot_to_rows(add_pivot_totals(build_category_pivot(tickets, definition))),
        "category_trends": _pivot_to_rows(trends),
        "category_insights": [i.to_dict() for i in generate_category_insights(trends, definition.highlights)],
    }
    if service == "flexcube":
        summary["cluster_pivot"] = _pivot_to_rows(build_cluster_pivot(tickets))
        summary["account_maintenance_by_cluster"] = _pivot_to_rows(
            build_cluster_pivot(records, category="Account Maintenance")
        )
    return summary


def run_pipeline(
    input_path: str | Path,
    config_path: str | Path | None = None,
    service: Optional[str] = None,
    submit: Optional[Callable[[List[Dict[str, Any]]], Any]] = None,
) -> Dict[str, Any]:
    """Run all stages for one ticket export and return a JSON-ready summary.

    When ``submit`` is given, accepted tickets are handed to it in batches of
    ``ingestion.batch_size`` payloads after the analytics stage.
    """

    if service is not None and service not in SERVICE_KEYS:
        raise ValueError(f"Unknown service key: {service!r}. Expected one of {list(SERVICE_KEYS)}")

    config = load_config(config_path)
    logger = get_logger("ticketpulse.pipeline", config.model_dump())
    timings: Dict[str, float] = {}
    log_system_event(logger, f"Run started for {input_path}")

    mapper = ColumnMapper(extra_aliases=config.ingestion.column_aliases)

    t0 = start_phase_timer("read")
    source = read_ticket_file(input_path, mapper, delimiters=config.ingestion.delimiters)
    end_phase_timer("read", t0, timings, logger)

    t0 = start_phase_timer("parse")
    result = parse_ticket_text(
        source.csv_text,
        delimiters=config.ingestion.delimiters,
        mapper=mapper,
    )
    end_phase_timer("parse", t0, timings, logger)

    summary: Dict[str, Any] = {
        "file_name": source.file_name,
        "sheet_name": source.sheet_name,
        "ticket_count": len(result.data),
        "errors": list(result.errors),
        "warnings": list(result.warnings),
        "timings": timings,
    }
    for warning in result.warnings:
        log_warning(logger, warning)
    if result.errors:
        for error in result.errors:
            log_error(logger, error)
        summary["rejected"] = True
        return summary
    summary["rejected"] = False

    t0 = start_phase_timer("weeks")
    records = calculate_week_numbers(result.data)
    end_phase_timer("weeks", t0, timings, logger)

    t0 = start_phase_timer("analytics")
    weekly = weekly_trend(records)
    monthly = monthly_trend(records)
    monthly_view = spans_multiple_months(records)
    series = monthly if monthly_view else weekly
    pattern = analyze_trend_pattern(series)
    insights = (
        generate_monthly_insights(series, pattern) if monthly_view else generate_weekly_insights(series, pattern)
    )
    period = derive_import_period(records)
    breakdowns = all_breakdowns(
        records,
        top_n_affiliates=config.analytics.top_n_affiliates,
        top_n_default=config.analytics.top_n_default,
    )
    summary.update({
        "import_period": asdict(period),
        "view": "monthly" if monthly_view else "weekly",
        "weekly_trend": [asdict(p) for p in weekly],
        "monthly_trend": [asdict(p) for p in monthly],
        "trend_pattern": asdict(pattern),
        "insights": [i.to_dict() for i in insights],
        "breakdowns": {name: [asdict(b) for b in items] for name, items in breakdowns.items()},
    })
    if service is not None:
        summary["service"] = _service_summary(records, config, service)
    end_phase_timer("analytics", t0, timings, logger)

    if submit is not None:
        t0 = start_phase_timer("import")
        try:
            summary["imported_count"] = submit_in_batches(
                records, submit, batch_size=config.ingestion.batch_size
            )
        except ImportAbortedError as exc:
            log_error(logger, str(exc))
            summary["imported_count"] = exc.persisted_count
            summary["import_error"] = str(exc)
        end_phase_timer("import", t0, timings, logger)

    log_system_event(logger, f"Run finished: {len(records)} tickets, {len(result.warnings)} warnings")
    return summary


def _batch_file_writer(directory: Path) -> Callable[[List[Dict[str, Any]]], None]:
    """Submit function that writes each batch to ``batch_0001.json``, ``batch_0002.json``, ..."""

    directory.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []

    def _write(payloads: List[Dict[str, Any]]) -> None:
        path = directory / f"batch_{len(written) + 1:04d}.json"
        path.write_text(json.dumps(payloads, indent=2) + "\n", encoding="utf-8")
        written.append(path)

    return _write


def build_arg_parser() -> argparse.ArgumentParser:
    """Create an argument parser for the pipeline CLI."""

    parser = argparse.ArgumentParser(description="TicketPulse ticket export analysis")
    parser.add_argument("input", help="Ticket export (.csv, .tsv, .txt, .xlsx, .xls)")
    parser.add_argument("--config", default=None, help="Path to YAML configuration file")
    parser.add_argument("--service", choices=list(SERVICE_KEYS), help="Add the pivot and category trends for one service")
    parser.add_argument("--output", help="Write the JSON summary to this path instead of stdout")
    parser.add_argument("--export-dir", help="Write accepted tickets as JSON batch files into this directory")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point; exit code 1 when the input is unreadable, the batch is rejected or an export batch fails."""

    args = build_arg_parser().parse_args(argv)
    submit = _batch_file_writer(Path(args.export_dir)) if args.export_dir else None
    try:
        summary = run_pipeline(args.input, config_path=args.config, service=args.service, submit=submit)
    except (FileNotFoundError, ValueError) as exc:
        log_error(LOGGER, str(exc))
        return 1
    text = json.dumps(summary, indent=2, default=str)
    if args.output:
        Path(args.output).write_text(text + "\n", encoding="utf-8")
    else:
        print(text)
    return 1 if summary.get("rejected") or summary.get("import_error") else 0


if __name__ == "__main__":  # pragma: no cover - CLI guard
    sys.exit(main())

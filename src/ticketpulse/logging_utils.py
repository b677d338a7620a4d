"""Unified logging utilities for TicketPulse.

This module centralizes logging setup and timing helpers so the ingestion,
analytics and import stages emit:
  - system-readable logs (system.log)
  - timing breakdowns (per-stage elapsed seconds)

Design constraints:
  - No imports of stage modules to avoid circular dependencies.
  - If file handlers fail, keep console logging.
"""
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Dict, Mapping, Optional


SYSTEM_FMT = "[%(asctime)s] [%(levelname)s] %(message)s"


def _logs_dir(config: Optional[Mapping] = None) -> Path:
    paths = (config or {}).get("paths", {}) or {}
    logs_dir = Path(paths.get("logs_dir", "logs")).expanduser().resolve()
    logs_dir.mkdir(parents=True, exist_ok=True)
    return logs_dir


def _safe_add_file_handler(logger: logging.Logger, path: Path, fmt: str, level: int) -> None:
    try:
        fh = logging.FileHandler(path, encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(logging.Formatter(fmt))
        logger.addHandler(fh)
    except OSError as exc:  # pragma: no cover - depends on filesystem state
        logger.warning("[WARNING] Failed to attach file handler %s (%s)", str(path), exc)


def get_logger(name: str, config: Optional[Mapping] = None, level: int = logging.INFO) -> logging.Logger:
    """Return a system logger with console + file handlers.

    - File: system.log under ``paths.logs_dir`` (machine-friendly format)
    - Console: same format
    - Level: INFO by default
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    # Reset handlers to avoid duplication across repeated initializations
    logger.handlers = []

    sh = logging.StreamHandler()
    sh.setLevel(level)
    sh.setFormatter(logging.Formatter(SYSTEM_FMT))
    logger.addHandler(sh)

    try:
        logs_dir = _logs_dir(config)
    except OSError as exc:  # pragma: no cover - depends on filesystem state
        logger.warning("[WARNING] Logs directory unavailable (%s); console logging only", exc)
        return logger
    _safe_add_file_handler(logger, logs_dir / "system.log", SYSTEM_FMT, level)
    return logger


def start_phase_timer(phase_name: str) -> float:
    """Start a timer for a given stage and return the perf counter."""
    return time.perf_counter()


def end_phase_timer(phase_name: str, start_time: float, timing_dict: Dict[str, float], logger: logging.Logger) -> float:
    """End timer, record to ``timing_dict`` and log the elapsed time."""
    elapsed = time.perf_counter() - float(start_time)
    timing_dict[phase_name] = float(elapsed)
    logger.info("Stage %s completed in %.2f seconds", phase_name, elapsed)
    return elapsed


def log_system_event(logger: logging.Logger, message: str) -> None:
    logger.info("[SYSTEM] %s", message)


def log_warning(logger: logging.Logger, message: str) -> None:
    logger.warning("[WARNING] %s", message)


def log_error(logger: logging.Logger, message: str) -> None:
    logger.error("[ERROR] %s", message)

"""Unit tests for logger setup and stage timers."""
import logging

from ticketpulse import logging_utils
from ticketpulse.logging_utils import (
    SYSTEM_FMT,
    end_phase_timer,
    get_logger,
    log_error,
    log_system_event,
    start_phase_timer,
)


def test_get_logger_writes_system_log(tmp_path):
    config = {"paths": {"logs_dir": str(tmp_path / "logs")}}
    logger = get_logger("ticketpulse.test", config)
    log_system_event(logger, "hello")
    log_error(logger, "boom")
    for handler in logger.handlers:
        handler.flush()
    text = (tmp_path / "logs" / "system.log").read_text(encoding="utf-8")
    assert "[SYSTEM] hello" in text
    assert "[ERROR] boom" in text


def test_repeated_initialization_does_not_duplicate_handlers(tmp_path):
    config = {"paths": {"logs_dir": str(tmp_path)}}
    get_logger("ticketpulse.repeat", config)
    logger = get_logger("ticketpulse.repeat", config)
    assert len(logger.handlers) == 2


def test_phase_timer_records_elapsed():
    timings = {}
    start = start_phase_timer("parse")
    elapsed = end_phase_timer("parse", start, timings, logging.getLogger("ticketpulse.timer"))
    assert timings["parse"] == elapsed
    assert elapsed >= 0


def test_console_and_file_share_the_system_format(tmp_path):
    logger = get_logger("ticketpulse.format", {"paths": {"logs_dir": str(tmp_path)}})
    assert {h.formatter._fmt for h in logger.handlers} == {SYSTEM_FMT}
    assert not hasattr(logging_utils, "HUMAN_FMT")

"""Tests for run modes and logger construction."""

from datetime import datetime, timezone

import pytest
from structlog.testing import CapturingLogger

from entity_store.modes import RunMode, make_logger, parse_mode


def emit_all(log) -> None:
    log.debug("debug event")
    log.info("info event")
    log.warning("warning event")
    log.error("error event")


@pytest.mark.parametrize(
    "mode, expected",
    [
        (RunMode.BENCHMARK, ["debug", "info", "warning", "error"]),
        (RunMode.DEBUG, ["debug", "info", "warning", "error"]),
        (RunMode.STAGE, ["info", "warning", "error"]),
        (RunMode.LIVE, ["error"]),
        (RunMode.SILENT, []),
    ],
)
def test_mode_levels(mode: RunMode, expected: list[str], captured: CapturingLogger) -> None:
    """Test which events each mode lets through."""
    emit_all(make_logger(mode, logger=captured))
    assert [call.method_name for call in captured.calls] == expected


def test_tracebacks_follow_mode() -> None:
    """Test that live mode drops tracebacks and stage keeps them."""
    outputs = {}
    for mode in (RunMode.STAGE, RunMode.LIVE):
        captured = CapturingLogger()
        log = make_logger(mode, logger=captured)
        try:
            raise ValueError("kaboom")
        except ValueError:
            log.error("operation failed", exc_info=True)
        outputs[mode] = captured.calls[0].args[0]

    assert "kaboom" in outputs[RunMode.STAGE]
    assert "kaboom" not in outputs[RunMode.LIVE]
    assert "operation failed" in outputs[RunMode.LIVE]


def test_timestamp_and_context(captured: CapturingLogger) -> None:
    """Test the rendered event line."""
    log = make_logger(RunMode.DEBUG, timestamp_format="%Y", logger=captured, component="store")
    log.info("Entity saved", eid="a")

    line = captured.calls[0].args[0]
    assert line.startswith(str(datetime.now(timezone.utc).year))
    assert "Entity saved" in line
    assert "eid=a" in line
    assert "component=store" in line


def test_mode_properties() -> None:
    """Test mode flags."""
    assert RunMode.BENCHMARK.timed
    assert not RunMode.DEBUG.timed
    assert RunMode.STAGE.shows_tracebacks
    assert not RunMode.LIVE.shows_tracebacks


def test_parse_mode() -> None:
    """Test reading modes from configuration values."""
    assert parse_mode("debug") is RunMode.DEBUG
    assert parse_mode("STAGE") is RunMode.STAGE
    assert parse_mode(RunMode.SILENT) is RunMode.SILENT
    assert parse_mode(None) is RunMode.LIVE
    assert parse_mode("", default=RunMode.DEBUG) is RunMode.DEBUG

    with pytest.raises(ValueError, match="expected one of"):
        parse_mode("loud")

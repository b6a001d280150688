"""Run modes and logger construction.

The run mode decides how much the store and its collaborators report:

    benchmark  everything, plus timings of store operations
    debug      everything
    stage      info and errors, with tracebacks
    live       errors only, without tracebacks
    silent     nothing

A mode is passed explicitly to whatever builds a logger; nothing here reads
global state.
"""

import logging
from enum import Enum
from typing import Any, TextIO

import structlog

DEFAULT_TIMESTAMP = "%Y-%m-%d %H:%M:%S"


class RunMode(str, Enum):
    """How verbose the store and its collaborators are."""

    BENCHMARK = "benchmark"
    DEBUG = "debug"
    STAGE = "stage"
    LIVE = "live"
    SILENT = "silent"

    @property
    def level(self) -> int:
        """Minimum log level emitted in this mode."""
        return _LEVELS[self]

    @property
    def shows_tracebacks(self) -> bool:
        return self in (RunMode.BENCHMARK, RunMode.DEBUG, RunMode.STAGE)

    @property
    def timed(self) -> bool:
        return self is RunMode.BENCHMARK


_LEVELS = {
    RunMode.BENCHMARK: logging.DEBUG,
    RunMode.DEBUG: logging.DEBUG,
    RunMode.STAGE: logging.INFO,
    RunMode.LIVE: logging.ERROR,
    RunMode.SILENT: logging.CRITICAL,
}


def parse_mode(value: str | RunMode | None, default: RunMode = RunMode.LIVE) -> RunMode:
    """Turn a configuration value into a run mode."""
    if value is None or value == "":
        return default
    if isinstance(value, RunMode):
        return value
    try:
        return RunMode(str(value).lower())
    except ValueError:
        choices = ", ".join(mode.value for mode in RunMode)
        raise ValueError(f"Unknown run mode {value!r}, expected one of: {choices}") from None


def _drop_event(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    raise structlog.DropEvent


def _drop_exc_info(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.pop("exc_info", None)
    return event_dict


def build_processors(mode: RunMode, timestamp_format: str = DEFAULT_TIMESTAMP, colors: bool = False) -> list[Any]:
    """Processor chain used by loggers built for a run mode."""
    if mode is RunMode.SILENT:
        return [_drop_event]

    processors: list[Any] = [
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt=timestamp_format),
    ]
    if not mode.shows_tracebacks:
        processors.append(_drop_exc_info)
    processors.append(structlog.dev.ConsoleRenderer(colors=colors))
    return processors


def make_logger(
    mode: RunMode = RunMode.LIVE,
    timestamp_format: str = DEFAULT_TIMESTAMP,
    output: TextIO | None = None,
    logger: Any = None,
    **initial_values: Any,
) -> Any:
    """Build a structlog logger filtered for a run mode.

    Args:
        mode: Run mode deciding the minimum level
        timestamp_format: strftime format for the timestamp field
        output: Stream for the default print logger (stdout when omitted)
        logger: Underlying logger to wrap instead of a print logger
        **initial_values: Context bound to every event

    Returns:
        Bound logger
    """
    return structlog.wrap_logger(
        logger if logger is not None else structlog.PrintLogger(file=output),
        processors=build_processors(mode, timestamp_format),
        wrapper_class=structlog.make_filtering_bound_logger(mode.level),
        **initial_values,
    )

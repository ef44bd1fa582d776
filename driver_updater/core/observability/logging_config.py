"""
Logging setup for the updater CLI.

Called once by main.py before any command runs. Modules log through
``logging.getLogger(__name__)`` and pick this up from the root logger.

Console level, highest precedence first:
    --debug / --verbose / --quiet  >  DRIVER_UPDATER_LOG_LEVEL  >  WARNING

``DRIVER_UPDATER_LOG_FILE`` adds a file log that keeps DEBUG detail
unless ``DRIVER_UPDATER_LOG_FILE_LEVEL`` says otherwise, so a quiet
console run still leaves a full trace of every driver's steps.

Phase workers are named ``<phase>_<n>`` by their thread pools
(``remote-check_0``, ``download_2``...). Every record is tagged with
that phase so concurrent drivers can be told apart.
"""

from __future__ import annotations

import logging
import os
import sys

ENV_LOG_LEVEL = "DRIVER_UPDATER_LOG_LEVEL"
ENV_LOG_FILE = "DRIVER_UPDATER_LOG_FILE"
ENV_LOG_FILE_LEVEL = "DRIVER_UPDATER_LOG_FILE_LEVEL"

# WARNING and up: only what the operator must see
_FMT_CONSOLE = "%(message)s"
# INFO: phase progress
_FMT_PROGRESS = "%(asctime)s [%(phase)s] %(message)s"
_DATEFMT_SHORT = "%H:%M:%S"
# DEBUG console and file
_FMT_DETAIL = "%(asctime)s %(levelname)-5s [%(phase)s] %(name)s:%(lineno)d %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"


class PhaseFilter(logging.Filter):
    """Tag each record with the pipeline phase of the thread that logged it."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.phase = phase_of(record.threadName or "")
        return True


def phase_of(thread_name: str) -> str:
    """``"download_3"`` → ``"download"``; threads outside a phase pool → ``"main"``."""
    phase, sep, index = thread_name.rpartition("_")
    if sep and phase and index.isdigit():
        return phase
    return "main"


def setup_logging(
    level: str | None = None,
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Configure the root logger for the whole process.

    Args:
        level: Console level name from a CLI flag; None reads
            ``DRIVER_UPDATER_LOG_LEVEL``.
        log_file: Log file path; None reads ``DRIVER_UPDATER_LOG_FILE``.
        log_file_level: File level name; None reads
            ``DRIVER_UPDATER_LOG_FILE_LEVEL``, then defaults to DEBUG.
    """
    console_level = _parse_level(level or os.environ.get(ENV_LOG_LEVEL))
    log_file = log_file or os.environ.get(ENV_LOG_FILE) or None
    log_file_level = log_file_level or os.environ.get(ENV_LOG_FILE_LEVEL)

    phase_filter = PhaseFilter()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.addFilter(phase_filter)
    console.setFormatter(_console_formatter(console_level))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level, default=logging.DEBUG)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.addFilter(phase_filter)
        fh.setFormatter(logging.Formatter(_FMT_DETAIL, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)
        root_level = min(root_level, file_level)

    root.setLevel(root_level)


def _console_formatter(level: int) -> logging.Formatter:
    if level <= logging.DEBUG:
        return logging.Formatter(_FMT_DETAIL, datefmt=_DATEFMT_SHORT)
    if level <= logging.INFO:
        return logging.Formatter(_FMT_PROGRESS, datefmt=_DATEFMT_SHORT)
    return logging.Formatter(_FMT_CONSOLE)


def _parse_level(level: str | None, default: int = logging.WARNING) -> int:
    """Level name to its numeric value; unknown names give ``default``."""
    if not level:
        return default
    numeric = logging.getLevelName(level.strip().upper())
    return numeric if isinstance(numeric, int) else default

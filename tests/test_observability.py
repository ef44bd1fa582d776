"""
Tests for logging setup — levels, env overrides, phase tags, file output.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from driver_updater.core.observability.logging_config import (
    ENV_LOG_FILE,
    ENV_LOG_FILE_LEVEL,
    ENV_LOG_LEVEL,
    PhaseFilter,
    _parse_level,
    phase_of,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _restore_root_logger(monkeypatch):
    for name in (ENV_LOG_LEVEL, ENV_LOG_FILE, ENV_LOG_FILE_LEVEL):
        monkeypatch.delenv(name, raising=False)
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def _flush() -> None:
    for handler in logging.getLogger().handlers:
        handler.flush()


class TestParseLevel:
    def test_known_names(self):
        assert _parse_level("debug") == logging.DEBUG
        assert _parse_level(" ERROR ") == logging.ERROR

    def test_unknown_falls_back(self):
        assert _parse_level("chatty") == logging.WARNING
        assert _parse_level(None) == logging.WARNING
        assert _parse_level("", default=logging.DEBUG) == logging.DEBUG


class TestPhaseOf:
    @pytest.mark.parametrize(
        ("thread_name", "phase"),
        [
            ("download_0", "download"),
            ("remote-check_12", "remote-check"),
            ("MainThread", "main"),
            ("worker_x", "main"),
            ("_3", "main"),
        ],
    )
    def test_phase_of(self, thread_name, phase):
        assert phase_of(thread_name) == phase

    def test_filter_tags_pool_threads(self):
        record = logging.LogRecord("t", logging.INFO, __file__, 1, "msg", None, None)
        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="extract") as pool:
            name = pool.submit(lambda: threading.current_thread().name).result()
        record.threadName = name
        assert PhaseFilter().filter(record) is True
        assert record.phase == "extract"


class TestSetupLogging:
    def test_single_console_handler(self):
        setup_logging("INFO")
        setup_logging("INFO")
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.INFO

    def test_defaults_to_warning(self):
        setup_logging()
        assert logging.getLogger().level == logging.WARNING
        assert logging.getLogger().handlers[0].formatter._fmt == "%(message)s"

    def test_env_level(self, monkeypatch):
        monkeypatch.setenv(ENV_LOG_LEVEL, "info")
        setup_logging()
        assert logging.getLogger().level == logging.INFO

    def test_flag_beats_env(self, monkeypatch):
        monkeypatch.setenv(ENV_LOG_LEVEL, "DEBUG")
        setup_logging("ERROR")
        assert logging.getLogger().level == logging.ERROR

    def test_progress_format_shows_phase(self):
        setup_logging("INFO")
        fmt = logging.getLogger().handlers[0].formatter._fmt
        assert "[%(phase)s]" in fmt
        assert "%(name)s" not in fmt

    def test_debug_format_shows_phase_and_location(self):
        setup_logging("DEBUG")
        fmt = logging.getLogger().handlers[0].formatter._fmt
        assert "[%(phase)s]" in fmt
        assert "%(lineno)d" in fmt

    def test_file_keeps_debug_detail(self, tmp_path: Path, monkeypatch):
        log_file = tmp_path / "updater.log"
        monkeypatch.setenv(ENV_LOG_FILE, str(log_file))
        setup_logging("WARNING")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert root.handlers[0].level == logging.WARNING

        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="download") as pool:
            pool.submit(logging.getLogger("driver_updater.test").debug, "fetching nvme bundle").result()
        _flush()
        text = log_file.read_text(encoding="utf-8")
        assert "[download] driver_updater.test" in text
        assert "fetching nvme bundle" in text

    def test_file_level(self, tmp_path: Path):
        log_file = tmp_path / "updater.log"
        setup_logging("ERROR", log_file=str(log_file), log_file_level="INFO")
        logging.getLogger("driver_updater.test").debug("hidden detail")
        logging.getLogger("driver_updater.test").info("nvme installed")
        _flush()
        text = log_file.read_text(encoding="utf-8")
        assert "nvme installed" in text
        assert "[main]" in text
        assert "hidden detail" not in text

"""Tests for logging setup."""
import json
import logging

from waylaunch.core.log_setup import LOGGER_NAME, RepeatFilter, log_file_path, setup_logging


def make_record(msg, level=logging.INFO):
    return logging.LogRecord(LOGGER_NAME, level, __file__, 1, msg, None, None)


class TestRepeatFilter:
    def test_drops_consecutive_duplicates(self):
        repeat = RepeatFilter()
        assert repeat.filter(make_record("a"))
        assert not repeat.filter(make_record("a"))
        assert repeat.filter(make_record("b"))
        assert repeat.filter(make_record("a"))

    def test_level_is_part_of_identity(self):
        repeat = RepeatFilter()
        assert repeat.filter(make_record("a"))
        assert repeat.filter(make_record("a", logging.ERROR))


class TestSetupLogging:
    def test_log_file_follows_xdg_state_home(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path))
        assert log_file_path() == str(tmp_path / "waylaunch" / "waylaunch.log")

    def test_writes_json_lines(self, tmp_path):
        log_file = tmp_path / "state" / "waylaunch.log"
        logger = setup_logging(level=logging.INFO, log_file=str(log_file))
        logger.info("catalog ready")
        for handler in logging.getLogger(LOGGER_NAME).handlers:
            handler.flush()
        record = json.loads(log_file.read_text().splitlines()[-1])
        assert record["event"] == "catalog ready"
        assert record["level"] == "info"

    def test_replaces_previous_handlers(self, tmp_path):
        setup_logging(log_file=str(tmp_path / "a.log"))
        setup_logging(log_file=str(tmp_path / "b.log"))
        assert len(logging.getLogger(LOGGER_NAME).handlers) == 2

"""Tests for the launch history log."""
import os

import pytest

from waylaunch.core.history import (
    MAX_HISTORY_LINES,
    HistoryEntry,
    HistoryStore,
    format_entry,
    parse_line,
)

NOW = 1_700_000_000


@pytest.fixture
def store(history_path, clock):
    return HistoryStore(history_path, time_handler=clock)


def write_lines(path, lines):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"".join(lines))


class TestParseLine:
    @pytest.mark.parametrize(
        "line, expected",
        [
            (b"1700000000\tFirefox\n", HistoryEntry("Firefox", 1700000000)),
            (b"0\tFiles", HistoryEntry("Files", 0)),
            (b"12\tVisual Studio Code\r\n", HistoryEntry("Visual Studio Code", 12)),
            (b"5\tname\twith tab", HistoryEntry("name\twith tab", 5)),
        ],
    )
    def test_valid(self, line, expected):
        assert parse_line(line) == expected

    @pytest.mark.parametrize(
        "line",
        [
            b"\n",
            b"Firefox\n",
            b"abc\tFirefox\n",
            b"-5\tFirefox\n",
            b"12\t\n",
            b"\tFirefox\n",
            b"1 2\tFirefox\n",
            b"12\t\xff\xfe\n",
        ],
    )
    def test_malformed(self, line):
        assert parse_line(line) is None

    def test_format_entry(self):
        assert format_entry(HistoryEntry("Firefox", 42)) == b"42\tFirefox\n"


class TestRecord:
    def test_appends_timestamped_line(self, store, history_path):
        assert store.record("Firefox")
        assert history_path.read_bytes() == b"1700000000\tFirefox\n"

    def test_creates_parent_directories(self, store, history_path):
        assert not history_path.parent.exists()
        store.record("Firefox")
        assert history_path.parent.is_dir()

    def test_file_is_private(self, store, history_path):
        store.record("Firefox")
        assert history_path.stat().st_mode & 0o777 == 0o600

    def test_appends_in_order(self, store, history_path, clock):
        store.record("Firefox")
        clock.advance(10)
        store.record("Files")
        assert history_path.read_text().splitlines() == [
            f"{NOW}\tFirefox",
            f"{NOW + 10}\tFiles",
        ]

    @pytest.mark.parametrize("name", ["", "tab\tname", "new\nline", "carriage\rreturn"])
    def test_unstorable_names_are_rejected(self, store, history_path, name):
        assert not store.record(name)
        assert not history_path.exists()

    def test_refuses_symlinked_log(self, store, history_path, tmp_path):
        target = tmp_path / "elsewhere.txt"
        target.write_text("untouched\n")
        history_path.parent.mkdir(parents=True)
        os.symlink(target, history_path)

        assert not store.record("Firefox")
        assert target.read_text() == "untouched\n"

    def test_unwritable_location_returns_false(self, tmp_path, clock):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        store = HistoryStore(blocker / "history.txt", time_handler=clock)
        assert not store.record("Firefox")

    def test_negative_clock_is_clamped(self, history_path, clock):
        clock.now = -5
        store = HistoryStore(history_path, time_handler=clock)
        store.record("Firefox")
        assert history_path.read_bytes() == b"0\tFirefox\n"


class TestLoad:
    def test_missing_file_is_empty(self, store):
        assert store.load() == {}
        assert store.entries() == []

    def test_keeps_newest_timestamp_per_name(self, store, history_path):
        write_lines(
            history_path,
            [b"300\tFirefox\n", b"100\tFiles\n", b"200\tFirefox\n", b"150\tFiles\n"],
        )
        assert store.load() == {"Firefox": 300, "Files": 150}

    def test_skips_malformed_lines(self, store, history_path):
        write_lines(
            history_path,
            [
                b"100\tFirefox\n",
                b"garbage\n",
                b"\n",
                b"xx\tFiles\n",
                b"7\t\xc3\x28\n",
                b"200\tGIMP\n",
            ],
        )
        assert store.load() == {"Firefox": 100, "GIMP": 200}

    def test_directory_instead_of_file_is_empty(self, history_path, clock):
        history_path.mkdir(parents=True)
        store = HistoryStore(history_path, time_handler=clock)
        assert store.load() == {}

    def test_reads_what_was_recorded(self, store, clock):
        store.record("Firefox")
        clock.advance(60)
        store.record("Files")
        clock.advance(60)
        store.record("Firefox")
        assert store.load() == {"Firefox": NOW + 120, "Files": NOW + 60}


class TestTrim:
    def test_log_stays_bounded(self, store, history_path, clock):
        for i in range(205):
            store.record(f"app{i}")
            clock.advance(1)
        entries = store.entries()
        assert len(entries) == MAX_HISTORY_LINES
        assert [e.app_name for e in entries] == [f"app{i}" for i in range(5, 205)]

    def test_bound_holds_after_every_record(self, history_path, clock):
        store = HistoryStore(history_path, max_lines=3, time_handler=clock)
        for i in range(10):
            store.record(f"app{i}")
            clock.advance(1)
            assert len(history_path.read_bytes().splitlines()) <= 3

    def test_keeps_relative_order_of_survivors(self, store, history_path):
        write_lines(
            history_path,
            [b"50\tA\n", b"10\tB\n", b"40\tC\n", b"20\tD\n", b"30\tE\n"],
        )
        assert store.trim(3)
        assert history_path.read_bytes() == b"50\tA\n40\tC\n30\tE\n"

    def test_equal_timestamps_prefer_later_lines(self, store, history_path):
        write_lines(history_path, [b"100\tA\n", b"100\tB\n", b"100\tC\n"])
        assert store.trim(2)
        assert [e.app_name for e in store.entries()] == ["B", "C"]

    def test_drops_malformed_lines(self, store, history_path):
        write_lines(history_path, [b"1\tA\n", b"junk\n", b"2\tB\n", b"3\tC\n"])
        assert store.trim(2)
        assert history_path.read_bytes() == b"2\tB\n3\tC\n"

    def test_noop_within_limit(self, store, history_path):
        content = b"1\tA\n2\tB\n"
        write_lines(history_path, [content])
        mtime = history_path.stat().st_mtime_ns
        assert store.trim(5)
        assert history_path.read_bytes() == content
        assert history_path.stat().st_mtime_ns == mtime

    def test_missing_file(self, store):
        assert store.trim()

    def test_leaves_no_temporary_files(self, history_path, clock):
        store = HistoryStore(history_path, max_lines=2, time_handler=clock)
        for i in range(6):
            store.record(f"app{i}")
            clock.advance(1)
        assert sorted(p.name for p in history_path.parent.iterdir()) == ["history.txt"]

    @pytest.mark.parametrize("failing_call", ["fsync", "replace"])
    def test_failed_rewrite_keeps_original_log(
        self, store, history_path, monkeypatch, failing_call
    ):
        content = b"1\tA\n2\tB\n3\tC\n"
        write_lines(history_path, [content])

        def fail(*args):
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(os, failing_call, fail)
        assert not store.trim(1)
        assert history_path.read_bytes() == content
        assert [p.name for p in history_path.parent.iterdir()] == ["history.txt"]

    def test_malformed_lines_count_toward_the_limit(self, history_path, clock):
        write_lines(history_path, [b"1\tA\n", b"junk\n", b"junk\n", b"2\tB\n"])
        store = HistoryStore(history_path, max_lines=4, time_handler=clock)
        assert store.record("C")
        assert history_path.read_bytes() == b"1\tA\n2\tB\n" + f"{NOW}\tC\n".encode()

    def test_refuses_symlinked_log(self, store, history_path, tmp_path):
        target = tmp_path / "elsewhere.txt"
        target.write_bytes(b"1\tA\n2\tB\n3\tC\n")
        history_path.parent.mkdir(parents=True)
        os.symlink(target, history_path)

        assert not store.trim(1)
        assert target.read_bytes() == b"1\tA\n2\tB\n3\tC\n"


class TestClear:
    def test_removes_log(self, store, history_path):
        store.record("Firefox")
        assert store.clear()
        assert not history_path.exists()
        assert store.load() == {}

    def test_missing_log_counts_as_cleared(self, store):
        assert store.clear()

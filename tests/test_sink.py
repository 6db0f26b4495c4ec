from __future__ import annotations

import io
import re
import threading
from pathlib import Path

import pytest

from ferroxide.core.metrics import METRICS
from ferroxide.core.records import LogLevel
from ferroxide.core.rotation import CAPACITY, THRESHOLD
from ferroxide.core.sink import LoggerStartupError, LoggerStateError, SinkState
from ferroxide.core.store import split_lines

HEADER = re.compile(r"^=+\[ \d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} \]=+$")
RECORD = re.compile(r"^\[(?P<level>[A-Z]+) *\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\] (?P<target>\S+) *> (?P<msg>.*)$")


def _file_lines(path: Path) -> list[str]:
    return split_lines(path.read_text(encoding="utf-8"))


def _seed_file(path: Path, count: int) -> None:
    path.write_text("".join(f"old {idx}\n" for idx in range(count)), encoding="utf-8")


def test_start_writes_session_header(make_sink) -> None:
    sink = make_sink()
    sink.start()

    assert sink.state is SinkState.READY
    assert sink.line_count == 1
    lines = _file_lines(sink.path)
    assert lines == ["=" * 29 + "[ 2024-05-17 12:30:45 ]" + "=" * 29]


def test_startup_recovery_counts_existing_lines(make_sink, tmp_path: Path) -> None:
    path = tmp_path / "logs.txt"
    _seed_file(path, 5)
    sink = make_sink(path)
    sink.start()
    assert sink.line_count == 6

    sink.emit(LogLevel.INFO, "app", "hello")

    lines = _file_lines(path)
    assert len(lines) == 5 + 2
    assert HEADER.match(lines[5])
    assert lines[6] == "[INFO  2024-05-17 12:30:45] app > hello"
    assert sink.line_count == 7


def test_append_monotonicity(make_sink) -> None:
    sink = make_sink()
    sink.start()
    before = len(_file_lines(sink.path))

    for idx in range(25):
        sink.emit(LogLevel.DEBUG, "svc", f"record {idx}")

    assert len(_file_lines(sink.path)) == before + 25
    assert sink.line_count == before + 25
    assert METRICS.get_counter("records_total") == 25


def test_console_and_file_share_alignment(make_sink, console: io.StringIO) -> None:
    sink = make_sink()
    sink.start()
    sink.emit(LogLevel.INFO, "a", "one")
    sink.emit(LogLevel.WARN, "abc", "two")
    sink.emit(LogLevel.ERROR, "ab", "three")

    assert console.getvalue().splitlines() == [
        " INFO  a > one",
        " WARN  abc > two",
        " ERROR ab  > three",
    ]
    assert _file_lines(sink.path)[1:] == [
        "[INFO  2024-05-17 12:30:45] a > one",
        "[WARN  2024-05-17 12:30:45] abc > two",
        "[ERROR 2024-05-17 12:30:45] ab  > three",
    ]


def test_multiline_message_stays_on_one_line(make_sink) -> None:
    sink = make_sink()
    sink.start()
    sink.emit(LogLevel.ERROR, "app", "Traceback:\n  boom")
    lines = _file_lines(sink.path)
    assert len(lines) == 2
    assert lines[1].endswith("app > Traceback:\\n  boom")
    assert sink.line_count == 2


def test_rotation_trigger_and_content(make_sink, tmp_path: Path) -> None:
    path = tmp_path / "logs.txt"
    _seed_file(path, THRESHOLD - 1)
    sink = make_sink(path)
    sink.start()
    assert sink.line_count == THRESHOLD

    before = _file_lines(path)
    sink.emit(LogLevel.INFO, "app", "trigger")

    text = path.read_text(encoding="utf-8")
    after = split_lines(text)
    assert METRICS.get_counter("rotations_total") == 1
    assert sink.line_count == CAPACITY
    assert len(after) == CAPACITY
    assert text.endswith("\n")
    assert after[:-1] == before[-(CAPACITY - 1):]
    assert after[-1].endswith("app > trigger")

    sink.emit(LogLevel.INFO, "app", "after")
    assert METRICS.get_counter("rotations_total") == 1
    assert sink.line_count == CAPACITY + 1
    assert len(_file_lines(path)) == CAPACITY + 1


def test_failed_rotation_is_reported_and_counter_reset(
    make_sink, console: io.StringIO, monkeypatch: pytest.MonkeyPatch
) -> None:
    sink = make_sink(capacity=4)
    sink.start()

    def broken_rotate(observed_line_count: int, capacity: int) -> None:
        raise OSError("read-only file system")

    monkeypatch.setattr(sink.store, "rotate", broken_rotate)
    for idx in range(6):
        sink.emit(LogLevel.INFO, "app", f"record {idx}")

    assert "Failed to rotate log file: read-only file system" in console.getvalue()
    assert METRICS.get_counter("rotation_errors_total") == 1
    assert sink.line_count == 4
    assert len(_file_lines(sink.path)) == 7


def test_file_failure_keeps_console_working(make_sink, console: io.StringIO) -> None:
    sink = make_sink()
    sink.start()
    count = sink.line_count

    sink.path.unlink()
    sink.path.mkdir()
    sink.emit(LogLevel.WARN, "app", "still visible")

    output = console.getvalue().splitlines()
    assert " WARN  app > still visible" in output
    assert any("Failed to write to log file" in line for line in output)
    assert any(line.startswith(" ERROR ferroxide.logger") for line in output)
    assert sink.line_count == count
    assert METRICS.get_counter("file_errors_total") == 1
    assert METRICS.snapshot()["errors_1m"] == 1


def test_closed_console_does_not_raise(make_sink, console: io.StringIO) -> None:
    sink = make_sink()
    sink.start()
    console.close()

    sink.emit(LogLevel.INFO, "app", "file only")

    assert _file_lines(sink.path)[-1].endswith("app > file only")


def test_startup_failure_is_fatal(make_sink, tmp_path: Path) -> None:
    path = tmp_path / "logs.txt"
    path.mkdir()
    sink = make_sink(path)

    with pytest.raises(LoggerStartupError):
        sink.start()
    assert sink.state is SinkState.UNINITIALIZED


def test_start_twice_is_rejected(make_sink) -> None:
    sink = make_sink()
    sink.start()
    with pytest.raises(LoggerStateError):
        sink.start()


def test_emit_before_start_is_console_only(make_sink, console: io.StringIO) -> None:
    sink = make_sink()
    sink.emit(LogLevel.INFO, "app", "early")

    assert console.getvalue() == " INFO  app > early\n"
    assert not sink.path.exists()


def test_always_style_colorizes_console(make_sink, console: io.StringIO) -> None:
    sink = make_sink(style="always")
    sink.emit(LogLevel.INFO, "app", "colored")
    assert "\x1b[" in console.getvalue()


def test_concurrent_appends_do_not_interleave(make_sink) -> None:
    sink = make_sink()
    sink.start()
    threads_count, per_thread = 8, 50

    def worker(idx: int) -> None:
        for seq in range(per_thread):
            sink.emit(LogLevel.INFO, f"worker-{idx}", f"msg {seq}")

    threads = [threading.Thread(target=worker, args=(idx,)) for idx in range(threads_count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    lines = _file_lines(sink.path)[1:]
    assert len(lines) == threads_count * per_thread
    seen: set[tuple[str, str]] = set()
    for line in lines:
        match = RECORD.match(line)
        assert match is not None, line
        seen.add((match["target"], match["msg"]))
    assert len(seen) == threads_count * per_thread
    assert sink.line_count == threads_count * per_thread + 1


def test_concurrent_appends_across_rotations(make_sink) -> None:
    sink = make_sink(capacity=64)
    sink.start()
    threads_count, per_thread = 4, 100

    def worker(idx: int) -> None:
        for seq in range(per_thread):
            sink.emit(LogLevel.INFO, f"worker-{idx}", f"msg {seq}")

    threads = [threading.Thread(target=worker, args=(idx,)) for idx in range(threads_count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    lines = _file_lines(sink.path)
    assert METRICS.get_counter("rotations_total") > 0
    assert len(lines) == sink.line_count

    retained: dict[str, list[int]] = {}
    for line in lines:
        if HEADER.match(line):
            continue
        match = RECORD.match(line)
        assert match is not None, line
        retained.setdefault(match["target"].strip(), []).append(int(match["msg"].split()[1]))
    for sequence in retained.values():
        # each writer keeps a contiguous tail of its own records
        assert sequence == list(range(per_thread - len(sequence), per_thread))


def test_lone_surrogates_are_escaped_not_raised(make_sink, console: io.StringIO) -> None:
    sink = make_sink()
    sink.start()

    sink.emit(LogLevel.INFO, "app", "bad \udcff")
    sink.emit(LogLevel.INFO, "bad \udcff", "message")

    lines = _file_lines(sink.path)
    assert lines[1].endswith("app > bad \\udcff")
    assert "bad \\udcff > message" in lines[2]
    assert sink.line_count == 3
    assert METRICS.get_counter("file_errors_total") == 0
    assert "Failed to write" not in console.getvalue()


def test_undecodable_file_fails_rotation_and_pins_counter(
    make_sink, console: io.StringIO, tmp_path: Path
) -> None:
    path = tmp_path / "logs.txt"
    path.write_bytes(b"\xff\xfe broken\n")
    sink = make_sink(path, capacity=4)
    sink.start()
    assert sink.line_count == 1

    for idx in range(6):
        sink.emit(LogLevel.INFO, "app", f"record {idx}")

    assert "Failed to rotate log file" in console.getvalue()
    assert METRICS.get_counter("rotation_errors_total") == 1
    assert METRICS.get_counter("rotations_total") == 0
    assert sink.line_count == 4

"""Tests for the rotating telemetry logger."""

import re
import threading
from datetime import datetime

import pytest

from crucible.telemetry import TelemetryInitError, TelemetryLogger
from crucible.telemetry.sinks import FileSink
from crucible.utils.logger import LogLevel

SESSION_LINE = re.compile(r"^\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\] \[(\w+)\] (.*)$")
METRIC_ROW = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2},\d+\.\d,[^,]+,.*$")
HEADER = "timestamp,elapsed_seconds,metric,values"


def _lines(path):
    return path.read_text().splitlines()


def _fixed_now():
    return datetime(2025, 3, 20, 10, 0, 0)


@pytest.fixture
def telemetry(tmp_path):
    logger = TelemetryLogger()
    assert logger.init(tmp_path / "logs", level="INFO", rotation_mb=0, buffered=False)
    yield logger
    logger.cleanup()


def test_init_creates_sinks_and_header(tmp_path):
    """Init creates the directory, both files and the CSV header."""
    telemetry = TelemetryLogger()
    directory = tmp_path / "nested" / "logs"

    assert telemetry.init(directory, buffered=False)
    assert telemetry.is_initialized
    assert telemetry.get_directory() == directory

    assert _lines(directory / "metrics.csv") == [HEADER]
    first = _lines(directory / "session.log")[0]
    match = SESSION_LINE.match(first)
    assert match is not None
    assert match.group(1) == "INFO"
    assert "Logging initialized" in match.group(2)
    assert "buffering=disabled" in match.group(2)

    telemetry.cleanup()
    assert not telemetry.is_initialized
    assert telemetry.get_directory() is None


def test_reinit_fails_and_leaves_sinks_untouched(telemetry, tmp_path):
    """A second init is rejected without touching the existing files."""
    directory = telemetry.get_directory()
    before = (directory / "session.log").read_text()

    assert telemetry.init(tmp_path / "other", level="DEBUG") is False

    assert telemetry.get_directory() == directory
    assert telemetry.level == LogLevel.INFO
    assert (directory / "session.log").read_text() == before
    assert not (tmp_path / "other").exists()


def test_reinit_after_cleanup_appends_without_duplicate_header(tmp_path):
    """Re-opening an existing metrics file keeps a single header row."""
    telemetry = TelemetryLogger()
    assert telemetry.init(tmp_path)
    telemetry.metric("first", 1.0)
    telemetry.cleanup()

    assert telemetry.init(tmp_path)
    telemetry.metric("second", 2.0)
    telemetry.cleanup()

    rows = _lines(tmp_path / "metrics.csv")
    assert rows.count(HEADER) == 1
    assert len(rows) == 3


def test_init_fails_when_directory_is_a_file(tmp_path):
    """A path that exists as a regular file cannot be used."""
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x")

    telemetry = TelemetryLogger()
    assert telemetry.init(blocker) is False
    assert not telemetry.is_initialized


def test_uninitialized_logger_is_a_silent_no_op():
    """Nothing raises and nothing is written before init."""
    telemetry = TelemetryLogger()

    assert telemetry.log("INFO", "hello") is False
    assert telemetry.error("boom") is False
    assert telemetry.metric("cpu_usage", 1.0) is False
    assert telemetry.flush() is False
    assert telemetry.rotate() is False
    assert telemetry.get_directory() is None
    assert telemetry.elapsed_seconds() == 0.0
    telemetry.set_level("DEBUG")
    telemetry.cleanup()


def test_lines_below_threshold_are_never_written(telemetry):
    """DEBUG lines are dropped at INFO and appear after set_level(DEBUG)."""
    session = telemetry.get_directory() / "session.log"

    assert telemetry.debug("hidden detail") is False
    assert "hidden detail" not in session.read_text()

    telemetry.set_level("DEBUG")
    assert telemetry.debug("visible detail") is True

    content = session.read_text()
    assert "Changing log level old=INFO new=DEBUG" in content
    assert "[DEBUG] visible detail" in content


def test_warning_threshold_drops_info(tmp_path):
    """Every level below the threshold is filtered."""
    telemetry = TelemetryLogger()
    telemetry.init(tmp_path, level=LogLevel.WARNING, buffered=False)

    telemetry.info("quiet")
    telemetry.warning("loud")
    telemetry.critical("louder")
    telemetry.cleanup()

    levels = [SESSION_LINE.match(line).group(1) for line in _lines(tmp_path / "session.log")]
    assert levels == ["WARNING", "CRITICAL"]


def test_structured_fields_are_appended(telemetry):
    """Keyword fields render as key=value after the message."""
    telemetry.info("Starting CPU stress test", threads=8, intensity=75, ratio=0.5)

    last = _lines(telemetry.get_directory() / "session.log")[-1]
    assert last.endswith("[INFO] Starting CPU stress test threads=8 intensity=75 ratio=0.50")


def test_newlines_never_split_records(telemetry):
    """Multi-line messages stay on one line."""
    telemetry.warning("first\nsecond")
    telemetry.metric("multi\nline", "a\nb")

    directory = telemetry.get_directory()
    assert _lines(directory / "session.log")[-1].endswith("first second")
    assert len(_lines(directory / "metrics.csv")) == 2


def test_metric_rows_are_well_formed(telemetry):
    """Each metric call appends exactly one row with elapsed seconds."""
    metrics = telemetry.get_directory() / "metrics.csv"

    for i in range(25):
        assert telemetry.metric("cpu_usage", 23.456 + i, "%")
    telemetry.metric("performance", cpu_percent=51.2, threads=4)

    rows = _lines(metrics)
    assert rows[0] == HEADER
    assert len(rows) == 27
    for row in rows[1:]:
        assert METRIC_ROW.match(row), row
        timestamp, elapsed, _name, values = row.split(",", 3)
        assert float(elapsed) >= 0.0
        assert values

    assert rows[1].split(",", 2)[2] == "cpu_usage,23.46,%"
    assert rows[-1].endswith(",performance,cpu_percent=51.20,threads=4")


def test_elapsed_seconds_measured_from_init(tmp_path, fake_clock):
    """elapsed_seconds counts from the logger's own init time."""
    fake_clock.advance(1000.0)
    telemetry = TelemetryLogger(monotonic=fake_clock)
    telemetry.init(tmp_path, buffered=False)

    fake_clock.advance(12.34)
    telemetry.metric("tick", 1)
    telemetry.cleanup()

    row = _lines(tmp_path / "metrics.csv")[-1]
    assert row.split(",")[1] == "12.3"


def test_buffered_mode_flushes_errors_immediately(tmp_path):
    """Buffered INFO lines may wait; ERROR lines are flushed at once."""
    telemetry = TelemetryLogger()
    telemetry.init(tmp_path, buffered=True)

    telemetry.error("disk on fire")
    assert "disk on fire" in (tmp_path / "session.log").read_text()

    telemetry.info("routine")
    assert telemetry.flush() is True
    assert "routine" in (tmp_path / "session.log").read_text()
    telemetry.cleanup()


def test_rotate_archives_and_reopens(tmp_path):
    """Rotation renames both files and starts fresh ones."""
    telemetry = TelemetryLogger(now=_fixed_now)
    telemetry.init(tmp_path, buffered=False)
    telemetry.info("before rotation")
    telemetry.metric("cpu_usage", 10.0, "%")

    assert telemetry.rotate() is True

    archived_session = tmp_path / "session_20250320_100000.log"
    archived_metrics = tmp_path / "metrics_20250320_100000.csv"
    assert "before rotation" in archived_session.read_text()
    assert _lines(archived_metrics)[-1].endswith("cpu_usage,10.00,%")

    assert _lines(tmp_path / "metrics.csv") == [HEADER]
    session = _lines(tmp_path / "session.log")
    assert len(session) == 1
    assert session[0].endswith("[INFO] Log files rotated")
    telemetry.cleanup()


def test_rotations_in_the_same_second_do_not_collide(tmp_path):
    """A numeric suffix keeps archives from overwriting each other."""
    telemetry = TelemetryLogger(now=_fixed_now)
    telemetry.init(tmp_path)

    assert telemetry.rotate()
    assert telemetry.rotate()
    assert telemetry.rotate()
    telemetry.cleanup()

    assert (tmp_path / "session_20250320_100000.log").exists()
    assert (tmp_path / "session_20250320_100000_1.log").exists()
    assert (tmp_path / "session_20250320_100000_2.log").exists()
    assert (tmp_path / "metrics_20250320_100000_2.csv").exists()


def test_rotate_tolerates_missing_files(telemetry):
    """A file removed behind the logger's back is not a rotation error."""
    directory = telemetry.get_directory()
    (directory / "metrics.csv").unlink()

    assert telemetry.rotate() is True
    assert _lines(directory / "metrics.csv") == [HEADER]


def test_rename_failure_fails_rotate_and_writes_recover(telemetry, monkeypatch):
    """A failed rename reports False; the next write reopens the sinks."""

    def refuse(self, stamp):
        raise PermissionError("read-only")

    monkeypatch.setattr(FileSink, "archive", refuse)
    assert telemetry.rotate() is False

    monkeypatch.undo()
    assert telemetry.info("still logging") is True
    assert telemetry.metric("cpu_usage", 5.0) is True

    directory = telemetry.get_directory()
    assert "still logging" in (directory / "session.log").read_text()
    assert _lines(directory / "metrics.csv")[-1].endswith("cpu_usage,5.00")


def test_zero_threshold_never_rotates(tmp_path):
    """With rotation disabled, 10,000 records never trigger rotate()."""
    telemetry = TelemetryLogger()
    telemetry.init(tmp_path, rotation_mb=0)
    calls = []
    telemetry.rotate = lambda: calls.append(1) or True

    for i in range(5000):
        telemetry.info("padding line for rotation check", index=i)
        telemetry.metric("cpu_usage", float(i))
    telemetry.cleanup()

    assert calls == []
    assert list(tmp_path.glob("session_*.log")) == []


def test_rotation_is_lazy_and_triggers_before_next_write(tmp_path):
    """Crossing the threshold rotates on the following write, not before."""
    telemetry = TelemetryLogger(now=_fixed_now)
    telemetry.init(tmp_path, rotation_mb=1)

    big = "x" * (1024 * 1024)
    telemetry.info(big)
    assert list(tmp_path.glob("session_*.log")) == []

    telemetry.info("after threshold")
    telemetry.cleanup()

    archive = tmp_path / "session_20250320_100000.log"
    assert big in archive.read_text()
    assert "after threshold" in (tmp_path / "session.log").read_text()


def test_concurrent_writers_produce_whole_rows(tmp_path):
    """Rows written from many threads are never interleaved or lost."""
    telemetry = TelemetryLogger()
    telemetry.init(tmp_path, buffered=True)

    def writer(worker: int) -> None:
        for i in range(200):
            telemetry.metric("worker", worker, i)
            telemetry.info("progress", worker=worker, i=i)

    threads = [threading.Thread(target=writer, args=(w,)) for w in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    telemetry.cleanup()

    rows = _lines(tmp_path / "metrics.csv")
    assert len(rows) == 1 + 8 * 200
    assert all(METRIC_ROW.match(row) for row in rows[1:])
    progress = [line for line in _lines(tmp_path / "session.log") if "progress" in line]
    assert len(progress) == 8 * 200
    assert all(SESSION_LINE.match(line) for line in progress)


def test_context_manager_initializes_and_cleans_up(tmp_path):
    """TelemetryLogger.open yields a ready logger and tears it down."""
    with TelemetryLogger.open(tmp_path, level="DEBUG") as telemetry:
        assert telemetry.is_initialized
        telemetry.debug("inside")

    assert not telemetry.is_initialized
    assert "Logging system shutting down" in (tmp_path / "session.log").read_text()


def test_context_manager_raises_on_bad_directory(tmp_path):
    """Opening against an unusable path raises TelemetryInitError."""
    blocker = tmp_path / "file"
    blocker.write_text("x")

    with pytest.raises(TelemetryInitError):
        with TelemetryLogger.open(blocker):
            pass


def test_fields_may_reuse_parameter_names(telemetry):
    """Keyword fields named like log()/metric() parameters are plain fields."""
    assert telemetry.info("Threshold changed", level="DEBUG", message="m")
    assert telemetry.metric("event", name="gpu-fan", values=3)

    directory = telemetry.get_directory()
    assert "Threshold changed level=DEBUG message=m" in (directory / "session.log").read_text()
    last = _lines(directory / "metrics.csv")[-1]
    assert last.endswith(",event,name=gpu-fan,values=3")


def test_failed_startup_line_leaves_logger_uninitialized(tmp_path, monkeypatch):
    """If the startup line cannot be written, init unwinds completely."""
    telemetry = TelemetryLogger()

    def broken_log(self, level, message, /, **fields):
        raise RuntimeError("formatter exploded")

    monkeypatch.setattr(TelemetryLogger, "log", broken_log)
    with pytest.raises(RuntimeError):
        telemetry.init(tmp_path)
    assert not telemetry.is_initialized
    assert telemetry.get_directory() is None

    monkeypatch.undo()
    assert telemetry.init(tmp_path)
    telemetry.cleanup()


def test_unknown_level_on_uninitialized_logger_is_a_no_op():
    """Nothing raises before init, not even a bad level name."""
    assert TelemetryLogger().log("BOGUS", "ignored") is False


def test_header_reaches_disk_before_first_metric(tmp_path):
    """The CSV header is on disk right after init and after rotation."""
    telemetry = TelemetryLogger(now=_fixed_now)
    telemetry.init(tmp_path, buffered=True)

    assert _lines(tmp_path / "metrics.csv") == [HEADER]

    telemetry.metric("cpu_usage", 12.5, "%")
    assert telemetry.rotate()
    assert _lines(tmp_path / "metrics.csv") == [HEADER]

    telemetry.cleanup()


def test_concurrent_writers_across_rotations(tmp_path):
    """Rotation under contention never loses rows or drops a header."""
    telemetry = TelemetryLogger()
    telemetry.init(tmp_path, rotation_mb=1)
    padding = "x" * 2000

    def writer(worker: int) -> None:
        for i in range(400):
            telemetry.metric("pad", worker, i, padding)

    threads = [threading.Thread(target=writer, args=(w,)) for w in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    telemetry.cleanup()

    files = sorted(tmp_path.glob("metrics*.csv"))
    assert len(files) > 1

    seen = set()
    for path in files:
        rows = _lines(path)
        assert rows[0] == HEADER
        for row in rows[1:]:
            assert METRIC_ROW.match(row)
            _, _, name, worker, i, pad = row.split(",")
            assert name == "pad" and pad == padding
            seen.add((int(worker), int(i)))

    assert len(seen) == 8 * 400
    assert sum(len(_lines(path)) - 1 for path in files) == 8 * 400

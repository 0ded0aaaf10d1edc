"""Tests for the CPU stress coordinator and its cancellation token."""

import threading
import time

import pytest

from crucible.models.constants import TestMode
from crucible.models.cpu_models import CpuTopology, StressPlan
from crucible.stress.cancellation import CancellationToken
from crucible.stress.coordinator import StressCoordinator, make_sqrt_kernel
from crucible.telemetry import TelemetryLogger

TOPOLOGY = CpuTopology(cores=4, threads=8)


@pytest.fixture
def telemetry(tmp_path):
    logger = TelemetryLogger()
    logger.init(tmp_path, buffered=False)
    yield logger
    logger.cleanup()


def _session(telemetry):
    return (telemetry.get_directory() / "session.log").read_text()


def _forbidden_thread(*args, **kwargs):
    raise AssertionError("no worker thread should be created")


# -------------------------------------------------------------------------
# CancellationToken
# -------------------------------------------------------------------------


def test_token_expires_at_deadline(fake_clock):
    """should_stop flips once the clock reaches the deadline."""
    token = CancellationToken.after(5, fake_clock)

    assert not token.should_stop()
    assert token.remaining() == 5
    fake_clock.advance(4)
    assert not token.expired
    fake_clock.advance(1)
    assert token.expired and token.should_stop()
    assert token.remaining() == 0.0


def test_token_cancel_wakes_waiters():
    """cancel() interrupts a long wait well before the deadline."""
    token = CancellationToken.after(60)
    woke = threading.Event()

    def waiter():
        token.wait(60)
        woke.set()

    thread = threading.Thread(target=waiter)
    thread.start()
    token.cancel()
    thread.join(timeout=5)

    assert woke.is_set()
    assert token.cancelled and token.should_stop()


# -------------------------------------------------------------------------
# Mode policy
# -------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("mode", "threads", "duration"),
    [
        (TestMode.BASELINE, 0, 0),
        (TestMode.STRESS, 8, 45),
        (TestMode.LOAD, 4, 45),
        (TestMode.SPIKE, 8, 30),
    ],
)
def test_plan_table(mode, threads, duration):
    """Worker count and run length follow the fixed mode table."""
    assert StressCoordinator.plan(mode, 45, TOPOLOGY) == StressPlan(mode, threads, duration)


def test_plan_rejects_all_mode():
    """ALL is a sequence of modes, not a single phase."""
    with pytest.raises(ValueError):
        StressCoordinator.plan(TestMode.ALL, 10, TOPOLOGY)


def test_spike_plan_ignores_configured_duration():
    """Spike always runs for 30 seconds."""
    for duration in (1, 29, 31, 3600):
        assert StressCoordinator.plan(TestMode.SPIKE, duration, TOPOLOGY).duration_seconds == 30


def test_invalid_intensity_rejected(telemetry):
    with pytest.raises(ValueError):
        StressCoordinator(telemetry, intensity=0)


# -------------------------------------------------------------------------
# Running phases
# -------------------------------------------------------------------------


def test_baseline_spawns_no_threads(telemetry):
    """Baseline returns success immediately regardless of duration."""
    coordinator = StressCoordinator(telemetry, thread_factory=_forbidden_thread)

    started = time.monotonic()
    outcome = coordinator.run_stress(TestMode.BASELINE, 3600, TOPOLOGY)

    assert time.monotonic() - started < 1.0
    assert outcome.success
    assert outcome.threads_started == 0
    assert outcome.workers == []


def test_load_on_single_thread_machine_runs_nothing(telemetry):
    """Half of one thread is zero workers; the phase still succeeds."""
    coordinator = StressCoordinator(telemetry, thread_factory=_forbidden_thread)

    outcome = coordinator.run_stress(TestMode.LOAD, 10, CpuTopology(cores=1, threads=1))

    assert outcome.success
    assert "No worker threads for CPU stress mode mode=load" in _session(telemetry)


def test_stress_runs_all_workers_until_deadline(telemetry):
    """Every worker runs real kernels and is joined before returning."""
    coordinator = StressCoordinator(telemetry)

    outcome = coordinator.run_stress(TestMode.STRESS, 1, CpuTopology(cores=2, threads=2))

    assert outcome.success
    assert outcome.threads_started == 2
    assert len(outcome.workers) == 2
    assert all(worker.ok and worker.iterations > 0 for worker in outcome.workers)
    assert 1.0 <= outcome.elapsed_seconds < 3.0
    assert not any(t.name.startswith("crucible-stress") for t in threading.enumerate())

    log = _session(telemetry)
    assert "Starting CPU stress test mode=stress threads=2 duration_seconds=1" in log
    assert "CPU stress test completed mode=stress" in log


def test_spike_runs_exactly_thirty_seconds(telemetry, fake_clock):
    """Spike stops at the 30 second deadline even when asked for 5."""

    def kernel_factory():
        return lambda: fake_clock.advance(1.0)

    coordinator = StressCoordinator(
        telemetry, clock=fake_clock, kernel_factory=kernel_factory
    )

    outcome = coordinator.run_stress(TestMode.SPIKE, 5, CpuTopology(cores=1, threads=2))

    assert outcome.success
    assert outcome.duration_seconds == 30
    # Each worker may finish one kernel already in flight at the deadline
    assert 30.0 <= outcome.elapsed_seconds <= 32.0
    assert 30 <= outcome.total_iterations <= 32


def test_reduced_intensity_idles_between_slices(telemetry):
    """At low intensity workers spend most of each slice waiting."""
    full = StressCoordinator(telemetry, intensity=100)
    light = StressCoordinator(telemetry, intensity=10)
    topology = CpuTopology(cores=1, threads=1)

    busy = full.run_stress(TestMode.STRESS, 1, topology).total_iterations
    idle = light.run_stress(TestMode.STRESS, 1, topology).total_iterations

    assert 0 < idle < busy


def test_worker_started_after_deadline_does_no_work(telemetry, fake_clock):
    """A worker whose token already expired returns at once."""
    calls = []
    coordinator = StressCoordinator(
        telemetry,
        clock=fake_clock,
        kernel_factory=lambda: (lambda: calls.append(1)),
    )
    token = CancellationToken(deadline=0.0, clock=fake_clock)
    slots = [None]

    coordinator._worker(0, token, slots)

    assert calls == []
    assert slots[0].ok and slots[0].iterations == 0


def test_thread_start_failure_stops_and_joins_started_workers(telemetry):
    """If worker k cannot start, workers 0..k-1 are cancelled and joined."""
    created = []

    class FlakyThread(threading.Thread):
        def start(self):
            if len(created) == 3:
                raise RuntimeError("can't start new thread")
            created.append(self)
            super().start()

    coordinator = StressCoordinator(telemetry, thread_factory=FlakyThread)

    started = time.monotonic()
    outcome = coordinator.run_stress(TestMode.STRESS, 600, TOPOLOGY)

    assert time.monotonic() - started < 10
    assert not outcome.success
    assert outcome.threads_started == 3
    assert "failed to start worker 3" in outcome.error
    assert all(not thread.is_alive() for thread in created)
    assert "[ERROR] Failed to create CPU stress thread index=3" in _session(telemetry)


def test_worker_exception_is_reported_not_raised(telemetry):
    """A raising kernel fails the phase through the worker's result slot."""

    def kernel_factory():
        def kernel():
            raise FloatingPointError("overflow")

        return kernel

    coordinator = StressCoordinator(telemetry, kernel_factory=kernel_factory)

    outcome = coordinator.run_stress(TestMode.STRESS, 5, CpuTopology(cores=1, threads=2))

    assert not outcome.success
    assert [worker.error for worker in outcome.workers] == ["overflow", "overflow"]
    assert outcome.error == "2 worker(s) failed"
    assert "CPU stress worker failed index=0 reason=overflow" in _session(telemetry)


def test_sqrt_kernel_is_deterministic():
    kernel = make_sqrt_kernel(size=10)
    assert kernel() == pytest.approx(sum(i**0.5 for i in range(10)))
    assert kernel() == kernel()


def test_any_thread_start_error_stops_started_workers(telemetry):
    """Non-RuntimeError start failures still cancel and join earlier workers."""
    created = []

    def thread_factory(**kwargs):
        if len(created) == 2:
            raise OSError("resource temporarily unavailable")
        thread = threading.Thread(**kwargs)
        created.append(thread)
        return thread

    coordinator = StressCoordinator(telemetry, thread_factory=thread_factory)

    started = time.monotonic()
    outcome = coordinator.run_stress(TestMode.STRESS, 600, TOPOLOGY)

    assert time.monotonic() - started < 10
    assert not outcome.success
    assert outcome.threads_started == 2
    assert "failed to start worker 2" in outcome.error
    assert all(not thread.is_alive() for thread in created)

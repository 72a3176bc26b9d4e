from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from mongodb_client.database.health import HealthGate, ping_probe
from mongodb_client.errors import HealthCheckError


class FakeClock:
    """Monotonic clock advanced only by the gate's own sleeps."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def flaky_probe(clock, failures):
    """Probe that fails `failures` times, then succeeds; records the time of each call."""
    calls = []

    async def probe():
        calls.append(clock.now)
        if len(calls) <= failures:
            raise ServerSelectionTimeoutError("no primary available")

    return probe, calls


def make_gate(clock, probe, interval=15.0, timeout=60.0):
    return HealthGate(probe, interval=interval, timeout=timeout, clock=clock, sleep=clock.sleep)


@pytest.mark.asyncio
async def test_gate_opens_on_first_successful_probe():
    clock = FakeClock()
    probe, calls = flaky_probe(clock, failures=0)

    attempts = await make_gate(clock, probe).wait_until_ready()

    assert attempts == 1
    assert calls == [0.0]
    assert clock.sleeps == []


@pytest.mark.asyncio
@pytest.mark.parametrize("failures", [1, 2, 3])
async def test_gate_opens_after_k_failures_when_below_ceiling(failures):
    clock = FakeClock()
    probe, calls = flaky_probe(clock, failures=failures)

    attempts = await make_gate(clock, probe).wait_until_ready()

    assert attempts == failures + 1
    assert calls == [15.0 * n for n in range(failures + 1)]


@pytest.mark.asyncio
async def test_gate_fails_when_failures_reach_ceiling():
    clock = FakeClock()
    probe, calls = flaky_probe(clock, failures=4)

    with pytest.raises(HealthCheckError) as exc_info:
        await make_gate(clock, probe).wait_until_ready()

    assert exc_info.value.attempts == 4
    assert calls == [0.0, 15.0, 30.0, 45.0]
    assert clock.now == 60.0


@pytest.mark.asyncio
async def test_continuous_failure_probes_exactly_four_times():
    clock = FakeClock()
    probe, calls = flaky_probe(clock, failures=1000)

    with pytest.raises(HealthCheckError) as exc_info:
        await make_gate(clock, probe).wait_until_ready()

    assert len(calls) == 4
    assert isinstance(exc_info.value.last_error, ServerSelectionTimeoutError)
    assert "4 probe(s)" in str(exc_info.value)


@pytest.mark.asyncio
async def test_slow_probe_time_counts_against_schedule():
    clock = FakeClock()
    calls = []

    async def slow_probe():
        calls.append(clock.now)
        clock.now += 20.0
        raise ServerSelectionTimeoutError("slow")

    with pytest.raises(HealthCheckError):
        await make_gate(clock, slow_probe).wait_until_ready()

    # Each probe takes longer than the interval, so the next one starts right away.
    assert calls == [0.0, 20.0, 40.0]
    assert clock.now == 60.0


@pytest.mark.asyncio
async def test_unexpected_probe_errors_propagate():
    clock = FakeClock()

    async def broken_probe():
        raise ValueError("programming error")

    with pytest.raises(ValueError):
        await make_gate(clock, broken_probe).wait_until_ready()


def test_gate_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        HealthGate(AsyncMock(), interval=0, timeout=60)


@pytest.mark.asyncio
async def test_ping_probe_pings_admin_database():
    handle = MagicMock()
    handle.client.admin.command = AsyncMock(return_value={"ok": 1})

    await ping_probe(handle)

    handle.client.admin.command.assert_awaited_once_with("ping")

"""
# Database Health Gate

Bounded-retry readiness barrier. Startup does not continue until the
application connection answers a `ping`, or fails once a time ceiling elapses.

## Probe Schedule

Probes are scheduled relative to the moment the gate starts:

```
interval = 15s, timeout = 60s

t=0    probe #1  (immediately)
t=15   probe #2
t=30   probe #3
t=45   probe #4
t=60   ceiling reached -> HealthCheckError (no probe #5)
```

A probe that fails `k` times and then succeeds opens the gate on attempt `k+1`
if `k * interval < timeout`; otherwise the gate fails after `k` attempts.

Each failed probe is logged as a warning and never aborts the gate on its own.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional

from pymongo.errors import PyMongoError

from mongodb_client.database.manager import ConnectionHandle
from mongodb_client.errors import HealthCheckError
from mongodb_client.managers.logging_manager import get_logger
from mongodb_client.services.metrics import service_metrics

health_logger = get_logger(prefix="[DB_HEALTH]")

Probe = Callable[[], Awaitable[object]]

PROBE_ERRORS = (PyMongoError, OSError, asyncio.TimeoutError)


async def ping_probe(handle: ConnectionHandle) -> None:
    """Send `ping` to the admin database of the handle's client (primary read preference)."""
    await handle.client.admin.command("ping")


class HealthGate:
    """
    Poll a probe until it succeeds or the ceiling elapses.

    Args:
        probe: Zero-argument coroutine function; returning without raising is success.
        interval: Seconds between scheduled probes.
        timeout: Total ceiling in seconds, measured from the first probe.
        clock: Monotonic clock, replaceable in tests.
        sleep: Coroutine used to wait between probes, replaceable in tests.
    """

    def __init__(
        self,
        probe: Probe,
        interval: float = 15.0,
        timeout: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if interval <= 0 or timeout <= 0:
            raise ValueError("interval and timeout must be positive")
        self.probe = probe
        self.interval = interval
        self.timeout = timeout
        self._clock = clock
        self._sleep = sleep
        self.attempts = 0

    async def wait_until_ready(self) -> int:
        """
        Block until a probe succeeds.

        Returns:
            int: The attempt number that succeeded.

        Raises:
            HealthCheckError: If the ceiling elapsed before any probe succeeded.
        """
        start = self._clock()
        deadline = start + self.timeout
        last_error: Optional[BaseException] = None
        self.attempts = 0

        health_logger.info("Checking access to database...")
        while True:
            self.attempts += 1
            try:
                await self.probe()
            except PROBE_ERRORS as e:
                last_error = e
                service_metrics.record_probe(success=False)
                health_logger.warning("Unable to ping database (attempt %d): %s", self.attempts, e)
            else:
                service_metrics.record_probe(success=True)
                health_logger.info(
                    "Ping successful (attempt %d, %.3fs)", self.attempts, self._clock() - start
                )
                return self.attempts

            now = self._clock()
            # A probe slower than the interval pushes the next one back to "now".
            next_probe = max(start + self.attempts * self.interval, now)
            if next_probe >= deadline:
                if deadline > now:
                    await self._sleep(deadline - now)
                health_logger.error("Database not reachable within %.1fs", self.timeout)
                raise HealthCheckError(self.attempts, self.timeout, last_error)

            if next_probe > now:
                await self._sleep(next_probe - now)

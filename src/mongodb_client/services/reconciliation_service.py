"""
# Reconciliation Service

Runs a unit of work on a fixed period until the shared `StopSignal` fires.

## State Machine

```
        tick / start                 task returns or raises
IDLE ─────────────────▶ RUNNING ─────────────────────────────▶ IDLE
  ▲                                                            │
  └──────────────── wait `period` (wakes early on stop) ◀──────┘
```

- The first iteration runs immediately; the next one starts `period` seconds
  after the previous one **completed** (never overlapping, single-flight).
- The stop signal is checked at the top of every iteration. Once it is set no
  new iteration begins; an iteration already running is never interrupted.
- A failing iteration (exception or `False`) is logged and counted; the loop
  keeps going and the work is retried at the next tick.

An optional `task_timeout` bounds a single iteration with `asyncio.wait_for`.
It is off by default so iterations always run to completion.
"""

import asyncio
from enum import Enum
import time
from typing import Awaitable, Callable, Optional

from mongodb_client.managers.logging_manager import get_logger
from mongodb_client.managers.stop_signal import StopSignal
from mongodb_client.services.metrics import service_metrics

logger = get_logger(prefix="[RECONCILE]")

ReconciliationTask = Callable[[], Awaitable[bool]]


class LoopState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


async def process_loop() -> bool:
    """Default unit of work: nothing to reconcile yet."""
    return True


class ReconciliationLoop:
    """
    Periodic, single-flight runner for a reconciliation task.

    Args:
        name: Task name used in logs and metric labels.
        task: Coroutine function with no arguments returning `True` on success.
        stop: Shared stop signal.
        period: Seconds to wait after an iteration before starting the next.
        task_timeout: Optional per-iteration timeout in seconds.
    """

    def __init__(
        self,
        name: str,
        task: ReconciliationTask,
        stop: StopSignal,
        period: float = 300.0,
        task_timeout: Optional[float] = None,
    ):
        if period <= 0:
            raise ValueError("period must be positive")
        self.name = name
        self.task = task
        self.stop = stop
        self.period = period
        self.task_timeout = task_timeout
        self.state = LoopState.IDLE
        self.iterations = 0
        self.failures = 0

    async def run(self) -> None:
        """Run iterations until the stop signal is observed."""
        logger.info("Starting %s loop (period: %.1fs)", self.name, self.period)
        while not self.stop.is_set():
            await self.run_once()
            if await self.stop.wait(self.period):
                break
        logger.info(
            "%s loop stopped after %d iteration(s), %d failed", self.name, self.iterations, self.failures
        )

    async def run_once(self) -> bool:
        """
        Execute one timed iteration.

        Returns:
            bool: `True` if the task succeeded.
        """
        self.state = LoopState.RUNNING
        self.iterations += 1
        service_metrics.record_iteration_start(self.name)
        outcome = "cancelled"
        error: Optional[BaseException] = None
        start = time.perf_counter()
        try:
            if self.task_timeout is not None:
                result = await asyncio.wait_for(self.task(), timeout=self.task_timeout)
            else:
                result = await self.task()
            outcome = "failure" if result is False else "success"
        except asyncio.TimeoutError:
            outcome = "timeout"
        except Exception as e:
            outcome = "error"
            error = e
        finally:
            duration = time.perf_counter() - start
            self.state = LoopState.IDLE
            service_metrics.record_iteration(self.name, outcome, duration)

        if outcome == "success":
            logger.info("%s finished in: %d ms", self.name, int(duration * 1000))
            return True

        self.failures += 1
        if outcome == "failure":
            logger.error("%s reported failure after %d ms", self.name, int(duration * 1000))
        elif outcome == "timeout":
            logger.error("%s timed out after %.1fs", self.name, self.task_timeout or duration)
        elif outcome == "error":
            logger.error("%s failed after %d ms: %s", self.name, int(duration * 1000), error, exc_info=error)
        return False

"""
Shared shutdown signal.

A `StopSignal` is created once by the CLI and passed by reference to the
lifecycle controller, the reconciliation loop and the metrics server. It is
write-once: the first `set()` records the reason (and an optional fatal error);
later calls are ignored. Waiters are released as soon as it is set.
"""

import asyncio
import signal
from typing import Iterable, Optional

from mongodb_client.managers.logging_manager import get_logger

logger = get_logger(prefix="[SHUTDOWN]")

TERMINATION_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class StopSignal:
    """Write-once cancellation signal backed by an `asyncio.Event`."""

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: Optional[str] = None
        self.error: Optional[BaseException] = None

    def set(self, reason: str = "stop requested", error: Optional[BaseException] = None) -> bool:
        """
        Fire the signal.

        Returns:
            bool: `True` if this call fired the signal, `False` if it was already set.
        """
        if self._event.is_set():
            logger.debug("Stop already requested (%s); ignoring: %s", self.reason, reason)
            return False
        self.reason = reason
        self.error = error
        self._event.set()
        if error is not None:
            logger.error("Stopping: %s (%s)", reason, error)
        else:
            logger.info("Stopping: %s", reason)
        return True

    def is_set(self) -> bool:
        return self._event.is_set()

    async def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the signal.

        Args:
            timeout: Seconds to wait; `None` waits forever.

        Returns:
            bool: `True` if the signal is set, `False` if the timeout elapsed first.
        """
        if timeout is None:
            await self._event.wait()
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return self._event.is_set()
        return True

    def install_signal_handlers(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        signals: Iterable[signal.Signals] = TERMINATION_SIGNALS,
    ) -> None:
        """Deliver the stop signal when the process receives SIGINT or SIGTERM."""
        loop = loop or asyncio.get_running_loop()
        for sig in signals:
            try:
                loop.add_signal_handler(sig, self.set, f"received {sig.name}")
            except (NotImplementedError, RuntimeError):
                # Not supported on this platform or outside the main thread.
                logger.warning("Cannot install handler for %s", sig.name)

    def remove_signal_handlers(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        signals: Iterable[signal.Signals] = TERMINATION_SIGNALS,
    ) -> None:
        loop = loop or asyncio.get_running_loop()
        for sig in signals:
            try:
                loop.remove_signal_handler(sig)
            except (NotImplementedError, RuntimeError) as e:
                logger.debug("Cannot remove handler for %s: %s", sig.name, e)

import asyncio
import signal
from unittest.mock import MagicMock

import pytest

from mongodb_client.errors import MetricsServerError
from mongodb_client.managers.stop_signal import StopSignal


@pytest.mark.asyncio
async def test_first_set_wins():
    stop = StopSignal()
    error = MetricsServerError("bind failed")

    assert stop.set("metrics server failed", error) is True
    assert stop.set("received SIGTERM") is False

    assert stop.is_set()
    assert stop.reason == "metrics server failed"
    assert stop.error is error


@pytest.mark.asyncio
async def test_wait_times_out_when_not_set():
    stop = StopSignal()

    assert await stop.wait(0.01) is False
    assert not stop.is_set()


@pytest.mark.asyncio
async def test_wait_returns_when_set_from_another_task():
    stop = StopSignal()

    asyncio.get_running_loop().call_later(0.01, stop.set, "test")

    assert await stop.wait(1) is True
    assert stop.reason == "test"


@pytest.mark.asyncio
async def test_install_signal_handlers_registers_termination_signals():
    stop = StopSignal()
    loop = MagicMock()

    stop.install_signal_handlers(loop)

    registered = [call.args[0] for call in loop.add_signal_handler.call_args_list]
    assert registered == [signal.SIGINT, signal.SIGTERM]


@pytest.mark.asyncio
async def test_install_signal_handlers_tolerates_unsupported_platforms():
    stop = StopSignal()
    loop = MagicMock()
    loop.add_signal_handler.side_effect = NotImplementedError

    stop.install_signal_handlers(loop)

    assert not stop.is_set()


@pytest.mark.asyncio
async def test_registered_handler_sets_stop():
    stop = StopSignal()
    loop = MagicMock()

    stop.install_signal_handlers(loop, signals=(signal.SIGTERM,))
    _, callback, reason = loop.add_signal_handler.call_args.args
    callback(reason)

    assert stop.reason == "received SIGTERM"

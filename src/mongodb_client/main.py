"""
# Lifecycle Controller

Orchestrates the whole life of the process on a single event loop.

## Startup Phase

1.  **Metrics**: starts the metrics server task when a listen address is set.
2.  **Configuration**: loads the six required connection variables.
3.  **Connections**: opens the application and admin connections.
4.  **Health Gate**: polls the application connection until it answers `ping`.
5.  **Sample Data**: runs the one-shot sample CRUD operations.
6.  **Reconciliation**: starts the periodic reconciliation loop task.

Steps 1 to 5 are strictly sequential; the reconciliation loop never starts
before the sample operations finished.

## Blocking Phase

The controller then waits on the shared `StopSignal` (SIGINT, SIGTERM, or a
fatal metrics server failure).

## Shutdown Phase

1.  **Reconciliation**: waits for the in-flight iteration (if any) to finish.
2.  **Connections**: releases the admin handle, then the application handle.
3.  **Metrics**: stops the metrics server.

Errors are not handled here: they propagate as typed exceptions to the single
top-level handler in `mongodb_client.cli`, which chooses the exit code. A stop
signal carrying an error (for example `MetricsServerError`) is re-raised once
teardown is complete.
"""

import asyncio
import contextlib
import time
from typing import Awaitable, Mapping, Optional

from pydantic import BaseModel

from mongodb_client.config import load_connection_config, settings
from mongodb_client.database.health import HealthGate, ping_probe
from mongodb_client.database.manager import ConnectionManager
from mongodb_client.managers.logging_manager import get_logger
from mongodb_client.managers.stop_signal import StopSignal
from mongodb_client.services.metrics_server import (
    DEFAULT_LISTEN,
    MetricsServer,
    ServiceStatus,
    create_metrics_app,
)
from mongodb_client.services.reconciliation_service import (
    ReconciliationLoop,
    ReconciliationTask,
    process_loop,
)
from mongodb_client.services.sample_data_service import SampleDataService
from mongodb_client.utils.logging_utils import log_application_lifecycle

logger = get_logger()


class RunOptions(BaseModel):
    """Options parsed from the command line."""

    listen: str = DEFAULT_LISTEN
    dry_run: bool = False


async def run_unless_stopped(awaitable: Awaitable, stop: StopSignal) -> bool:
    """
    Await `awaitable` unless the stop signal fires first.

    Returns:
        bool: `True` if the awaitable completed, `False` if it was cancelled by the stop signal.
    """
    work = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(stop.wait())
    try:
        await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except BaseException:
        work.cancel()
        raise
    finally:
        waiter.cancel()

    if work.done():
        work.result()
        return True

    work.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await work
    return False


async def run(
    options: RunOptions,
    stop: StopSignal,
    environ: Optional[Mapping[str, str]] = None,
    task: ReconciliationTask = process_loop,
) -> None:
    """
    Run the client until the stop signal fires.

    Args:
        options: Command line options.
        stop: Shared stop signal.
        environ: Environment to read the connection configuration from; `os.environ` by default.
        task: Unit of work for the reconciliation loop.

    Raises:
        ConfigurationError: A required variable is missing.
        DatabaseConnectionError: A connection could not be created.
        HealthCheckError: The database did not answer in time.
        SampleDataError: A sample operation failed.
        TeardownError: A connection could not be released.
        MetricsServerError: The metrics server failed (re-raised after teardown).
    """
    logger.info("Starting...")
    log_application_lifecycle("startup_initiated", {"listen": options.listen, "dry_run": options.dry_run})

    status = ServiceStatus()
    metrics_server: Optional[MetricsServer] = None
    if options.listen:
        metrics_server = MetricsServer(options.listen, create_metrics_app(status), stop)
        metrics_server.start()
    else:
        logger.info("Metrics endpoint disabled")

    try:
        await _run_connected(options, stop, status, environ, task)
    finally:
        status.stopping = True
        if metrics_server is not None:
            await metrics_server.shutdown(timeout=settings.SHUTDOWN_TIMEOUT)

    if stop.error is not None:
        raise stop.error


async def _run_connected(
    options: RunOptions,
    stop: StopSignal,
    status: ServiceStatus,
    environ: Optional[Mapping[str, str]],
    task: ReconciliationTask,
) -> None:
    startup_start_time = time.time()
    config = load_connection_config(environ)
    log_application_lifecycle(
        "configuration_loaded",
        {"host": config.MONGODB_HOST, "port": config.MONGODB_PORT, "database": config.MONGODB_DATABASE},
    )

    manager = ConnectionManager(config)
    async with manager.open() as (client, admin_client):
        gate = HealthGate(
            lambda: ping_probe(client),
            interval=settings.HEALTH_CHECK_INTERVAL,
            timeout=settings.HEALTH_CHECK_TIMEOUT,
        )
        if not await run_unless_stopped(gate.wait_until_ready(), stop):
            logger.info("Stopped while waiting for the database")
            return
        status.database_ready = True
        log_application_lifecycle("database_ready", {"probe_attempts": gate.attempts})

        sample_data = SampleDataService(
            client,
            admin_client,
            database_name=settings.SAMPLE_DATABASE,
            dry_run=options.dry_run,
            operation_timeout=settings.SAMPLE_OPERATION_TIMEOUT,
        )
        if not await run_unless_stopped(sample_data.run_all(), stop):
            logger.info("Stopped while running sample operations")
            return

        loop = ReconciliationLoop(
            "process_loop",
            task,
            stop,
            period=settings.RECONCILE_INTERVAL,
            task_timeout=settings.RECONCILE_TASK_TIMEOUT,
        )
        loop_task = asyncio.create_task(loop.run(), name="reconcile-loop")
        status.reconcile_state = "running"
        log_application_lifecycle(
            "startup_completed", {"total_startup_duration": f"{time.time() - startup_start_time:.3f}s"}
        )

        await stop.wait()
        logger.info("Exit...")
        shutdown_start_time = time.time()
        status.stopping = True

        # An in-flight iteration always runs to completion.
        await loop_task
        status.reconcile_state = "stopped"

    log_application_lifecycle(
        "shutdown_completed",
        {"reason": stop.reason, "shutdown_duration": f"{time.time() - shutdown_start_time:.3f}s"},
    )

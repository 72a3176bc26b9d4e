"""
# Metrics Server

Pull-based metrics surface served on the `--listen` address.

- `GET /metrics`: Prometheus text exposition (default registry), wired with
  `prometheus_fastapi_instrumentator` so HTTP requests are measured as well.
- `GET /health`: readiness summary; `200` once the health gate opened, `503`
  before that or while shutting down.

The FastAPI application is served by `uvicorn` as a task inside the main event
loop. uvicorn's own signal handling is disabled: SIGINT and SIGTERM belong to
the shared `StopSignal`. If the server cannot bind, or stops while the process
is still running, the stop signal is fired with a `MetricsServerError`, which
makes the whole process exit non-zero.
"""

import asyncio
import contextlib
from typing import Optional, Tuple

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from pydantic import BaseModel
import uvicorn

from mongodb_client.errors import MetricsServerError
from mongodb_client.managers.logging_manager import get_logger
from mongodb_client.managers.stop_signal import StopSignal

logger = get_logger(prefix="[METRICS]")

DEFAULT_LISTEN = ":8080"


class ServiceStatus(BaseModel):
    """Runtime status reported by `/health`."""

    database_ready: bool = False
    reconcile_state: str = "not_started"
    stopping: bool = False


def parse_listen_address(listen: str) -> Tuple[str, int]:
    """
    Split a listen address into host and port.

    Accepts `:8080` (all interfaces), `host:8080` and `[::1]:8080`.

    Raises:
        ValueError: If the address has no valid port.
    """
    host, sep, port = listen.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"Invalid listen address: {listen!r}")
    port_number = int(port)
    if not 0 <= port_number <= 65535:
        raise ValueError(f"Invalid listen port: {port_number}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host or "0.0.0.0", port_number


def create_metrics_app(status: ServiceStatus) -> FastAPI:
    """Build the FastAPI application exposing `/metrics` and `/health`."""
    app = FastAPI(title="mongodb-client", docs_url=None, redoc_url=None, openapi_url=None)

    @app.get("/health", include_in_schema=False)
    async def health() -> JSONResponse:
        healthy = status.database_ready and not status.stopping
        return JSONResponse(
            status_code=200 if healthy else 503,
            content={"status": "healthy" if healthy else "unavailable", **status.model_dump()},
        )

    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        should_respect_env_var=False,
        excluded_handlers=["/metrics"],
    )
    instrumentator.instrument(app).expose(app, include_in_schema=False, endpoint="/metrics")
    return app


class _EmbeddedServer(uvicorn.Server):
    """uvicorn server that leaves process signals to the caller."""

    def install_signal_handlers(self) -> None:
        pass

    @contextlib.contextmanager
    def capture_signals(self):
        yield


class MetricsServer:
    """
    Runs the metrics application on its own asyncio task.

    Args:
        listen: Listen address, for example `:8080`.
        app: Application returned by `create_metrics_app()`.
        stop: Stop signal fired with a `MetricsServerError` if serving fails.
    """

    def __init__(self, listen: str, app: FastAPI, stop: StopSignal):
        self.listen = listen
        self.stop = stop
        host, port = parse_listen_address(listen)
        config = uvicorn.Config(
            app,
            host=host,
            port=port,
            log_level="warning",
            access_log=False,
            lifespan="off",
        )
        self.server = _EmbeddedServer(config)
        self._task: Optional[asyncio.Task] = None
        self._stopping = False

    def start(self) -> asyncio.Task:
        self._task = asyncio.create_task(self._serve(), name="metrics-server")
        return self._task

    async def _serve(self) -> None:
        logger.info("Listening on %s for metrics", self.listen)
        try:
            await self.server.serve()
        except SystemExit as e:
            # uvicorn exits the process when it cannot bind.
            self._fail(f"Metrics server could not listen on {self.listen} (exit code {e.code})")
            return
        except Exception as e:
            self._fail(f"Metrics server exited: {e}")
            return
        if not self._stopping:
            self._fail("Metrics server exited unexpectedly")

    def _fail(self, message: str) -> None:
        logger.error(message)
        self.stop.set("metrics server failed", MetricsServerError(message))

    async def shutdown(self, timeout: float = 5.0) -> None:
        """Ask uvicorn to exit and wait for the serving task."""
        self._stopping = True
        if self._task is None or self._task.done():
            return
        self.server.should_exit = True
        try:
            await asyncio.wait_for(self._task, timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Metrics server did not stop within %.1fs; cancelling", timeout)
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        logger.info("Metrics server stopped")

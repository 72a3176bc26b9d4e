"""
Error taxonomy for the MongoDB client.

Components raise these exceptions and never terminate the process themselves.
The single top-level handler in `mongodb_client.cli` maps them to exit codes.

- `ConfigurationError`: a required environment variable is missing or empty.
- `DatabaseConnectionError`: a connection to MongoDB could not be established.
- `HealthCheckError`: the health gate ceiling elapsed without a successful probe.
- `ReconciliationError`: a reconciliation iteration failed (recovered by the loop).
- `SampleDataError`: one of the sample CRUD operations failed.
- `MetricsServerError`: the metrics HTTP server failed to bind or stopped unexpectedly.
- `TeardownError`: one or more connection handles could not be released.
"""

from typing import List, Optional


class MongoDBClientError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(MongoDBClientError):
    """Raised when a required configuration value is missing or invalid."""

    def __init__(self, variable: str, message: Optional[str] = None):
        self.variable = variable
        super().__init__(message or f"{variable} is not defined")


class DatabaseConnectionError(MongoDBClientError):
    """Raised when a MongoDB connection cannot be established."""

    def __init__(self, name: str, message: str):
        self.name = name
        super().__init__(f"Unable to connect to MongoDB ({name}): {message}")


class HealthCheckError(MongoDBClientError):
    """Raised when the database did not answer a probe before the ceiling elapsed."""

    def __init__(self, attempts: int, timeout: float, last_error: Optional[BaseException] = None):
        self.attempts = attempts
        self.timeout = timeout
        self.last_error = last_error
        detail = f": {last_error}" if last_error is not None else ""
        super().__init__(f"Database not reachable after {attempts} probe(s) in {timeout:g}s{detail}")


class ReconciliationError(MongoDBClientError):
    """Raised by reconciliation tasks to signal a failed iteration."""


class SampleDataError(MongoDBClientError):
    """Raised when a sample CRUD operation fails."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"Sample operation '{operation}' failed: {message}")


class MetricsServerError(MongoDBClientError):
    """Raised when the metrics server cannot bind or exits while the process is running."""


class TeardownError(MongoDBClientError):
    """Raised after all releases were attempted and at least one of them failed."""

    def __init__(self, errors: List[BaseException]):
        self.errors = list(errors)
        summary = "; ".join(str(error) for error in self.errors)
        super().__init__(f"{len(self.errors)} connection(s) failed to release: {summary}")

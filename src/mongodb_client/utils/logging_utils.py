"""Structured lifecycle and error logging helpers."""

import json
from typing import Any, Dict, Optional

from mongodb_client.managers.logging_manager import get_logger

lifecycle_logger = get_logger(prefix="[LIFECYCLE]")
error_logger = get_logger(prefix="[ERROR]")


def log_application_lifecycle(event: str, details: Optional[Dict[str, Any]] = None) -> None:
    """Log a lifecycle event (startup step, shutdown step) with its details as JSON."""
    payload = json.dumps(details or {}, default=str, sort_keys=True)
    lifecycle_logger.info("%s %s", event, payload)


def log_error_with_context(error: BaseException, context: Optional[Dict[str, Any]] = None) -> None:
    """Log an error together with the operation context it happened in."""
    payload = json.dumps(context or {}, default=str, sort_keys=True)
    error_logger.error("%s: %s %s", type(error).__name__, error, payload)

"""
Error Instrumentation Module
Structured logging and error context capture for move-forge.

Every orchestration run gets a request context with correlation ids so the
logs of one generate/compile cycle can be stitched together.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
import uuid
import traceback
import json
import logging
from contextvars import ContextVar

# Context storage (task-local)
request_context: ContextVar[Dict[str, Any]] = ContextVar(
    'request_context',
    default={}
)

logger = logging.getLogger(__name__)


def create_request_context(
    simulation_id: Optional[str] = None,
    service_name: str = "move_forge"
) -> Dict[str, Any]:
    """
    Create context with unique IDs for an operation lifecycle.

    Use this at the start of every orchestration step.
    All logs will automatically include these IDs.
    """
    return {
        "request_id": str(uuid.uuid4()),
        "trace_id": str(uuid.uuid4()),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service_name": service_name,
        "simulation_id": simulation_id,
    }


def get_request_context() -> Dict[str, Any]:
    """
    Get current request context (use in all logging).

    If no context exists, creates one automatically.
    """
    ctx = request_context.get({})
    if not ctx:
        ctx = create_request_context()
        request_context.set(ctx)
    return ctx


def get_correlation_id() -> str:
    """Get correlation ID for this request."""
    return get_request_context().get("request_id", "unknown")


def log_with_context(
    level: str,
    message: str,
    **kwargs: Any
) -> None:
    """
    Log with full context and structured data.
    Every log includes correlation IDs, timestamp, and any extra kwargs.
    """
    ctx = get_request_context()
    log_entry = {
        **ctx,
        "message": message,
        "level": level.upper(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        **kwargs
    }
    payload = json.dumps(log_entry, default=str)
    if level.upper() == "ERROR":
        logger.error(payload)
    elif level.upper() == "WARNING":
        logger.warning(payload)
    elif level.upper() == "CRITICAL":
        logger.critical(payload)
    elif level.upper() == "DEBUG":
        logger.debug(payload)
    else:
        logger.info(payload)


class ErrorContext:
    """
    Capture complete context when error occurs.
    """

    def __init__(
        self,
        operation: str,
        error: Exception,
        context: Dict[str, Any],
    ):
        self.operation = operation
        self.error = error
        self.context = context
        self.stack_trace = traceback.format_exc()
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def log(self, level: str = "error") -> None:
        log_with_context(
            level,
            f"{self.operation}_failed",
            error_type=type(self.error).__name__,
            error_message=str(self.error),
            error_code=getattr(self.error, "error_code", None),
            stack_trace=self.stack_trace,
            operation_context=self.context,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "error_type": type(self.error).__name__,
            "error_message": str(self.error),
            "stack_trace": self.stack_trace,
            "context": self.context,
            "timestamp": self.timestamp,
            "correlation_id": get_correlation_id(),
        }

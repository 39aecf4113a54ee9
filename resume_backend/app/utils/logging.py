"""Structured logging for composition operations."""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from resume_backend.app.db.context import RequestContext
from resume_backend.app.errors import AppClientError, AppError
from resume_backend.app.utils.metrics import PrometheusCompositionMetrics

logger = logging.getLogger(__name__)

_metrics = PrometheusCompositionMetrics()


def configure_logging(level: str) -> None:
    """Set the root log level and a plain formatter once at startup."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


class StructuredOperationLogger:
    """Structured logger for composition operations."""

    def log_outcome(
        self,
        ctx: RequestContext,
        operation: str,
        outcome: str,
        latency_ms: float,
        params: dict[str, Any] | None = None,
        error_reason: str | None = None,
    ) -> None:
        """Log one finished operation with structured data."""
        log_data: dict[str, Any] = {
            "username": ctx.username,
            "operation": operation,
            "outcome": outcome,
            "latency_ms": round(latency_ms, 2),
        }

        if params:
            log_data["params"] = {key: str(value) for key, value in params.items()}
        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"Composition: {operation} - {outcome}"

        if outcome == "success":
            logger.info(log_msg, extra={"structured": log_data})
        elif outcome == "server_error":
            logger.error(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})


_structured = StructuredOperationLogger()


@asynccontextmanager
async def track_operation(
    ctx: RequestContext, operation: str, **params: Any
) -> AsyncIterator[None]:
    """Time an operation, then log and count its outcome.

    The outcome is ``success`` or the ``kind`` of the raised AppError.
    Exceptions are always re-raised.
    """
    started = time.perf_counter()
    outcome = "success"
    error_reason: str | None = None
    try:
        yield
    except AppClientError as e:
        outcome = e.kind
        error_reason = e.message
        raise
    except AppError as e:
        outcome = "server_error"
        error_reason = e.message
        raise
    except Exception as e:
        outcome = "server_error"
        error_reason = type(e).__name__
        raise
    finally:
        latency_ms = (time.perf_counter() - started) * 1000
        _structured.log_outcome(ctx, operation, outcome, latency_ms, params, error_reason)
        _metrics.record(operation, outcome, latency_ms)

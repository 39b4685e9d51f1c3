"""
Structured logging on top of loguru.

Features:
- Dot-named events (<domain>.<action>.<result>)
- Correlation ID tracking through contextvars
- Performance metrics
- Sync and async tracing decorators
"""
import json
import time
from typing import Any, Dict, Optional
from contextvars import ContextVar
from functools import wraps

from loguru import logger as loguru_logger
from flowstudio.config import settings

# Context variables for correlation tracking
correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)
session_id_var: ContextVar[Optional[str]] = ContextVar('session_id', default=None)
operation_var: ContextVar[Optional[str]] = ContextVar('operation', default=None)


class StructuredLogger:
    """
    Structured logger with correlation tracking.

    Each record carries:
    - the event name as message
    - correlation/session/operation ids
    - service metadata
    - an optional ``data`` payload (``extra=``)
    """

    def __init__(self, name: str):
        self.name = name
        self.service_name = settings.app_name
        self.service_version = settings.app_version
        self._logger = loguru_logger.bind(logger_name=name)

    def _get_base_context(self) -> Dict[str, Any]:
        return {
            "service": self.service_name,
            "version": self.service_version,
            "correlation_id": correlation_id_var.get(),
            "session_id": session_id_var.get(),
            "operation": operation_var.get(),
        }

    def _emit(
        self,
        level: str,
        event: str,
        message: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
        exc_info: Optional[BaseException] = None
    ) -> None:
        context = self._get_base_context()
        if extra:
            context["data"] = extra

        text = event if not message else f"{event} - {message}"
        if extra:
            text = f"{text} {json.dumps(extra, default=str)}"

        bound = self._logger.bind(event=event, **context)
        if exc_info is not None:
            bound = bound.opt(exception=exc_info)
        bound.log(level, text)

    def debug(self, event: str, message: str = None, extra: Dict = None):
        self._emit("DEBUG", event, message, extra)

    def info(self, event: str, message: str = None, extra: Dict = None):
        self._emit("INFO", event, message, extra)

    def warning(self, event: str, message: str = None, extra: Dict = None, exc_info: BaseException = None):
        self._emit("WARNING", event, message, extra, exc_info)

    def error(self, event: str, message: str = None, extra: Dict = None, exc_info: BaseException = None):
        self._emit("ERROR", event, message, extra, exc_info)

    def performance(self, event: str, duration_ms: float, extra: Dict = None):
        """Log performance metric"""
        perf_data = {"duration_ms": round(duration_ms, 3)}
        if extra:
            perf_data.update(extra)

        self._emit("INFO", event, f"Performance: {duration_ms:.1f}ms", perf_data)


def get_logger(name: str) -> StructuredLogger:
    """
    Get structured logger for module.

    Usage:
        logger = get_logger(__name__)
        logger.info("architecture.generation.started", extra={"goal_length": 42})
    """
    return StructuredLogger(name)


class log_context:
    """
    Context manager for correlation tracking.

    Usage:
        with log_context(correlation_id="abc", operation="architecture_generation"):
            logger.info("generation.started")
    """

    def __init__(self, correlation_id: str = None, session_id: str = None, operation: str = None):
        self._values = (
            (correlation_id_var, correlation_id),
            (session_id_var, session_id),
            (operation_var, operation),
        )
        self._tokens = []

    def __enter__(self):
        for var, value in self._values:
            if value:
                self._tokens.append(var.set(value))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        for token in reversed(self._tokens):
            token.var.reset(token)
        self._tokens = []


def _report(func, event_prefix: str, started: float, error: Optional[BaseException] = None) -> None:
    logger = get_logger(func.__module__)
    duration_ms = (time.perf_counter() - started) * 1000

    if error is not None:
        logger.error(
            f"{event_prefix}.failed",
            extra={
                "function": func.__name__,
                "duration_ms": duration_ms,
                "error_type": type(error).__name__
            },
            exc_info=error
        )
        return

    logger.performance(
        f"{event_prefix}.completed",
        duration_ms=duration_ms,
        extra={"function": func.__name__, "success": True}
    )


def trace_async(event_prefix: str):
    """
    Decorator for tracing async functions.

    Usage:
        @trace_async("architecture.generation")
        async def generate(goal: str):
            ...
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            get_logger(func.__module__).debug(f"{event_prefix}.started", extra={"function": func.__name__})
            started = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                _report(func, event_prefix, started, e)
                raise
            _report(func, event_prefix, started)
            return result

        return wrapper
    return decorator


def trace_sync(event_prefix: str):
    """Same as :func:`trace_async` for plain functions (layout, repair)."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _report(func, event_prefix, started, e)
                raise
            _report(func, event_prefix, started)
            return result

        return wrapper
    return decorator


# Event naming: <domain>.<action>.<result>, e.g.
#   architecture.fallback.used, repair.transition.dropped,
#   layout.compute.completed, session.generation.discarded

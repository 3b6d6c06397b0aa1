"""
Structured logging with JSON formatting and trace correlation.

Provides:
- JSON-formatted logs for easy parsing
- Trace IDs correlating a refresh cycle or a push message across planes
- Performance-aware logging (latency tracking)
- Security-aware logging (credential redaction for account payloads)
"""

import logging
import json
import time
import uuid
from typing import Optional, Dict, Any
from contextvars import ContextVar
from datetime import datetime, timezone
import traceback
import sys


# Context variables for trace propagation
_trace_id: ContextVar[Optional[str]] = ContextVar('trace_id', default=None)
_span_id: ContextVar[Optional[str]] = ContextVar('span_id', default=None)
_parent_span_id: ContextVar[Optional[str]] = ContextVar('parent_span_id', default=None)


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def __init__(self, service_name: str, environment: str = "development"):
        """Initialize JSON formatter.

        Args:
            service_name: Name of the service (account_plane, position_plane)
            environment: Environment name (development, staging, production)
        """
        super().__init__()
        self.service_name = service_name
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "environment": self.environment,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "thread_name": record.threadName,
        }

        for key, var in (("trace_id", _trace_id), ("span_id", _span_id), ("parent_span_id", _parent_span_id)):
            value = var.get()
            if value:
                log_data[key] = value

        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info)
            }

        return json.dumps(log_data, default=str)


class StructuredLogger:
    """Structured logger: keyword arguments become JSON fields."""

    def __init__(
        self,
        name: str,
        service_name: str,
        environment: str = "development",
        level: int = logging.INFO,
        json_output: bool = True
    ):
        """Initialize structured logger.

        Args:
            name: Logger name
            service_name: Service name (account_plane, position_plane)
            environment: Environment (development, staging, production)
            level: Log level (default: INFO)
            json_output: Whether to use JSON formatting (default: True)
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)
        self.service_name = service_name
        self.environment = environment

        # Remove existing handlers to avoid duplicates
        self.logger.handlers.clear()

        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)

        if json_output:
            formatter = JSONFormatter(service_name, environment)
        else:
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )

        handler.setFormatter(formatter)
        self.logger.addHandler(handler)
        self.logger.propagate = False

    def _log(self, level: int, msg: str, fields: Dict[str, Any], exc_info: bool = False):
        self.logger.log(level, msg, extra={'extra_fields': fields}, exc_info=exc_info)

    def debug(self, msg: str, **kwargs):
        """Log debug message with extra fields."""
        self._log(logging.DEBUG, msg, kwargs)

    def info(self, msg: str, **kwargs):
        """Log info message with extra fields."""
        self._log(logging.INFO, msg, kwargs)

    def warning(self, msg: str, **kwargs):
        """Log warning message with extra fields."""
        self._log(logging.WARNING, msg, kwargs)

    def error(self, msg: str, **kwargs):
        """Log error message; pass exc_info=True to attach the traceback."""
        exc_info = kwargs.pop('exc_info', False)
        self._log(logging.ERROR, msg, kwargs, exc_info=exc_info)

    def exception(self, msg: str, **kwargs):
        """Log error message with the current exception's traceback."""
        self._log(logging.ERROR, msg, kwargs, exc_info=True)


class TraceContext:
    """Context manager for trace ID propagation.

    A refresh cycle or an inbound push message opens one trace; nested
    work opens child spans with ``parent_span_id`` set.
    """

    def __init__(
        self,
        trace_id: Optional[str] = None,
        span_id: Optional[str] = None,
        parent_span_id: Optional[str] = None
    ):
        self.trace_id = trace_id or str(uuid.uuid4())
        self.span_id = span_id or str(uuid.uuid4())
        self.parent_span_id = parent_span_id
        self._tokens = []

    def __enter__(self):
        self._tokens.append((_trace_id, _trace_id.set(self.trace_id)))
        self._tokens.append((_span_id, _span_id.set(self.span_id)))
        self._tokens.append((_parent_span_id, _parent_span_id.set(self.parent_span_id)))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()

    def child(self) -> "TraceContext":
        """Create a child span in the same trace."""
        return TraceContext(trace_id=self.trace_id, parent_span_id=self.span_id)


class PerformanceLogger:
    """Logger for operation latency with automatic failure logging."""

    def __init__(self, logger: StructuredLogger, operation: str, **fields):
        """Initialize performance logger.

        Args:
            logger: Structured logger instance
            operation: Operation name being tracked
            **fields: Extra fields attached to the completion record
        """
        self.logger = logger
        self.operation = operation
        self.fields = fields
        self.start_time = None
        self.duration_ms = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.debug(f"{self.operation} started", **self.fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000

        if exc_type:
            self.logger.error(
                f"{self.operation} failed",
                duration_ms=self.duration_ms,
                error_type=exc_type.__name__,
                error_message=str(exc_val),
                exc_info=True,
                **self.fields
            )
        else:
            self.logger.info(
                f"{self.operation} completed",
                duration_ms=self.duration_ms,
                **self.fields
            )


def redact_pii(data: Dict[str, Any], pii_fields: Optional[list] = None) -> Dict[str, Any]:
    """Redact credential fields from log data.

    Account payloads from the accounts service carry broker credentials
    (``api_key``, ``secret_key``) next to display fields.

    Args:
        data: Data dictionary
        pii_fields: List of field names to redact (default: common credential fields)

    Returns:
        Shallow copy of ``data`` with credential fields redacted
    """
    if pii_fields is None:
        pii_fields = [
            'password', 'secret', 'secret_key', 'api_key', 'token',
            'auth_key', 'account_number',
        ]

    redacted = data.copy()
    for field in pii_fields:
        if field in redacted:
            redacted[field] = "***REDACTED***"

    return redacted


def get_trace_id() -> Optional[str]:
    """Get current trace ID from context."""
    return _trace_id.get()


def get_span_id() -> Optional[str]:
    """Get current span ID from context."""
    return _span_id.get()


# Logger instances by service/environment
_loggers: Dict[str, StructuredLogger] = {}


def init_structured_logger(
    service_name: str,
    environment: str = "development",
    level: int = logging.INFO,
    json_output: bool = True
) -> StructuredLogger:
    """Initialize (once) and return a structured logger.

    Args:
        service_name: Service name (account_plane, position_plane)
        environment: Environment (development, staging, production)
        level: Log level (default: INFO)
        json_output: Whether to use JSON formatting (default: True)

    Returns:
        StructuredLogger instance
    """
    logger_key = f"{service_name}:{environment}"

    if logger_key not in _loggers:
        _loggers[logger_key] = StructuredLogger(
            name=service_name,
            service_name=service_name,
            environment=environment,
            level=level,
            json_output=json_output
        )

    return _loggers[logger_key]

"""
Structured logging utilities for the admission webhook.

This module provides correlation ID tracking, structured log formatting,
and admission audit logging so webhook decisions can be matched against the
API server's own event log.
"""

import json
import logging
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime

# Context variable for tracking correlation IDs across requests
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

# Paths that should be filtered from access logs (health probes)
HEALTH_PROBE_PATHS = frozenset({"/healthz", "/metrics"})
ACCESS_LOGGER_NAME = "aiohttp.access"

# Record attributes copied into JSON log lines when present
STRUCTURED_FIELDS = (
    "request_uid",
    "namespace",
    "resource_name",
    "resource_kind",
    "operation",
    "decision",
    "allowed",
    "patch_operations",
    "http_status",
    "duration",
    "error_type",
    "audit",
)


class HealthProbeFilter(logging.Filter):
    """
    Logging filter that suppresses health probe and metrics endpoint logs.

    These endpoints are hit frequently by Kubernetes probes and monitoring
    systems, generating excessive noise in logs during debugging.
    Only aiohttp access log records are considered.
    """

    def __init__(self, suppress_health_logs: bool = True):
        super().__init__()
        self.suppress_health_logs = suppress_health_logs

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.suppress_health_logs or not record.name.startswith(ACCESS_LOGGER_NAME):
            return True

        message = record.getMessage()
        return all(path not in message for path in HEALTH_PROBE_PATHS)


class CorrelationIDFilter(logging.Filter):
    """Logging filter that adds correlation ID to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        current_correlation_id = correlation_id.get()
        if not current_correlation_id:
            current_correlation_id = generate_correlation_id()
            correlation_id.set(current_correlation_id)

        record.correlation_id = current_correlation_id
        return True


class StructuredFormatter(logging.Formatter):
    """
    Structured JSON formatter for logs with correlation ID support.

    Formats log records as structured JSON for better parsing and analysis
    in production monitoring systems.
    """

    def format(self, record: logging.LogRecord) -> str:
        """
        Format the log record as structured JSON.

        Args:
            record: The log record to format

        Returns:
            JSON-formatted log message
        """
        log_data = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", ""),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for field in STRUCTURED_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        return json.dumps(log_data, default=str)


def generate_correlation_id() -> str:
    """
    Generate a new correlation ID.

    Returns:
        Unique correlation ID string
    """
    return str(uuid.uuid4())[:8]  # Short 8-character ID for readability


def set_correlation_id(corr_id: str) -> str:
    """
    Set the correlation ID for the current context.

    Args:
        corr_id: Correlation ID to set

    Returns:
        The correlation ID that was set
    """
    correlation_id.set(corr_id)
    return corr_id


def get_correlation_id() -> str:
    """Get the current correlation ID, or empty string if none set."""
    return correlation_id.get("")


def setup_structured_logging(
    log_level: str = "INFO",
    enable_json_formatting: bool = True,
    correlation_id_enabled: bool = True,
    log_health_probes: bool = False,
) -> None:
    """
    Set up structured logging for the webhook.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        enable_json_formatting: Whether to use JSON formatting
        correlation_id_enabled: Whether to enable correlation ID tracking
        log_health_probes: Whether to log health probe requests (default: False)
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()

    if enable_json_formatting:
        formatter: logging.Formatter = StructuredFormatter()
    elif correlation_id_enabled:
        formatter = logging.Formatter(
            "%(asctime)s - %(correlation_id)s - %(name)s - %(levelname)s - %(message)s"
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler.setFormatter(formatter)

    if correlation_id_enabled:
        handler.addFilter(CorrelationIDFilter())

    if not log_health_probes:
        handler.addFilter(HealthProbeFilter(suppress_health_logs=True))

    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # aiohttp access logs would otherwise log every probe and admission call
    logging.getLogger(ACCESS_LOGGER_NAME).setLevel(logging.WARNING)
    logging.getLogger("aiohttp.server").setLevel(logging.WARNING)
    logging.getLogger("aiohttp.web").setLevel(logging.WARNING)


class AdmissionLogger:
    """
    Logger for admission events with structured logging support.

    Every message carries the request UID and namespace so that a decision
    can be correlated with the API server's audit and event logs. Request
    bodies are never logged.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def log_admission_result(
        self,
        request_uid: str,
        namespace: str | None,
        operation: str | None,
        allowed: bool,
        patch_operations: int,
        resource_kind: str | None = None,
        resource_name: str | None = None,
    ) -> None:
        """
        Log the final decision for an admission request.

        Args:
            request_uid: UID of the AdmissionRequest
            namespace: Namespace of the admitted object
            operation: Admission operation (CREATE, UPDATE, ...)
            allowed: Whether the request was admitted
            patch_operations: Number of patch operations in the response
            resource_kind: Kind of the admitted object
            resource_name: Name of the admitted object
        """
        verdict = "allowed" if allowed else "denied"
        self.logger.info(
            f"Admission {verdict} for {resource_kind or 'object'} "
            f"{namespace or '<cluster>'}/{resource_name or '<unnamed>'} "
            f"({patch_operations} patch operations)",
            extra={
                "request_uid": request_uid,
                "namespace": namespace,
                "operation": operation,
                "resource_kind": resource_kind,
                "resource_name": resource_name,
                "allowed": allowed,
                "patch_operations": patch_operations,
                "audit": {
                    "audit_event": "admission_decision",
                    "request_uid": request_uid,
                    "allowed": allowed,
                    "timestamp": datetime.now(UTC).isoformat(),
                },
            },
        )

    def log_decision_failure(
        self,
        decision: str,
        request_uid: str,
        namespace: str | None,
        error: Exception,
        unexpected: bool = False,
    ) -> None:
        """
        Log a decision function denying (or crashing on) a request.

        Args:
            decision: Name of the decision function
            request_uid: UID of the AdmissionRequest
            namespace: Namespace of the admitted object
            error: The raised exception
            unexpected: True when the function crashed rather than denied
        """
        level = logging.ERROR if unexpected else logging.WARNING
        kind = "failed unexpectedly" if unexpected else "denied request"
        self.logger.log(
            level,
            f"Decision function {decision} {kind}: {error}",
            extra={
                "request_uid": request_uid,
                "namespace": namespace,
                "decision": decision,
                "error_type": type(error).__name__,
            },
            exc_info=unexpected,
        )

    def log_request_rejected(
        self, error: Exception, http_status: int, method: str, path: str
    ) -> None:
        """
        Log a webhook call answered with an HTTP error instead of a review.

        Args:
            error: The error that stopped the pipeline
            http_status: Status code written to the caller
            method: HTTP method of the call
            path: Request path of the call
        """
        level = logging.WARNING if http_status < 500 else logging.ERROR
        self.logger.log(
            level,
            f"Error handling webhook request {method} {path}: {error}",
            extra={
                "http_status": http_status,
                "error_type": type(error).__name__,
            },
        )

    def debug(self, message: str, **kwargs) -> None:
        """Log debug message with extra data."""
        self.logger.debug(message, extra=kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs) -> None:
        """Log error message with extra data."""
        self.logger.error(message, exc_info=exc_info, extra=kwargs)

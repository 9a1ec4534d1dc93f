"""
Structured logging for the backend.

Loggers accept keyword context next to the message. Production renders each
record as one JSON line; every other environment gets a compact coloured line.
The request correlation id (see shared.infrastructure.correlation) is attached
to every record so an upload or a login can be followed across log lines.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from shared.config.settings import settings

_CONTEXT_ATTR = "context"


def _record_context(record: logging.LogRecord) -> tuple[str | None, dict[str, Any]]:
    request_id = getattr(record, "request_id", None)
    if request_id == "-":
        request_id = None
    return request_id, getattr(record, _CONTEXT_ATTR, None) or {}


class JsonFormatter(logging.Formatter):
    """One JSON object per record, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        request_id, context = _record_context(record)
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if request_id:
            payload["request_id"] = request_id
        if context:
            payload["data"] = context
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if settings.debug:
            payload["source"] = f"{record.pathname}:{record.lineno} in {record.funcName}"
        return json.dumps(payload, default=str)


class ConsoleFormatter(logging.Formatter):
    """Readable single-line output for local runs."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"
    DIM = "\033[2m"

    def format(self, record: logging.LogRecord) -> str:
        request_id, context = _record_context(record)
        color = self.LEVEL_COLORS.get(record.levelno, "")
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        parts = [f"{color}{clock} {record.levelname:<8}{self.RESET}"]
        if request_id:
            parts.append(f"{self.DIM}{request_id[:8]}{self.RESET}")
        parts.append(f"{record.name}: {record.getMessage()}")
        line = " ".join(parts)

        if context:
            line += " [" + ", ".join(f"{key}={value}" for key, value in context.items()) + "]"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class StructuredLogger(logging.Logger):
    """
    Logger that takes keyword context next to the message:

        logger.info("CSV batch flushed", tenant_id=3, rows=50)
    """

    def _log(  # type: ignore[override]
        self,
        level: int,
        msg: object,
        args: Any,
        exc_info: Any = None,
        extra: dict[str, Any] | None = None,
        stack_info: bool = False,
        stacklevel: int = 1,
        **context: Any,
    ) -> None:
        if context:
            extra = {**(extra or {}), _CONTEXT_ATTR: context}
        super()._log(
            level,
            msg,
            args,
            exc_info=exc_info,
            extra=extra,
            stack_info=stack_info,
            stacklevel=stacklevel + 1,
        )


logging.setLoggerClass(StructuredLogger)


def setup_logging() -> None:
    """Install the stdout handler on the root logger. Called once from the app lifespan."""
    # Local import: the infrastructure package imports shared.config
    from shared.infrastructure.correlation import CorrelationIdFilter

    level = logging.DEBUG if settings.debug else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(CorrelationIdFilter())
    handler.setFormatter(
        JsonFormatter() if settings.environment == "production" else ConsoleFormatter()
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for noisy, noisy_level in (
        ("uvicorn.access", logging.WARNING),
        ("multipart", logging.WARNING),
        ("sqlalchemy.engine", logging.WARNING),
    ):
        logging.getLogger(noisy).setLevel(noisy_level)


def get_logger(name: str) -> StructuredLogger:
    """
    Usage:
        from shared.config.logging import get_logger
        logger = get_logger(__name__)

        logger.info("Farmer registered", tenant_id=1, phone=mask_phone(phone))
        logger.error("Batch flush failed", tenant_id=1, exc_info=True)
    """
    return logging.getLogger(name)  # type: ignore[return-value]


def mask_phone(phone: str | None) -> str:
    """
    Keep the first and last two digits of a phone number.

    "9812345678" becomes "98******78".
    """
    if not phone:
        return "<no-phone>"
    if len(phone) <= 4:
        return "*" * len(phone)
    return phone[:2] + "*" * (len(phone) - 4) + phone[-2:]


def mask_jti(jti: str | None) -> str:
    if not jti:
        return "<no-jti>"
    return jti if len(jti) <= 8 else jti[:8] + "..."


rest_api_logger = get_logger("rest_api")
auth_logger = get_logger("rest_api.auth")
ingestion_logger = get_logger("rest_api.ingestion")

# Authentication events go to their own logger so they can be routed separately
security_audit_logger = get_logger("security.audit")


def audit_auth_event(
    event_type: str,
    actor: str | None = None,
    phone: str | None = None,
    tenant_id: int | None = None,
    success: bool = True,
    reason: str | None = None,
    ip_address: str | None = None,
    **extra: Any,
) -> None:
    """
    Record an authentication event (LOGIN, TOKEN_REFRESH, FARMER_REGISTERED,
    STAFF_CREATED, ...) on the security audit logger.

    Failures are logged at WARNING. ``reason`` is internal and never reaches
    the client; ``phone`` is masked.
    """
    security_audit_logger.log(
        logging.INFO if success else logging.WARNING,
        f"AUTH_AUDIT: {event_type}",
        event_type=event_type,
        actor=actor,
        phone=mask_phone(phone) if phone else None,
        tenant_id=tenant_id,
        success=success,
        reason=reason,
        ip_address=ip_address,
        **extra,
    )

"""Logging setup and redaction of sensitive values from runtime logs."""
from __future__ import annotations

import logging
import re
from typing import Any

from resume_worker.config import settings


# (pattern, replacement) pairs applied in order
_SECRET_TOKEN_PATTERNS = [
    (re.compile(r"sk-[A-Za-z0-9_\-]{16,}"), "sk-[REDACTED]"),
    (re.compile(r"(Bearer\s+)[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"((?:postgres(?:ql)?|amqp)://[^:/@\s]+:)[^@\s]+(@)"), r"\1[REDACTED]\2"),
]


def _configured_secrets() -> tuple:
    return (
        settings.OPENAI_API_KEY,
        settings.AI_SERVICE_API_KEY,
        settings.RESUME_SERVICE_API_KEY,
        settings.RABBITMQ_PASSWORD if settings.RABBITMQ_PASSWORD != "guest" else "",
    )


def _redact_text(value: str) -> str:
    redacted = value

    for secret in _configured_secrets():
        if secret:
            redacted = redacted.replace(secret, "[REDACTED]")

    for pattern, replacement in _SECRET_TOKEN_PATTERNS:
        redacted = pattern.sub(replacement, redacted)

    return redacted


def _redact_object(value: Any) -> Any:
    if isinstance(value, str):
        return _redact_text(value)
    if isinstance(value, tuple):
        return tuple(_redact_object(item) for item in value)
    if isinstance(value, list):
        return [_redact_object(item) for item in value]
    if isinstance(value, dict):
        return {key: _redact_object(item) for key, item in value.items()}
    return value


class SecretRedactionFilter(logging.Filter):
    """Redacts sensitive data from log messages and args."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        if isinstance(record.msg, str):
            record.msg = _redact_text(record.msg)
        record.args = _redact_object(record.args)
        return True


def configure_sensitive_data_redaction() -> None:
    """Attach redaction filter to application and uvicorn loggers."""
    redaction_filter = SecretRedactionFilter()
    logger_names = ("", "uvicorn", "uvicorn.error", "uvicorn.access", "aio_pika", "aiormq")

    for logger_name in logger_names:
        logger = logging.getLogger(logger_name)
        already_attached = any(
            isinstance(existing_filter, SecretRedactionFilter)
            for existing_filter in logger.filters
        )
        if not already_attached:
            logger.addFilter(redaction_filter)


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for the worker process."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    # aio-pika is chatty at INFO during reconnects
    logging.getLogger("aiormq").setLevel(logging.WARNING)
    configure_sensitive_data_redaction()

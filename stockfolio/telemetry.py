import json
import logging
import re
from datetime import datetime, timezone
from typing import Any


DEFAULT_REDACT_FIELDS = {
    "authorization",
    "password",
    "password_hash",
    "token",
    "apikey",
    "jwt_secret_key",
}

BEARER_PATTERN = re.compile(r"Bearer\s+[A-Za-z0-9._\-]+", re.IGNORECASE)
APIKEY_QUERY_PATTERN = re.compile(r"(apikey=)[^&\s'\"]+", re.IGNORECASE)

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_RECORD_ATTRIBUTES = set(logging.makeLogRecord({}).__dict__) | {"message", "asctime", "taskName"}


def _normalize_redact_fields(raw_fields: str | None) -> set[str]:
    if not raw_fields:
        return set(DEFAULT_REDACT_FIELDS)
    items = {item.strip().lower() for item in raw_fields.split(",") if item.strip()}
    return items or set(DEFAULT_REDACT_FIELDS)


def redact_text(value: str) -> str:
    value = BEARER_PATTERN.sub("Bearer [REDACTED]", value)
    return APIKEY_QUERY_PATTERN.sub(r"\1[REDACTED]", value)


def redact_sensitive_value(value: Any, field_name: str | None, redact_fields: set[str]) -> Any:
    if field_name and field_name.lower() in redact_fields:
        return "[REDACTED]"

    if isinstance(value, str):
        return redact_text(value)

    if isinstance(value, dict):
        return {
            key: redact_sensitive_value(val, key, redact_fields)
            for key, val in value.items()
        }

    if isinstance(value, (list, tuple)):
        return type(value)(redact_sensitive_value(item, None, redact_fields) for item in value)

    return value


class RedactionFilter(logging.Filter):
    def __init__(self, redact_fields: set[str]) -> None:
        super().__init__()
        self.redact_fields = redact_fields

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = redact_sensitive_value(record.msg, None, self.redact_fields)
        if isinstance(record.args, tuple):
            record.args = redact_sensitive_value(record.args, None, self.redact_fields)
        elif isinstance(record.args, dict):
            record.args = redact_sensitive_value(record.args, None, self.redact_fields)

        for key in set(record.__dict__) - _RECORD_ATTRIBUTES:
            if key.startswith("_"):
                continue
            record.__dict__[key] = redact_sensitive_value(record.__dict__[key], key, self.redact_fields)
        return True


class JsonFormatter(logging.Formatter):
    def __init__(self, include_stack: bool = False) -> None:
        super().__init__()
        self.include_stack = include_stack

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self.include_stack:
            payload["location"] = f"{record.pathname}:{record.lineno}"
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRIBUTES or key.startswith("_"):
                continue
            payload[key] = value

        return json.dumps(payload, default=str)


def configure_logging(
    *,
    level: str = "INFO",
    log_format: str = "json",
    include_stack: bool = False,
    redact_fields_raw: str | None = None,
) -> None:
    redact_fields = _normalize_redact_fields(redact_fields_raw)
    root = logging.getLogger()
    root.handlers = []
    root.setLevel(level.upper())

    handler = logging.StreamHandler()
    handler.addFilter(RedactionFilter(redact_fields))
    if log_format.lower() == "json":
        handler.setFormatter(JsonFormatter(include_stack=include_stack))
    else:
        pattern = "%(asctime)s %(levelname)s %(name)s: %(message)s"
        if include_stack:
            pattern += " | %(pathname)s:%(lineno)d"
        handler.setFormatter(logging.Formatter(pattern))
    root.addHandler(handler)

    # httpx logs full request URLs at INFO, including the provider api key.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)

"""Structured JSON logging correlated with the current trace context.

The library itself only creates module loggers; applications embedding the
engine call ``configure_logging`` (or ``configure_logging_from_settings``) once
at startup.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from pathlib import Path
import sys
from typing import TYPE_CHECKING, Any

import orjson

from docsite_search.observability.context import get_trace_context


if TYPE_CHECKING:
    from docsite_search.config import SearchSettings


# Attributes every LogRecord carries; anything else came in through ``extra=``
_STANDARD_RECORD_KEYS = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}

# Optional trace-context keys copied onto each entry when set
_CONTEXT_FIELDS = ("version",)

PLAIN_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _clip(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


class JsonFormatter(logging.Formatter):
    """One JSON object per record: level, logger, component, trace ids and ``extra`` fields."""

    REDACT_KEYS = frozenset({"password", "token", "api_key", "secret", "authorization"})
    MAX_MESSAGE_LEN = 2000
    MAX_EXTRA_LEN = 500

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_trace_context()
        entry: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "component": record.name.rpartition(".")[2],
            "message": _clip(record.getMessage(), self.MAX_MESSAGE_LEN),
            "trace_id": ctx.get("trace_id", ""),
            "span_id": ctx.get("span_id", ""),
        }
        entry.update((key, ctx[key]) for key in _CONTEXT_FIELDS if ctx.get(key))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _STANDARD_RECORD_KEYS and not key.startswith("_"):
                entry[key] = self._redact(key, value)

        return orjson.dumps(entry, default=self._json_default).decode("utf-8")

    def _redact(self, key: str, value: Any) -> Any:
        if key.lower() in self.REDACT_KEYS:
            return "[REDACTED]"
        if isinstance(value, str):
            return _clip(value, self.MAX_EXTRA_LEN)
        return value

    def _json_default(self, value: Any) -> Any:
        if isinstance(value, (set, frozenset)):
            try:
                return sorted(value)
            except TypeError:
                return list(value)
        if isinstance(value, (bytes, bytearray)):
            return value.decode("utf-8", errors="replace")
        if isinstance(value, (Path, Exception)):
            return str(value)
        return repr(value)


def _level(name: str, default: int = logging.INFO) -> int:
    return getattr(logging, name.upper(), default)


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    *,
    logger_levels: dict[str, str] | None = None,
) -> None:
    """Replace the root handlers with a single stdout handler.

    Args:
        level: Root log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: ``JsonFormatter`` when True, a plain text line otherwise
        logger_levels: Per-logger level overrides (logger name -> level name)
    """
    root = logging.getLogger()
    root.setLevel(_level(level))
    for existing in root.handlers[:]:
        root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if json_output else logging.Formatter(PLAIN_FORMAT))
    root.addHandler(handler)

    # Silences the SDK's provider-override warnings
    logging.getLogger("opentelemetry").setLevel(logging.ERROR)
    for logger_name, logger_level in (logger_levels or {}).items():
        logging.getLogger(logger_name).setLevel(_level(logger_level))


def configure_logging_from_settings(settings: SearchSettings, **kwargs: Any) -> None:
    """``configure_logging`` driven by ``log_level`` and ``json_logs``."""
    configure_logging(settings.log_level, settings.json_logs, **kwargs)

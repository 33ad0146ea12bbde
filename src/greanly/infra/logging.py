"""Logging bootstrap.

One stdout handler on the root logger (shared with uvicorn) emits JSON
lines for log shippers or coloured lines for local development.

Every record passes ``RecordContextFilter`` first, which

* attaches the current OpenTelemetry ``trace_id`` / ``span_id``;
* masks credentials.  Google Custom Search takes its key as a ``key=``
  query parameter, so an ``httpx`` error for a failed web search carries
  the key in its URL, and provider tracebacks can echo the Pinecone or
  OpenAI key.  Configured secret values and ``key=`` / ``Api-Key`` /
  ``Bearer`` tokens are replaced in the message and the traceback text.
"""

from __future__ import annotations

import logging
import re
import sys
from collections.abc import Iterable

from opentelemetry import trace

from greanly.configs.system import LoggingConfig

REDACTED = "***"

_TOKEN_PATTERNS = (
    re.compile(r"(?i)([?&]key=)[^&\s'\"]+"),
    re.compile(r"(?i)(api-key['\"]?\s*[:=]\s*['\"]?)[^\s'\",}]+"),
    re.compile(r"(?i)(bearer\s+)[A-Za-z0-9._\-]+"),
)

_DEV_FORMAT = "%(levelprefix)s %(asctime)s %(name)s [%(trace_id)s] %(message)s"
_DEV_DATEFMT = "%H:%M:%S"
_JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s %(trace_id)s %(span_id)s"

_UVICORN_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")


class RecordContextFilter(logging.Filter):
    """Adds trace context to a record and scrubs credentials from it."""

    def __init__(self, secrets: Iterable[str] = ()) -> None:
        super().__init__()
        # Longest first so a secret containing another is masked whole.
        self._secrets = sorted({s for s in secrets if s}, key=len, reverse=True)

    def redact(self, text: str) -> str:
        for secret in self._secrets:
            text = text.replace(secret, REDACTED)
        for pattern in _TOKEN_PATTERNS:
            text = pattern.sub(rf"\g<1>{REDACTED}", text)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = trace.get_current_span().get_span_context()
        valid = bool(ctx and ctx.is_valid)
        record.trace_id = format(ctx.trace_id, "032x") if valid else ""  # type: ignore[attr-defined]
        record.span_id = format(ctx.span_id, "016x") if valid else ""  # type: ignore[attr-defined]

        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # Left for the handler to report as a formatting error.
            return True
        scrubbed = self.redact(message)
        if scrubbed != message:
            record.msg, record.args = scrubbed, None

        if record.exc_info and not record.exc_text:
            record.exc_text = logging.Formatter().formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = self.redact(record.exc_text)
            # Formatters fall back to exc_text once exc_info is gone.
            record.exc_info = None
        return True


def _build_formatter(config: LoggingConfig) -> logging.Formatter:
    if config.json_output:
        from pythonjsonlogger.json import JsonFormatter

        return JsonFormatter(
            fmt=_JSON_FORMAT,
            rename_fields={
                "asctime": "timestamp",
                "levelname": "level",
                "name": "logger",
            },
            defaults={"trace_id": "", "span_id": ""},
        )

    from uvicorn.logging import DefaultFormatter

    return DefaultFormatter(fmt=_DEV_FORMAT, datefmt=_DEV_DATEFMT, use_colors=True)


def setup_logging(
    config: LoggingConfig | None = None, secrets: Iterable[str] = ()
) -> logging.Handler:
    """Install the shared handler on the root and uvicorn loggers.

    *secrets* are the configured credential values to mask.  Returns the
    handler so callers can attach further filters.
    """
    config = config or LoggingConfig()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RecordContextFilter(secrets))
    handler.setFormatter(_build_formatter(config))

    root = logging.getLogger()
    root.setLevel(config.level.upper())
    root.handlers = [handler]

    for name in _UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = [handler]
        uvicorn_logger.propagate = False

    for name, level in config.logger_levels.items():
        logging.getLogger(name).setLevel(level.upper())

    return handler

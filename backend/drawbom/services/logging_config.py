"""
Structured logging for the extraction service.

One stdout handler on the root logger, JSON lines in production and a plain
format for local runs (LOG_FORMAT=text). Drawing and request context travels
on the record via ``extra=``; the keys below are the ones the formatter lifts
into the JSON entry. Keys must not collide with LogRecord attributes
(``filename``, ``module``, ``lineno`` ...), so an uploaded file's name is
logged as ``drawing_file``.
"""
import logging
import json
import sys
from datetime import datetime, timezone
from typing import IO, Optional

from drawbom import __version__

CONTEXT_FIELDS = (
    "drawing_file",
    "drawing_kind",
    "material_count",
    "duration_ms",
    "request_id",
    "http_method",
    "http_path",
    "http_status",
)

# Third-party loggers that report every recovered file-structure glitch
NOISY_LOGGERS = ("ezdxf", "pdfminer", "fontTools", "uvicorn.access", "httpx")

TEXT_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per record: source location, message and any context fields set."""

    def format(self, record):
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "service": "drawbom",
            "version": __version__,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                entry[name] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", json_output: bool = True,
                  stream: Optional[IO[str]] = None) -> logging.Handler:
    """Install the service handler on the root logger and return it."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter() if json_output else logging.Formatter(TEXT_FORMAT))
    root.handlers = [handler]

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler

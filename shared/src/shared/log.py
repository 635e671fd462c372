"""Structured JSON logging shared by the push sender and its tooling."""

import json
import logging
import sys
from collections.abc import Sequence
from datetime import datetime, timezone

# Attributes every LogRecord carries; anything else came in via `extra={...}`.
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
    | {"message", "asctime"}
)

# Extra keys whose values must never reach the log stream.
_REDACTED_KEYS = frozenset({"authorization", "server_key", "password"})


class JsonFormatter(logging.Formatter):
    """Single-line JSON formatter.

    Args:
        service: Optional service name stamped on every entry so logs from
            several processes can share one sink.
    """

    def __init__(self, service: str | None = None) -> None:
        super().__init__()
        self._service = service

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, object] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if self._service is not None:
            log_entry["service"] = self._service

        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS:
                continue
            log_entry[key] = "***" if key.lower() in _REDACTED_KEYS else value

        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(
    level: str = "INFO",
    suppress: Sequence[str] = (),
    service: str | None = None,
) -> None:
    """Configure the root logger with the JSON formatter on stdout.

    Args:
        level: Root log level (e.g. "INFO", "DEBUG").
        suppress: Logger names lowered to WARNING (e.g. "httpx", "werkzeug")
                  to keep per-request noise out of the stream.
        service: Service name added to each entry.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter(service))

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)

    for name in suppress:
        logging.getLogger(name).setLevel(logging.WARNING)

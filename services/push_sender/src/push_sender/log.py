"""Logging setup for push_sender (delegates to shared)."""

from shared.log import JsonFormatter, setup_logging as _setup

__all__ = ["JsonFormatter", "setup_logging"]


def setup_logging(level: str = "INFO") -> None:
    _setup(level, suppress=["httpx", "httpcore", "werkzeug"], service="push_sender")

"""Tagged console logging for the remote.

Every component logs through ``log_event`` so the console reads as
``[LEVEL][Tag] message | key=value``.
"""
from __future__ import annotations

import logging
from typing import Any

_logger = logging.getLogger("bigblue")
if not _logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s][%(tag)s] %(message)s"))
    _logger.addHandler(handler)
    _logger.setLevel(logging.INFO)


def _level(name: str) -> int:
    return getattr(logging, (name or "INFO").upper(), logging.INFO)


class _TagAdapter(logging.LoggerAdapter):
    def process(self, msg: Any, kwargs: dict[str, Any]):
        kwargs.setdefault("extra", {})["tag"] = kwargs.pop("tag", "Remote")
        return msg, kwargs


_tagged = _TagAdapter(_logger, {})


def log_event(level: str, tag: str, message: str, **fields: Any) -> None:
    """Log ``message`` under ``tag``; ``fields`` are appended as key=value pairs."""
    if fields:
        message = message + " | " + " ".join(f"{k}={v}" for k, v in fields.items())
    _tagged.log(_level(level), message, tag=tag)


def set_log_level(level: str) -> None:
    """Unknown names fall back to INFO."""
    _logger.setLevel(_level(level))

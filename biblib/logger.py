"""
Structured logger for the template and citekey engine.

Templates and citation records are user content.  Every message passes
through `clip()` before reaching a handler so a long abstract or a huge
template never floods the log.  The logger writes:
  - operation names + outcome (ok / fallback / error)
  - clipped template / value fragments
  - metric counters
"""

from __future__ import annotations

import logging
import os
import re
import sys
from typing import Any

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s – %(message)s"
_INITIALIZED = False

# Fragments longer than this are shortened in log output
CLIP_LENGTH = 60


def _setup_root() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    root = logging.getLogger("biblib")
    root.addHandler(handler)
    root.setLevel(os.getenv("BIBLIB_LOG_LEVEL", "WARNING").upper())
    root.propagate = False
    _INITIALIZED = True


def get_logger(name: str) -> "TemplateLogger":
    _setup_root()
    return TemplateLogger(name)


_WS_RE = re.compile(r"\s+")


def clip(text: Any, limit: int = CLIP_LENGTH) -> str:
    """
    Collapse whitespace and shorten a fragment for log output.

    >>> clip("{{title}}   {{year}}")
    '{{title}} {{year}}'
    """
    flat = _WS_RE.sub(" ", str(text)).strip()
    if len(flat) <= limit:
        return flat
    return flat[: limit - 1] + "…"


class TemplateLogger:
    """
    Wrapper around stdlib Logger that clips every message.
    """

    def __init__(self, name: str) -> None:
        self._log = logging.getLogger(f"biblib.{name}")

    def info(self, msg: str, **kwargs: Any) -> None:
        self._log.info(clip(msg, 240), **kwargs)

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._log.debug(clip(msg, 240), **kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        self._log.warning(clip(msg, 240), **kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        self._log.error(clip(msg, 240), **kwargs)

    def metric(self, event: str, **values: Any) -> None:
        """Log a named metric with key=value pairs."""
        parts = ", ".join(f"{k}={clip(v)}" for k, v in values.items())
        self._log.info(f"METRIC {event} | {parts}")

"""
Logging setup for smartify.

Diagnostics go to stderr through the standard ``logging`` module so that transformed
output written to stdout-adjacent files is never mixed with messages. Every module
obtains its logger through ``get_logger(__name__)``.
"""

from __future__ import annotations

import logging
import sys

__all__ = ["configure_logging", "get_logger"]

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_configured = False


def configure_logging(level: str | int = "INFO", *, force: bool = False) -> None:
    """
    Attach a stderr handler to the ``smartify`` logger.

    Args:
        level (str | int): Logging level name or number.
        force (bool): Reconfigure even if already configured.
    """
    global _configured
    if _configured and not force:
        return
    root = logging.getLogger("smartify")
    for handler in list(root.handlers):
        root.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``smartify`` namespace."""
    if name != "smartify" and not name.startswith("smartify."):
        name = f"smartify.{name}"
    return logging.getLogger(name)

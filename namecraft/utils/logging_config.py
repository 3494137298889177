"""Root logging setup for the CLI and long-running services."""

from __future__ import annotations

import logging
import os
from typing import Optional

LOG_LEVEL_ENV = "NAMECRAFT_LOG_LEVEL"

_DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_PACKAGE_LOGGERS = ("namecraft", "patterns", "providers")
_CONFIGURED = False


def _resolve_level(level: str | int | None) -> int:
    if level is None:
        return logging.INFO
    if isinstance(level, int):
        return level
    try:
        return int(level)
    except (TypeError, ValueError):
        normalized = str(level).strip().upper()
        resolved = getattr(logging, normalized, logging.INFO)
        return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: Optional[str | int] = None, *, force: bool = False) -> int:
    """Install a basic stderr handler and return the effective level.

    Generation runs log provider failures and fallback decisions at ``INFO``
    and ``WARNING``; ``NAMECRAFT_LOG_LEVEL=DEBUG`` also shows per-candidate
    filter decisions.
    """

    global _CONFIGURED

    resolved_level = _resolve_level(level if level is not None else os.environ.get(LOG_LEVEL_ENV))
    if _CONFIGURED and not force:
        return resolved_level

    logging.basicConfig(level=resolved_level, format=_DEFAULT_FORMAT, force=force)
    for name in _PACKAGE_LOGGERS:
        logging.getLogger(name).setLevel(resolved_level)
    _CONFIGURED = True
    return resolved_level


__all__ = ["configure_logging", "LOG_LEVEL_ENV"]

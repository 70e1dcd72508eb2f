"""
Logging for balchunk.

Library modules emit structlog events only. Whoever owns the process (the
CLI, a test, an embedding job) installs exactly one root handler here, and
every event, structlog or plain ``logging``, is rendered through it.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

import structlog
from structlog.stdlib import BoundLogger, ProcessorFormatter
from structlog.typing import Processor

LevelLike = Union[int, str]

_SHARED_PROCESSORS: tuple[Processor, ...] = (
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.TimeStamper(fmt="iso"),
)


def resolve_level(level: LevelLike) -> int:
    """Accept either a numeric level or a name such as ``"debug"``."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def _install(handler: logging.Handler, level: int) -> None:
    """Make ``handler`` the only root handler and route structlog into it."""
    structlog.configure(
        processors=_SHARED_PROCESSORS + (ProcessorFormatter.wrap_for_formatter,),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    if not isinstance(handler, logging.NullHandler):
        handler.setFormatter(
            ProcessorFormatter(
                processor=structlog.dev.ConsoleRenderer(colors=False),
                foreign_pre_chain=_SHARED_PROCESSORS,
            )
        )
    logging.captureWarnings(True)
    logging.basicConfig(level=level, handlers=[handler], force=True)


def configure_logging(
    level: LevelLike = logging.INFO,
    enable_console: bool = True,
    console_level: Optional[LevelLike] = None,
) -> None:
    """
    Send events at ``level`` and above to stderr.

    With ``enable_console=False`` events are dropped, which keeps CLI output
    machine-readable. ``console_level`` raises the stderr threshold without
    changing what structlog lets through.
    """
    base_level = resolve_level(level)
    handler: logging.Handler
    if enable_console:
        handler = logging.StreamHandler()
        handler.setLevel(resolve_level(console_level) if console_level is not None else base_level)
    else:
        handler = logging.NullHandler()
    _install(handler, base_level)


def get_logger(name: Optional[str] = None) -> BoundLogger:
    return structlog.get_logger(name)


def redirect_logging_to_file(path: Path, level: LevelLike = logging.INFO) -> None:
    """Write every event to ``path`` (truncated) instead of the console."""
    path.parent.mkdir(parents=True, exist_ok=True)
    _install(logging.FileHandler(path, mode="w", encoding="utf-8"), resolve_level(level))

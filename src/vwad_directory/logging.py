"""structlog configuration for the directory engine.

Provides console or JSON log rendering over the stdlib root logger, plus
a context manager that binds the catalog source to every log entry
emitted while a catalog is being loaded.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

_VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_VALID_FORMATS = {"console", "json"}


def _build_renderer(fmt: str) -> structlog.types.Processor:
    if fmt == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def configure_logging(
    level: str = "INFO",
    fmt: str = "console",
    log_file: str | Path | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        fmt: ``"console"`` for human-readable output or ``"json"``.
        log_file: Optional file path that receives log output in addition
            to stderr.

    Raises:
        ValueError: If ``level`` or ``fmt`` is not recognized.
    """
    level_upper = level.upper()
    if level_upper not in _VALID_LEVELS:
        msg = f"Invalid log level: {level!r}. Must be one of {sorted(_VALID_LEVELS)}"
        raise ValueError(msg)
    if fmt not in _VALID_FORMATS:
        msg = f"Invalid log format: {fmt!r}. Must be one of {sorted(_VALID_FORMATS)}"
        raise ValueError(msg)

    numeric_level = getattr(logging, level_upper)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(str(log_file), encoding="utf-8"))

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _build_renderer(fmt),
        ],
    )
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


@contextmanager
def catalog_logging_context(source: str) -> Iterator[structlog.stdlib.BoundLogger]:
    """Bind ``catalog_source`` to all log entries inside the block.

    Logs ``catalog_load_start`` on entry and ``catalog_load_error`` if the
    block raises, then unbinds the source again.

    Example::

        with catalog_logging_context("data/collection.json") as log:
            log.info("catalog_loaded", entries=42)
    """
    structlog.contextvars.bind_contextvars(catalog_source=source)
    log: structlog.stdlib.BoundLogger = structlog.get_logger("vwad_directory.loader")
    log.info("catalog_load_start")
    try:
        yield log
    except Exception:
        log.exception("catalog_load_error")
        raise
    finally:
        structlog.contextvars.unbind_contextvars("catalog_source")

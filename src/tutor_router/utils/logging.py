"""
Structured logging for the tutor router.

Without a log file, structlog renders straight to stdout. With one, structlog
hands records to the stdlib root logger, which fans them out to a rotating
JSON-lines file and a console stream.
"""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Sequence

import structlog

from ..models.enums import LogLevel

if TYPE_CHECKING:
    from ..core.config import RouterConfig

# Set on every handler setup_logging() installs so a later call can find them
_OWNED_HANDLER = "_tutor_router_owned"


def _formatter(renderer: Any) -> structlog.stdlib.ProcessorFormatter:
    return structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )


def setup_file_logging(
    log_file: Path, max_bytes: int = 10 * 1024 * 1024, backup_count: int = 5
) -> RotatingFileHandler:
    """
    Rotating handler that writes one JSON object per record.

    Args:
        log_file: Destination file; its directory must already exist
        max_bytes: Size at which the file is rotated
        backup_count: Rotated files to keep
    """
    handler = RotatingFileHandler(
        log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    handler.setFormatter(_formatter(structlog.processors.JSONRenderer()))
    return handler


def _replace_root_handlers(
    handlers: Sequence[logging.Handler], level: Optional[int] = None
) -> None:
    """Swap the handlers from a previous setup_logging() call for `handlers`."""
    root_logger = logging.getLogger()
    for handler in [h for h in root_logger.handlers if getattr(h, _OWNED_HANDLER, False)]:
        root_logger.removeHandler(handler)
        handler.close()

    for handler in handlers:
        setattr(handler, _OWNED_HANDLER, True)
        root_logger.addHandler(handler)
    if level is not None:
        root_logger.setLevel(level)


def setup_logging(config: "RouterConfig | None" = None) -> None:
    """
    Configure structlog from the router configuration.

    Safe to call repeatedly: handlers installed by an earlier call are removed
    before new ones are added.

    Args:
        config: Configuration to read levels and file settings from
            (defaults to the global configuration)
    """
    if config is None:
        from ..core.config import get_config

        config = get_config()

    level = getattr(logging, config.log_level.value, logging.INFO)
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if config.log_file is not None:
        config.ensure_log_directory()
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(_formatter(structlog.dev.ConsoleRenderer()))
        file_handler = setup_file_logging(
            config.log_file,
            max_bytes=config.log_max_bytes,
            backup_count=config.log_backup_count,
        )
        _replace_root_handlers([file_handler, console_handler], level)

        logger_factory: Any = structlog.stdlib.LoggerFactory()
        processors.append(structlog.stdlib.ProcessorFormatter.wrap_for_formatter)
    else:
        _replace_root_handlers([])

        logger_factory = structlog.PrintLoggerFactory()
        if config.log_level == LogLevel.DEBUG:
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.dev.ConsoleRenderer())

    # Loggers stay uncached so a later setup_logging() call reaches existing module loggers
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=logger_factory,
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Structured logger bound to `name` (typically the module name)."""
    return structlog.get_logger(name)

"""
Logging setup for CarbonLens.

Two loggers are exported:

- ``logger`` (loguru) for plain progress messages from services and jobs
- ``get_logger(name)`` (structlog) for run summaries emitted as key/value events

Both write to stderr so that job output on stdout stays clean. Standard
library logging (pandas, numpy warnings...) is routed into loguru.
``analysis_context`` binds a dataset id / run id onto every record emitted
inside it, for both loggers.
"""

import logging
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, List

import structlog
from loguru import logger
from structlog.typing import EventDict, Processor, WrappedLogger

from carbonlens.config import settings

TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "{extra} <level>{message}</level>"
)


def add_log_level(logger: WrappedLogger, name: str, event_dict: EventDict) -> EventDict:
    event_dict["level"] = name.upper()
    return event_dict


def add_timestamp(logger: WrappedLogger, name: str, event_dict: EventDict) -> EventDict:
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def round_floats(logger: WrappedLogger, name: str, event_dict: EventDict) -> EventDict:
    """Round float values so carbon prices and ratios stay readable in summaries."""
    for key, value in event_dict.items():
        if isinstance(value, float):
            event_dict[key] = round(value, 6)
    return event_dict


class InterceptHandler(logging.Handler):
    """Route standard library log records into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _configure_loguru() -> None:
    logger.remove()
    json_output = settings.log_format == "json"
    sink_options = {
        "format": "{message}" if json_output else TEXT_FORMAT,
        "level": settings.log_level,
        "serialize": json_output,
        "backtrace": True,
        "diagnose": settings.is_development,
    }

    logger.add(sys.stderr, **sink_options)

    if settings.log_file:
        Path(settings.log_file).parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            settings.log_file,
            rotation="100 MB",
            retention="10 days",
            compression="zip",
            **sink_options,
        )


def _structlog_processors() -> List[Processor]:
    processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_timestamp,
        add_log_level,
        round_floats,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if settings.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    return processors


def configure_logging() -> None:
    """Configure loguru sinks, structlog processors and stdlib interception."""
    _configure_loguru()

    structlog.configure(
        processors=_structlog_processors(),
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.log_level)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    logger.debug(
        f"Logging configured (level={settings.log_level}, format={settings.log_format}, "
        f"environment={settings.app_env})"
    )


def get_logger(name: str) -> Any:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


@contextmanager
def analysis_context(**context: Any) -> Iterator[None]:
    """
    Attach key/value context (e.g. ``dataset_id``) to every log record in the block.

    Example:
        >>> with analysis_context(dataset_id=3):
        ...     run_full_analysis(dataset, parameters)
    """
    with logger.contextualize(**context), structlog.contextvars.bound_contextvars(**context):
        yield


configure_logging()

"""
Structured Logging Configuration

structlog setup for the ratings engine. Every event carries the service
name; while a pipeline run is active its run id, league and season are
bound as context variables, so log lines from the dataset loader, solver
and writer can be traced back to the run and scope that produced them.
"""

import logging
import sys
from typing import Any, Optional

import structlog

RUN_CONTEXT_KEYS = ("correlation_id", "league", "season")


def bind_run_context(run_id: str, league: Optional[str] = None, season: Optional[str] = None) -> None:
    """
    Tag all log events in the current context with a run and its scope.

    Context variables are per thread / per task, so concurrent runs for
    different scopes do not see each other's values.
    """
    structlog.contextvars.bind_contextvars(
        correlation_id=run_id,
        league=league,
        season=season,
    )


def clear_run_context() -> None:
    """Remove the run tags bound by bind_run_context()."""
    structlog.contextvars.unbind_contextvars(*RUN_CONTEXT_KEYS)


def get_correlation_id() -> str:
    """Run id bound in the current context, or an empty string."""
    return structlog.contextvars.get_contextvars().get("correlation_id", "")


def add_service_info(
    service_name: str,
) -> structlog.typing.Processor:
    """Create a processor that adds service name to all log events."""

    def processor(
        logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        event_dict["service"] = service_name
        return event_dict

    return processor


def drop_empty_scope(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor removing unset league/season tags."""
    for key in ("league", "season"):
        if key in event_dict and event_dict[key] is None:
            del event_dict[key]
    return event_dict


def setup_logging(
    log_level: str = "INFO",
    json_format: bool = True,
    service_name: str = "team-ratings-engine",
) -> None:
    """
    Configure structlog for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: If True, output JSON logs. If False, use console format.
        service_name: Name of the service to include in logs
    """
    level = getattr(logging, log_level.upper())
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        drop_empty_scope,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_service_info(service_name),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_format:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stdout.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Optional logger name for categorization

    Example:
        log = get_logger("ratings.rpi")
        log.info("rpi_computed", teams=48)
    """
    return structlog.get_logger(name)

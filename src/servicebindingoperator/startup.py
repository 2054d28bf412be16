"""Code intended to run on start-up, before running any handlers."""

__all__ = ("configure_logging", "start_operator")

import logging
from typing import Any

import kopf
import structlog

from servicebindingoperator import config
from servicebindingoperator.version import get_version


def configure_logging(
    log_level: str | None = None, log_format: str | None = None
) -> None:
    """Configure structlog for the operator's own loggers.

    Parameters
    ----------
    log_level : `str`, optional
        Minimum level name, such as ``INFO``. Defaults to
        `servicebindingoperator.config.log_level`.
    log_format : `str`, optional
        ``json`` or ``console``. Defaults to
        `servicebindingoperator.config.log_format`.
    """
    level_name = (log_level or config.log_level).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    if (log_format or config.log_format) == "json":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )


@kopf.on.startup()
def start_operator(
    settings: kopf.OperatorSettings, logger: Any, **kwargs: Any
) -> None:
    """Start up the operator: set up logging and kopf settings."""
    configure_logging()
    # Post only warnings and errors as Kubernetes events.
    settings.posting.level = logging.WARNING
    logger.info(f"Starting service-binding-operator {get_version()}")

"""Structured logging for treefs using structlog."""

import logging

import structlog
from structlog.types import FilteringBoundLogger

from treefs.config.settings import Settings, settings


def _choose_renderer(config: Settings):
    if config.log_format.lower() == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=config.log_colors)


# Configure structlog based on settings (LOG_FORMAT / LOG_COLORS)
def configure_structlog(config: Settings = settings):
    """Configure structlog with pretty or JSON output from ``config``.

    Routes stdlib logging through structlog so dulwich's own loggers are
    structured and controllable by levels too.
    """
    renderer = _choose_renderer(config)

    # Root logger + handler with ProcessorFormatter
    logging.root.handlers = []
    handler = logging.StreamHandler()
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=[
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                structlog.processors.TimeStamper(fmt="iso"),
            ],
        )
    )
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.INFO)

    # Capture warnings to logging
    logging.captureWarnings(True)

    logging.getLogger("dulwich").setLevel(logging.WARNING)

    # structlog pipeline; wrap_for_formatter hands off to ProcessorFormatter above
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# Configure structlog on module import
configure_structlog()


def short_sha(sha: bytes | None) -> str | None:
    """Render a commit SHA for log fields."""
    if not sha:
        return None
    return sha.decode("ascii", errors="replace")[:12]


# Create loggers directly with structlog
def get_logger(name: str, level: int = logging.INFO) -> FilteringBoundLogger:
    """Get a configured structlog logger."""
    stdlib_logger = logging.getLogger(name)
    stdlib_logger.setLevel(level)
    return structlog.get_logger(name)


# Global logger instances
session_logger = get_logger("treefs.session", level=logging.DEBUG)
merge_logger = get_logger("treefs.merge", level=logging.DEBUG)
sync_logger = get_logger("treefs.sync", level=logging.DEBUG)

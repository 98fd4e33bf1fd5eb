"""
Structured Logging

Every store mutation, AI call and export is logged as a structured
event (snake_case event name + key/value context) through structlog.

The logger:
- Renders JSON lines with ISO timestamps
- Routes through the stdlib logging module so levels are honored
- Is configured once; later calls are no-ops unless forced
"""

import logging
import sys
from typing import Optional

import structlog

_configured = False


def configure_logging(level: Optional[str] = None, force: bool = False) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        level: Log level name. Defaults to AppSettings.log_level
               (DEBUG when debug_mode is on).
        force: Reconfigure even if already configured.
    """
    global _configured
    if _configured and not force:
        return

    if level is None:
        from volttracker.config import get_settings

        app_settings = get_settings().app
        level = "DEBUG" if app_settings.debug_mode else app_settings.log_level

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
        force=force,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger bound to a module name."""
    return structlog.get_logger(name)

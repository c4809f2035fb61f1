# utils/logger.py
"""
Structured logging setup.

structlog sits on top of the stdlib logging module so uvicorn, SQLAlchemy and
APScheduler records share the same handlers as application events.
"""
import logging
import os
import sys

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_JSON = os.getenv("LOG_JSON", "false").lower() == "true"

_configured = False


def configure_logging(level: str = LOG_LEVEL, json_output: bool = LOG_JSON) -> None:
     """Configure stdlib logging and structlog. Safe to call more than once."""
     global _configured
     if _configured:
          return

     logging.basicConfig(
          format="%(message)s",
          stream=sys.stdout,
          level=getattr(logging, level, logging.INFO),
     )

     renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
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
               renderer,
          ],
          context_class=dict,
          logger_factory=structlog.stdlib.LoggerFactory(),
          wrapper_class=structlog.stdlib.BoundLogger,
          cache_logger_on_first_use=True,
     )
     _configured = True


def get_logger(name: str):
     return structlog.get_logger(name)

import logging
import sys
from typing import Optional

from .config import LOG_LEVEL, LOG_NAMESPACES


class NamespaceFilter(logging.Filter):
    def __init__(self, allowed_namespaces=None):
        super().__init__()
        self.allowed_namespaces = allowed_namespaces if allowed_namespaces is not None else []

    def filter(self, record):
        if not self.allowed_namespaces:
            return True  # If no namespaces are specified, allow all records
        # Allow record if its name starts with any of the allowed namespaces
        return any(record.name.startswith(ns) for ns in self.allowed_namespaces)


log_formatter = logging.Formatter(
    fmt="%(asctime)s - %(name)s:%(lineno)d - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

APP_LOGGER_NAME = "sales_reports"


def setup_logging(
    level: Optional[str] = None, namespaces: Optional[list[str]] = None
) -> logging.Logger:
    """Attach the console handler to the ``sales_reports`` logger.

    Safe to call more than once: the web app, the Celery worker process and
    the CLI each call it on startup, and only the first call adds a handler.
    Modules log through ``logging.getLogger(__name__)`` so that records from
    e.g. ``sales_reports.features.report_jobs.worker`` propagate here.
    """
    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.setLevel((level or LOG_LEVEL).upper())

    if not any(getattr(h, "_sales_reports_console", False) for h in app_logger.handlers):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(log_formatter)
        console_handler._sales_reports_console = True
        allowed = namespaces if namespaces is not None else LOG_NAMESPACES
        if allowed:
            console_handler.addFilter(NamespaceFilter(allowed))
        app_logger.addHandler(console_handler)

    # Per-feature levels, e.g. to debug the fetcher:
    # logging.getLogger("sales_reports.features.orders").setLevel(logging.DEBUG)
    return app_logger

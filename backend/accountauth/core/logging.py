"""Logging setup for the account service."""

from __future__ import annotations

import logging

from accountauth.core.config import Settings

APP_LOGGER = "accountauth"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(settings: Settings) -> logging.Logger:
    """Install a root handler once and apply ``LOG_LEVEL`` to the service loggers.

    The root handler is left alone when the host (uvicorn, pytest) already
    configured one; the ``accountauth`` tree still gets its level.
    """
    level_name = settings.LOG_LEVEL.upper()
    if not logging.getLogger().handlers:
        logging.basicConfig(level=level_name, format=LOG_FORMAT)

    app_logger = logging.getLogger(APP_LOGGER)
    app_logger.setLevel(level_name)
    return app_logger

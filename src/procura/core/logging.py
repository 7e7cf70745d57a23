"""Logging setup driven by application settings."""

import logging

from procura.core.config import Settings, get_settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(settings: Settings | None = None) -> None:
    """Configure root logging from settings.

    @param settings - Settings to read the level from (cached settings if None)
    """
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT, force=True)

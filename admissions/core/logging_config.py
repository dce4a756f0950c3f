"""Logging setup shared by the engine modules."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_configured = False


def configure_logging(level: str | int | None = None) -> None:
    """Install a root handler once and set the engine log level.

    Falls back to ``Settings.log_level`` when no level is given.
    """
    global _configured
    if level is None:
        from .config import get_settings

        level = get_settings().log_level
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    if not _configured:
        logging.basicConfig(format=LOG_FORMAT, level=level)
        _configured = True
    logging.getLogger("admissions").setLevel(level)

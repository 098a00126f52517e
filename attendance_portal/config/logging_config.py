"""
Logging setup for the attendance portal.
"""
import logging

from .settings import LOG_LEVEL, ENABLE_FILE_LOGGING, LOG_FILE

_configured = False


def setup_logging(level=None, log_file=None):
    """
    Configure root logging once for the CLI and the web app.

    Args:
        level (str): Log level name, defaults to LOG_LEVEL
        log_file (str): Log file path, defaults to LOG_FILE when file logging is enabled
    """
    global _configured
    if _configured:
        return

    handlers = [logging.StreamHandler()]
    target = log_file or (LOG_FILE if ENABLE_FILE_LOGGING else None)
    if target:
        handlers.append(logging.FileHandler(target, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=handlers,
    )
    # requests/urllib3 are chatty at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    _configured = True

import logging
from logging.handlers import TimedRotatingFileHandler
import os

from session_control.core.config import settings

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str | None = None, log_file: str | None = None) -> None:
    root_logger = logging.getLogger()
    root_logger.setLevel((level or settings.LOG_LEVEL).upper())
    formatter = logging.Formatter(LOG_FORMAT)

    for handler in list(root_logger.handlers):
        handler.close()

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)
    handlers = [stream_handler]

    log_file = log_file or settings.LOG_FILE
    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        # Daily rotation, keep 14 days
        file_handler = TimedRotatingFileHandler(
            log_file, when="midnight", interval=1, backupCount=14
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    root_logger.handlers = handlers
    root_logger.info("[BOOT] Logging initialized at level %s", logging.getLevelName(root_logger.level))

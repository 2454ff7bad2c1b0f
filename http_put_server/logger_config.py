import logging
import sys
from pathlib import Path
from typing import Optional, Union

from http_put_server import config

LOGGER_NAME = "put_server"

DETAILED_FORMAT = '%(asctime)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
SHORT_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def setup_logger(log_dir: Optional[Union[str, Path]] = None) -> logging.Logger:
    """Return the server logger, attaching its handlers on first use.

    Everything goes to <log_dir>/put_server.log; INFO and above is echoed
    to stdout.
    """
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    logs_dir = Path(log_dir or config.LOG_DIR)
    logs_dir.mkdir(exist_ok=True, parents=True)

    logger.setLevel(logging.DEBUG)
    logger.addHandler(_handler(logging.FileHandler(logs_dir / f"{LOGGER_NAME}.log"),
                               logging.DEBUG, DETAILED_FORMAT))
    logger.addHandler(_handler(logging.StreamHandler(sys.stdout), logging.INFO, SHORT_FORMAT))
    return logger

# storefront/core/logging.py
import logging
import sys
from typing import Iterable
import colorlog

LOG_FORMAT = "%(log_color)s%(asctime)s %(levelname)-8s [%(name)s]%(reset)s %(message)s"

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "bold_red",
}

# Transport libs log every request line at INFO; the shop client logs its own summary
NOISY_LOGGERS = ("httpx", "httpcore", "redis")


def configure_logging(level=logging.INFO, noisy: Iterable[str] = NOISY_LOGGERS):
    handler = colorlog.StreamHandler(sys.stdout)
    handler.setFormatter(
        colorlog.ColoredFormatter(LOG_FORMAT, datefmt="%H:%M:%S", log_colors=LOG_COLORS)
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    logging.getLogger("uvicorn.error").setLevel(level)
    logging.getLogger("uvicorn.access").setLevel(level)
    for name in noisy:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

"""Single-line JSON logging shared by the service and the CLI."""

import logging
import sys

_JSON_FORMAT = (
    '{"timestamp":"%(asctime)s","level":"%(levelname)s",'
    '"logger":"%(name)s","message":"%(message)s"}'
)


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_JSON_FORMAT))

    logger = logging.getLogger("uxpilot")
    logger.setLevel(level)
    logger.handlers = [handler]
    logger.propagate = False

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logger

from __future__ import annotations

import logging

LOGGER_NAME = "LINEDASH.client"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


# -----------------------------------------------------------------------------
def build_client_logger(name: str = LOGGER_NAME, level: int = logging.INFO) -> logging.Logger:
    instance = logging.getLogger(name)
    if instance.handlers:
        return instance

    instance.setLevel(level)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    instance.addHandler(handler)
    instance.propagate = False
    return instance


logger = build_client_logger()

# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

import json
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from .errors import error_status
from .request import PendingRequest

FAILURE_LOGGER_NAME = "renewing_client.failures"


class JsonFormatter(logging.Formatter):
    def format(self, record):
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "message": record.msg if isinstance(record.msg, dict) else record.getMessage(),
        }
        return json.dumps(log_record, default=str)


def setup_failure_logger(log_dir: str) -> logging.Logger:
    """Sets up a dedicated JSON logger for requests that failed terminally."""
    if not os.path.exists(log_dir):
        os.makedirs(log_dir)

    logger = logging.getLogger(FAILURE_LOGGER_NAME)
    logger.setLevel(logging.INFO)

    # Keep request bodies out of the root logger's handlers
    logger.propagate = False

    log_path = os.path.abspath(os.path.join(log_dir, "failures.log"))
    # Add handler only once per target file
    for existing in logger.handlers:
        if isinstance(existing, RotatingFileHandler) and existing.baseFilename == log_path:
            return logger

    handler = RotatingFileHandler(
        log_path,
        maxBytes=5 * 1024 * 1024,  # 5 MB
        backupCount=2,
    )
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger


def log_failure(
    logger: Optional[logging.Logger], request: PendingRequest, error: Exception
) -> None:
    """Logs a structured record for a request that ended in an error."""
    if logger is None:
        return

    log_data = {
        "method": request.method,
        "path": request.path,
        "query": [list(pair) for pair in request.query],
        "error_type": type(error).__name__,
        "error_message": str(error),
        "status": error_status(error),
        # Credentials are attached at send time and never part of the descriptor
        "headers": [
            name for name, _ in request.headers if name.lower() != "authorization"
        ],
    }
    logger.error(log_data)

"""JSON log output for applications using the session handler."""

import logging
from typing import Union

from pythonjsonlogger import jsonlogger

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s %(message)s'


def setup_logger(level: Union[int, str] = logging.INFO) -> logging.Logger:
    """Send records from every logger to stderr as JSON objects."""
    handler = logging.StreamHandler()
    handler.setFormatter(jsonlogger.JsonFormatter(
        LOG_FORMAT,
        rename_fields={'levelname': 'level', 'asctime': 'timestamp'}
    ))
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(level)
    return root

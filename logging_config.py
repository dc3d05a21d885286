"""
logging_config.py: logging setup shared by every module

- One console format: timestamp | level | module | message
- `configure_logging` is called once by the entry point (app.py)
- Modules obtain loggers through `get_logger(__name__)`
"""

import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Configure root logging.

    Parameters:
        level (str): "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"
    """
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    logging.getLogger(__name__).info("Logging initialized with level %s", level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)

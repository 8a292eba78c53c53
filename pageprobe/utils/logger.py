"""
pageprobe/utils/logger.py

Centralized logging configuration for the project.
Provides a factory function for creating configured loggers.
"""

import logging

from pageprobe.config import Config


# Private functions _______________________________________________________________________________

def _create_handler() -> logging.StreamHandler:
    """
    Create and configure a StreamHandler for stderr logging.
    Returns:
        logging.StreamHandler: Configured handler
    """
    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        fmt=Config.LOG_FORMAT,
        datefmt=Config.LOG_DATE_FORMAT
    )
    handler.setFormatter(fmt=formatter)
    return handler


def _configure_logger(logger: logging.Logger) -> logging.Logger:
    """
    Configure a logger with the project level and format.
    Args:
        logger (logging.Logger): The logger to configure
    Returns:
        logging.Logger: The configured logger
    """
    # set log level
    logger.setLevel(Config.LOG_LEVEL)

    # prevent duplicate handlers
    if not logger.handlers:
        handler = _create_handler()
        logger.addHandler(handler)

    # force handler format consistency even if caplog interferes
    for handler in logger.handlers:
        handler.setFormatter(
            fmt=logging.Formatter(
                fmt=Config.LOG_FORMAT,
                datefmt=Config.LOG_DATE_FORMAT
            )
        )

    # prevent propagation to avoid duplicate logs
    logger.propagate = False
    return logger


# Exports _________________________________________________________________________________________

def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger by name.
    Args:
        name (str): Logger name.
    Returns:
        logging.Logger: Configured logger instance
    """
    logger = logging.getLogger(name=name)
    return _configure_logger(logger)

"""
pageprobe/config.py

Environment variable configuration.

Contains:
- Config: Centralized settings from environment variables
- LOG_LEVEL, REMOTE_DEBUGGING_ADDRESS, DEFAULT_TIMEOUT_MS, etc.
"""

import logging
import os
from typing import Any

from dotenv import load_dotenv

load_dotenv()

# configure urllib3/websockets loggers to suppress verbose transport logs
logging.getLogger("urllib3").setLevel(logging.WARNING)
logging.getLogger("websockets").setLevel(logging.WARNING)


class Config():
    """
    Centralized configuration for environment variables.
    """

    # logging configuration
    LOG_LEVEL: int = logging.getLevelNamesMapping().get(
        os.getenv("LOG_LEVEL", "INFO").upper(),
        logging.INFO
    )
    LOG_DATE_FORMAT: str = os.getenv("LOG_DATE_FORMAT", "%Y-%m-%d %H:%M:%S")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "[%(asctime)s] %(levelname)s:%(name)s:%(message)s")

    # browser connection
    REMOTE_DEBUGGING_ADDRESS: str = os.getenv("PAGEPROBE_REMOTE_DEBUGGING_ADDRESS", "127.0.0.1:9222")
    HTTP_TIMEOUT: float = float(os.getenv("PAGEPROBE_HTTP_TIMEOUT", "5"))
    CDP_COMMAND_TIMEOUT: float = float(os.getenv("PAGEPROBE_CDP_COMMAND_TIMEOUT", "10"))

    # evaluation defaults
    DEFAULT_TIMEOUT_MS: int = int(os.getenv("PAGEPROBE_DEFAULT_TIMEOUT_MS", "30000"))

    @classmethod
    def as_dict(cls) -> dict[str, Any]:
        """
        Return a dictionary of all UPPERCASE class attributes and their values.
        Return:
            dict[str, Any]: A dictionary of all UPPERCASE class attributes and their values.
        """
        return {
            key: getattr(cls, key)
            for key in dir(cls)
            if key.isupper()
        }

"""
CENTRAL LOGGING UTILITY
----------------------

One logger factory for every chart module and the Streamlit page.

Design goals:
- No duplicate handlers across Streamlit reruns
- Human-readable, tagged logs ("[render] ...")
- Level and format configurable via env
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# CONFIGURATION
# =============================================================================

DEFAULT_LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv(
    "LOG_FORMAT",
    "[%(asctime)s] %(levelname)s - %(name)s - %(message)s",
)
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Return a configured logger instance.

    Streamlit re-executes the page script on every interaction, so this
    must be safe to call repeatedly for the same name.
    """
    logger = logging.getLogger(name)
    logger.setLevel((level or DEFAULT_LOG_LEVEL).upper())

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
        logger.addHandler(handler)

        # Streamlit installs its own root handler
        logger.propagate = False

    return logger

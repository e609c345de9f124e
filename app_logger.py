# app_logger.py
"""
Shared logging setup for DocWise.

Every module does:

    init_logging()
    logger = get_logger(__name__)

init_logging() is idempotent, so importing several modules (or a Streamlit
rerun) never stacks duplicate handlers.
"""

import logging
import os
import sys

_INITIALIZED = False

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# Third-party loggers that flood the console at INFO
_NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "urllib3",
    "urllib3.connectionpool",
    "google",
    "google_genai",
    "google.auth",
    "grpc",
    "langchain",
    "langchain_core",
    "langchain_google_genai",
    "watchdog",
)


def init_logging(level: str = "") -> None:
    """Configure the root logger once; level comes from DOCWISE_LOG_LEVEL unless given."""
    global _INITIALIZED
    if _INITIALIZED:
        return

    lvl_name = (level or os.getenv("DOCWISE_LOG_LEVEL", "INFO")).upper()
    lvl = getattr(logging, lvl_name, logging.INFO)

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(lvl)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _INITIALIZED = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)

"""
retention/config.py

Runtime settings for the service and the command-line tools.
The engine itself takes everything it needs as arguments.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

# Folder holding the nine CSV tables (see data_dictionary.TABLE_FILES).
DATA_DIR = Path(os.getenv("RETENTION_DATA_DIR", "data"))

# Term shown on the student dashboard when the caller does not pick one.
DEFAULT_TERM_ID = 1

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", 8081))
API_DEBUG = os.getenv("API_DEBUG", "false").lower() == "true"

CORS_ORIGINS = ["http://localhost:5173", "http://127.0.0.1:5173"]

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s:%(lineno)d - %(message)s"


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stdout, force=True)

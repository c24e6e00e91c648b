"""Application configuration."""

import os
from dataclasses import dataclass

APP_NAME = "mfdread"
VERSION = "1.0.0"

# HTTP API
API_HOST = os.getenv("MFDREAD_HOST", "127.0.0.1")
API_PORT = int(os.getenv("MFDREAD_PORT", "8000"))
# Largest accepted upload; a Proxmark3 text dump of a 4K card stays well below it
MAX_UPLOAD_BYTES = int(os.getenv("MFDREAD_MAX_UPLOAD", "65536"))

LOG_LEVEL = os.getenv("MFDREAD_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# https://no-color.org
NO_COLOR = bool(os.getenv("NO_COLOR"))


@dataclass(frozen=True)
class ReportOptions:
    """Settings for one report run, passed explicitly to the builder and renderer."""

    force_1k: bool = False
    colorize: bool = not NO_COLOR
    verbose: int = 0

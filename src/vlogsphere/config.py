# src/vlogsphere/config.py

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    return int(_env_float(key, default))


class Config:
    # Application Configuration
    API_URL = os.getenv("VLOGSPHERE_API_URL", "http://localhost:5000/api")

    # Transport
    REQUEST_TIMEOUT = _env_float("VLOGSPHERE_REQUEST_TIMEOUT", 10.0)
    MAX_NETWORK_RETRIES = _env_int("VLOGSPHERE_MAX_NETWORK_RETRIES", 2)
    RETRY_BACKOFF_SECONDS = _env_float("VLOGSPHERE_RETRY_BACKOFF_SECONDS", 1.0)

    # Session
    RENEWAL_INTERVAL_MINUTES = _env_float("VLOGSPHERE_RENEWAL_INTERVAL_MINUTES", 25)
    DEFAULT_LANDING_PATH = "/dashboard"
    LOGIN_PATH = "/login"

    # Notifications
    TOAST_DURATION_MS = _env_int("VLOGSPHERE_TOAST_DURATION_MS", 4000)

    # Storage
    DATA_DIR = Path(
        os.getenv("VLOGSPHERE_DATA_DIR", str(Path.home() / ".vlogsphere"))
    )
    CREDENTIALS_FILENAME = "credentials.json"

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    @property
    def credentials_path(self) -> Path:
        return self.DATA_DIR / self.CREDENTIALS_FILENAME


CONFIG = Config()
DATA_DIR = CONFIG.DATA_DIR

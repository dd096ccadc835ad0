"""App settings — loaded from environment variables with defaults."""

import os
from typing import List
from dotenv import load_dotenv
from sleep_forecast.core.constants import (
    HISTORY_WINDOW_DAYS as _DEFAULT_HISTORY_WINDOW_DAYS,
    MAX_AWAKE_WINDOW_MINUTES as _DEFAULT_MAX_AWAKE_WINDOW,
    MAX_NAP_DURATION_MINUTES as _DEFAULT_MAX_NAP_DURATION,
)

load_dotenv()


class Settings:
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
    ]
    CORS_EXTRA_ORIGINS: str = os.getenv("CORS_EXTRA_ORIGINS", "")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Local calendar day / clock time for timezone-aware timestamps
    TIMEZONE: str = os.getenv("TIMEZONE", "UTC")

    # Defaults from constants.py; overridable via env for atypical sleepers
    HISTORY_WINDOW_DAYS: int = int(
        os.getenv("HISTORY_WINDOW_DAYS", str(_DEFAULT_HISTORY_WINDOW_DAYS))
    )
    MAX_AWAKE_WINDOW_MINUTES: float = float(
        os.getenv("MAX_AWAKE_WINDOW_MINUTES", str(_DEFAULT_MAX_AWAKE_WINDOW))
    )
    MAX_NAP_DURATION_MINUTES: float = float(
        os.getenv("MAX_NAP_DURATION_MINUTES", str(_DEFAULT_MAX_NAP_DURATION))
    )


settings = Settings()

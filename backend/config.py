"""
Preview service configuration — all environment variables in one place.

Read from environment at runtime.
"""

from __future__ import annotations

import os


class Settings:
    """Application settings from environment variables."""

    # Application
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    # Preview document
    ESM_CDN_URL: str = os.environ.get("ESM_CDN_URL", "https://esm.sh")
    TAILWIND_CDN_URL: str = os.environ.get("TAILWIND_CDN_URL", "https://cdn.tailwindcss.com")

    # Entry used when the caller does not name one and it exists in the project
    DEFAULT_ENTRY_POINT: str = os.environ.get("DEFAULT_ENTRY_POINT", "/App.jsx")

    # Request limits
    MAX_PROJECT_FILES: int = int(os.environ.get("MAX_PROJECT_FILES", "500"))


# Singleton instance
settings = Settings()

if settings.MAX_PROJECT_FILES < 1:
    raise RuntimeError("MAX_PROJECT_FILES must be at least 1")

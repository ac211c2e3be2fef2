"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os


def _optional_float(name: str) -> float | None:
    value = os.getenv(name, "")
    return float(value) if value else None


class Config:
    """Default configuration for the Flask backend."""

    SECRET_KEY = os.getenv("SECRET_KEY", "dev-key-change-in-prod")
    DEBUG = os.getenv("FLASK_DEBUG", "0") == "1"

    # Origins allowed to call this API
    CORS_ORIGINS = os.getenv(
        "CORS_ORIGINS", "http://localhost:*",
    ).split(",")

    # Dataverse installation serving source files and provenance
    DATAVERSE_URL = os.getenv(
        "DATAVERSE_URL", "https://dataverse.harvard.edu",
    )
    DATAVERSE_API_TOKEN = os.getenv("DATAVERSE_API_TOKEN", "")

    # Seconds; unset means fetches wait indefinitely
    FETCH_TIMEOUT = _optional_float("FETCH_TIMEOUT")

    # Namespace a new schema-editor session starts with
    DEFAULT_NAMESPACE = os.getenv(
        "DEFAULT_NAMESPACE", "http://example.com/ns/",
    )

    # Rows shown in table previews
    PREVIEW_ROWS = int(os.getenv("PREVIEW_ROWS", "10"))


class TestConfig(Config):
    """Configuration overrides for testing."""

    TESTING = True
    DATAVERSE_URL = "https://dataverse.example.org"
    DATAVERSE_API_TOKEN = "test-token"
    FETCH_TIMEOUT = 5.0

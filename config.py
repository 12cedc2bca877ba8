"""
Application configuration — environment-aware settings.

All environment variables are documented here. See .env.example for a template.
"""

from __future__ import annotations

import os
import warnings
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).parent

load_dotenv(BASE_DIR / ".env")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    return int(raw) if raw.strip() else default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "")
    if not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class BaseConfig:
    # Core Flask
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-key-change-in-production")
    # Database: SQLite (default) or PostgreSQL (set DATABASE_URL=postgresql://...)
    DATABASE = os.environ.get("DATABASE_URL") or str(BASE_DIR / "pathfinder.db")

    # Operator token for POST /api/admin/combinations/generate
    ADMIN_TOKEN = os.environ.get("ADMIN_TOKEN", "")

    # Logging
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "text")  # "json" or "text"
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Combination generation
    COMMON_STREAM_ID = _env_int("COMMON_STREAM_ID", 7)
    STRICT_CATALOGUE = _env_bool("STRICT_CATALOGUE", True)
    GENERATION_ACTOR = os.environ.get("GENERATION_ACTOR", "system")

    # Arts enumeration limits (placeholders pending admissions confirmation)
    ARTS_SOCIAL_SLICE = _env_int("ARTS_SOCIAL_SLICE", 10)
    ARTS_PAIR_SLICE = _env_int("ARTS_PAIR_SLICE", 8)
    ARTS_TRIPLE_CAP = _env_int("ARTS_TRIPLE_CAP", 50)

    JSON_SORT_KEYS = False


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "text")


class ProductionConfig(BaseConfig):
    DEBUG = False
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "json")

    @classmethod
    def validate(cls):
        """Fail fast on missing or insecure configuration in production."""
        errors: list[str] = []

        if cls.SECRET_KEY in ("dev-key-change-in-production", ""):
            errors.append("SECRET_KEY must be set to a secure value in production.")

        if not cls.ADMIN_TOKEN:
            warnings.warn("ADMIN_TOKEN is not set — the generation endpoint will reject every call.")

        if cls.ARTS_TRIPLE_CAP <= 0:
            errors.append("ARTS_TRIPLE_CAP must be positive.")

        if errors:
            raise RuntimeError(
                "Production configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
            )


class TestingConfig(BaseConfig):
    TESTING = True
    RATELIMIT_ENABLED = False


config_by_name = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}

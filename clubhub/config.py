from __future__ import annotations

from pathlib import Path
import os

from dotenv import load_dotenv

load_dotenv()

# Repository root
REPO_ROOT = Path(__file__).resolve().parent.parent
# Default database location when ``DATABASE_URL`` is not set
DB_FILE = REPO_ROOT / "clubhub.db"

# Value shipped in the sample ``.env``; treated the same as a missing key
_PLACEHOLDER_API_KEY = "your_google_ai_api_key_here"


class BaseConfig:
    """Base settings shared across environments."""

    AI_MODEL = os.getenv("AI_MODEL", "gemini-1.5-flash")
    AI_TIMEOUT = float(os.getenv("AI_TIMEOUT", "5"))
    UPLOAD_DIR = Path(os.getenv("UPLOAD_DIR", str(REPO_ROOT / "static" / "uploads")))
    MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
    TOKEN_TTL_HOURS = int(os.getenv("TOKEN_TTL_HOURS", "24"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


class ProductionConfig(BaseConfig):
    LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")


class TestConfig(BaseConfig):
    AI_TIMEOUT = 1.0


class DevelopmentConfig(BaseConfig):
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")


_CONFIGS = {
    "production": ProductionConfig,
    "test": TestConfig,
    "development": DevelopmentConfig,
}

# Current active configuration determined by the ``APP_ENV`` environment
# variable. Defaults to development.
APP_ENV = os.getenv("APP_ENV", "development")
ActiveConfig = _CONFIGS.get(APP_ENV, DevelopmentConfig)


def get_database_url() -> str:
    """Return the configured database connection string.

    An empty string means the SQLite file at ``DB_FILE``.
    """
    return os.getenv("DATABASE_URL", "")


def get_ai_api_key() -> str | None:
    """Return the generative AI key, or ``None`` when AI is not configured."""
    key = os.getenv("GOOGLE_GENAI_API_KEY", "").strip()
    if not key or key == _PLACEHOLDER_API_KEY:
        return None
    return key


def get_ai_model() -> str:
    return ActiveConfig.AI_MODEL


def get_ai_timeout() -> float:
    """Return the timeout in seconds applied to generative AI calls."""
    return ActiveConfig.AI_TIMEOUT


def get_upload_dir() -> Path:
    return ActiveConfig.UPLOAD_DIR


def get_max_upload_bytes() -> int:
    return ActiveConfig.MAX_UPLOAD_BYTES


def get_token_ttl_hours() -> int:
    return ActiveConfig.TOKEN_TTL_HOURS


def get_log_level() -> str:
    return ActiveConfig.LOG_LEVEL


__all__ = [
    "DB_FILE",
    "get_database_url",
    "get_ai_api_key",
    "get_ai_model",
    "get_ai_timeout",
    "get_upload_dir",
    "get_max_upload_bytes",
    "get_token_ttl_hours",
    "get_log_level",
]

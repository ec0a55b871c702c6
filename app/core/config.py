# /aria-backend/app/core/config.py

"""
Central configuration for the ARIA backend.

Every value is read from the process environment (optionally seeded from a
`.env` file) exactly once, when `get_settings()` is first called. Services
never reach into `os.environ` themselves; they receive a `Settings` instance
or one of the narrower config objects derived from it.
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

DEFAULT_OPENROUTER_MODEL = "cognitivecomputations/dolphin-mistral-24b-venice-edition:free"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


class Settings(BaseModel):
    """Runtime settings, one field per supported environment variable."""

    database_url: str = "sqlite:///./aria.db"
    secret_key: str = "dev-secret-change-me"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 1440

    openrouter_api_key: Optional[str] = None
    openrouter_model: str = DEFAULT_OPENROUTER_MODEL
    google_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    serpapi_key: Optional[str] = None

    storage_dir: str = "app/data/files"
    public_base_url: str = "http://localhost:8000"
    log_level: str = "INFO"
    # Raw MODE_<ID>_<FIELD> variables, resolved by the mode service.
    mode_overrides: Dict[str, str] = {}

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("DATABASE_URL", "sqlite:///./aria.db"),
            secret_key=os.getenv("SECRET_KEY", "dev-secret-change-me"),
            algorithm=os.getenv("ALGORITHM", "HS256"),
            access_token_expire_minutes=_env_int("ACCESS_TOKEN_EXPIRE_MINUTES", 1440),
            openrouter_api_key=os.getenv("OPENROUTER_API_KEY"),
            openrouter_model=os.getenv("OPENROUTER_MODEL", DEFAULT_OPENROUTER_MODEL),
            google_api_key=os.getenv("GOOGLE_API_KEY"),
            gemini_model=os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
            serpapi_key=os.getenv("SERPAPI_KEY"),
            storage_dir=os.getenv("STORAGE_DIR", "app/data/files"),
            public_base_url=os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            mode_overrides={k: v for k, v in os.environ.items() if k.startswith("MODE_") and v},
        )


@dataclass(frozen=True)
class ProviderConfig:
    """
    Credentials and model names handed to the ProviderOrchestrator.

    `primary_model` is the OpenRouter model used when the chat mode does not
    name one; `default_model` is the Gemini model used by the fallback path.
    """
    primary_key: Optional[str]
    secondary_key: Optional[str]
    primary_model: str = DEFAULT_OPENROUTER_MODEL
    default_model: str = DEFAULT_GEMINI_MODEL

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProviderConfig":
        return cls(
            primary_key=settings.openrouter_api_key,
            secondary_key=settings.google_api_key,
            primary_model=settings.openrouter_model,
            default_model=settings.gemini_model,
        )


@lru_cache()
def get_settings() -> Settings:
    """FastAPI dependency (and plain helper) returning the cached settings."""
    return Settings.from_env()

"""
CineChat — Application Settings

Design patterns:
  - Singleton: single Settings instance shared everywhere
  - Configuration Object: centralizes all env-based config
"""

from __future__ import annotations

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration sourced from environment / .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Language model ────────────────────────────────────
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    openai_base_url: Optional[str] = None  # any OpenAI-compatible server

    # ── TMDB ──────────────────────────────────────────────
    tmdb_api_key: str = ""
    tmdb_base_url: str = "https://api.themoviedb.org/3"
    tmdb_max_concurrency: int = 8
    default_language: str = "en-US"
    genre_refresh_interval_seconds: float = 24 * 60 * 60

    # ── App ───────────────────────────────────────────────
    app_host: str = "0.0.0.0"
    app_port: int = 5001
    log_level: str = "info"
    cors_origins: List[str] = ["*"]


# Singleton – import this everywhere
settings = Settings()

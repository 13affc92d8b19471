"""Server configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Storage
    notes_dir: Path = Path("public") / "notes"

    # HTTP
    host: str = "0.0.0.0"
    port: int = 3001
    cors_origins: list[str] = ["*"]


settings = Settings()

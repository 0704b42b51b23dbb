"""Application configuration loaded from config.yaml + environment variables."""

from __future__ import annotations

import yaml
from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings

_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml() -> dict:
    if _CONFIG_PATH.exists():
        with open(_CONFIG_PATH) as f:
            return yaml.safe_load(f) or {}
    return {}


_yaml = _load_yaml()


class BookingConfig(BaseSettings):
    currency_symbol: str = "₹"
    min_booking_hours: int = 1
    max_booking_hours: int = 24
    default_country_code: str = "+91"


class CatalogConfig(BaseSettings):
    snapshot_ttl_seconds: float = 300.0


class LLMConfig(BaseSettings):
    provider: str = "auto"  # auto | openai | anthropic | none
    openai_model: str = "gpt-4o-mini"
    anthropic_model: str = "claude-sonnet-4-20250514"
    max_tokens: int = 1024


class AuthConfig(BaseSettings):
    session_max_age_days: int = 30
    phone_code_ttl_minutes: int = 10
    phone_code_length: int = 6


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///data/chc_rental.db"
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    booking: BookingConfig = Field(default_factory=BookingConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


def get_settings() -> Settings:
    """Build Settings by merging YAML defaults with env overrides."""
    y = _yaml
    booking = BookingConfig(**y.get("booking", {}))
    catalog = CatalogConfig(**y.get("catalog", {}))
    llm = LLMConfig(**y.get("llm", {}))
    auth = AuthConfig(**y.get("auth", {}))
    db_url = y.get("database", {}).get("url", "sqlite+aiosqlite:///data/chc_rental.db")
    return Settings(
        database_url=db_url,
        booking=booking,
        catalog=catalog,
        llm=llm,
        auth=auth,
    )

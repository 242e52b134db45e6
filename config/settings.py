"""Pydantic BaseSettings: signing keys and client defaults."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration loaded from env / .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ── Application ─────────────────────────────────────────────
    APP_ENV: Literal["dev", "paper", "prod"] = "dev"
    APP_NAME: str = "dex-order-signer"
    LOG_LEVEL: str = "INFO"

    # ── Orders ──────────────────────────────────────────────────
    AFFILIATE_DEVELOPER_CODE: str | None = None
    PAIR_SEPARATOR: str = "_"

    # ── Signing pool ────────────────────────────────────────────
    SIGNER_MAX_WORKERS: int = Field(default=2, ge=1)

    # ── Credentials (never commit real values) ──────────────────
    PAYLOAD_SIGNING_KEY: str = ""
    ETH_CHILD_KEY: str = ""
    BTC_CHILD_KEY: str = ""


settings = Settings()

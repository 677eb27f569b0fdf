"""callnet configuration via environment / .env file."""

from __future__ import annotations

from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Hub detection ---
    GRAPH_HUB_MULTIPLIER: float = 3.0
    GRAPH_HUB_MIN_NODES: int = 5
    GRAPH_HUB_CROSS_FILE: bool = False

    # --- Builder ---
    GRAPH_RECORD_CAP: int = 15_000

    # --- Logging ---
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @field_validator("GRAPH_HUB_MULTIPLIER")
    @classmethod
    def _positive_multiplier(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("GRAPH_HUB_MULTIPLIER must be positive")
        return v

    @field_validator("GRAPH_HUB_MIN_NODES")
    @classmethod
    def _non_negative_min_nodes(cls, v: int) -> int:
        if v < 0:
            raise ValueError("GRAPH_HUB_MIN_NODES must not be negative")
        return v

    @field_validator("GRAPH_RECORD_CAP")
    @classmethod
    def _positive_cap(cls, v: int) -> int:
        if v < 1:
            raise ValueError("GRAPH_RECORD_CAP must be at least 1")
        return v

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


settings = Settings()

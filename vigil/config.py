"""Vigil configuration system using Pydantic Settings."""

from __future__ import annotations

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class VigilConfig(BaseSettings):
    """Main configuration class. Loads from .env file and environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "VIGIL"
    debug: bool = False
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: list[str] = ["http://localhost:5173", "http://127.0.0.1:5173"]

    # Logging
    log_dir: str = "logs"
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    # Incident store
    enforce_transitions: bool = False  # reject status jumps outside the lifecycle graph
    automation_match_mode: str = "any"  # any / all
    dashboard_deadline_limit: int = 10
    seed_sample_data: bool = True

    # Export
    export_dir: str = "exports"

    # Event streaming
    event_bus_queue_size: int = 10000
    event_history_size: int = 200
    ws_max_connections: int = 100
    ws_queue_size: int = 100
    ws_heartbeat_interval: int = 30  # seconds

    @field_validator("automation_match_mode")
    @classmethod
    def validate_automation_match_mode(cls, v: str) -> str:
        allowed = {"any", "all"}
        v = v.lower()
        if v not in allowed:
            raise ValueError(f"automation_match_mode must be one of {allowed}")
        return v

    @field_validator("dashboard_deadline_limit")
    @classmethod
    def validate_deadline_limit(cls, v: int) -> int:
        if v < 0:
            raise ValueError("dashboard_deadline_limit must not be negative")
        return v


def get_config() -> VigilConfig:
    """Factory function to create config instance."""
    return VigilConfig()

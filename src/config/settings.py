from __future__ import annotations

from functools import lru_cache

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    log_level: str = "INFO"
    environment: str = "dev"
    # Order backend the client talks to
    api_base_url: str = "http://localhost:5001/api/v1"
    ws_url: str = "ws://localhost:5001/ws"
    request_timeout_seconds: float = 10.0
    # Live connection
    reconnection_attempts: int = 5
    reconnection_delay: float = 1.0
    reconnection_delay_max: float = 5.0
    connect_timeout: float = 20.0
    # Notification de-duplication
    dedup_window_seconds: float = 300.0
    dedup_sweep_interval_seconds: float = 60.0
    notifications_page_size: int = 20
    unread_count_store_path: str = "~/.live-orders/state.json"
    # Socket service (server side)
    jwt_secret_key: SecretStr = SecretStr("change-me")
    jwt_algorithm: str = "HS256"
    jwt_access_token_expires_minutes: int = 60
    jwt_issuer: str | None = None
    jwt_audience: str | None = None
    cors_allow_origins: str = "http://localhost:3000,http://localhost:5173"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @field_validator("ws_url")
    @classmethod
    def ensure_ws_scheme(cls, value: str) -> str:
        if value.startswith("https://"):
            return value.replace("https://", "wss://", 1)
        if value.startswith("http://"):
            return value.replace("http://", "ws://", 1)
        return value

    @field_validator("notifications_page_size")
    @classmethod
    def cap_page_size(cls, value: int) -> int:
        # Server caps pages at 50
        return max(1, min(value, 50))

    @property
    def cors_allow_origins_list(self) -> list[str]:
        """Convert cors_allow_origins string to list"""
        if isinstance(self.cors_allow_origins, str):
            return [v.strip() for v in self.cors_allow_origins.split(",") if v.strip()]
        return self.cors_allow_origins


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("LOG_LEVEL", "INFO")

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(PROJECT_ROOT))

# ruff: noqa: E402
from src.config.settings import Settings
from src.domain.value_objects.role import Role
from src.infrastructure.auth.jwt_service import JWTService
from src.interfaces.http.main import create_app


@pytest.fixture()
def test_settings(tmp_path) -> Settings:
    return Settings.model_validate(
        {
            "log_level": "INFO",
            "environment": "test",
            "api_base_url": "http://testserver/api/v1",
            "ws_url": "ws://testserver/ws",
            "jwt_secret_key": "test-secret",
            "jwt_algorithm": "HS256",
            "reconnection_attempts": 2,
            "reconnection_delay": 0,
            "reconnection_delay_max": 0,
            "dedup_window_seconds": 300,
            "dedup_sweep_interval_seconds": 60,
            "unread_count_store_path": str(tmp_path / "state.json"),
        }
    )


@pytest.fixture()
def jwt_service(test_settings: Settings) -> JWTService:
    return JWTService(
        secret_key=test_settings.jwt_secret_key.get_secret_value(),
        algorithm=test_settings.jwt_algorithm,
        access_token_expires_minutes=test_settings.jwt_access_token_expires_minutes,
    )


@pytest.fixture()
def app(test_settings: Settings, jwt_service: JWTService):
    return create_app(settings=test_settings, jwt_service=jwt_service)


@pytest.fixture()
def customer_token(jwt_service: JWTService) -> str:
    return jwt_service.create_access_token(subject="user-1", role=Role.CUSTOMER)


@pytest.fixture()
def admin_token(jwt_service: JWTService) -> str:
    return jwt_service.create_access_token(
        subject="admin-1", role=Role.ADMIN, extra_claims={"name": "Ada"}
    )

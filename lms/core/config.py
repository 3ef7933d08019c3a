from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

_DEV_JWT_SECRET = "dev-only-secret-change-me"


def _getenv(name: str, default: str) -> str:
    return os.environ.get(name, default).strip()


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off", ""):
        return False
    raise ValueError(f"{name} must be a boolean (got {raw!r})")


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    redis_url: str | None
    jwt_secret: str = _DEV_JWT_SECRET
    max_upload_bytes: int = 10 * 1024 * 1024
    storage_base_url: str | None = None
    notification_webhook_url: str | None = None

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    port = _parse_int("PORT", _getenv("PORT", "8000"))
    log_json = _parse_bool("LOG_JSON", _getenv("LOG_JSON", "false"))

    max_upload_bytes = _parse_int(
        "MAX_UPLOAD_BYTES", _getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024))
    )
    if max_upload_bytes <= 0:
        raise ValueError(
            f"MAX_UPLOAD_BYTES must be positive (got {max_upload_bytes})"
        )

    jwt_secret = _getenv("JWT_SECRET", _DEV_JWT_SECRET)
    if app_env_raw == "prod" and jwt_secret == _DEV_JWT_SECRET:
        raise ValueError("JWT_SECRET must be set when APP_ENV=prod")

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=log_json,
        port=port,
        database_url=_getenv("DATABASE_URL", "") or None,
        redis_url=_getenv("REDIS_URL", "") or None,
        jwt_secret=jwt_secret,
        max_upload_bytes=max_upload_bytes,
        storage_base_url=_getenv("STORAGE_BASE_URL", "") or None,
        notification_webhook_url=_getenv("NOTIFICATION_WEBHOOK_URL", "") or None,
    )


SETTINGS = load_settings()

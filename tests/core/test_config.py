from __future__ import annotations

import pytest

from lms.core.config import load_settings


def test_load_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("APP_ENV", "LOG_LEVEL", "LOG_JSON", "MAX_UPLOAD_BYTES", "JWT_SECRET"):
        monkeypatch.delenv(name, raising=False)
    settings = load_settings()
    assert settings.app_env == "dev"
    assert settings.log_level == "info"
    assert settings.log_json is False
    assert settings.max_upload_bytes == 10 * 1024 * 1024


def test_load_settings_normalizes_case_and_whitespace(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("APP_ENV", "  TEST ")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    settings = load_settings()
    assert settings.app_env == "test"
    assert settings.log_level == "debug"


def test_optional_urls_are_none_when_blank(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "")
    monkeypatch.setenv("STORAGE_BASE_URL", "  ")
    settings = load_settings()
    assert settings.database_url is None
    assert settings.storage_base_url is None


def test_log_json_parses_booleans(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_JSON", "yes")
    assert load_settings().log_json is True
    monkeypatch.setenv("LOG_JSON", "maybe")
    with pytest.raises(ValueError, match="LOG_JSON"):
        load_settings()


@pytest.mark.parametrize(
    ("name", "value", "match"),
    [
        ("APP_ENV", "staging", "APP_ENV"),
        ("LOG_LEVEL", "verbose", "LOG_LEVEL"),
        ("PORT", "eighty", "PORT"),
        ("MAX_UPLOAD_BYTES", "0", "MAX_UPLOAD_BYTES"),
    ],
)
def test_load_settings_rejects_invalid_values(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str, match: str
) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=match):
        load_settings()


def test_prod_requires_real_jwt_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "prod")
    monkeypatch.delenv("JWT_SECRET", raising=False)
    with pytest.raises(ValueError, match="JWT_SECRET"):
        load_settings()

    monkeypatch.setenv("JWT_SECRET", "s3cret")
    assert load_settings().is_prod

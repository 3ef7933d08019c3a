from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import jwt
from fastapi.testclient import TestClient

from lms.core.config import SETTINGS
from lms.services import token_service
from tests.conftest import auth_header, mint_token


def _url() -> str:
    return f"/v1/weeks/{uuid4()}/progress"


def test_garbage_token_is_401(client: TestClient) -> None:
    resp = client.get(_url(), headers=auth_header("not-a-jwt"))
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid token"


def test_expired_token_is_401(client: TestClient) -> None:
    now = datetime.now(UTC)
    token = jwt.encode(
        {
            "sub": str(uuid4()),
            "iss": token_service.ISSUER,
            "aud": token_service.AUDIENCE,
            "iat": now - timedelta(hours=1),
            "exp": now - timedelta(minutes=1),
            "jti": "x",
            "roles": ["student"],
        },
        SETTINGS.jwt_secret,
        algorithm="HS256",
    )
    resp = client.get(_url(), headers=auth_header(token))
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Token expired"


def test_token_signed_with_other_secret_is_401(client: TestClient) -> None:
    token = jwt.encode(
        {"sub": "x", "iss": "auth-service", "aud": "lms", "exp": 9999999999},
        "other-secret",
        algorithm="HS256",
    )
    assert client.get(_url(), headers=auth_header(token)).status_code == 401


def test_non_uuid_subject_is_403(client: TestClient) -> None:
    headers = auth_header(mint_token("alice", roles=["student"]))
    assert client.get(_url(), headers=headers).status_code == 403

"""JWT access token validation (HS256).

Tokens are issued by the auth service that fronts the LMS and share its
secret; this service only verifies them.  ``sub`` is the student id for
students; ``roles`` carries ``student`` and/or ``admin``.
"""

from __future__ import annotations

import jwt

from lms.core.config import SETTINGS

ALGORITHM = "HS256"
ISSUER = "auth-service"
AUDIENCE = "lms"


def decode_access_token(token: str) -> dict:
    """Verify signature and claims, return the payload.

    Pins the algorithm to HS256 to prevent alg:none and alg-switching.
    Raises jwt.ExpiredSignatureError, jwt.InvalidTokenError on failure.
    """
    return jwt.decode(
        token,
        SETTINGS.jwt_secret,
        algorithms=[ALGORITHM],
        issuer=ISSUER,
        audience=AUDIENCE,
        options={"require": ["sub", "exp", "iat", "jti"]},
    )

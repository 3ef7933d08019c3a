from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from lms.db.engine import async_session_factory, session_scope
from lms.models.principal import Principal
from lms.repos.bundle import IN_MEMORY, Repositories, pg_repositories
from lms.services import token_service
from lms.services.notifications import NotificationDispatcher, notification_dispatcher
from lms.services.storage import FileStorage, file_storage
from lms.services.task_queue import TaskQueue, task_queue

logger = logging.getLogger(__name__)

# Tokens are issued by the auth service; this URL only feeds the docs UI.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/oauth/token")


def require_user(
    raw_token: Annotated[str, Depends(oauth2_scheme)],
) -> Principal:
    """Extract and validate the JWT bearer token. Returns a Principal."""
    try:
        claims = token_service.decode_access_token(raw_token)
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token expired",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token rejected: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    return Principal(
        user_id=claims["sub"],
        roles=frozenset(claims.get("roles", [])),
    )


def require_role(role: str):
    """Dependency factory: demand a specific role.

    Usage: Depends(require_role("admin"))
    """

    def _guard(
        principal: Annotated[Principal, Depends(require_user)],
    ) -> Principal:
        if not principal.has_role(role):
            logger.warning(
                "Access denied: user=%s missing role=%s",
                principal.user_id,
                role,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return principal

    return _guard


def require_student(
    principal: Annotated[Principal, Depends(require_user)],
) -> UUID:
    """The caller's student id (the token subject)."""
    if not principal.has_role("student"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions",
        )
    try:
        return principal.student_id()
    except ValueError:
        logger.warning("Token subject %r is not a student id", principal.user_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions",
        ) from None


async def get_repositories() -> AsyncGenerator[Repositories, None]:
    """One unit of work per request; commits after the handler returns."""
    if async_session_factory is None:
        yield IN_MEMORY
        return
    async with session_scope() as session:
        yield pg_repositories(session)


def get_file_storage() -> FileStorage:
    return file_storage


def get_task_queue() -> TaskQueue:
    return task_queue


def get_notification_dispatcher() -> NotificationDispatcher:
    return notification_dispatcher

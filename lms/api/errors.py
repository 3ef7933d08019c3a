"""Domain error -> HTTP status mapping shared by the routers."""

from __future__ import annotations

import logging

from fastapi import HTTPException, status

from lms.services.errors import (
    DeadlinePassedError,
    DuplicateKeyError,
    DuplicateSubmissionError,
    InvalidTransitionError,
    LmsError,
    NotFoundError,
    StorageError,
    SubmissionValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: tuple[tuple[type[LmsError], int], ...] = (
    (SubmissionValidationError, status.HTTP_400_BAD_REQUEST),
    (DeadlinePassedError, status.HTTP_400_BAD_REQUEST),
    (DuplicateSubmissionError, status.HTTP_409_CONFLICT),
    (DuplicateKeyError, status.HTTP_409_CONFLICT),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (StorageError, status.HTTP_502_BAD_GATEWAY),
)


def to_http_error(exc: LmsError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    logger.error("Unmapped domain error %s: %s", type(exc).__name__, exc)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal error",
    )

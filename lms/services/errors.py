"""Error taxonomy for the progress and submission core.

Every error is deterministic; none of them is retried automatically.
The HTTP layer maps them to status codes in lms.api.errors.
"""

from __future__ import annotations


class LmsError(Exception):
    pass


class SubmissionValidationError(LmsError, ValueError):
    """Bad or missing input (no file, file too large, wrong material type)."""


class DuplicateSubmissionError(LmsError):
    pass


class DeadlinePassedError(LmsError):
    pass


class NotFoundError(LmsError):
    pass


class WeekNotFoundError(NotFoundError):
    pass


class MaterialNotFoundError(NotFoundError):
    pass


class StudentNotFoundError(NotFoundError):
    pass


class SubmissionNotFoundError(NotFoundError):
    pass


class StorageError(LmsError):
    """The file storage collaborator failed; nothing was persisted."""


class NotificationError(LmsError):
    """The notification collaborator failed.  Recorded, never surfaced."""


class InvalidTransitionError(LmsError):
    pass


class DuplicateKeyError(LmsError):
    """A unique constraint rejected an insert (another writer got there first)."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller extracted from a validated bearer token.

    user_id: JWT subject; for students this is the student id.
    roles: platform roles (student, admin).
    """

    user_id: str
    roles: frozenset[str]

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def is_admin(self) -> bool:
        return "admin" in self.roles

    def student_id(self) -> UUID:
        return UUID(self.user_id)

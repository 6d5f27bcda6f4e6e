# Overview: Caller identity used as the input of every authorization predicate.

from __future__ import annotations

from dataclasses import dataclass

from ..constants import Role


@dataclass(frozen=True)
class CallerContext:
    """
    Who is asking: user id plus the single (role, department) assignment.

    role/department are None when the user has no UserRole row; every
    role-dependent predicate then denies.
    """
    user_id: int | None
    role: str | None = None
    department: str | None = None

    @property
    def has_role(self) -> bool:
        return self.user_id is not None and self.role in Role.ALL

    @property
    def is_admin(self) -> bool:
        return self.has_role and self.role == Role.ADMIN

    @property
    def is_hod(self) -> bool:
        return self.has_role and self.role == Role.HOD

    @property
    def is_staff(self) -> bool:
        return self.has_role and self.role == Role.STAFF

    def in_department(self, department: str | None) -> bool:
        return self.has_role and department is not None and self.department == department

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "role": self.role,
            "department": self.department,
        }


ANONYMOUS = CallerContext(user_id=None)

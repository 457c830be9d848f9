"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in designs/models.py -- dataclasses own domain shape; stores and routes do
the work.

Layer rule: no imports from api/, core/ or designs/.
"""

from __future__ import annotations

from dataclasses import dataclass

ROLE_USER = "USER"
ROLE_ADMIN = "ADMIN"
ROLES = (ROLE_USER, ROLE_ADMIN)


@dataclass
class User:
    """A portal account.

    email is the login identifier and is stored lower-cased by UserStore so
    lookups are case-insensitive.

    hashed_password is None only for records that have not been given a
    password yet; authenticate_user() treats them as unknown.
    """

    email: str
    name: str
    role: str = ROLE_USER  # "USER" | "ADMIN"
    id: int | None = None
    phone: str | None = None
    hashed_password: str | None = None
    is_active: bool = True
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""  # ISO 8601, stamped on every write

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

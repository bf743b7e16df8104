"""Database models for store users.

The users table is owned by the account service; this API only reads the
profile fields it shows next to comments.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from storefront.auth.permissions import UserRole
from storefront.utils import ensure_utc_aware, utc_now


USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.users (
    id UUID PRIMARY KEY,
    email TEXT,
    name TEXT,
    avatar_url TEXT,
    role TEXT,
    is_active BOOLEAN,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

USER_EMAIL_INDEX_CQL = """
CREATE INDEX IF NOT EXISTS users_email_idx ON {keyspace}.users (email)
"""

AUTH_TABLES_CQL = [
    USER_TABLE_CQL,
    USER_EMAIL_INDEX_CQL,
]


class User:
    """Store user profile."""

    def __init__(
        self,
        id: UUID,
        email: str = "",
        name: str = "",
        avatar_url: str | None = None,
        role: str = UserRole.USER.value,
        is_active: bool = True,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        self.id = id
        self.email = email.lower().strip()
        self.name = name
        self.avatar_url = avatar_url
        self.role = role
        self.is_active = is_active
        self.created_at = ensure_utc_aware(created_at) or utc_now()
        self.updated_at = ensure_utc_aware(updated_at)

    @classmethod
    def from_row(cls, row: Any) -> "User":
        """Create User instance from Cassandra row."""
        return cls(
            id=row.id,
            email=row.email or "",
            name=row.name or "",
            avatar_url=getattr(row, "avatar_url", None),
            role=row.role or UserRole.USER.value,
            is_active=row.is_active if row.is_active is not None else True,
            created_at=row.created_at,
            updated_at=getattr(row, "updated_at", None),
        )

    def __repr__(self) -> str:
        return f"User(id={self.id}, email={self.email!r}, role={self.role!r})"

# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Read-only user directory used to render comment authors."""

from typing import TYPE_CHECKING
from uuid import UUID

from storefront.auth.models import User


if TYPE_CHECKING:
    from cassandra.cluster import Session


class UserService:
    """Lookup of user profiles by id."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._get_users_by_ids = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.users WHERE id IN ?"
        )

    async def get_users_by_ids(self, user_ids: set[UUID]) -> dict[UUID, User]:
        """Batch lookup; ids without a profile are absent from the result."""
        if not user_ids:
            return {}
        rows = await self.session.aexecute(self._get_users_by_ids, [list(user_ids)])
        return {row.id: User.from_row(row) for row in rows}

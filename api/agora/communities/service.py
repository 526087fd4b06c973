"""Community membership lookups."""

from typing import TYPE_CHECKING
from uuid import UUID

from agora.communities.models import Membership


if TYPE_CHECKING:
    from cassandra.cluster import Session


class CommunityService:
    """Read access to community memberships."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._get_membership = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.community_memberships
            WHERE community_id = ? AND user_id = ?
        """)

    async def get_membership(
        self, user_id: UUID, community_id: UUID | None
    ) -> Membership | None:
        """Membership of ``user_id`` in the community, if any."""
        if community_id is None:
            return None
        result = await self.session.aexecute(
            self._get_membership, [community_id, user_id]
        )
        row = result.one()
        return Membership.from_row(row) if row else None

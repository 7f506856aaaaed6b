"""역할 레포지토리 (Role Repository).

Each organization owns its own "owner" / "admin" / "member" rows, created
with the workspace.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import Role
from app.repositories.base import BaseRepository


class RoleRepository(BaseRepository[Role]):
    def __init__(self) -> None:
        super().__init__(Role)

    async def get_by_name(self, db: AsyncSession, organization_id: UUID, name: str) -> Role | None:
        """조직 내 이름으로 역할 조회 (Role of ``organization_id`` named ``name``)."""
        result = await db.execute(select(Role).where(Role.organization_id == organization_id, Role.name == name))
        return result.scalar_one_or_none()


role_repository: RoleRepository = RoleRepository()

"""조직 레포지토리 - 워크스페이스 생성.

Organization Repository - Creates tenant workspaces together with their
default role hierarchy.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.organization import Organization
from app.models.user import DEFAULT_ROLES, Role
from app.repositories.base import BaseRepository


class OrganizationRepository(BaseRepository[Organization]):
    """조직 테이블 레포지토리 (Repository for the organizations table)."""

    def __init__(self) -> None:
        super().__init__(Organization)

    async def create_workspace(
        self,
        db: AsyncSession,
        name: str,
    ) -> tuple[Organization, dict[str, Role]]:
        """새 조직과 기본 역할(owner/admin/member)을 생성합니다.

        Create an organization and its default roles.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            name: 워크스페이스 이름 (Workspace name)

        Returns:
            tuple: (생성된 조직, 역할 이름 → Role 맵)
                   (Created organization, role name → Role map)
        """
        organization: Organization = Organization(name=name)
        db.add(organization)
        await db.flush()

        roles: dict[str, Role] = {}
        for role_name, level in DEFAULT_ROLES:
            role: Role = Role(organization_id=organization.id, name=role_name, level=level)
            db.add(role)
            roles[role_name] = role
        await db.flush()
        return organization, roles


# 싱글턴 인스턴스 - Singleton instance
organization_repository: OrganizationRepository = OrganizationRepository()

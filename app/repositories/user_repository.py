"""사용자 레포지토리 (User Repository).

Users are always returned with their role loaded, since the API exposes
the role name next to every user.
"""

from uuid import UUID

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.user import User
from app.repositories.base import BaseRepository


def _with_role() -> Select:
    return select(User).options(selectinload(User.role))


class UserRepository(BaseRepository[User]):
    """사용자 조회."""

    def __init__(self) -> None:
        super().__init__(User)

    async def get_by_email(self, db: AsyncSession, email: str) -> User | None:
        """로그인 이메일로 조회, 대소문자 무시 (Case-insensitive email lookup)."""
        result = await db.execute(_with_role().where(func.lower(User.email) == email.lower()))
        return result.scalar_one_or_none()

    async def get_detail(
        self,
        db: AsyncSession,
        user_id: UUID,
        organization_id: UUID | None = None,
    ) -> User | None:
        result = await db.execute(self._scope(_with_role().where(User.id == user_id), organization_id))
        return result.scalar_one_or_none()

    async def get_by_org(
        self,
        db: AsyncSession,
        organization_id: UUID,
        search: str | None = None,
    ) -> list[User]:
        """조직의 활성 사용자, 이름순.

        Active members of the organization ordered by name. ``search``
        matches name or email, case-insensitively.
        """
        query: Select = _with_role().where(User.organization_id == organization_id, User.is_active.is_(True))
        if search:
            pattern: str = f"%{search}%"
            query = query.where(or_(User.name.ilike(pattern), User.email.ilike(pattern)))
        result = await db.execute(query.order_by(User.name))
        return list(result.scalars().all())


user_repository: UserRepository = UserRepository()

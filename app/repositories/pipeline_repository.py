"""파이프라인/뷰 레포지토리.

Pipeline and View repositories. Both keep a single default per object.
"""

from uuid import UUID

from sqlalchemy import Select, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.pipeline import Pipeline, View
from app.repositories.base import BaseRepository


class PipelineRepository(BaseRepository[Pipeline]):
    """파이프라인 레포지토리 (Pipeline repository)."""

    def __init__(self) -> None:
        super().__init__(Pipeline)

    async def get_by_object(
        self,
        db: AsyncSession,
        object_id: UUID,
        organization_id: UUID,
    ) -> list[Pipeline]:
        """오브젝트의 보관되지 않은 파이프라인 목록 (Default first, then by creation)."""
        query: Select = (
            select(Pipeline)
            .where(
                Pipeline.object_id == object_id,
                Pipeline.organization_id == organization_id,
                Pipeline.is_archived.is_(False),
            )
            .order_by(Pipeline.is_default.desc(), Pipeline.created_at)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_default(
        self,
        db: AsyncSession,
        object_id: UUID,
        organization_id: UUID,
    ) -> Pipeline | None:
        query: Select = (
            select(Pipeline)
            .where(
                Pipeline.object_id == object_id,
                Pipeline.organization_id == organization_id,
                Pipeline.is_default.is_(True),
                Pipeline.is_archived.is_(False),
            )
            .limit(1)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def clear_default(
        self,
        db: AsyncSession,
        object_id: UUID,
        exclude_id: UUID | None = None,
    ) -> None:
        """오브젝트의 기본 파이프라인 플래그를 해제합니다 (Unset other defaults)."""
        stmt = update(Pipeline).where(Pipeline.object_id == object_id, Pipeline.is_default.is_(True))
        if exclude_id is not None:
            stmt = stmt.where(Pipeline.id != exclude_id)
        await db.execute(stmt.values(is_default=False))
        await db.flush()


class ViewRepository(BaseRepository[View]):
    """저장된 뷰 레포지토리 (Saved view repository)."""

    def __init__(self) -> None:
        super().__init__(View)

    async def get_visible(
        self,
        db: AsyncSession,
        object_id: UUID,
        organization_id: UUID,
        user_id: UUID,
    ) -> list[View]:
        """본인 소유 또는 공유된 뷰 목록 (Own and shared views of an object)."""
        query: Select = (
            select(View)
            .where(
                View.object_id == object_id,
                View.organization_id == organization_id,
                or_(View.owner_id == user_id, View.is_shared.is_(True)),
            )
            .order_by(View.position, View.created_at)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def clear_default(
        self,
        db: AsyncSession,
        object_id: UUID,
        exclude_id: UUID | None = None,
    ) -> None:
        stmt = update(View).where(View.object_id == object_id, View.is_default.is_(True))
        if exclude_id is not None:
            stmt = stmt.where(View.id != exclude_id)
        await db.execute(stmt.values(is_default=False))
        await db.flush()


# 싱글턴 인스턴스 - Singleton instances
pipeline_repository: PipelineRepository = PipelineRepository()
view_repository: ViewRepository = ViewRepository()

"""활동 레포지토리 - 레코드 타임라인 쿼리.

Activity Repository - Timeline and filtered listing of activities.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.activity import Activity
from app.repositories.base import BaseRepository


class ActivityRepository(BaseRepository[Activity]):
    """활동 레포지토리 (Activity repository)."""

    def __init__(self) -> None:
        super().__init__(Activity)

    async def get_list(
        self,
        db: AsyncSession,
        organization_id: UUID,
        record_id: UUID | None = None,
        user_id: UUID | None = None,
        activity_type: str | None = None,
        page: int = 1,
        per_page: int = 50,
    ) -> tuple[Sequence[Activity], int]:
        """필터 조건으로 활동을 최신순 페이지네이션 조회합니다 (Newest first)."""
        query: Select = select(Activity).where(Activity.organization_id == organization_id)
        if record_id is not None:
            query = query.where(Activity.record_id == record_id)
        if user_id is not None:
            query = query.where(Activity.user_id == user_id)
        if activity_type is not None:
            query = query.where(Activity.type == activity_type)
        query = query.order_by(Activity.created_at.desc())
        return await self.get_paginated(db, query, page, per_page)

    async def get_timeline(
        self,
        db: AsyncSession,
        record_id: UUID,
        organization_id: UUID,
        limit: int = 50,
    ) -> list[Activity]:
        """레코드 타임라인 - 최신 활동 limit개 (Latest ``limit`` activities of a record)."""
        query: Select = (
            select(Activity)
            .where(Activity.record_id == record_id, Activity.organization_id == organization_id)
            .order_by(Activity.created_at.desc())
            .limit(limit)
        )
        result = await db.execute(query)
        return list(result.scalars().all())


# 싱글턴 인스턴스 - Singleton instance
activity_repository: ActivityRepository = ActivityRepository()

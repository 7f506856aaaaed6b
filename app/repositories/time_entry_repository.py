"""시간 기록 레포지토리 (Time entry repository)."""

from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.time_entry import TimeEntry
from app.repositories.base import BaseRepository


class TimeEntryRepository(BaseRepository[TimeEntry]):
    """시간 기록 레포지토리. 모든 조회는 사용자 범위 (All queries are user scoped)."""

    def __init__(self) -> None:
        super().__init__(TimeEntry)

    def _filtered(
        self,
        user_id: UUID,
        task_id: UUID | None = None,
        project_id: UUID | None = None,
        record_id: UUID | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> Select:
        query: Select = select(TimeEntry).where(TimeEntry.user_id == user_id)
        if task_id is not None:
            query = query.where(TimeEntry.task_id == task_id)
        if project_id is not None:
            query = query.where(TimeEntry.project_id == project_id)
        if record_id is not None:
            query = query.where(TimeEntry.record_id == record_id)
        if start is not None:
            query = query.where(TimeEntry.start_time >= start)
        if end is not None:
            query = query.where(TimeEntry.start_time <= end)
        return query

    async def get_list(
        self,
        db: AsyncSession,
        user_id: UUID,
        task_id: UUID | None = None,
        project_id: UUID | None = None,
        record_id: UUID | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        page: int = 1,
        per_page: int = 50,
    ) -> tuple[Sequence[TimeEntry], int]:
        """시간 기록 목록을 시작 시각 역순으로 조회합니다 (Newest start first)."""
        query: Select = self._filtered(user_id, task_id, project_id, record_id, start, end)
        query = query.order_by(TimeEntry.start_time.desc())
        return await self.get_paginated(db, query, page, per_page)

    async def get_for_stats(
        self,
        db: AsyncSession,
        user_id: UUID,
        project_id: UUID | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[TimeEntry]:
        query: Select = self._filtered(user_id, project_id=project_id, start=start, end=end)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_running(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> TimeEntry | None:
        """실행 중인 타이머 (end_time 없음) - The user's running timer."""
        query: Select = (
            select(TimeEntry)
            .where(TimeEntry.user_id == user_id, TimeEntry.end_time.is_(None))
            .order_by(TimeEntry.start_time.desc())
            .limit(1)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()


# 싱글턴 인스턴스 - Singleton instance
time_entry_repository: TimeEntryRepository = TimeEntryRepository()

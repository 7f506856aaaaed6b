"""시간 기록 서비스 - 수동 기록, 타이머, 통계.

Time Entry Service - Manual entries, start/stop timers and billing stats.
All operations are scoped to the calling user.
"""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.time_entry import TimeEntry
from app.repositories.time_entry_repository import time_entry_repository
from app.schemas.project import TimeEntryCreate, TimeEntryUpdate, TimerStart
from app.utils.exceptions import BadRequestError, NotFoundError
from app.utils.pagination import build_page


def elapsed_minutes(start: datetime, end: datetime) -> int:
    """경과 분 (반올림) - Whole minutes between two instants, rounded."""
    if start.tzinfo is None:
        start = start.replace(tzinfo=timezone.utc)
    if end.tzinfo is None:
        end = end.replace(tzinfo=timezone.utc)
    return max(0, round((end - start).total_seconds() / 60))


class TimeEntryService:
    """시간 기록 비즈니스 로직 (Time entry business logic)."""

    def to_dict(self, entry: TimeEntry) -> dict[str, Any]:
        return {
            "id": str(entry.id),
            "user_id": str(entry.user_id),
            "description": entry.description,
            "task_id": str(entry.task_id) if entry.task_id else None,
            "project_id": str(entry.project_id) if entry.project_id else None,
            "record_id": str(entry.record_id) if entry.record_id else None,
            "start_time": entry.start_time,
            "end_time": entry.end_time,
            "duration": entry.duration,
            "is_billable": entry.is_billable,
            "hourly_rate": entry.hourly_rate,
            "is_running": entry.end_time is None,
            "created_at": entry.created_at,
            "updated_at": entry.updated_at,
        }

    async def _get_own(self, db: AsyncSession, entry_id: UUID, user_id: UUID) -> TimeEntry:
        entry: TimeEntry | None = await time_entry_repository.get_by_id(db, entry_id)
        if entry is None or entry.user_id != user_id:
            raise NotFoundError("Time entry not found")
        return entry

    async def create_entry(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID,
        data: TimeEntryCreate,
    ) -> dict[str, Any]:
        """수동 기록 - duration 미지정 시 start/end 차이로 계산.

        Duration defaults to the rounded minutes between start and end.
        """
        values: dict[str, Any] = data.model_dump()
        if values["duration"] is None:
            values["duration"] = elapsed_minutes(data.start_time, data.end_time) if data.end_time else 0
        entry: TimeEntry = await time_entry_repository.create(
            db, {**values, "organization_id": organization_id, "user_id": user_id}
        )
        return self.to_dict(entry)

    async def list_entries(
        self,
        db: AsyncSession,
        user_id: UUID,
        task_id: UUID | None = None,
        project_id: UUID | None = None,
        record_id: UUID | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> dict[str, Any]:
        entries, total = await time_entry_repository.get_list(
            db, user_id, task_id, project_id, record_id, start, end, page, limit
        )
        return build_page([self.to_dict(entry) for entry in entries], total, page, limit)

    async def get_entry(self, db: AsyncSession, entry_id: UUID, user_id: UUID) -> dict[str, Any]:
        return self.to_dict(await self._get_own(db, entry_id, user_id))

    async def update_entry(
        self,
        db: AsyncSession,
        entry_id: UUID,
        user_id: UUID,
        data: TimeEntryUpdate,
    ) -> dict[str, Any]:
        entry: TimeEntry = await self._get_own(db, entry_id, user_id)
        changes: dict[str, Any] = data.model_dump(exclude_unset=True)
        for key, value in changes.items():
            if value is None and key in ("start_time", "duration", "is_billable"):
                continue
            setattr(entry, key, value)
        if "duration" not in changes and entry.end_time is not None and ("start_time" in changes or "end_time" in changes):
            entry.duration = elapsed_minutes(entry.start_time, entry.end_time)
        await db.flush()
        await db.refresh(entry)
        return self.to_dict(entry)

    async def delete_entry(self, db: AsyncSession, entry_id: UUID, user_id: UUID) -> None:
        entry: TimeEntry = await self._get_own(db, entry_id, user_id)
        await db.delete(entry)
        await db.flush()

    async def get_stats(
        self,
        db: AsyncSession,
        user_id: UUID,
        project_id: UUID | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> dict[str, Any]:
        """시간 통계.

        Returns:
            dict: total_minutes, total_hours (소수 2자리), billable_minutes,
                  billable_amount (Σ 분/60 × 시급, 소수 2자리), entries_count
        """
        entries: list[TimeEntry] = await time_entry_repository.get_for_stats(db, user_id, project_id, start, end)
        total_minutes: int = sum(entry.duration or 0 for entry in entries)
        billable: list[TimeEntry] = [entry for entry in entries if entry.is_billable]
        billable_minutes: int = sum(entry.duration or 0 for entry in billable)
        billable_amount: float = sum((entry.duration or 0) / 60 * (entry.hourly_rate or 0) for entry in billable)
        return {
            "total_minutes": total_minutes,
            "total_hours": round(total_minutes / 60, 2),
            "billable_minutes": billable_minutes,
            "billable_amount": round(billable_amount, 2),
            "entries_count": len(entries),
        }

    async def start_timer(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID,
        data: TimerStart,
    ) -> dict[str, Any]:
        """타이머 시작 - 실행 중인 타이머는 먼저 정지합니다.

        Stop the running timer (if any) and start a new one.
        """
        now: datetime = datetime.now(timezone.utc)
        running: TimeEntry | None = await time_entry_repository.get_running(db, user_id)
        if running is not None:
            running.end_time = now
            running.duration = elapsed_minutes(running.start_time, now)
            await db.flush()

        entry: TimeEntry = await time_entry_repository.create(
            db,
            {
                **data.model_dump(),
                "organization_id": organization_id,
                "user_id": user_id,
                "start_time": now,
                "end_time": None,
                "duration": 0,
            },
        )
        return self.to_dict(entry)

    async def stop_timer(self, db: AsyncSession, entry_id: UUID, user_id: UUID) -> dict[str, Any]:
        """타이머 정지.

        Raises:
            NotFoundError: 기록 없음
            BadRequestError: 이미 정지됨 (Timer already stopped)
        """
        entry: TimeEntry = await self._get_own(db, entry_id, user_id)
        if entry.end_time is not None:
            raise BadRequestError("Timer is already stopped")
        now: datetime = datetime.now(timezone.utc)
        entry.end_time = now
        entry.duration = elapsed_minutes(entry.start_time, now)
        await db.flush()
        await db.refresh(entry)
        return self.to_dict(entry)

    async def get_active(self, db: AsyncSession, user_id: UUID) -> dict[str, Any] | None:
        running: TimeEntry | None = await time_entry_repository.get_running(db, user_id)
        return self.to_dict(running) if running else None


# 싱글턴 인스턴스 - Singleton instance
time_entry_service: TimeEntryService = TimeEntryService()

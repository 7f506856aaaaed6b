"""시간 기록 라우터 - 수동 기록, 타이머, 통계 API.

Time Entry Router - The caller's own time entries and timers.
"""

from datetime import datetime
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.project import TimeEntryCreate, TimeEntryUpdate, TimerStart
from app.services.time_entry_service import time_entry_service

router: APIRouter = APIRouter()


@router.post("", status_code=201)
async def create_time_entry(
    data: TimeEntryCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    result: dict[str, Any] = await time_entry_service.create_entry(
        db, current_user.organization_id, current_user.id, data
    )
    await db.commit()
    return result


@router.get("")
async def list_time_entries(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    task_id: Annotated[UUID | None, Query()] = None,
    project_id: Annotated[UUID | None, Query()] = None,
    record_id: Annotated[UUID | None, Query()] = None,
    start: Annotated[datetime | None, Query()] = None,
    end: Annotated[datetime | None, Query()] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> dict[str, Any]:
    return await time_entry_service.list_entries(
        db, current_user.id, task_id, project_id, record_id, start, end, page, limit
    )


@router.get("/stats")
async def get_time_stats(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    project_id: Annotated[UUID | None, Query()] = None,
    start: Annotated[datetime | None, Query()] = None,
    end: Annotated[datetime | None, Query()] = None,
) -> dict[str, Any]:
    """기간별 시간/청구 통계 (Totals and billable amount)."""
    return await time_entry_service.get_stats(db, current_user.id, project_id, start, end)


@router.post("/start", status_code=201)
async def start_timer(
    data: TimerStart,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """타이머 시작 - 실행 중인 타이머는 먼저 정지됩니다."""
    result: dict[str, Any] = await time_entry_service.start_timer(
        db, current_user.organization_id, current_user.id, data
    )
    await db.commit()
    return result


@router.get("/active")
async def get_active_timer(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any] | None:
    return await time_entry_service.get_active(db, current_user.id)


@router.get("/{entry_id}")
async def get_time_entry(
    entry_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    return await time_entry_service.get_entry(db, entry_id, current_user.id)


@router.patch("/{entry_id}")
async def update_time_entry(
    entry_id: UUID,
    data: TimeEntryUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    result: dict[str, Any] = await time_entry_service.update_entry(db, entry_id, current_user.id, data)
    await db.commit()
    return result


@router.post("/{entry_id}/stop")
async def stop_timer(
    entry_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """타이머 정지.

    Raises:
        BadRequestError: 이미 정지됨 (400)
    """
    result: dict[str, Any] = await time_entry_service.stop_timer(db, entry_id, current_user.id)
    await db.commit()
    return result


@router.delete("/{entry_id}", status_code=204)
async def delete_time_entry(
    entry_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> None:
    await time_entry_service.delete_entry(db, entry_id, current_user.id)
    await db.commit()

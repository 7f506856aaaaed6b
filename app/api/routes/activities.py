"""활동 라우터 - 레코드 타임라인 활동 API.

Activity Router - Manual activities (notes, calls, meetings) and the
per-record timeline.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.crm import ActivityCreate
from app.services.activity_service import activity_service

router: APIRouter = APIRouter()


@router.post("", status_code=201)
async def create_activity(
    data: ActivityCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    result: dict[str, Any] = await activity_service.create_activity(
        db, current_user.organization_id, current_user.id, data
    )
    await db.commit()
    return result


@router.get("")
async def list_activities(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    record_id: Annotated[UUID | None, Query()] = None,
    user_id: Annotated[UUID | None, Query()] = None,
    type: Annotated[str | None, Query()] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
) -> dict[str, Any]:
    """활동 목록 - 최신순 (Newest first)."""
    return await activity_service.list_activities(
        db, current_user.organization_id, record_id, user_id, type, page, limit
    )


@router.get("/record/{record_id}/timeline")
async def get_record_timeline(
    record_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> list[dict[str, Any]]:
    return await activity_service.get_timeline(db, record_id, current_user.organization_id, limit)

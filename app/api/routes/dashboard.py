"""대시보드 라우터 - 홈 화면 통계 API.

Dashboard Router - Totals, recent activities and the caller's upcoming
tasks.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.user import User
from app.services.dashboard_service import dashboard_service

router: APIRouter = APIRouter()


@router.get("/stats")
async def get_dashboard_stats(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """대시보드 통계를 조회합니다.

    Contacts and companies totals with 30-day change, deals total, value
    and change, and task completion counts.

    Args:
        db: 비동기 데이터베이스 세션 (Async database session)
        current_user: 인증된 사용자 (Authenticated user)

    Returns:
        dict: 대시보드 통계 (Dashboard statistics)
    """
    return await dashboard_service.get_stats(db, current_user.organization_id)


@router.get("/activities")
async def get_recent_activities(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
) -> list[dict[str, Any]]:
    return await dashboard_service.get_recent_activities(db, current_user.organization_id, limit)


@router.get("/upcoming-tasks")
async def get_upcoming_tasks(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
) -> list[dict[str, Any]]:
    return await dashboard_service.get_upcoming_tasks(db, current_user.organization_id, current_user.id, limit)

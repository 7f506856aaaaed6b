"""알림 라우터 - 폴링 기반 인앱 알림 API.

Notification Router - In-app notifications for the caller, polled by the
client.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.user import User
from app.services.notification_service import notification_service

router: APIRouter = APIRouter()


@router.get("")
async def list_notifications(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    unread_only: Annotated[bool, Query()] = False,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> list[dict[str, Any]]:
    """내 알림 목록 - 최신순 (Newest first)."""
    return await notification_service.list_notifications(db, current_user.id, unread_only, limit)


@router.get("/unread-count")
async def get_unread_count(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, int]:
    count: int = await notification_service.get_unread_count(db, current_user.id)
    return {"count": count}


@router.post("/read-all")
async def mark_all_read(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, int]:
    """모든 알림 읽음 처리 - 변경된 개수 반환 (Returns the number marked)."""
    count: int = await notification_service.mark_all_read(db, current_user.id)
    await db.commit()
    return {"count": count}


@router.post("/{notification_id}/read")
async def mark_read(
    notification_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    result: dict[str, Any] = await notification_service.mark_read(db, notification_id, current_user.id)
    await db.commit()
    return result


@router.delete("", status_code=204)
async def clear_notifications(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> None:
    await notification_service.clear_all(db, current_user.id)
    await db.commit()


@router.delete("/{notification_id}", status_code=204)
async def delete_notification(
    notification_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> None:
    await notification_service.delete(db, notification_id, current_user.id)
    await db.commit()

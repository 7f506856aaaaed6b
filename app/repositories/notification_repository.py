"""알림 레포지토리 (Notification Repository).

Notifications belong to one recipient; every query here is keyed by
``user_id`` so a user can never read or clear someone else's inbox.
"""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import Select, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import Notification
from app.repositories.base import BaseRepository


def _inbox(user_id: UUID, unread_only: bool = False) -> list[Any]:
    """수신자(+미읽음) 조건 (Recipient and optional unread conditions)."""
    conditions: list[Any] = [Notification.user_id == user_id]
    if unread_only:
        conditions.append(Notification.is_read.is_(False))
    return conditions


class NotificationRepository(BaseRepository[Notification]):
    """수신자 기준 알림 조회/읽음/삭제."""

    def __init__(self) -> None:
        super().__init__(Notification)

    async def get_user_notifications(
        self,
        db: AsyncSession,
        user_id: UUID,
        unread_only: bool = False,
        limit: int = 50,
    ) -> list[Notification]:
        """최신순 알림 (Newest first, at most ``limit``)."""
        query: Select = (
            select(Notification)
            .where(*_inbox(user_id, unread_only))
            .order_by(Notification.created_at.desc())
            .limit(limit)
        )
        return list((await db.execute(query)).scalars().all())

    async def get_unread_count(self, db: AsyncSession, user_id: UUID) -> int:
        query: Select = select(func.count(Notification.id)).where(*_inbox(user_id, unread_only=True))
        return (await db.execute(query)).scalar() or 0

    async def mark_read(
        self,
        db: AsyncSession,
        notification_id: UUID,
        user_id: UUID,
    ) -> Notification | None:
        """읽음 처리. 다른 사람의 알림이면 None (None when the recipient differs).

        ``read_at`` keeps the first read time on repeated calls.
        """
        notification: Notification | None = await self.get_by_id(db, notification_id)
        if notification is None or notification.user_id != user_id:
            return None
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.now(timezone.utc)
            await db.flush()
        return notification

    async def mark_all_read(self, db: AsyncSession, user_id: UUID) -> int:
        """미읽음 전체를 읽음으로, 변경된 개수 반환 (Returns how many changed)."""
        stmt = (
            update(Notification)
            .where(*_inbox(user_id, unread_only=True))
            .values(is_read=True, read_at=datetime.now(timezone.utc))
        )
        result = await db.execute(stmt)
        await db.flush()
        return result.rowcount

    async def delete_for_user(self, db: AsyncSession, notification_id: UUID, user_id: UUID) -> bool:
        result = await db.execute(delete(Notification).where(Notification.id == notification_id, *_inbox(user_id)))
        await db.flush()
        return result.rowcount > 0

    async def clear_all(self, db: AsyncSession, user_id: UUID) -> int:
        result = await db.execute(delete(Notification).where(*_inbox(user_id)))
        await db.flush()
        return result.rowcount


notification_repository: NotificationRepository = NotificationRepository()

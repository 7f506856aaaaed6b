"""알림 서비스 - 알림 비즈니스 로직.

Notification Service - Business logic for notification management.
Handles listing, read/unread operations and the helpers that create
notifications for records, task assignment, due dates, status changes
and comment mentions.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import Notification
from app.repositories.notification_repository import notification_repository
from app.utils.exceptions import NotFoundError

# 업무 상태 표시 이름 (Display labels for task statuses)
TASK_STATUS_LABELS: dict[str, str] = {
    "TODO": "To Do",
    "IN_PROGRESS": "In Progress",
    "IN_REVIEW": "In Review",
    "BLOCKED": "Blocked",
    "DONE": "Done",
    "CANCELLED": "Cancelled",
}


class NotificationService:
    """알림 서비스.

    Notification service providing shared read/unread operations
    and auto-creation for records, tasks and comments.
    """

    def to_dict(self, notification: Notification) -> dict[str, Any]:
        return {
            "id": str(notification.id),
            "user_id": str(notification.user_id),
            "type": notification.type,
            "title": notification.title,
            "message": notification.message,
            "data": notification.data or {},
            "is_read": notification.is_read,
            "read_at": notification.read_at,
            "created_at": notification.created_at,
        }

    # --- 공통 조회/읽음 처리 (Shared read/unread operations) ---

    async def list_notifications(
        self,
        db: AsyncSession,
        user_id: UUID,
        unread_only: bool = False,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        """사용자의 알림 목록을 최신순으로 조회합니다.

        List the latest notifications for a user.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            user_id: 사용자 UUID (User UUID)
            unread_only: 읽지 않은 알림만 (Only unread notifications)
            limit: 최대 개수 (Maximum number of items)

        Returns:
            list[dict]: 알림 목록 (List of notifications)
        """
        notifications: list[Notification] = await notification_repository.get_user_notifications(
            db, user_id, unread_only, limit
        )
        return [self.to_dict(notification) for notification in notifications]

    async def get_unread_count(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> int:
        """사용자의 읽지 않은 알림 수를 조회합니다.

        Get the count of unread notifications for a user.
        """
        return await notification_repository.get_unread_count(db, user_id)

    async def mark_read(
        self,
        db: AsyncSession,
        notification_id: UUID,
        user_id: UUID,
    ) -> dict[str, Any]:
        """단일 알림을 읽음 처리합니다.

        Mark a single notification as read.

        Raises:
            NotFoundError: 본인 알림이 아닐 때 (Notification not found)
        """
        notification: Notification | None = await notification_repository.mark_read(db, notification_id, user_id)
        if notification is None:
            raise NotFoundError("Notification not found")
        return self.to_dict(notification)

    async def mark_all_read(
        self,
        db: AsyncSession,
        user_id: UUID,
    ) -> int:
        """사용자의 모든 읽지 않은 알림을 읽음 처리합니다.

        Mark all unread notifications as read for a user.

        Returns:
            int: 읽음 처리된 알림 수 (Count of notifications marked as read)
        """
        return await notification_repository.mark_all_read(db, user_id)

    async def delete(
        self,
        db: AsyncSession,
        notification_id: UUID,
        user_id: UUID,
    ) -> None:
        if not await notification_repository.delete_for_user(db, notification_id, user_id):
            raise NotFoundError("Notification not found")

    async def clear_all(self, db: AsyncSession, user_id: UUID) -> int:
        return await notification_repository.clear_all(db, user_id)

    # --- 자동 생성 (Auto-creation) ---

    async def create(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID,
        notification_type: str,
        title: str,
        message: str,
        data: dict[str, Any] | None = None,
    ) -> Notification:
        return await notification_repository.create(
            db,
            {
                "organization_id": organization_id,
                "user_id": user_id,
                "type": notification_type,
                "title": title,
                "message": message,
                "data": data or {},
            },
        )

    async def notify_record_created(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID,
        record_id: UUID,
        object_display_name: str,
        record_name: str,
    ) -> Notification:
        """레코드 생성 알림 (New record notification)."""
        return await self.create(
            db,
            organization_id,
            user_id,
            "RECORD_CREATED",
            f"New {object_display_name}",
            f'"{record_name}" was created',
            {"record_id": str(record_id)},
        )

    async def notify_task_assigned(
        self,
        db: AsyncSession,
        organization_id: UUID,
        assignee_id: UUID,
        task_id: UUID,
        task_title: str,
        assigner_name: str,
    ) -> Notification:
        """업무 배정 알림 (Task assigned to you)."""
        return await self.create(
            db,
            organization_id,
            assignee_id,
            "TASK_ASSIGNED",
            "Task assigned to you",
            f'{assigner_name} assigned you "{task_title}"',
            {"task_id": str(task_id)},
        )

    async def notify_task_due_soon(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID,
        task_id: UUID,
        task_title: str,
        due_date: datetime,
    ) -> Notification:
        """마감 임박 알림 (Task due within the next day)."""
        return await self.create(
            db,
            organization_id,
            user_id,
            "TASK_DUE_SOON",
            "Task due soon",
            f'"{task_title}" is due {due_date:%Y-%m-%d %H:%M}',
            {"task_id": str(task_id), "due_date": due_date.isoformat()},
        )

    async def notify_task_status_changed(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_ids: list[UUID],
        task_id: UUID,
        task_title: str,
        new_status: str,
    ) -> list[Notification]:
        """업무 상태 변경 알림 - 대상자 각각에게 생성.

        Notify each user that a task moved to another status.
        """
        label: str = TASK_STATUS_LABELS.get(new_status, new_status)
        notifications: list[Notification] = []
        for uid in user_ids:
            notification: Notification = await self.create(
                db,
                organization_id,
                uid,
                "TASK_STATUS_CHANGED",
                "Task status changed",
                f'"{task_title}" was moved to {label}',
                {"task_id": str(task_id), "status": new_status},
            )
            notifications.append(notification)
        return notifications

    async def notify_mention(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID,
        author_name: str,
        comment_id: UUID,
        target: dict[str, str],
    ) -> Notification:
        """코멘트 멘션 알림 (You were mentioned in a comment)."""
        return await self.create(
            db,
            organization_id,
            user_id,
            "MENTION",
            "You were mentioned",
            f"{author_name} mentioned you in a comment",
            {"comment_id": str(comment_id), **target},
        )


# 싱글턴 인스턴스 - Singleton instance
notification_service: NotificationService = NotificationService()

"""활동 서비스 - 레코드 타임라인.

Activity Service - Manual activities (notes, calls, meetings) and the
automatic entries written by record, comment and file operations.
"""

from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.activity import Activity
from app.repositories.activity_repository import activity_repository
from app.repositories.record_repository import record_repository
from app.schemas.crm import ActivityCreate
from app.utils.exceptions import NotFoundError
from app.utils.pagination import build_page


class ActivityService:
    """활동 타임라인 서비스 (Activity timeline service)."""

    def to_dict(self, activity: Activity) -> dict[str, Any]:
        return {
            "id": str(activity.id),
            "record_id": str(activity.record_id) if activity.record_id else None,
            "user_id": str(activity.user_id) if activity.user_id else None,
            "type": activity.type,
            "title": activity.title,
            "description": activity.description,
            "metadata": activity.meta or {},
            "created_at": activity.created_at,
        }

    async def log(
        self,
        db: AsyncSession,
        organization_id: UUID,
        record_id: UUID | None,
        user_id: UUID | None,
        activity_type: str,
        title: str,
        description: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Activity:
        """활동 한 건을 기록합니다 (Write one timeline entry)."""
        return await activity_repository.create(
            db,
            {
                "organization_id": organization_id,
                "record_id": record_id,
                "user_id": user_id,
                "type": activity_type,
                "title": title,
                "description": description,
                "meta": metadata or {},
            },
        )

    async def create_activity(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID,
        data: ActivityCreate,
    ) -> dict[str, Any]:
        """수동 활동 생성 (Create a manual activity).

        Raises:
            NotFoundError: 레코드가 없을 때 (Record not found)
        """
        if data.record_id is not None:
            if await record_repository.get_by_id(db, data.record_id, organization_id) is None:
                raise NotFoundError("Record not found")
        activity: Activity = await self.log(
            db,
            organization_id,
            data.record_id,
            user_id,
            data.type,
            data.title,
            data.description,
            data.metadata,
        )
        return self.to_dict(activity)

    async def list_activities(
        self,
        db: AsyncSession,
        organization_id: UUID,
        record_id: UUID | None = None,
        user_id: UUID | None = None,
        activity_type: str | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> dict[str, Any]:
        activities, total = await activity_repository.get_list(
            db, organization_id, record_id, user_id, activity_type, page, limit
        )
        return build_page([self.to_dict(activity) for activity in activities], total, page, limit)

    async def get_timeline(
        self,
        db: AsyncSession,
        record_id: UUID,
        organization_id: UUID,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        activities: list[Activity] = await activity_repository.get_timeline(db, record_id, organization_id, limit)
        return [self.to_dict(activity) for activity in activities]


# 싱글턴 인스턴스 - Singleton instance
activity_service: ActivityService = ActivityService()

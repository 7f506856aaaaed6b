"""대시보드 서비스 - 대시보드 집계 비즈니스 로직.

Dashboard Service - Aggregation logic for the CRM dashboard.
Provides record totals with 30-day change, deal value, task counts,
recent activities and the caller's upcoming tasks.
"""

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.activity import Activity
from app.models.crm import CrmObject, Record
from app.models.task import Task
from app.services.activity_service import activity_service
from app.services.task_service import task_service

DASHBOARD_OBJECTS: tuple[str, ...] = ("contacts", "companies", "deals")


def calc_change(current: int, previous: int) -> int:
    """직전 30일 대비 변화율(%) - 이전이 0이면 현재가 있을 때 100."""
    if previous == 0:
        return 100 if current > 0 else 0
    return round((current - previous) / previous * 100)


class DashboardService:
    """대시보드 서비스.

    Dashboard aggregation service.
    """

    async def _record_counts(
        self,
        db: AsyncSession,
        object_id: UUID | None,
        now: datetime,
    ) -> tuple[int, int, int]:
        """(전체, 최근 30일, 그 이전 30일) 레코드 수."""
        if object_id is None:
            return 0, 0, 0
        last_30 = now - timedelta(days=30)
        last_60 = now - timedelta(days=60)
        query = select(
            func.count(Record.id).label("total"),
            func.sum(case((Record.created_at >= last_30, 1), else_=0)).label("recent"),
            func.sum(
                case(((Record.created_at >= last_60) & (Record.created_at < last_30), 1), else_=0)
            ).label("previous"),
        ).where(Record.object_id == object_id, Record.is_archived.is_(False))
        row = (await db.execute(query)).one()
        return row.total or 0, row.recent or 0, row.previous or 0

    async def get_stats(self, db: AsyncSession, organization_id: UUID) -> dict[str, Any]:
        """대시보드 통계 집계."""
        now = datetime.now(timezone.utc)
        result = await db.execute(
            select(CrmObject.name, CrmObject.id).where(
                CrmObject.organization_id == organization_id,
                CrmObject.name.in_(DASHBOARD_OBJECTS),
            )
        )
        object_ids: dict[str, UUID] = {row.name: row.id for row in result.all()}

        contacts = await self._record_counts(db, object_ids.get("contacts"), now)
        companies = await self._record_counts(db, object_ids.get("companies"), now)
        deals = await self._record_counts(db, object_ids.get("deals"), now)

        deals_value: float = 0
        if "deals" in object_ids:
            deal_rows = await db.execute(
                select(Record.data).where(Record.object_id == object_ids["deals"], Record.is_archived.is_(False))
            )
            for (data,) in deal_rows.all():
                value = (data or {}).get("value")
                if isinstance(value, (int, float)) and not isinstance(value, bool):
                    deals_value += value

        task_row = (
            await db.execute(
                select(
                    func.count(Task.id).label("total"),
                    func.sum(case((Task.status == "DONE", 1), else_=0)).label("completed"),
                    func.sum(
                        case(((Task.status != "DONE") & (Task.due_date <= now), 1), else_=0)
                    ).label("overdue"),
                ).where(Task.organization_id == organization_id, Task.is_archived.is_(False))
            )
        ).one()

        return {
            "contacts": {"total": contacts[0], "change": calc_change(contacts[1], contacts[2])},
            "companies": {"total": companies[0], "change": calc_change(companies[1], companies[2])},
            "deals": {"total": deals[0], "value": deals_value, "change": calc_change(deals[1], deals[2])},
            "tasks": {
                "total": task_row.total or 0,
                "completed": task_row.completed or 0,
                "overdue": task_row.overdue or 0,
            },
        }

    async def get_recent_activities(
        self,
        db: AsyncSession,
        organization_id: UUID,
        limit: int = 10,
    ) -> list[dict[str, Any]]:
        result = await db.execute(
            select(Activity)
            .where(Activity.organization_id == organization_id)
            .order_by(Activity.created_at.desc())
            .limit(limit)
        )
        return [activity_service.to_dict(activity) for activity in result.scalars().all()]

    async def get_upcoming_tasks(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID,
        limit: int = 10,
    ) -> list[dict[str, Any]]:
        return await task_service.get_upcoming(db, organization_id, user_id, limit)


dashboard_service: DashboardService = DashboardService()

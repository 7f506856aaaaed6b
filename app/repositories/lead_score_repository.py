"""리드 점수 레포지토리 - 레코드별 점수, 등급별 조회, 분포.

Lead Score Repository - Score per record, top records of a grade and the
grade distribution of an object. Archived records are left out.
"""

from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.crm import Record
from app.models.lead_score import LeadScore
from app.repositories.base import BaseRepository


class LeadScoreRepository(BaseRepository[LeadScore]):
    """리드 점수 레포지토리 (Lead score repository)."""

    def __init__(self) -> None:
        super().__init__(LeadScore)

    def _for_object(self, query: Select, object_id: UUID, organization_id: UUID) -> Select:
        return query.join(Record, Record.id == LeadScore.record_id).where(
            Record.object_id == object_id,
            Record.organization_id == organization_id,
            Record.is_archived.is_(False),
        )

    async def get_by_record(self, db: AsyncSession, record_id: UUID) -> LeadScore | None:
        result = await db.execute(select(LeadScore).where(LeadScore.record_id == record_id))
        return result.scalar_one_or_none()

    async def get_by_grade(
        self,
        db: AsyncSession,
        object_id: UUID,
        organization_id: UUID,
        grade: str,
        limit: int = 50,
    ) -> list[LeadScore]:
        """등급별 최고 점수순 (Highest scores of one grade first)."""
        query: Select = self._for_object(select(LeadScore), object_id, organization_id)
        query = query.where(LeadScore.grade == grade).order_by(LeadScore.total_score.desc()).limit(limit)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def count_by_grade(self, db: AsyncSession, object_id: UUID, organization_id: UUID) -> dict[str, int]:
        query: Select = self._for_object(
            select(LeadScore.grade, func.count(LeadScore.id)), object_id, organization_id
        ).group_by(LeadScore.grade)
        result = await db.execute(query)
        return {grade: int(count) for grade, count in result.all()}


# 싱글턴 인스턴스 - Singleton instance
lead_score_repository: LeadScoreRepository = LeadScoreRepository()

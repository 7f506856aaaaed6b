"""이메일 템플릿/로그 레포지토리.

Email template and email log repositories.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.email import EmailLog, EmailTemplate
from app.repositories.base import BaseRepository


class EmailTemplateRepository(BaseRepository[EmailTemplate]):
    """이메일 템플릿 레포지토리."""

    def __init__(self) -> None:
        super().__init__(EmailTemplate)

    async def get_visible(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID,
        include_shared: bool = True,
        category: str | None = None,
        search: str | None = None,
    ) -> list[EmailTemplate]:
        """본인 템플릿과 (선택적으로) 공유 템플릿을 이름 순으로 조회합니다.

        Own templates plus shared ones unless ``include_shared`` is False.
        """
        owner_clause = EmailTemplate.owner_id == user_id
        if include_shared:
            owner_clause = or_(owner_clause, EmailTemplate.is_shared.is_(True))
        query: Select = select(EmailTemplate).where(
            EmailTemplate.organization_id == organization_id,
            owner_clause,
        )
        if category is not None:
            query = query.where(EmailTemplate.category == category)
        if search:
            pattern: str = f"%{search}%"
            query = query.where(or_(EmailTemplate.name.ilike(pattern), EmailTemplate.subject.ilike(pattern)))
        query = query.order_by(EmailTemplate.name)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_categories(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID,
    ) -> list[str]:
        """사용 중인 카테고리 목록 (Distinct categories of visible templates)."""
        query: Select = (
            select(EmailTemplate.category)
            .where(
                EmailTemplate.organization_id == organization_id,
                or_(EmailTemplate.owner_id == user_id, EmailTemplate.is_shared.is_(True)),
                EmailTemplate.category.is_not(None),
            )
            .distinct()
            .order_by(EmailTemplate.category)
        )
        result = await db.execute(query)
        return [row for row in result.scalars().all() if row]


class EmailLogRepository(BaseRepository[EmailLog]):
    """이메일 발송 로그 레포지토리 (Sender-scoped delivery log)."""

    def __init__(self) -> None:
        super().__init__(EmailLog)

    async def get_list(
        self,
        db: AsyncSession,
        sender_id: UUID,
        status: str | None = None,
        record_id: UUID | None = None,
        template_id: UUID | None = None,
        page: int = 1,
        per_page: int = 50,
    ) -> tuple[Sequence[EmailLog], int]:
        query: Select = select(EmailLog).where(EmailLog.sender_id == sender_id)
        if status is not None:
            query = query.where(EmailLog.status == status)
        if record_id is not None:
            query = query.where(EmailLog.record_id == record_id)
        if template_id is not None:
            query = query.where(EmailLog.template_id == template_id)
        query = query.order_by(EmailLog.created_at.desc())
        return await self.get_paginated(db, query, page, per_page)

    async def count_by_status(
        self,
        db: AsyncSession,
        sender_id: UUID,
    ) -> dict[str, int]:
        """상태별 발송 건수 (Counts per status for a sender)."""
        rows = await db.execute(
            select(EmailLog.status, func.count())
            .where(EmailLog.sender_id == sender_id)
            .group_by(EmailLog.status)
        )
        return {row[0]: row[1] for row in rows.all()}


# 싱글턴 인스턴스 - Singleton instances
email_template_repository: EmailTemplateRepository = EmailTemplateRepository()
email_log_repository: EmailLogRepository = EmailLogRepository()

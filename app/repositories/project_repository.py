"""프로젝트 레포지토리 - 프로젝트, 멤버, 진행률 쿼리.

Project Repository - Visibility-scoped listing, membership and task
progress aggregation.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, String, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.project import Project, ProjectMember
from app.models.task import Task
from app.repositories.base import BaseRepository


class ProjectRepository(BaseRepository[Project]):
    """프로젝트 레포지토리.

    Extends:
        BaseRepository[Project]
    """

    def __init__(self) -> None:
        super().__init__(Project)

    async def get_list(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID,
        status: str | None = None,
        include_archived: bool = False,
        search: str | None = None,
        page: int = 1,
        per_page: int = 50,
    ) -> tuple[Sequence[Project], int]:
        """사용자가 볼 수 있는 프로젝트 목록을 조회합니다.

        Projects where the user is owner, listed in ``team_ids`` or a member.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            organization_id: 조직 ID (Organization UUID)
            user_id: 요청 사용자 ID (Caller UUID)
            status: 상태 필터 (Status filter)
            include_archived: 보관 포함 여부 (Include archived projects)
            search: 이름 검색어 (Name search)
            page: 페이지 번호 (Page number)
            per_page: 페이지 크기 (Page size)

        Returns:
            tuple[Sequence[Project], int]: (프로젝트 목록, 전체 개수)
        """
        member_projects = select(ProjectMember.project_id).where(ProjectMember.user_id == user_id)
        query: Select = select(Project).where(
            Project.organization_id == organization_id,
            or_(
                Project.owner_id == user_id,
                cast(Project.team_ids, String).like(f'%"{user_id}"%'),
                Project.id.in_(member_projects),
            ),
        )
        if status is not None:
            query = query.where(Project.status == status)
        if not include_archived:
            query = query.where(Project.is_archived.is_(False))
        if search:
            query = query.where(Project.name.ilike(f"%{search}%"))
        query = query.order_by(Project.updated_at.desc())
        return await self.get_paginated(db, query, page, per_page)

    async def get_members(
        self,
        db: AsyncSession,
        project_id: UUID,
    ) -> list[ProjectMember]:
        query: Select = (
            select(ProjectMember)
            .where(ProjectMember.project_id == project_id)
            .order_by(ProjectMember.joined_at)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_member(
        self,
        db: AsyncSession,
        project_id: UUID,
        user_id: UUID,
    ) -> ProjectMember | None:
        query: Select = select(ProjectMember).where(
            ProjectMember.project_id == project_id,
            ProjectMember.user_id == user_id,
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_task_counts(
        self,
        db: AsyncSession,
        project_id: UUID,
    ) -> dict[str, int]:
        """프로젝트의 상태별 업무 수 (Non-archived task counts per status)."""
        rows = await db.execute(
            select(Task.status, func.count())
            .where(Task.project_id == project_id, Task.is_archived.is_(False))
            .group_by(Task.status)
        )
        return {row[0]: row[1] for row in rows.all()}


# 싱글턴 인스턴스 - Singleton instance
project_repository: ProjectRepository = ProjectRepository()

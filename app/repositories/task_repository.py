"""업무 레포지토리 - 업무, 체크리스트, 의존 관계 쿼리.

Task Repository - Visibility-scoped listing, kanban positioning,
subtask checks, calendar ranges, checklist items and dependencies.
"""

from datetime import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy import ColumnElement, Select, and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.project import Project
from app.models.task import ChecklistItem, Task, TaskDependency
from app.repositories.base import BaseRepository


class TaskRepository(BaseRepository[Task]):
    """업무 테이블 레포지토리.

    Extends:
        BaseRepository[Task]
    """

    def __init__(self) -> None:
        super().__init__(Task)

    def visible_to(self, user_id: UUID) -> ColumnElement[bool]:
        """사용자에게 보이는 업무 조건 - 생성자, 담당자, 또는 본인 프로젝트의 업무.

        Filter clause: created by, assigned to, or in a project owned by the user.
        """
        owned_projects = select(Project.id).where(Project.owner_id == user_id)
        return or_(
            Task.created_by == user_id,
            Task.assignee_id == user_id,
            Task.project_id.in_(owned_projects),
        )

    async def get_list(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID,
        project_id: UUID | None = None,
        assignee_id: UUID | None = None,
        status: str | None = None,
        priority: str | None = None,
        record_id: UUID | None = None,
        parent_id: UUID | None = None,
        include_archived: bool = False,
        include_subtasks: bool = False,
        search: str | None = None,
        page: int = 1,
        per_page: int = 100,
    ) -> tuple[Sequence[Task], int]:
        """업무 목록을 position, 최신순으로 페이지네이션 조회합니다.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            organization_id: 조직 ID (Organization UUID)
            user_id: 요청 사용자 (Caller UUID, drives visibility)
            project_id: 프로젝트 필터 (Project filter)
            assignee_id: 담당자 필터 (Assignee filter)
            status: 상태 필터 (Status filter)
            priority: 우선순위 필터 (Priority filter)
            record_id: 연결 레코드 필터 (Linked record filter)
            parent_id: 상위 업무 필터 (Parent filter; implies subtasks)
            include_archived: 보관 포함 (Include archived tasks)
            include_subtasks: 하위 업무 포함 (Include subtasks when no parent filter)
            search: 제목 검색 (Title search)
            page: 페이지 번호 (Page number)
            per_page: 페이지 크기 (Page size)

        Returns:
            tuple[Sequence[Task], int]: (업무 목록, 전체 개수)
        """
        query: Select = select(Task).where(
            Task.organization_id == organization_id,
            self.visible_to(user_id),
        )
        if project_id is not None:
            query = query.where(Task.project_id == project_id)
        if assignee_id is not None:
            query = query.where(Task.assignee_id == assignee_id)
        if status is not None:
            query = query.where(Task.status == status)
        if priority is not None:
            query = query.where(Task.priority == priority)
        if record_id is not None:
            query = query.where(Task.record_id == record_id)
        if parent_id is not None:
            query = query.where(Task.parent_id == parent_id)
        elif not include_subtasks:
            query = query.where(Task.parent_id.is_(None))
        if not include_archived:
            query = query.where(Task.is_archived.is_(False))
        if search:
            query = query.where(Task.title.ilike(f"%{search}%"))
        query = query.order_by(Task.position, Task.created_at.desc())
        return await self.get_paginated(db, query, page, per_page)

    async def get_max_column_position(
        self,
        db: AsyncSession,
        project_id: UUID | None,
        status: str,
    ) -> int:
        """(project, status) 칸반 컬럼 내 최대 position (-1 when empty)."""
        return await self.get_max_position(db, {"project_id": project_id, "status": status})

    async def shift_positions(
        self,
        db: AsyncSession,
        project_id: UUID | None,
        status: str,
        from_position: int,
        exclude_id: UUID,
    ) -> None:
        """position ≥ from_position 인 형제 업무를 한 칸씩 뒤로 밉니다.

        Shift sibling tasks at or after ``from_position`` by +1.
        """
        project_clause = Task.project_id.is_(None) if project_id is None else Task.project_id == project_id
        await db.execute(
            update(Task)
            .where(
                project_clause,
                Task.status == status,
                Task.position >= from_position,
                Task.id != exclude_id,
            )
            .values(position=Task.position + 1)
        )
        await db.flush()

    async def get_open_subtasks(
        self,
        db: AsyncSession,
        parent_id: UUID,
    ) -> list[Task]:
        """완료되지 않은 활성 하위 업무 (Non-archived subtasks not in DONE)."""
        query: Select = select(Task).where(
            Task.parent_id == parent_id,
            Task.is_archived.is_(False),
            Task.status != "DONE",
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_subtasks(self, db: AsyncSession, parent_id: UUID) -> list[Task]:
        query: Select = (
            select(Task)
            .where(Task.parent_id == parent_id, Task.is_archived.is_(False))
            .order_by(Task.position, Task.created_at)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_project_tasks(self, db: AsyncSession, project_id: UUID) -> list[Task]:
        """프로젝트의 보관되지 않은 업무 (Non-archived tasks of a project)."""
        query: Select = select(Task).where(
            Task.project_id == project_id,
            Task.is_archived.is_(False),
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def count_for_record(self, db: AsyncSession, record_id: UUID) -> int:
        """레코드에 연결된 업무 수 (Tasks linked to a record)."""
        query: Select = select(func.count()).select_from(Task).where(Task.record_id == record_id)
        return int((await db.execute(query)).scalar_one())

    async def get_calendar(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID,
        start: datetime,
        end: datetime,
        project_id: UUID | None = None,
    ) -> list[Task]:
        """기간과 겹치는 업무를 조회합니다.

        Tasks whose start or due date lies in ``[start, end]`` or which span it.
        """
        in_range = or_(
            and_(Task.start_date >= start, Task.start_date <= end),
            and_(Task.due_date >= start, Task.due_date <= end),
            and_(Task.start_date <= start, Task.due_date >= end),
        )
        query: Select = select(Task).where(
            Task.organization_id == organization_id,
            Task.is_archived.is_(False),
            self.visible_to(user_id),
            in_range,
        )
        if project_id is not None:
            query = query.where(Task.project_id == project_id)
        query = query.order_by(Task.start_date, Task.due_date)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_upcoming(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID,
        limit: int = 10,
    ) -> list[Task]:
        """사용자의 미완료 업무를 마감일 순으로 (Open tasks for the user by due date)."""
        query: Select = (
            select(Task)
            .where(
                Task.organization_id == organization_id,
                Task.is_archived.is_(False),
                Task.status.not_in(["DONE", "CANCELLED"]),
                Task.due_date.is_not(None),
                or_(Task.assignee_id == user_id, Task.created_by == user_id),
            )
            .order_by(Task.due_date)
            .limit(limit)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    # ── 체크리스트 (Checklist items) ──

    async def get_checklist(self, db: AsyncSession, task_id: UUID) -> list[ChecklistItem]:
        query: Select = (
            select(ChecklistItem)
            .where(ChecklistItem.task_id == task_id)
            .order_by(ChecklistItem.position, ChecklistItem.created_at)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_checklist_item(self, db: AsyncSession, item_id: UUID) -> ChecklistItem | None:
        result = await db.execute(select(ChecklistItem).where(ChecklistItem.id == item_id))
        return result.scalar_one_or_none()

    async def add_checklist_item(
        self,
        db: AsyncSession,
        task_id: UUID,
        title: str,
    ) -> ChecklistItem:
        """체크리스트 항목을 맨 뒤에 추가합니다 (Append a checklist item)."""
        items: list[ChecklistItem] = await self.get_checklist(db, task_id)
        position: int = max((item.position for item in items), default=-1) + 1
        item: ChecklistItem = ChecklistItem(task_id=task_id, title=title, position=position)
        db.add(item)
        await db.flush()
        await db.refresh(item)
        return item

    # ── 의존 관계 (Dependencies) ──

    async def get_dependencies(self, db: AsyncSession, task_id: UUID) -> list[TaskDependency]:
        query: Select = (
            select(TaskDependency)
            .where(TaskDependency.task_id == task_id)
            .order_by(TaskDependency.created_at)
        )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_dependency(
        self,
        db: AsyncSession,
        task_id: UUID,
        depends_on_id: UUID,
    ) -> TaskDependency | None:
        query: Select = select(TaskDependency).where(
            TaskDependency.task_id == task_id,
            TaskDependency.depends_on_id == depends_on_id,
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()


# 싱글턴 인스턴스 - Singleton instance
task_repository: TaskRepository = TaskRepository()

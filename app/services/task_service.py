"""업무 서비스 - 업무 CRUD, 칸반 이동, 체크리스트, 의존 관계, 캘린더.

Task Service - Business logic for tasks.

Access roles (first match wins):
    CREATOR: 업무 생성자 - 모든 필드 수정/삭제 가능
    PROJECT_OWNER: 프로젝트 소유자 - 생성자와 동일
    ASSIGNEE: 담당자 - status, time_spent만 수정 가능
    VIEWER: 그 외 - 수정/이동 불가
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.project import Project
from app.models.task import ChecklistItem, Task, TaskDependency
from app.models.user import User
from app.repositories.project_repository import project_repository
from app.repositories.record_repository import record_repository
from app.repositories.task_repository import task_repository
from app.repositories.user_repository import user_repository
from app.schemas.project import DependencyCreate, TaskCreate, TaskMove, TaskUpdate
from app.services.notification_service import notification_service
from app.services.project_service import project_service
from app.utils.exceptions import BadRequestError, DuplicateError, ForbiddenError, NotFoundError
from app.utils.pagination import build_page

logger = logging.getLogger(__name__)

ASSIGNEE_ALLOWED_FIELDS: frozenset[str] = frozenset({"status", "time_spent"})
DUE_SOON_WINDOW: timedelta = timedelta(hours=24)

# 캘린더 이벤트 색상 (Calendar colors by priority when the project has none)
PRIORITY_COLORS: dict[str, str] = {
    "LOW": "#6B7280",
    "MEDIUM": "#3B82F6",
    "HIGH": "#F59E0B",
    "URGENT": "#EF4444",
}


def is_due_soon(due_date: datetime | None, now: datetime | None = None) -> bool:
    """마감이 지금부터 24시간 이내인지 (Due between now and DUE_SOON_WINDOW from now).

    Naive datetimes are read as UTC.
    """
    if due_date is None:
        return False
    if due_date.tzinfo is None:
        due_date = due_date.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    return now <= due_date <= now + DUE_SOON_WINDOW


class TaskService:
    """업무 서비스.

    Task service providing CRUD with role checks, kanban moves, subtask
    completion rules, checklists, dependencies and calendar events.
    """

    def to_dict(self, task: Task) -> dict[str, Any]:
        return {
            "id": str(task.id),
            "title": task.title,
            "description": task.description,
            "status": task.status,
            "priority": task.priority,
            "project_id": str(task.project_id) if task.project_id else None,
            "record_id": str(task.record_id) if task.record_id else None,
            "parent_id": str(task.parent_id) if task.parent_id else None,
            "assignee_id": str(task.assignee_id) if task.assignee_id else None,
            "created_by": str(task.created_by),
            "start_date": task.start_date,
            "due_date": task.due_date,
            "completed_at": task.completed_at,
            "time_estimate": task.time_estimate,
            "time_spent": task.time_spent,
            "position": task.position,
            "tags": task.tags or [],
            "is_archived": task.is_archived,
            "created_at": task.created_at,
            "updated_at": task.updated_at,
        }

    def checklist_to_dict(self, item: ChecklistItem) -> dict[str, Any]:
        return {
            "id": str(item.id),
            "task_id": str(item.task_id),
            "title": item.title,
            "is_completed": item.is_completed,
            "position": item.position,
        }

    def dependency_to_dict(self, dependency: TaskDependency) -> dict[str, Any]:
        return {
            "id": str(dependency.id),
            "task_id": str(dependency.task_id),
            "depends_on_id": str(dependency.depends_on_id),
            "type": dependency.type,
        }

    async def get_model(self, db: AsyncSession, task_id: UUID, organization_id: UUID) -> Task:
        task: Task | None = await task_repository.get_by_id(db, task_id, organization_id)
        if task is None:
            raise NotFoundError("Task not found")
        return task

    async def get_role(self, db: AsyncSession, task: Task, user_id: UUID) -> str:
        """업무에 대한 사용자 역할 (CREATOR | PROJECT_OWNER | ASSIGNEE | VIEWER)."""
        if task.created_by == user_id:
            return "CREATOR"
        if task.project_id is not None:
            project: Project | None = await project_repository.get_by_id(db, task.project_id)
            if project is not None and project.owner_id == user_id:
                return "PROJECT_OWNER"
        if task.assignee_id == user_id:
            return "ASSIGNEE"
        return "VIEWER"

    async def check_done_allowed(self, db: AsyncSession, task_id: UUID, new_status: str) -> None:
        """DONE 전환 시 모든 하위 업무가 완료되어야 합니다.

        Raises:
            BadRequestError: 미완료 하위 업무 존재 (Open subtasks, named in the message)
        """
        if new_status != "DONE":
            return
        open_subtasks: list[Task] = await task_repository.get_open_subtasks(db, task_id)
        if open_subtasks:
            titles: str = ", ".join(subtask.title for subtask in open_subtasks)
            raise BadRequestError(
                f"Cannot mark task as DONE. {len(open_subtasks)} subtask(s) are not completed: {titles}"
            )

    async def _check_links(self, db: AsyncSession, organization_id: UUID, values: dict[str, Any]) -> None:
        if values.get("project_id") is not None:
            if await project_repository.get_by_id(db, values["project_id"], organization_id) is None:
                raise NotFoundError("Project not found")
        if values.get("record_id") is not None:
            if await record_repository.get_by_id(db, values["record_id"], organization_id) is None:
                raise NotFoundError("Record not found")
        if values.get("parent_id") is not None:
            if await task_repository.get_by_id(db, values["parent_id"], organization_id) is None:
                raise NotFoundError("Parent task not found")
        if values.get("assignee_id") is not None:
            if await user_repository.get_by_id(db, values["assignee_id"], organization_id) is None:
                raise NotFoundError("Assignee not found")

    async def create_task(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user: User,
        data: TaskCreate,
    ) -> dict[str, Any]:
        """업무를 생성합니다.

        Position is max + 1 within (project, status). Project progress is
        refreshed; the assignee is notified when not the creator.
        """
        values: dict[str, Any] = data.model_dump()
        await self._check_links(db, organization_id, values)

        position: int = await task_repository.get_max_column_position(db, data.project_id, data.status) + 1
        task: Task = await task_repository.create(
            db,
            {
                **values,
                "organization_id": organization_id,
                "created_by": user.id,
                "position": position,
                "completed_at": datetime.now(timezone.utc) if data.status == "DONE" else None,
            },
        )

        if task.project_id is not None:
            await project_service.update_progress(db, task.project_id)
        if task.assignee_id is not None and task.assignee_id != user.id:
            await notification_service.notify_task_assigned(
                db, organization_id, task.assignee_id, task.id, task.title, user.name
            )
        if task.assignee_id not in (None, user.id) and is_due_soon(task.due_date):
            await notification_service.notify_task_due_soon(
                db, organization_id, task.assignee_id, task.id, task.title, task.due_date
            )
        logger.info("Task created", extra={"task_id": str(task.id), "project_id": str(task.project_id)})
        return self.to_dict(task)

    async def list_tasks(
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
        limit: int = 100,
    ) -> dict[str, Any]:
        tasks, total = await task_repository.get_list(
            db,
            organization_id,
            user_id,
            project_id=project_id,
            assignee_id=assignee_id,
            status=status,
            priority=priority,
            record_id=record_id,
            parent_id=parent_id,
            include_archived=include_archived,
            include_subtasks=include_subtasks,
            search=search,
            page=page,
            per_page=limit,
        )
        return build_page([self.to_dict(task) for task in tasks], total, page, limit)

    async def get_task(self, db: AsyncSession, task_id: UUID, organization_id: UUID) -> dict[str, Any]:
        """업무 상세 - 하위 업무, 체크리스트, 의존 관계 포함."""
        task: Task = await self.get_model(db, task_id, organization_id)
        result: dict[str, Any] = self.to_dict(task)
        result["subtasks"] = [self.to_dict(sub) for sub in await task_repository.get_subtasks(db, task.id)]
        result["checklist"] = [self.checklist_to_dict(i) for i in await task_repository.get_checklist(db, task.id)]
        result["dependencies"] = [
            self.dependency_to_dict(d) for d in await task_repository.get_dependencies(db, task.id)
        ]
        return result

    async def update_task(
        self,
        db: AsyncSession,
        task_id: UUID,
        organization_id: UUID,
        user: User,
        data: TaskUpdate,
    ) -> dict[str, Any]:
        """업무를 수정합니다.

        Raises:
            NotFoundError: 업무 없음
            ForbiddenError: 담당자가 허용되지 않은 필드 수정, 또는 VIEWER
            BadRequestError: 미완료 하위 업무가 있는 상태에서 DONE 전환
        """
        task: Task = await self.get_model(db, task_id, organization_id)
        changes: dict[str, Any] = data.model_dump(exclude_unset=True)

        role: str = await self.get_role(db, task, user.id)
        if role == "ASSIGNEE":
            disallowed: list[str] = sorted(set(changes) - ASSIGNEE_ALLOWED_FIELDS)
            if disallowed:
                raise ForbiddenError(
                    f"Assignee can only update status and time spent. Cannot update: {', '.join(disallowed)}"
                )
        elif role == "VIEWER":
            raise ForbiddenError("You do not have permission to update this task")

        old_status: str = task.status
        old_assignee: UUID | None = task.assignee_id
        new_status: str | None = changes.get("status")
        status_changed: bool = new_status is not None and new_status != old_status
        if status_changed:
            await self.check_done_allowed(db, task.id, new_status)
        await self._check_links(db, organization_id, changes)

        for key, value in changes.items():
            if value is None and key in ("title", "status", "priority", "tags", "time_spent", "is_archived"):
                continue
            setattr(task, key, value)
        if status_changed:
            task.completed_at = datetime.now(timezone.utc) if new_status == "DONE" else None
        await db.flush()

        if task.project_id is not None:
            await project_service.update_progress(db, task.project_id)

        if task.assignee_id is not None and task.assignee_id != old_assignee and task.assignee_id != user.id:
            await notification_service.notify_task_assigned(
                db, organization_id, task.assignee_id, task.id, task.title, user.name
            )
        if status_changed:
            recipients: list[UUID] = [
                uid for uid in dict.fromkeys([task.created_by, old_assignee]) if uid is not None and uid != user.id
            ]
            await notification_service.notify_task_status_changed(
                db, organization_id, recipients, task.id, task.title, new_status
            )

        reminded: bool = "due_date" in changes or task.assignee_id != old_assignee
        if reminded and task.assignee_id not in (None, user.id) and is_due_soon(task.due_date):
            await notification_service.notify_task_due_soon(
                db, organization_id, task.assignee_id, task.id, task.title, task.due_date
            )

        logger.info("Task updated", extra={"task_id": str(task.id), "role": role})
        await db.refresh(task)
        return self.to_dict(task)

    async def delete_task(
        self,
        db: AsyncSession,
        task_id: UUID,
        organization_id: UUID,
        user_id: UUID,
    ) -> None:
        """업무를 보관 처리합니다 (생성자 또는 프로젝트 소유자만).

        Raises:
            ForbiddenError: 생성자/프로젝트 소유자가 아님
        """
        task: Task = await self.get_model(db, task_id, organization_id)
        if await self.get_role(db, task, user_id) not in ("CREATOR", "PROJECT_OWNER"):
            raise ForbiddenError("Only the task creator or project owner can delete or archive this task")
        task.is_archived = True
        await db.flush()
        if task.project_id is not None:
            await project_service.update_progress(db, task.project_id)
        logger.info("Task archived", extra={"task_id": str(task.id)})

    async def move_task(
        self,
        db: AsyncSession,
        task_id: UUID,
        organization_id: UUID,
        user_id: UUID,
        data: TaskMove,
    ) -> dict[str, Any]:
        """칸반 이동 - 대상 컬럼의 position 이상 형제 업무를 +1 이동.

        Move to ``status`` at ``position``; siblings at or after the position
        shift down by one.
        """
        task: Task = await self.get_model(db, task_id, organization_id)
        if await self.get_role(db, task, user_id) == "VIEWER":
            raise ForbiddenError("You do not have permission to move this task")
        status_changed: bool = data.status != task.status
        if status_changed:
            await self.check_done_allowed(db, task.id, data.status)

        await task_repository.shift_positions(db, task.project_id, data.status, data.position, task.id)
        task.status = data.status
        task.position = data.position
        if status_changed:
            task.completed_at = datetime.now(timezone.utc) if data.status == "DONE" else None
        await db.flush()

        if task.project_id is not None:
            await project_service.update_progress(db, task.project_id)
        await db.refresh(task)
        return self.to_dict(task)

    # ── 체크리스트 (Checklist) ──

    async def add_checklist_item(
        self,
        db: AsyncSession,
        task_id: UUID,
        organization_id: UUID,
        title: str,
    ) -> dict[str, Any]:
        task: Task = await self.get_model(db, task_id, organization_id)
        item: ChecklistItem = await task_repository.add_checklist_item(db, task.id, title)
        return self.checklist_to_dict(item)

    async def _get_checklist_item(self, db: AsyncSession, item_id: UUID, organization_id: UUID) -> ChecklistItem:
        item: ChecklistItem | None = await task_repository.get_checklist_item(db, item_id)
        if item is None or await task_repository.get_by_id(db, item.task_id, organization_id) is None:
            raise NotFoundError("Checklist item not found")
        return item

    async def toggle_checklist_item(self, db: AsyncSession, item_id: UUID, organization_id: UUID) -> dict[str, Any]:
        item: ChecklistItem = await self._get_checklist_item(db, item_id, organization_id)
        item.is_completed = not item.is_completed
        await db.flush()
        return self.checklist_to_dict(item)

    async def delete_checklist_item(self, db: AsyncSession, item_id: UUID, organization_id: UUID) -> None:
        item: ChecklistItem = await self._get_checklist_item(db, item_id, organization_id)
        await db.delete(item)
        await db.flush()

    # ── 의존 관계 (Dependencies) ──

    async def add_dependency(
        self,
        db: AsyncSession,
        task_id: UUID,
        organization_id: UUID,
        data: DependencyCreate,
    ) -> dict[str, Any]:
        """의존 관계 추가.

        Raises:
            BadRequestError: 자기 자신 (Self dependency)
            NotFoundError: 업무 없음
            DuplicateError: 이미 존재 (Duplicate dependency)
        """
        if task_id == data.depends_on_id:
            raise BadRequestError("A task cannot depend on itself")
        await self.get_model(db, task_id, organization_id)
        await self.get_model(db, data.depends_on_id, organization_id)
        if await task_repository.get_dependency(db, task_id, data.depends_on_id) is not None:
            raise DuplicateError("Dependency already exists")

        dependency: TaskDependency = TaskDependency(task_id=task_id, depends_on_id=data.depends_on_id, type=data.type)
        db.add(dependency)
        await db.flush()
        await db.refresh(dependency)
        return self.dependency_to_dict(dependency)

    async def remove_dependency(
        self,
        db: AsyncSession,
        task_id: UUID,
        organization_id: UUID,
        depends_on_id: UUID,
    ) -> None:
        await self.get_model(db, task_id, organization_id)
        dependency: TaskDependency | None = await task_repository.get_dependency(db, task_id, depends_on_id)
        if dependency is None:
            raise NotFoundError("Dependency not found")
        await db.delete(dependency)
        await db.flush()

    # ── 캘린더 (Calendar) ──

    async def get_calendar_events(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID,
        start: datetime,
        end: datetime,
        project_id: UUID | None = None,
    ) -> list[dict[str, Any]]:
        """기간과 겹치는 업무를 캘린더 이벤트로 반환합니다.

        An event without both dates is an all-day event on the date it has.
        """
        tasks: list[Task] = await task_repository.get_calendar(db, organization_id, user_id, start, end, project_id)
        project_ids: set[UUID] = {task.project_id for task in tasks if task.project_id is not None}
        project_colors: dict[UUID, str | None] = {}
        for pid in project_ids:
            project: Project | None = await project_repository.get_by_id(db, pid)
            project_colors[pid] = project.color if project else None

        events: list[dict[str, Any]] = []
        for task in tasks:
            event_start: datetime | None = task.start_date or task.due_date
            event_end: datetime | None = task.due_date or task.start_date
            color: str | None = project_colors.get(task.project_id) if task.project_id else None
            events.append(
                {
                    "id": str(task.id),
                    "title": task.title,
                    "start": event_start,
                    "end": event_end,
                    "all_day": task.start_date is None or task.due_date is None,
                    "color": color or PRIORITY_COLORS.get(task.priority, PRIORITY_COLORS["MEDIUM"]),
                    "status": task.status,
                    "priority": task.priority,
                    "project_id": str(task.project_id) if task.project_id else None,
                }
            )
        return events

    async def get_upcoming(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID,
        limit: int = 10,
    ) -> list[dict[str, Any]]:
        tasks: list[Task] = await task_repository.get_upcoming(db, organization_id, user_id, limit)
        return [self.to_dict(task) for task in tasks]


# 싱글턴 인스턴스 - Singleton instance
task_service: TaskService = TaskService()

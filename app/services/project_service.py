"""프로젝트 서비스 - 프로젝트 CRUD, 멤버 관리, 진행률 계산.

Project Service - Project CRUD, membership and task based progress.
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.project import Project, ProjectMember
from app.models.task import Task
from app.repositories.project_repository import project_repository
from app.repositories.record_repository import record_repository
from app.repositories.task_repository import task_repository
from app.repositories.user_repository import user_repository
from app.schemas.project import MemberAdd, ProjectCreate, ProjectUpdate
from app.utils.exceptions import BadRequestError, ForbiddenError, NotFoundError
from app.utils.pagination import build_page

logger = logging.getLogger(__name__)

# 프로젝트 관리 권한이 있는 멤버 역할 (Member roles allowed to manage a project)
MANAGER_ROLES: frozenset[str] = frozenset({"OWNER", "ADMIN"})


class ProjectService:
    """프로젝트 비즈니스 로직 (Project business logic)."""

    def to_dict(self, project: Project) -> dict[str, Any]:
        return {
            "id": str(project.id),
            "name": project.name,
            "description": project.description,
            "status": project.status,
            "priority": project.priority,
            "start_date": project.start_date,
            "end_date": project.end_date,
            "record_id": str(project.record_id) if project.record_id else None,
            "team_ids": project.team_ids or [],
            "budget": project.budget,
            "time_estimate": project.time_estimate,
            "color": project.color,
            "emoji": project.emoji,
            "progress": project.progress,
            "owner_id": str(project.owner_id),
            "is_archived": project.is_archived,
            "created_at": project.created_at,
            "updated_at": project.updated_at,
        }

    def member_to_dict(self, member: ProjectMember) -> dict[str, Any]:
        return {
            "id": str(member.id),
            "project_id": str(member.project_id),
            "user_id": str(member.user_id),
            "role": member.role,
            "joined_at": member.joined_at,
        }

    async def get_model(self, db: AsyncSession, project_id: UUID, organization_id: UUID) -> Project:
        project: Project | None = await project_repository.get_by_id(db, project_id, organization_id)
        if project is None:
            raise NotFoundError("Project not found")
        return project

    async def _check_manager(self, db: AsyncSession, project: Project, user_id: UUID) -> None:
        """소유자 또는 ADMIN 멤버만 허용.

        Raises:
            ForbiddenError: 관리 권한 없음 (Neither owner nor ADMIN member)
        """
        if project.owner_id == user_id:
            return
        member: ProjectMember | None = await project_repository.get_member(db, project.id, user_id)
        if member is None or member.role not in MANAGER_ROLES:
            raise ForbiddenError("You do not have permission to manage this project")

    async def create_project(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID,
        data: ProjectCreate,
    ) -> dict[str, Any]:
        """프로젝트를 생성합니다. 생성자는 소유자이자 OWNER 멤버가 됩니다.

        Raises:
            NotFoundError: 연결 레코드가 없을 때 (Linked record not found)
        """
        if data.record_id is not None:
            if await record_repository.get_by_id(db, data.record_id, organization_id) is None:
                raise NotFoundError("Record not found")

        payload: dict[str, Any] = data.model_dump(exclude={"team_ids"})
        project: Project = await project_repository.create(
            db,
            {
                **payload,
                "organization_id": organization_id,
                "owner_id": user_id,
                "team_ids": [str(team_id) for team_id in data.team_ids],
            },
        )
        db.add(ProjectMember(project_id=project.id, user_id=user_id, role="OWNER"))
        await db.flush()
        logger.info("Project created", extra={"project_id": str(project.id)})
        return self.to_dict(project)

    async def list_projects(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID,
        status: str | None = None,
        include_archived: bool = False,
        search: str | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> dict[str, Any]:
        projects, total = await project_repository.get_list(
            db, organization_id, user_id, status, include_archived, search, page, limit
        )
        return build_page([self.to_dict(project) for project in projects], total, page, limit)

    async def get_project(self, db: AsyncSession, project_id: UUID, organization_id: UUID) -> dict[str, Any]:
        """프로젝트 상세 - 멤버(사용자 요약 포함)와 상태별 업무 수.

        Detail with members and non-archived task counts per status.
        """
        project: Project = await self.get_model(db, project_id, organization_id)
        members: list[ProjectMember] = await project_repository.get_members(db, project.id)
        users = {
            user.id: user
            for user in await user_repository.get_many(db, [m.user_id for m in members], organization_id)
        }

        result: dict[str, Any] = self.to_dict(project)
        result["members"] = []
        for member in members:
            item: dict[str, Any] = self.member_to_dict(member)
            user = users.get(member.user_id)
            if user is not None:
                item["user"] = {"id": str(user.id), "name": user.name, "email": user.email, "avatar": user.avatar}
            result["members"].append(item)

        counts: dict[str, int] = await project_repository.get_task_counts(db, project.id)
        result["task_counts"] = {**counts, "total": sum(counts.values())}
        return result

    async def update_project(
        self,
        db: AsyncSession,
        project_id: UUID,
        organization_id: UUID,
        user_id: UUID,
        data: ProjectUpdate,
    ) -> dict[str, Any]:
        project: Project = await self.get_model(db, project_id, organization_id)
        await self._check_manager(db, project, user_id)

        for key, value in data.model_dump(exclude_unset=True).items():
            if key == "team_ids" and value is not None:
                value = [str(team_id) for team_id in value]
            if value is None and key in ("name", "status", "priority", "team_ids", "is_archived"):
                continue
            setattr(project, key, value)
        await db.flush()
        await db.refresh(project)
        return self.to_dict(project)

    async def delete_project(
        self,
        db: AsyncSession,
        project_id: UUID,
        organization_id: UUID,
        user_id: UUID,
    ) -> None:
        """프로젝트를 보관 처리합니다 (Delete archives the project)."""
        project: Project = await self.get_model(db, project_id, organization_id)
        await self._check_manager(db, project, user_id)
        project.is_archived = True
        await db.flush()
        logger.info("Project archived", extra={"project_id": str(project.id)})

    async def add_member(
        self,
        db: AsyncSession,
        project_id: UUID,
        organization_id: UUID,
        user_id: UUID,
        data: MemberAdd,
    ) -> dict[str, Any]:
        """멤버 추가 또는 역할 변경 (Upsert a membership).

        Raises:
            NotFoundError: 프로젝트 또는 사용자 없음
            ForbiddenError: 관리 권한 없음
        """
        project: Project = await self.get_model(db, project_id, organization_id)
        await self._check_manager(db, project, user_id)
        if await user_repository.get_by_id(db, data.user_id, organization_id) is None:
            raise NotFoundError("User not found")

        member: ProjectMember | None = await project_repository.get_member(db, project.id, data.user_id)
        if member is None:
            member = ProjectMember(project_id=project.id, user_id=data.user_id, role=data.role)
            db.add(member)
        elif member.role != "OWNER":
            member.role = data.role
        await db.flush()
        await db.refresh(member)
        return self.member_to_dict(member)

    async def remove_member(
        self,
        db: AsyncSession,
        project_id: UUID,
        organization_id: UUID,
        user_id: UUID,
        member_user_id: UUID,
    ) -> None:
        project: Project = await self.get_model(db, project_id, organization_id)
        await self._check_manager(db, project, user_id)
        if member_user_id == project.owner_id:
            raise BadRequestError("Cannot remove the project owner")
        member: ProjectMember | None = await project_repository.get_member(db, project.id, member_user_id)
        if member is None:
            raise NotFoundError("Member not found")
        await db.delete(member)
        await db.flush()

    async def update_progress(self, db: AsyncSession, project_id: UUID) -> int:
        """진행률 = round(완료 / 전체 × 100), 보관되지 않은 업무 기준.

        Recompute progress from non-archived tasks; 0 when there are none.
        """
        project: Project | None = await project_repository.get_by_id(db, project_id)
        if project is None:
            return 0
        tasks: list[Task] = await task_repository.get_project_tasks(db, project_id)
        done: int = sum(1 for task in tasks if task.status == "DONE")
        project.progress = round(done / len(tasks) * 100) if tasks else 0
        await db.flush()
        return project.progress


# 싱글턴 인스턴스 - Singleton instance
project_service: ProjectService = ProjectService()

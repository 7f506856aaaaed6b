"""워크플로우 레포지토리 - 워크플로우 및 실행 이력 쿼리.

Workflow Repository - Workflow listing, active-workflow lookup for the
engine and execution history.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.workflow import Workflow, WorkflowExecution
from app.repositories.base import BaseRepository


class WorkflowRepository(BaseRepository[Workflow]):
    """워크플로우 레포지토리.

    Extends:
        BaseRepository[Workflow]
    """

    def __init__(self) -> None:
        super().__init__(Workflow)

    async def get_list(
        self,
        db: AsyncSession,
        organization_id: UUID,
        object_id: UUID | None = None,
        is_active: bool | None = None,
        search: str | None = None,
        page: int = 1,
        per_page: int = 50,
    ) -> tuple[Sequence[Workflow], int]:
        """워크플로우 목록을 최신순으로 조회합니다 (Newest first)."""
        query: Select = select(Workflow).where(Workflow.organization_id == organization_id)
        if object_id is not None:
            query = query.where(Workflow.object_id == object_id)
        if is_active is not None:
            query = query.where(Workflow.is_active.is_(is_active))
        if search:
            query = query.where(Workflow.name.ilike(f"%{search}%"))
        query = query.order_by(Workflow.created_at.desc())
        return await self.get_paginated(db, query, page, per_page)

    async def get_active_for_trigger(
        self,
        db: AsyncSession,
        organization_id: UUID,
        object_id: UUID,
        trigger: str,
    ) -> list[Workflow]:
        """오브젝트/트리거에 해당하는 활성 워크플로우를 생성 순으로 조회합니다.

        Active workflows for (object, trigger), oldest first.
        """
        query: Select = (
            select(Workflow)
            .where(
                Workflow.organization_id == organization_id,
                Workflow.object_id == object_id,
                Workflow.trigger == trigger,
                Workflow.is_active.is_(True),
            )
            .order_by(Workflow.created_at)
        )
        result = await db.execute(query)
        return list(result.scalars().all())


class WorkflowExecutionRepository(BaseRepository[WorkflowExecution]):
    """워크플로우 실행 이력 레포지토리 (Execution history repository)."""

    def __init__(self) -> None:
        super().__init__(WorkflowExecution)

    async def get_for_workflow(
        self,
        db: AsyncSession,
        workflow_id: UUID,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[WorkflowExecution], int]:
        query: Select = (
            select(WorkflowExecution)
            .where(WorkflowExecution.workflow_id == workflow_id)
            .order_by(WorkflowExecution.started_at.desc())
        )
        return await self.get_paginated(db, query, page, per_page)


# 싱글턴 인스턴스 - Singleton instances
workflow_repository: WorkflowRepository = WorkflowRepository()
workflow_execution_repository: WorkflowExecutionRepository = WorkflowExecutionRepository()

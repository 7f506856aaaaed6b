"""업무 라우터 - 업무, 체크리스트, 의존성, 캘린더 API.

Task Router - Tasks with role-based updates, kanban moves, checklist
items, dependencies and calendar events.
"""

from datetime import datetime
from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.project import ChecklistItemCreate, DependencyCreate, TaskCreate, TaskMove, TaskUpdate
from app.services.task_service import task_service

router: APIRouter = APIRouter()


@router.post("", status_code=201)
async def create_task(
    data: TaskCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """업무를 생성합니다.

    Create a task at the end of its (project, status) column. The assignee
    is notified when it is not the creator.

    Args:
        data: 업무 생성 데이터 (Task creation payload)
        db: 비동기 데이터베이스 세션 (Async database session)
        current_user: 인증된 사용자 (Authenticated user)

    Returns:
        dict: 생성된 업무 (Created task)
    """
    result: dict[str, Any] = await task_service.create_task(db, current_user.organization_id, current_user, data)
    await db.commit()
    return result


@router.get("")
async def list_tasks(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    project_id: Annotated[UUID | None, Query()] = None,
    assignee_id: Annotated[UUID | None, Query()] = None,
    status: Annotated[str | None, Query()] = None,
    priority: Annotated[str | None, Query()] = None,
    record_id: Annotated[UUID | None, Query()] = None,
    parent_id: Annotated[UUID | None, Query()] = None,
    include_archived: Annotated[bool, Query()] = False,
    include_subtasks: Annotated[bool, Query()] = False,
    search: Annotated[str | None, Query()] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=200)] = 100,
) -> dict[str, Any]:
    """보이는 업무 목록 - position 순, 같은 위치는 최신순."""
    return await task_service.list_tasks(
        db,
        current_user.organization_id,
        current_user.id,
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
        limit=limit,
    )


@router.get("/calendar/events")
async def get_calendar_events(
    start: Annotated[datetime, Query()],
    end: Annotated[datetime, Query()],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    project_id: Annotated[UUID | None, Query()] = None,
) -> list[dict[str, Any]]:
    return await task_service.get_calendar_events(
        db, current_user.organization_id, current_user.id, start, end, project_id
    )


@router.patch("/checklist/{item_id}/toggle")
async def toggle_checklist_item(
    item_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    result: dict[str, Any] = await task_service.toggle_checklist_item(db, item_id, current_user.organization_id)
    await db.commit()
    return result


@router.delete("/checklist/{item_id}", status_code=204)
async def delete_checklist_item(
    item_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> None:
    await task_service.delete_checklist_item(db, item_id, current_user.organization_id)
    await db.commit()


@router.get("/{task_id}")
async def get_task(
    task_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    return await task_service.get_task(db, task_id, current_user.organization_id)


@router.patch("/{task_id}")
async def update_task(
    task_id: UUID,
    data: TaskUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """업무 수정 - 역할별 권한 적용.

    Assignees may change only status and time_spent; viewers get 403.
    Moving to DONE requires every subtask to be DONE.

    Raises:
        ForbiddenError: 권한 없음 (403)
        BadRequestError: 미완료 하위 업무 (400)
    """
    result: dict[str, Any] = await task_service.update_task(
        db, task_id, current_user.organization_id, current_user, data
    )
    await db.commit()
    return result


@router.delete("/{task_id}", status_code=204)
async def delete_task(
    task_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> None:
    await task_service.delete_task(db, task_id, current_user.organization_id, current_user.id)
    await db.commit()


@router.post("/{task_id}/move")
async def move_task(
    task_id: UUID,
    data: TaskMove,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """칸반 이동 - 대상 위치 이후 형제 업무를 한 칸씩 밀어냅니다."""
    result: dict[str, Any] = await task_service.move_task(
        db, task_id, current_user.organization_id, current_user.id, data
    )
    await db.commit()
    return result


@router.post("/{task_id}/checklist", status_code=201)
async def add_checklist_item(
    task_id: UUID,
    data: ChecklistItemCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    result: dict[str, Any] = await task_service.add_checklist_item(
        db, task_id, current_user.organization_id, data.title
    )
    await db.commit()
    return result


@router.post("/{task_id}/dependencies", status_code=201)
async def add_dependency(
    task_id: UUID,
    data: DependencyCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """의존성 추가.

    Raises:
        BadRequestError: 자기 자신 의존 (400)
        DuplicateError: 이미 존재 (409)
    """
    result: dict[str, Any] = await task_service.add_dependency(db, task_id, current_user.organization_id, data)
    await db.commit()
    return result


@router.delete("/{task_id}/dependencies/{depends_on_id}", status_code=204)
async def remove_dependency(
    task_id: UUID,
    depends_on_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> None:
    await task_service.remove_dependency(db, task_id, current_user.organization_id, depends_on_id)
    await db.commit()

"""워크플로우 라우터 - 자동화 규칙 관리, 실행 이력, 에디터 그래프 API.

Workflow Router - Automation rule CRUD, toggling, duplication, execution
history, dry-run testing, editor graph and builder metadata.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.workflow import WorkflowCreate, WorkflowGraph, WorkflowTestRequest, WorkflowUpdate
from app.services.workflow_service import workflow_service

router: APIRouter = APIRouter()


# --- 메타데이터 (Builder metadata) ---


@router.get("/meta/triggers")
async def get_triggers(
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[dict[str, str]]:
    return workflow_service.get_triggers()


@router.get("/meta/actions")
async def get_actions(
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[dict[str, Any]]:
    """액션 유형과 설정 스키마 (Action types with their config schemas)."""
    return workflow_service.get_actions()


@router.get("/meta/operators")
async def get_operators(
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[dict[str, Any]]:
    return workflow_service.get_operators()


@router.get("/meta/variables/{trigger}")
async def get_variables(
    trigger: str,
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[dict[str, str]]:
    """트리거별 사용 가능한 {{변수}} 목록 (Variables usable in action configs)."""
    return workflow_service.get_variables(trigger)


# --- CRUD ---


@router.post("", status_code=201)
async def create_workflow(
    data: WorkflowCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """워크플로우를 생성합니다.

    Create a workflow bound to an object.

    Args:
        data: 트리거, 조건, 액션 (Trigger, conditions and actions)
        db: 비동기 데이터베이스 세션 (Async database session)
        current_user: 인증된 사용자 (Authenticated user)

    Returns:
        dict: 생성된 워크플로우 (Created workflow)

    Raises:
        NotFoundError: 오브젝트 없음 (404)
    """
    result: dict[str, Any] = await workflow_service.create_workflow(
        db, current_user.organization_id, current_user.id, data
    )
    await db.commit()
    return result


@router.get("")
async def list_workflows(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    object_id: Annotated[UUID | None, Query()] = None,
    is_active: Annotated[bool | None, Query()] = None,
    search: Annotated[str | None, Query()] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
) -> dict[str, Any]:
    return await workflow_service.list_workflows(
        db, current_user.organization_id, object_id, is_active, search, page, limit
    )


@router.get("/{workflow_id}")
async def get_workflow(
    workflow_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    return await workflow_service.get_workflow(db, workflow_id, current_user.organization_id)


@router.patch("/{workflow_id}")
async def update_workflow(
    workflow_id: UUID,
    data: WorkflowUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    result: dict[str, Any] = await workflow_service.update_workflow(
        db, workflow_id, current_user.organization_id, data
    )
    await db.commit()
    return result


@router.delete("/{workflow_id}", status_code=204)
async def delete_workflow(
    workflow_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> None:
    await workflow_service.delete_workflow(db, workflow_id, current_user.organization_id)
    await db.commit()


@router.post("/{workflow_id}/toggle")
async def toggle_workflow(
    workflow_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    result: dict[str, Any] = await workflow_service.toggle_workflow(db, workflow_id, current_user.organization_id)
    await db.commit()
    return result


@router.post("/{workflow_id}/duplicate", status_code=201)
async def duplicate_workflow(
    workflow_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """복제 - 이름에 " (Copy)"를 붙이고 비활성 상태로 생성."""
    result: dict[str, Any] = await workflow_service.duplicate_workflow(
        db, workflow_id, current_user.organization_id, current_user.id
    )
    await db.commit()
    return result


@router.get("/{workflow_id}/executions")
async def list_executions(
    workflow_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> dict[str, Any]:
    return await workflow_service.list_executions(db, workflow_id, current_user.organization_id, page, limit)


@router.post("/{workflow_id}/test")
async def test_workflow(
    workflow_id: UUID,
    data: WorkflowTestRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """지정 레코드로 워크플로우를 즉시 실행합니다.

    Run the workflow once against the given record. The execution is
    recorded like a triggered run.
    """
    result: dict[str, Any] = await workflow_service.test_workflow(
        db, workflow_id, current_user.organization_id, current_user, data.record_id
    )
    await db.commit()
    return result


# --- 에디터 그래프 (Editor graph) ---


@router.get("/{workflow_id}/graph")
async def get_workflow_graph(
    workflow_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    return await workflow_service.get_graph(db, workflow_id, current_user.organization_id)


@router.put("/{workflow_id}/graph")
async def put_workflow_graph(
    workflow_id: UUID,
    graph: WorkflowGraph,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """노드 그래프를 trigger/conditions/actions 정의로 저장합니다.

    Store an editor graph as the workflow's trigger, conditions and actions.
    """
    result: dict[str, Any] = await workflow_service.put_graph(
        db, workflow_id, current_user.organization_id, graph
    )
    await db.commit()
    return result

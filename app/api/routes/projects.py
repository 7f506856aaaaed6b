"""프로젝트 라우터 - 프로젝트 및 멤버 관리 API.

Project Router - Projects visible to the caller, membership management.
Changes are limited to the owner and ADMIN members.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.project import MemberAdd, ProjectCreate, ProjectUpdate
from app.services.project_service import project_service

router: APIRouter = APIRouter()


@router.post("", status_code=201)
async def create_project(
    data: ProjectCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """프로젝트를 생성합니다. 생성자가 소유자 겸 OWNER 멤버가 됩니다.

    Create a project. The caller becomes its owner and OWNER member.

    Args:
        data: 프로젝트 생성 데이터 (Project creation payload)
        db: 비동기 데이터베이스 세션 (Async database session)
        current_user: 인증된 사용자 (Authenticated user)

    Returns:
        dict: 생성된 프로젝트 (Created project)
    """
    result: dict[str, Any] = await project_service.create_project(
        db, current_user.organization_id, current_user.id, data
    )
    await db.commit()
    return result


@router.get("")
async def list_projects(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    status: Annotated[str | None, Query()] = None,
    include_archived: Annotated[bool, Query()] = False,
    search: Annotated[str | None, Query()] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
) -> dict[str, Any]:
    return await project_service.list_projects(
        db, current_user.organization_id, current_user.id, status, include_archived, search, page, limit
    )


@router.get("/{project_id}")
async def get_project(
    project_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """프로젝트 상세 - 멤버와 상태별 업무 수 포함."""
    return await project_service.get_project(db, project_id, current_user.organization_id)


@router.patch("/{project_id}")
async def update_project(
    project_id: UUID,
    data: ProjectUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    result: dict[str, Any] = await project_service.update_project(
        db, project_id, current_user.organization_id, current_user.id, data
    )
    await db.commit()
    return result


@router.delete("/{project_id}", status_code=204)
async def delete_project(
    project_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> None:
    await project_service.delete_project(db, project_id, current_user.organization_id, current_user.id)
    await db.commit()


@router.post("/{project_id}/members", status_code=201)
async def add_project_member(
    project_id: UUID,
    data: MemberAdd,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """멤버 추가 - 이미 멤버면 역할만 변경 (Upserts the membership)."""
    result: dict[str, Any] = await project_service.add_member(
        db, project_id, current_user.organization_id, current_user.id, data
    )
    await db.commit()
    return result


@router.delete("/{project_id}/members/{user_id}", status_code=204)
async def remove_project_member(
    project_id: UUID,
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> None:
    await project_service.remove_member(db, project_id, current_user.organization_id, current_user.id, user_id)
    await db.commit()

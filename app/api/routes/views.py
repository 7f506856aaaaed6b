"""뷰 라우터 - 저장된 목록/보드 뷰 API.

View Router - Saved table/board/list/calendar views. Lists show the
caller's own views and shared ones; only the owner may change a view.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.crm import ViewCreate, ViewUpdate
from app.services.pipeline_service import view_service

router: APIRouter = APIRouter()


@router.post("", status_code=201)
async def create_view(
    data: ViewCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    result: dict[str, Any] = await view_service.create_view(
        db, current_user.organization_id, current_user.id, data
    )
    await db.commit()
    return result


@router.get("")
async def list_views(
    object_id: Annotated[UUID, Query()],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[dict[str, Any]]:
    return await view_service.list_views(db, object_id, current_user.organization_id, current_user.id)


@router.get("/{view_id}")
async def get_view(
    view_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    return await view_service.get_view(db, view_id, current_user.organization_id, current_user.id)


@router.patch("/{view_id}")
async def update_view(
    view_id: UUID,
    data: ViewUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """뷰 수정 - 소유자만 가능 (Owner only)."""
    result: dict[str, Any] = await view_service.update_view(
        db, view_id, current_user.organization_id, current_user.id, data
    )
    await db.commit()
    return result


@router.delete("/{view_id}", status_code=204)
async def delete_view(
    view_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> None:
    await view_service.delete_view(db, view_id, current_user.organization_id, current_user.id)
    await db.commit()

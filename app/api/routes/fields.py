"""필드 라우터 - 오브젝트 필드 정의 관리 API.

Field Router - Field definitions of an object. Mutations require admin
and rebuild the object's schema.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, require_admin
from app.database import get_db
from app.models.user import User
from app.schemas.crm import FieldCreate, FieldUpdate, ReorderRequest
from app.services.field_service import field_service

router: APIRouter = APIRouter()


@router.post("", status_code=201)
async def create_field(
    data: FieldCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    """필드를 생성합니다.

    Raises:
        NotFoundError: 오브젝트 없음 (404)
        DuplicateError: 오브젝트 내 이름 중복 (409)
        BadRequestError: 유형별 설정 누락 (400)
    """
    result: dict[str, Any] = await field_service.create_field(db, current_user.organization_id, data)
    await db.commit()
    return result


@router.get("/object/{object_id}")
async def list_fields(
    object_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[dict[str, Any]]:
    return await field_service.list_fields(db, object_id, current_user.organization_id)


@router.post("/reorder/{object_id}", status_code=204)
async def reorder_fields(
    object_id: UUID,
    data: ReorderRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> None:
    await field_service.reorder_fields(db, object_id, current_user.organization_id, data.ordered_ids)
    await db.commit()


@router.get("/{field_id}")
async def get_field(
    field_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    return await field_service.get_field(db, field_id, current_user.organization_id)


@router.patch("/{field_id}")
async def update_field(
    field_id: UUID,
    data: FieldUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    """필드 수정 - 시스템 필드는 400 (System fields cannot be modified)."""
    result: dict[str, Any] = await field_service.update_field(db, field_id, current_user.organization_id, data)
    await db.commit()
    return result


@router.delete("/{field_id}", status_code=204)
async def delete_field(
    field_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> None:
    await field_service.delete_field(db, field_id, current_user.organization_id)
    await db.commit()

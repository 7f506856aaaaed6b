"""오브젝트 라우터 - CRM 오브젝트(contacts, deals, 사용자 정의) 관리 API.

Object Router - CRM object definitions. Reads are open to every member;
mutations require admin.
"""

from typing import Annotated, Any, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, require_admin
from app.database import get_db
from app.models.user import User
from app.schemas.crm import ObjectCreate, ObjectUpdate, ReorderRequest
from app.services.object_service import object_service

router: APIRouter = APIRouter()


@router.post("", status_code=201)
async def create_object(
    data: ObjectCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    """오브젝트를 생성합니다.

    Create an object. The name must be unique within the organization.

    Args:
        data: 오브젝트 생성 데이터 (Object creation payload)
        db: 비동기 데이터베이스 세션 (Async database session)
        current_user: 관리자 이상 사용자 (Admin or owner)

    Returns:
        dict: 생성된 오브젝트 (Created object)

    Raises:
        DuplicateError: 이름 중복 (409)
    """
    result: dict[str, Any] = await object_service.create_object(db, current_user.organization_id, data)
    await db.commit()
    return result


@router.get("")
async def list_objects(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    type: Annotated[Literal["SYSTEM", "CUSTOM"] | None, Query()] = None,
    include_archived: Annotated[bool, Query()] = False,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
) -> dict[str, Any]:
    """오브젝트 목록 - position 순, field_count/record_count 포함."""
    return await object_service.list_objects(
        db, current_user.organization_id, type, include_archived, page, limit
    )


@router.get("/by-name/{name}")
async def get_object_by_name(
    name: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    return await object_service.get_by_name(db, name, current_user.organization_id)


@router.post("/reorder", status_code=204)
async def reorder_objects(
    data: ReorderRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> None:
    """순서 변경 - position = 목록 인덱스 (Position becomes the list index)."""
    await object_service.reorder_objects(db, current_user.organization_id, data.ordered_ids)
    await db.commit()


@router.post("/seed-system")
async def seed_system_objects(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> list[dict[str, Any]]:
    """시스템 오브젝트, 시스템 필드, 기본 영업 파이프라인을 생성합니다.

    Create the missing system objects with their system fields and the
    default deals pipeline.
    """
    result: list[dict[str, Any]] = await object_service.seed_system_objects(db, current_user.organization_id)
    await db.commit()
    return result


@router.get("/{object_id}")
async def get_object(
    object_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """오브젝트 상세 - 필드 포함 (Object with its fields)."""
    return await object_service.get_object(db, object_id, current_user.organization_id)


@router.patch("/{object_id}")
async def update_object(
    object_id: UUID,
    data: ObjectUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    result: dict[str, Any] = await object_service.update_object(db, object_id, current_user.organization_id, data)
    await db.commit()
    return result


@router.delete("/{object_id}", status_code=204)
async def delete_object(
    object_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
    hard: Annotated[bool, Query()] = False,
) -> None:
    """오브젝트 삭제 - 기본은 보관, hard=true면 영구 삭제.

    Raises:
        BadRequestError: 시스템 오브젝트 (System objects cannot be deleted)
    """
    await object_service.delete_object(db, object_id, current_user.organization_id, hard)
    await db.commit()

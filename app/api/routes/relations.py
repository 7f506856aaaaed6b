"""관계 라우터 - 레코드 간 관계 API (Record relation endpoints)."""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.crm import RelationCreate
from app.services.record_service import relation_service

router: APIRouter = APIRouter()


@router.post("", status_code=201)
async def create_relation(
    data: RelationCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """관계를 생성합니다.

    Raises:
        BadRequestError: 자기 자신과의 관계 (400)
        NotFoundError: 레코드 없음 (404)
        DuplicateError: 같은 유형의 관계가 이미 있음 (409)
    """
    result: dict[str, Any] = await relation_service.create_relation(db, current_user.organization_id, data)
    await db.commit()
    return result


@router.get("/record/{record_id}")
async def list_record_relations(
    record_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    relation_type: Annotated[str | None, Query()] = None,
) -> list[dict[str, Any]]:
    return await relation_service.list_for_record(db, record_id, current_user.organization_id, relation_type)


@router.get("/{relation_id}")
async def get_relation(
    relation_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    return await relation_service.get_relation(db, relation_id, current_user.organization_id)


@router.delete("/{relation_id}", status_code=204)
async def delete_relation(
    relation_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> None:
    await relation_service.delete_relation(db, relation_id, current_user.organization_id)
    await db.commit()

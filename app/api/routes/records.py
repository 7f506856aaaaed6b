"""레코드 라우터 - CRM 레코드 CRUD 및 일괄 처리 API.

Record Router - Record CRUD, bulk update/delete. Record writes fire the
matching workflows inside the service layer.
"""

import json
from typing import Annotated, Any, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.crm import BulkDeleteRequest, BulkUpdateRequest, RecordCreate, RecordUpdate
from app.services.record_service import INCLUDE_OPTIONS, record_service
from app.utils.exceptions import BadRequestError

router: APIRouter = APIRouter()


def parse_filters(raw: str | None) -> dict[str, Any] | None:
    """filters 쿼리 파싱 - JSON 객체만 허용.

    Raises:
        BadRequestError: JSON 객체가 아닐 때 (400)
    """
    if not raw:
        return None
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise BadRequestError("filters must be a JSON object") from exc
    if not isinstance(parsed, dict):
        raise BadRequestError("filters must be a JSON object")
    return parsed


def parse_include(raw: str | None) -> set[str]:
    if not raw:
        return set()
    return {part.strip() for part in raw.split(",") if part.strip() in INCLUDE_OPTIONS}


@router.post("", status_code=201)
async def create_record(
    data: RecordCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """레코드를 생성합니다.

    Create a record. Data is validated against the object's fields.

    Args:
        data: 레코드 생성 데이터 (Record creation payload)
        db: 비동기 데이터베이스 세션 (Async database session)
        current_user: 인증된 사용자 (Authenticated user)

    Returns:
        dict: 생성된 레코드 (Created record)

    Raises:
        NotFoundError: 오브젝트 없음 또는 보관됨 (404)
        BadRequestError: 필드 검증 실패 (400)
    """
    result: dict[str, Any] = await record_service.create_record(db, current_user.organization_id, current_user, data)
    await db.commit()
    return result


@router.get("")
async def list_records(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    object_id: Annotated[UUID | None, Query()] = None,
    owner_id: Annotated[UUID | None, Query()] = None,
    stage: Annotated[str | None, Query()] = None,
    include_archived: Annotated[bool, Query()] = False,
    search: Annotated[str | None, Query()] = None,
    filters: Annotated[str | None, Query(description="JSON object of data equality filters")] = None,
    sort_by: Annotated[Literal["created_at", "updated_at", "score"], Query()] = "created_at",
    sort_order: Annotated[Literal["asc", "desc"], Query()] = "desc",
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> dict[str, Any]:
    """레코드 목록 - 페이지네이션 envelope (Paginated envelope)."""
    return await record_service.list_records(
        db,
        current_user.organization_id,
        object_id=object_id,
        owner_id=owner_id,
        stage=stage,
        include_archived=include_archived,
        search=search,
        filters=parse_filters(filters),
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )


@router.post("/bulk/update")
async def bulk_update_records(
    data: BulkUpdateRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, int]:
    result: dict[str, int] = await record_service.bulk_update(db, current_user.organization_id, current_user, data)
    await db.commit()
    return result


@router.post("/bulk/delete")
async def bulk_delete_records(
    data: BulkDeleteRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, int]:
    result: dict[str, int] = await record_service.bulk_delete(db, current_user.organization_id, current_user, data)
    await db.commit()
    return result


@router.get("/{record_id}")
async def get_record(
    record_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    include: Annotated[str | None, Query(description="activities,comments,files,tasks,relations")] = None,
) -> dict[str, Any]:
    return await record_service.get_record(db, record_id, current_user.organization_id, parse_include(include))


@router.patch("/{record_id}")
async def update_record(
    record_id: UUID,
    data: RecordUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """레코드 수정 - data 병합 후 재검증, 변경 활동 기록.

    Merge ``data`` into the stored values, validate the result and record
    the stage or field change as an activity.
    """
    result: dict[str, Any] = await record_service.update_record(
        db, record_id, current_user.organization_id, current_user, data
    )
    await db.commit()
    return result


@router.delete("/{record_id}", status_code=204)
async def delete_record(
    record_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    hard: Annotated[bool, Query()] = False,
) -> None:
    await record_service.delete_record(db, record_id, current_user.organization_id, current_user, hard)
    await db.commit()

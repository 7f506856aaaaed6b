"""파이프라인 라우터 - 영업 파이프라인 및 단계 통계 API.

Pipeline Router - Pipelines of an object, the default pipeline and
per-stage statistics.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.crm import PipelineCreate, PipelineUpdate
from app.services.pipeline_service import pipeline_service

router: APIRouter = APIRouter()


@router.post("", status_code=201)
async def create_pipeline(
    data: PipelineCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """파이프라인을 생성합니다. is_default면 같은 오브젝트의 다른 기본값을 해제합니다.

    Create a pipeline. Marking it default clears the other defaults of the
    object.
    """
    result: dict[str, Any] = await pipeline_service.create_pipeline(db, current_user.organization_id, data)
    await db.commit()
    return result


@router.get("/object/{object_id}")
async def list_object_pipelines(
    object_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[dict[str, Any]]:
    return await pipeline_service.list_for_object(db, object_id, current_user.organization_id)


@router.get("/object/{object_id}/default")
async def get_default_pipeline(
    object_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    return await pipeline_service.get_default(db, object_id, current_user.organization_id)


@router.get("/{pipeline_id}")
async def get_pipeline(
    pipeline_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    return await pipeline_service.get_pipeline(db, pipeline_id, current_user.organization_id)


@router.get("/{pipeline_id}/stats")
async def get_pipeline_stats(
    pipeline_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[dict[str, Any]]:
    """단계별 레코드 수와 value 합계 (Per-stage count and summed value)."""
    return await pipeline_service.get_stage_stats(db, pipeline_id, current_user.organization_id)


@router.patch("/{pipeline_id}")
async def update_pipeline(
    pipeline_id: UUID,
    data: PipelineUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    result: dict[str, Any] = await pipeline_service.update_pipeline(
        db, pipeline_id, current_user.organization_id, data
    )
    await db.commit()
    return result


@router.delete("/{pipeline_id}", status_code=204)
async def delete_pipeline(
    pipeline_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> None:
    await pipeline_service.archive_pipeline(db, pipeline_id, current_user.organization_id)
    await db.commit()

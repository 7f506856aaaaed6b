"""리드 스코어링 라우터 - 점수 계산, 조회, 등급 분포 API.

Lead Scoring Router - Score one record or a whole object, read stored
scores and list records per grade.
"""

from typing import Annotated, Any, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.user import User
from app.services.lead_scoring_service import GRADE_THRESHOLDS, SCORING_RULES, lead_scoring_service

router: APIRouter = APIRouter()


@router.get("/rules")
async def get_rules(
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[dict[str, Any]]:
    return SCORING_RULES


@router.get("/grades")
async def get_grade_thresholds(
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, int]:
    """등급별 최저 점수 (Minimum score per grade)."""
    return GRADE_THRESHOLDS


@router.get("/record/{record_id}")
async def get_score(
    record_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any] | None:
    """저장된 점수 - 계산 전이면 null (Stored score; null before the first calculation)."""
    return await lead_scoring_service.get_score(db, record_id, current_user.organization_id)


@router.post("/record/{record_id}/calculate")
async def calculate_score(
    record_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    result: dict[str, Any] = await lead_scoring_service.calculate(db, record_id, current_user.organization_id)
    await db.commit()
    return result


@router.post("/object/{object_id}/recalculate")
async def recalculate_object(
    object_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, int]:
    """오브젝트 전체 재계산 (Recalculate every active record of an object)."""
    result: dict[str, int] = await lead_scoring_service.recalculate_object(
        db, object_id, current_user.organization_id
    )
    await db.commit()
    return result


@router.get("/object/{object_id}/distribution")
async def get_distribution(
    object_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, int]:
    return await lead_scoring_service.get_distribution(db, object_id, current_user.organization_id)


@router.get("/object/{object_id}/leads")
async def get_leads_by_grade(
    object_id: UUID,
    grade: Annotated[Literal["A", "B", "C", "D", "F", "a", "b", "c", "d", "f"], Query()],
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
) -> list[dict[str, Any]]:
    """등급별 레코드 - 점수 내림차순 (Records of one grade, highest score first)."""
    return await lead_scoring_service.get_leads_by_grade(
        db, object_id, current_user.organization_id, grade, limit
    )

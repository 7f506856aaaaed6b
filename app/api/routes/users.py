"""사용자 라우터 - 조직 사용자 조회, 본인 프로필, 관리자 사용자 관리.

User Router - Organization directory, the caller's profile and
preferences, and admin user management.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, require_admin
from app.database import get_db
from app.models.user import User
from app.schemas.user import ChangePasswordRequest, PreferencesUpdate, ProfileUpdate, UserAdminUpdate
from app.services.user_service import user_service

router: APIRouter = APIRouter()


@router.get("")
async def list_users(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    search: Annotated[str | None, Query()] = None,
) -> list[dict[str, Any]]:
    """조직의 활성 사용자 목록 (Active users of the caller's organization)."""
    return await user_service.list_users(db, current_user.organization_id, search)


@router.get("/me")
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    return user_service.to_dict(current_user)


@router.patch("/me")
async def update_me(
    data: ProfileUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    result: dict[str, Any] = await user_service.update_profile(db, current_user, data)
    await db.commit()
    return result


@router.patch("/me/preferences")
async def update_preferences(
    data: PreferencesUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """환경설정 병합 (Merge into the stored preferences)."""
    result: dict[str, Any] = await user_service.update_preferences(db, current_user, data)
    await db.commit()
    return result


@router.post("/me/change-password")
async def change_password(
    data: ChangePasswordRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, str]:
    result: dict[str, str] = await user_service.change_password(db, current_user, data)
    await db.commit()
    return result


@router.get("/{user_id}")
async def get_user(
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    return await user_service.get_user(db, user_id, current_user.organization_id)


@router.patch("/{user_id}")
async def admin_update_user(
    user_id: UUID,
    data: UserAdminUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict[str, Any]:
    """관리자 사용자 수정 - 이름, 역할, 활성 상태.

    Args:
        user_id: 대상 사용자 UUID (Target user UUID)
        data: 수정 데이터 (Fields to update)
        db: 비동기 데이터베이스 세션 (Async database session)
        current_user: 관리자 이상 사용자 (Admin or owner)

    Returns:
        dict: 수정된 사용자 (Updated user)
    """
    result: dict[str, Any] = await user_service.admin_update(
        db, user_id, current_user.organization_id, data, current_user
    )
    await db.commit()
    return result


@router.delete("/{user_id}", status_code=204)
async def deactivate_user(
    user_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> None:
    """사용자 비활성화 - 본인은 불가 (Cannot deactivate yourself)."""
    await user_service.deactivate(db, user_id, current_user.organization_id, current_user)
    await db.commit()

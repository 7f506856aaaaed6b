"""사용자 서비스 - 사용자 목록, 프로필, 관리자 수정 비즈니스 로직.

User Service - Organization directory, self-service profile updates and
admin user management.
"""

from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import Role, User
from app.repositories.role_repository import role_repository
from app.repositories.user_repository import user_repository
from app.schemas.user import ChangePasswordRequest, PreferencesUpdate, ProfileUpdate, UserAdminUpdate
from app.utils.exceptions import BadRequestError, NotFoundError
from app.utils.password import hash_password, verify_password


class UserService:
    """사용자 관리 서비스.

    Service for user directory and profile operations.
    """

    def to_dict(self, user: User) -> dict[str, Any]:
        """사용자 ORM 객체를 응답 딕셔너리로 변환합니다.

        Convert a User (with role loaded) to a response dictionary.
        Never exposes the password hash.
        """
        return {
            "id": str(user.id),
            "email": user.email,
            "name": user.name,
            "avatar": user.avatar,
            "role": user.role.name if user.role else None,
            "level": user.role.level if user.role else None,
            "is_active": user.is_active,
            "has_password": bool(user.password_hash),
            "preferences": user.preferences or {},
            "last_login_at": user.last_login_at,
            "created_at": user.created_at,
        }

    async def list_users(
        self,
        db: AsyncSession,
        organization_id: UUID,
        search: str | None = None,
    ) -> list[dict[str, Any]]:
        users: list[User] = await user_repository.get_by_org(db, organization_id, search)
        return [self.to_dict(user) for user in users]

    async def get_user(
        self,
        db: AsyncSession,
        user_id: UUID,
        organization_id: UUID,
    ) -> dict[str, Any]:
        """조직 내 사용자 상세 조회.

        Raises:
            NotFoundError: 사용자가 없을 때 (User not found)
        """
        user: User | None = await user_repository.get_detail(db, user_id, organization_id)
        if user is None:
            raise NotFoundError("User not found")
        return self.to_dict(user)

    async def update_profile(
        self,
        db: AsyncSession,
        user: User,
        data: ProfileUpdate,
    ) -> dict[str, Any]:
        """본인 이름/아바타를 수정합니다 (Update the caller's name and avatar)."""
        update_data: dict[str, Any] = data.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            if key == "name" and value is None:
                continue
            setattr(user, key, value)
        await db.flush()
        return self.to_dict(user)

    async def update_preferences(
        self,
        db: AsyncSession,
        user: User,
        data: PreferencesUpdate,
    ) -> dict[str, Any]:
        """환경설정을 기존 값과 병합합니다 (Shallow-merge preferences)."""
        # JSON 컬럼 변경 감지를 위해 새 dict 할당 (Assign a new dict so the change is tracked)
        user.preferences = {**(user.preferences or {}), **data.preferences}
        await db.flush()
        return self.to_dict(user)

    async def change_password(
        self,
        db: AsyncSession,
        user: User,
        data: ChangePasswordRequest,
    ) -> dict[str, str]:
        """비밀번호를 변경합니다.

        Accounts that already have a password must confirm the current one.

        Raises:
            BadRequestError: 현재 비밀번호 불일치 (Current password is incorrect)
        """
        if user.password_hash:
            if not data.current_password or not verify_password(data.current_password, user.password_hash):
                raise BadRequestError("Current password is incorrect")
        user.password_hash = hash_password(data.new_password)
        await db.flush()
        return {"message": "Password changed"}

    async def admin_update(
        self,
        db: AsyncSession,
        user_id: UUID,
        organization_id: UUID,
        data: UserAdminUpdate,
        current_user: User,
    ) -> dict[str, Any]:
        """관리자 권한으로 이름, 역할, 활성 상태를 수정합니다.

        Raises:
            NotFoundError: 사용자 또는 역할이 없을 때
            BadRequestError: 자기 자신을 비활성화하려 할 때 (Cannot deactivate yourself)
        """
        user: User | None = await user_repository.get_detail(db, user_id, organization_id)
        if user is None:
            raise NotFoundError("User not found")

        if data.name is not None:
            user.name = data.name
        if data.role is not None:
            role: Role | None = await role_repository.get_by_name(db, organization_id, data.role)
            if role is None:
                raise NotFoundError("Role not found")
            user.role_id = role.id
            user.role = role
        if data.is_active is not None:
            if not data.is_active and user.id == current_user.id:
                raise BadRequestError("You cannot deactivate yourself")
            user.is_active = data.is_active

        await db.flush()
        return self.to_dict(user)

    async def deactivate(
        self,
        db: AsyncSession,
        user_id: UUID,
        organization_id: UUID,
        current_user: User,
    ) -> None:
        """사용자를 비활성화합니다 (Soft delete: is_active = False)."""
        if user_id == current_user.id:
            raise BadRequestError("You cannot deactivate yourself")
        user: User | None = await user_repository.get_by_id(db, user_id, organization_id)
        if user is None:
            raise NotFoundError("User not found")
        user.is_active = False
        await db.flush()


# 싱글턴 인스턴스 - Singleton instance
user_service: UserService = UserService()

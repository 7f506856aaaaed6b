"""사용자 관련 Pydantic 요청 스키마 정의.

User-related Pydantic request schema definitions.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field


class ProfileUpdate(BaseModel):
    """본인 프로필 수정 요청 (Partial update of the caller's profile)."""

    name: Annotated[str | None, Field(min_length=1, max_length=100)] = None
    avatar: Annotated[str | None, Field(max_length=500)] = None


class PreferencesUpdate(BaseModel):
    """환경설정 병합 요청 (Preferences merged into the stored map)."""

    preferences: dict[str, Any]


class ChangePasswordRequest(BaseModel):
    """비밀번호 변경 요청.

    Attributes:
        current_password: 현재 비밀번호 (Required when a password is already set)
        new_password: 새 비밀번호 6-100자 (New password)
    """

    current_password: str | None = None
    new_password: Annotated[str, Field(min_length=6, max_length=100)]


class UserAdminUpdate(BaseModel):
    """관리자 사용자 수정 요청 (Admin update: name, role, active flag)."""

    name: Annotated[str | None, Field(min_length=1, max_length=100)] = None
    role: Literal["owner", "admin", "member"] | None = None
    is_active: bool | None = None

"""API 공통 의존성 - Bearer 토큰 인증과 역할 검사.

Shared API dependencies. ``get_current_user`` turns the bearer token into
an active :class:`User` (with its role loaded); ``require_admin`` guards the
schema-changing endpoints (objects and fields).

Every CRM route is tenant scoped through ``current_user.organization_id``,
so no route ever takes an organization id from the client.
"""

from typing import Annotated, Awaitable, Callable
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.database import get_db
from app.models.user import User
from app.utils.jwt import decode_token

bearer_scheme: HTTPBearer = HTTPBearer()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _user_id_from_token(token: str) -> UUID:
    """토큰의 sub 클레임을 UUID로 (Access-token subject as a UUID; 401 otherwise)."""
    try:
        claims: dict = decode_token(token)
    except jwt.InvalidTokenError:
        raise _unauthorized("Invalid or expired token")

    if claims.get("type") != "access":
        raise _unauthorized("Invalid token type")
    try:
        return UUID(str(claims["sub"]))
    except (KeyError, ValueError):
        raise _unauthorized("Invalid token")


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """현재 로그인 사용자.

    Raises:
        HTTPException(401): 토큰 오류, 없는 사용자 또는 비활성 계정
            (Bad token, unknown user or deactivated account)
    """
    user_id: UUID = _user_id_from_token(credentials.credentials)
    user: User | None = (
        await db.execute(select(User).options(selectinload(User.role)).where(User.id == user_id))
    ).scalar_one_or_none()
    if user is None or not user.is_active:
        raise _unauthorized("User not found or inactive")
    return user


def require_level(max_level: int) -> Callable[..., Awaitable[User]]:
    """역할 레벨 상한 의존성 (1=owner, 2=admin, 3=member; lower is stronger)."""

    async def _check(current_user: Annotated[User, Depends(get_current_user)]) -> User:
        if current_user.role is None or current_user.role.level > max_level:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return current_user

    return _check


require_admin = require_level(2)

"""액세스 토큰 발급/검증 (Access token issue and verification).

Claims carried by every token::

    sub    user id
    org    organization id
    role   role name ("owner" | "admin" | "member")
    level  role level
    type   always "access"
    exp    expiry, JWT_ACCESS_TOKEN_EXPIRE_MINUTES after issue
"""

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from app.config import settings

TOKEN_TYPE: str = "access"


def create_access_token(claims: dict[str, Any]) -> str:
    """서명된 액세스 토큰 문자열 (Signed access token for the given claims)."""
    expires_at: datetime = datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    payload: dict[str, Any] = {**claims, "exp": expires_at, "type": TOKEN_TYPE}
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    """토큰 검증 후 클레임 반환.

    Raises:
        jwt.InvalidTokenError: 서명 오류, 만료 등 (Bad signature, expired, malformed;
            ``ExpiredSignatureError`` is a subclass)
    """
    return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])

"""인증 라우터 - 회원가입, 로그인, 이메일 코드 로그인, 개발 토큰.

Auth Router - Registration, password login, email-code sign-in and the
development token. Every endpoint answers ``{user, token}``.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.auth import LoginRequest, RegisterRequest, SendCodeRequest, VerifyCodeRequest
from app.services.auth_service import auth_service

router: APIRouter = APIRouter()


@router.post("/register", status_code=201)
async def register(
    data: RegisterRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict[str, Any]:
    """회원가입 - 새 워크스페이스의 소유자가 됩니다.

    Register a new account; a fresh organization is created with the user
    as its owner.

    Args:
        data: 가입 정보 (Registration payload)
        db: 비동기 데이터베이스 세션 (Async database session)

    Returns:
        dict: {"user", "token"}

    Raises:
        DuplicateError: 이메일 중복 (409)
    """
    result: dict[str, Any] = await auth_service.register(db, data)
    await db.commit()
    return result


@router.post("/login")
async def login(
    data: LoginRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict[str, Any]:
    """비밀번호 로그인 (Password login).

    Raises:
        UnauthorizedError: 잘못된 자격 증명 또는 비활성 계정 (401)
        BadRequestError: 비밀번호가 없는 계정 (400)
    """
    result: dict[str, Any] = await auth_service.login(db, data)
    await db.commit()
    return result


@router.post("/send-code")
async def send_code(
    data: SendCodeRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict[str, Any]:
    """6자리 로그인 코드를 이메일로 발송합니다 (Mail a six-digit sign-in code)."""
    result: dict[str, Any] = await auth_service.send_code(db, data)
    await db.commit()
    return result


@router.post("/verify-code")
async def verify_code(
    data: VerifyCodeRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict[str, Any]:
    result: dict[str, Any] = await auth_service.verify_code(db, data)
    await db.commit()
    return result


@router.post("/dev-token")
async def dev_token(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict[str, Any]:
    """개발용 토큰 - ENABLE_DEV_TOKEN일 때만 (404 otherwise)."""
    result: dict[str, Any] = await auth_service.dev_token(db)
    await db.commit()
    return result


@router.get("/me")
async def get_me(
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    return auth_service.to_user_dict(current_user)

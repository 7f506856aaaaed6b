"""인증 서비스 - 회원가입, 로그인, 이메일 코드 로그인 비즈니스 로직.

Auth Service - Business logic for registration, password login, the
email-code sign-in flow and the development token.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.user import Role, User
from app.repositories.auth_repository import auth_repository
from app.repositories.organization_repository import organization_repository
from app.repositories.user_repository import user_repository
from app.schemas.auth import LoginRequest, RegisterRequest, SendCodeRequest, VerifyCodeRequest
from app.utils.email import send_verification_code
from app.utils.exceptions import BadRequestError, DuplicateError, NotFoundError, UnauthorizedError
from app.utils.jwt import create_access_token
from app.utils.password import hash_password, verify_password

logger = logging.getLogger(__name__)

DEV_EMAIL: str = "dev@janus.local"


class AuthService:
    """인증 관련 비즈니스 로직을 처리하는 서비스.

    Service handling authentication business logic.
    """

    def _build_jwt_payload(self, user: User, role: Role) -> dict[str, str | int]:
        """JWT 토큰 페이로드를 생성합니다.

        Build the JWT token payload from user and role data.
        """
        return {
            "sub": str(user.id),
            "org": str(user.organization_id),
            "role": role.name,
            "level": role.level,
        }

    def to_user_dict(self, user: User) -> dict[str, Any]:
        """인증 응답용 사용자 요약 (User summary used by auth responses)."""
        return {
            "id": str(user.id),
            "email": user.email,
            "name": user.name,
            "role": user.role.name if user.role else None,
        }

    def _auth_response(self, user: User) -> dict[str, Any]:
        token: str = create_access_token(self._build_jwt_payload(user, user.role))
        return {"user": self.to_user_dict(user), "token": token}

    async def _create_workspace_owner(
        self,
        db: AsyncSession,
        email: str,
        name: str,
        password_hash: str | None,
    ) -> User:
        """새 워크스페이스와 그 소유자 계정을 생성합니다.

        Create a fresh organization with the default roles and make the new
        user its owner.
        """
        organization, roles = await organization_repository.create_workspace(db, f"{name}'s workspace")
        user: User = await user_repository.create(
            db,
            {
                "organization_id": organization.id,
                "role_id": roles["owner"].id,
                "email": email,
                "name": name,
                "password_hash": password_hash,
                "preferences": {},
            },
        )
        logger.info("Workspace created", extra={"user_id": str(user.id), "organization_id": str(organization.id)})
        # role 관계를 selectinload로 채워서 반환 (Reload with the role relationship populated)
        return await user_repository.get_detail(db, user.id)  # type: ignore[return-value]

    async def register(
        self,
        db: AsyncSession,
        data: RegisterRequest,
    ) -> dict[str, Any]:
        """회원가입을 처리합니다.

        Register a password account. The name defaults to the email local part.

        Raises:
            DuplicateError: 이미 등록된 이메일 (Email already registered)
        """
        email: str = data.email.lower()
        if await user_repository.get_by_email(db, email) is not None:
            raise DuplicateError("User with this email already exists")

        name: str = data.name or email.split("@")[0]
        user: User = await self._create_workspace_owner(db, email, name, hash_password(data.password))
        return self._auth_response(user)

    async def login(
        self,
        db: AsyncSession,
        data: LoginRequest,
    ) -> dict[str, Any]:
        """비밀번호 로그인을 처리합니다.

        Raises:
            UnauthorizedError: 잘못된 인증 정보 또는 비활성 계정
                               (Invalid credentials or deactivated account)
            BadRequestError: 비밀번호가 설정되지 않은 계정 (Code-only account)
        """
        user: User | None = await user_repository.get_by_email(db, data.email)
        if user is None:
            raise UnauthorizedError("Invalid email or password")
        if not user.password_hash:
            raise BadRequestError("Password login is not available for this account, sign in with an email code")
        if not verify_password(data.password, user.password_hash):
            raise UnauthorizedError("Invalid email or password")
        if not user.is_active:
            raise UnauthorizedError("Account is deactivated")

        user.last_login_at = datetime.now(timezone.utc)
        await db.flush()
        return self._auth_response(user)

    async def send_code(
        self,
        db: AsyncSession,
        data: SendCodeRequest,
    ) -> dict[str, Any]:
        """이메일 로그인 코드를 발급하고 발송합니다.

        Replace any unused codes for the email with a new random six-digit code
        and mail it.

        Returns:
            dict: {"message", "expires_in"} (expires_in in seconds)
        """
        email: str = data.email.lower()
        await auth_repository.delete_unused_codes(db, email)

        code: str = f"{secrets.randbelow(1_000_000):06d}"
        ttl: timedelta = timedelta(minutes=settings.VERIFICATION_CODE_TTL_MINUTES)
        await auth_repository.create_code(db, email, code, datetime.now(timezone.utc) + ttl)
        await send_verification_code(email, code)
        logger.info("Verification code issued", extra={"email": email})

        return {"message": "Verification code sent", "expires_in": int(ttl.total_seconds())}

    async def verify_code(
        self,
        db: AsyncSession,
        data: VerifyCodeRequest,
    ) -> dict[str, Any]:
        """인증 코드를 확인하고 토큰을 발급합니다.

        Consume a valid code. Unknown emails get a new account and workspace.

        Raises:
            UnauthorizedError: 코드 불일치/만료/사용됨, 또는 비활성 계정
        """
        email: str = data.email.lower()
        now: datetime = datetime.now(timezone.utc)
        code = await auth_repository.get_valid_code(db, email, data.code, now)
        if code is None:
            raise UnauthorizedError("Invalid or expired verification code")
        code.used = True
        await db.flush()

        user: User | None = await user_repository.get_by_email(db, email)
        if user is None:
            user = await self._create_workspace_owner(db, email, email.split("@")[0], None)
        if not user.is_active:
            raise UnauthorizedError("Account is deactivated")

        user.last_login_at = now
        await db.flush()
        return self._auth_response(user)

    async def dev_token(self, db: AsyncSession) -> dict[str, Any]:
        """개발용 토큰 발급 (ENABLE_DEV_TOKEN일 때만).

        Find or create the development account and return a token.

        Raises:
            NotFoundError: 개발 토큰 비활성화 상태 (Dev token disabled)
        """
        if not settings.ENABLE_DEV_TOKEN:
            raise NotFoundError("Not found")

        user: User | None = await user_repository.get_by_email(db, DEV_EMAIL)
        if user is None:
            user = await self._create_workspace_owner(db, DEV_EMAIL, "Developer", None)
        return self._auth_response(user)


# 싱글턴 인스턴스 - Singleton instance
auth_service: AuthService = AuthService()

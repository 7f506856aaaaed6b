"""인증 레포지토리 - 이메일 인증 코드 CRUD.

Auth Repository - Handles email verification code lifecycle for the
passwordless sign-in flow.
"""

from datetime import datetime

from sqlalchemy import Select, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.token import VerificationCode


class AuthRepository:
    """인증 관련 데이터베이스 쿼리를 담당하는 레포지토리.

    Repository handling verification code queries.
    """

    async def delete_unused_codes(
        self,
        db: AsyncSession,
        email: str,
    ) -> None:
        """해당 이메일의 미사용 코드를 모두 삭제합니다.

        Delete every unused code issued for the email.
        """
        await db.execute(
            delete(VerificationCode).where(
                VerificationCode.email == email,
                VerificationCode.used.is_(False),
            )
        )
        await db.flush()

    async def create_code(
        self,
        db: AsyncSession,
        email: str,
        code: str,
        expires_at: datetime,
    ) -> VerificationCode:
        """새 인증 코드를 저장합니다.

        Store a new verification code.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            email: 대상 이메일 (Target email)
            code: 6자리 코드 (Six-digit code)
            expires_at: 만료 시각 (Expiry timestamp)

        Returns:
            VerificationCode: 생성된 코드 (Created code row)
        """
        row: VerificationCode = VerificationCode(email=email, code=code, expires_at=expires_at)
        db.add(row)
        await db.flush()
        await db.refresh(row)
        return row

    async def get_valid_code(
        self,
        db: AsyncSession,
        email: str,
        code: str,
        now: datetime,
    ) -> VerificationCode | None:
        """미사용이며 만료되지 않은 일치 코드를 조회합니다.

        Find an unused, unexpired code matching email and code.
        """
        query: Select = (
            select(VerificationCode)
            .where(
                VerificationCode.email == email,
                VerificationCode.code == code,
                VerificationCode.used.is_(False),
                VerificationCode.expires_at > now,
            )
            .order_by(VerificationCode.created_at.desc())
            .limit(1)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()


# 싱글턴 인스턴스 - Singleton instance
auth_repository: AuthRepository = AuthRepository()

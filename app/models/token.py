"""이메일 인증 코드 SQLAlchemy ORM 모델.

Email verification code model used by the passwordless sign-in flow.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, Boolean, DateTime, Uuid, Index
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class VerificationCode(Base):
    """이메일 인증 코드 - 6자리, 1회용, 만료 시간 있음.

    Six-digit, single-use sign-in code bound to an email address.

    Attributes:
        email: 대상 이메일 (Target email, lowercased)
        code: 6자리 숫자 코드 (Six-digit numeric code)
        expires_at: 만료 시각 UTC (Expiry timestamp)
        used: 사용 여부 (Consumed flag)
    """

    __tablename__ = "verification_codes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 대상 이메일 - 사용자 계정이 아직 없을 수 있음 (User may not exist yet)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(6), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_verification_codes_email_code", "email", "code"),
    )

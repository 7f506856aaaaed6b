"""인증 관련 Pydantic 요청 스키마 정의.

Authentication-related Pydantic request schema definitions.
Covers password registration/login and the email-code sign-in flow.
"""

from typing import Annotated

from pydantic import BaseModel, EmailStr, Field


class RegisterRequest(BaseModel):
    """회원가입 요청 스키마.

    Registration request. A new workspace is created and the user becomes
    its owner.

    Attributes:
        email: 로그인 이메일 (Login email, globally unique)
        password: 비밀번호 6-100자 (Plain text, bcrypt-hashed on server)
        name: 표시 이름 (Display name, defaults to the email local part)
    """

    email: EmailStr
    password: Annotated[str, Field(min_length=6, max_length=100)]
    name: Annotated[str | None, Field(max_length=100)] = None


class LoginRequest(BaseModel):
    """로그인 요청 스키마 (Password login request)."""

    email: EmailStr
    password: str  # 비밀번호 - 평문, 서버에서 bcrypt 해시와 비교 (Compared to bcrypt hash)


class SendCodeRequest(BaseModel):
    """인증 코드 발송 요청 (Request a sign-in code by email)."""

    email: EmailStr


class VerifyCodeRequest(BaseModel):
    """인증 코드 확인 요청 (Exchange a six-digit code for a token)."""

    email: EmailStr
    code: Annotated[str, Field(min_length=6, max_length=6)]

"""서비스 계층 HTTP 예외 (HTTP errors raised from services).

Services raise these directly; FastAPI turns them into
``{"detail": ...}`` responses with the matching status code.

Usage:
    raise NotFoundError("Record not found")
    raise DuplicateError("A field with this name already exists")
"""

from typing import Any

from fastapi import HTTPException, status


class ApiError(HTTPException):
    """상태 코드와 기본 메시지를 가진 예외의 베이스 (Base with a default detail)."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_detail: str = "Bad request"

    def __init__(self, detail: Any = None) -> None:
        super().__init__(status_code=type(self).status_code, detail=detail or self.default_detail)


class BadRequestError(ApiError):
    """400 - 비즈니스 규칙 위반 (Business rule violation, e.g. closing a task with open subtasks)."""


class UnauthorizedError(ApiError):
    """401 - 인증 실패 (Bad credentials or deactivated account)."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Authentication required"


class ForbiddenError(ApiError):
    """403 - 권한 부족 (Not allowed for this role or membership)."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Insufficient permissions"


class NotFoundError(ApiError):
    """404 - 없음 또는 다른 조직 소유 (Missing, or owned by another organization)."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found"


class DuplicateError(ApiError):
    """409 - 고유 제약 충돌 (Uniqueness conflict)."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource already exists"


class ValidationFailedError(ApiError):
    """400 - 레코드 데이터 검증 실패, 필드별 메시지 포함.

    Record data failed the object's field rules; ``detail`` is
    ``{"message": "Validation failed", "errors": [...]}``.
    """

    def __init__(self, errors: list[str]) -> None:
        super().__init__({"message": "Validation failed", "errors": errors})

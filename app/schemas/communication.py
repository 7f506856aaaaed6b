"""커뮤니케이션 Pydantic 요청 스키마 정의.

Request schemas for comments, email templates and email sending.
"""

from typing import Annotated, Any
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


# === 코멘트 (Comment) 스키마 ===

class CommentCreate(BaseModel):
    """코멘트 생성 요청 스키마.

    Exactly one of record_id, task_id or project_id is required. When
    ``mentions`` is omitted the ids are extracted from ``@[Name](user_id)``
    markup in ``content``.
    """

    content: Annotated[str, Field(min_length=1, max_length=10000)]
    record_id: UUID | None = None
    task_id: UUID | None = None
    project_id: UUID | None = None
    mentions: list[UUID] | None = None

    @model_validator(mode="after")
    def _one_target(self) -> "CommentCreate":
        targets = [self.record_id, self.task_id, self.project_id]
        if sum(target is not None for target in targets) != 1:
            raise ValueError("Exactly one of record_id, task_id or project_id is required")
        return self


class CommentUpdate(BaseModel):
    content: Annotated[str, Field(min_length=1, max_length=10000)]


# === 이메일 템플릿 (Email template) 스키마 ===

class EmailTemplateCreate(BaseModel):
    """이메일 템플릿 생성 요청 (subject/body may contain {{placeholders}})."""

    name: Annotated[str, Field(min_length=1, max_length=200)]
    subject: Annotated[str, Field(min_length=1, max_length=500)]
    body: Annotated[str, Field(min_length=1)]
    category: Annotated[str | None, Field(max_length=50)] = None
    is_shared: bool = False


class EmailTemplateUpdate(BaseModel):
    name: Annotated[str | None, Field(min_length=1, max_length=200)] = None
    subject: Annotated[str | None, Field(min_length=1, max_length=500)] = None
    body: Annotated[str | None, Field(min_length=1)] = None
    category: Annotated[str | None, Field(max_length=50)] = None
    is_shared: bool | None = None


class TemplatePreviewRequest(BaseModel):
    """템플릿 미리보기 (Render subject/body against sample data)."""

    subject: str = ""
    body: str = ""
    data: dict[str, Any] = {}


# === 이메일 발송 (Email sending) 스키마 ===

class SendEmailRequest(BaseModel):
    """직접 작성 메일 발송 요청 (Ad-hoc email)."""

    to: list[str]
    cc: list[str] = []
    bcc: list[str] = []
    subject: Annotated[str, Field(min_length=1, max_length=500)]
    body: Annotated[str, Field(min_length=1)]
    record_id: UUID | None = None


class SendTemplateRequest(BaseModel):
    """템플릿 기반 메일 발송 요청 (``data`` fills the placeholders)."""

    to: list[str]
    cc: list[str] = []
    bcc: list[str] = []
    data: dict[str, Any] = {}
    record_id: UUID | None = None

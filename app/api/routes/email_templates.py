"""이메일 템플릿 라우터 - 템플릿 관리, 미리보기, 발송, 발송 로그 API.

Email Template Router - Personal and shared templates, placeholder
preview, direct and template-based sending, delivery logs.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.communication import (
    EmailTemplateCreate,
    EmailTemplateUpdate,
    SendEmailRequest,
    SendTemplateRequest,
    TemplatePreviewRequest,
)
from app.services.email_service import email_sending_service, email_template_service

router: APIRouter = APIRouter()


# --- 템플릿 (Templates) ---


@router.post("", status_code=201)
async def create_template(
    data: EmailTemplateCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    result: dict[str, Any] = await email_template_service.create_template(
        db, current_user.organization_id, current_user.id, data
    )
    await db.commit()
    return result


@router.get("")
async def list_templates(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    include_shared: Annotated[bool, Query()] = True,
    category: Annotated[str | None, Query()] = None,
    search: Annotated[str | None, Query()] = None,
) -> list[dict[str, Any]]:
    """내 템플릿과 공유 템플릿 목록 (Own templates plus shared ones)."""
    return await email_template_service.list_templates(
        db, current_user.organization_id, current_user.id, include_shared, category, search
    )


@router.get("/categories")
async def get_categories(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[str]:
    return await email_template_service.get_categories(db, current_user.organization_id, current_user.id)


@router.post("/preview")
async def preview_template(
    data: TemplatePreviewRequest,
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, str]:
    """{{key}} 자리표시자를 data로 채워 반환합니다 (Render placeholders)."""
    return email_template_service.preview(data.subject, data.body, data.data)


# --- 발송 (Sending) ---


@router.post("/send")
async def send_email(
    data: SendEmailRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """직접 작성한 메일을 발송합니다.

    Send an ad-hoc message. The delivery is logged either way; a transport
    failure is committed as a FAILED log before the 400 is raised.

    Args:
        data: 수신자, 제목, 본문 (Recipients, subject and body)
        db: 비동기 데이터베이스 세션 (Async database session)
        current_user: 발신자 (Sender)

    Returns:
        dict: 발송 로그 (Delivery log)

    Raises:
        BadRequestError: 수신자 누락/형식 오류 또는 발송 실패 (400)
    """
    result: dict[str, Any] = await email_sending_service.send(
        db,
        current_user.organization_id,
        current_user.id,
        data.to,
        data.subject,
        data.body,
        cc=data.cc,
        bcc=data.bcc,
        record_id=data.record_id,
    )
    await db.commit()
    return result


# --- 발송 로그 (Delivery logs) ---


@router.get("/logs")
async def list_logs(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    status: Annotated[str | None, Query()] = None,
    record_id: Annotated[UUID | None, Query()] = None,
    template_id: Annotated[UUID | None, Query()] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
) -> dict[str, Any]:
    return await email_sending_service.list_logs(
        db, current_user.id, status, record_id, template_id, page, limit
    )


@router.get("/logs/stats")
async def get_log_stats(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, int]:
    return await email_sending_service.get_stats(db, current_user.id)


@router.get("/logs/{log_id}")
async def get_log(
    log_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    return await email_sending_service.get_log(db, log_id, current_user.id)


# --- 단일 템플릿 (Single template) ---


@router.get("/{template_id}")
async def get_template(
    template_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """템플릿 조회 - 소유자 또는 공유 템플릿만 (403 otherwise)."""
    return await email_template_service.get_template(
        db, template_id, current_user.organization_id, current_user.id
    )


@router.patch("/{template_id}")
async def update_template(
    template_id: UUID,
    data: EmailTemplateUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    result: dict[str, Any] = await email_template_service.update_template(
        db, template_id, current_user.organization_id, current_user.id, data
    )
    await db.commit()
    return result


@router.delete("/{template_id}", status_code=204)
async def delete_template(
    template_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> None:
    await email_template_service.delete_template(db, template_id, current_user.organization_id, current_user.id)
    await db.commit()


@router.post("/{template_id}/duplicate", status_code=201)
async def duplicate_template(
    template_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    result: dict[str, Any] = await email_template_service.duplicate_template(
        db, template_id, current_user.organization_id, current_user.id
    )
    await db.commit()
    return result


@router.post("/{template_id}/send")
async def send_template(
    template_id: UUID,
    data: SendTemplateRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """템플릿을 data로 렌더링해 발송합니다 (Render with ``data`` and send)."""
    result: dict[str, Any] = await email_sending_service.send_from_template(
        db,
        current_user.organization_id,
        current_user.id,
        template_id,
        data.to,
        data.data,
        cc=data.cc,
        bcc=data.bcc,
        record_id=data.record_id,
    )
    await db.commit()
    return result

"""이메일 서비스 - 템플릿 관리 및 메일 발송/로그.

Email Service - Email template management, sending (ad-hoc and
template based) with a per-message EmailLog, and delivery statistics.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.email import EmailLog, EmailTemplate
from app.repositories.email_repository import email_log_repository, email_template_repository
from app.schemas.communication import EmailTemplateCreate, EmailTemplateUpdate
from app.utils.email import send_email
from app.utils.exceptions import BadRequestError, ForbiddenError, NotFoundError
from app.utils.pagination import build_page
from app.utils.template import render

logger = logging.getLogger(__name__)

RECIPIENT_PATTERN: re.Pattern[str] = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# 통계 대상 상태 (Statuses reported by the log stats endpoint)
STAT_STATUSES: tuple[str, ...] = ("SENT", "DELIVERED", "OPENED", "CLICKED", "BOUNCED", "FAILED")


def render_template_text(text: str, data: dict[str, Any]) -> str:
    """{{key}}를 data 값으로 치환합니다. data에 없는 키는 그대로 둡니다.

    Keys present in ``data`` with a null value render as an empty string.
    """

    def _resolve(key: str) -> Any:
        if key not in data:
            return None
        value: Any = data[key]
        return "" if value is None else value

    return render(text, _resolve)


class EmailTemplateService:
    """이메일 템플릿 비즈니스 로직.

    Templates belong to their owner; shared templates are readable by the
    whole organization but only editable by the owner.
    """

    def to_dict(self, template: EmailTemplate) -> dict[str, Any]:
        return {
            "id": str(template.id),
            "owner_id": str(template.owner_id),
            "name": template.name,
            "subject": template.subject,
            "body": template.body,
            "category": template.category,
            "is_shared": template.is_shared,
            "created_at": template.created_at,
            "updated_at": template.updated_at,
        }

    async def _get(self, db: AsyncSession, template_id: UUID, organization_id: UUID) -> EmailTemplate:
        template: EmailTemplate | None = await email_template_repository.get_by_id(db, template_id, organization_id)
        if template is None:
            raise NotFoundError("Email template not found")
        return template

    async def get_readable(
        self,
        db: AsyncSession,
        template_id: UUID,
        organization_id: UUID,
        user_id: UUID,
    ) -> EmailTemplate:
        """소유자 또는 공유 템플릿만 조회 가능.

        Raises:
            NotFoundError: 템플릿 없음
            ForbiddenError: 타인의 비공유 템플릿 (Not owner and not shared)
        """
        template: EmailTemplate = await self._get(db, template_id, organization_id)
        if template.owner_id != user_id and not template.is_shared:
            raise ForbiddenError("You do not have access to this template")
        return template

    async def _get_owned(
        self,
        db: AsyncSession,
        template_id: UUID,
        organization_id: UUID,
        user_id: UUID,
        message: str,
    ) -> EmailTemplate:
        template: EmailTemplate = await self._get(db, template_id, organization_id)
        if template.owner_id != user_id:
            raise ForbiddenError(message)
        return template

    async def create_template(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID,
        data: EmailTemplateCreate,
    ) -> dict[str, Any]:
        template: EmailTemplate = await email_template_repository.create(
            db,
            {"organization_id": organization_id, "owner_id": user_id, **data.model_dump()},
        )
        return self.to_dict(template)

    async def list_templates(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID,
        include_shared: bool = True,
        category: str | None = None,
        search: str | None = None,
    ) -> list[dict[str, Any]]:
        templates: list[EmailTemplate] = await email_template_repository.get_visible(
            db, organization_id, user_id, include_shared, category, search
        )
        return [self.to_dict(template) for template in templates]

    async def get_template(
        self,
        db: AsyncSession,
        template_id: UUID,
        organization_id: UUID,
        user_id: UUID,
    ) -> dict[str, Any]:
        return self.to_dict(await self.get_readable(db, template_id, organization_id, user_id))

    async def update_template(
        self,
        db: AsyncSession,
        template_id: UUID,
        organization_id: UUID,
        user_id: UUID,
        data: EmailTemplateUpdate,
    ) -> dict[str, Any]:
        template: EmailTemplate = await self._get_owned(
            db, template_id, organization_id, user_id, "You can only edit your own templates"
        )
        for key, value in data.model_dump(exclude_unset=True).items():
            if value is None and key != "category":
                continue
            setattr(template, key, value)
        await db.flush()
        await db.refresh(template)
        return self.to_dict(template)

    async def delete_template(
        self,
        db: AsyncSession,
        template_id: UUID,
        organization_id: UUID,
        user_id: UUID,
    ) -> None:
        template: EmailTemplate = await self._get_owned(
            db, template_id, organization_id, user_id, "You can only delete your own templates"
        )
        await db.delete(template)
        await db.flush()

    async def duplicate_template(
        self,
        db: AsyncSession,
        template_id: UUID,
        organization_id: UUID,
        user_id: UUID,
    ) -> dict[str, Any]:
        """템플릿 복제 - 이름에 " (Copy)", 비공유 (Copy is private to the caller)."""
        original: EmailTemplate = await self.get_readable(db, template_id, organization_id, user_id)
        copy: EmailTemplate = await email_template_repository.create(
            db,
            {
                "organization_id": organization_id,
                "owner_id": user_id,
                "name": f"{original.name} (Copy)",
                "subject": original.subject,
                "body": original.body,
                "category": original.category,
                "is_shared": False,
            },
        )
        return self.to_dict(copy)

    async def get_categories(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID,
    ) -> list[str]:
        return await email_template_repository.get_categories(db, organization_id, user_id)

    def preview(self, subject: str, body: str, data: dict[str, Any]) -> dict[str, str]:
        """{{key}} 치환 결과 미리보기 (Render subject and body)."""
        return {
            "subject": render_template_text(subject, data),
            "body": render_template_text(body, data),
        }


class EmailSendingService:
    """메일 발송 서비스.

    Every send creates an EmailLog row that moves PENDING → SENT or FAILED.
    """

    def log_to_dict(self, log: EmailLog) -> dict[str, Any]:
        return {
            "id": str(log.id),
            "sender_id": str(log.sender_id) if log.sender_id else None,
            "template_id": str(log.template_id) if log.template_id else None,
            "record_id": str(log.record_id) if log.record_id else None,
            "to": log.to or [],
            "cc": log.cc or [],
            "bcc": log.bcc or [],
            "subject": log.subject,
            "body": log.body,
            "status": log.status,
            "message_id": log.message_id,
            "error": log.error,
            "sent_at": log.sent_at,
            "created_at": log.created_at,
        }

    def check_recipients(self, to: list[str], cc: list[str], bcc: list[str]) -> None:
        """수신자 검사.

        Raises:
            BadRequestError: 수신자 없음 또는 잘못된 주소
                             (No recipients or a malformed address)
        """
        if not to:
            raise BadRequestError("At least one recipient is required")
        for email in [*to, *cc, *bcc]:
            if not RECIPIENT_PATTERN.fullmatch(email):
                raise BadRequestError(f"Invalid email address: {email}")

    async def send(
        self,
        db: AsyncSession,
        organization_id: UUID,
        sender_id: UUID | None,
        to: list[str],
        subject: str,
        body: str,
        cc: list[str] | None = None,
        bcc: list[str] | None = None,
        record_id: UUID | None = None,
        template_id: UUID | None = None,
    ) -> dict[str, Any]:
        """메일을 발송하고 로그를 기록합니다.

        Send one message. SMTP failures mark the log FAILED and raise 400;
        the log row itself is kept.

        Returns:
            dict: {"id", "status", "message_id"}

        Raises:
            BadRequestError: 잘못된 수신자 또는 발송 실패 (Bad recipients or send failure)
        """
        cc = cc or []
        bcc = bcc or []
        self.check_recipients(to, cc, bcc)

        log: EmailLog = await email_log_repository.create(
            db,
            {
                "organization_id": organization_id,
                "sender_id": sender_id,
                "template_id": template_id,
                "record_id": record_id,
                "to": to,
                "cc": cc,
                "bcc": bcc,
                "subject": subject,
                "body": body,
                "status": "PENDING",
            },
        )

        try:
            message_id: str = await send_email(to, subject, body, cc=cc, bcc=bcc)
        except Exception as exc:
            log.status = "FAILED"
            log.error = str(exc)
            # 요청은 실패하지만 FAILED 로그는 남김 (Persist the FAILED log before the 400)
            await db.commit()
            logger.error("Email send failed", extra={"email_log_id": str(log.id), "error": str(exc)})
            raise BadRequestError(f"Failed to send email: {exc}") from exc

        log.status = "SENT"
        log.message_id = message_id
        log.sent_at = datetime.now(timezone.utc)
        await db.flush()
        logger.info("Email sent", extra={"email_log_id": str(log.id), "message_id": message_id})
        return {"id": str(log.id), "status": log.status, "message_id": message_id}

    async def send_from_template(
        self,
        db: AsyncSession,
        organization_id: UUID,
        sender_id: UUID | None,
        template_id: UUID,
        to: list[str],
        data: dict[str, Any],
        cc: list[str] | None = None,
        bcc: list[str] | None = None,
        record_id: UUID | None = None,
    ) -> dict[str, Any]:
        """템플릿을 렌더링하여 발송합니다 (Render the template with ``data`` and send)."""
        template: EmailTemplate | None = await email_template_repository.get_by_id(db, template_id, organization_id)
        if template is None:
            raise NotFoundError("Email template not found")
        return await self.send(
            db,
            organization_id,
            sender_id,
            to,
            render_template_text(template.subject, data),
            render_template_text(template.body, data),
            cc=cc,
            bcc=bcc,
            record_id=record_id,
            template_id=template.id,
        )

    async def list_logs(
        self,
        db: AsyncSession,
        sender_id: UUID,
        status: str | None = None,
        record_id: UUID | None = None,
        template_id: UUID | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> dict[str, Any]:
        logs, total = await email_log_repository.get_list(db, sender_id, status, record_id, template_id, page, limit)
        return build_page([self.log_to_dict(log) for log in logs], total, page, limit)

    async def get_stats(self, db: AsyncSession, sender_id: UUID) -> dict[str, int]:
        """상태별 발송 통계 (Counts per delivery status plus total)."""
        counts: dict[str, int] = await email_log_repository.count_by_status(db, sender_id)
        stats: dict[str, int] = {status.lower(): counts.get(status, 0) for status in STAT_STATUSES}
        stats["total"] = sum(counts.values())
        return stats

    async def get_log(self, db: AsyncSession, log_id: UUID, sender_id: UUID) -> dict[str, Any]:
        log: EmailLog | None = await email_log_repository.get_by_id(db, log_id)
        if log is None or log.sender_id != sender_id:
            raise NotFoundError("Email log not found")
        return self.log_to_dict(log)


# 싱글턴 인스턴스 - Singleton instances
email_template_service: EmailTemplateService = EmailTemplateService()
email_sending_service: EmailSendingService = EmailSendingService()

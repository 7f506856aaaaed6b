"""알림 관련 SQLAlchemy ORM 모델 정의.

Notification SQLAlchemy ORM model definitions. Notifications are
delivered by polling: clients fetch the list and the unread count.

Tables:
    - notifications: 사용자 알림 (User notifications)
"""

import uuid
from datetime import datetime, timezone
from typing import Any
from sqlalchemy import JSON, String, Boolean, DateTime, ForeignKey, Index, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Notification(Base):
    """알림 모델 - 사용자에게 전달되는 시스템 알림.

    Notification Types (type 필드 값):
        - "RECORD_CREATED": 레코드 생성 (New record in an object you follow)
        - "TASK_ASSIGNED": 업무 배정 (Task assigned to you)
        - "TASK_STATUS_CHANGED": 업무 상태 변경 (Task moved to another column)
        - "TASK_DUE_SOON": 마감 임박 (Assigned task due within 24 hours)
        - "MENTION": 코멘트 멘션 (You were mentioned in a comment)
        - "WORKFLOW": 워크플로우 액션 (Created by a CREATE_NOTIFICATION action)

    Attributes:
        user_id: 수신자 FK (Recipient user foreign key)
        title: 알림 제목 (Short title)
        message: 알림 메시지 (Human-readable body)
        data: 참조 정보 JSON (e.g. ``{"task_id": ...}``, ``{"record_id": ...}``)
        is_read: 읽음 여부 (Unread by default)
        read_at: 읽은 시각 (Set when marked read)
    """

    __tablename__ = "notifications"

    # 알림 고유 식별자 - Notification unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 소속 조직 FK - Organization scope for multi-tenant isolation
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    # 수신자 FK - Target user who receives this notification
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    # 읽음 여부 - False=미읽음, True=읽음 (Unread by default)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # 생성 일시 - Notification creation timestamp (UTC, immutable)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "is_read"),
    )

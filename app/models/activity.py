"""활동 타임라인 SQLAlchemy ORM 모델.

Activity timeline model. Every record keeps a chronological feed of notes,
calls, stage changes, field updates, uploads and comments.

Tables:
    - activities: 레코드 활동 로그 (Per-record activity log)
"""

import uuid
from datetime import datetime, timezone
from typing import Any
from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Activity(Base):
    """활동 모델 - 레코드 타임라인 항목.

    Activity Types (type 필드 값):
        NOTE, CALL, EMAIL, MEETING, TASK, STAGE_CHANGED, FIELD_UPDATED,
        FILE_UPLOADED, COMMENT
    """

    __tablename__ = "activities"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    # 대상 레코드 FK - 레코드 삭제 시 함께 삭제 (CASCADE)
    record_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("records.id", ondelete="CASCADE"), nullable=True)
    user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    # "metadata" 컬럼 - stage 변경 전후 값, 변경된 필드 목록 등
    meta: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_activities_record_created", "record_id", "created_at"),
    )

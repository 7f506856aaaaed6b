"""리드 점수 SQLAlchemy ORM 모델.

Lead score model. One row per scored record; the latest total is also
copied to ``records.score`` so record lists can sort by it.

Tables:
    - lead_scores: 레코드별 최근 점수와 카테고리 내역 (Latest score and per-category breakdown)
"""

import uuid
from datetime import datetime, timezone
from typing import Any
from sqlalchemy import JSON, DateTime, Float, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class LeadScore(Base):
    """리드 점수 모델.

    Attributes:
        total_score: 0-100 정규화 점수 (Normalized 0-100 total)
        grade: "A" | "B" | "C" | "D" | "F"
        factors: 카테고리별 점수와 규칙 평가 내역 (Per-category score and rule details)
    """

    __tablename__ = "lead_scores"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    record_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("records.id", ondelete="CASCADE"), nullable=False, unique=True)
    total_score: Mapped[float] = mapped_column(Float, nullable=False)
    grade: Mapped[str] = mapped_column(String(1), nullable=False)
    factors: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    calculated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_lead_scores_org_grade", "organization_id", "grade"),
    )

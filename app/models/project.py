"""프로젝트 관련 SQLAlchemy ORM 모델 정의.

Project management models.

Tables:
    - projects: 프로젝트 (Projects with status, schedule, budget and progress)
    - project_members: 프로젝트 멤버 (Project membership with ADMIN/MEMBER/VIEWER/OWNER roles)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Project(Base):
    """프로젝트 모델.

    Project model. ``progress`` is the percentage of non-archived tasks in
    DONE, refreshed by the task service on every task change.

    Attributes:
        status: 상태 (PLANNING | ACTIVE | ON_HOLD | COMPLETED | CANCELLED)
        priority: 우선순위 (LOW | MEDIUM | HIGH | URGENT)
        record_id: 연결된 CRM 레코드 (Linked CRM record, e.g. a deal)
        team_ids: 팀 사용자 ID 목록 (Team user ids, JSON list of strings)
        time_estimate: 예상 소요 시간 분 (Estimated minutes)
        progress: 진행률 0-100 (Completion percentage)
    """

    __tablename__ = "projects"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="PLANNING")
    priority: Mapped[str] = mapped_column(String(20), default="MEDIUM")
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    record_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("records.id", ondelete="SET NULL"), nullable=True)
    team_ids: Mapped[list[str]] = mapped_column(JSON, default=list)
    budget: Mapped[float | None] = mapped_column(Float, nullable=True)
    time_estimate: Mapped[int | None] = mapped_column(Integer, nullable=True)
    color: Mapped[str | None] = mapped_column(String(7), nullable=True)
    emoji: Mapped[str | None] = mapped_column(String(10), nullable=True)
    progress: Mapped[int] = mapped_column(Integer, default=0)
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False)
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))


class ProjectMember(Base):
    """프로젝트 멤버 모델.

    Constraints:
        uq_project_member: 프로젝트당 사용자 1회 (One membership per user per project)
    """

    __tablename__ = "project_members"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    # 멤버 역할 - OWNER | ADMIN | MEMBER | VIEWER
    role: Mapped[str] = mapped_column(String(20), default="MEMBER")
    joined_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_project_member"),
    )

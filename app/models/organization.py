"""조직(테넌트) SQLAlchemy ORM 모델 정의.

Organization (tenant) SQLAlchemy ORM model definition.
Every CRM row (objects, records, projects, tasks, ...) is scoped by
``organization_id`` for multi-tenant isolation.

Tables:
    - organizations: 최상위 테넌트 (Top-level tenant / workspace)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, Boolean, DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Organization(Base):
    """조직(테넌트) 모델 - 시스템의 최상위 엔티티.

    Organization (tenant) model. A user registering with a new email gets
    a fresh organization (workspace) and becomes its owner.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        name: 조직 이름 (Workspace name)
        is_active: 활성 상태 (Active status flag)
        created_at: 생성 일시 UTC (Creation timestamp in UTC)
        updated_at: 수정 일시 UTC (Last update timestamp in UTC)

    Relationships:
        roles: 조직 내 역할 목록 (Roles in this org, cascade delete)
        users: 조직 내 사용자 목록 (Users in this org, cascade delete)
    """

    __tablename__ = "organizations"

    # 조직 고유 식별자 - Organization unique identifier (UUID v4, auto-generated)
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 조직 이름 - Workspace display name
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # 활성 상태 - Whether the organization is active (soft-delete pattern)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    # 생성 일시 - Record creation timestamp (UTC)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    # 수정 일시 - Last modification timestamp (UTC, auto-updated)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # 관계 - Relationships (cascade: 조직 삭제 시 하위 데이터 일괄 삭제)
    roles = relationship("Role", back_populates="organization", cascade="all, delete-orphan")
    users = relationship("User", back_populates="organization", cascade="all, delete-orphan")

"""사용자 및 역할 관련 SQLAlchemy ORM 모델 정의.

User and Role SQLAlchemy ORM model definitions.
Implements role-based access control (RBAC) with hierarchical levels
within each organization.

Tables:
    - roles: 조직 내 역할 (Roles within an organization, level-based hierarchy)
    - users: 사용자 계정 (User accounts, email is the login identifier)
"""

import uuid
from datetime import datetime, timezone
from typing import Any
from sqlalchemy import JSON, String, Boolean, DateTime, Integer, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

# 기본 역할 계층 - Default role hierarchy created for every new organization
DEFAULT_ROLES: list[tuple[str, int]] = [
    ("owner", 1),
    ("admin", 2),
    ("member", 3),
]


class Role(Base):
    """역할 모델 - 조직 내 권한 수준을 정의.

    Role model. Lower level numbers indicate higher authority:
        1 = owner, 2 = admin, 3 = member

    Constraints:
        uq_role_org_name: 조직 내 역할 이름 고유 (Unique role name per org)
        uq_role_org_level: 조직 내 역할 레벨 고유 (Unique role level per org)
    """

    __tablename__ = "roles"

    # 역할 고유 식별자 - Role unique identifier
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 소속 조직 FK - Parent organization (CASCADE)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    # 역할 이름 - Role name ("owner", "admin", "member")
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    # 권한 레벨 - Permission level (1=owner 최고 권한, 3=member)
    level: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("organization_id", "name", name="uq_role_org_name"),
        UniqueConstraint("organization_id", "level", name="uq_role_org_level"),
    )

    # 관계 - Relationships
    organization = relationship("Organization", back_populates="roles")
    users = relationship("User", back_populates="role")


class User(Base):
    """사용자 모델 - 시스템 사용자 계정 정보.

    User model. Email is globally unique and used for both password and
    email-code sign-in. ``password_hash`` is empty for accounts created
    through the email code flow until a password is set.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        organization_id: 소속 조직 FK (Parent organization foreign key)
        role_id: 역할 FK (Assigned role foreign key)
        email: 로그인 이메일, 소문자 (Login email, lowercased)
        name: 표시 이름 (Display name)
        password_hash: bcrypt 해시 (bcrypt hash, nullable)
        avatar: 아바타 URL (Avatar URL)
        preferences: 사용자 환경설정 JSON (UI preferences)
        is_active: 활성 상태 (Active status, soft-delete pattern)
        last_login_at: 마지막 로그인 (Last successful sign-in)
    """

    __tablename__ = "users"

    # 사용자 고유 식별자 - User unique identifier
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # 소속 조직 FK - Parent organization (CASCADE: 조직 삭제 시 사용자도 삭제)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    # 역할 FK - Assigned role
    role_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("roles.id"), nullable=False)
    # 로그인 이메일 - Globally unique login email
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    # 표시 이름 - Display name
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    # 비밀번호 해시 - bcrypt hashed password (평문 저장 금지, never store plaintext)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    avatar: Mapped[str | None] = mapped_column(String(500), nullable=True)
    preferences: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    # 활성 상태 - Whether the user account is active
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # 관계 - Relationships
    organization = relationship("Organization", back_populates="users")
    role = relationship("Role", back_populates="users")

"""CRM 메타데이터 모델 - 오브젝트, 필드, 레코드, 관계.

Metadata-driven CRM model (simplified EAV / low-code schema).

Tables:
    - crm_objects: 사용자 정의 엔티티 타입 (User-definable entity types, e.g. "contacts")
    - fields: 오브젝트의 타입 속성 정의 (Typed attribute definitions on an object)
    - records: 오브젝트의 데이터 행, data JSON에 값 저장 (Rows with an open ``data`` map)
    - relations: 레코드 간 타입 관계 (Typed edges between records)
"""

import uuid
from datetime import datetime, timezone
from typing import Any
from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Index, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class CrmObject(Base):
    """오브젝트 모델 - 사용자 정의 엔티티 타입.

    CRM object: a user-definable entity type ("contacts", "deals", ...).
    SYSTEM objects are seeded and cannot be deleted or renamed.

    Attributes:
        name: 소문자 snake_case 식별자, 조직 내 고유 (Lowercase identifier, unique per org)
        display_name: 표시 이름 (Display label)
        type: "SYSTEM" | "CUSTOM"
        icon: 아이콘 (Emoji or short icon code)
        color: #RRGGBB 색상 (Hex color)
        settings: 오브젝트 설정 JSON (Free-form settings)
        schema: 필드 정의 요약 JSON (Derived field summary, rebuilt on field changes)
        position: 정렬 순서 (Display order)
        is_archived: 보관 여부 (Soft-delete flag)
    """

    __tablename__ = "crm_objects"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    # 오브젝트 유형 - "SYSTEM" (시드됨) | "CUSTOM" (사용자 생성)
    type: Mapped[str] = mapped_column(String(20), default="CUSTOM")
    icon: Mapped[str | None] = mapped_column(String(10), nullable=True)
    color: Mapped[str | None] = mapped_column(String(7), nullable=True)
    settings: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    schema: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    position: Mapped[int] = mapped_column(Integer, default=0)
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("organization_id", "name", name="uq_crm_object_org_name"),
    )

    # 필드 목록 - position 순 (Fields ordered by position)
    fields = relationship(
        "Field",
        back_populates="object",
        order_by="Field.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Field(Base):
    """필드 정의 모델.

    Typed attribute definition attached to an object. ``config`` carries
    type-specific settings (select options, related object, formula, limits).

    Constraints:
        uq_field_object_name: 오브젝트 내 필드 이름 고유 (Unique name within object)
    """

    __tablename__ = "fields"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    # 소속 오브젝트 FK - Parent object (CASCADE)
    object_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("crm_objects.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    # 필드 유형 - TEXT, EMAIL, SELECT, RELATION, FORMULA 등 (see FIELD_TYPES in schemas.crm)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    config: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    is_required: Mapped[bool] = mapped_column(Boolean, default=False)
    is_unique: Mapped[bool] = mapped_column(Boolean, default=False)
    # 시스템 필드 - 수정/삭제 불가 (System fields cannot be modified or deleted)
    is_system: Mapped[bool] = mapped_column(Boolean, default=False)
    default_value: Mapped[Any | None] = mapped_column(JSON, nullable=True)
    position: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("object_id", "name", name="uq_field_object_name"),
    )

    object = relationship("CrmObject", back_populates="fields")


class Record(Base):
    """레코드 모델 - 오브젝트의 데이터 한 행.

    One row of an object. Values live in ``data`` keyed by field name.
    """

    __tablename__ = "records"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    object_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("crm_objects.id", ondelete="CASCADE"), nullable=False)
    # 필드 이름 → 값 맵 (Field name → value map)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    # 파이프라인 단계 - Pipeline stage id (e.g. "qualified")
    stage: Mapped[str | None] = mapped_column(String(100), nullable=True)
    score: Mapped[float | None] = mapped_column(Float, nullable=True)
    owner_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_records_org_object", "organization_id", "object_id"),
        Index("ix_records_stage", "stage"),
    )


class Relation(Base):
    """레코드 관계 모델.

    Typed edge between two records, e.g. a contact's "company".

    Constraints:
        uq_relation_from_to_type: (from, to, type) 중복 불가 (No duplicate edges)
    """

    __tablename__ = "relations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    from_record_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("records.id", ondelete="CASCADE"), nullable=False)
    to_record_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("records.id", ondelete="CASCADE"), nullable=False)
    relation_type: Mapped[str] = mapped_column(String(50), nullable=False)
    # "metadata"는 DeclarativeBase 예약어 - Python 속성은 meta, 컬럼명은 metadata
    meta: Mapped[dict[str, Any]] = mapped_column("metadata", JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("from_record_id", "to_record_id", "relation_type", name="uq_relation_from_to_type"),
    )

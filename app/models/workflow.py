"""워크플로우(자동화) SQLAlchemy ORM 모델.

Workflow automation models.

Tables:
    - workflows: 트리거 + 조건 + 액션 정의 (Trigger, conditions and ordered actions)
    - workflow_executions: 실행 이력 (Execution log with per-action results)
"""

import uuid
from datetime import datetime, timezone
from typing import Any
from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Workflow(Base):
    """워크플로우 모델 - 오브젝트 이벤트에 반응하는 자동화 규칙.

    Workflow model: an automation rule bound to one object and one trigger.

    Attributes:
        trigger: 트리거 유형 (RECORD_CREATED | RECORD_UPDATED | RECORD_DELETED |
                 FIELD_CHANGED | STAGE_CHANGED | TIME_BASED)
        trigger_config: 트리거 설정 (e.g. ``{"field": "email"}`` for FIELD_CHANGED)
        conditions: 조건 목록 ``[{field, operator, value, logic}]``
        actions: 액션 목록 ``[{id, type, name, config, order}]``
        is_active: 활성 여부, 기본 비활성 (Inactive until toggled on)
        run_count: 실행 횟수 (Number of executions that ran actions)
    """

    __tablename__ = "workflows"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    object_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("crm_objects.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    trigger: Mapped[str] = mapped_column(String(30), nullable=False)
    trigger_config: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    conditions: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    actions: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, default=False)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    run_count: Mapped[int] = mapped_column(Integer, default=0)
    last_run_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_workflows_object_trigger", "object_id", "trigger"),
    )


class WorkflowExecution(Base):
    """워크플로우 실행 이력 모델.

    Status: RUNNING -> SUCCESS | PARTIAL | FAILED
    """

    __tablename__ = "workflow_executions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    workflow_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("workflows.id", ondelete="CASCADE"), nullable=False)
    # 레코드 FK 없음 - RECORD_DELETED 실행 이력은 레코드 삭제 후에도 남음
    record_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    trigger: Mapped[str] = mapped_column(String(30), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="RUNNING")
    result: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

"""워크플로우 서비스 - 자동화 CRUD, 실행 이력, 테스트 실행, 에디터 메타데이터.

Workflow Service - Workflow CRUD, toggling and duplication, execution
history, test runs against a record, the editor graph and the metadata
(triggers, actions, operators, variables) the editor offers.
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.crm import CrmObject, Record
from app.models.user import User
from app.models.workflow import Workflow, WorkflowExecution
from app.repositories.object_repository import object_repository
from app.repositories.record_repository import record_repository
from app.repositories.workflow_repository import workflow_execution_repository, workflow_repository
from app.schemas.workflow import WorkflowCreate, WorkflowGraph, WorkflowUpdate
from app.services import workflow_graph
from app.services.record_service import record_service
from app.services.workflow_engine import workflow_engine
from app.utils.exceptions import NotFoundError
from app.utils.pagination import build_page

logger = logging.getLogger(__name__)

TRIGGERS: list[dict[str, str]] = [
    {"value": "RECORD_CREATED", "label": "Record Created", "description": "When a new record is created", "icon": "plus-circle"},
    {"value": "RECORD_UPDATED", "label": "Record Updated", "description": "When a record is updated", "icon": "edit"},
    {"value": "RECORD_DELETED", "label": "Record Deleted", "description": "When a record is deleted", "icon": "trash"},
    {"value": "FIELD_CHANGED", "label": "Field Changed", "description": "When a specific field changes", "icon": "refresh-cw"},
    {"value": "STAGE_CHANGED", "label": "Stage Changed", "description": "When a record moves to another stage", "icon": "git-branch"},
    {"value": "TIME_BASED", "label": "Scheduled", "description": "At a scheduled time", "icon": "clock"},
]

_TEXT: list[str] = ["text", "email", "url", "phone"]
_NUMERIC: list[str] = ["number", "currency", "percent", "date"]

OPERATORS: list[dict[str, Any]] = [
    {"value": "equals", "label": "Equals", "types": ["all"]},
    {"value": "not_equals", "label": "Does not equal", "types": ["all"]},
    {"value": "contains", "label": "Contains", "types": _TEXT},
    {"value": "not_contains", "label": "Does not contain", "types": _TEXT},
    {"value": "starts_with", "label": "Starts with", "types": _TEXT},
    {"value": "ends_with", "label": "Ends with", "types": _TEXT},
    {"value": "greater_than", "label": "Greater than", "types": _NUMERIC},
    {"value": "less_than", "label": "Less than", "types": _NUMERIC},
    {"value": "greater_or_equal", "label": "Greater or equal", "types": _NUMERIC},
    {"value": "less_or_equal", "label": "Less or equal", "types": _NUMERIC},
    {"value": "is_empty", "label": "Is empty", "types": ["all"]},
    {"value": "is_not_empty", "label": "Is not empty", "types": ["all"]},
    {"value": "in", "label": "Is one of", "types": ["select", "multi_select"]},
    {"value": "not_in", "label": "Is not one of", "types": ["select", "multi_select"]},
]


def _prop(prop_type: str, label: str, required: bool = False, **extra: Any) -> dict[str, Any]:
    return {"type": prop_type, "label": label, "required": required, **extra}


ACTIONS: list[dict[str, Any]] = [
    {
        "type": "SEND_EMAIL",
        "name": "Send Email",
        "description": "Send an email from a template",
        "config_schema": {
            "template_id": _prop("string", "Email template", True),
            "to": _prop("string", "Recipient", True),
            "cc": _prop("string", "CC"),
            "data": _prop("object", "Template data"),
        },
    },
    {
        "type": "SEND_TELEGRAM",
        "name": "Send Telegram",
        "description": "Send a Telegram message",
        "config_schema": {
            "chat_id": _prop("string", "Chat ID", True),
            "message": _prop("text", "Message", True),
            "parse_mode": _prop("select", "Parse mode", options=["HTML", "Markdown"]),
        },
    },
    {
        "type": "CREATE_TASK",
        "name": "Create Task",
        "description": "Create a task linked to the record",
        "config_schema": {
            "title": _prop("string", "Title", True),
            "description": _prop("text", "Description"),
            "assignee_id": _prop("user", "Assignee"),
            "priority": _prop("select", "Priority", options=["LOW", "MEDIUM", "HIGH", "URGENT"]),
            "due_in_days": _prop("number", "Due in days"),
        },
    },
    {
        "type": "CREATE_NOTIFICATION",
        "name": "Create Notification",
        "description": "Notify a user in the app",
        "config_schema": {
            "user_id": _prop("user", "User", True),
            "title": _prop("string", "Title", True),
            "message": _prop("text", "Message", True),
            "type": _prop("select", "Type", options=["info", "success", "warning", "error"]),
        },
    },
    {
        "type": "UPDATE_FIELD",
        "name": "Update Field",
        "description": "Set a field on the record",
        "config_schema": {
            "field": _prop("field", "Field", True),
            "value": _prop("string", "Value", True),
        },
    },
    {
        "type": "WEBHOOK",
        "name": "Call Webhook",
        "description": "Send an HTTP request",
        "config_schema": {
            "url": _prop("string", "URL", True),
            "method": _prop("select", "Method", options=["GET", "POST", "PUT", "PATCH"]),
            "headers": _prop("object", "Headers"),
            "body": _prop("object", "Body"),
        },
    },
    {
        "type": "DELAY",
        "name": "Delay",
        "description": "Wait before the next action",
        "config_schema": {
            "duration": _prop("number", "Duration", True),
            "unit": _prop("select", "Unit", options=["minutes", "hours", "days"]),
        },
    },
]

COMMON_VARIABLES: list[dict[str, str]] = [
    {"key": "{{record.id}}", "label": "Record ID"},
    {"key": "{{record.<field>}}", "label": "Record field value"},
    {"key": "{{record.owner_id}}", "label": "Record owner ID"},
    {"key": "{{object.name}}", "label": "Object name"},
    {"key": "{{object.display_name}}", "label": "Object display name"},
    {"key": "{{user.id}}", "label": "Current user ID"},
    {"key": "{{user.email}}", "label": "Current user email"},
    {"key": "{{user.name}}", "label": "Current user name"},
    {"key": "{{now}}", "label": "Current date and time"},
    {"key": "{{now.date}}", "label": "Current date"},
    {"key": "{{now.time}}", "label": "Current time"},
]

TRIGGER_VARIABLES: dict[str, list[dict[str, str]]] = {
    "RECORD_UPDATED": [
        {"key": "{{changes}}", "label": "Changed fields"},
        {"key": "{{changes.<field>.old}}", "label": "Previous value"},
        {"key": "{{changes.<field>.new}}", "label": "New value"},
    ],
    "FIELD_CHANGED": [
        {"key": "{{field.name}}", "label": "Changed field name"},
        {"key": "{{field.old}}", "label": "Previous value"},
        {"key": "{{field.new}}", "label": "New value"},
    ],
    "STAGE_CHANGED": [
        {"key": "{{stage.old}}", "label": "Previous stage"},
        {"key": "{{stage.new}}", "label": "New stage"},
    ],
    "TIME_BASED": [
        {"key": "{{schedule.time}}", "label": "Scheduled time"},
        {"key": "{{schedule.day}}", "label": "Scheduled day"},
    ],
}


class WorkflowService:
    """워크플로우 비즈니스 로직 (Workflow business logic)."""

    def to_dict(self, workflow: Workflow) -> dict[str, Any]:
        return {
            "id": str(workflow.id),
            "name": workflow.name,
            "description": workflow.description,
            "object_id": str(workflow.object_id),
            "trigger": workflow.trigger,
            "trigger_config": workflow.trigger_config or {},
            "conditions": workflow.conditions or [],
            "actions": workflow.actions or [],
            "is_active": workflow.is_active,
            "created_by": str(workflow.created_by) if workflow.created_by else None,
            "run_count": workflow.run_count,
            "last_run_at": workflow.last_run_at,
            "created_at": workflow.created_at,
            "updated_at": workflow.updated_at,
        }

    def execution_to_dict(self, execution: WorkflowExecution) -> dict[str, Any]:
        return {
            "id": str(execution.id),
            "workflow_id": str(execution.workflow_id),
            "record_id": str(execution.record_id) if execution.record_id else None,
            "trigger": execution.trigger,
            "status": execution.status,
            "result": execution.result or {},
            "error": execution.error,
            "started_at": execution.started_at,
            "completed_at": execution.completed_at,
        }

    async def _get(self, db: AsyncSession, workflow_id: UUID, organization_id: UUID) -> Workflow:
        workflow: Workflow | None = await workflow_repository.get_by_id(db, workflow_id, organization_id)
        if workflow is None:
            raise NotFoundError("Workflow not found")
        return workflow

    async def create_workflow(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID,
        data: WorkflowCreate,
    ) -> dict[str, Any]:
        """워크플로우를 생성합니다.

        Raises:
            NotFoundError: 오브젝트가 없을 때 (Object not found)
        """
        if await object_repository.get_by_id(db, data.object_id, organization_id) is None:
            raise NotFoundError("Object not found")
        workflow: Workflow = await workflow_repository.create(
            db,
            {
                "organization_id": organization_id,
                "created_by": user_id,
                **data.model_dump(mode="json", exclude={"object_id"}),
                "object_id": data.object_id,
            },
        )
        logger.info("Workflow created", extra={"workflow_id": str(workflow.id), "trigger": workflow.trigger})
        return self.to_dict(workflow)

    async def list_workflows(
        self,
        db: AsyncSession,
        organization_id: UUID,
        object_id: UUID | None = None,
        is_active: bool | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 50,
    ) -> dict[str, Any]:
        workflows, total = await workflow_repository.get_list(
            db, organization_id, object_id, is_active, search, page, limit
        )
        return build_page([self.to_dict(workflow) for workflow in workflows], total, page, limit)

    async def get_workflow(self, db: AsyncSession, workflow_id: UUID, organization_id: UUID) -> dict[str, Any]:
        return self.to_dict(await self._get(db, workflow_id, organization_id))

    async def update_workflow(
        self,
        db: AsyncSession,
        workflow_id: UUID,
        organization_id: UUID,
        data: WorkflowUpdate,
    ) -> dict[str, Any]:
        workflow: Workflow = await self._get(db, workflow_id, organization_id)
        for key, value in data.model_dump(mode="json", exclude_unset=True).items():
            if value is None and key != "description":
                continue
            setattr(workflow, key, value)
        await db.flush()
        await db.refresh(workflow)
        return self.to_dict(workflow)

    async def delete_workflow(self, db: AsyncSession, workflow_id: UUID, organization_id: UUID) -> None:
        if not await workflow_repository.delete(db, workflow_id, organization_id):
            raise NotFoundError("Workflow not found")

    async def toggle_workflow(self, db: AsyncSession, workflow_id: UUID, organization_id: UUID) -> dict[str, Any]:
        """활성/비활성 전환 (Flip is_active)."""
        workflow: Workflow = await self._get(db, workflow_id, organization_id)
        workflow.is_active = not workflow.is_active
        await db.flush()
        await db.refresh(workflow)
        logger.info("Workflow toggled", extra={"workflow_id": str(workflow.id), "is_active": workflow.is_active})
        return self.to_dict(workflow)

    async def duplicate_workflow(
        self,
        db: AsyncSession,
        workflow_id: UUID,
        organization_id: UUID,
        user_id: UUID,
    ) -> dict[str, Any]:
        """복제 - 이름 + " (Copy)", 비활성 (The copy starts inactive)."""
        original: Workflow = await self._get(db, workflow_id, organization_id)
        copy: Workflow = await workflow_repository.create(
            db,
            {
                "organization_id": organization_id,
                "object_id": original.object_id,
                "name": f"{original.name} (Copy)",
                "description": original.description,
                "trigger": original.trigger,
                "trigger_config": dict(original.trigger_config or {}),
                "conditions": list(original.conditions or []),
                "actions": list(original.actions or []),
                "is_active": False,
                "created_by": user_id,
            },
        )
        return self.to_dict(copy)

    async def list_executions(
        self,
        db: AsyncSession,
        workflow_id: UUID,
        organization_id: UUID,
        page: int = 1,
        limit: int = 20,
    ) -> dict[str, Any]:
        await self._get(db, workflow_id, organization_id)
        executions, total = await workflow_execution_repository.get_for_workflow(db, workflow_id, page, limit)
        return build_page([self.execution_to_dict(e) for e in executions], total, page, limit)

    async def test_workflow(
        self,
        db: AsyncSession,
        workflow_id: UUID,
        organization_id: UUID,
        user: User,
        record_id: UUID,
    ) -> dict[str, Any]:
        """레코드를 대상으로 워크플로우를 즉시 실행합니다 (활성 여부 무관).

        Run the workflow once against a record, whether or not it is active.

        Raises:
            NotFoundError: 워크플로우 또는 레코드 없음
        """
        workflow: Workflow = await self._get(db, workflow_id, organization_id)
        record: Record | None = await record_repository.get_by_id(db, record_id, organization_id)
        if record is None:
            raise NotFoundError("Record not found")
        obj: CrmObject | None = await object_repository.get_by_id(db, record.object_id)
        if obj is None:
            raise NotFoundError("Object not found")

        context: dict[str, Any] = record_service.build_context(workflow.trigger, record, obj, user)
        return await workflow_engine.execute_workflow(db, workflow, context)

    async def get_graph(self, db: AsyncSession, workflow_id: UUID, organization_id: UUID) -> dict[str, Any]:
        workflow: Workflow = await self._get(db, workflow_id, organization_id)
        obj: CrmObject | None = await object_repository.get_by_id(db, workflow.object_id)
        return workflow_graph.deserialize(
            workflow.trigger,
            workflow.conditions or [],
            workflow.actions or [],
            object_id=str(workflow.object_id),
            object_name=obj.display_name if obj else None,
        )

    async def put_graph(
        self,
        db: AsyncSession,
        workflow_id: UUID,
        organization_id: UUID,
        graph: WorkflowGraph,
    ) -> dict[str, Any]:
        """에디터 그래프를 저장 정의로 변환하여 저장합니다 (Save the editor graph)."""
        workflow: Workflow = await self._get(db, workflow_id, organization_id)
        definition: dict[str, Any] = workflow_graph.serialize(graph.model_dump()["nodes"])
        workflow.trigger = definition["trigger"]
        workflow.conditions = definition["conditions"]
        workflow.actions = definition["actions"]
        await db.flush()
        await db.refresh(workflow)
        return self.to_dict(workflow)

    def get_triggers(self) -> list[dict[str, str]]:
        return TRIGGERS

    def get_actions(self) -> list[dict[str, Any]]:
        return ACTIONS

    def get_operators(self) -> list[dict[str, Any]]:
        return OPERATORS

    def get_variables(self, trigger: str) -> list[dict[str, str]]:
        """트리거에서 사용 가능한 {{변수}} 목록 (Variables available to a trigger)."""
        return COMMON_VARIABLES + TRIGGER_VARIABLES.get(trigger, [])


# 싱글턴 인스턴스 - Singleton instance
workflow_service: WorkflowService = WorkflowService()

"""워크플로우 실행 엔진 - 조건 평가, 변수 치환, 액션 실행.

Workflow Engine - Runs the active workflows of an object for a trigger.

Trigger context (plain dict)::

    {
        "trigger": "RECORD_UPDATED",
        "record": {"id", "owner_id", "stage", "created_at", "updated_at", "data": {...}},
        "object": {"id", "name", "display_name"},
        "user": {"id", "email", "name"},
        "changes": {"field": {"old": ..., "new": ...}},   # RECORD_UPDATED
        "field": {"name", "old", "new"},                  # FIELD_CHANGED
        "stage": {"old", "new"},                          # STAGE_CHANGED
    }

Conditions are evaluated left to right; action failures are recorded
per action and never abort the remaining actions.
"""

import logging
import math
import time
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import httpx
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.crm import Record
from app.models.task import Task
from app.models.workflow import Workflow, WorkflowExecution
from app.repositories.record_repository import record_repository
from app.repositories.task_repository import task_repository
from app.repositories.workflow_repository import workflow_execution_repository, workflow_repository
from app.services.email_service import email_sending_service
from app.services.notification_service import notification_service
from app.utils.template import render

logger = logging.getLogger(__name__)

TELEGRAM_API_URL: str = "https://api.telegram.org/bot{token}/sendMessage"

DELAY_UNIT_MS: dict[str, int] = {
    "minutes": 60 * 1000,
    "hours": 60 * 60 * 1000,
    "days": 24 * 60 * 60 * 1000,
}

_MISSING = object()


class ActionError(Exception):
    """액션 실행 실패 (A single action failed; recorded on the execution)."""


# === 경로 조회 및 조건 평가 (Path lookup and condition evaluation) ===

def get_path(context: dict[str, Any], path: str) -> Any:
    """점(.) 경로로 컨텍스트 값을 조회합니다. 없으면 None.

    ``record.<key>`` falls back to ``record.data[<key>]`` so that data
    fields can be referenced without the ``data`` segment.
    """
    parts: list[str] = path.split(".")
    if parts[0] == "record" and len(parts) > 1:
        record: dict[str, Any] = context.get("record") or {}
        data: dict[str, Any] = record.get("data") or {}
        key: str = ".".join(parts[1:])
        if key not in record and key in data:
            return data[key]

    current: Any = context
    for part in parts:
        if isinstance(current, dict):
            current = current.get(part, _MISSING)
        else:
            return None
        if current is _MISSING or current is None:
            return None
    return current


def _to_number(value: Any) -> float:
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _text(value: Any) -> str:
    return "" if value is None else str(value).lower()


def evaluate_condition(value: Any, operator: str, expected: Any) -> bool:
    """단일 조건을 평가합니다 (Evaluate one operator against a value)."""
    if operator == "equals":
        return value == expected
    if operator == "not_equals":
        return value != expected
    if operator == "contains":
        return _text(expected) in _text(value)
    if operator == "not_contains":
        return _text(expected) not in _text(value)
    if operator == "starts_with":
        return _text(value).startswith(_text(expected))
    if operator == "ends_with":
        return _text(value).endswith(_text(expected))
    if operator == "greater_than":
        return _to_number(value) > _to_number(expected)
    if operator == "less_than":
        return _to_number(value) < _to_number(expected)
    if operator == "greater_or_equal":
        return _to_number(value) >= _to_number(expected)
    if operator == "less_or_equal":
        return _to_number(value) <= _to_number(expected)
    if operator == "is_empty":
        return value is None or value == ""
    if operator == "is_not_empty":
        return value is not None and value != ""
    if operator == "in":
        return isinstance(expected, list) and value in expected
    if operator == "not_in":
        return isinstance(expected, list) and value not in expected
    return False


def evaluate_conditions(conditions: list[dict[str, Any]], context: dict[str, Any]) -> bool:
    """조건 목록을 왼쪽부터 평가합니다.

    The first condition sets the result; each later one is combined with
    OR when its ``logic`` is "OR", otherwise with AND. No conditions → True.
    """
    result: bool = True
    for index, condition in enumerate(conditions or []):
        outcome: bool = evaluate_condition(
            get_path(context, condition.get("field", "")),
            condition.get("operator", ""),
            condition.get("value"),
        )
        if index == 0:
            result = outcome
        elif condition.get("logic") == "OR":
            result = result or outcome
        else:
            result = result and outcome
    return result


# === 변수 치환 (Variable resolution) ===

def build_variable_map(context: dict[str, Any], now: datetime | None = None) -> dict[str, Any]:
    """자주 쓰는 {{변수}}의 평면 맵을 만듭니다 (Flat map of common variables)."""
    now = now or datetime.now(timezone.utc)
    record: dict[str, Any] = context.get("record") or {}
    obj: dict[str, Any] = context.get("object") or {}
    user: dict[str, Any] = context.get("user") or {}

    variables: dict[str, Any] = {
        "record.id": record.get("id"),
        "record.owner_id": record.get("owner_id"),
        "record.stage": record.get("stage"),
        "record.created_at": record.get("created_at"),
        "record.updated_at": record.get("updated_at"),
        "object.id": obj.get("id"),
        "object.name": obj.get("name"),
        "object.display_name": obj.get("display_name"),
        "user.id": user.get("id"),
        "user.email": user.get("email"),
        "user.name": user.get("name") or "",
        "trigger.type": context.get("trigger"),
        "now": now.isoformat(),
        "now.date": now.date().isoformat(),
        "now.time": now.strftime("%H:%M:%S"),
    }
    for key, value in (record.get("data") or {}).items():
        variables[f"record.{key}"] = value
    for name, change in (context.get("changes") or {}).items():
        variables[f"changes.{name}.old"] = change.get("old")
        variables[f"changes.{name}.new"] = change.get("new")
    if context.get("field"):
        field: dict[str, Any] = context["field"]
        variables.update({"field.name": field.get("name"), "field.old": field.get("old"), "field.new": field.get("new")})
    if context.get("stage"):
        stage: dict[str, Any] = context["stage"]
        variables.update({"stage.old": stage.get("old"), "stage.new": stage.get("new")})
    return variables


def resolve_string(template: str, context: dict[str, Any], variables: dict[str, Any]) -> str:
    """문자열의 {{path}}를 치환합니다. 해석 불가 변수는 원문 유지.

    Variables resolve from the flat map first, then as dotted paths into the
    context; unresolved ones are left as written.
    """

    def _resolve(path: str) -> Any:
        if variables.get(path) is not None:
            return variables[path]
        return get_path(context, path)

    return render(template, _resolve)


def resolve_variables(config: Any, context: dict[str, Any], variables: dict[str, Any] | None = None) -> Any:
    """액션 config 전체(중첩 dict/list 포함)에 변수 치환을 적용합니다."""
    if variables is None:
        variables = build_variable_map(context)
    if isinstance(config, str):
        return resolve_string(config, context, variables)
    if isinstance(config, dict):
        return {key: resolve_variables(value, context, variables) for key, value in config.items()}
    if isinstance(config, list):
        return [resolve_variables(item, context, variables) for item in config]
    return config


def _as_uuid(value: Any) -> UUID | None:
    if value in (None, ""):
        return None
    try:
        return value if isinstance(value, UUID) else UUID(str(value))
    except ValueError as exc:
        raise ActionError(f"Invalid id: {value}") from exc


# === 엔진 (Engine) ===

class WorkflowEngine:
    """워크플로우 실행 엔진.

    Workflow execution engine. All work happens in the caller's session;
    the caller commits.
    """

    async def execute_trigger(
        self,
        db: AsyncSession,
        organization_id: UUID,
        context: dict[str, Any],
    ) -> list[dict[str, Any]]:
        """(오브젝트, 트리거)에 해당하는 활성 워크플로우를 순서대로 실행합니다.

        Run every active workflow for the context's object and trigger.

        Returns:
            list[dict]: 워크플로우별 실행 결과 (One result per workflow)
        """
        workflows: list[Workflow] = await workflow_repository.get_active_for_trigger(
            db, organization_id, UUID(str(context["object"]["id"])), context["trigger"]
        )
        if not workflows:
            return []

        trigger_field: str | None = (context.get("field") or {}).get("name")
        results: list[dict[str, Any]] = []
        for workflow in workflows:
            # FIELD_CHANGED는 trigger_config.field가 지정되면 해당 필드에만 반응
            watched: str | None = (workflow.trigger_config or {}).get("field")
            if context["trigger"] == "FIELD_CHANGED" and watched and watched != trigger_field:
                continue
            results.append(await self.execute_workflow(db, workflow, context))
        return results

    async def execute_workflow(
        self,
        db: AsyncSession,
        workflow: Workflow,
        context: dict[str, Any],
    ) -> dict[str, Any]:
        """단일 워크플로우 실행 - 조건 확인 후 액션을 order 순으로 실행.

        Returns:
            dict: {"workflow_id", "status", "actions_executed", "results"}
        """
        started: float = time.monotonic()
        record_id: UUID | None = _as_uuid((context.get("record") or {}).get("id"))
        logger.info("Executing workflow", extra={"workflow_id": str(workflow.id), "record_id": str(record_id)})

        if not evaluate_conditions(workflow.conditions or [], context):
            await workflow_execution_repository.create(
                db,
                {
                    "organization_id": workflow.organization_id,
                    "workflow_id": workflow.id,
                    "record_id": record_id,
                    "trigger": context["trigger"],
                    "status": "SUCCESS",
                    "result": {"skipped": True, "reason": "Conditions not met"},
                    "completed_at": datetime.now(timezone.utc),
                },
            )
            logger.info("Workflow conditions not met", extra={"workflow_id": str(workflow.id)})
            return {"workflow_id": str(workflow.id), "status": "SUCCESS", "actions_executed": 0, "results": []}

        execution: WorkflowExecution = await workflow_execution_repository.create(
            db,
            {
                "organization_id": workflow.organization_id,
                "workflow_id": workflow.id,
                "record_id": record_id,
                "trigger": context["trigger"],
                "status": "RUNNING",
            },
        )

        results: list[dict[str, Any]] = []
        actions: list[dict[str, Any]] = sorted(workflow.actions or [], key=lambda action: action.get("order", 0))
        for action in actions:
            try:
                # 액션마다 savepoint (A failed flush rolls back only its own action)
                async with db.begin_nested():
                    outcome: Any = await self.execute_action(db, workflow, action, context)
                results.append(
                    {
                        "action_id": action.get("id"),
                        "action_type": action.get("type"),
                        "success": True,
                        "result": jsonable_encoder(outcome),
                        "error": None,
                    }
                )
            except Exception as exc:
                results.append(
                    {
                        "action_id": action.get("id"),
                        "action_type": action.get("type"),
                        "success": False,
                        "result": None,
                        "error": str(exc),
                    }
                )
                logger.error(
                    "Workflow action failed",
                    extra={"workflow_id": str(workflow.id), "action_id": action.get("id"), "error": str(exc)},
                )

        failures: list[str] = [result["error"] for result in results if not result["success"]]
        if not failures:
            status: str = "SUCCESS"
        elif len(failures) < len(results):
            status = "PARTIAL"
        else:
            status = "FAILED"

        duration_ms: int = int((time.monotonic() - started) * 1000)
        now: datetime = datetime.now(timezone.utc)
        execution.status = status
        execution.result = {"duration_ms": duration_ms, "actions_executed": len(results), "results": results}
        execution.error = "; ".join(failures) if failures else None
        execution.completed_at = now
        workflow.run_count = (workflow.run_count or 0) + 1
        workflow.last_run_at = now
        await db.flush()

        logger.info(
            "Workflow execution completed",
            extra={"workflow_id": str(workflow.id), "status": status, "duration_ms": duration_ms},
        )
        return {
            "workflow_id": str(workflow.id),
            "status": status,
            "actions_executed": len(results),
            "results": results,
        }

    async def execute_action(
        self,
        db: AsyncSession,
        workflow: Workflow,
        action: dict[str, Any],
        context: dict[str, Any],
    ) -> Any:
        """변수 치환 후 액션 유형별 실행기를 호출합니다.

        Raises:
            ActionError: 알 수 없는 액션 또는 실행 실패 (Unknown type or failure)
        """
        config: dict[str, Any] = resolve_variables(action.get("config") or {}, context)
        action_type: str = action.get("type", "")
        organization_id: UUID = workflow.organization_id

        if action_type == "SEND_EMAIL":
            return await self._send_email(db, organization_id, config, context)
        if action_type == "SEND_TELEGRAM":
            return await self._send_telegram(config)
        if action_type == "CREATE_TASK":
            return await self._create_task(db, organization_id, config, context)
        if action_type == "CREATE_NOTIFICATION":
            return await self._create_notification(db, organization_id, config)
        if action_type == "UPDATE_FIELD":
            return await self._update_field(db, config, context)
        if action_type == "WEBHOOK":
            return await self._webhook(config)
        if action_type == "DELAY":
            return self._delay(config)
        raise ActionError(f"Unknown action type: {action_type}")

    async def _send_email(
        self,
        db: AsyncSession,
        organization_id: UUID,
        config: dict[str, Any],
        context: dict[str, Any],
    ) -> dict[str, Any]:
        template_id: UUID | None = _as_uuid(config.get("template_id"))
        to: str = str(config.get("to") or "")
        if template_id is None or not to:
            raise ActionError("SEND_EMAIL requires template_id and to")
        data: dict[str, Any] = config.get("data") or {}
        # "to"가 이메일이 아니면 data의 키로 취급 (A non-address "to" names a data key)
        recipient: str = to if "@" in to else str(data.get(to) or to)
        cc: str | None = config.get("cc")
        return await email_sending_service.send_from_template(
            db,
            organization_id,
            _as_uuid((context.get("user") or {}).get("id")),
            template_id,
            [recipient],
            data,
            cc=[cc] if cc else None,
            record_id=_as_uuid((context.get("record") or {}).get("id")),
        )

    async def _send_telegram(self, config: dict[str, Any]) -> dict[str, Any]:
        if not settings.TELEGRAM_BOT_TOKEN:
            raise ActionError("Telegram bot token not configured")
        async with httpx.AsyncClient(timeout=settings.WEBHOOK_TIMEOUT_SECONDS) as client:
            response = await client.post(
                TELEGRAM_API_URL.format(token=settings.TELEGRAM_BOT_TOKEN),
                json={
                    "chat_id": config.get("chat_id"),
                    "text": config.get("message"),
                    "parse_mode": config.get("parse_mode") or "HTML",
                },
            )
        if response.is_error:
            raise ActionError(f"Telegram API error: {response.text}")
        return response.json()

    async def _create_task(
        self,
        db: AsyncSession,
        organization_id: UUID,
        config: dict[str, Any],
        context: dict[str, Any],
    ) -> dict[str, Any]:
        title: str | None = config.get("title")
        if not title:
            raise ActionError("CREATE_TASK requires title")
        due_date: datetime | None = None
        due_in_days: Any = config.get("due_in_days")
        if due_in_days:
            due_date = datetime.now(timezone.utc) + timedelta(days=float(due_in_days))

        created_by: UUID | None = _as_uuid((context.get("user") or {}).get("id"))
        position: int = await task_repository.get_max_column_position(db, None, "TODO") + 1
        task: Task = await task_repository.create(
            db,
            {
                "organization_id": organization_id,
                "title": title,
                "description": config.get("description"),
                "assignee_id": _as_uuid(config.get("assignee_id")),
                "priority": config.get("priority") or "MEDIUM",
                "due_date": due_date,
                "record_id": _as_uuid((context.get("record") or {}).get("id")),
                "created_by": created_by,
                "position": position,
                "tags": [],
            },
        )
        return {"task_id": str(task.id), "title": task.title, "due_date": task.due_date}

    async def _create_notification(
        self,
        db: AsyncSession,
        organization_id: UUID,
        config: dict[str, Any],
    ) -> dict[str, Any]:
        user_id: UUID | None = _as_uuid(config.get("user_id"))
        if user_id is None or not config.get("title"):
            raise ActionError("CREATE_NOTIFICATION requires user_id and title")
        notification = await notification_service.create(
            db,
            organization_id,
            user_id,
            config.get("type") or "info",
            config["title"],
            config.get("message") or "",
        )
        return {"notification_id": str(notification.id)}

    async def _update_field(
        self,
        db: AsyncSession,
        config: dict[str, Any],
        context: dict[str, Any],
    ) -> dict[str, Any]:
        field: str | None = config.get("field")
        if not field:
            raise ActionError("UPDATE_FIELD requires field")
        record_id: UUID | None = _as_uuid((context.get("record") or {}).get("id"))
        record: Record | None = await record_repository.get_by_id(db, record_id) if record_id else None
        if record is None:
            raise ActionError("Record not found")
        record.data = {**(record.data or {}), field: config.get("value")}
        record.updated_by = _as_uuid((context.get("user") or {}).get("id"))
        await db.flush()
        return {"record_id": str(record.id), "field": field, "value": config.get("value")}

    async def _webhook(self, config: dict[str, Any]) -> dict[str, Any]:
        url: str | None = config.get("url")
        if not url:
            raise ActionError("WEBHOOK requires url")
        method: str = (config.get("method") or "POST").upper()
        headers: dict[str, str] = {"Content-Type": "application/json", **(config.get("headers") or {})}
        async with httpx.AsyncClient(timeout=settings.WEBHOOK_TIMEOUT_SECONDS) as client:
            response = await client.request(
                method,
                url,
                headers=headers,
                json=config.get("body") if method != "GET" else None,
            )
        try:
            body: Any = response.json()
        except ValueError:
            body = None
        return {"status": response.status_code, "status_text": response.reason_phrase, "body": body}

    def _delay(self, config: dict[str, Any]) -> dict[str, Any]:
        """지연 액션 - 대기하지 않고 계산된 값만 반환 (No sleeping; no job queue)."""
        duration: float = _to_number(config.get("duration"))
        if math.isnan(duration):
            raise ActionError("DELAY requires a numeric duration")
        unit: str = config.get("unit") or "minutes"
        ms: float = duration * DELAY_UNIT_MS.get(unit, 1)
        logger.info("Delay action", extra={"duration": duration, "unit": unit, "ms": ms})
        return {"delayed": True, "duration": config.get("duration"), "unit": unit, "ms": ms}


# 싱글턴 인스턴스 - Singleton instance
workflow_engine: WorkflowEngine = WorkflowEngine()

"""레코드 서비스 - 레코드 CRUD, 데이터 검증, 타임라인, 워크플로우 트리거.

Record Service - Record CRUD. Every write validates ``data`` against the
object's fields, writes timeline activities and fires workflows.
Workflow failures are logged and never fail the request.
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.crm import CrmObject, Field, Record, Relation
from app.models.task import Task
from app.models.user import User
from app.repositories.file_repository import file_repository
from app.repositories.object_repository import field_repository, object_repository
from app.repositories.record_repository import record_repository, relation_repository
from app.repositories.task_repository import task_repository
from app.schemas.crm import BulkDeleteRequest, BulkUpdateRequest, RecordCreate, RecordUpdate, RelationCreate
from app.services.activity_service import activity_service
from app.services.comment_service import comment_service
from app.services.file_service import file_service
from app.services.notification_service import notification_service
from app.services.task_service import task_service
from app.services.validation_service import validation_service
from app.services.workflow_engine import workflow_engine
from app.utils.exceptions import BadRequestError, DuplicateError, NotFoundError
from app.utils.pagination import build_page

logger = logging.getLogger(__name__)

INCLUDE_OPTIONS: frozenset[str] = frozenset({"activities", "comments", "files", "tasks", "relations"})


class RecordService:
    """레코드 관련 비즈니스 로직을 처리하는 서비스.

    Service handling record business logic.
    """

    def to_dict(self, record: Record) -> dict[str, Any]:
        """레코드 모델을 응답 딕셔너리로 변환합니다.

        Convert a Record to a response dictionary.
        """
        return {
            "id": str(record.id),
            "object_id": str(record.object_id),
            "data": record.data or {},
            "stage": record.stage,
            "score": record.score,
            "owner_id": str(record.owner_id) if record.owner_id else None,
            "created_by": str(record.created_by) if record.created_by else None,
            "updated_by": str(record.updated_by) if record.updated_by else None,
            "is_archived": record.is_archived,
            "created_at": record.created_at,
            "updated_at": record.updated_at,
        }

    def build_context(
        self,
        trigger: str,
        record: Record,
        obj: CrmObject,
        user: User,
        **extra: Any,
    ) -> dict[str, Any]:
        """워크플로우 트리거 컨텍스트를 구성합니다 (Build the workflow trigger context)."""
        context: dict[str, Any] = {
            "trigger": trigger,
            "record": {
                "id": str(record.id),
                "owner_id": str(record.owner_id) if record.owner_id else None,
                "stage": record.stage,
                "created_at": record.created_at.isoformat() if record.created_at else None,
                "updated_at": record.updated_at.isoformat() if record.updated_at else None,
                "data": dict(record.data or {}),
            },
            "object": {"id": str(obj.id), "name": obj.name, "display_name": obj.display_name},
            "user": {"id": str(user.id), "email": user.email, "name": user.name},
        }
        context.update(extra)
        return context

    async def _fire(self, db: AsyncSession, organization_id: UUID, context: dict[str, Any]) -> None:
        """워크플로우를 실행합니다. 실패는 로그만 남깁니다 (Failures are logged only)."""
        try:
            async with db.begin_nested():
                await workflow_engine.execute_trigger(db, organization_id, context)
        except Exception:
            logger.exception(
                "Workflow trigger failed",
                extra={"trigger": context["trigger"], "record_id": context["record"]["id"]},
            )

    async def _get(self, db: AsyncSession, record_id: UUID, organization_id: UUID) -> Record:
        record: Record | None = await record_repository.get_by_id(db, record_id, organization_id)
        if record is None:
            raise NotFoundError("Record not found")
        return record

    async def _fields(self, db: AsyncSession, object_id: UUID) -> list[Field]:
        return await field_repository.get_by_object(db, object_id)

    async def create_record(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user: User,
        data: RecordCreate,
    ) -> dict[str, Any]:
        """레코드를 생성합니다.

        The object must exist and not be archived. Writes a NOTE activity
        and fires RECORD_CREATED workflows.

        Raises:
            NotFoundError: 오브젝트가 없거나 보관됨 (Object missing or archived)
            ValidationFailedError: 데이터 검증 실패 (Invalid data)
        """
        obj: CrmObject | None = await object_repository.get_by_id(db, data.object_id, organization_id)
        if obj is None or obj.is_archived:
            raise NotFoundError("Object not found")

        validation_service.validate_data(data.data, await self._fields(db, obj.id))

        owner_id: UUID = data.owner_id or user.id
        record: Record = await record_repository.create(
            db,
            {
                "organization_id": organization_id,
                "object_id": obj.id,
                "data": data.data,
                "stage": data.stage,
                "owner_id": owner_id,
                "created_by": user.id,
                "updated_by": user.id,
            },
        )
        await activity_service.log(
            db, organization_id, record.id, user.id, "NOTE", "Record created",
            metadata={"action": "created"},
        )
        if owner_id != user.id:
            await notification_service.notify_record_created(
                db, organization_id, owner_id, record.id, obj.display_name,
                str(record.data.get("name") or record.id),
            )
        logger.info("Record created", extra={"record_id": str(record.id), "object_id": str(obj.id)})

        await self._fire(db, organization_id, self.build_context("RECORD_CREATED", record, obj, user))
        await db.refresh(record)
        return self.to_dict(record)

    async def list_records(
        self,
        db: AsyncSession,
        organization_id: UUID,
        object_id: UUID | None = None,
        owner_id: UUID | None = None,
        stage: str | None = None,
        include_archived: bool = False,
        search: str | None = None,
        filters: dict[str, Any] | None = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
        page: int = 1,
        limit: int = 50,
    ) -> dict[str, Any]:
        records, total = await record_repository.get_list(
            db,
            organization_id,
            object_id=object_id,
            owner_id=owner_id,
            stage=stage,
            include_archived=include_archived,
            search=search,
            filters=filters,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            per_page=limit,
        )
        return build_page([self.to_dict(record) for record in records], total, page, limit)

    async def get_record(
        self,
        db: AsyncSession,
        record_id: UUID,
        organization_id: UUID,
        include: set[str] | None = None,
    ) -> dict[str, Any]:
        """레코드 상세 - include로 연관 데이터 포함.

        ``include`` may name activities, comments, files, tasks and relations.
        """
        record: Record = await self._get(db, record_id, organization_id)
        result: dict[str, Any] = self.to_dict(record)
        include = (include or set()) & INCLUDE_OPTIONS

        if "activities" in include:
            result["activities"] = await activity_service.get_timeline(db, record.id, organization_id)
        if "comments" in include:
            result["comments"] = await comment_service.list_for_target(db, organization_id, "record_id", record.id)
        if "files" in include:
            files = await file_repository.get_for_target(db, organization_id, "record_id", record.id)
            result["files"] = [file_service.to_dict(file) for file in files]
        if "tasks" in include:
            tasks: list[Task] = list(
                await task_repository.get_all(
                    db, organization_id, {"record_id": record.id, "is_archived": False}, Task.position
                )
            )
            result["tasks"] = [task_service.to_dict(task) for task in tasks]
        if "relations" in include:
            relations: list[Relation] = await relation_repository.get_for_record(db, record.id, organization_id)
            result["relations"] = [relation_service.to_dict(relation) for relation in relations]
        return result

    async def update_record(
        self,
        db: AsyncSession,
        record_id: UUID,
        organization_id: UUID,
        user: User,
        data: RecordUpdate,
    ) -> dict[str, Any]:
        """레코드를 수정합니다.

        ``data`` is merged into the stored map and the merged result is
        validated. A stage change writes a STAGE_CHANGED activity, otherwise
        changed data writes a FIELD_UPDATED activity. Fires RECORD_UPDATED,
        STAGE_CHANGED and one FIELD_CHANGED per changed field.

        Raises:
            NotFoundError: 레코드가 없을 때 (Record not found, including hard-deleted)
            ValidationFailedError: 병합 결과 검증 실패
        """
        record: Record = await self._get(db, record_id, organization_id)
        obj: CrmObject | None = await object_repository.get_by_id(db, record.object_id)
        if obj is None:
            raise NotFoundError("Object not found")

        old_data: dict[str, Any] = dict(record.data or {})
        old_stage: str | None = record.stage
        changes: dict[str, dict[str, Any]] = {}

        if data.data is not None:
            merged: dict[str, Any] = {**old_data, **data.data}
            validation_service.validate_data(merged, await self._fields(db, record.object_id))
            for key, value in data.data.items():
                if old_data.get(key) != value:
                    changes[key] = {"old": old_data.get(key), "new": value}
            record.data = merged

        stage_changed: bool = data.stage is not None and data.stage != old_stage
        if stage_changed:
            record.stage = data.stage
        if data.owner_id is not None:
            record.owner_id = data.owner_id
        if data.is_archived is not None:
            record.is_archived = data.is_archived
        record.updated_by = user.id
        await db.flush()

        if stage_changed:
            await activity_service.log(
                db, organization_id, record.id, user.id, "STAGE_CHANGED",
                f"Stage changed from {old_stage or 'none'} to {data.stage}",
                metadata={"previous_stage": old_stage, "new_stage": data.stage},
            )
        elif changes:
            await activity_service.log(
                db, organization_id, record.id, user.id, "FIELD_UPDATED",
                f"Updated {', '.join(changes)}",
                metadata={"updated_fields": list(changes)},
            )
        logger.info("Record updated", extra={"record_id": str(record.id), "changed": list(changes)})

        await self._fire(db, organization_id, self.build_context("RECORD_UPDATED", record, obj, user, changes=changes))
        if stage_changed:
            await self._fire(
                db, organization_id,
                self.build_context("STAGE_CHANGED", record, obj, user, stage={"old": old_stage, "new": data.stage}),
            )
        for name, change in changes.items():
            await self._fire(
                db, organization_id,
                self.build_context("FIELD_CHANGED", record, obj, user, field={"name": name, **change}),
            )

        await db.refresh(record)
        return self.to_dict(record)

    async def delete_record(
        self,
        db: AsyncSession,
        record_id: UUID,
        organization_id: UUID,
        user: User,
        hard: bool = False,
    ) -> None:
        """레코드를 삭제합니다. hard면 RECORD_DELETED 실행 후 삭제, 아니면 보관.

        Raises:
            NotFoundError: 레코드가 없을 때 (Record not found)
        """
        record: Record = await self._get(db, record_id, organization_id)
        if hard:
            obj: CrmObject | None = await object_repository.get_by_id(db, record.object_id)
            if obj is not None:
                await self._fire(db, organization_id, self.build_context("RECORD_DELETED", record, obj, user))
            await db.delete(record)
        else:
            record.is_archived = True
            record.updated_by = user.id
        await db.flush()
        logger.info("Record deleted", extra={"record_id": str(record_id), "hard": hard})

    async def bulk_update(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user: User,
        data: BulkUpdateRequest,
    ) -> dict[str, int]:
        """여러 레코드의 data를 병합 수정합니다 (Merge ``data`` into every listed record)."""
        records: list[Record] = await record_repository.get_many(db, data.ids, organization_id)
        fields_by_object: dict[UUID, list[Field]] = {}
        for record in records:
            if record.object_id not in fields_by_object:
                fields_by_object[record.object_id] = await self._fields(db, record.object_id)
            merged: dict[str, Any] = {**(record.data or {}), **data.data}
            validation_service.validate_data(merged, fields_by_object[record.object_id])
            record.data = merged
            record.updated_by = user.id
        await db.flush()
        return {"updated": len(records)}

    async def bulk_delete(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user: User,
        data: BulkDeleteRequest,
    ) -> dict[str, int]:
        records: list[Record] = await record_repository.get_many(db, data.ids, organization_id)
        for record in records:
            if data.hard:
                await db.delete(record)
            else:
                record.is_archived = True
                record.updated_by = user.id
        await db.flush()
        return {"deleted": len(records)}


class RelationService:
    """레코드 관계 비즈니스 로직 (Record relation business logic)."""

    def to_dict(self, relation: Relation) -> dict[str, Any]:
        return {
            "id": str(relation.id),
            "from_record_id": str(relation.from_record_id),
            "to_record_id": str(relation.to_record_id),
            "relation_type": relation.relation_type,
            "metadata": relation.meta or {},
            "created_at": relation.created_at,
        }

    async def create_relation(
        self,
        db: AsyncSession,
        organization_id: UUID,
        data: RelationCreate,
    ) -> dict[str, Any]:
        """관계를 생성합니다.

        Raises:
            BadRequestError: 자기 자신과의 관계 (Self relation)
            NotFoundError: 레코드 없음 (Either record not found)
            DuplicateError: 동일 (from, to, type) 관계 존재
        """
        if data.from_record_id == data.to_record_id:
            raise BadRequestError("Cannot relate a record to itself")
        for record_id in (data.from_record_id, data.to_record_id):
            if await record_repository.get_by_id(db, record_id, organization_id) is None:
                raise NotFoundError("Record not found")
        if await relation_repository.find_edge(db, data.from_record_id, data.to_record_id, data.relation_type):
            raise DuplicateError("Relation already exists")

        relation: Relation = await relation_repository.create(
            db,
            {
                "organization_id": organization_id,
                "from_record_id": data.from_record_id,
                "to_record_id": data.to_record_id,
                "relation_type": data.relation_type,
                "meta": data.metadata,
            },
        )
        return self.to_dict(relation)

    async def list_for_record(
        self,
        db: AsyncSession,
        record_id: UUID,
        organization_id: UUID,
        relation_type: str | None = None,
    ) -> list[dict[str, Any]]:
        relations: list[Relation] = await relation_repository.get_for_record(
            db, record_id, organization_id, relation_type
        )
        return [self.to_dict(relation) for relation in relations]

    async def get_relation(self, db: AsyncSession, relation_id: UUID, organization_id: UUID) -> dict[str, Any]:
        relation: Relation | None = await relation_repository.get_by_id(db, relation_id, organization_id)
        if relation is None:
            raise NotFoundError("Relation not found")
        return self.to_dict(relation)

    async def delete_relation(self, db: AsyncSession, relation_id: UUID, organization_id: UUID) -> None:
        if not await relation_repository.delete(db, relation_id, organization_id):
            raise NotFoundError("Relation not found")


# 싱글턴 인스턴스 - Singleton instances
record_service: RecordService = RecordService()
relation_service: RelationService = RelationService()

"""필드 서비스 - 필드 정의 CRUD 및 오브젝트 schema 동기화.

Field Service - Field definition CRUD. Every change rebuilds the parent
object's ``schema`` summary.
"""

import re
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.crm import CrmObject, Field
from app.repositories.object_repository import field_repository, object_repository
from app.schemas.crm import FieldCreate, FieldUpdate
from app.utils.exceptions import BadRequestError, DuplicateError, NotFoundError

NAME_FIELD: dict[str, Any] = {
    "name": "name",
    "display_name": "Name",
    "type": "TEXT",
    "config": {"max_length": 255},
    "is_required": True,
}


def _options(*values: str | tuple[str, str] | tuple[str, str, str]) -> list[dict[str, str]]:
    """(value, label[, color]) 튜플로 선택지 목록을 만듭니다."""
    options: list[dict[str, str]] = []
    for item in values:
        if isinstance(item, str):
            options.append({"value": item, "label": item})
            continue
        option: dict[str, str] = {"value": item[0], "label": item[1]}
        if len(item) > 2:
            option["color"] = item[2]
        options.append(option)
    return options


def _is_option(option: Any) -> bool:
    if isinstance(option, dict):
        return isinstance(option.get("value"), str)
    return isinstance(option, str)


# 시스템 오브젝트별 시스템 필드 (System fields seeded per system object)
SYSTEM_FIELDS: dict[str, list[dict[str, Any]]] = {
    "contacts": [
        NAME_FIELD,
        {"name": "email", "display_name": "Email", "type": "EMAIL", "is_unique": True},
        {"name": "phone", "display_name": "Phone", "type": "PHONE"},
        {
            "name": "company",
            "display_name": "Company",
            "type": "RELATION",
            "config": {"related_object_id": "companies"},
        },
    ],
    "companies": [
        NAME_FIELD,
        {"name": "website", "display_name": "Website", "type": "URL"},
        {
            "name": "industry",
            "display_name": "Industry",
            "type": "SELECT",
            "config": {
                "options": _options(
                    ("technology", "Technology"),
                    ("finance", "Finance"),
                    ("healthcare", "Healthcare"),
                    ("retail", "Retail"),
                    ("other", "Other"),
                )
            },
        },
        {
            "name": "size",
            "display_name": "Company Size",
            "type": "SELECT",
            "config": {"options": _options("1-10", "11-50", "51-200", "201-500", "500+")},
        },
    ],
    "deals": [
        NAME_FIELD,
        {"name": "value", "display_name": "Deal Value", "type": "CURRENCY", "config": {"currency": "USD"}},
        {
            "name": "stage",
            "display_name": "Stage",
            "type": "SELECT",
            "is_required": True,
            "config": {
                "options": _options(
                    ("lead", "Lead", "#6B7280"),
                    ("qualified", "Qualified", "#3B82F6"),
                    ("proposal", "Proposal", "#F59E0B"),
                    ("negotiation", "Negotiation", "#8B5CF6"),
                    ("closed_won", "Closed Won", "#10B981"),
                    ("closed_lost", "Closed Lost", "#EF4444"),
                )
            },
        },
        {"name": "close_date", "display_name": "Expected Close Date", "type": "DATE"},
        {"name": "probability", "display_name": "Probability", "type": "PERCENT", "config": {"min": 0, "max": 100}},
    ],
    "webmasters": [
        NAME_FIELD,
        {"name": "email", "display_name": "Email", "type": "EMAIL", "is_required": True, "is_unique": True},
        {"name": "telegram", "display_name": "Telegram", "type": "TEXT"},
        {
            "name": "traffic_sources",
            "display_name": "Traffic Sources",
            "type": "MULTI_SELECT",
            "config": {
                "options": _options(
                    ("facebook", "Facebook"),
                    ("google", "Google"),
                    ("tiktok", "TikTok"),
                    ("native", "Native"),
                    ("push", "Push"),
                    ("seo", "SEO"),
                )
            },
        },
        {"name": "rating", "display_name": "Rating", "type": "RATING", "config": {"max_rating": 5}},
    ],
    "partners": [
        NAME_FIELD,
        {"name": "email", "display_name": "Email", "type": "EMAIL"},
        {"name": "website", "display_name": "Website", "type": "URL"},
        {
            "name": "partner_type",
            "display_name": "Partner Type",
            "type": "SELECT",
            "config": {
                "options": _options(
                    ("direct", "Direct Advertiser"),
                    ("network", "Affiliate Network"),
                    ("agency", "Agency"),
                )
            },
        },
        {"name": "commission", "display_name": "Commission", "type": "PERCENT", "config": {"min": 0, "max": 100}},
    ],
}


class FieldService:
    """필드 정의 관련 비즈니스 로직.

    Service for field definitions attached to CRM objects.
    """

    def to_dict(self, field: Field) -> dict[str, Any]:
        return {
            "id": str(field.id),
            "object_id": str(field.object_id),
            "name": field.name,
            "display_name": field.display_name,
            "type": field.type,
            "config": field.config or {},
            "is_required": field.is_required,
            "is_unique": field.is_unique,
            "is_system": field.is_system,
            "default_value": field.default_value,
            "position": field.position,
            "created_at": field.created_at,
            "updated_at": field.updated_at,
        }

    def check_config(self, field_type: str, config: dict[str, Any]) -> None:
        """타입별 config 항목을 검사합니다.

        Options are plain strings or ``{"value": str, ...}`` dicts; a text
        ``pattern`` must compile.

        Raises:
            BadRequestError: 선택지/관련 오브젝트/수식 누락 또는 잘못된 패턴
                             (Bad options, missing related object or formula, invalid pattern)
        """
        if field_type in ("SELECT", "MULTI_SELECT"):
            options = config.get("options")
            if not isinstance(options, list):
                raise BadRequestError("Options must be an array")
            if not all(_is_option(option) for option in options):
                raise BadRequestError('Each option must be a string or an object with a string "value"')
        if field_type == "RELATION" and not config.get("related_object_id"):
            raise BadRequestError("Relation fields require related_object_id")
        if field_type == "FORMULA" and not config.get("formula"):
            raise BadRequestError("Formula fields require formula")
        pattern = config.get("pattern")
        if pattern is not None:
            try:
                re.compile(str(pattern))
            except re.error:
                raise BadRequestError("Invalid pattern")

    async def _get_object(self, db: AsyncSession, object_id: UUID, organization_id: UUID) -> CrmObject:
        obj: CrmObject | None = await object_repository.get_by_id(db, object_id, organization_id)
        if obj is None:
            raise NotFoundError("Object not found")
        return obj

    async def _get_field(self, db: AsyncSession, field_id: UUID, organization_id: UUID) -> Field:
        field: Field | None = await field_repository.get_by_id(db, field_id, organization_id)
        if field is None:
            raise NotFoundError("Field not found")
        return field

    async def rebuild_schema(self, db: AsyncSession, object_id: UUID) -> None:
        """오브젝트의 schema JSON을 현재 필드 목록으로 재구성합니다.

        Rebuild ``CrmObject.schema`` from the object's current fields.
        """
        obj: CrmObject | None = await object_repository.get_by_id(db, object_id)
        if obj is None:
            return
        fields: list[Field] = await field_repository.get_by_object(db, object_id)
        obj.schema = field_repository.build_schema(fields)
        await db.flush()

    async def create_field(
        self,
        db: AsyncSession,
        organization_id: UUID,
        data: FieldCreate,
    ) -> dict[str, Any]:
        """필드를 생성합니다 (position = max + 1).

        Raises:
            NotFoundError: 오브젝트가 없을 때 (Object not found)
            DuplicateError: 오브젝트 내 이름 중복 (Name already used in the object)
            BadRequestError: config 검사 실패 (Invalid type config)
        """
        await self._get_object(db, data.object_id, organization_id)
        if await field_repository.get_by_name(db, data.object_id, data.name) is not None:
            raise DuplicateError(f'Field with name "{data.name}" already exists in this object')
        self.check_config(data.type, data.config)

        position: int = await field_repository.get_max_position(db, {"object_id": data.object_id}) + 1
        field: Field = await field_repository.create(
            db,
            {
                "organization_id": organization_id,
                "object_id": data.object_id,
                "name": data.name,
                "display_name": data.display_name,
                "type": data.type,
                "config": data.config,
                "is_required": data.is_required,
                "is_unique": data.is_unique,
                "default_value": data.default_value,
                "position": position,
            },
        )
        await self.rebuild_schema(db, data.object_id)
        return self.to_dict(field)

    async def list_fields(
        self,
        db: AsyncSession,
        object_id: UUID,
        organization_id: UUID,
    ) -> list[dict[str, Any]]:
        await self._get_object(db, object_id, organization_id)
        fields: list[Field] = await field_repository.get_by_object(db, object_id, organization_id)
        return [self.to_dict(field) for field in fields]

    async def get_field(
        self,
        db: AsyncSession,
        field_id: UUID,
        organization_id: UUID,
    ) -> dict[str, Any]:
        return self.to_dict(await self._get_field(db, field_id, organization_id))

    async def update_field(
        self,
        db: AsyncSession,
        field_id: UUID,
        organization_id: UUID,
        data: FieldUpdate,
    ) -> dict[str, Any]:
        """필드를 수정합니다. 시스템 필드는 수정 불가.

        Raises:
            NotFoundError: 필드가 없을 때
            BadRequestError: 시스템 필드 또는 잘못된 config
        """
        field: Field = await self._get_field(db, field_id, organization_id)
        if field.is_system:
            raise BadRequestError("Cannot modify system fields")

        update_data: dict[str, Any] = data.model_dump(exclude_unset=True)
        if "config" in update_data:
            if update_data["config"] is None:
                update_data.pop("config")
            else:
                self.check_config(field.type, update_data["config"])
        for key, value in update_data.items():
            if value is None and key in ("display_name", "is_required", "is_unique", "position"):
                continue
            setattr(field, key, value)

        await db.flush()
        await self.rebuild_schema(db, field.object_id)
        await db.refresh(field)
        return self.to_dict(field)

    async def delete_field(
        self,
        db: AsyncSession,
        field_id: UUID,
        organization_id: UUID,
    ) -> None:
        """필드를 삭제합니다. 시스템 필드는 삭제 불가 (System fields are kept)."""
        field: Field = await self._get_field(db, field_id, organization_id)
        if field.is_system:
            raise BadRequestError("Cannot delete system fields")
        object_id: UUID = field.object_id
        await db.delete(field)
        await db.flush()
        await self.rebuild_schema(db, object_id)

    async def reorder_fields(
        self,
        db: AsyncSession,
        object_id: UUID,
        organization_id: UUID,
        ordered_ids: list[UUID],
    ) -> None:
        await self._get_object(db, object_id, organization_id)
        await field_repository.reorder(db, ordered_ids, {"object_id": object_id})

    async def create_system_fields(
        self,
        db: AsyncSession,
        obj: CrmObject,
    ) -> int:
        """시스템 오브젝트에 누락된 시스템 필드를 생성합니다.

        Create the missing system fields of a system object.

        Returns:
            int: 생성된 필드 수 (Number of fields created)
        """
        definitions: list[dict[str, Any]] = SYSTEM_FIELDS.get(obj.name, [NAME_FIELD])
        existing: set[str] = {field.name for field in await field_repository.get_by_object(db, obj.id)}
        created: int = 0
        for position, definition in enumerate(definitions):
            if definition["name"] in existing:
                continue
            await field_repository.create(
                db,
                {
                    "organization_id": obj.organization_id,
                    "object_id": obj.id,
                    "name": definition["name"],
                    "display_name": definition["display_name"],
                    "type": definition["type"],
                    "config": dict(definition.get("config", {})),
                    "is_required": definition.get("is_required", False),
                    "is_unique": definition.get("is_unique", False),
                    "is_system": True,
                    "position": position,
                },
            )
            created += 1
        await self.rebuild_schema(db, obj.id)
        return created


# 싱글턴 인스턴스 - Singleton instance
field_service: FieldService = FieldService()

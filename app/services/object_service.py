"""오브젝트 서비스 - CRM 오브젝트 CRUD 및 시스템 오브젝트 시드.

Object Service - CRM object CRUD, ordering and seeding of the built-in
system objects (contacts, companies, deals, webmasters, partners).
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.crm import CrmObject
from app.repositories.object_repository import object_repository
from app.schemas.crm import ObjectCreate, ObjectUpdate
from app.services.field_service import field_service
from app.services.pipeline_service import pipeline_service
from app.utils.exceptions import BadRequestError, DuplicateError, NotFoundError
from app.utils.pagination import build_page

logger = logging.getLogger(__name__)

# 시스템 오브젝트 정의 - 순서가 곧 position (List order is the position)
SYSTEM_OBJECTS: list[dict[str, str]] = [
    {"name": "contacts", "display_name": "Contacts", "icon": "👤", "color": "#3B82F6"},
    {"name": "companies", "display_name": "Companies", "icon": "🏢", "color": "#10B981"},
    {"name": "deals", "display_name": "Deals", "icon": "💰", "color": "#F59E0B"},
    {"name": "webmasters", "display_name": "Webmasters", "icon": "🌐", "color": "#8B5CF6"},
    {"name": "partners", "display_name": "Partners", "icon": "🤝", "color": "#EC4899"},
]

# SYSTEM 오브젝트에서 수정 가능한 속성 (Attributes editable on SYSTEM objects)
SYSTEM_EDITABLE: frozenset[str] = frozenset({"display_name", "icon", "color", "settings", "position"})


class ObjectService:
    """CRM 오브젝트 관련 비즈니스 로직을 처리하는 서비스.

    Service handling CRM object business logic. Objects are scoped to the
    caller's organization.
    """

    def to_dict(self, obj: CrmObject) -> dict[str, Any]:
        """오브젝트 모델을 응답 딕셔너리로 변환합니다.

        Convert a CrmObject to a response dictionary (fields not included).
        """
        return {
            "id": str(obj.id),
            "name": obj.name,
            "display_name": obj.display_name,
            "type": obj.type,
            "icon": obj.icon,
            "color": obj.color,
            "settings": obj.settings or {},
            "schema": obj.schema or {},
            "position": obj.position,
            "is_archived": obj.is_archived,
            "created_at": obj.created_at,
            "updated_at": obj.updated_at,
        }

    async def _get(self, db: AsyncSession, object_id: UUID, organization_id: UUID) -> CrmObject:
        obj: CrmObject | None = await object_repository.get_by_id(db, object_id, organization_id)
        if obj is None:
            raise NotFoundError("Object not found")
        return obj

    async def create_object(
        self,
        db: AsyncSession,
        organization_id: UUID,
        data: ObjectCreate,
    ) -> dict[str, Any]:
        """새 오브젝트를 생성합니다 (position = max + 1, schema = {}).

        Raises:
            DuplicateError: 같은 이름의 오브젝트가 이미 있을 때
                            (An object with this name already exists)
        """
        if await object_repository.get_by_name(db, organization_id, data.name) is not None:
            raise DuplicateError(f'Object with name "{data.name}" already exists')

        position: int = await object_repository.get_max_position(db, {"organization_id": organization_id}) + 1
        obj: CrmObject = await object_repository.create(
            db,
            {
                "organization_id": organization_id,
                "name": data.name,
                "display_name": data.display_name,
                "type": data.type,
                "icon": data.icon,
                "color": data.color,
                "settings": data.settings,
                "schema": {},
                "position": position,
            },
        )
        logger.info("Object created", extra={"object_id": str(obj.id), "object_name": obj.name})
        return self.to_dict(obj)

    async def list_objects(
        self,
        db: AsyncSession,
        organization_id: UUID,
        object_type: str | None = None,
        include_archived: bool = False,
        page: int = 1,
        limit: int = 50,
    ) -> dict[str, Any]:
        """오브젝트 목록 - 각 항목에 field_count, record_count 포함.

        Paginated object list; each item carries ``field_count`` and
        ``record_count`` (non-archived records).
        """
        objects, total = await object_repository.get_list(
            db, organization_id, object_type, include_archived, page, limit
        )
        field_counts, record_counts = await object_repository.get_counts(db, [obj.id for obj in objects])
        items: list[dict[str, Any]] = []
        for obj in objects:
            item: dict[str, Any] = self.to_dict(obj)
            item["field_count"] = field_counts.get(obj.id, 0)
            item["record_count"] = record_counts.get(obj.id, 0)
            items.append(item)
        return build_page(items, total, page, limit)

    async def get_object(
        self,
        db: AsyncSession,
        object_id: UUID,
        organization_id: UUID,
    ) -> dict[str, Any]:
        """필드 목록(position 순)과 함께 오브젝트를 조회합니다.

        Raises:
            NotFoundError: 오브젝트가 없을 때 (Object not found)
        """
        obj: CrmObject | None = await object_repository.get_with_fields(db, object_id, organization_id)
        if obj is None:
            raise NotFoundError("Object not found")
        result: dict[str, Any] = self.to_dict(obj)
        result["fields"] = [field_service.to_dict(field) for field in obj.fields]
        return result

    async def get_by_name(
        self,
        db: AsyncSession,
        name: str,
        organization_id: UUID,
    ) -> dict[str, Any]:
        obj: CrmObject | None = await object_repository.get_by_name(db, organization_id, name)
        if obj is None:
            raise NotFoundError(f'Object "{name}" not found')
        return await self.get_object(db, obj.id, organization_id)

    async def update_object(
        self,
        db: AsyncSession,
        object_id: UUID,
        organization_id: UUID,
        data: ObjectUpdate,
    ) -> dict[str, Any]:
        """오브젝트를 수정합니다.

        SYSTEM objects only accept display_name, icon, color, settings and
        position.

        Raises:
            NotFoundError: 오브젝트가 없을 때
            BadRequestError: SYSTEM 오브젝트의 보호 속성 수정 시도
        """
        obj: CrmObject = await self._get(db, object_id, organization_id)
        update_data: dict[str, Any] = data.model_dump(exclude_unset=True)

        if obj.type == "SYSTEM":
            forbidden: list[str] = sorted(key for key in update_data if key not in SYSTEM_EDITABLE)
            if forbidden:
                raise BadRequestError(f"Cannot modify fields [{', '.join(forbidden)}] on system objects")

        for key, value in update_data.items():
            # null은 "변경 없음"으로 취급 (null means "leave unchanged" except for icon/color)
            if value is None and key not in ("icon", "color"):
                continue
            setattr(obj, key, value)

        await db.flush()
        await db.refresh(obj)
        return self.to_dict(obj)

    async def delete_object(
        self,
        db: AsyncSession,
        object_id: UUID,
        organization_id: UUID,
        hard: bool = False,
    ) -> None:
        """오브젝트를 삭제합니다. hard=False면 보관 처리 (Soft delete archives).

        Raises:
            NotFoundError: 오브젝트가 없을 때
            BadRequestError: SYSTEM 오브젝트 삭제 시도 (Cannot delete system objects)
        """
        obj: CrmObject = await self._get(db, object_id, organization_id)
        if obj.type == "SYSTEM":
            raise BadRequestError("Cannot delete system objects")

        if hard:
            await db.delete(obj)
        else:
            obj.is_archived = True
        await db.flush()
        logger.info("Object deleted", extra={"object_id": str(object_id), "hard": hard})

    async def reorder_objects(
        self,
        db: AsyncSession,
        organization_id: UUID,
        ordered_ids: list[UUID],
    ) -> None:
        await object_repository.reorder(db, ordered_ids, {"organization_id": organization_id})

    async def seed_system_objects(
        self,
        db: AsyncSession,
        organization_id: UUID,
    ) -> list[dict[str, Any]]:
        """누락된 시스템 오브젝트, 시스템 필드, 기본 영업 파이프라인을 생성합니다.

        Create the missing system objects with their system fields and the
        default deals pipeline. Existing objects are completed, never
        duplicated.

        Returns:
            list[dict]: 시스템 오브젝트 목록 (All system objects, in position order)
        """
        seeded: list[CrmObject] = []
        for position, definition in enumerate(SYSTEM_OBJECTS):
            obj: CrmObject | None = await object_repository.get_by_name(db, organization_id, definition["name"])
            if obj is None:
                obj = await object_repository.create(
                    db,
                    {
                        "organization_id": organization_id,
                        "name": definition["name"],
                        "display_name": definition["display_name"],
                        "type": "SYSTEM",
                        "icon": definition["icon"],
                        "color": definition["color"],
                        "settings": {},
                        "schema": {},
                        "position": position,
                    },
                )
            await field_service.create_system_fields(db, obj)
            if obj.name == "deals":
                await pipeline_service.create_default_pipeline(db, obj)
            seeded.append(obj)

        logger.info("System objects seeded", extra={"organization_id": str(organization_id)})
        result: list[dict[str, Any]] = []
        for obj in seeded:
            await db.refresh(obj)
            result.append(self.to_dict(obj))
        return result


# 싱글턴 인스턴스 - Singleton instance
object_service: ObjectService = ObjectService()

"""오브젝트 레포지토리 - CRM 오브젝트 조회 및 카운트.

Object Repository - CRM object lookup and listing with field/record
counts, plus field definitions and the schema snapshot.
"""

from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.crm import CrmObject, Field, Record
from app.repositories.base import BaseRepository


class ObjectRepository(BaseRepository[CrmObject]):
    """CRM 오브젝트 레포지토리.

    Extends:
        BaseRepository[CrmObject]
    """

    def __init__(self) -> None:
        super().__init__(CrmObject)

    async def get_by_name(
        self,
        db: AsyncSession,
        organization_id: UUID,
        name: str,
    ) -> CrmObject | None:
        """이름으로 오브젝트를 조회합니다 (Find an object by its unique name)."""
        query: Select = select(CrmObject).where(
            CrmObject.organization_id == organization_id,
            CrmObject.name == name,
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_with_fields(
        self,
        db: AsyncSession,
        object_id: UUID,
        organization_id: UUID,
    ) -> CrmObject | None:
        """필드 목록을 포함하여 오브젝트를 조회합니다.

        Retrieve an object with its fields eagerly loaded (ordered by position).
        """
        query: Select = (
            select(CrmObject)
            .options(selectinload(CrmObject.fields))
            .where(CrmObject.id == object_id, CrmObject.organization_id == organization_id)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_list(
        self,
        db: AsyncSession,
        organization_id: UUID,
        object_type: str | None = None,
        include_archived: bool = False,
        page: int = 1,
        per_page: int = 50,
    ) -> tuple[Sequence[CrmObject], int]:
        """오브젝트 목록을 position 순으로 페이지네이션 조회합니다.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            organization_id: 조직 ID (Organization UUID)
            object_type: SYSTEM | CUSTOM 필터 (Type filter)
            include_archived: 보관된 오브젝트 포함 여부 (Include archived objects)
            page: 페이지 번호 (Page number)
            per_page: 페이지 크기 (Page size)

        Returns:
            tuple[Sequence[CrmObject], int]: (오브젝트 목록, 전체 개수)
        """
        query: Select = select(CrmObject).where(CrmObject.organization_id == organization_id)
        if object_type is not None:
            query = query.where(CrmObject.type == object_type)
        if not include_archived:
            query = query.where(CrmObject.is_archived.is_(False))
        query = query.order_by(CrmObject.position, CrmObject.created_at)
        return await self.get_paginated(db, query, page, per_page)

    async def get_counts(
        self,
        db: AsyncSession,
        object_ids: list[UUID],
    ) -> tuple[dict[UUID, int], dict[UUID, int]]:
        """오브젝트별 필드 수와 (보관되지 않은) 레코드 수를 집계합니다.

        Aggregate field counts and non-archived record counts per object.

        Returns:
            tuple: (field_count 맵, record_count 맵)
        """
        if not object_ids:
            return {}, {}
        field_rows = await db.execute(
            select(Field.object_id, func.count())
            .where(Field.object_id.in_(object_ids))
            .group_by(Field.object_id)
        )
        record_rows = await db.execute(
            select(Record.object_id, func.count())
            .where(Record.object_id.in_(object_ids), Record.is_archived.is_(False))
            .group_by(Record.object_id)
        )
        field_counts: dict[UUID, int] = {row[0]: row[1] for row in field_rows.all()}
        record_counts: dict[UUID, int] = {row[0]: row[1] for row in record_rows.all()}
        return field_counts, record_counts


class FieldRepository(BaseRepository[Field]):
    """필드 정의 레포지토리 (Repository for field definitions)."""

    def __init__(self) -> None:
        super().__init__(Field)

    async def get_by_object(
        self,
        db: AsyncSession,
        object_id: UUID,
        organization_id: UUID | None = None,
    ) -> list[Field]:
        """오브젝트의 필드를 position 순으로 조회합니다 (Fields of an object by position)."""
        query: Select = select(Field).where(Field.object_id == object_id)
        if organization_id is not None:
            query = query.where(Field.organization_id == organization_id)
        query = query.order_by(Field.position, Field.created_at)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_by_name(
        self,
        db: AsyncSession,
        object_id: UUID,
        name: str,
    ) -> Field | None:
        query: Select = select(Field).where(Field.object_id == object_id, Field.name == name)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    def build_schema(self, fields: list[Field]) -> dict[str, Any]:
        """필드 목록으로 오브젝트 schema JSON을 구성합니다.

        Build ``{name: {type, display_name, required, unique, config}}``.
        """
        return {
            field.name: {
                "type": field.type,
                "display_name": field.display_name,
                "required": field.is_required,
                "unique": field.is_unique,
                "config": field.config or {},
            }
            for field in fields
        }


# 싱글턴 인스턴스 - Singleton instances
object_repository: ObjectRepository = ObjectRepository()
field_repository: FieldRepository = FieldRepository()

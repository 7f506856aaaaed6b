"""레코드 레포지토리 - 레코드 목록/검색/필터 및 관계 쿼리.

Record Repository - Listing, JSON search and data filters for records,
plus relation edge queries.
"""

from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import Select, String, cast, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.crm import Record, Relation
from app.repositories.base import BaseRepository


# 허용 정렬 컬럼 - Sortable columns
SORT_COLUMNS: dict[str, Any] = {
    "created_at": Record.created_at,
    "updated_at": Record.updated_at,
    "score": Record.score,
}


def data_equals(key: str, value: Any) -> Any:
    """data JSON 키에 대한 타입별 동등 비교식을 만듭니다.

    Build a type-aware equality clause on ``Record.data[key]``.
    """
    element = Record.data[key]
    if isinstance(value, bool):
        return element.as_boolean() == value
    if isinstance(value, (int, float)):
        return element.as_float() == float(value)
    return element.as_string() == str(value)


class RecordRepository(BaseRepository[Record]):
    """레코드 레포지토리.

    Extends:
        BaseRepository[Record]
    """

    def __init__(self) -> None:
        super().__init__(Record)

    async def get_list(
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
        per_page: int = 50,
    ) -> tuple[Sequence[Record], int]:
        """조건에 맞는 레코드 목록을 페이지네이션 조회합니다.

        Retrieve a page of records.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            organization_id: 조직 ID (Organization UUID)
            object_id: 오브젝트 필터 (Object filter)
            owner_id: 담당자 필터 (Owner filter)
            stage: 단계 필터 (Stage filter)
            include_archived: 보관 레코드 포함 여부 (Include archived records)
            search: data JSON 전체 텍스트 검색, 대소문자 무시
                    (Case-insensitive search over the serialized data)
            filters: data 키 동등 비교 (Equality filters on data keys)
            sort_by: created_at | updated_at | score
            sort_order: asc | desc
            page: 페이지 번호 (Page number)
            per_page: 페이지 크기 (Page size)

        Returns:
            tuple[Sequence[Record], int]: (레코드 목록, 전체 개수)
        """
        query: Select = select(Record).where(Record.organization_id == organization_id)
        if object_id is not None:
            query = query.where(Record.object_id == object_id)
        if owner_id is not None:
            query = query.where(Record.owner_id == owner_id)
        if stage is not None:
            query = query.where(Record.stage == stage)
        if not include_archived:
            query = query.where(Record.is_archived.is_(False))
        if search:
            query = query.where(cast(Record.data, String).ilike(f"%{search}%"))
        if filters:
            for key, value in filters.items():
                if value is None:
                    continue
                query = query.where(data_equals(key, value))

        column = SORT_COLUMNS.get(sort_by, Record.created_at)
        order = column.asc() if sort_order == "asc" else column.desc()
        query = query.order_by(order, Record.id)
        return await self.get_paginated(db, query, page, per_page)

    async def find_by_data_value(
        self,
        db: AsyncSession,
        object_id: UUID,
        key: str,
        value: Any,
    ) -> Record | None:
        """data[key] == value 인 첫 레코드를 찾습니다 (Used for duplicate detection on import)."""
        query: Select = (
            select(Record)
            .where(Record.object_id == object_id, data_equals(key, value))
            .limit(1)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_all_for_object(
        self,
        db: AsyncSession,
        object_id: UUID,
        organization_id: UUID,
    ) -> list[Record]:
        """오브젝트의 보관되지 않은 모든 레코드 (All active records of an object, oldest first)."""
        query: Select = (
            select(Record)
            .where(
                Record.object_id == object_id,
                Record.organization_id == organization_id,
                Record.is_archived.is_(False),
            )
            .order_by(Record.created_at)
        )
        result = await db.execute(query)
        return list(result.scalars().all())


class RelationRepository(BaseRepository[Relation]):
    """레코드 관계 레포지토리 (Repository for record relations)."""

    def __init__(self) -> None:
        super().__init__(Relation)

    async def find_edge(
        self,
        db: AsyncSession,
        from_record_id: UUID,
        to_record_id: UUID,
        relation_type: str,
    ) -> Relation | None:
        query: Select = select(Relation).where(
            Relation.from_record_id == from_record_id,
            Relation.to_record_id == to_record_id,
            Relation.relation_type == relation_type,
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_for_record(
        self,
        db: AsyncSession,
        record_id: UUID,
        organization_id: UUID,
        relation_type: str | None = None,
    ) -> list[Relation]:
        """레코드의 양방향 관계를 최신순으로 조회합니다.

        Relations where the record is on either side, newest first.
        """
        query: Select = select(Relation).where(
            Relation.organization_id == organization_id,
            or_(Relation.from_record_id == record_id, Relation.to_record_id == record_id),
        )
        if relation_type is not None:
            query = query.where(Relation.relation_type == relation_type)
        query = query.order_by(Relation.created_at.desc())
        result = await db.execute(query)
        return list(result.scalars().all())


# 싱글턴 인스턴스 - Singleton instances
record_repository: RecordRepository = RecordRepository()
relation_repository: RelationRepository = RelationRepository()

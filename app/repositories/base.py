"""기본 레포지토리 - 조직 범위 CRUD와 위치(position) 관리.

Base Repository - Organization scoped lookups, creation, deletion and the
``position`` bookkeeping shared by objects, fields, views and tasks.

Usage:
    class PipelineRepository(BaseRepository[Pipeline]):
        def __init__(self) -> None:
            super().__init__(Pipeline)
"""

from typing import Any, Generic, Sequence, TypeVar
from uuid import UUID

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import Base
from app.utils.pagination import paginate

# 제네릭 타입 변수 - SQLAlchemy 모델
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """제네릭 레포지토리.

    Every tenant table carries ``organization_id``; passing it to a lookup
    hides rows of other organizations. Models without the column ignore it.

    Attributes:
        model: SQLAlchemy 모델 클래스 (The SQLAlchemy model class)
    """

    def __init__(self, model: type[ModelType]) -> None:
        self.model: type[ModelType] = model

    def _scope(self, query: Select, organization_id: UUID | None) -> Select:
        """조직 범위 조건 추가 (Restrict to one organization when given)."""
        if organization_id is not None and hasattr(self.model, "organization_id"):
            query = query.where(self.model.organization_id == organization_id)
        return query

    def _filter(self, query: Any, filters: dict[str, Any] | None) -> Any:
        """{컬럼: 값} 동등 조건 추가. None 값은 IS NULL.

        Equality filters; a None value matches NULL so that scopes such as
        ``project_id=None`` select the personal kanban columns.
        """
        for column_name, value in (filters or {}).items():
            column = getattr(self.model, column_name)
            query = query.where(column.is_(None) if value is None else column == value)
        return query

    async def get_by_id(
        self,
        db: AsyncSession,
        entity_id: UUID,
        organization_id: UUID | None = None,
    ) -> ModelType | None:
        """ID로 단일 행을 조회합니다.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            entity_id: 행 UUID (Row UUID)
            organization_id: 조직 범위, None이면 미적용 (Organization scope; None skips it)

        Returns:
            ModelType | None: 조회된 행 또는 None (Row or None)
        """
        query: Select = self._scope(select(self.model).where(self.model.id == entity_id), organization_id)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get_many(
        self,
        db: AsyncSession,
        entity_ids: list[UUID],
        organization_id: UUID,
    ) -> list[ModelType]:
        """ID 목록의 조직 내 행들 (Rows of one organization by ids; unknown ids are skipped)."""
        if not entity_ids:
            return []
        query: Select = self._scope(select(self.model).where(self.model.id.in_(entity_ids)), organization_id)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_all(
        self,
        db: AsyncSession,
        organization_id: UUID | None = None,
        filters: dict[str, Any] | None = None,
        order_by: Any | None = None,
    ) -> Sequence[ModelType]:
        """조건에 맞는 모든 행을 조회합니다.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            organization_id: 조직 범위 (Organization scope)
            filters: {'컬럼명': 값} 동등 조건 (Equality filters)
            order_by: 정렬 기준 컬럼 (Column to order by)
        """
        query: Select = self._filter(self._scope(select(self.model), organization_id), filters)
        if order_by is not None:
            query = query.order_by(order_by)
        result = await db.execute(query)
        return result.scalars().all()

    async def get_paginated(
        self,
        db: AsyncSession,
        query: Select,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[Sequence[ModelType], int]:
        """(현재 페이지 행, 전체 개수) - Page of rows plus the total count."""
        return await paginate(db, query, page, per_page)

    async def create(
        self,
        db: AsyncSession,
        obj_data: dict[str, Any],
    ) -> ModelType:
        """새 행을 추가하고 서버 기본값까지 새로 읽어 반환합니다.

        Insert a row and refresh it so server defaults (timestamps) are loaded.
        """
        db_obj: ModelType = self.model(**obj_data)
        db.add(db_obj)
        await db.flush()
        await db.refresh(db_obj)
        return db_obj

    async def delete(
        self,
        db: AsyncSession,
        entity_id: UUID,
        organization_id: UUID | None = None,
    ) -> bool:
        """행을 삭제합니다 (Hard delete; False when the row does not exist)."""
        db_obj: ModelType | None = await self.get_by_id(db, entity_id, organization_id)
        if db_obj is None:
            return False
        await db.delete(db_obj)
        await db.flush()
        return True

    # ── 위치 (Position) ──

    async def get_max_position(
        self,
        db: AsyncSession,
        scope: dict[str, Any],
    ) -> int:
        """범위 내 최대 position. 비어 있으면 -1 (so that ``max + 1`` starts at 0)."""
        query: Select = self._filter(select(func.max(self.model.position)), scope)
        result: int | None = (await db.execute(query)).scalar()
        return -1 if result is None else result

    async def reorder(
        self,
        db: AsyncSession,
        ordered_ids: list[UUID],
        scope: dict[str, Any],
    ) -> None:
        """position을 목록 인덱스로 재설정합니다.

        Set ``position`` to each id's index in ``ordered_ids``. Ids outside
        ``scope`` are left untouched.
        """
        for index, entity_id in enumerate(ordered_ids):
            stmt = self._filter(update(self.model).where(self.model.id == entity_id), scope)
            await db.execute(stmt.values(position=index))
        await db.flush()

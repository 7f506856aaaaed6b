"""파이프라인/뷰 서비스.

Pipeline and saved-view business logic. Each object keeps at most one
default pipeline and one default view.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.crm import CrmObject, Record
from app.models.pipeline import Pipeline, View
from app.repositories.object_repository import object_repository
from app.repositories.pipeline_repository import pipeline_repository, view_repository
from app.schemas.crm import PipelineCreate, PipelineUpdate, ViewCreate, ViewUpdate
from app.utils.exceptions import ForbiddenError, NotFoundError

DEFAULT_SALES_STAGES: list[dict[str, Any]] = [
    {"id": "lead", "name": "Lead", "color": "#6B7280", "position": 0, "probability": 10},
    {"id": "qualified", "name": "Qualified", "color": "#3B82F6", "position": 1, "probability": 25},
    {"id": "proposal", "name": "Proposal", "color": "#F59E0B", "position": 2, "probability": 50},
    {"id": "negotiation", "name": "Negotiation", "color": "#8B5CF6", "position": 3, "probability": 75},
    {"id": "closed_won", "name": "Closed Won", "color": "#10B981", "position": 4, "probability": 100},
    {"id": "closed_lost", "name": "Closed Lost", "color": "#EF4444", "position": 5, "probability": 0},
]


def _numeric(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return 0.0
    return 0.0


class PipelineService:
    """파이프라인 비즈니스 로직 (Pipeline business logic)."""

    def to_dict(self, pipeline: Pipeline) -> dict[str, Any]:
        return {
            "id": str(pipeline.id),
            "object_id": str(pipeline.object_id),
            "name": pipeline.name,
            "stages": sorted(pipeline.stages or [], key=lambda stage: stage.get("position", 0)),
            "is_default": pipeline.is_default,
            "is_archived": pipeline.is_archived,
            "created_at": pipeline.created_at,
            "updated_at": pipeline.updated_at,
        }

    async def _get(self, db: AsyncSession, pipeline_id: UUID, organization_id: UUID) -> Pipeline:
        pipeline: Pipeline | None = await pipeline_repository.get_by_id(db, pipeline_id, organization_id)
        if pipeline is None:
            raise NotFoundError("Pipeline not found")
        return pipeline

    async def create_pipeline(
        self,
        db: AsyncSession,
        organization_id: UUID,
        data: PipelineCreate,
    ) -> dict[str, Any]:
        """파이프라인을 생성합니다. 기본값이면 다른 기본 파이프라인을 해제합니다.

        Raises:
            NotFoundError: 오브젝트가 없을 때 (Object not found)
        """
        obj: CrmObject | None = await object_repository.get_by_id(db, data.object_id, organization_id)
        if obj is None:
            raise NotFoundError("Object not found")
        if data.is_default:
            await pipeline_repository.clear_default(db, data.object_id)
        pipeline: Pipeline = await pipeline_repository.create(
            db,
            {
                "organization_id": organization_id,
                "object_id": data.object_id,
                "name": data.name,
                "stages": [stage.model_dump() for stage in data.stages],
                "is_default": data.is_default,
            },
        )
        return self.to_dict(pipeline)

    async def list_for_object(
        self,
        db: AsyncSession,
        object_id: UUID,
        organization_id: UUID,
    ) -> list[dict[str, Any]]:
        pipelines: list[Pipeline] = await pipeline_repository.get_by_object(db, object_id, organization_id)
        return [self.to_dict(pipeline) for pipeline in pipelines]

    async def get_default(
        self,
        db: AsyncSession,
        object_id: UUID,
        organization_id: UUID,
    ) -> dict[str, Any]:
        pipeline: Pipeline | None = await pipeline_repository.get_default(db, object_id, organization_id)
        if pipeline is None:
            raise NotFoundError("Default pipeline not found")
        return self.to_dict(pipeline)

    async def get_pipeline(
        self,
        db: AsyncSession,
        pipeline_id: UUID,
        organization_id: UUID,
    ) -> dict[str, Any]:
        return self.to_dict(await self._get(db, pipeline_id, organization_id))

    async def update_pipeline(
        self,
        db: AsyncSession,
        pipeline_id: UUID,
        organization_id: UUID,
        data: PipelineUpdate,
    ) -> dict[str, Any]:
        pipeline: Pipeline = await self._get(db, pipeline_id, organization_id)
        if data.name is not None:
            pipeline.name = data.name
        if data.stages is not None:
            pipeline.stages = [stage.model_dump() for stage in data.stages]
        if data.is_default is not None:
            if data.is_default:
                await pipeline_repository.clear_default(db, pipeline.object_id, exclude_id=pipeline.id)
            pipeline.is_default = data.is_default
        if data.is_archived is not None:
            pipeline.is_archived = data.is_archived
        await db.flush()
        await db.refresh(pipeline)
        return self.to_dict(pipeline)

    async def archive_pipeline(
        self,
        db: AsyncSession,
        pipeline_id: UUID,
        organization_id: UUID,
    ) -> None:
        """파이프라인을 보관 처리합니다 (Pipelines are archived, never dropped)."""
        pipeline: Pipeline = await self._get(db, pipeline_id, organization_id)
        pipeline.is_archived = True
        pipeline.is_default = False
        await db.flush()

    async def get_stage_stats(
        self,
        db: AsyncSession,
        pipeline_id: UUID,
        organization_id: UUID,
    ) -> list[dict[str, Any]]:
        """단계별 레코드 수와 data.value 합계를 집계합니다.

        Per-stage count and summed ``data["value"]`` of non-archived records
        of the pipeline's object, in stage order.

        Returns:
            list[dict]: [{"stage", "count", "value"}]
        """
        pipeline: Pipeline = await self._get(db, pipeline_id, organization_id)
        stage_ids: list[str] = [stage["id"] for stage in self.to_dict(pipeline)["stages"]]
        rows = await db.execute(
            select(Record.stage, Record.data).where(
                Record.object_id == pipeline.object_id,
                Record.is_archived.is_(False),
                Record.stage.in_(stage_ids),
            )
        )
        stats: dict[str, dict[str, Any]] = {
            stage_id: {"stage": stage_id, "count": 0, "value": 0.0} for stage_id in stage_ids
        }
        for stage_id, data in rows.all():
            stats[stage_id]["count"] += 1
            stats[stage_id]["value"] += _numeric((data or {}).get("value"))
        return [stats[stage_id] for stage_id in stage_ids]

    async def create_default_pipeline(self, db: AsyncSession, deals: CrmObject) -> Pipeline | None:
        """deals 오브젝트에 기본 영업 파이프라인을 생성합니다 (없을 때만).

        Create the default "Sales Pipeline" unless the object already has one.
        """
        if await pipeline_repository.get_by_object(db, deals.id, deals.organization_id):
            return None
        return await pipeline_repository.create(
            db,
            {
                "organization_id": deals.organization_id,
                "object_id": deals.id,
                "name": "Sales Pipeline",
                "stages": [dict(stage) for stage in DEFAULT_SALES_STAGES],
                "is_default": True,
            },
        )


class ViewService:
    """저장 뷰 비즈니스 로직 (Saved view business logic)."""

    def to_dict(self, view: View) -> dict[str, Any]:
        return {
            "id": str(view.id),
            "object_id": str(view.object_id),
            "owner_id": str(view.owner_id) if view.owner_id else None,
            "name": view.name,
            "type": view.type,
            "config": view.config or {},
            "is_default": view.is_default,
            "is_shared": view.is_shared,
            "position": view.position,
            "created_at": view.created_at,
            "updated_at": view.updated_at,
        }

    async def _get_owned(
        self,
        db: AsyncSession,
        view_id: UUID,
        organization_id: UUID,
        user_id: UUID,
    ) -> View:
        view: View | None = await view_repository.get_by_id(db, view_id, organization_id)
        if view is None:
            raise NotFoundError("View not found")
        if view.owner_id != user_id:
            raise ForbiddenError("Only the owner can modify this view")
        return view

    async def create_view(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID,
        data: ViewCreate,
    ) -> dict[str, Any]:
        if await object_repository.get_by_id(db, data.object_id, organization_id) is None:
            raise NotFoundError("Object not found")
        if data.is_default:
            await view_repository.clear_default(db, data.object_id)
        position: int = await view_repository.get_max_position(db, {"object_id": data.object_id}) + 1
        view: View = await view_repository.create(
            db,
            {
                "organization_id": organization_id,
                "object_id": data.object_id,
                "owner_id": user_id,
                "name": data.name,
                "type": data.type,
                "config": data.config,
                "is_default": data.is_default,
                "is_shared": data.is_shared,
                "position": position,
            },
        )
        return self.to_dict(view)

    async def list_views(
        self,
        db: AsyncSession,
        object_id: UUID,
        organization_id: UUID,
        user_id: UUID,
    ) -> list[dict[str, Any]]:
        views: list[View] = await view_repository.get_visible(db, object_id, organization_id, user_id)
        return [self.to_dict(view) for view in views]

    async def get_view(
        self,
        db: AsyncSession,
        view_id: UUID,
        organization_id: UUID,
        user_id: UUID,
    ) -> dict[str, Any]:
        view: View | None = await view_repository.get_by_id(db, view_id, organization_id)
        if view is None or (view.owner_id != user_id and not view.is_shared):
            raise NotFoundError("View not found")
        return self.to_dict(view)

    async def update_view(
        self,
        db: AsyncSession,
        view_id: UUID,
        organization_id: UUID,
        user_id: UUID,
        data: ViewUpdate,
    ) -> dict[str, Any]:
        view: View = await self._get_owned(db, view_id, organization_id, user_id)
        update_data: dict[str, Any] = data.model_dump(exclude_unset=True, exclude_none=True)
        if update_data.get("is_default"):
            await view_repository.clear_default(db, view.object_id, exclude_id=view.id)
        for key, value in update_data.items():
            setattr(view, key, value)
        await db.flush()
        await db.refresh(view)
        return self.to_dict(view)

    async def delete_view(
        self,
        db: AsyncSession,
        view_id: UUID,
        organization_id: UUID,
        user_id: UUID,
    ) -> None:
        view: View = await self._get_owned(db, view_id, organization_id, user_id)
        await db.delete(view)
        await db.flush()


# 싱글턴 인스턴스 - Singleton instances
pipeline_service: PipelineService = PipelineService()
view_service: ViewService = ViewService()

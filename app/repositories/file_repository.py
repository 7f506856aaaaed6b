"""파일 레포지토리 (Uploaded file repository)."""

from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.file import File
from app.repositories.base import BaseRepository


class FileRepository(BaseRepository[File]):
    def __init__(self) -> None:
        super().__init__(File)

    async def get_for_target(
        self,
        db: AsyncSession,
        organization_id: UUID,
        column: str,
        target_id: UUID,
    ) -> list[File]:
        """대상(record/task/project)의 파일을 최신순으로 조회합니다."""
        query: Select = (
            select(File)
            .where(File.organization_id == organization_id, getattr(File, column) == target_id)
            .order_by(File.created_at.desc())
        )
        result = await db.execute(query)
        return list(result.scalars().all())


# 싱글턴 인스턴스 - Singleton instance
file_repository: FileRepository = FileRepository()

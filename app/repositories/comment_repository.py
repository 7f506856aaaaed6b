"""코멘트 레포지토리 (Comment repository)."""

from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.comment import Comment
from app.repositories.base import BaseRepository


class CommentRepository(BaseRepository[Comment]):
    """코멘트 레포지토리."""

    def __init__(self) -> None:
        super().__init__(Comment)

    async def get_for_target(
        self,
        db: AsyncSession,
        organization_id: UUID,
        column: str,
        target_id: UUID,
    ) -> list[Comment]:
        """대상(record/task/project)의 코멘트를 최신순으로 조회합니다.

        Comments attached to a record, task or project, newest first.

        Args:
            column: "record_id" | "task_id" | "project_id"
        """
        query: Select = (
            select(Comment)
            .where(
                Comment.organization_id == organization_id,
                getattr(Comment, column) == target_id,
            )
            .order_by(Comment.created_at.desc())
        )
        result = await db.execute(query)
        return list(result.scalars().all())


# 싱글턴 인스턴스 - Singleton instance
comment_repository: CommentRepository = CommentRepository()

"""코멘트 서비스 - 레코드/업무/프로젝트 코멘트와 멘션 알림.

Comment Service - Comments on records, tasks and projects. Mentions use
``@[Name](user_id)`` markup and notify each mentioned user.
"""

import re
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.comment import Comment
from app.models.user import User
from app.repositories.comment_repository import comment_repository
from app.repositories.project_repository import project_repository
from app.repositories.record_repository import record_repository
from app.repositories.task_repository import task_repository
from app.repositories.user_repository import user_repository
from app.schemas.communication import CommentCreate, CommentUpdate
from app.services.activity_service import activity_service
from app.services.notification_service import notification_service
from app.utils.exceptions import NotFoundError

MENTION_PATTERN: re.Pattern[str] = re.compile(r"@\[([^\]]+)\]\(([^)]+)\)")

TARGET_COLUMNS: tuple[str, ...] = ("record_id", "task_id", "project_id")


def extract_mentions(content: str) -> list[str]:
    """@[Name](user_id) 마크업에서 사용자 ID를 순서대로 추출합니다 (중복 제거).

    Extract mentioned user ids in order of appearance, without duplicates.
    """
    seen: list[str] = []
    for _, user_id in MENTION_PATTERN.findall(content):
        if user_id not in seen:
            seen.append(user_id)
    return seen


class CommentService:
    """코멘트 비즈니스 로직 (Comment business logic)."""

    def to_dict(self, comment: Comment, author: User | None = None) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": str(comment.id),
            "author_id": str(comment.author_id),
            "content": comment.content,
            "record_id": str(comment.record_id) if comment.record_id else None,
            "task_id": str(comment.task_id) if comment.task_id else None,
            "project_id": str(comment.project_id) if comment.project_id else None,
            "mentions": comment.mentions or [],
            "is_edited": comment.is_edited,
            "created_at": comment.created_at,
            "updated_at": comment.updated_at,
        }
        if author is not None:
            result["author"] = {"id": str(author.id), "name": author.name, "avatar": author.avatar}
        return result

    async def _check_target(self, db: AsyncSession, organization_id: UUID, column: str, target_id: UUID) -> None:
        repository: Any = {
            "record_id": record_repository,
            "task_id": task_repository,
            "project_id": project_repository,
        }[column]
        if await repository.get_by_id(db, target_id, organization_id) is None:
            raise NotFoundError(f"{column.removesuffix('_id').capitalize()} not found")

    async def _with_authors(
        self,
        db: AsyncSession,
        organization_id: UUID,
        comments: list[Comment],
    ) -> list[dict[str, Any]]:
        authors: dict[UUID, User] = {
            user.id: user
            for user in await user_repository.get_many(db, list({c.author_id for c in comments}), organization_id)
        }
        return [self.to_dict(comment, authors.get(comment.author_id)) for comment in comments]

    async def create_comment(
        self,
        db: AsyncSession,
        organization_id: UUID,
        author: User,
        data: CommentCreate,
    ) -> dict[str, Any]:
        """코멘트를 생성하고 멘션 알림과 COMMENT 활동을 기록합니다.

        Create a comment. Mentioned users other than the author are notified;
        record comments also add a COMMENT activity.

        Raises:
            NotFoundError: 대상이 없을 때 (Target not found)
        """
        column: str = next(name for name in TARGET_COLUMNS if getattr(data, name) is not None)
        target_id: UUID = getattr(data, column)
        await self._check_target(db, organization_id, column, target_id)

        mentions: list[str] = (
            [str(user_id) for user_id in data.mentions]
            if data.mentions is not None
            else extract_mentions(data.content)
        )
        comment: Comment = await comment_repository.create(
            db,
            {
                "organization_id": organization_id,
                "author_id": author.id,
                "content": data.content,
                column: target_id,
                "mentions": mentions,
            },
        )

        mentioned: list[User] = await user_repository.get_many(
            db, [UUID(user_id) for user_id in mentions if _is_uuid(user_id)], organization_id
        )
        for user in mentioned:
            if user.id == author.id:
                continue
            await notification_service.notify_mention(
                db, organization_id, user.id, author.name, comment.id, {column: str(target_id)}
            )

        if column == "record_id":
            await activity_service.log(
                db,
                organization_id,
                target_id,
                author.id,
                "COMMENT",
                "Comment added",
                data.content[:500],
                {"comment_id": str(comment.id)},
            )
        return self.to_dict(comment, author)

    async def list_for_target(
        self,
        db: AsyncSession,
        organization_id: UUID,
        column: str,
        target_id: UUID,
    ) -> list[dict[str, Any]]:
        comments: list[Comment] = await comment_repository.get_for_target(db, organization_id, column, target_id)
        return await self._with_authors(db, organization_id, comments)

    async def _get_own(
        self,
        db: AsyncSession,
        comment_id: UUID,
        organization_id: UUID,
        author_id: UUID,
    ) -> Comment:
        """본인 코멘트 조회 - 타인 코멘트는 404 (Other users' comments are hidden)."""
        comment: Comment | None = await comment_repository.get_by_id(db, comment_id, organization_id)
        if comment is None or comment.author_id != author_id:
            raise NotFoundError("Comment not found")
        return comment

    async def update_comment(
        self,
        db: AsyncSession,
        comment_id: UUID,
        organization_id: UUID,
        author: User,
        data: CommentUpdate,
    ) -> dict[str, Any]:
        comment: Comment = await self._get_own(db, comment_id, organization_id, author.id)
        comment.content = data.content
        comment.mentions = extract_mentions(data.content)
        comment.is_edited = True
        await db.flush()
        await db.refresh(comment)
        return self.to_dict(comment, author)

    async def delete_comment(
        self,
        db: AsyncSession,
        comment_id: UUID,
        organization_id: UUID,
        author_id: UUID,
    ) -> None:
        comment: Comment = await self._get_own(db, comment_id, organization_id, author_id)
        await db.delete(comment)
        await db.flush()


def _is_uuid(value: str) -> bool:
    try:
        UUID(value)
    except ValueError:
        return False
    return True


# 싱글턴 인스턴스 - Singleton instance
comment_service: CommentService = CommentService()

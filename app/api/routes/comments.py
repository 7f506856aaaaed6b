"""코멘트 라우터 - 레코드/업무/프로젝트 코멘트 API.

Comment Router - Comments on records, tasks and projects with @mentions.
Edits and deletes are limited to the author.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.communication import CommentCreate, CommentUpdate
from app.services.comment_service import comment_service

router: APIRouter = APIRouter()


@router.post("", status_code=201)
async def create_comment(
    data: CommentCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """코멘트를 생성하고 멘션된 사용자에게 알립니다.

    Create a comment and notify the mentioned users.

    Raises:
        NotFoundError: 대상 없음 (404)
    """
    result: dict[str, Any] = await comment_service.create_comment(
        db, current_user.organization_id, current_user, data
    )
    await db.commit()
    return result


@router.get("/record/{record_id}")
async def list_record_comments(
    record_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[dict[str, Any]]:
    return await comment_service.list_for_target(db, current_user.organization_id, "record_id", record_id)


@router.get("/task/{task_id}")
async def list_task_comments(
    task_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[dict[str, Any]]:
    return await comment_service.list_for_target(db, current_user.organization_id, "task_id", task_id)


@router.get("/project/{project_id}")
async def list_project_comments(
    project_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[dict[str, Any]]:
    return await comment_service.list_for_target(db, current_user.organization_id, "project_id", project_id)


@router.patch("/{comment_id}")
async def update_comment(
    comment_id: UUID,
    data: CommentUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    result: dict[str, Any] = await comment_service.update_comment(
        db, comment_id, current_user.organization_id, current_user, data
    )
    await db.commit()
    return result


@router.delete("/{comment_id}", status_code=204)
async def delete_comment(
    comment_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> None:
    await comment_service.delete_comment(db, comment_id, current_user.organization_id, current_user.id)
    await db.commit()

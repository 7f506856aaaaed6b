"""파일 라우터 - 첨부 파일 업로드/다운로드 API.

File Router - Multipart uploads attached to records, tasks or projects.
In local storage mode the blobs are served from ``/local/{name}``.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.user import User
from app.services.file_service import file_service
from app.services.storage_service import storage_service
from app.utils.exceptions import NotFoundError

router: APIRouter = APIRouter()


@router.post("/upload", status_code=201)
async def upload_file(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    file: Annotated[UploadFile, File()],
    record_id: Annotated[UUID | None, Form()] = None,
    task_id: Annotated[UUID | None, Form()] = None,
    project_id: Annotated[UUID | None, Form()] = None,
) -> dict[str, Any]:
    """파일을 업로드합니다.

    Store the blob through the storage service and attach it to the given
    record, task or project.

    Args:
        file: 업로드 파일 (Multipart file)
        record_id: 대상 레코드 (Target record)
        task_id: 대상 업무 (Target task)
        project_id: 대상 프로젝트 (Target project)

    Returns:
        dict: File 행 (Stored file row)

    Raises:
        BadRequestError: 빈 파일 또는 50MB 초과 (400)
        NotFoundError: 대상 없음 (404)
    """
    content: bytes = await file.read()
    result: dict[str, Any] = await file_service.upload(
        db,
        current_user.organization_id,
        current_user.id,
        file.filename or "upload",
        file.content_type,
        content,
        record_id=record_id,
        task_id=task_id,
        project_id=project_id,
    )
    await db.commit()
    return result


@router.get("/local/{name}")
async def serve_local_file(name: str) -> FileResponse:
    """로컬 모드 전용 - 저장된 파일을 반환합니다. 이름은 추측 불가능한 uuid."""
    path = storage_service.local_path(name)
    if path is None or not path.is_file():
        raise NotFoundError("File not found")
    return FileResponse(path)


@router.get("/record/{record_id}")
async def list_record_files(
    record_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[dict[str, Any]]:
    return await file_service.list_for_target(db, current_user.organization_id, "record_id", record_id)


@router.get("/task/{task_id}")
async def list_task_files(
    task_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[dict[str, Any]]:
    return await file_service.list_for_target(db, current_user.organization_id, "task_id", task_id)


@router.get("/{file_id}")
async def get_file(
    file_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    return await file_service.get_file(db, file_id, current_user.organization_id)


@router.get("/{file_id}/download")
async def get_download_url(
    file_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, str]:
    """다운로드 URL - S3는 1시간짜리 presigned URL (One-hour presigned URL on S3)."""
    return await file_service.get_download_url(db, file_id, current_user.organization_id)


@router.delete("/{file_id}", status_code=204)
async def delete_file(
    file_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> None:
    await file_service.delete_file(db, file_id, current_user.organization_id)
    await db.commit()

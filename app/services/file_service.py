"""파일 서비스 - 레코드/업무/프로젝트 첨부 파일.

File Service - Attachments stored through ``storage_service`` with a
File row per upload. Uploads to a record add a FILE_UPLOADED activity.
"""

from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.file import File
from app.repositories.file_repository import file_repository
from app.repositories.project_repository import project_repository
from app.repositories.record_repository import record_repository
from app.repositories.task_repository import task_repository
from app.services.activity_service import activity_service
from app.services.storage_service import storage_service
from app.utils.exceptions import BadRequestError, NotFoundError

MAX_FILE_SIZE: int = 50 * 1024 * 1024


class FileService:
    """첨부 파일 비즈니스 로직 (Attachment business logic)."""

    def to_dict(self, file: File) -> dict[str, Any]:
        return {
            "id": str(file.id),
            "name": file.name,
            "original_name": file.original_name,
            "mime_type": file.mime_type,
            "size": file.size,
            "url": file.url,
            "record_id": str(file.record_id) if file.record_id else None,
            "task_id": str(file.task_id) if file.task_id else None,
            "project_id": str(file.project_id) if file.project_id else None,
            "uploaded_by": str(file.uploaded_by) if file.uploaded_by else None,
            "created_at": file.created_at,
        }

    async def upload(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID,
        filename: str,
        content_type: str | None,
        data: bytes,
        record_id: UUID | None = None,
        task_id: UUID | None = None,
        project_id: UUID | None = None,
    ) -> dict[str, Any]:
        """파일을 저장하고 File 행을 생성합니다.

        Raises:
            BadRequestError: 빈 파일 또는 크기 초과 (Empty or oversized file)
            NotFoundError: 대상이 없을 때 (Target not found)
        """
        if not data:
            raise BadRequestError("File is empty")
        if len(data) > MAX_FILE_SIZE:
            raise BadRequestError("File is too large")
        if record_id is not None and await record_repository.get_by_id(db, record_id, organization_id) is None:
            raise NotFoundError("Record not found")
        if task_id is not None and await task_repository.get_by_id(db, task_id, organization_id) is None:
            raise NotFoundError("Task not found")
        if project_id is not None and await project_repository.get_by_id(db, project_id, organization_id) is None:
            raise NotFoundError("Project not found")

        mime_type: str = content_type or "application/octet-stream"
        name, url = storage_service.upload(filename, mime_type, data)
        file: File = await file_repository.create(
            db,
            {
                "organization_id": organization_id,
                "name": name,
                "original_name": filename,
                "mime_type": mime_type,
                "size": len(data),
                "url": url,
                "record_id": record_id,
                "task_id": task_id,
                "project_id": project_id,
                "uploaded_by": user_id,
            },
        )
        if record_id is not None:
            await activity_service.log(
                db, organization_id, record_id, user_id, "FILE_UPLOADED", f"Uploaded {filename}",
                metadata={"file_id": str(file.id), "size": len(data)},
            )
        return self.to_dict(file)

    async def list_for_target(
        self,
        db: AsyncSession,
        organization_id: UUID,
        column: str,
        target_id: UUID,
    ) -> list[dict[str, Any]]:
        files: list[File] = await file_repository.get_for_target(db, organization_id, column, target_id)
        return [self.to_dict(file) for file in files]

    async def _get(self, db: AsyncSession, file_id: UUID, organization_id: UUID) -> File:
        file: File | None = await file_repository.get_by_id(db, file_id, organization_id)
        if file is None:
            raise NotFoundError("File not found")
        return file

    async def get_file(self, db: AsyncSession, file_id: UUID, organization_id: UUID) -> dict[str, Any]:
        return self.to_dict(await self._get(db, file_id, organization_id))

    async def get_download_url(self, db: AsyncSession, file_id: UUID, organization_id: UUID) -> dict[str, str]:
        file: File = await self._get(db, file_id, organization_id)
        return {"url": storage_service.download_url(file.name)}

    async def delete_file(self, db: AsyncSession, file_id: UUID, organization_id: UUID) -> None:
        file: File = await self._get(db, file_id, organization_id)
        storage_service.delete(file.name)
        await db.delete(file)
        await db.flush()


# 싱글턴 인스턴스 - Singleton instance
file_service: FileService = FileService()

"""가져오기/내보내기 라우터 - CSV/XLSX 레코드 가져오기 및 내보내기 API.

Import/Export Router - Parse an upload for preview, import mapped rows,
and download records as CSV or XLSX.
"""

from io import BytesIO
from typing import Annotated, Any, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.import_export import ExportRequest, ImportRequest
from app.services.import_export_service import import_export_service

router: APIRouter = APIRouter()


def _download(content: bytes, filename: str, media_type: str) -> StreamingResponse:
    return StreamingResponse(
        BytesIO(content),
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/objects")
async def list_objects(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[dict[str, Any]]:
    """가져오기 대상 오브젝트 - 레코드 수 포함 (With record counts)."""
    return await import_export_service.list_objects(db, current_user.organization_id)


@router.get("/objects/{object_id}/fields")
async def list_object_fields(
    object_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> list[dict[str, Any]]:
    return await import_export_service.list_fields(db, object_id, current_user.organization_id)


@router.post("/preview/{object_id}")
async def preview_import(
    object_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    file: Annotated[UploadFile, File()],
) -> dict[str, Any]:
    """업로드 파일 미리보기.

    Parse a CSV or XLSX upload and return its headers, the first five rows
    and suggested column → field mappings.

    Raises:
        BadRequestError: 지원하지 않는 형식 또는 빈 파일 (400)
    """
    content: bytes = await file.read()
    return await import_export_service.preview(
        db, object_id, current_user.organization_id, file.filename or "", content
    )


@router.post("/import")
async def import_records(
    data: ImportRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> dict[str, Any]:
    """매핑된 행을 레코드로 가져옵니다.

    Import mapped rows. Failing rows are reported with their spreadsheet
    row number; the import stops after 100 errors.

    Returns:
        dict: {success, failed, errors: [{row, error}]}
    """
    result: dict[str, Any] = await import_export_service.import_records(
        db,
        current_user.organization_id,
        current_user.id,
        data.object_id,
        data.rows,
        data.mappings,
        data.options,
    )
    await db.commit()
    return result


@router.post("/export/{object_id}")
async def export_records(
    object_id: UUID,
    data: ExportRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> StreamingResponse:
    content, filename, media_type = await import_export_service.export_records(
        db, object_id, current_user.organization_id, data.format, data.fields, data.record_ids
    )
    return _download(content, filename, media_type)


@router.get("/export/{object_id}")
async def export_records_get(
    object_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    format: Annotated[Literal["csv", "xlsx"], Query()] = "csv",
) -> StreamingResponse:
    """전체 레코드 내보내기 (All fields, all non-archived records)."""
    content, filename, media_type = await import_export_service.export_records(
        db, object_id, current_user.organization_id, format
    )
    return _download(content, filename, media_type)

"""가져오기/내보내기 서비스 - CSV/XLSX 레코드 가져오기와 내보내기.

Import/Export Service - Parse CSV or XLSX uploads, suggest column
mappings, import rows as records and export records to CSV or XLSX.
"""

import csv
import io
import logging
import re
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font, PatternFill
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.crm import CrmObject, Field, Record
from app.repositories.object_repository import field_repository, object_repository
from app.repositories.record_repository import record_repository
from app.schemas.import_export import ColumnMapping, ImportOptions
from app.utils.exceptions import BadRequestError, NotFoundError

logger = logging.getLogger(__name__)

MAX_IMPORT_ERRORS: int = 100
MAX_EXPORT_ROWS: int = 10000
PREVIEW_ROWS: int = 5

CSV_MIME: str = "text/csv"
XLSX_MIME: str = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_SEPARATORS: re.Pattern[str] = re.compile(r"[_\s-]+")
TRUE_VALUES: frozenset[str] = frozenset({"true", "yes", "1", "да"})


def _normalize(text: str) -> str:
    return _SEPARATORS.sub("", text.lower())


def apply_transform(value: str, transform: str) -> str:
    if transform == "lowercase":
        return value.lower()
    if transform == "uppercase":
        return value.upper()
    if transform == "trim":
        return value.strip()
    return value


def convert_value(value: str, field_type: str) -> Any:
    """문자열 셀 값을 필드 유형에 맞게 변환합니다. 변환 불가는 None.

    Convert a cell string to the field's type; unparseable values become None.
    """
    if not value:
        return None
    if field_type in ("NUMBER", "RATING"):
        try:
            number: int = int(float(value))
        except ValueError:
            return None
        return min(max(number, 0), 5) if field_type == "RATING" else number
    if field_type in ("DECIMAL", "CURRENCY", "PERCENT"):
        try:
            return float(re.sub(r"[,$%]", "", value))
        except ValueError:
            return None
    if field_type == "BOOLEAN":
        return value.lower() in TRUE_VALUES
    if field_type in ("DATE", "DATETIME"):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).isoformat()
        except ValueError:
            return None
    if field_type == "MULTI_SELECT":
        return [part.strip() for part in re.split(r"[,;]", value) if part.strip()]
    return value


def format_export_value(value: Any, field_type: str) -> str:
    if value is None:
        return ""
    if field_type == "BOOLEAN":
        return "Yes" if value else "No"
    if field_type == "MULTI_SELECT" and isinstance(value, list):
        return ", ".join(str(item) for item in value)
    if field_type in ("DATE", "DATETIME") and isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date().isoformat()
        except ValueError:
            return value
    if field_type == "CURRENCY" and isinstance(value, (int, float)):
        return f"{value:.2f}"
    if field_type == "PERCENT" and isinstance(value, (int, float)):
        return f"{value}%"
    return str(value)


def parse_csv(content: bytes) -> tuple[list[str], list[dict[str, str]]]:
    """CSV 파싱 - 첫 행은 헤더 (First row is the header).

    Raises:
        BadRequestError: 데이터 행이 없거나 파싱 실패
    """
    try:
        text: str = content.decode("utf-8-sig")
        reader = csv.DictReader(io.StringIO(text))
        headers: list[str] = list(reader.fieldnames or [])
        rows: list[dict[str, str]] = [
            {header: (row.get(header) or "") for header in headers}
            for row in reader
            if any((value or "").strip() for value in row.values() if isinstance(value, str))
        ]
    except (UnicodeDecodeError, csv.Error) as exc:
        logger.error("Failed to parse CSV", extra={"error": str(exc)})
        raise BadRequestError("Failed to parse CSV file. Check file format.") from exc
    if not rows:
        raise BadRequestError("CSV file is empty or has no data rows")
    return headers, rows


def parse_xlsx(content: bytes) -> tuple[list[str], list[dict[str, str]]]:
    """XLSX 파싱 - 첫 시트, 첫 행은 헤더. 빈 헤더는 ColumnN.

    Raises:
        BadRequestError: 데이터 행이 없거나 파싱 실패
    """
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as exc:
        logger.error("Failed to parse Excel", extra={"error": str(exc)})
        raise BadRequestError("Failed to parse Excel file. Check file format.") from exc

    sheet = workbook.worksheets[0]
    rows_iter = sheet.iter_rows(values_only=True)
    first: tuple[Any, ...] | None = next(rows_iter, None)
    if first is None:
        raise BadRequestError("Excel file is empty or has no data rows")
    headers: list[str] = [
        str(value) if value not in (None, "") else f"Column{index + 1}" for index, value in enumerate(first)
    ]

    rows: list[dict[str, str]] = []
    for values in rows_iter:
        row: dict[str, str] = {
            header: ("" if index >= len(values) or values[index] is None else str(values[index]))
            for index, header in enumerate(headers)
        }
        if any(row.values()):
            rows.append(row)
    workbook.close()
    if not rows:
        raise BadRequestError("Excel file is empty or has no data rows")
    return headers, rows


def parse_file(filename: str, content: bytes) -> tuple[list[str], list[dict[str, str]]]:
    lower: str = filename.lower()
    if lower.endswith(".csv"):
        return parse_csv(content)
    if lower.endswith(".xlsx"):
        return parse_xlsx(content)
    raise BadRequestError("Unsupported file format. Please upload a CSV or XLSX file.")


def suggest_mappings(headers: list[str], fields: list[Field]) -> list[dict[str, str]]:
    """헤더 이름으로 필드 매핑을 추천합니다.

    A header matches a field when the normalized names are equal or one
    contains the other. Unmatched headers map to "".
    """
    suggestions: list[dict[str, str]] = []
    for header in headers:
        key: str = _normalize(header)
        matched: Field | None = None
        if key:
            for field in fields:
                name: str = _normalize(field.name)
                display: str = _normalize(field.display_name)
                if name == key or display == key or key in name or name in key:
                    matched = field
                    break
        suggestions.append(
            {"source_column": header, "target_field": matched.name if matched else "", "transform": "trim"}
        )
    return suggestions


class ImportExportService:
    """가져오기/내보내기 비즈니스 로직 (Import and export business logic)."""

    async def _get_object(self, db: AsyncSession, object_id: UUID, organization_id: UUID) -> CrmObject:
        obj: CrmObject | None = await object_repository.get_by_id(db, object_id, organization_id)
        if obj is None:
            raise NotFoundError("Object not found")
        return obj

    async def list_objects(self, db: AsyncSession, organization_id: UUID) -> list[dict[str, Any]]:
        """가져오기 대상 오브젝트 목록 (Active objects with record counts)."""
        objects: list[CrmObject] = list(
            await object_repository.get_all(db, organization_id, {"is_archived": False}, CrmObject.position)
        )
        _, record_counts = await object_repository.get_counts(db, [obj.id for obj in objects])
        return [
            {
                "id": str(obj.id),
                "name": obj.name,
                "display_name": obj.display_name,
                "icon": obj.icon,
                "color": obj.color,
                "record_count": record_counts.get(obj.id, 0),
            }
            for obj in objects
        ]

    async def list_fields(self, db: AsyncSession, object_id: UUID, organization_id: UUID) -> list[dict[str, Any]]:
        obj: CrmObject = await self._get_object(db, object_id, organization_id)
        fields: list[Field] = await field_repository.get_by_object(db, obj.id)
        return [
            {
                "name": field.name,
                "display_name": field.display_name,
                "type": field.type,
                "is_required": field.is_required,
                "is_unique": field.is_unique,
            }
            for field in fields
        ]

    async def preview(
        self,
        db: AsyncSession,
        object_id: UUID,
        organization_id: UUID,
        filename: str,
        content: bytes,
    ) -> dict[str, Any]:
        """업로드 파일 미리보기 - 헤더, 처음 5행, 추천 매핑."""
        obj: CrmObject = await self._get_object(db, object_id, organization_id)
        headers, rows = parse_file(filename, content)
        fields: list[Field] = await field_repository.get_by_object(db, obj.id)
        return {
            "total_rows": len(rows),
            "headers": headers,
            "sample_data": rows[:PREVIEW_ROWS],
            "suggested_mappings": suggest_mappings(headers, fields),
        }

    def _build_data(
        self,
        row: dict[str, Any],
        mappings: list[ColumnMapping],
        fields: dict[str, Field],
    ) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for mapping in mappings:
            field: Field | None = fields.get(mapping.target_field) if mapping.target_field else None
            if field is None:
                continue
            raw: Any = row.get(mapping.source_column)
            text: str = apply_transform("" if raw is None else str(raw), mapping.transform)
            value: Any = convert_value(text, field.type)
            if field.is_required and value in (None, ""):
                raise ValueError(f'Field "{field.display_name}" is required')
            data[field.name] = value
        return data

    async def import_records(
        self,
        db: AsyncSession,
        organization_id: UUID,
        user_id: UUID,
        object_id: UUID,
        rows: list[dict[str, Any]],
        mappings: list[ColumnMapping],
        options: ImportOptions,
    ) -> dict[str, Any]:
        """행을 레코드로 가져옵니다.

        Row numbers in errors count the header row, so the first data row is
        row 2. Import stops after 100 errors.

        Returns:
            dict: {"success", "failed", "errors": [{"row", "error"}]}
        """
        obj: CrmObject = await self._get_object(db, object_id, organization_id)
        fields: dict[str, Field] = {field.name: field for field in await field_repository.get_by_object(db, obj.id)}
        unique_targets: list[str] = [
            m.target_field for m in mappings if m.target_field in fields and fields[m.target_field].is_unique
        ]
        check_duplicates: bool = bool(unique_targets) and (options.skip_duplicates or options.update_existing)

        success: int = 0
        failed: int = 0
        errors: list[dict[str, Any]] = []
        for index, row in enumerate(rows):
            row_number: int = index + 2
            try:
                data: dict[str, Any] = self._build_data(row, mappings, fields)

                existing: Record | None = None
                if check_duplicates:
                    for target in unique_targets:
                        if data.get(target) is None:
                            continue
                        existing = await record_repository.find_by_data_value(db, obj.id, target, data[target])
                        if existing is not None:
                            break
                if existing is not None and options.skip_duplicates:
                    failed += 1
                    errors.append({"row": row_number, "error": "Duplicate record, skipped"})
                    continue
                if existing is not None and options.update_existing:
                    existing.data = {**(existing.data or {}), **data}
                    existing.updated_by = user_id
                    await db.flush()
                    success += 1
                    continue

                await record_repository.create(
                    db,
                    {
                        "organization_id": organization_id,
                        "object_id": obj.id,
                        "data": data,
                        "owner_id": user_id,
                        "created_by": user_id,
                        "updated_by": user_id,
                    },
                )
                success += 1
            except ValueError as exc:
                failed += 1
                errors.append({"row": row_number, "error": str(exc)})
                if len(errors) >= MAX_IMPORT_ERRORS:
                    logger.warning("Import stopped due to too many errors", extra={"object_id": str(obj.id)})
                    break

        logger.info("Import completed", extra={"object_id": str(obj.id), "success": success, "failed": failed})
        return {"success": success, "failed": failed, "errors": errors}

    async def export_records(
        self,
        db: AsyncSession,
        object_id: UUID,
        organization_id: UUID,
        file_format: str = "csv",
        field_names: list[str] | None = None,
        record_ids: list[UUID] | None = None,
    ) -> tuple[bytes, str, str]:
        """레코드를 CSV 또는 XLSX로 내보냅니다.

        Returns:
            tuple[bytes, str, str]: (내용, 파일명, MIME 타입)

        Raises:
            BadRequestError: 내보낼 레코드 없음 (No records to export)
        """
        obj: CrmObject = await self._get_object(db, object_id, organization_id)
        fields: list[Field] = await field_repository.get_by_object(db, obj.id)
        if field_names:
            fields = [field for field in fields if field.name in field_names]

        if record_ids:
            records: list[Record] = [
                r for r in await record_repository.get_many(db, record_ids, organization_id) if r.object_id == obj.id
            ]
        else:
            records = await record_repository.get_all_for_object(db, obj.id, organization_id)
        records = records[:MAX_EXPORT_ROWS]
        if not records:
            raise BadRequestError("No records to export")

        headers: list[str] = ["id", *(field.display_name for field in fields), "Created At"]
        rows: list[list[str]] = []
        for record in records:
            data: dict[str, Any] = record.data or {}
            rows.append(
                [
                    str(record.id),
                    *(format_export_value(data.get(field.name), field.type) for field in fields),
                    record.created_at.isoformat() if record.created_at else "",
                ]
            )

        stamp: str = datetime.now(timezone.utc).date().isoformat()
        if file_format == "xlsx":
            return self._to_xlsx(headers, rows, obj.display_name), f"{obj.display_name}-export-{stamp}.xlsx", XLSX_MIME
        return self._to_csv(headers, rows), f"{obj.display_name}-export-{stamp}.csv", CSV_MIME

    def _to_csv(self, headers: list[str], rows: list[list[str]]) -> bytes:
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_NONNUMERIC)
        writer.writerow(headers)
        writer.writerows(rows)
        return buffer.getvalue().encode("utf-8")

    def _to_xlsx(self, headers: list[str], rows: list[list[str]], title: str) -> bytes:
        workbook = Workbook()
        sheet = workbook.active
        # 시트 이름은 31자 제한
        sheet.title = title[:31] or "Export"
        sheet.append(headers)
        for cell in sheet[1]:
            cell.font = Font(bold=True)
            cell.fill = PatternFill(fill_type="solid", fgColor="FFE0E0E0")
        for row in rows:
            sheet.append(row)
        for index, header in enumerate(headers, start=1):
            sheet.column_dimensions[sheet.cell(row=1, column=index).column_letter].width = max(15, len(header) + 2)

        buffer = io.BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()


# 싱글턴 인스턴스 - Singleton instance
import_export_service: ImportExportService = ImportExportService()

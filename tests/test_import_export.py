"""가져오기/내보내기 API 테스트 - CSV/XLSX 미리보기, 매핑 가져오기, 내보내기.

Import/export API tests: upload previews with suggested mappings, mapped
imports with duplicate handling, and CSV/XLSX exports.
"""

import csv
import io

import pytest
from httpx import AsyncClient
from openpyxl import Workbook, load_workbook

from app.services.import_export_service import convert_value, format_export_value
from tests.conftest import auth_header

BASE = "/api/import-export"

CONTACT_MAPPINGS = [
    {"source_column": "Full Name", "target_field": "name", "transform": "trim"},
    {"source_column": "E-mail", "target_field": "email", "transform": "lowercase"},
]


def xlsx_bytes(rows: list[list]) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


class TestConversions:
    @pytest.mark.parametrize(
        ("value", "field_type", "expected"),
        [
            ("", "TEXT", None),
            ("42.7", "NUMBER", 42),
            ("9", "RATING", 5),
            ("$1,200.50", "CURRENCY", 1200.5),
            ("12%", "PERCENT", 12.0),
            ("yes", "BOOLEAN", True),
            ("no", "BOOLEAN", False),
            ("2024-05-01", "DATE", "2024-05-01T00:00:00"),
            ("soon", "DATE", None),
            ("a, b;c", "MULTI_SELECT", ["a", "b", "c"]),
            ("abc", "NUMBER", None),
        ],
    )
    def test_convert_value(self, value, field_type, expected):
        assert convert_value(value, field_type) == expected

    def test_format_export_value(self):
        assert format_export_value(None, "TEXT") == ""
        assert format_export_value(True, "BOOLEAN") == "Yes"
        assert format_export_value(["a", "b"], "MULTI_SELECT") == "a, b"
        assert format_export_value(5, "CURRENCY") == "5.00"
        assert format_export_value("2024-05-01T10:00:00Z", "DATE") == "2024-05-01"


class TestPreview:
    """업로드 미리보기 테스트."""

    async def test_csv_preview_suggests_mappings(self, client: AsyncClient, owner_token, system_objects):
        content = "Full Name,E-mail,Favourite colour\nAda,ADA@example.com,green\nBob,bob@example.com,blue\n"
        res = await client.post(
            f"{BASE}/preview/{system_objects['contacts']['id']}",
            files={"file": ("contacts.csv", content.encode(), "text/csv")},
            headers=auth_header(owner_token),
        )
        assert res.status_code == 200
        body = res.json()
        assert body["total_rows"] == 2
        assert body["headers"] == ["Full Name", "E-mail", "Favourite colour"]
        targets = {m["source_column"]: m["target_field"] for m in body["suggested_mappings"]}
        assert targets["E-mail"] == "email"
        assert targets["Favourite colour"] == ""

    async def test_xlsx_preview(self, client: AsyncClient, owner_token, system_objects):
        content = xlsx_bytes([["Name", None], ["Ada", "x"], [None, None]])
        res = await client.post(
            f"{BASE}/preview/{system_objects['contacts']['id']}",
            files={"file": ("contacts.xlsx", content, "application/octet-stream")},
            headers=auth_header(owner_token),
        )
        body = res.json()
        assert body["headers"] == ["Name", "Column2"]
        assert body["sample_data"] == [{"Name": "Ada", "Column2": "x"}]

    @pytest.mark.parametrize(
        ("filename", "content"),
        [("notes.txt", b"hello"), ("empty.csv", b"name,email\n"), ("broken.xlsx", b"not a zip")],
    )
    async def test_rejected_uploads(self, client: AsyncClient, owner_token, system_objects, filename, content):
        res = await client.post(
            f"{BASE}/preview/{system_objects['contacts']['id']}",
            files={"file": (filename, content, "application/octet-stream")},
            headers=auth_header(owner_token),
        )
        assert res.status_code == 400


class TestImport:
    """가져오기 테스트."""

    async def test_import_rows(self, client: AsyncClient, owner_token, system_objects):
        contacts_id = system_objects["contacts"]["id"]
        res = await client.post(
            f"{BASE}/import",
            json={
                "object_id": contacts_id,
                "rows": [{"Full Name": "  Ada ", "E-mail": "ADA@Example.com"}, {"Full Name": "Bob", "E-mail": ""}],
                "mappings": CONTACT_MAPPINGS,
            },
            headers=auth_header(owner_token),
        )
        assert res.json() == {"success": 2, "failed": 0, "errors": []}

        records = (await client.get("/api/records", params={"object_id": contacts_id}, headers=auth_header(owner_token))).json()
        by_name = {record["data"]["name"]: record["data"] for record in records["data"]}
        assert by_name["Ada"]["email"] == "ada@example.com"
        assert by_name["Bob"]["email"] is None

    async def test_required_field_reports_row_number(self, client: AsyncClient, owner_token, system_objects):
        res = await client.post(
            f"{BASE}/import",
            json={
                "object_id": system_objects["contacts"]["id"],
                "rows": [{"Full Name": "Ada"}, {"Full Name": "   "}],
                "mappings": CONTACT_MAPPINGS,
            },
            headers=auth_header(owner_token),
        )
        body = res.json()
        assert body["success"] == 1
        assert body["errors"] == [{"row": 3, "error": 'Field "Name" is required'}]

    async def test_skip_and_update_duplicates(self, client: AsyncClient, owner_token, system_objects):
        headers = auth_header(owner_token)
        contacts_id = system_objects["contacts"]["id"]
        rows = [{"Full Name": "Ada", "E-mail": "ada@example.com"}]
        await client.post(f"{BASE}/import", json={"object_id": contacts_id, "rows": rows, "mappings": CONTACT_MAPPINGS}, headers=headers)

        renamed = [{"Full Name": "Ada Lovelace", "E-mail": "ada@example.com"}]
        skipped = await client.post(
            f"{BASE}/import",
            json={"object_id": contacts_id, "rows": renamed, "mappings": CONTACT_MAPPINGS, "options": {"skip_duplicates": True}},
            headers=headers,
        )
        assert skipped.json()["errors"] == [{"row": 2, "error": "Duplicate record, skipped"}]

        updated = await client.post(
            f"{BASE}/import",
            json={"object_id": contacts_id, "rows": renamed, "mappings": CONTACT_MAPPINGS, "options": {"update_existing": True}},
            headers=headers,
        )
        assert updated.json()["success"] == 1

        records = (await client.get("/api/records", params={"object_id": contacts_id}, headers=headers)).json()
        assert [record["data"]["name"] for record in records["data"]] == ["Ada Lovelace"]


class TestExport:
    """내보내기 테스트."""

    async def test_csv_export(self, client: AsyncClient, owner_token, system_objects):
        headers = auth_header(owner_token)
        deals_id = system_objects["deals"]["id"]
        await client.post(
            "/api/records", json={"object_id": deals_id, "data": {"name": "Big", "stage": "lead", "value": 5}}, headers=headers
        )
        res = await client.get(f"{BASE}/export/{deals_id}", headers=headers)
        assert res.status_code == 200
        assert res.headers["content-type"].startswith("text/csv")
        assert "attachment" in res.headers["content-disposition"]

        rows = list(csv.reader(io.StringIO(res.text)))
        assert rows[0][:3] == ["id", "Name", "Deal Value"]
        assert rows[1][1:3] == ["Big", "5.00"]

    async def test_xlsx_export_selected_fields(self, client: AsyncClient, owner_token, system_objects):
        headers = auth_header(owner_token)
        contacts_id = system_objects["contacts"]["id"]
        await client.post("/api/records", json={"object_id": contacts_id, "data": {"name": "Ada"}}, headers=headers)

        res = await client.post(f"{BASE}/export/{contacts_id}", json={"format": "xlsx", "fields": ["name"]}, headers=headers)
        sheet = load_workbook(io.BytesIO(res.content)).worksheets[0]
        values = list(sheet.iter_rows(values_only=True))
        assert values[0] == ("id", "Name", "Created At")
        assert values[1][1] == "Ada"

    async def test_nothing_to_export(self, client: AsyncClient, owner_token, system_objects):
        res = await client.get(f"{BASE}/export/{system_objects['companies']['id']}", headers=auth_header(owner_token))
        assert res.status_code == 400

"""파일 API 테스트 - 로컬 스토리지 모드 업로드/조회/삭제.

File API tests against local storage mode (no AWS keys under test).
"""

import pytest
from httpx import AsyncClient

from app.services.storage_service import storage_service
from tests.conftest import auth_header

FILES = "/api/files"


@pytest.fixture(autouse=True)
def uploads_dir(tmp_path, monkeypatch):
    """업로드 디렉토리를 임시 경로로 교체합니다."""
    monkeypatch.setattr("app.services.storage_service.UPLOADS_DIR", tmp_path)
    return tmp_path


class TestStorageService:
    def test_generated_name_keeps_extension(self):
        name = storage_service.generate_name("Report.PDF")
        assert name.endswith(".pdf")
        assert len(name.split(".")[0]) == 32
        assert storage_service.generate_name("README").endswith(".bin")

    def test_local_path_stays_inside_uploads(self, uploads_dir):
        assert storage_service.local_path("abc.txt") == (uploads_dir / "abc.txt").resolve()
        assert storage_service.local_path("../secret.txt") is None


class TestFiles:
    """첨부 파일 테스트."""

    async def test_upload_to_record(self, client: AsyncClient, owner_token, system_objects, uploads_dir):
        headers = auth_header(owner_token)
        record = (await client.post(
            "/api/records", json={"object_id": system_objects["contacts"]["id"], "data": {"name": "Ada"}}, headers=headers
        )).json()

        res = await client.post(
            f"{FILES}/upload",
            files={"file": ("notes.txt", b"hello world", "text/plain")},
            data={"record_id": record["id"]},
            headers=headers,
        )
        assert res.status_code == 201
        uploaded = res.json()
        assert uploaded["original_name"] == "notes.txt"
        assert uploaded["size"] == 11
        assert (uploads_dir / uploaded["name"]).read_bytes() == b"hello world"
        assert uploaded["url"].endswith(f"/api/files/local/{uploaded['name']}")

        listing = (await client.get(f"{FILES}/record/{record['id']}", headers=headers)).json()
        assert [item["id"] for item in listing] == [uploaded["id"]]

        timeline = (await client.get(f"/api/activities/record/{record['id']}/timeline", headers=headers)).json()
        assert any(entry["type"] == "FILE_UPLOADED" for entry in timeline)

    async def test_serve_and_delete(self, client: AsyncClient, owner_token, uploads_dir):
        headers = auth_header(owner_token)
        uploaded = (await client.post(
            f"{FILES}/upload", files={"file": ("a.txt", b"abc", "text/plain")}, headers=headers
        )).json()

        served = await client.get(f"{FILES}/local/{uploaded['name']}")
        assert served.status_code == 200
        assert served.content == b"abc"

        download = (await client.get(f"{FILES}/{uploaded['id']}/download", headers=headers)).json()
        assert download["url"] == uploaded["url"]

        assert (await client.delete(f"{FILES}/{uploaded['id']}", headers=headers)).status_code == 204
        assert not (uploads_dir / uploaded["name"]).exists()
        assert (await client.get(f"{FILES}/{uploaded['id']}", headers=headers)).status_code == 404

    async def test_empty_file_rejected(self, client: AsyncClient, owner_token):
        res = await client.post(
            f"{FILES}/upload", files={"file": ("a.txt", b"", "text/plain")}, headers=auth_header(owner_token)
        )
        assert res.status_code == 400

    async def test_unknown_target(self, client: AsyncClient, owner_token):
        res = await client.post(
            f"{FILES}/upload",
            files={"file": ("a.txt", b"abc", "text/plain")},
            data={"task_id": "00000000-0000-0000-0000-000000000000"},
            headers=auth_header(owner_token),
        )
        assert res.status_code == 404

    async def test_missing_local_file(self, client: AsyncClient):
        assert (await client.get(f"{FILES}/local/nothing.txt")).status_code == 404

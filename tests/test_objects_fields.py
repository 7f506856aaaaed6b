"""오브젝트/필드 API 테스트 - 메타데이터 CRUD, 이름 규칙, 시스템 보호.

Object and field API tests - Metadata CRUD, identifier rules, system
object protection and role checks.
"""

import pytest
from httpx import AsyncClient

from tests.conftest import auth_header

OBJECTS = "/api/objects"
FIELDS = "/api/fields"


async def create_object(client: AsyncClient, token: str, name: str = "projects_x", **extra) -> dict:
    res = await client.post(OBJECTS, json={"name": name, "display_name": name.title(), **extra}, headers=auth_header(token))
    assert res.status_code == 201, res.text
    return res.json()


class TestObjectCreate:
    """오브젝트 생성 테스트."""

    @pytest.mark.parametrize("name", ["vendors", "a", "vendor_2", "x1_y2"])
    async def test_valid_names(self, client: AsyncClient, owner_token, name):
        obj = await create_object(client, owner_token, name)
        assert obj["name"] == name
        assert obj["type"] == "CUSTOM"
        assert obj["schema"] == {}

    @pytest.mark.parametrize("name", ["Vendors", "1vendor", "_vendor", "ven-dor", "ven dor", "", "vendors\n"])
    async def test_invalid_names(self, client: AsyncClient, owner_token, name):
        res = await client.post(OBJECTS, json={"name": name, "display_name": "X"}, headers=auth_header(owner_token))
        assert res.status_code == 400
        assert res.json()["errors"][0]["field"] == "name"

    async def test_duplicate_name(self, client: AsyncClient, owner_token):
        await create_object(client, owner_token, "vendors")
        res = await client.post(OBJECTS, json={"name": "vendors", "display_name": "Again"}, headers=auth_header(owner_token))
        assert res.status_code == 409

    async def test_member_forbidden(self, client: AsyncClient, member_token):
        res = await client.post(OBJECTS, json={"name": "vendors", "display_name": "V"}, headers=auth_header(member_token))
        assert res.status_code == 403

    async def test_invalid_color(self, client: AsyncClient, owner_token):
        res = await client.post(
            OBJECTS, json={"name": "vendors", "display_name": "V", "color": "red"}, headers=auth_header(owner_token)
        )
        assert res.status_code == 400

    async def test_position_increments(self, client: AsyncClient, owner_token):
        first = await create_object(client, owner_token, "alpha")
        second = await create_object(client, owner_token, "beta")
        assert second["position"] == first["position"] + 1


class TestObjectRead:
    async def test_list_with_counts(self, client: AsyncClient, owner_token, member_token, system_objects):
        res = await client.get(OBJECTS, headers=auth_header(member_token))
        assert res.status_code == 200
        body = res.json()
        assert body["meta"]["total"] == 5
        contacts = next(obj for obj in body["data"] if obj["name"] == "contacts")
        assert contacts["field_count"] == 4
        assert contacts["record_count"] == 0

    async def test_filter_by_type(self, client: AsyncClient, owner_token, system_objects):
        await create_object(client, owner_token, "vendors")
        res = await client.get(OBJECTS, params={"type": "CUSTOM"}, headers=auth_header(owner_token))
        assert [obj["name"] for obj in res.json()["data"]] == ["vendors"]

    async def test_get_by_name_includes_fields(self, client: AsyncClient, owner_token, system_objects):
        res = await client.get(f"{OBJECTS}/by-name/deals", headers=auth_header(owner_token))
        assert res.status_code == 200
        names = [field["name"] for field in res.json()["fields"]]
        assert names[:3] == ["name", "value", "stage"]

    async def test_get_unknown(self, client: AsyncClient, owner_token):
        res = await client.get(f"{OBJECTS}/by-name/nothing", headers=auth_header(owner_token))
        assert res.status_code == 404

    async def test_seed_is_idempotent(self, client: AsyncClient, owner_token, system_objects):
        res = await client.post(f"{OBJECTS}/seed-system", headers=auth_header(owner_token))
        assert res.status_code == 200
        assert len(res.json()) == 5
        listing = await client.get(OBJECTS, headers=auth_header(owner_token))
        assert listing.json()["meta"]["total"] == 5

    async def test_other_org_cannot_see(self, client: AsyncClient, owner_token, system_objects):
        """다른 조직의 사용자는 오브젝트를 볼 수 없습니다."""
        reg = await client.post("/api/auth/register", json={"email": "outsider@test.com", "password": "secret123"})
        token = reg.json()["token"]
        res = await client.get(f"{OBJECTS}/{system_objects['contacts']['id']}", headers=auth_header(token))
        assert res.status_code == 404


class TestObjectUpdateDelete:
    """오브젝트 수정/삭제 테스트."""

    async def test_system_object_protected_keys(self, client: AsyncClient, owner_token, system_objects):
        deals_id = system_objects["deals"]["id"]
        res = await client.patch(f"{OBJECTS}/{deals_id}", json={"is_archived": True}, headers=auth_header(owner_token))
        assert res.status_code == 400

        res = await client.patch(f"{OBJECTS}/{deals_id}", json={"display_name": "Opportunities"}, headers=auth_header(owner_token))
        assert res.status_code == 200
        assert res.json()["display_name"] == "Opportunities"

    async def test_cannot_delete_system_object(self, client: AsyncClient, owner_token, system_objects):
        res = await client.delete(f"{OBJECTS}/{system_objects['contacts']['id']}", headers=auth_header(owner_token))
        assert res.status_code == 400

    async def test_soft_delete_archives(self, client: AsyncClient, owner_token):
        obj = await create_object(client, owner_token, "vendors")
        res = await client.delete(f"{OBJECTS}/{obj['id']}", headers=auth_header(owner_token))
        assert res.status_code == 204

        listing = await client.get(OBJECTS, headers=auth_header(owner_token))
        assert listing.json()["meta"]["total"] == 0
        archived = await client.get(OBJECTS, params={"include_archived": True}, headers=auth_header(owner_token))
        assert archived.json()["data"][0]["is_archived"] is True

    async def test_hard_delete(self, client: AsyncClient, owner_token):
        obj = await create_object(client, owner_token, "vendors")
        res = await client.delete(f"{OBJECTS}/{obj['id']}", params={"hard": True}, headers=auth_header(owner_token))
        assert res.status_code == 204
        res = await client.get(f"{OBJECTS}/{obj['id']}", headers=auth_header(owner_token))
        assert res.status_code == 404

    async def test_reorder(self, client: AsyncClient, owner_token):
        first = await create_object(client, owner_token, "alpha")
        second = await create_object(client, owner_token, "beta")
        res = await client.post(
            f"{OBJECTS}/reorder", json={"ordered_ids": [second["id"], first["id"]]}, headers=auth_header(owner_token)
        )
        assert res.status_code == 204
        listing = await client.get(OBJECTS, headers=auth_header(owner_token))
        assert [obj["name"] for obj in listing.json()["data"]] == ["beta", "alpha"]


class TestFields:
    """필드 정의 테스트."""

    async def test_create_field_updates_schema(self, client: AsyncClient, owner_token):
        obj = await create_object(client, owner_token, "vendors")
        res = await client.post(
            FIELDS,
            json={"object_id": obj["id"], "name": "rating", "display_name": "Rating", "type": "RATING"},
            headers=auth_header(owner_token),
        )
        assert res.status_code == 201
        detail = await client.get(f"{OBJECTS}/{obj['id']}", headers=auth_header(owner_token))
        assert "rating" in detail.json()["schema"]

    async def test_duplicate_field_name(self, client: AsyncClient, owner_token):
        obj = await create_object(client, owner_token, "vendors")
        payload = {"object_id": obj["id"], "name": "code", "display_name": "Code", "type": "TEXT"}
        await client.post(FIELDS, json=payload, headers=auth_header(owner_token))
        res = await client.post(FIELDS, json=payload, headers=auth_header(owner_token))
        assert res.status_code == 409

    async def test_invalid_type(self, client: AsyncClient, owner_token):
        obj = await create_object(client, owner_token, "vendors")
        res = await client.post(
            FIELDS,
            json={"object_id": obj["id"], "name": "code", "display_name": "Code", "type": "BLOB"},
            headers=auth_header(owner_token),
        )
        assert res.status_code == 400

    async def test_relation_requires_target(self, client: AsyncClient, owner_token):
        obj = await create_object(client, owner_token, "vendors")
        res = await client.post(
            FIELDS,
            json={"object_id": obj["id"], "name": "owner", "display_name": "Owner", "type": "RELATION"},
            headers=auth_header(owner_token),
        )
        assert res.status_code == 400

    @pytest.mark.parametrize("options", [[{"label": "Gold"}], [1, 2], "gold,silver"])
    async def test_select_rejects_malformed_options(self, client: AsyncClient, owner_token, options):
        """잘못된 선택지는 400 (Options without a string value are rejected)."""
        obj = await create_object(client, owner_token, "vendors")
        res = await client.post(
            FIELDS,
            json={
                "object_id": obj["id"],
                "name": "tier",
                "display_name": "Tier",
                "type": "SELECT",
                "config": {"options": options},
            },
            headers=auth_header(owner_token),
        )
        assert res.status_code == 400

    async def test_invalid_pattern(self, client: AsyncClient, owner_token):
        """컴파일되지 않는 패턴은 400 (An uncompilable pattern is rejected)."""
        obj = await create_object(client, owner_token, "vendors")
        res = await client.post(
            FIELDS,
            json={
                "object_id": obj["id"],
                "name": "code",
                "display_name": "Code",
                "type": "TEXT",
                "config": {"pattern": "("},
            },
            headers=auth_header(owner_token),
        )
        assert res.status_code == 400
        assert res.json()["detail"] == "Invalid pattern"

        created = await client.post(
            FIELDS,
            json={"object_id": obj["id"], "name": "code", "display_name": "Code", "type": "TEXT"},
            headers=auth_header(owner_token),
        )
        res = await client.patch(
            f"{FIELDS}/{created.json()['id']}", json={"config": {"pattern": "[a-"}}, headers=auth_header(owner_token)
        )
        assert res.status_code == 400

    async def test_system_fields_are_protected(self, client: AsyncClient, owner_token, system_objects):
        fields = await client.get(f"{FIELDS}/object/{system_objects['contacts']['id']}", headers=auth_header(owner_token))
        name_field = next(field for field in fields.json() if field["name"] == "name")
        res = await client.patch(f"{FIELDS}/{name_field['id']}", json={"display_name": "Full name"}, headers=auth_header(owner_token))
        assert res.status_code == 400
        res = await client.delete(f"{FIELDS}/{name_field['id']}", headers=auth_header(owner_token))
        assert res.status_code == 400

    async def test_update_and_delete_custom_field(self, client: AsyncClient, owner_token):
        obj = await create_object(client, owner_token, "vendors")
        created = await client.post(
            FIELDS,
            json={"object_id": obj["id"], "name": "code", "display_name": "Code", "type": "TEXT"},
            headers=auth_header(owner_token),
        )
        field_id = created.json()["id"]
        res = await client.patch(f"{FIELDS}/{field_id}", json={"is_required": True}, headers=auth_header(owner_token))
        assert res.json()["is_required"] is True

        res = await client.delete(f"{FIELDS}/{field_id}", headers=auth_header(owner_token))
        assert res.status_code == 204
        detail = await client.get(f"{OBJECTS}/{obj['id']}", headers=auth_header(owner_token))
        assert "code" not in detail.json()["schema"]

    async def test_member_cannot_create_field(self, client: AsyncClient, owner_token, member_token):
        obj = await create_object(client, owner_token, "vendors")
        res = await client.post(
            FIELDS,
            json={"object_id": obj["id"], "name": "code", "display_name": "Code", "type": "TEXT"},
            headers=auth_header(member_token),
        )
        assert res.status_code == 403

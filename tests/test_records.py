"""레코드 API 테스트 - CRUD, 검증, 필터, 페이지네이션, 관계, 활동.

Record API tests - CRUD, data validation, filters, pagination, relations
and the activity timeline.
"""

import uuid

import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from tests.conftest import auth_header

RECORDS = "/api/records"


async def create_record(client: AsyncClient, token: str, object_id: str, data: dict, **extra) -> dict:
    res = await client.post(RECORDS, json={"object_id": object_id, "data": data, **extra}, headers=auth_header(token))
    assert res.status_code == 201, res.text
    return res.json()


@pytest_asyncio.fixture
async def many_contacts(db: AsyncSession, org, owner_user, system_objects) -> str:
    """contacts 오브젝트에 레코드 120개를 직접 생성합니다."""
    from app.models.crm import Record

    object_id = uuid.UUID(system_objects["contacts"]["id"])
    for index in range(120):
        db.add(Record(
            organization_id=org.id,
            object_id=object_id,
            data={"name": f"Contact {index:03d}", "tier": "gold" if index % 4 == 0 else "silver"},
            owner_id=owner_user.id,
            created_by=owner_user.id,
        ))
    await db.flush()
    return str(object_id)


class TestCreateRecord:
    """레코드 생성 테스트."""

    async def test_create_sets_owner_and_timeline(self, client: AsyncClient, member_token, member_user, system_objects):
        record = await create_record(client, member_token, system_objects["contacts"]["id"], {"name": "Ada"})
        assert record["data"] == {"name": "Ada"}
        assert record["owner_id"] == str(member_user.id)
        assert record["created_by"] == str(member_user.id)
        assert record["is_archived"] is False

        timeline = await client.get(f"/api/activities/record/{record['id']}/timeline", headers=auth_header(member_token))
        assert timeline.status_code == 200
        assert [entry["title"] for entry in timeline.json()] == ["Record created"]

    async def test_unknown_object(self, client: AsyncClient, owner_token):
        res = await client.post(
            RECORDS, json={"object_id": str(uuid.uuid4()), "data": {}}, headers=auth_header(owner_token)
        )
        assert res.status_code == 404

    async def test_archived_object(self, client: AsyncClient, owner_token):
        obj = await client.post("/api/objects", json={"name": "vendors", "display_name": "Vendors"}, headers=auth_header(owner_token))
        object_id = obj.json()["id"]
        await client.delete(f"/api/objects/{object_id}", headers=auth_header(owner_token))
        res = await client.post(RECORDS, json={"object_id": object_id, "data": {}}, headers=auth_header(owner_token))
        assert res.status_code == 404

    async def test_required_field_missing(self, client: AsyncClient, owner_token, system_objects):
        res = await client.post(
            RECORDS,
            json={"object_id": system_objects["contacts"]["id"], "data": {"email": "x@y.io"}},
            headers=auth_header(owner_token),
        )
        assert res.status_code == 400
        assert res.json()["detail"] == {"message": "Validation failed", "errors": ['Field "Name" is required']}

    async def test_invalid_values_collected(self, client: AsyncClient, owner_token, system_objects):
        res = await client.post(
            RECORDS,
            json={"object_id": system_objects["deals"]["id"], "data": {"name": "Deal", "stage": "won", "value": "lots"}},
            headers=auth_header(owner_token),
        )
        assert res.status_code == 400
        errors = res.json()["detail"]["errors"]
        assert "Deal Value must be a number" in errors
        assert any(error.startswith("Stage must be one of") for error in errors)

    async def test_malformed_body(self, client: AsyncClient, owner_token):
        res = await client.post(RECORDS, json={"object_id": "not-a-uuid"}, headers=auth_header(owner_token))
        assert res.status_code == 400
        assert res.json()["errors"][0]["field"] == "object_id"


class TestListRecords:
    """레코드 목록 테스트."""

    async def test_pagination(self, client: AsyncClient, owner_token, many_contacts):
        res = await client.get(
            RECORDS, params={"object_id": many_contacts, "page": 2, "limit": 50}, headers=auth_header(owner_token)
        )
        assert res.status_code == 200
        body = res.json()
        assert len(body["data"]) == 50
        assert body["meta"] == {"total": 120, "page": 2, "limit": 50, "total_pages": 3}

    async def test_limit_above_maximum(self, client: AsyncClient, owner_token, many_contacts):
        res = await client.get(RECORDS, params={"limit": 500}, headers=auth_header(owner_token))
        assert res.status_code == 400

    async def test_data_filters(self, client: AsyncClient, owner_token, many_contacts):
        res = await client.get(
            RECORDS,
            params={"object_id": many_contacts, "filters": '{"tier": "gold"}', "limit": 200},
            headers=auth_header(owner_token),
        )
        assert res.json()["meta"]["total"] == 30

    async def test_filters_must_be_json_object(self, client: AsyncClient, owner_token):
        for raw in ("{not json", "[1, 2]"):
            res = await client.get(RECORDS, params={"filters": raw}, headers=auth_header(owner_token))
            assert res.status_code == 400
            assert res.json()["detail"] == "filters must be a JSON object"

    async def test_search(self, client: AsyncClient, owner_token, many_contacts):
        res = await client.get(RECORDS, params={"search": "contact 007"}, headers=auth_header(owner_token))
        assert [record["data"]["name"] for record in res.json()["data"]] == ["Contact 007"]

    async def test_archived_hidden_by_default(self, client: AsyncClient, owner_token, system_objects):
        record = await create_record(client, owner_token, system_objects["contacts"]["id"], {"name": "Gone"})
        await client.delete(f"{RECORDS}/{record['id']}", headers=auth_header(owner_token))

        res = await client.get(RECORDS, headers=auth_header(owner_token))
        assert res.json()["meta"]["total"] == 0
        res = await client.get(RECORDS, params={"include_archived": True}, headers=auth_header(owner_token))
        assert res.json()["meta"]["total"] == 1


class TestUpdateDeleteRecord:
    """레코드 수정/삭제 테스트."""

    async def test_update_merges_data(self, client: AsyncClient, owner_token, system_objects):
        record = await create_record(
            client, owner_token, system_objects["contacts"]["id"], {"name": "Ada", "phone": "+1 555 0100"}
        )
        res = await client.patch(
            f"{RECORDS}/{record['id']}", json={"data": {"email": "ada@example.com"}}, headers=auth_header(owner_token)
        )
        assert res.status_code == 200
        assert res.json()["data"] == {"name": "Ada", "phone": "+1 555 0100", "email": "ada@example.com"}

        timeline = await client.get(f"/api/activities/record/{record['id']}/timeline", headers=auth_header(owner_token))
        updated = next(entry for entry in timeline.json() if entry["type"] == "FIELD_UPDATED")
        assert updated["metadata"] == {"updated_fields": ["email"]}

    async def test_update_validates_merged_data(self, client: AsyncClient, owner_token, system_objects):
        record = await create_record(client, owner_token, system_objects["contacts"]["id"], {"name": "Ada"})
        res = await client.patch(f"{RECORDS}/{record['id']}", json={"data": {"name": ""}}, headers=auth_header(owner_token))
        assert res.status_code == 400

    async def test_stage_change_activity(self, client: AsyncClient, owner_token, system_objects):
        record = await create_record(
            client, owner_token, system_objects["deals"]["id"], {"name": "Deal", "stage": "lead"}, stage="lead"
        )
        res = await client.patch(f"{RECORDS}/{record['id']}", json={"stage": "qualified"}, headers=auth_header(owner_token))
        assert res.json()["stage"] == "qualified"

        timeline = await client.get(f"/api/activities/record/{record['id']}/timeline", headers=auth_header(owner_token))
        changed = next(entry for entry in timeline.json() if entry["type"] == "STAGE_CHANGED")
        assert changed["metadata"] == {"previous_stage": "lead", "new_stage": "qualified"}

    async def test_hard_delete_then_404(self, client: AsyncClient, owner_token, system_objects):
        record = await create_record(client, owner_token, system_objects["contacts"]["id"], {"name": "Temp"})
        res = await client.delete(f"{RECORDS}/{record['id']}", params={"hard": True}, headers=auth_header(owner_token))
        assert res.status_code == 204

        assert (await client.get(f"{RECORDS}/{record['id']}", headers=auth_header(owner_token))).status_code == 404
        res = await client.patch(f"{RECORDS}/{record['id']}", json={"data": {"name": "X"}}, headers=auth_header(owner_token))
        assert res.status_code == 404
        res = await client.delete(f"{RECORDS}/{record['id']}", headers=auth_header(owner_token))
        assert res.status_code == 404

    async def test_bulk_update_and_delete(self, client: AsyncClient, owner_token, system_objects):
        contacts_id = system_objects["contacts"]["id"]
        ids = [(await create_record(client, owner_token, contacts_id, {"name": f"C{i}"}))["id"] for i in range(3)]

        res = await client.post(f"{RECORDS}/bulk/update", json={"ids": ids, "data": {"phone": "+1 555 0199"}}, headers=auth_header(owner_token))
        assert res.json() == {"updated": 3}

        res = await client.post(f"{RECORDS}/bulk/delete", json={"ids": ids[:2]}, headers=auth_header(owner_token))
        assert res.json() == {"deleted": 2}
        listing = await client.get(RECORDS, params={"object_id": contacts_id}, headers=auth_header(owner_token))
        assert listing.json()["meta"]["total"] == 1
        assert listing.json()["data"][0]["data"]["phone"] == "+1 555 0199"

    async def test_include_related(self, client: AsyncClient, owner_token, system_objects):
        record = await create_record(client, owner_token, system_objects["contacts"]["id"], {"name": "Ada"})
        res = await client.get(
            f"{RECORDS}/{record['id']}", params={"include": "activities,unknown,relations"}, headers=auth_header(owner_token)
        )
        body = res.json()
        assert len(body["activities"]) == 1
        assert body["relations"] == []
        assert "unknown" not in body


class TestRelations:
    """레코드 관계 테스트."""

    async def test_relation_lifecycle(self, client: AsyncClient, owner_token, system_objects):
        contact = await create_record(client, owner_token, system_objects["contacts"]["id"], {"name": "Ada"})
        company = await create_record(client, owner_token, system_objects["companies"]["id"], {"name": "Acme"})
        payload = {"from_record_id": contact["id"], "to_record_id": company["id"], "relation_type": "works_at"}

        res = await client.post("/api/relations", json=payload, headers=auth_header(owner_token))
        assert res.status_code == 201
        relation_id = res.json()["id"]

        assert (await client.post("/api/relations", json=payload, headers=auth_header(owner_token))).status_code == 409

        listing = await client.get(f"/api/relations/record/{company['id']}", headers=auth_header(owner_token))
        assert [relation["id"] for relation in listing.json()] == [relation_id]

        res = await client.delete(f"/api/relations/{relation_id}", headers=auth_header(owner_token))
        assert res.status_code == 204
        assert (await client.get(f"/api/relations/{relation_id}", headers=auth_header(owner_token))).status_code == 404

    async def test_self_relation_rejected(self, client: AsyncClient, owner_token, system_objects):
        contact = await create_record(client, owner_token, system_objects["contacts"]["id"], {"name": "Ada"})
        res = await client.post(
            "/api/relations",
            json={"from_record_id": contact["id"], "to_record_id": contact["id"], "relation_type": "self"},
            headers=auth_header(owner_token),
        )
        assert res.status_code == 400


class TestActivities:
    async def test_manual_activity(self, client: AsyncClient, member_token, system_objects):
        record = await create_record(client, member_token, system_objects["contacts"]["id"], {"name": "Ada"})
        res = await client.post(
            "/api/activities",
            json={"record_id": record["id"], "type": "CALL", "title": "Intro call"},
            headers=auth_header(member_token),
        )
        assert res.status_code == 201

        listing = await client.get("/api/activities", params={"type": "CALL"}, headers=auth_header(member_token))
        assert listing.json()["meta"]["total"] == 1
        assert listing.json()["data"][0]["title"] == "Intro call"

    async def test_activity_for_unknown_record(self, client: AsyncClient, member_token):
        res = await client.post(
            "/api/activities",
            json={"record_id": str(uuid.uuid4()), "type": "NOTE", "title": "Lost"},
            headers=auth_header(member_token),
        )
        assert res.status_code == 404

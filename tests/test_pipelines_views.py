"""파이프라인/저장 뷰 API 테스트.

Pipeline and saved view API tests: the seeded sales pipeline, single
default per object, stage statistics and view ownership.
"""

from httpx import AsyncClient

from tests.conftest import auth_header

PIPELINES = "/api/pipelines"
VIEWS = "/api/views"


class TestPipelines:
    """파이프라인 테스트."""

    async def test_seeded_sales_pipeline(self, client: AsyncClient, member_token, system_objects):
        res = await client.get(f"{PIPELINES}/object/{system_objects['deals']['id']}/default", headers=auth_header(member_token))
        assert res.status_code == 200
        pipeline = res.json()
        assert pipeline["name"] == "Sales Pipeline"
        assert [stage["id"] for stage in pipeline["stages"]][-2:] == ["closed_won", "closed_lost"]

    async def test_no_default_for_contacts(self, client: AsyncClient, owner_token, system_objects):
        res = await client.get(f"{PIPELINES}/object/{system_objects['contacts']['id']}/default", headers=auth_header(owner_token))
        assert res.status_code == 404

    async def test_new_default_replaces_old(self, client: AsyncClient, owner_token, system_objects):
        headers = auth_header(owner_token)
        deals_id = system_objects["deals"]["id"]
        res = await client.post(
            PIPELINES,
            json={
                "name": "Renewals",
                "object_id": deals_id,
                "is_default": True,
                "stages": [{"id": "b", "name": "B", "position": 1}, {"id": "a", "name": "A", "position": 0}],
            },
            headers=headers,
        )
        assert res.status_code == 201
        assert [stage["id"] for stage in res.json()["stages"]] == ["a", "b"]

        pipelines = (await client.get(f"{PIPELINES}/object/{deals_id}", headers=headers)).json()
        defaults = [pipeline["name"] for pipeline in pipelines if pipeline["is_default"]]
        assert defaults == ["Renewals"]

    async def test_stage_stats(self, client: AsyncClient, owner_token, system_objects):
        headers = auth_header(owner_token)
        deals_id = system_objects["deals"]["id"]
        for stage, value in (("lead", 100), ("lead", 50), ("proposal", 1000)):
            await client.post(
                "/api/records",
                json={"object_id": deals_id, "stage": stage, "data": {"name": "D", "stage": stage, "value": value}},
                headers=headers,
            )
        pipeline = (await client.get(f"{PIPELINES}/object/{deals_id}/default", headers=headers)).json()
        stats = (await client.get(f"{PIPELINES}/{pipeline['id']}/stats", headers=headers)).json()
        by_stage = {item["stage"]: item for item in stats}
        assert by_stage["lead"] == {"stage": "lead", "count": 2, "value": 150.0}
        assert by_stage["proposal"]["value"] == 1000.0
        assert by_stage["closed_won"]["count"] == 0

    async def test_delete_archives(self, client: AsyncClient, owner_token, system_objects):
        headers = auth_header(owner_token)
        deals_id = system_objects["deals"]["id"]
        pipeline = (await client.get(f"{PIPELINES}/object/{deals_id}/default", headers=headers)).json()
        assert (await client.delete(f"{PIPELINES}/{pipeline['id']}", headers=headers)).status_code == 204

        archived = (await client.get(f"{PIPELINES}/{pipeline['id']}", headers=headers)).json()
        assert archived["is_archived"] is True
        assert archived["is_default"] is False


class TestViews:
    """저장 뷰 테스트."""

    async def test_private_and_shared(self, client: AsyncClient, owner_token, member_token, system_objects):
        contacts_id = system_objects["contacts"]["id"]
        owner = auth_header(owner_token)
        private = (await client.post(VIEWS, json={"object_id": contacts_id, "name": "Mine"}, headers=owner)).json()
        shared = (await client.post(
            VIEWS, json={"object_id": contacts_id, "name": "Team", "type": "BOARD", "is_shared": True}, headers=owner
        )).json()
        assert shared["position"] == private["position"] + 1

        member = auth_header(member_token)
        visible = (await client.get(VIEWS, params={"object_id": contacts_id}, headers=member)).json()
        assert [view["name"] for view in visible] == ["Team"]
        assert (await client.get(f"{VIEWS}/{private['id']}", headers=member)).status_code == 404

        res = await client.patch(f"{VIEWS}/{shared['id']}", json={"name": "Ours"}, headers=member)
        assert res.status_code == 403

    async def test_single_default(self, client: AsyncClient, owner_token, system_objects):
        headers = auth_header(owner_token)
        contacts_id = system_objects["contacts"]["id"]
        first = (await client.post(VIEWS, json={"object_id": contacts_id, "name": "A", "is_default": True}, headers=headers)).json()
        second = (await client.post(VIEWS, json={"object_id": contacts_id, "name": "B"}, headers=headers)).json()

        await client.patch(f"{VIEWS}/{second['id']}", json={"is_default": True}, headers=headers)
        assert (await client.get(f"{VIEWS}/{first['id']}", headers=headers)).json()["is_default"] is False

    async def test_delete(self, client: AsyncClient, owner_token, system_objects):
        headers = auth_header(owner_token)
        view = (await client.post(VIEWS, json={"object_id": system_objects["contacts"]["id"], "name": "A"}, headers=headers)).json()
        assert (await client.delete(f"{VIEWS}/{view['id']}", headers=headers)).status_code == 204
        assert (await client.get(f"{VIEWS}/{view['id']}", headers=headers)).status_code == 404

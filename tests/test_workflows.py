"""워크플로우 API 테스트 - CRUD, 메타데이터, 그래프, 트리거 실행.

Workflow API tests - CRUD, editor metadata, the graph endpoints and
workflows fired by record writes.
"""

from httpx import AsyncClient

from tests.conftest import auth_header

WORKFLOWS = "/api/workflows"


async def create_workflow(client: AsyncClient, token: str, object_id: str, **overrides) -> dict:
    payload = {
        "name": "Notify owner",
        "object_id": object_id,
        "trigger": "RECORD_CREATED",
        "actions": [],
        **overrides,
    }
    res = await client.post(WORKFLOWS, json=payload, headers=auth_header(token))
    assert res.status_code == 201, res.text
    return res.json()


def notify_action(user_id: str, title: str, action_id: str = "notify", order: int = 0) -> dict:
    return {
        "id": action_id,
        "type": "CREATE_NOTIFICATION",
        "config": {"user_id": user_id, "title": title, "message": "{{user.name}} did it"},
        "order": order,
    }


class TestWorkflowMeta:
    """에디터 메타데이터 테스트."""

    async def test_catalogs(self, client: AsyncClient, member_token):
        headers = auth_header(member_token)
        triggers = (await client.get(f"{WORKFLOWS}/meta/triggers", headers=headers)).json()
        assert {trigger["value"] for trigger in triggers} >= {"RECORD_CREATED", "FIELD_CHANGED", "STAGE_CHANGED"}

        actions = (await client.get(f"{WORKFLOWS}/meta/actions", headers=headers)).json()
        assert {action["type"] for action in actions} >= {"SEND_EMAIL", "WEBHOOK", "DELAY"}

        operators = (await client.get(f"{WORKFLOWS}/meta/operators", headers=headers)).json()
        assert len(operators) == 14

    async def test_variables_per_trigger(self, client: AsyncClient, member_token):
        res = await client.get(f"{WORKFLOWS}/meta/variables/STAGE_CHANGED", headers=auth_header(member_token))
        keys = {variable["key"] for variable in res.json()}
        assert "{{record.id}}" in keys
        assert "{{stage.new}}" in keys


class TestWorkflowCrud:
    """워크플로우 CRUD 테스트."""

    async def test_created_inactive_by_default(self, client: AsyncClient, owner_token, system_objects):
        workflow = await create_workflow(client, owner_token, system_objects["contacts"]["id"])
        assert workflow["is_active"] is False
        assert workflow["run_count"] == 0

    async def test_unknown_trigger_rejected(self, client: AsyncClient, owner_token, system_objects):
        res = await client.post(
            WORKFLOWS,
            json={"name": "x", "object_id": system_objects["contacts"]["id"], "trigger": "ON_TUESDAY"},
            headers=auth_header(owner_token),
        )
        assert res.status_code == 400

    async def test_toggle_duplicate_delete(self, client: AsyncClient, owner_token, system_objects):
        headers = auth_header(owner_token)
        workflow = await create_workflow(client, owner_token, system_objects["contacts"]["id"], is_active=True)

        toggled = await client.post(f"{WORKFLOWS}/{workflow['id']}/toggle", headers=headers)
        assert toggled.json()["is_active"] is False

        copy = await client.post(f"{WORKFLOWS}/{workflow['id']}/duplicate", headers=headers)
        assert copy.status_code == 201
        assert copy.json()["name"] == "Notify owner (Copy)"
        assert copy.json()["is_active"] is False

        listing = await client.get(WORKFLOWS, headers=headers)
        assert listing.json()["meta"]["total"] == 2

        assert (await client.delete(f"{WORKFLOWS}/{workflow['id']}", headers=headers)).status_code == 204
        assert (await client.get(f"{WORKFLOWS}/{workflow['id']}", headers=headers)).status_code == 404

    async def test_update(self, client: AsyncClient, owner_token, system_objects):
        workflow = await create_workflow(client, owner_token, system_objects["contacts"]["id"])
        res = await client.patch(
            f"{WORKFLOWS}/{workflow['id']}",
            json={"name": "Renamed", "trigger": "RECORD_UPDATED"},
            headers=auth_header(owner_token),
        )
        assert res.json()["name"] == "Renamed"
        assert res.json()["trigger"] == "RECORD_UPDATED"

    async def test_graph_round_trip(self, client: AsyncClient, owner_token, owner_user, system_objects):
        headers = auth_header(owner_token)
        workflow = await create_workflow(
            client, owner_token, system_objects["contacts"]["id"],
            conditions=[{"field": "record.name", "operator": "is_not_empty"}],
            actions=[notify_action(str(owner_user.id), "Second", "b", 1), notify_action(str(owner_user.id), "First", "a", 0)],
        )
        graph = (await client.get(f"{WORKFLOWS}/{workflow['id']}/graph", headers=headers)).json()
        assert len(graph["nodes"]) == 4
        assert graph["nodes"][0]["data"]["object_name"] == "Contacts"

        saved = await client.put(f"{WORKFLOWS}/{workflow['id']}/graph", json=graph, headers=headers)
        assert saved.status_code == 200
        assert [action["id"] for action in saved.json()["actions"]] == ["a", "b"]
        assert saved.json()["conditions"][0]["operator"] == "is_not_empty"


class TestWorkflowExecution:
    """레코드 쓰기로 실행되는 워크플로우 테스트."""

    async def test_record_created_notifies(self, client: AsyncClient, owner_token, member_token, owner_user, system_objects):
        contacts_id = system_objects["contacts"]["id"]
        workflow = await create_workflow(
            client, owner_token, contacts_id, is_active=True,
            actions=[notify_action(str(owner_user.id), "New {{object.display_name}}: {{record.name}}")],
        )

        res = await client.post(
            "/api/records", json={"object_id": contacts_id, "data": {"name": "Ada"}}, headers=auth_header(member_token)
        )
        assert res.status_code == 201

        notifications = (await client.get("/api/notifications", headers=auth_header(owner_token))).json()
        assert notifications[0]["title"] == "New Contacts: Ada"
        assert notifications[0]["message"] == "Test Member did it"

        executions = (await client.get(f"{WORKFLOWS}/{workflow['id']}/executions", headers=auth_header(owner_token))).json()
        assert executions["meta"]["total"] == 1
        assert executions["data"][0]["status"] == "SUCCESS"
        refreshed = (await client.get(f"{WORKFLOWS}/{workflow['id']}", headers=auth_header(owner_token))).json()
        assert refreshed["run_count"] == 1

    async def test_inactive_workflow_not_fired(self, client: AsyncClient, owner_token, owner_user, system_objects):
        contacts_id = system_objects["contacts"]["id"]
        workflow = await create_workflow(
            client, owner_token, contacts_id, actions=[notify_action(str(owner_user.id), "Never")]
        )
        await client.post("/api/records", json={"object_id": contacts_id, "data": {"name": "Ada"}}, headers=auth_header(owner_token))
        executions = (await client.get(f"{WORKFLOWS}/{workflow['id']}/executions", headers=auth_header(owner_token))).json()
        assert executions["meta"]["total"] == 0

    async def test_conditions_not_met_recorded_as_skipped(self, client: AsyncClient, owner_token, owner_user, system_objects):
        contacts_id = system_objects["contacts"]["id"]
        workflow = await create_workflow(
            client, owner_token, contacts_id, is_active=True,
            conditions=[{"field": "record.name", "operator": "equals", "value": "VIP"}],
            actions=[notify_action(str(owner_user.id), "VIP arrived")],
        )
        await client.post("/api/records", json={"object_id": contacts_id, "data": {"name": "Ada"}}, headers=auth_header(owner_token))

        executions = (await client.get(f"{WORKFLOWS}/{workflow['id']}/executions", headers=auth_header(owner_token))).json()
        assert executions["data"][0]["result"] == {"skipped": True, "reason": "Conditions not met"}
        unread = (await client.get("/api/notifications/unread-count", headers=auth_header(owner_token))).json()
        assert unread == {"count": 0}

    async def test_field_changed_watches_configured_field(self, client: AsyncClient, owner_token, system_objects):
        headers = auth_header(owner_token)
        contacts_id = system_objects["contacts"]["id"]
        await create_workflow(
            client, owner_token, contacts_id, is_active=True,
            trigger="FIELD_CHANGED", trigger_config={"field": "email"},
            actions=[{"id": "mark", "type": "UPDATE_FIELD", "config": {"field": "status", "value": "{{field.new}}"}}],
        )
        record = (await client.post("/api/records", json={"object_id": contacts_id, "data": {"name": "Ada"}}, headers=headers)).json()

        res = await client.patch(f"/api/records/{record['id']}", json={"data": {"phone": "+1 555 0100"}}, headers=headers)
        assert "status" not in res.json()["data"]

        res = await client.patch(f"/api/records/{record['id']}", json={"data": {"email": "ada@example.com"}}, headers=headers)
        assert res.json()["data"]["status"] == "ada@example.com"

    async def test_failed_action_gives_partial_status(self, client: AsyncClient, owner_token, owner_user, system_objects):
        contacts_id = system_objects["contacts"]["id"]
        workflow = await create_workflow(
            client, owner_token, contacts_id, is_active=True,
            actions=[
                notify_action(str(owner_user.id), "Works"),
                {"id": "tg", "type": "SEND_TELEGRAM", "config": {"chat_id": "1", "message": "hi"}, "order": 1},
            ],
        )
        await client.post("/api/records", json={"object_id": contacts_id, "data": {"name": "Ada"}}, headers=auth_header(owner_token))

        execution = (await client.get(f"{WORKFLOWS}/{workflow['id']}/executions", headers=auth_header(owner_token))).json()["data"][0]
        assert execution["status"] == "PARTIAL"
        assert execution["error"] == "Telegram bot token not configured"
        results = execution["result"]["results"]
        assert [result["success"] for result in results] == [True, False]

    async def test_failing_flush_keeps_record_write(self, client: AsyncClient, owner_token, owner_user, system_objects):
        """저장 실패 액션은 그 액션만 롤백 (A failing action flush does not break the record write)."""
        headers = auth_header(owner_token)
        contacts_id = system_objects["contacts"]["id"]
        workflow = await create_workflow(
            client, owner_token, contacts_id, is_active=True,
            actions=[
                {"id": "task", "type": "CREATE_TASK", "config": {"title": {"nested": "x"}}, "order": 0},
                notify_action(str(owner_user.id), "Still sent", order=1),
            ],
        )

        res = await client.post("/api/records", json={"object_id": contacts_id, "data": {"name": "Ada"}}, headers=headers)
        assert res.status_code == 201
        assert (await client.get(f"/api/records/{res.json()['id']}", headers=headers)).status_code == 200

        execution = (await client.get(f"{WORKFLOWS}/{workflow['id']}/executions", headers=headers)).json()["data"][0]
        assert execution["status"] == "PARTIAL"
        assert [result["success"] for result in execution["result"]["results"]] == [False, True]
        notifications = (await client.get("/api/notifications", headers=headers)).json()
        assert notifications[0]["title"] == "Still sent"

    async def test_manual_test_run_ignores_active_flag(self, client: AsyncClient, owner_token, system_objects):
        headers = auth_header(owner_token)
        deals_id = system_objects["deals"]["id"]
        workflow = await create_workflow(
            client, owner_token, deals_id,
            actions=[{"id": "wait", "type": "DELAY", "config": {"duration": 2, "unit": "hours"}}],
        )
        record = (await client.post(
            "/api/records", json={"object_id": deals_id, "data": {"name": "Deal", "stage": "lead"}}, headers=headers
        )).json()

        res = await client.post(f"{WORKFLOWS}/{workflow['id']}/test", json={"record_id": record["id"]}, headers=headers)
        assert res.status_code == 200
        body = res.json()
        assert body["status"] == "SUCCESS"
        assert body["results"][0]["result"]["ms"] == 2 * 60 * 60 * 1000

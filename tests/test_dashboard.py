"""대시보드/헬스체크 테스트.

Dashboard aggregation and health check tests.
"""

from httpx import AsyncClient

from app.services.dashboard_service import calc_change
from tests.conftest import auth_header


class TestCalcChange:
    def test_from_zero(self):
        assert calc_change(0, 0) == 0
        assert calc_change(4, 0) == 100

    def test_percentage(self):
        assert calc_change(15, 10) == 50
        assert calc_change(5, 10) == -50


class TestHealth:
    async def test_health_is_public(self, client: AsyncClient):
        res = await client.get("/api/health")
        assert res.status_code == 200
        assert res.json()["status"] == "ok"


class TestDashboard:
    """대시보드 집계 테스트."""

    async def test_stats(self, client: AsyncClient, owner_token, system_objects):
        headers = auth_header(owner_token)
        deals_id = system_objects["deals"]["id"]
        for value in (100, 250.5):
            await client.post(
                "/api/records", json={"object_id": deals_id, "data": {"name": "D", "stage": "lead", "value": value}},
                headers=headers,
            )
        await client.post(
            "/api/records", json={"object_id": system_objects["contacts"]["id"], "data": {"name": "Ada"}}, headers=headers
        )
        await client.post("/api/tasks", json={"title": "Late", "due_date": "2024-01-01T00:00:00Z"}, headers=headers)
        await client.post("/api/tasks", json={"title": "Done", "status": "DONE"}, headers=headers)

        stats = (await client.get("/api/dashboard/stats", headers=headers)).json()
        assert stats["contacts"] == {"total": 1, "change": 100}
        assert stats["companies"] == {"total": 0, "change": 0}
        assert stats["deals"]["total"] == 2
        assert stats["deals"]["value"] == 350.5
        assert stats["tasks"] == {"total": 2, "completed": 1, "overdue": 1}

    async def test_recent_activities(self, client: AsyncClient, owner_token, system_objects):
        headers = auth_header(owner_token)
        await client.post(
            "/api/records", json={"object_id": system_objects["contacts"]["id"], "data": {"name": "Ada"}}, headers=headers
        )
        activities = (await client.get("/api/dashboard/activities", params={"limit": 5}, headers=headers)).json()
        assert activities[0]["title"] == "Record created"

    async def test_upcoming_tasks(self, client: AsyncClient, owner_token, member_token, member_user):
        headers = auth_header(owner_token)
        await client.post(
            "/api/tasks",
            json={"title": "Later", "due_date": "2031-06-01T00:00:00Z", "assignee_id": str(member_user.id)},
            headers=headers,
        )
        await client.post(
            "/api/tasks",
            json={"title": "Sooner", "due_date": "2030-06-01T00:00:00Z", "assignee_id": str(member_user.id)},
            headers=headers,
        )
        await client.post("/api/tasks", json={"title": "No date", "assignee_id": str(member_user.id)}, headers=headers)

        upcoming = (await client.get("/api/dashboard/upcoming-tasks", headers=auth_header(member_token))).json()
        assert [task["title"] for task in upcoming] == ["Sooner", "Later"]

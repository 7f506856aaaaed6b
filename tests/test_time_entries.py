"""시간 기록 API 테스트 - 수동 기록, 타이머, 통계.

Time entry API tests: manual entries, the single running timer and the
billing stats.
"""

from datetime import datetime, timezone

from httpx import AsyncClient

from app.services.time_entry_service import elapsed_minutes
from tests.conftest import auth_header

ENTRIES = "/api/time-entries"


class TestElapsedMinutes:
    def test_rounds_to_nearest_minute(self):
        start = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)
        assert elapsed_minutes(start, datetime(2024, 5, 1, 10, 29, 40, tzinfo=timezone.utc)) == 90
        assert elapsed_minutes(start, start) == 0

    def test_naive_is_treated_as_utc_and_never_negative(self):
        aware = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)
        assert elapsed_minutes(datetime(2024, 5, 1, 8, 0), aware) == 60
        assert elapsed_minutes(aware, datetime(2024, 5, 1, 8, 0)) == 0


class TestManualEntries:
    """수동 기록 테스트."""

    async def test_duration_derived_from_range(self, client: AsyncClient, member_token):
        res = await client.post(
            ENTRIES,
            json={"start_time": "2024-05-01T09:00:00Z", "end_time": "2024-05-01T10:45:00Z", "description": "Calls"},
            headers=auth_header(member_token),
        )
        assert res.status_code == 201
        assert res.json()["duration"] == 105
        assert res.json()["is_running"] is False

    async def test_explicit_duration_wins(self, client: AsyncClient, member_token):
        res = await client.post(
            ENTRIES,
            json={"start_time": "2024-05-01T09:00:00Z", "end_time": "2024-05-01T10:00:00Z", "duration": 15},
            headers=auth_header(member_token),
        )
        assert res.json()["duration"] == 15

    async def test_update_recomputes_duration(self, client: AsyncClient, member_token):
        headers = auth_header(member_token)
        entry = (await client.post(
            ENTRIES, json={"start_time": "2024-05-01T09:00:00Z", "end_time": "2024-05-01T10:00:00Z"}, headers=headers
        )).json()
        res = await client.patch(f"{ENTRIES}/{entry['id']}", json={"end_time": "2024-05-01T11:30:00Z"}, headers=headers)
        assert res.json()["duration"] == 150

    async def test_entries_are_private(self, client: AsyncClient, member_token, owner_token):
        entry = (await client.post(
            ENTRIES, json={"start_time": "2024-05-01T09:00:00Z", "duration": 10}, headers=auth_header(member_token)
        )).json()
        res = await client.get(f"{ENTRIES}/{entry['id']}", headers=auth_header(owner_token))
        assert res.status_code == 404
        res = await client.delete(f"{ENTRIES}/{entry['id']}", headers=auth_header(owner_token))
        assert res.status_code == 404

        listing = (await client.get(ENTRIES, headers=auth_header(owner_token))).json()
        assert listing["meta"]["total"] == 0

    async def test_negative_duration_rejected(self, client: AsyncClient, member_token):
        res = await client.post(
            ENTRIES, json={"start_time": "2024-05-01T09:00:00Z", "duration": -5}, headers=auth_header(member_token)
        )
        assert res.status_code == 400


class TestTimer:
    """타이머 테스트."""

    async def test_start_stop(self, client: AsyncClient, member_token):
        headers = auth_header(member_token)
        started = await client.post(f"{ENTRIES}/start", json={"description": "Focus"}, headers=headers)
        assert started.status_code == 201
        assert started.json()["is_running"] is True

        active = (await client.get(f"{ENTRIES}/active", headers=headers)).json()
        assert active["id"] == started.json()["id"]

        stopped = await client.post(f"{ENTRIES}/{started.json()['id']}/stop", headers=headers)
        assert stopped.status_code == 200
        assert stopped.json()["is_running"] is False
        assert stopped.json()["duration"] == 0

        again = await client.post(f"{ENTRIES}/{started.json()['id']}/stop", headers=headers)
        assert again.status_code == 400
        assert (await client.get(f"{ENTRIES}/active", headers=headers)).json() is None

    async def test_starting_stops_running_timer(self, client: AsyncClient, member_token):
        headers = auth_header(member_token)
        first = (await client.post(f"{ENTRIES}/start", json={}, headers=headers)).json()
        second = (await client.post(f"{ENTRIES}/start", json={}, headers=headers)).json()

        first_now = (await client.get(f"{ENTRIES}/{first['id']}", headers=headers)).json()
        assert first_now["is_running"] is False
        active = (await client.get(f"{ENTRIES}/active", headers=headers)).json()
        assert active["id"] == second["id"]


class TestStats:
    async def test_billable_amount(self, client: AsyncClient, member_token):
        headers = auth_header(member_token)
        await client.post(
            ENTRIES,
            json={"start_time": "2024-05-01T09:00:00Z", "duration": 90, "is_billable": True, "hourly_rate": 40},
            headers=headers,
        )
        await client.post(ENTRIES, json={"start_time": "2024-05-02T09:00:00Z", "duration": 30}, headers=headers)

        stats = (await client.get(f"{ENTRIES}/stats", headers=headers)).json()
        assert stats == {
            "total_minutes": 120,
            "total_hours": 2.0,
            "billable_minutes": 90,
            "billable_amount": 60.0,
            "entries_count": 2,
        }

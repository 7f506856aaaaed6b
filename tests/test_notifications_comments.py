"""알림/코멘트 API 테스트.

Notification and comment API tests: read state, per-user isolation,
comment mentions and the record COMMENT activity.
"""

import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.services.comment_service import extract_mentions
from app.services.notification_service import notification_service
from tests.conftest import auth_header

NOTIFICATIONS = "/api/notifications"
COMMENTS = "/api/comments"


@pytest_asyncio.fixture
async def member_notifications(db: AsyncSession, org, member_user) -> list:
    """멤버에게 알림 3개를 생성합니다."""
    created = []
    for index in range(3):
        created.append(await notification_service.create(
            db, org.id, member_user.id, "RECORD_CREATED", f"Note {index}", f"Message {index}", {"n": index}
        ))
    await db.flush()
    return created


class TestNotifications:
    """알림 테스트."""

    async def test_list_and_unread_count(self, client: AsyncClient, member_token, member_notifications):
        headers = auth_header(member_token)
        listing = (await client.get(NOTIFICATIONS, headers=headers)).json()
        assert len(listing) == 3
        assert all(item["is_read"] is False for item in listing)
        assert (await client.get(f"{NOTIFICATIONS}/unread-count", headers=headers)).json() == {"count": 3}

    async def test_mark_read(self, client: AsyncClient, member_token, member_notifications):
        headers = auth_header(member_token)
        target = str(member_notifications[0].id)
        res = await client.post(f"{NOTIFICATIONS}/{target}/read", headers=headers)
        assert res.status_code == 200
        assert res.json()["is_read"] is True
        assert res.json()["read_at"] is not None

        unread = (await client.get(NOTIFICATIONS, params={"unread_only": True}, headers=headers)).json()
        assert target not in {item["id"] for item in unread}

    async def test_read_all_returns_count(self, client: AsyncClient, member_token, member_notifications):
        headers = auth_header(member_token)
        assert (await client.post(f"{NOTIFICATIONS}/read-all", headers=headers)).json() == {"count": 3}
        assert (await client.post(f"{NOTIFICATIONS}/read-all", headers=headers)).json() == {"count": 0}

    async def test_other_users_notifications_hidden(self, client: AsyncClient, owner_token, member_notifications):
        headers = auth_header(owner_token)
        assert (await client.get(NOTIFICATIONS, headers=headers)).json() == []
        res = await client.post(f"{NOTIFICATIONS}/{member_notifications[0].id}/read", headers=headers)
        assert res.status_code == 404

    async def test_delete_and_clear(self, client: AsyncClient, member_token, member_notifications):
        headers = auth_header(member_token)
        res = await client.delete(f"{NOTIFICATIONS}/{member_notifications[0].id}", headers=headers)
        assert res.status_code == 204
        assert len((await client.get(NOTIFICATIONS, headers=headers)).json()) == 2

        assert (await client.delete(NOTIFICATIONS, headers=headers)).status_code == 204
        assert (await client.get(NOTIFICATIONS, headers=headers)).json() == []


class TestMentionMarkup:
    def test_extract_in_order_without_duplicates(self):
        content = "hi @[Ada](u-1) and @[Bob](u-2), again @[Ada](u-1)"
        assert extract_mentions(content) == ["u-1", "u-2"]

    def test_plain_text_has_no_mentions(self):
        assert extract_mentions("email me at a@b.c [x](y)") == []


class TestComments:
    """코멘트 테스트."""

    async def test_record_comment_mentions_and_activity(
        self, client: AsyncClient, owner_token, member_token, member_user, system_objects
    ):
        headers = auth_header(owner_token)
        record = (await client.post(
            "/api/records", json={"object_id": system_objects["contacts"]["id"], "data": {"name": "Ada"}}, headers=headers
        )).json()

        res = await client.post(
            COMMENTS,
            json={"record_id": record["id"], "content": f"Ping @[Member]({member_user.id})"},
            headers=headers,
        )
        assert res.status_code == 201
        assert res.json()["mentions"] == [str(member_user.id)]
        assert res.json()["author"]["name"] == "Test Owner"

        notes = (await client.get(NOTIFICATIONS, headers=auth_header(member_token))).json()
        assert notes[0]["type"] == "MENTION"
        assert notes[0]["data"]["record_id"] == record["id"]

        timeline = (await client.get(f"/api/activities/record/{record['id']}/timeline", headers=headers)).json()
        assert any(entry["type"] == "COMMENT" for entry in timeline)

    async def test_self_mention_is_not_notified(self, client: AsyncClient, owner_token, owner_user):
        headers = auth_header(owner_token)
        project = (await client.post("/api/projects", json={"name": "P"}, headers=headers)).json()
        await client.post(
            COMMENTS, json={"project_id": project["id"], "content": f"note to @[Me]({owner_user.id})"}, headers=headers
        )
        assert (await client.get(f"{NOTIFICATIONS}/unread-count", headers=headers)).json() == {"count": 0}

    async def test_exactly_one_target(self, client: AsyncClient, owner_token):
        res = await client.post(COMMENTS, json={"content": "floating"}, headers=auth_header(owner_token))
        assert res.status_code == 400

    async def test_unknown_target(self, client: AsyncClient, owner_token):
        res = await client.post(
            COMMENTS,
            json={"task_id": "00000000-0000-0000-0000-000000000000", "content": "hello"},
            headers=auth_header(owner_token),
        )
        assert res.status_code == 404

    async def test_edit_and_delete_own_only(self, client: AsyncClient, owner_token, member_token):
        headers = auth_header(owner_token)
        task = (await client.post("/api/tasks", json={"title": "T"}, headers=headers)).json()
        comment = (await client.post(COMMENTS, json={"task_id": task["id"], "content": "first"}, headers=headers)).json()

        res = await client.patch(f"{COMMENTS}/{comment['id']}", json={"content": "edited"}, headers=auth_header(member_token))
        assert res.status_code == 404

        res = await client.patch(f"{COMMENTS}/{comment['id']}", json={"content": "edited"}, headers=headers)
        assert res.json()["is_edited"] is True
        assert res.json()["content"] == "edited"

        listing = (await client.get(f"{COMMENTS}/task/{task['id']}", headers=headers)).json()
        assert [item["content"] for item in listing] == ["edited"]

        assert (await client.delete(f"{COMMENTS}/{comment['id']}", headers=headers)).status_code == 204
        assert (await client.get(f"{COMMENTS}/task/{task['id']}", headers=headers)).json() == []

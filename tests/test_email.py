"""이메일 템플릿/발송 API 테스트.

Email template and sending tests. SMTP is not configured under test, so
messages are simulated and logged as SENT.
"""

import pytest
from httpx import AsyncClient

from app.services.email_service import render_template_text
from tests.conftest import auth_header

TEMPLATES = "/api/email-templates"


async def create_template(client: AsyncClient, token: str, **extra) -> dict:
    payload = {
        "name": "Welcome",
        "subject": "Hi {{first_name}}",
        "body": "<p>Welcome to {{company}}, {{first_name}}!</p>",
        "category": "onboarding",
        **extra,
    }
    res = await client.post(TEMPLATES, json=payload, headers=auth_header(token))
    assert res.status_code == 201, res.text
    return res.json()


class TestRenderTemplateText:
    def test_known_keys_are_replaced(self):
        assert render_template_text("Hi {{ name }}", {"name": "Ada"}) == "Hi Ada"

    def test_missing_key_is_kept_and_null_is_blank(self):
        assert render_template_text("{{a}}|{{b}}", {"a": None}) == "|{{b}}"


class TestTemplates:
    """템플릿 관리 테스트."""

    async def test_private_template_hidden_from_others(self, client: AsyncClient, owner_token, member_token):
        template = await create_template(client, owner_token)
        res = await client.get(f"{TEMPLATES}/{template['id']}", headers=auth_header(member_token))
        assert res.status_code == 403
        assert (await client.get(TEMPLATES, headers=auth_header(member_token))).json() == []

    async def test_shared_template_readable_not_editable(self, client: AsyncClient, owner_token, member_token):
        template = await create_template(client, owner_token, is_shared=True)
        member = auth_header(member_token)
        assert (await client.get(f"{TEMPLATES}/{template['id']}", headers=member)).status_code == 200
        assert (await client.patch(f"{TEMPLATES}/{template['id']}", json={"name": "x"}, headers=member)).status_code == 403
        assert (await client.delete(f"{TEMPLATES}/{template['id']}", headers=member)).status_code == 403

        copy = await client.post(f"{TEMPLATES}/{template['id']}/duplicate", headers=member)
        assert copy.status_code == 201
        assert copy.json()["name"] == "Welcome (Copy)"
        assert copy.json()["is_shared"] is False

    async def test_categories_and_filters(self, client: AsyncClient, owner_token):
        headers = auth_header(owner_token)
        await create_template(client, owner_token)
        await create_template(client, owner_token, name="Renewal", category="billing")
        assert (await client.get(f"{TEMPLATES}/categories", headers=headers)).json() == ["billing", "onboarding"]

        listing = (await client.get(TEMPLATES, params={"category": "billing"}, headers=headers)).json()
        assert [template["name"] for template in listing] == ["Renewal"]
        listing = (await client.get(TEMPLATES, params={"search": "welc"}, headers=headers)).json()
        assert [template["name"] for template in listing] == ["Welcome"]

    async def test_preview(self, client: AsyncClient, member_token):
        res = await client.post(
            f"{TEMPLATES}/preview",
            json={"subject": "Hi {{name}}", "body": "{{name}} from {{company}}", "data": {"name": "Ada"}},
            headers=auth_header(member_token),
        )
        assert res.json() == {"subject": "Hi Ada", "body": "Ada from {{company}}"}


class TestSending:
    """발송 및 로그 테스트."""

    async def test_send_is_simulated_and_logged(self, client: AsyncClient, owner_token):
        headers = auth_header(owner_token)
        res = await client.post(
            f"{TEMPLATES}/send",
            json={"to": ["ada@example.com"], "subject": "Hello", "body": "<p>Hi</p>"},
            headers=headers,
        )
        assert res.status_code == 200
        assert res.json()["status"] == "SENT"
        assert res.json()["message_id"].startswith("simulated-")

        log = (await client.get(f"{TEMPLATES}/logs/{res.json()['id']}", headers=headers)).json()
        assert log["to"] == ["ada@example.com"]
        assert log["sent_at"] is not None

    async def test_send_from_template_renders(self, client: AsyncClient, owner_token):
        headers = auth_header(owner_token)
        template = await create_template(client, owner_token)
        res = await client.post(
            f"{TEMPLATES}/{template['id']}/send",
            json={"to": ["ada@example.com"], "data": {"first_name": "Ada", "company": "Janus"}},
            headers=headers,
        )
        log = (await client.get(f"{TEMPLATES}/logs/{res.json()['id']}", headers=headers)).json()
        assert log["subject"] == "Hi Ada"
        assert log["body"] == "<p>Welcome to Janus, Ada!</p>"
        assert log["template_id"] == template["id"]

    @pytest.mark.parametrize(
        "payload",
        [
            {"to": [], "subject": "s", "body": "b"},
            {"to": ["not-an-email"], "subject": "s", "body": "b"},
            {"to": ["ok@example.com"], "cc": ["bad@"], "subject": "s", "body": "b"},
        ],
    )
    async def test_bad_recipients(self, client: AsyncClient, owner_token, payload):
        res = await client.post(f"{TEMPLATES}/send", json=payload, headers=auth_header(owner_token))
        assert res.status_code == 400

    async def test_transport_failure_keeps_failed_log(self, client: AsyncClient, owner_token, monkeypatch):
        async def broken_send(*args, **kwargs):
            raise ConnectionError("smtp down")

        monkeypatch.setattr("app.services.email_service.send_email", broken_send)
        headers = auth_header(owner_token)
        res = await client.post(
            f"{TEMPLATES}/send", json={"to": ["ada@example.com"], "subject": "s", "body": "b"}, headers=headers
        )
        assert res.status_code == 400
        assert "smtp down" in res.json()["detail"]

        logs = (await client.get(f"{TEMPLATES}/logs", params={"status": "FAILED"}, headers=headers)).json()
        assert logs["meta"]["total"] == 1
        assert logs["data"][0]["error"] == "smtp down"

    async def test_stats(self, client: AsyncClient, owner_token):
        headers = auth_header(owner_token)
        for _ in range(2):
            await client.post(f"{TEMPLATES}/send", json={"to": ["a@example.com"], "subject": "s", "body": "b"}, headers=headers)
        stats = (await client.get(f"{TEMPLATES}/logs/stats", headers=headers)).json()
        assert stats["sent"] == 2
        assert stats["failed"] == 0
        assert stats["total"] == 2

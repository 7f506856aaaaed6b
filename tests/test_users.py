"""사용자 API 테스트 - 목록, 프로필, 환경설정, 비밀번호, 관리자 수정.

User API tests - Directory, profile, preferences, password change and
admin updates.
"""

from httpx import AsyncClient

from tests.conftest import auth_header

USERS = "/api/users"


class TestDirectory:
    async def test_list_users_in_org(self, client: AsyncClient, owner_token, member_user):
        res = await client.get(USERS, headers=auth_header(owner_token))
        assert res.status_code == 200
        emails = {user["email"] for user in res.json()}
        assert emails == {"owner@test.com", "member@test.com"}
        assert all("password_hash" not in user for user in res.json())

    async def test_get_user_not_found(self, client: AsyncClient, owner_token):
        res = await client.get(f"{USERS}/00000000-0000-0000-0000-000000000000", headers=auth_header(owner_token))
        assert res.status_code == 404


class TestProfile:
    """본인 프로필 테스트."""

    async def test_update_profile(self, client: AsyncClient, member_token):
        res = await client.patch(f"{USERS}/me", json={"name": "Renamed"}, headers=auth_header(member_token))
        assert res.status_code == 200
        assert res.json()["name"] == "Renamed"

    async def test_preferences_are_merged(self, client: AsyncClient, member_token):
        headers = auth_header(member_token)
        await client.patch(f"{USERS}/me/preferences", json={"preferences": {"theme": "dark"}}, headers=headers)
        res = await client.patch(f"{USERS}/me/preferences", json={"preferences": {"lang": "ko"}}, headers=headers)
        assert res.json()["preferences"] == {"theme": "dark", "lang": "ko"}

    async def test_change_password_requires_current(self, client: AsyncClient, member_token):
        res = await client.post(
            f"{USERS}/me/change-password",
            json={"current_password": "wrong", "new_password": "brandnew1"},
            headers=auth_header(member_token),
        )
        assert res.status_code == 400

    async def test_change_password(self, client: AsyncClient, member_token):
        res = await client.post(
            f"{USERS}/me/change-password",
            json={"current_password": "member123!", "new_password": "brandnew1"},
            headers=auth_header(member_token),
        )
        assert res.status_code == 200
        login = await client.post("/api/auth/login", json={"email": "member@test.com", "password": "brandnew1"})
        assert login.status_code == 200


class TestAdminActions:
    """관리자 전용 사용자 관리 테스트."""

    async def test_promote_member(self, client: AsyncClient, owner_token, member_user):
        res = await client.patch(
            f"{USERS}/{member_user.id}", json={"role": "admin"}, headers=auth_header(owner_token)
        )
        assert res.status_code == 200
        assert res.json()["role"] == "admin"
        assert res.json()["level"] == 2

    async def test_member_cannot_update_others(self, client: AsyncClient, member_token, owner_user):
        res = await client.patch(
            f"{USERS}/{owner_user.id}", json={"name": "Hacked"}, headers=auth_header(member_token)
        )
        assert res.status_code == 403

    async def test_cannot_deactivate_self(self, client: AsyncClient, owner_token, owner_user):
        res = await client.delete(f"{USERS}/{owner_user.id}", headers=auth_header(owner_token))
        assert res.status_code == 400

    async def test_deactivated_user_loses_access(self, client: AsyncClient, owner_token, member_user, member_token):
        res = await client.delete(f"{USERS}/{member_user.id}", headers=auth_header(owner_token))
        assert res.status_code == 204
        res = await client.get(f"{USERS}/me", headers=auth_header(member_token))
        assert res.status_code == 401

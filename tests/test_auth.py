"""인증 API 테스트 - 회원가입, 로그인, 이메일 코드, /me 엔드포인트.

Auth API tests - Registration, password login, the email-code flow and /me.
"""

from httpx import AsyncClient

from app.config import settings
from tests.conftest import auth_header

AUTH = "/api/auth"


class TestRegister:
    """회원가입 테스트."""

    async def test_register_creates_workspace_owner(self, client: AsyncClient):
        """가입 시 새 워크스페이스의 소유자가 됩니다."""
        res = await client.post(f"{AUTH}/register", json={
            "email": "New.User@Example.com",
            "password": "secret123",
        })
        assert res.status_code == 201
        body = res.json()
        assert body["token"]
        assert body["user"]["email"] == "new.user@example.com"
        assert body["user"]["name"] == "new.user"
        assert body["user"]["role"] == "owner"

        me = await client.get(f"{AUTH}/me", headers=auth_header(body["token"]))
        assert me.status_code == 200
        assert me.json()["id"] == body["user"]["id"]

    async def test_register_duplicate_email(self, client: AsyncClient, owner_user):
        res = await client.post(f"{AUTH}/register", json={
            "email": "owner@test.com",
            "password": "secret123",
        })
        assert res.status_code == 409

    async def test_register_short_password(self, client: AsyncClient):
        """검증 실패는 400과 필드별 오류를 반환합니다."""
        res = await client.post(f"{AUTH}/register", json={"email": "a@b.com", "password": "123"})
        assert res.status_code == 400
        body = res.json()
        assert body["detail"] == "Validation failed"
        assert any(error["field"] == "password" for error in body["errors"])


class TestLogin:
    """비밀번호 로그인 테스트."""

    async def test_login_success(self, client: AsyncClient, owner_user):
        res = await client.post(f"{AUTH}/login", json={"email": "owner@test.com", "password": "owner123!"})
        assert res.status_code == 200
        assert res.json()["user"]["role"] == "owner"

    async def test_login_wrong_password(self, client: AsyncClient, owner_user):
        res = await client.post(f"{AUTH}/login", json={"email": "owner@test.com", "password": "nope"})
        assert res.status_code == 401

    async def test_login_unknown_email(self, client: AsyncClient):
        res = await client.post(f"{AUTH}/login", json={"email": "ghost@test.com", "password": "whatever"})
        assert res.status_code == 401

    async def test_login_inactive_user(self, client: AsyncClient, db, owner_user):
        owner_user.is_active = False
        await db.flush()
        res = await client.post(f"{AUTH}/login", json={"email": "owner@test.com", "password": "owner123!"})
        assert res.status_code == 401


class TestEmailCode:
    """이메일 코드 로그인 테스트."""

    async def test_send_and_verify_code(self, client: AsyncClient, monkeypatch):
        """처음 보는 이메일은 코드 확인 시 계정이 생성됩니다."""
        sent: dict[str, str] = {}

        async def _capture(email: str, code: str) -> None:
            sent[email] = code

        monkeypatch.setattr("app.services.auth_service.send_verification_code", _capture)

        res = await client.post(f"{AUTH}/send-code", json={"email": "code@test.com"})
        assert res.status_code == 200
        assert res.json()["expires_in"] == settings.VERIFICATION_CODE_TTL_MINUTES * 60
        code = sent["code@test.com"]
        assert len(code) == 6

        res = await client.post(f"{AUTH}/verify-code", json={"email": "code@test.com", "code": code})
        assert res.status_code == 200
        assert res.json()["user"]["email"] == "code@test.com"

        # 사용된 코드는 재사용 불가 (A consumed code cannot be reused)
        res = await client.post(f"{AUTH}/verify-code", json={"email": "code@test.com", "code": code})
        assert res.status_code == 401

    async def test_verify_wrong_code(self, client: AsyncClient):
        res = await client.post(f"{AUTH}/verify-code", json={"email": "x@test.com", "code": "000000"})
        assert res.status_code == 401

    async def test_password_login_for_code_only_account(self, client: AsyncClient, db, owner_user):
        owner_user.password_hash = None
        await db.flush()
        res = await client.post(f"{AUTH}/login", json={"email": "owner@test.com", "password": "owner123!"})
        assert res.status_code == 400


class TestDevTokenAndMe:
    async def test_dev_token_disabled_by_default(self, client: AsyncClient):
        res = await client.post(f"{AUTH}/dev-token")
        assert res.status_code == 404

    async def test_dev_token_enabled(self, client: AsyncClient, monkeypatch):
        monkeypatch.setattr(settings, "ENABLE_DEV_TOKEN", True)
        res = await client.post(f"{AUTH}/dev-token")
        assert res.status_code == 200
        assert res.json()["user"]["email"] == "dev@janus.local"

    async def test_me_without_token(self, client: AsyncClient):
        res = await client.get(f"{AUTH}/me")
        assert res.status_code in (401, 403)

    async def test_me_with_garbage_token(self, client: AsyncClient):
        res = await client.get(f"{AUTH}/me", headers=auth_header("not-a-jwt"))
        assert res.status_code == 401

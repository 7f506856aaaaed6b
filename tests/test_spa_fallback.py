"""SPA 폴백 미들웨어 테스트.

SPA fallback middleware tests against a throwaway static export.
"""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from app.middleware.spa_fallback import SpaFallbackMiddleware


@pytest.fixture
def static_dir(tmp_path):
    (tmp_path / "contacts" / "_placeholder").mkdir(parents=True)
    (tmp_path / "contacts" / "_placeholder" / "index.html").write_text("<p>contact shell</p>")
    (tmp_path / "contacts" / "new").mkdir()
    (tmp_path / "contacts" / "new" / "index.html").write_text("<p>new contact</p>")
    return tmp_path


@pytest.fixture
async def spa_client(static_dir):
    app = FastAPI()
    app.add_middleware(SpaFallbackMiddleware, static_dir=str(static_dir))

    @app.get("/api/ping")
    async def ping() -> dict[str, str]:
        return {"pong": "ok"}

    @app.post("/contacts/{contact_id}")
    async def not_a_page(contact_id: str) -> dict[str, str]:
        return {"id": contact_id}

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


class TestFallbackFor:
    def test_dynamic_path_maps_to_placeholder(self, static_dir):
        middleware = SpaFallbackMiddleware(app=None, static_dir=str(static_dir))
        assert middleware.fallback_for("/contacts/1234") == static_dir.resolve() / "contacts/_placeholder/index.html"

    def test_existing_file_and_api_are_untouched(self, static_dir):
        middleware = SpaFallbackMiddleware(app=None, static_dir=str(static_dir))
        assert middleware.fallback_for("/contacts/new/") is None
        assert middleware.fallback_for("/api/contacts/1") is None
        assert middleware.fallback_for("/deals/1") is None


class TestMiddleware:
    async def test_serves_placeholder(self, spa_client: AsyncClient):
        res = await spa_client.get("/contacts/abc")
        assert res.status_code == 200
        assert "contact shell" in res.text

    async def test_api_passes_through(self, spa_client: AsyncClient):
        assert (await spa_client.get("/api/ping")).json() == {"pong": "ok"}

    async def test_non_get_passes_through(self, spa_client: AsyncClient):
        assert (await spa_client.post("/contacts/abc")).json() == {"id": "abc"}

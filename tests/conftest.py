"""테스트 인프라 - 인메모리 SQLite DB, 세션, httpx 클라이언트 픽스처.

Test infrastructure - In-memory SQLite (aiosqlite) database, session and
httpx client fixtures. A StaticPool keeps the single in-memory connection
alive, and the schema is created fresh for every test.
"""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.models import *  # noqa: F401,F403 - register all models with metadata
from app.utils.jwt import create_access_token
from app.utils.password import hash_password

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# ---------------------------------------------------------------------------
# Function-scoped: 엔진, 세션, 클라이언트
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """테스트용 async 엔진 - 테스트마다 스키마를 새로 생성합니다."""
    eng = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite의 자동 BEGIN을 끄고 직접 BEGIN (Savepoints need explicit BEGIN on SQLite)
    @event.listens_for(eng.sync_engine, "connect")
    def _disable_implicit_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(eng.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield eng

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """각 테스트에 격리된 DB 세션을 제공합니다."""
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """FastAPI 테스트 클라이언트 - DB 세션을 오버라이드합니다."""
    async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# 헬퍼 픽스처: 테스트용 데이터 생성
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def org(db: AsyncSession):
    """테스트 조직을 생성합니다."""
    from app.models.organization import Organization
    o = Organization(name="Test Corp")
    db.add(o)
    await db.flush()
    await db.refresh(o)
    return o


@pytest_asyncio.fixture
async def roles(db: AsyncSession, org):
    """기본 3개 역할(owner/admin/member)을 생성합니다."""
    from app.models.user import DEFAULT_ROLES, Role
    result = {}
    for name, level in DEFAULT_ROLES:
        role = Role(organization_id=org.id, name=name, level=level)
        db.add(role)
        await db.flush()
        await db.refresh(role)
        result[name] = role
    return result


async def _make_user(db: AsyncSession, org, role, email: str, name: str, password: str):
    from app.models.user import User
    user = User(
        organization_id=org.id,
        role_id=role.id,
        email=email,
        name=name,
        password_hash=hash_password(password),
        preferences={},
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def owner_user(db: AsyncSession, org, roles):
    """소유자 사용자를 생성합니다."""
    return await _make_user(db, org, roles["owner"], "owner@test.com", "Test Owner", "owner123!")


@pytest_asyncio.fixture
async def member_user(db: AsyncSession, org, roles):
    """일반 멤버 사용자를 생성합니다."""
    return await _make_user(db, org, roles["member"], "member@test.com", "Test Member", "member123!")


@pytest_asyncio.fixture
async def other_member(db: AsyncSession, org, roles):
    """두 번째 멤버 사용자를 생성합니다."""
    return await _make_user(db, org, roles["member"], "other@test.com", "Other Member", "other123!")


def make_token(user, role_name: str, role_level: int) -> str:
    """테스트용 JWT 액세스 토큰을 생성합니다."""
    return create_access_token({
        "sub": str(user.id),
        "org": str(user.organization_id),
        "role": role_name,
        "level": role_level,
    })


@pytest.fixture
def owner_token(owner_user, roles) -> str:
    return make_token(owner_user, "owner", 1)


@pytest.fixture
def member_token(member_user, roles) -> str:
    return make_token(member_user, "member", 3)


@pytest.fixture
def other_token(other_member, roles) -> str:
    return make_token(other_member, "member", 3)


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# CRM 헬퍼 - 시스템 오브젝트 시드 후 이름 → 오브젝트 맵
# ---------------------------------------------------------------------------
@pytest_asyncio.fixture
async def system_objects(client: AsyncClient, owner_token: str) -> dict[str, dict]:
    """contacts/companies/deals 시스템 오브젝트를 시드합니다."""
    res = await client.post("/api/objects/seed-system", headers=auth_header(owner_token))
    assert res.status_code == 200
    res = await client.get("/api/objects", headers=auth_header(owner_token))
    return {obj["name"]: obj for obj in res.json()["data"]}

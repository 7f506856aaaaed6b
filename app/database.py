"""비동기 DB 엔진/세션 (Async database engine and sessions).

One engine per process. Request handlers receive a session from
``get_db`` and the services commit it; ``seed.py`` opens its own session
from ``async_session``.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import settings

engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
    pool_size=10,
    max_overflow=20,
)

# 커밋 후에도 속성 접근 가능 - ORM objects stay readable after commit for serialization
async_session: async_sessionmaker[AsyncSession] = async_sessionmaker(engine, expire_on_commit=False)


class Base(DeclarativeBase):
    """모든 ORM 모델의 베이스 (Declarative base shared by every model)."""


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """요청 단위 세션 의존성 (Per-request session dependency)."""
    async with async_session() as session:
        yield session

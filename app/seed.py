"""초기 데이터 시드 스크립트 - 데모 조직, 소유자 계정, 시스템 오브젝트 생성.

Seed script - Bootstraps a demo workspace.
Run this script once against an empty database.

Usage:
    python -m app.seed

Creates:
    - 1개 조직과 기본 역할 owner(1), admin(2), member(3) (1 organization with default roles)
    - 1개 소유자 계정: admin@janus.local / admin123 (1 owner user)
    - 시스템 오브젝트 contacts/companies/deals, 시스템 필드, 기본 영업 파이프라인
      (System objects with their fields and the default sales pipeline)
"""

import asyncio
import logging

from sqlalchemy import select

from app.database import Base, async_session, engine
from app.logging_config import configure_logging
from app.models import Organization, User
from app.repositories.organization_repository import organization_repository
from app.services.object_service import object_service
from app.utils.password import hash_password

logger = logging.getLogger(__name__)

SEED_EMAIL: str = "admin@janus.local"
SEED_PASSWORD: str = "admin123"


async def seed() -> None:
    """데이터베이스를 초기 데이터로 시드합니다.

    Seed the database with initial data. Creates tables if they don't
    exist, then the demo workspace.

    Idempotent: 이미 시드된 경우 건너뜁니다 (Skips if already seeded).
    """
    # 테이블 생성 - Create all tables from ORM metadata
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as db:
        # 조직이 하나라도 있으면 건너뜀 (Skip when any organization exists)
        result = await db.execute(select(Organization).limit(1))
        if result.scalar_one_or_none():
            logger.info("Already seeded, skipping")
            return

        org, roles = await organization_repository.create_workspace(db, "Janus Demo")

        owner: User = User(
            organization_id=org.id,
            role_id=roles["owner"].id,
            email=SEED_EMAIL,
            name="Demo Owner",
            password_hash=hash_password(SEED_PASSWORD),
            preferences={},
            is_active=True,
        )
        db.add(owner)
        await db.flush()

        objects = await object_service.seed_system_objects(db, org.id)

        await db.commit()
        logger.info(
            "Seeded demo workspace",
            extra={"organization_id": str(org.id), "owner": SEED_EMAIL, "objects": [obj["name"] for obj in objects]},
        )


if __name__ == "__main__":
    configure_logging()
    asyncio.run(seed())

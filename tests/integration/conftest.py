from __future__ import annotations

import pytest
from sqlalchemy import text

import governor.db.models  # noqa: F401
from governor.core.integration_db_safety import assert_safe_integration_db
from governor.db.models.base import Base
from governor.db.session import engine

TRUNCATE_TABLES = (
    "cdk_redemption",
    "cdk",
    "user_cdk_daily_limit",
    "user_points",
    "ip_concurrency",
    "points_package",
    "subscription_plan",
    "users",
)

TRUNCATE_SQL = f"TRUNCATE TABLE {', '.join(TRUNCATE_TABLES)} RESTART IDENTITY CASCADE"


@pytest.fixture(scope="session", autouse=True)
def guard_integration_db_target() -> None:
    assert_safe_integration_db(str(engine.url))


@pytest.fixture(autouse=True)
async def cleanup_db() -> None:
    # asyncpg connections must not outlive the event loop of the test that opened them.
    await engine.dispose()

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:  # pragma: no cover - environment-dependent
        pytest.skip(f"Postgres is required for integration tests: {exc}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.execute(text(TRUNCATE_SQL))

    yield

    await engine.dispose()

"""gateway 测试配置 -- FastAPI app + httpx AsyncClient + 模板任务 fixture"""

import os
from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from taskcadence.core.config import EngineConfig
from taskcadence.core.models import Task
from taskcadence.core.store import create_store_group
from ulid import ULID


@pytest_asyncio.fixture
async def test_app(tmp_path: Path):
    """创建测试用 FastAPI app 实例（手动初始化，绕过 lifespan）"""
    os.environ["TASKCADENCE_DB_PATH"] = str(tmp_path / "test.db")

    from taskcadence.gateway.main import create_app

    app = create_app()
    store_group = await create_store_group(str(tmp_path / "test.db"))
    app.state.store_group = store_group
    app.state.engine_config = EngineConfig()

    yield app

    await store_group.conn.close()
    os.environ.pop("TASKCADENCE_DB_PATH", None)


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def seed_template(test_app):
    """直接写入一个模板任务（任务 CRUD 不在本服务范围内）"""

    async def _create(title: str = "提交周报", owner_id: str = "owner-1") -> Task:
        store_group = test_app.state.store_group
        now = datetime.now(UTC)
        task = Task(
            task_id=str(ULID()),
            owner_id=owner_id,
            title=title,
            created_at=now,
            updated_at=now,
        )
        await store_group.task_store.create_task(task)
        await store_group.conn.commit()
        return task

    return _create

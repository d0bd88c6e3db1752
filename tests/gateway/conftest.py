"""gateway 测试配置 -- httpx AsyncClient + 手动初始化 app.state（绕过 lifespan）"""

from collections.abc import AsyncGenerator

import pytest_asyncio
from doma.core.assignment import ShiftManager
from httpx import ASGITransport, AsyncClient


@pytest_asyncio.fixture
async def app(stores, engine, notifier):
    """创建测试用 FastAPI app 实例，复用核心层 fixture"""
    from doma.gateway.main import create_app

    application = create_app()
    application.state.store_group = stores
    application.state.engine = engine
    application.state.notifier = notifier
    application.state.shift_manager = ShiftManager(stores)
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

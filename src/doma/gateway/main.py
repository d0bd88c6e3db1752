"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭 + 生命周期引擎与通知通道初始化 + 路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from doma.core.assignment import ShiftManager
from doma.core.config import get_db_path, get_telegram_bot_token, load_engine_config
from doma.core.notifier import LogNotifier, TelegramNotifier
from doma.core.store import create_store_group
from doma.core.task_lifecycle import TaskLifecycle
from fastapi import FastAPI

from .errors import register_error_handlers
from .middleware.logging_config import setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .routes import analytics, health, spaces, tasks, users

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 DB 和引擎，关闭时清理连接"""
    store_group = await create_store_group(get_db_path())
    app.state.store_group = store_group

    # 通知通道：配置了 Bot Token 时走 Telegram，否则只写日志
    bot_token = get_telegram_bot_token()
    if bot_token:
        notifier = TelegramNotifier(bot_token, store_group.user_store)
        log.info("notifier_initialized", mode="telegram")
    else:
        notifier = LogNotifier()
        log.info("notifier_initialized", mode="log")
    app.state.notifier = notifier

    config = load_engine_config()
    app.state.engine = TaskLifecycle(store_group, config=config, notifier=notifier)
    app.state.shift_manager = ShiftManager(store_group)
    log.info(
        "engine_initialized",
        system_actor_id=config.system_actor_id,
        sla_p1_minutes=config.sla.p1,
        sla_p2_minutes=config.sla.p2,
    )

    yield

    if isinstance(notifier, TelegramNotifier):
        await notifier.aclose()
    if hasattr(app.state, "store_group") and app.state.store_group:
        await app.state.store_group.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="Doma Ops Gateway",
        version="0.1.0",
        description="任务/空间生命周期 API",
        lifespan=lifespan,
    )

    app.add_middleware(LoggingMiddleware)
    register_error_handlers(app)

    setup_logging()

    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(spaces.router, tags=["spaces"])
    app.include_router(users.router, tags=["users"])
    app.include_router(analytics.router, tags=["analytics"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()

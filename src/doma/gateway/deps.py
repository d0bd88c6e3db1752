"""依赖注入模块 -- 通过 FastAPI Depends 注入引擎实例

实例通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from doma.core.assignment import ShiftManager
from doma.core.store import StoreGroup
from doma.core.task_lifecycle import TaskLifecycle
from fastapi import Request


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_engine(request: Request) -> TaskLifecycle:
    """从 app.state 获取 TaskLifecycle 实例"""
    return request.app.state.engine


def get_shift_manager(request: Request) -> ShiftManager:
    """从 app.state 获取 ShiftManager 实例"""
    return request.app.state.shift_manager

"""多实体原子事务封装

Task + Space + 审计日志的写入在同一 SQLite 事务内提交，
任何一步失败则整体回滚，不会留下「任务已 DONE 但房间仍 CLEANING」的半更新状态。
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite

from ..exceptions import ConcurrencyConflictError, NotFoundError
from ..models.task import Task
from .protocols import TaskStore


@asynccontextmanager
async def unit_of_work(
    conn: aiosqlite.Connection,
    write_lock: asyncio.Lock,
) -> AsyncIterator[aiosqlite.Connection]:
    """在同一事务内执行一组写操作

    write_lock 串行化共享连接上的事务，避免两个协程的写入交错进同一事务。

    Args:
        conn: 数据库连接（所有 Store 共享同一连接以保证事务性）
        write_lock: StoreGroup 级写锁

    Raises:
        BaseException: 块内任何异常（包括任务取消）都会触发回滚并原样抛出
    """
    async with write_lock:
        committed = False
        try:
            yield conn
            # 原子提交
            await conn.commit()
            committed = True
        finally:
            # 任务取消（CancelledError）同样回滚，不能把未完成的事务留在共享连接上
            if not committed:
                await asyncio.shield(conn.rollback())


async def update_task_checked(
    task_store: TaskStore,
    task: Task,
    expected_version: int | None = None,
) -> None:
    """在事务内更新任务，0 行受影响时区分「不存在」与「版本冲突」

    Raises:
        ConcurrencyConflictError: expected_version 与库中版本不一致
        NotFoundError: 任务已不存在
    """
    updated = await task_store.update_task(task, expected_version)
    if updated:
        return
    if expected_version is not None and await task_store.get_task(task.task_id):
        raise ConcurrencyConflictError("Task", task.task_id, expected_version)
    raise NotFoundError("Task", task.task_id)

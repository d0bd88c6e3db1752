"""Doma Core Store -- SQLite 持久化实现

提供工厂函数创建 Store 实例组：写操作共享一个连接并由写锁串行化，
读操作走独立的只读连接（WAL），只看到已提交的数据。
"""

import asyncio
from pathlib import Path

import aiosqlite

from .audit_store import SqliteAuditStore
from .space_store import SqliteEquipmentStore, SqliteSpaceStore
from .sqlite_init import init_db, init_read_connection
from .task_store import SqliteTaskStore
from .transaction import unit_of_work, update_task_checked
from .user_store import SqliteUserStore


class StoreGroup:
    """Store 实例组 -- 共享同一个写连接、读连接与写锁

    read_conn 为空时读写共用 conn（读操作可能看到未提交的写入）。
    """

    def __init__(
        self,
        conn: aiosqlite.Connection,
        read_conn: aiosqlite.Connection | None = None,
    ) -> None:
        self.conn = conn
        self.read_conn = read_conn if read_conn is not None else conn
        self.write_lock = asyncio.Lock()
        self.task_store = SqliteTaskStore(conn, self.read_conn)
        self.space_store = SqliteSpaceStore(conn, self.read_conn)
        self.user_store = SqliteUserStore(conn, self.read_conn)
        self.equipment_store = SqliteEquipmentStore(conn, self.read_conn)
        self.audit_store = SqliteAuditStore(conn, self.read_conn)

    def unit_of_work(self):
        """返回绑定到本组连接的事务上下文"""
        return unit_of_work(self.conn, self.write_lock)

    async def close(self) -> None:
        """关闭读写连接"""
        if self.read_conn is not self.conn:
            await self.read_conn.close()
        await self.conn.close()


async def create_store_group(db_path: str) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径

    Returns:
        StoreGroup 实例
    """
    # 确保数据库目录存在
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await init_db(conn)

    # 建表提交后再打开读连接
    read_conn = await aiosqlite.connect(db_path)
    read_conn.row_factory = aiosqlite.Row
    await init_read_connection(read_conn)

    return StoreGroup(conn=conn, read_conn=read_conn)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "SqliteTaskStore",
    "SqliteSpaceStore",
    "SqliteEquipmentStore",
    "SqliteUserStore",
    "SqliteAuditStore",
    "init_db",
    "init_read_connection",
    "unit_of_work",
    "update_task_checked",
]

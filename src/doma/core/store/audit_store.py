"""AuditStore SQLite 实现

审计表 append-only：只允许插入，不允许更新或删除。
"""

import json

import aiosqlite

from ..models.activity import ActivityLogEntry
from .codec import dt_from_db, row_to_dict

_COLUMNS: tuple[str, ...] = (
    "entry_id",
    "task_id",
    "user_id",
    "action",
    "metadata",
    "created_at",
)


class SqliteAuditStore:
    """AuditStore 的 SQLite 实现"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        read_conn: aiosqlite.Connection | None = None,
    ) -> None:
        self._conn = conn
        self._read_conn = read_conn if read_conn is not None else conn

    async def append_entry(self, entry: ActivityLogEntry) -> None:
        """追加审计条目（append-only）

        注意：此方法不自动提交事务，需由调用方管理事务。
        """
        await self._conn.execute(
            f"INSERT INTO activity_logs ({', '.join(_COLUMNS)}) VALUES (?, ?, ?, ?, ?, ?)",
            (
                entry.entry_id,
                entry.task_id,
                entry.user_id,
                entry.action.value,
                json.dumps(entry.metadata, ensure_ascii=False),
                entry.created_at.isoformat(),
            ),
        )

    async def list_for_task(self, task_id: str) -> list[ActivityLogEntry]:
        """查询指定任务的审计条目，按 created_at 倒序（同一时刻按写入顺序倒序）"""
        cursor = await self._read_conn.execute(
            f"SELECT {', '.join(_COLUMNS)} FROM activity_logs "
            "WHERE task_id = ? ORDER BY created_at DESC, rowid DESC",
            (task_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_entry(row) for row in rows]

    @staticmethod
    def _row_to_entry(row: aiosqlite.Row) -> ActivityLogEntry:
        """将数据库行转换为 ActivityLogEntry 模型"""
        data = row_to_dict(_COLUMNS, row)
        data["metadata"] = json.loads(data["metadata"]) if data["metadata"] else {}
        data["created_at"] = dt_from_db(data["created_at"])
        return ActivityLogEntry(**data)

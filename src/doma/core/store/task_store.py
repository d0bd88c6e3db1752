"""TaskStore SQLite 实现

注意：所有写方法都不自动提交事务，需由调用方通过 unit_of_work 管理。
读方法走只读连接，只返回已提交的数据。
"""

import json

import aiosqlite

from ..models.enums import TaskStatus
from ..models.task import Task, TaskFilter
from .codec import dt_from_db, dt_to_db, row_to_dict

_COLUMNS: tuple[str, ...] = (
    "task_id",
    "title",
    "description",
    "type",
    "priority",
    "status",
    "space_id",
    "custom_location",
    "assignee_id",
    "reporter_id",
    "equipment_id",
    "due_at",
    "response_time_minutes",
    "is_guest_impact",
    "block_location_until",
    "images",
    "created_at",
    "updated_at",
    "started_at",
    "ready_at",
    "completed_at",
    "reopen_count",
    "inspector_id",
    "inspection_result",
    "inspection_notes",
    "version",
)

_SELECT = "SELECT " + ", ".join(f"t.{c}" for c in _COLUMNS) + " FROM tasks t"

# UPDATE 时不覆盖的列
_IMMUTABLE = {"task_id", "created_at"}
_MUTABLE_COLUMNS = tuple(c for c in _COLUMNS if c not in _IMMUTABLE)


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        read_conn: aiosqlite.Connection | None = None,
    ) -> None:
        self._conn = conn
        self._read_conn = read_conn if read_conn is not None else conn

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        placeholders = ", ".join("?" for _ in _COLUMNS)
        await self._conn.execute(
            f"INSERT INTO tasks ({', '.join(_COLUMNS)}) VALUES ({placeholders})",
            self._task_to_params(task, _COLUMNS),
        )

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        cursor = await self._read_conn.execute(
            f"{_SELECT} WHERE t.task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def list_tasks(self, task_filter: TaskFilter | None = None) -> list[Task]:
        """按筛选条件查询任务列表，按 created_at 倒序

        reporter_department 通过 users 表匹配报告人所在部门。
        """
        task_filter = task_filter or TaskFilter()
        sql = _SELECT
        clauses: list[str] = []
        params: list = []

        if task_filter.reporter_department is not None:
            sql += " JOIN users r ON r.user_id = t.reporter_id"
            clauses.append("r.department = ?")
            params.append(task_filter.reporter_department.value)
        if task_filter.assignee_id is not None:
            clauses.append("t.assignee_id = ?")
            params.append(task_filter.assignee_id)
        if task_filter.reporter_id is not None:
            clauses.append("t.reporter_id = ?")
            params.append(task_filter.reporter_id)

        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY t.created_at DESC, t.rowid DESC"

        cursor = await self._read_conn.execute(sql, params)
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def list_assigned_to(self, user_id: str) -> list[Task]:
        """查询指派给某用户的任务，P1 优先"""
        cursor = await self._read_conn.execute(
            f"{_SELECT} WHERE t.assignee_id = ? "
            "ORDER BY t.priority ASC, t.created_at DESC, t.rowid DESC",
            (user_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def list_by_status(self, status: TaskStatus) -> list[Task]:
        """按状态查询任务"""
        cursor = await self._read_conn.execute(
            f"{_SELECT} WHERE t.status = ? ORDER BY t.created_at ASC, t.rowid ASC",
            (status.value,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def update_task(self, task: Task, expected_version: int | None = None) -> int:
        """整行更新任务（task.version 应已由调用方递增）

        Args:
            task: 更新后的任务
            expected_version: 非空时要求库中版本与之相等（乐观锁）

        Returns:
            受影响行数，0 表示任务不存在或版本冲突
        """
        assignments = ", ".join(f"{c} = ?" for c in _MUTABLE_COLUMNS)
        params = list(self._task_to_params(task, _MUTABLE_COLUMNS))
        sql = f"UPDATE tasks SET {assignments} WHERE task_id = ?"
        params.append(task.task_id)
        if expected_version is not None:
            sql += " AND version = ?"
            params.append(expected_version)
        cursor = await self._conn.execute(sql, params)
        return cursor.rowcount

    async def count_by_status_and_priority(self) -> list[tuple[str, str, int]]:
        """统计 (status, priority, count)"""
        cursor = await self._read_conn.execute(
            "SELECT status, priority, COUNT(*) FROM tasks GROUP BY status, priority"
        )
        rows = await cursor.fetchall()
        return [(row[0], row[1], row[2]) for row in rows]

    async def count_by_type(self) -> dict[str, int]:
        """按任务类型统计数量"""
        cursor = await self._read_conn.execute(
            "SELECT type, COUNT(*) FROM tasks GROUP BY type"
        )
        rows = await cursor.fetchall()
        return {row[0]: row[1] for row in rows}

    @staticmethod
    def _task_to_params(task: Task, columns: tuple[str, ...]) -> tuple:
        """将 Task 模型按列顺序转换为 SQL 参数"""
        values = {
            "task_id": task.task_id,
            "title": task.title,
            "description": task.description,
            "type": task.type.value,
            "priority": task.priority.value,
            "status": task.status.value,
            "space_id": task.space_id,
            "custom_location": task.custom_location,
            "assignee_id": task.assignee_id,
            "reporter_id": task.reporter_id,
            "equipment_id": task.equipment_id,
            "due_at": dt_to_db(task.due_at),
            "response_time_minutes": task.response_time_minutes,
            "is_guest_impact": int(task.is_guest_impact),
            "block_location_until": dt_to_db(task.block_location_until),
            "images": json.dumps(task.images, ensure_ascii=False),
            "created_at": dt_to_db(task.created_at),
            "updated_at": dt_to_db(task.updated_at),
            "started_at": dt_to_db(task.started_at),
            "ready_at": dt_to_db(task.ready_at),
            "completed_at": dt_to_db(task.completed_at),
            "reopen_count": task.reopen_count,
            "inspector_id": task.inspector_id,
            "inspection_result": (
                task.inspection_result.value if task.inspection_result else None
            ),
            "inspection_notes": task.inspection_notes,
            "version": task.version,
        }
        return tuple(values[c] for c in columns)

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        data = row_to_dict(_COLUMNS, row)
        data["images"] = json.loads(data["images"]) if data["images"] else []
        data["is_guest_impact"] = bool(data["is_guest_impact"])
        for key in (
            "due_at",
            "block_location_until",
            "created_at",
            "updated_at",
            "started_at",
            "ready_at",
            "completed_at",
        ):
            data[key] = dt_from_db(data[key])
        return Task(**data)

"""SpaceStore / EquipmentStore SQLite 实现

写方法不自动提交事务。
"""

from datetime import datetime

import aiosqlite

from ..models.enums import SpaceStatus
from ..models.space import Equipment, Space
from .codec import dt_from_db, row_to_dict

_SPACE_COLUMNS: tuple[str, ...] = (
    "space_id",
    "name",
    "type",
    "status",
    "created_at",
    "updated_at",
    "version",
)

_EQUIPMENT_COLUMNS: tuple[str, ...] = ("equipment_id", "name", "space_id")


class SqliteSpaceStore:
    """SpaceStore 的 SQLite 实现"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        read_conn: aiosqlite.Connection | None = None,
    ) -> None:
        self._conn = conn
        self._read_conn = read_conn if read_conn is not None else conn

    async def create_space(self, space: Space) -> None:
        """创建空间记录"""
        await self._conn.execute(
            """
            INSERT INTO spaces (space_id, name, type, status, created_at, updated_at, version)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                space.space_id,
                space.name,
                space.type.value,
                space.status.value,
                space.created_at.isoformat(),
                space.updated_at.isoformat(),
                space.version,
            ),
        )

    async def get_space(self, space_id: str) -> Space | None:
        """根据 space_id 查询空间"""
        cursor = await self._read_conn.execute(
            f"SELECT {', '.join(_SPACE_COLUMNS)} FROM spaces WHERE space_id = ?",
            (space_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_space(row)

    async def list_spaces(self, status: SpaceStatus | None = None) -> list[Space]:
        """查询空间列表，支持按状态筛选，按名称排序"""
        sql = f"SELECT {', '.join(_SPACE_COLUMNS)} FROM spaces"
        params: tuple = ()
        if status is not None:
            sql += " WHERE status = ?"
            params = (status.value,)
        sql += " ORDER BY name ASC"
        cursor = await self._read_conn.execute(sql, params)
        rows = await cursor.fetchall()
        return [self._row_to_space(row) for row in rows]

    async def update_space_status(
        self,
        space_id: str,
        status: SpaceStatus,
        updated_at: datetime,
        expected_version: int | None = None,
    ) -> int:
        """更新空间状态并递增版本号

        Returns:
            受影响行数，0 表示空间不存在或版本冲突
        """
        sql = """
            UPDATE spaces
            SET status = ?, updated_at = ?, version = version + 1
            WHERE space_id = ?
        """
        params: list = [status.value, updated_at.isoformat(), space_id]
        if expected_version is not None:
            sql += " AND version = ?"
            params.append(expected_version)
        cursor = await self._conn.execute(sql, params)
        return cursor.rowcount

    @staticmethod
    def _row_to_space(row: aiosqlite.Row) -> Space:
        """将数据库行转换为 Space 模型"""
        data = row_to_dict(_SPACE_COLUMNS, row)
        data["created_at"] = dt_from_db(data["created_at"])
        data["updated_at"] = dt_from_db(data["updated_at"])
        return Space(**data)


class SqliteEquipmentStore:
    """EquipmentStore 的 SQLite 实现"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        read_conn: aiosqlite.Connection | None = None,
    ) -> None:
        self._conn = conn
        self._read_conn = read_conn if read_conn is not None else conn

    async def create_equipment(self, equipment: Equipment) -> None:
        await self._conn.execute(
            "INSERT INTO equipment (equipment_id, name, space_id) VALUES (?, ?, ?)",
            (equipment.equipment_id, equipment.name, equipment.space_id),
        )

    async def get_equipment(self, equipment_id: str) -> Equipment | None:
        cursor = await self._read_conn.execute(
            f"SELECT {', '.join(_EQUIPMENT_COLUMNS)} FROM equipment WHERE equipment_id = ?",
            (equipment_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return Equipment(**row_to_dict(_EQUIPMENT_COLUMNS, row))

"""UserStore SQLite 实现

写方法不自动提交事务。
"""

import aiosqlite

from ..models.enums import TaskType, UserRole
from ..models.user import User
from .codec import row_to_dict

_COLUMNS: tuple[str, ...] = (
    "user_id",
    "name",
    "role",
    "department",
    "is_on_shift",
    "telegram_id",
)

_SELECT = f"SELECT {', '.join(_COLUMNS)} FROM users"


class SqliteUserStore:
    """UserStore 的 SQLite 实现"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        read_conn: aiosqlite.Connection | None = None,
    ) -> None:
        self._conn = conn
        self._read_conn = read_conn if read_conn is not None else conn

    async def create_user(self, user: User) -> None:
        """创建用户记录"""
        await self._conn.execute(
            f"INSERT INTO users ({', '.join(_COLUMNS)}) VALUES (?, ?, ?, ?, ?, ?)",
            (
                user.user_id,
                user.name,
                user.role.value,
                user.department.value if user.department else None,
                int(user.is_on_shift),
                user.telegram_id,
            ),
        )

    async def get_user(self, user_id: str) -> User | None:
        """根据 user_id 查询用户"""
        cursor = await self._read_conn.execute(f"{_SELECT} WHERE user_id = ?", (user_id,))
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    async def list_users(self) -> list[User]:
        """查询全部用户，按姓名排序"""
        cursor = await self._read_conn.execute(f"{_SELECT} ORDER BY name ASC")
        rows = await cursor.fetchall()
        return [self._row_to_user(row) for row in rows]

    async def list_on_shift_staff(self, department: TaskType) -> list[User]:
        """查询指定部门当前在班的 STAFF（自动派单候选人）

        按 user_id 排序，保证相同随机源下选择结果可复现。
        """
        cursor = await self._read_conn.execute(
            f"{_SELECT} WHERE role = ? AND department = ? AND is_on_shift = 1 "
            "ORDER BY user_id ASC",
            (UserRole.STAFF.value, department.value),
        )
        rows = await cursor.fetchall()
        return [self._row_to_user(row) for row in rows]

    async def set_on_shift(self, user_id: str, is_on_shift: bool) -> int:
        """切换在班状态，返回受影响行数"""
        cursor = await self._conn.execute(
            "UPDATE users SET is_on_shift = ? WHERE user_id = ?",
            (int(is_on_shift), user_id),
        )
        return cursor.rowcount

    @staticmethod
    def _row_to_user(row: aiosqlite.Row) -> User:
        """将数据库行转换为 User 模型"""
        data = row_to_dict(_COLUMNS, row)
        data["is_on_shift"] = bool(data["is_on_shift"])
        return User(**data)

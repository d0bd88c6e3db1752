"""Store Protocol 接口定义

定义 TaskStore、SpaceStore、UserStore、EquipmentStore、AuditStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
生命周期引擎只依赖这些接口，SQLite 实现见同包其他模块。
"""

from datetime import datetime
from typing import Protocol

from ..models.activity import ActivityLogEntry
from ..models.enums import SpaceStatus, TaskStatus, TaskType
from ..models.space import Equipment, Space
from ..models.task import Task, TaskFilter
from ..models.user import User


class TaskStore(Protocol):
    """Task 存储接口"""

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        ...

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        ...

    async def list_tasks(self, task_filter: TaskFilter | None = None) -> list[Task]:
        """按筛选条件查询任务，created_at 倒序"""
        ...

    async def list_assigned_to(self, user_id: str) -> list[Task]:
        """查询指派给某用户的任务，P1 优先"""
        ...

    async def list_by_status(self, status: TaskStatus) -> list[Task]:
        """按状态查询任务"""
        ...

    async def update_task(self, task: Task, expected_version: int | None = None) -> int:
        """整行更新任务，返回受影响行数"""
        ...

    async def count_by_status_and_priority(self) -> list[tuple[str, str, int]]:
        """统计 (status, priority, count)"""
        ...

    async def count_by_type(self) -> dict[str, int]:
        """按任务类型统计数量"""
        ...


class SpaceStore(Protocol):
    """Space 存储接口"""

    async def create_space(self, space: Space) -> None:
        """创建空间记录"""
        ...

    async def get_space(self, space_id: str) -> Space | None:
        """根据 space_id 查询空间"""
        ...

    async def list_spaces(self, status: SpaceStatus | None = None) -> list[Space]:
        """查询空间列表"""
        ...

    async def update_space_status(
        self,
        space_id: str,
        status: SpaceStatus,
        updated_at: datetime,
        expected_version: int | None = None,
    ) -> int:
        """更新空间状态，返回受影响行数"""
        ...


class UserStore(Protocol):
    """User 存储接口"""

    async def get_user(self, user_id: str) -> User | None:
        """根据 user_id 查询用户"""
        ...

    async def list_on_shift_staff(self, department: TaskType) -> list[User]:
        """查询指定部门在班 STAFF"""
        ...

    async def set_on_shift(self, user_id: str, is_on_shift: bool) -> int:
        """切换在班状态，返回受影响行数"""
        ...


class EquipmentStore(Protocol):
    """Equipment 存储接口"""

    async def get_equipment(self, equipment_id: str) -> Equipment | None:
        """根据 equipment_id 查询设备"""
        ...


class AuditStore(Protocol):
    """审计存储接口

    append-only：只允许插入，不允许更新或删除。
    """

    async def append_entry(self, entry: ActivityLogEntry) -> None:
        """追加审计条目"""
        ...

    async def list_for_task(self, task_id: str) -> list[ActivityLogEntry]:
        """查询指定任务的审计条目，created_at 倒序"""
        ...

"""自动派单与排班

AssignmentSelector 从指定部门在班的 STAFF 中等概率随机选择一人；
随机源可注入，测试中使用固定种子或桩实现保证结果可复现。
ShiftManager 维护 is_on_shift 标记，AssignmentSelector 只读消费。
"""

import random
from collections.abc import Sequence
from typing import Protocol, TypeVar

import structlog

from .exceptions import NotFoundError
from .models.enums import TaskType
from .models.user import User
from .store import StoreGroup
from .store.protocols import UserStore

log = structlog.get_logger()

T = TypeVar("T")


class RandomSource(Protocol):
    def pick(self, candidates: Sequence[T]) -> T:
        """从非空候选序列中选择一个"""
        ...


class RandomPicker:
    """基于 random.Random 的随机源，可指定种子"""

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)

    def pick(self, candidates: Sequence[T]) -> T:
        return self._rng.choice(candidates)


class AssignmentSelector:
    """自动派单候选人选择器"""

    def __init__(self, user_store: UserStore, random_source: RandomSource) -> None:
        self._users = user_store
        self._random = random_source

    async def select_candidate(self, department: TaskType) -> str | None:
        """选择候选执行人

        筛选条件：role == STAFF 且 department 匹配且在班。
        候选为空时返回 None，任务留在共享池中。
        """
        candidates = await self._users.list_on_shift_staff(department)
        if not candidates:
            log.info("auto_assign_no_candidate", department=department.value)
            return None

        chosen = self._random.pick([u.user_id for u in candidates])
        log.info(
            "auto_assign_selected",
            department=department.value,
            candidate_count=len(candidates),
            user_id=chosen,
        )
        return chosen


class ShiftManager:
    """排班管理：切换员工在班状态"""

    def __init__(self, stores: StoreGroup) -> None:
        self._stores = stores

    async def set_on_shift(self, user_id: str, is_on_shift: bool) -> None:
        """上班/下班打卡

        Raises:
            NotFoundError: 用户不存在
        """
        async with self._stores.unit_of_work():
            updated = await self._stores.user_store.set_on_shift(user_id, is_on_shift)
            if not updated:
                raise NotFoundError("User", user_id)
        log.info("shift_toggled", user_id=user_id, is_on_shift=is_on_shift)

    async def list_roster(self) -> list[User]:
        """全部员工及其在班状态，按姓名排序"""
        return await self._stores.user_store.list_users()

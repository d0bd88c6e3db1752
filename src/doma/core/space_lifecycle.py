"""SpaceLifecycle -- 空间客房状态的从属状态机

两条入口共享同一组 SpaceStore 写操作：
- automatic_transition: 仅由 TaskLifecycle 在其事务内调用，无守卫；
- manual_override: 前台/验房人员手动覆盖，READY 必须由 INSPECTED 而来。
空间状态变化不写审计日志（审计仅覆盖任务级）。
"""

from datetime import datetime

import structlog

from .clock import Clock
from .exceptions import ConcurrencyConflictError, InvalidTransitionError, NotFoundError
from .models.enums import SpaceStatus, TaskStatus, TaskType
from .models.space import Space
from .store import StoreGroup

log = structlog.get_logger()

# 客房清扫任务状态 -> 空间状态
HOUSEKEEPING_SPACE_MAPPING: dict[TaskStatus, SpaceStatus] = {
    TaskStatus.ASSIGNED: SpaceStatus.CLEANING,
    TaskStatus.IN_PROGRESS: SpaceStatus.CLEANING,
    TaskStatus.READY_FOR_INSPECTION: SpaceStatus.READY,
    TaskStatus.DONE: SpaceStatus.INSPECTED,
    TaskStatus.REOPENED: SpaceStatus.DIRTY,
}


def space_status_on_create(
    task_type: TaskType,
    block_location_until: datetime | None,
) -> SpaceStatus | None:
    """新建任务时空间应被置为的状态，None 表示不变"""
    if block_location_until is not None:
        return SpaceStatus.OUT_OF_ORDER
    if task_type == TaskType.HK:
        return SpaceStatus.DIRTY
    return None


def space_status_on_transition(
    task_type: TaskType,
    new_status: TaskStatus,
) -> SpaceStatus | None:
    """任务状态变更时空间应被置为的状态，仅客房清扫任务生效"""
    if task_type != TaskType.HK:
        return None
    return HOUSEKEEPING_SPACE_MAPPING.get(new_status)


class SpaceLifecycle:
    """空间状态机"""

    def __init__(self, stores: StoreGroup, clock: Clock) -> None:
        self._stores = stores
        self._clock = clock

    async def automatic_transition(self, space_id: str, target: SpaceStatus) -> None:
        """由任务事件驱动的空间状态变更

        必须在调用方的 unit_of_work 内执行，不自行提交。

        Raises:
            NotFoundError: 空间不存在
        """
        updated = await self._stores.space_store.update_space_status(
            space_id,
            target,
            self._clock.now(),
        )
        if not updated:
            raise NotFoundError("Space", space_id)
        log.info("space_status_synced", space_id=space_id, status=target.value)

    async def manual_override(
        self,
        space_id: str,
        target: SpaceStatus,
        actor_id: str,
        expected_version: int | None = None,
    ) -> Space:
        """人工覆盖空间状态

        Raises:
            NotFoundError: 空间不存在
            InvalidTransitionError: 目标为 READY 但当前不是 INSPECTED
            ConcurrencyConflictError: expected_version 已过期
        """
        async with self._stores.unit_of_work():
            space = await self._stores.space_store.get_space(space_id)
            if space is None:
                raise NotFoundError("Space", space_id)

            if target == SpaceStatus.READY and space.status != SpaceStatus.INSPECTED:
                raise InvalidTransitionError(
                    "Space",
                    space.status.value,
                    target.value,
                    reason="space must be INSPECTED before being marked READY",
                )

            updated = await self._stores.space_store.update_space_status(
                space_id,
                target,
                self._clock.now(),
                expected_version,
            )
            if not updated:
                raise ConcurrencyConflictError("Space", space_id, expected_version or 0)

        log.info(
            "space_status_overridden",
            space_id=space_id,
            from_status=space.status.value,
            to_status=target.value,
            actor_id=actor_id,
        )
        return await self.get_space(space_id)

    async def get_space(self, space_id: str) -> Space:
        space = await self._stores.space_store.get_space(space_id)
        if space is None:
            raise NotFoundError("Space", space_id)
        return space

    async def list_spaces(self, status: SpaceStatus | None = None) -> list[Space]:
        """房态看板：按名称排序，可按状态筛选"""
        return await self._stores.space_store.list_spaces(status)

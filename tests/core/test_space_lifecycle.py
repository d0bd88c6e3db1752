"""SpaceLifecycle 测试

测试内容：
1. 人工覆盖：READY 必须由 INSPECTED 而来
2. 其他目标状态不设守卫
3. 房态看板筛选与排序
4. 验房队列排序
"""

from datetime import timedelta

import pytest
from doma.core.exceptions import (
    ConcurrencyConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from doma.core.models import SLAStatus, SpaceStatus, TaskStatus, TaskType
from doma.core.space_lifecycle import space_status_on_create, space_status_on_transition


class TestManualOverride:
    """人工覆盖房态"""

    async def test_ready_requires_inspected(self, engine, stores, make_space):
        await make_space("S1", status=SpaceStatus.DIRTY)

        with pytest.raises(InvalidTransitionError):
            await engine.manual_space_override("S1", SpaceStatus.READY, "fd")
        assert (await stores.space_store.get_space("S1")).status == SpaceStatus.DIRTY

    async def test_inspected_to_ready(self, engine, make_space):
        await make_space("S1", status=SpaceStatus.INSPECTED)
        space = await engine.manual_space_override("S1", "READY", "fd")
        assert space.status == SpaceStatus.READY
        assert space.version == 2

    @pytest.mark.parametrize(
        "target",
        [SpaceStatus.OCCUPIED, SpaceStatus.OUT_OF_SERVICE, SpaceStatus.DIRTY, SpaceStatus.CLEANING],
    )
    async def test_other_targets_unguarded(self, engine, make_space, target):
        await make_space("S1", status=SpaceStatus.OUT_OF_ORDER)
        space = await engine.manual_space_override("S1", target)
        assert space.status == target

    async def test_unknown_space(self, engine):
        with pytest.raises(NotFoundError):
            await engine.manual_space_override("nope", SpaceStatus.DIRTY)

    async def test_unknown_status(self, engine, make_space):
        await make_space("S1")
        with pytest.raises(ValidationError):
            await engine.manual_space_override("S1", "SPARKLING")

    async def test_stale_version(self, engine, make_space):
        await make_space("S1", status=SpaceStatus.OCCUPIED)
        await engine.manual_space_override("S1", SpaceStatus.DIRTY, expected_version=1)
        with pytest.raises(ConcurrencyConflictError):
            await engine.manual_space_override("S1", SpaceStatus.CLEANING, expected_version=1)


class TestSpaceRules:
    """空间联动规则（纯函数）"""

    def test_on_create(self):
        assert space_status_on_create(TaskType.HK, None) == SpaceStatus.DIRTY
        assert space_status_on_create(TaskType.FNB, None) is None

    def test_block_wins_over_type(self, clock):
        until = clock.now() + timedelta(hours=1)
        assert space_status_on_create(TaskType.HK, until) == SpaceStatus.OUT_OF_ORDER
        assert space_status_on_create(TaskType.MAINTENANCE, until) == SpaceStatus.OUT_OF_ORDER

    def test_on_transition_unmapped_status(self):
        assert space_status_on_transition(TaskType.HK, TaskStatus.BLOCKED) is None
        assert space_status_on_transition(TaskType.HK, TaskStatus.VERIFIED) is None
        assert space_status_on_transition(TaskType.MAINTENANCE, TaskStatus.DONE) is None


class TestSpaceBoard:
    """房态看板"""

    async def test_list_ordered_by_name(self, engine, make_space):
        await make_space("b", name="202", status=SpaceStatus.DIRTY)
        await make_space("a", name="101", status=SpaceStatus.READY)
        await make_space("c", name="105", status=SpaceStatus.DIRTY)

        assert [s.name for s in await engine.spaces.list_spaces()] == ["101", "105", "202"]
        dirty = await engine.spaces.list_spaces(SpaceStatus.DIRTY)
        assert [s.space_id for s in dirty] == ["c", "b"]


class TestInspectionQueue:
    """验房队列"""

    async def test_overdue_first_then_oldest_ready(self, engine, clock, make_space, make_user):
        await make_user("U1")
        ids = {}
        for name, priority in (("101", "P3"), ("102", "P1"), ("103", "P3")):
            await make_space(name)
            task = await engine.create(
                {"title": f"清扫 {name}", "type": "HK", "priority": priority, "space_id": name}
            )
            await engine.transition(task.task_id, {"status": "IN_PROGRESS"})
            ids[name] = task.task_id

        # 101 最早待验；102 为 P1，稍后待验但会超时
        await engine.transition(ids["101"], {"status": "READY_FOR_INSPECTION"})
        clock.advance(minutes=5)
        await engine.transition(ids["103"], {"status": "READY_FOR_INSPECTION"})
        clock.advance(minutes=5)
        await engine.transition(ids["102"], {"status": "READY_FOR_INSPECTION"})

        queue = await engine.inspection_queue(clock.now() + timedelta(minutes=61))

        assert [item.task.task_id for item in queue] == [ids["102"], ids["101"], ids["103"]]
        assert queue[0].sla.status == SLAStatus.OVERDUE
        assert queue[1].sla.status == SLAStatus.NONE

    async def test_queue_excludes_other_statuses(self, engine, make_space, make_user):
        await make_user("U1")
        await make_space("S1")
        await engine.create({"title": "x", "type": "HK", "priority": "P2", "space_id": "S1"})
        assert await engine.inspection_queue() == []

"""事务一致性与存储层测试

测试内容：
1. unit_of_work 成功提交、失败整体回滚
2. 乐观锁：过期版本更新 0 行并抛出 ConcurrencyConflictError
3. 审计表倒序查询（同一时刻按写入顺序）
4. 任务列表筛选与排序
5. 读连接只看到已提交的数据
"""

import asyncio
from datetime import timedelta

import pytest
from doma.core.exceptions import ConcurrencyConflictError, NotFoundError
from doma.core.models import (
    ActivityLogEntry,
    AuditAction,
    SpaceStatus,
    Task,
    TaskFilter,
    TaskPriority,
    TaskStatus,
    TaskType,
    UserRole,
)
from doma.core.store.transaction import update_task_checked


def _task(task_id: str, clock, **kwargs) -> Task:
    fields = {
        "title": f"任务 {task_id}",
        "type": TaskType.MAINTENANCE,
        "priority": TaskPriority.P2,
        "custom_location": "Lobby",
        "created_at": clock.now(),
        "updated_at": clock.now(),
    }
    fields.update(kwargs)
    return Task(task_id=task_id, **fields)


class TestUnitOfWork:
    """多实体原子写入"""

    async def test_commit_persists_all_writes(self, stores, clock, make_space):
        await make_space("S1")
        async with stores.unit_of_work():
            await stores.task_store.create_task(
                _task("t1", clock, space_id="S1", custom_location=None)
            )
            await stores.space_store.update_space_status("S1", SpaceStatus.DIRTY, clock.now())

        assert await stores.task_store.get_task("t1") is not None
        space = await stores.space_store.get_space("S1")
        assert space.status == SpaceStatus.DIRTY
        assert space.version == 2

    async def test_failure_rolls_back_everything(self, stores, clock, make_space):
        """块内异常：任务、空间、审计都不落盘"""
        await make_space("S1")

        with pytest.raises(RuntimeError):
            async with stores.unit_of_work():
                await stores.task_store.create_task(
                    _task("t1", clock, space_id="S1", custom_location=None)
                )
                await stores.space_store.update_space_status(
                    "S1", SpaceStatus.DIRTY, clock.now()
                )
                await stores.audit_store.append_entry(
                    ActivityLogEntry(
                        entry_id="e1",
                        task_id="t1",
                        user_id="system",
                        action=AuditAction.CREATED,
                        created_at=clock.now(),
                    )
                )
                raise RuntimeError("boom")

        assert await stores.task_store.get_task("t1") is None
        assert (await stores.space_store.get_space("S1")).status == SpaceStatus.READY
        assert await stores.audit_store.list_for_task("t1") == []

    async def test_location_check_constraint(self, stores, clock, make_space):
        """数据库层同样拒绝同时设置 space_id 与 custom_location"""
        import sqlite3

        await make_space("S1")
        with pytest.raises(sqlite3.IntegrityError):
            async with stores.unit_of_work():
                await stores.task_store.create_task(_task("t1", clock, space_id="S1"))


class TestOptimisticConcurrency:
    """version 字段的乐观锁"""

    async def test_stale_version_conflicts(self, stores, clock):
        task = _task("t1", clock)
        async with stores.unit_of_work():
            await stores.task_store.create_task(task)

        first = task.model_copy(update={"title": "A", "version": 2})
        async with stores.unit_of_work():
            await update_task_checked(stores.task_store, first, expected_version=1)

        stale = task.model_copy(update={"title": "B", "version": 2})
        with pytest.raises(ConcurrencyConflictError):
            async with stores.unit_of_work():
                await update_task_checked(stores.task_store, stale, expected_version=1)

        stored = await stores.task_store.get_task("t1")
        assert stored.title == "A"
        assert stored.version == 2

    async def test_without_version_last_write_wins(self, stores, clock):
        task = _task("t1", clock)
        async with stores.unit_of_work():
            await stores.task_store.create_task(task)

        for title in ("A", "B"):
            async with stores.unit_of_work():
                await update_task_checked(
                    stores.task_store, task.model_copy(update={"title": title, "version": 2})
                )
        assert (await stores.task_store.get_task("t1")).title == "B"

    async def test_missing_task_not_found(self, stores, clock):
        with pytest.raises(NotFoundError):
            async with stores.unit_of_work():
                await update_task_checked(stores.task_store, _task("ghost", clock))


class TestAuditStore:
    """审计表查询顺序"""

    async def test_newest_first_with_ties_by_insert_order(self, stores, clock):
        async with stores.unit_of_work():
            await stores.task_store.create_task(_task("t1", clock))
            for i, action in enumerate(
                [AuditAction.CREATED, AuditAction.EDITED, AuditAction.COMMENT]
            ):
                await stores.audit_store.append_entry(
                    ActivityLogEntry(
                        entry_id=f"e{i}",
                        task_id="t1",
                        user_id="system",
                        action=action,
                        metadata={"i": i},
                        created_at=clock.now(),
                    )
                )

        entries = await stores.audit_store.list_for_task("t1")
        assert [e.entry_id for e in entries] == ["e2", "e1", "e0"]
        assert entries[0].metadata == {"i": 2}


class TestTaskQueries:
    """任务列表筛选与排序"""

    async def test_filters_and_order(self, stores, clock, make_user):
        await make_user("fd", department=TaskType.FRONT_DESK)
        await make_user("eng", department=TaskType.MAINTENANCE)
        await make_user("hk", department=TaskType.HK)

        async with stores.unit_of_work():
            await stores.task_store.create_task(_task("t1", clock, reporter_id="fd"))
            clock.advance(minutes=1)
            await stores.task_store.create_task(
                _task("t2", clock, reporter_id="eng", assignee_id="hk")
            )
            clock.advance(minutes=1)
            await stores.task_store.create_task(_task("t3", clock, reporter_id="fd"))

        all_tasks = await stores.task_store.list_tasks()
        assert [t.task_id for t in all_tasks] == ["t3", "t2", "t1"]

        by_dept = await stores.task_store.list_tasks(
            TaskFilter(reporter_department=TaskType.FRONT_DESK)
        )
        assert [t.task_id for t in by_dept] == ["t3", "t1"]

        by_assignee = await stores.task_store.list_tasks(TaskFilter(assignee_id="hk"))
        assert [t.task_id for t in by_assignee] == ["t2"]

    async def test_assigned_list_p1_first(self, stores, clock, make_user):
        await make_user("hk")
        async with stores.unit_of_work():
            await stores.task_store.create_task(
                _task("low", clock, assignee_id="hk", priority=TaskPriority.P3)
            )
            clock.advance(minutes=1)
            await stores.task_store.create_task(
                _task("urgent", clock, assignee_id="hk", priority=TaskPriority.P1)
            )
            clock.advance(minutes=1)
            await stores.task_store.create_task(
                _task("mid", clock, assignee_id="hk", priority=TaskPriority.P2)
            )

        tasks = await stores.task_store.list_assigned_to("hk")
        assert [t.task_id for t in tasks] == ["urgent", "mid", "low"]

    async def test_round_trip_preserves_fields(self, stores, clock):
        task = _task(
            "t1",
            clock,
            images=["a.jpg", "b.jpg"],
            is_guest_impact=True,
            block_location_until=clock.now() + timedelta(hours=2),
            status=TaskStatus.BLOCKED,
        )
        async with stores.unit_of_work():
            await stores.task_store.create_task(task)
        assert await stores.task_store.get_task("t1") == task

    async def test_on_shift_staff_filter(self, stores, make_user):
        await make_user("hk-on")
        await make_user("hk-off", is_on_shift=False)
        await make_user("hk-mgr", role=UserRole.MANAGER)
        await make_user("eng-on", department=TaskType.MAINTENANCE)

        staff = await stores.user_store.list_on_shift_staff(TaskType.HK)
        assert [u.user_id for u in staff] == ["hk-on"]


class TestReadIsolation:
    """读操作走只读连接，看不到进行中的事务"""

    async def test_uncommitted_task_invisible_to_readers(self, engine, stores, clock):
        writing = asyncio.Event()
        release = asyncio.Event()

        async def writer():
            with pytest.raises(RuntimeError):
                async with stores.unit_of_work():
                    await stores.task_store.create_task(_task("ghost", clock))
                    writing.set()
                    await release.wait()
                    raise RuntimeError("abort")

        writer_task = asyncio.create_task(writer())
        await writing.wait()

        assert await engine.list_by_filter() == []
        with pytest.raises(NotFoundError):
            await engine.get("ghost")

        release.set()
        await writer_task
        assert await engine.list_by_filter() == []

    async def test_committed_task_visible_to_readers(self, engine, stores, clock):
        async with stores.unit_of_work():
            await stores.task_store.create_task(_task("t1", clock))
        assert [t.task_id for t in await engine.list_by_filter()] == ["t1"]

    async def test_read_connection_is_separate(self, stores):
        assert stores.read_conn is not stores.conn
        cursor = await stores.read_conn.execute("PRAGMA query_only;")
        assert (await cursor.fetchone())[0] == 1

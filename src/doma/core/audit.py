"""AuditTrail -- 任务级审计日志

条目是任务修改的唯一历史记录；只提供追加与查询，不提供更新或删除。
append 不自行提交事务：作为状态变更的一部分写入时，由调用方的 unit_of_work 统一提交。
"""

from typing import Any

from ulid import ULID

from .clock import Clock
from .models.activity import ActivityLogEntry
from .models.enums import AuditAction
from .store.protocols import AuditStore


class AuditTrail:
    """审计日志追加/查询"""

    def __init__(self, audit_store: AuditStore, clock: Clock) -> None:
        self._store = audit_store
        self._clock = clock

    async def append(
        self,
        task_id: str,
        actor_id: str,
        action: AuditAction,
        metadata: dict[str, Any] | None = None,
    ) -> ActivityLogEntry:
        """追加一条审计条目（纯插入）"""
        entry = ActivityLogEntry(
            entry_id=str(ULID()),
            task_id=task_id,
            user_id=actor_id,
            action=action,
            metadata=metadata or {},
            created_at=self._clock.now(),
        )
        await self._store.append_entry(entry)
        return entry

    async def list_by_task(self, task_id: str) -> list[ActivityLogEntry]:
        """按 created_at 倒序返回任务的审计条目"""
        return await self._store.list_for_task(task_id)

"""TaskLifecycle -- 任务生命周期引擎

任务创建/流转的编排入口：
1. 校验输入、解析审计操作者
2. 必要时调用 AssignmentSelector 自动派单
3. 在同一事务内写入 Task、联动 Space 状态、追加审计条目
4. 事务提交后尽力而为地调用 Notifier（失败只记录日志）

并发说明：没有任务级锁。同一任务的两个并发 transition 各自读取后写入，
后写者覆盖先写者；调用方传入 expected_version 时改为检测冲突并抛出
ConcurrencyConflictError。
"""

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from ulid import ULID

from .assignment import AssignmentSelector, RandomPicker, RandomSource
from .audit import AuditTrail
from .clock import Clock, SystemClock
from .config import EngineConfig
from .exceptions import InvalidTransitionError, NotFoundError, ValidationError
from .models.activity import ActivityLogEntry
from .models.enums import (
    TERMINAL_STATES,
    AuditAction,
    InspectionResult,
    SLABasis,
    SLAStatus,
    SpaceStatus,
    TaskStatus,
    validate_transition,
)
from .models.payloads import AssignmentPayload, CommentPayload, CreatedPayload, EditedPayload
from .models.sla import InspectionQueueItem, SLAResult
from .models.space import Space
from .models.task import Task, TaskDraft, TaskFilter, TaskPatch
from .notifier import LogNotifier, Notifier
from .sla import evaluate_sla
from .space_lifecycle import SpaceLifecycle, space_status_on_create, space_status_on_transition
from .store import StoreGroup
from .store.transaction import update_task_checked

log = structlog.get_logger()

M = TypeVar("M", bound=BaseModel)

# patch 中不允许显式置空的字段
_NON_NULLABLE_PATCH_FIELDS = frozenset(
    {"title", "priority", "status", "is_guest_impact", "images"}
)

# 首次进入某状态时写入的时间戳字段
_STATUS_TIMESTAMPS: dict[TaskStatus, str] = {
    TaskStatus.IN_PROGRESS: "started_at",
    TaskStatus.READY_FOR_INSPECTION: "ready_at",
    TaskStatus.DONE: "completed_at",
}


def _coerce(model_cls: type[M], value: M | Mapping[str, Any]) -> M:
    """将 mapping 校验为模型，pydantic 校验错误转换为核心层 ValidationError"""
    if isinstance(value, model_cls):
        return value
    try:
        return model_cls.model_validate(value)
    except PydanticValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or model_cls.__name__}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(f"Invalid {model_cls.__name__}: {details}") from e


def _as_utc(value: datetime | None) -> datetime | None:
    """无时区的时间按 UTC 处理"""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _blank_to_none(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value.strip()


def _check_location(space_id: str | None, custom_location: str | None) -> None:
    """位置二选一：space_id 与 custom_location 恰好一个"""
    if space_id is not None and custom_location is not None:
        raise ValidationError("Provide either space_id or custom_location, not both")
    if space_id is None and custom_location is None:
        raise ValidationError("Either space_id or custom_location is required")


class TaskLifecycle:
    """任务生命周期引擎"""

    def __init__(
        self,
        stores: StoreGroup,
        config: EngineConfig | None = None,
        clock: Clock | None = None,
        notifier: Notifier | None = None,
        random_source: RandomSource | None = None,
    ) -> None:
        self._stores = stores
        self._config = config or EngineConfig()
        self._clock = clock or SystemClock()
        self._notifier = notifier or LogNotifier()
        self._selector = AssignmentSelector(
            stores.user_store,
            random_source or RandomPicker(),
        )
        self.spaces = SpaceLifecycle(stores, self._clock)
        self.audit = AuditTrail(stores.audit_store, self._clock)

    # ------------------------------------------------------------------
    # 创建
    # ------------------------------------------------------------------

    async def create(self, draft: TaskDraft | Mapping[str, Any]) -> Task:
        """创建任务

        Raises:
            ValidationError: 标题为空、位置二选一违规、枚举值非法、封锁时间不在未来
            NotFoundError: 引用的 space / user / equipment 不存在
        """
        draft = _coerce(TaskDraft, draft)
        now = self._clock.now()

        title = _blank_to_none(draft.title)
        if title is None:
            raise ValidationError("title is required")
        custom_location = _blank_to_none(draft.custom_location)
        _check_location(draft.space_id, custom_location)

        block_until = _as_utc(draft.block_location_until)
        if block_until is not None and block_until <= now:
            raise ValidationError("block_location_until must be in the future")

        space = await self._ensure_references(
            space_id=draft.space_id,
            user_ids=[draft.assignee_id, draft.reporter_id],
            equipment_id=draft.equipment_id,
        )

        actor_id = draft.reporter_id or self._config.system_actor_id

        assignee_id = draft.assignee_id
        auto_assigned = False
        if assignee_id is None:
            assignee_id = await self._selector.select_candidate(draft.type)
            auto_assigned = assignee_id is not None

        task = Task(
            task_id=str(ULID()),
            title=title,
            description=draft.description,
            type=draft.type,
            priority=draft.priority,
            status=TaskStatus.ASSIGNED if assignee_id else TaskStatus.NEW,
            space_id=draft.space_id,
            custom_location=custom_location,
            assignee_id=assignee_id,
            reporter_id=draft.reporter_id,
            equipment_id=draft.equipment_id,
            due_at=_as_utc(draft.due_at),
            response_time_minutes=draft.response_time_minutes,
            is_guest_impact=draft.is_guest_impact,
            block_location_until=block_until,
            images=list(draft.images),
            created_at=now,
            updated_at=now,
        )

        space_target = (
            space_status_on_create(task.type, task.block_location_until)
            if task.space_id
            else None
        )

        # 单事务写入 task + space + 审计条目
        async with self._stores.unit_of_work():
            await self._stores.task_store.create_task(task)
            if space_target is not None:
                await self.spaces.automatic_transition(task.space_id, space_target)
            await self.audit.append(
                task.task_id,
                actor_id,
                AuditAction.CREATED,
                CreatedPayload(title=task.title, auto_assigned=auto_assigned).model_dump(
                    by_alias=True
                ),
            )

        log.info(
            "task_created",
            task_id=task.task_id,
            type=task.type.value,
            priority=task.priority.value,
            status=task.status.value,
            assignee_id=assignee_id,
            auto_assigned=auto_assigned,
            space_status=space_target.value if space_target else None,
        )

        if assignee_id:
            await self._notify(
                assignee_id,
                f"🆕 [{task.priority}] {task.title} @ {self._location_label(task, space)}",
            )

        return task

    # ------------------------------------------------------------------
    # 流转
    # ------------------------------------------------------------------

    async def transition(
        self,
        task_id: str,
        patch: TaskPatch | Mapping[str, Any],
    ) -> Task:
        """修改任务（状态流转、改派、编辑字段）

        每次调用恰好写入一条审计条目：改派时为 ASSIGNED / RE_ASSIGNED，否则为 EDITED。

        Raises:
            NotFoundError: 任务或引用对象不存在
            ValidationError: patch 非法或修改后违反位置二选一
            InvalidTransitionError: 状态流转不在 VALID_TRANSITIONS 中
            ConcurrencyConflictError: expected_version 已过期
        """
        patch = _coerce(TaskPatch, patch)
        current = await self.get(task_id)
        now = self._clock.now()

        fields = self._normalize_patch_fields(patch.applied_fields(), now)
        updated = current.model_copy(update=fields)
        _check_location(updated.space_id, updated.custom_location)

        space = await self._ensure_references(
            space_id=fields.get("space_id"),
            user_ids=[fields.get("assignee_id"), fields.get("inspector_id")],
            equipment_id=fields.get("equipment_id"),
        )

        changes = [
            name
            for name in TaskPatch.model_fields
            if name in fields and getattr(current, name) != getattr(updated, name)
        ]

        status_changed = updated.status != current.status
        if status_changed and not validate_transition(current.status, updated.status):
            reason = (
                f"{current.status.value} is a terminal state"
                if current.status in TERMINAL_STATES
                else ""
            )
            raise InvalidTransitionError(
                "Task", current.status.value, updated.status.value, reason
            )

        extra: dict[str, Any] = {"updated_at": now, "version": current.version + 1}
        if status_changed:
            stamp_field = _STATUS_TIMESTAMPS.get(updated.status)
            # 时间戳只写一次，重新进入同一状态不覆盖
            if stamp_field and getattr(current, stamp_field) is None:
                extra[stamp_field] = now
            if updated.status == TaskStatus.REOPENED:
                extra["reopen_count"] = current.reopen_count + 1
        updated = updated.model_copy(update=extra)

        assignee_changed = updated.assignee_id != current.assignee_id
        space_target = (
            space_status_on_transition(updated.type, updated.status)
            if status_changed and updated.space_id
            else None
        )
        actor_id = patch.actor_id or self._config.system_actor_id

        async with self._stores.unit_of_work():
            await update_task_checked(
                self._stores.task_store, updated, patch.expected_version
            )
            if space_target is not None:
                await self.spaces.automatic_transition(updated.space_id, space_target)
            if assignee_changed:
                await self.audit.append(
                    task_id,
                    actor_id,
                    AuditAction.RE_ASSIGNED if current.assignee_id else AuditAction.ASSIGNED,
                    AssignmentPayload(
                        old_assignee=current.assignee_id,
                        new_assignee=updated.assignee_id,
                    ).model_dump(by_alias=True),
                )
            else:
                await self.audit.append(
                    task_id,
                    actor_id,
                    AuditAction.EDITED,
                    EditedPayload(changes=changes).model_dump(),
                )

        log.info(
            "task_transitioned",
            task_id=task_id,
            from_status=current.status.value,
            to_status=updated.status.value,
            changes=changes,
            reopen_count=updated.reopen_count,
            space_status=space_target.value if space_target else None,
        )

        if assignee_changed and updated.assignee_id:
            if space is None and updated.space_id:
                space = await self._stores.space_store.get_space(updated.space_id)
            await self._notify(
                updated.assignee_id,
                f"🔄 Task assigned to you: {updated.title} @ "
                f"{self._location_label(updated, space)}",
            )

        return updated

    async def pass_inspection(self, task_id: str, inspector_id: str) -> Task:
        """验房通过：任务 -> DONE（客房 -> INSPECTED）"""
        return await self.transition(
            task_id,
            TaskPatch(
                status=TaskStatus.DONE,
                inspector_id=inspector_id,
                inspection_result=InspectionResult.PASS,
                actor_id=inspector_id,
            ),
        )

    async def fail_inspection(self, task_id: str, inspector_id: str, reason: str) -> Task:
        """验房不通过：任务 -> REOPENED（客房 -> DIRTY），记录原因"""
        return await self.transition(
            task_id,
            TaskPatch(
                status=TaskStatus.REOPENED,
                inspector_id=inspector_id,
                inspection_result=InspectionResult.FAIL,
                inspection_notes=reason,
                actor_id=inspector_id,
            ),
        )

    # ------------------------------------------------------------------
    # 查询 / 评论
    # ------------------------------------------------------------------

    async def get(self, task_id: str) -> Task:
        """查询任务

        Raises:
            NotFoundError: 任务不存在
        """
        task = await self._stores.task_store.get_task(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        return task

    async def list_by_filter(
        self,
        task_filter: TaskFilter | Mapping[str, Any] | None = None,
    ) -> list[Task]:
        """按 assignee / reporter / reporter 部门筛选，created_at 倒序"""
        if task_filter is not None:
            task_filter = _coerce(TaskFilter, task_filter)
        return await self._stores.task_store.list_tasks(task_filter)

    async def list_my_tasks(self, user_id: str) -> list[Task]:
        """执行人的工作清单，P1 优先"""
        return await self._stores.task_store.list_assigned_to(user_id)

    async def append_comment(
        self,
        task_id: str,
        text: str,
        actor_id: str | None = None,
    ) -> ActivityLogEntry:
        """追加评论（记为 COMMENT 审计条目）

        Raises:
            NotFoundError: 任务不存在
            ValidationError: 评论内容为空
        """
        body = _blank_to_none(text)
        if body is None:
            raise ValidationError("comment text is required")
        await self.get(task_id)

        async with self._stores.unit_of_work():
            entry = await self.audit.append(
                task_id,
                actor_id or self._config.system_actor_id,
                AuditAction.COMMENT,
                CommentPayload(text=body).model_dump(),
            )
        log.info("task_commented", task_id=task_id, actor_id=entry.user_id)
        return entry

    async def list_activity(self, task_id: str) -> list[ActivityLogEntry]:
        """任务审计历史，created_at 倒序"""
        await self.get(task_id)
        return await self.audit.list_by_task(task_id)

    # ------------------------------------------------------------------
    # 空间 / SLA
    # ------------------------------------------------------------------

    async def manual_space_override(
        self,
        space_id: str,
        status: SpaceStatus | str,
        actor_id: str | None = None,
        expected_version: int | None = None,
    ) -> Space:
        """人工覆盖空间状态（READY 需先 INSPECTED）"""
        try:
            target = SpaceStatus(status)
        except ValueError as e:
            raise ValidationError(f"Invalid space status: {status}") from e
        return await self.spaces.manual_override(
            space_id,
            target,
            actor_id or self._config.system_actor_id,
            expected_version,
        )

    def evaluate_sla(
        self,
        task: Task,
        now: datetime | None = None,
        basis: SLABasis = SLABasis.READY,
    ) -> SLAResult:
        """按引擎配置的阈值计算 SLA"""
        return evaluate_sla(task, now or self._clock.now(), self._config.sla, basis)

    async def inspection_queue(self, now: datetime | None = None) -> list[InspectionQueueItem]:
        """验房队列：待验任务，已超时优先，其次 ready_at 最早优先"""
        now = now or self._clock.now()
        items = [
            InspectionQueueItem(
                task=task,
                sla=evaluate_sla(task, now, self._config.sla, SLABasis.READY),
            )
            for task in await self._stores.task_store.list_by_status(
                TaskStatus.READY_FOR_INSPECTION
            )
        ]
        items.sort(
            key=lambda item: (
                item.sla.status != SLAStatus.OVERDUE,
                item.task.ready_at or item.task.created_at,
            )
        )
        return items

    # ------------------------------------------------------------------
    # 内部辅助
    # ------------------------------------------------------------------

    def _normalize_patch_fields(self, fields: dict[str, Any], now: datetime) -> dict[str, Any]:
        """校验并规范化 patch 中显式给出的字段"""
        for name in _NON_NULLABLE_PATCH_FIELDS:
            if name in fields and fields[name] is None:
                raise ValidationError(f"{name} cannot be null")

        if "title" in fields:
            title = _blank_to_none(fields["title"])
            if title is None:
                raise ValidationError("title cannot be blank")
            fields["title"] = title
        if "custom_location" in fields:
            fields["custom_location"] = _blank_to_none(fields["custom_location"])
        for name in ("due_at", "block_location_until"):
            if name in fields:
                fields[name] = _as_utc(fields[name])
        block_until = fields.get("block_location_until")
        if block_until is not None and block_until <= now:
            raise ValidationError("block_location_until must be in the future")
        return fields

    async def _ensure_references(
        self,
        space_id: str | None = None,
        user_ids: list[str | None] | None = None,
        equipment_id: str | None = None,
    ) -> Space | None:
        """校验引用对象存在，返回 space（如有）"""
        space = None
        if space_id is not None:
            space = await self._stores.space_store.get_space(space_id)
            if space is None:
                raise NotFoundError("Space", space_id)
        for user_id in user_ids or []:
            if user_id is not None and await self._stores.user_store.get_user(user_id) is None:
                raise NotFoundError("User", user_id)
        if equipment_id is not None:
            if await self._stores.equipment_store.get_equipment(equipment_id) is None:
                raise NotFoundError("Equipment", equipment_id)
        return space

    @staticmethod
    def _location_label(task: Task, space: Space | None) -> str:
        if space is not None:
            return space.name
        return task.custom_location or task.space_id or "-"

    async def _notify(self, user_id: str, message: str) -> None:
        """尽力而为的通知：任何失败只记录日志，不影响已提交的状态变更"""
        try:
            await self._notifier.notify_user(user_id, message)
        except Exception as e:
            log.warning(
                "notify_user_failed",
                user_id=user_id,
                error_type=type(e).__name__,
                error=str(e),
            )

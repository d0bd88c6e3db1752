"""全局 pytest 配置 -- 临时 SQLite 数据库 + 时钟/随机源/通知桩"""

from collections.abc import AsyncGenerator, Sequence
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import pytest_asyncio
from doma.core.config import EngineConfig
from doma.core.exceptions import NotifierError
from doma.core.models import Space, SpaceStatus, SpaceType, TaskType, User, UserRole
from doma.core.store import StoreGroup, create_store_group
from doma.core.task_lifecycle import TaskLifecycle

T0 = datetime(2025, 3, 1, 8, 0, tzinfo=UTC)


class FixedClock:
    """可手动推进的固定时钟"""

    def __init__(self, now: datetime = T0) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs) -> datetime:
        self._now = self._now + timedelta(**kwargs)
        return self._now


class StubPicker:
    """总是选择第 index 个候选人，并记录每次收到的候选列表"""

    def __init__(self, index: int = 0) -> None:
        self.index = index
        self.calls: list[list] = []

    def pick(self, candidates: Sequence):
        self.calls.append(list(candidates))
        return candidates[self.index]


class RecordingNotifier:
    """记录所有通知，不做真实发送"""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    async def notify_user(self, user_id: str, message: str) -> None:
        self.sent.append((user_id, message))


class FailingNotifier:
    """每次调用都失败的通知实现"""

    def __init__(self) -> None:
        self.attempts = 0

    async def notify_user(self, user_id: str, message: str) -> None:
        self.attempts += 1
        raise NotifierError(user_id, "bot unreachable")


async def add_space(
    stores: StoreGroup,
    space_id: str,
    status: SpaceStatus = SpaceStatus.READY,
    name: str | None = None,
    space_type: SpaceType = SpaceType.ROOM,
) -> Space:
    """辅助函数：写入一个空间"""
    space = Space(
        space_id=space_id,
        name=name or space_id,
        type=space_type,
        status=status,
        created_at=T0,
        updated_at=T0,
    )
    async with stores.unit_of_work():
        await stores.space_store.create_space(space)
    return space


async def add_user(
    stores: StoreGroup,
    user_id: str,
    department: TaskType | None = TaskType.HK,
    role: UserRole = UserRole.STAFF,
    is_on_shift: bool = True,
    telegram_id: str | None = None,
) -> User:
    """辅助函数：写入一个用户"""
    user = User(
        user_id=user_id,
        name=user_id,
        role=role,
        department=department,
        is_on_shift=is_on_shift,
        telegram_id=telegram_id,
    )
    async with stores.unit_of_work():
        await stores.user_store.create_user(user)
    return user


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "sqlite" / "test.db"


@pytest_asyncio.fixture
async def stores(tmp_db_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """提供已初始化的 StoreGroup"""
    store_group = await create_store_group(str(tmp_db_path))
    yield store_group
    await store_group.close()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def picker() -> StubPicker:
    return StubPicker()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def engine(stores, clock, notifier, picker) -> TaskLifecycle:
    """提供注入了固定时钟、桩随机源与记录型通知的引擎"""
    return TaskLifecycle(
        stores,
        config=EngineConfig(system_actor_id="system"),
        clock=clock,
        notifier=notifier,
        random_source=picker,
    )


@pytest.fixture
def failing_notifier() -> FailingNotifier:
    return FailingNotifier()


@pytest.fixture
def make_space(stores):
    """返回绑定到当前 StoreGroup 的 add_space"""

    async def _make(space_id: str, **kwargs) -> Space:
        return await add_space(stores, space_id, **kwargs)

    return _make


@pytest.fixture
def make_user(stores):
    """返回绑定到当前 StoreGroup 的 add_user"""

    async def _make(user_id: str, **kwargs) -> User:
        return await add_user(stores, user_id, **kwargs)

    return _make

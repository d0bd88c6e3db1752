"""时钟抽象 -- 测试注入固定时钟"""

from datetime import UTC, datetime
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        """返回带时区的当前时间"""
        ...


class SystemClock:
    """生产环境时钟（UTC）"""

    def now(self) -> datetime:
        return datetime.now(UTC)

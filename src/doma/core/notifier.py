"""Notifier -- 出站通知协作方

通知是尽力而为的：引擎在事务提交之后调用，失败只记录日志，不回滚状态变更。
"""

from typing import Protocol

import httpx
import structlog

from .exceptions import NotifierError
from .store.protocols import UserStore

log = structlog.get_logger()

TELEGRAM_API_BASE = "https://api.telegram.org"


class Notifier(Protocol):
    async def notify_user(self, user_id: str, message: str) -> None:
        """向用户发送一条消息，失败时抛出异常"""
        ...


class LogNotifier:
    """仅写日志的通知实现（未配置 Telegram 时使用）"""

    async def notify_user(self, user_id: str, message: str) -> None:
        await log.ainfo("notify_user", user_id=user_id, message=message)


class TelegramNotifier:
    """通过 Telegram Bot API sendMessage 推送通知

    用户的 telegram_id 作为 chat_id；没有绑定 Telegram 的用户抛出 NotifierError。
    """

    def __init__(
        self,
        bot_token: str,
        user_store: UserStore,
        client: httpx.AsyncClient | None = None,
        timeout_s: float = 10.0,
    ) -> None:
        """
        Args:
            bot_token: Bot Token
            user_store: 用于查询 telegram_id
            client: 可注入的 httpx 客户端（测试用 MockTransport）
            timeout_s: 请求超时（秒）
        """
        self._url = f"{TELEGRAM_API_BASE}/bot{bot_token}/sendMessage"
        self._users = user_store
        self._client = client or httpx.AsyncClient(timeout=timeout_s)

    async def notify_user(self, user_id: str, message: str) -> None:
        user = await self._users.get_user(user_id)
        if user is None or not user.telegram_id:
            raise NotifierError(user_id, "user has no linked telegram account")

        try:
            response = await self._client.post(
                self._url,
                json={"chat_id": user.telegram_id, "text": message},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise NotifierError(user_id, type(e).__name__) from e

    async def aclose(self) -> None:
        await self._client.aclose()

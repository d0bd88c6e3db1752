"""Notifier 适配器测试 -- httpx.MockTransport 模拟 Telegram Bot API"""

import json

import httpx
import pytest
from doma.core.exceptions import NotifierError
from doma.core.notifier import LogNotifier, TelegramNotifier


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestTelegramNotifier:
    """Telegram 推送"""

    async def test_send_message(self, stores, make_user):
        await make_user("U1", telegram_id="424242")
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"ok": True})

        notifier = TelegramNotifier("TOKEN", stores.user_store, client=_client(handler))
        await notifier.notify_user("U1", "🆕 [P1] 漏水 @ 101")
        await notifier.aclose()

        assert len(requests) == 1
        assert str(requests[0].url) == "https://api.telegram.org/botTOKEN/sendMessage"
        assert json.loads(requests[0].content) == {
            "chat_id": "424242",
            "text": "🆕 [P1] 漏水 @ 101",
        }

    async def test_user_without_telegram(self, stores, make_user):
        await make_user("U1")

        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("不应发出请求")

        notifier = TelegramNotifier("TOKEN", stores.user_store, client=_client(handler))
        with pytest.raises(NotifierError):
            await notifier.notify_user("U1", "hi")

    async def test_http_error_wrapped(self, stores, make_user):
        await make_user("U1", telegram_id="1")

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502)

        notifier = TelegramNotifier("TOKEN", stores.user_store, client=_client(handler))
        with pytest.raises(NotifierError) as exc_info:
            await notifier.notify_user("U1", "hi")
        assert exc_info.value.user_id == "U1"


class TestLogNotifier:
    async def test_never_raises(self):
        await LogNotifier().notify_user("U1", "hello")

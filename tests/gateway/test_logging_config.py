"""日志配置测试：Bot Token 脱敏"""

import json
import logging

from doma.gateway.middleware.logging_config import redact_bot_token, setup_logging

_URL = "https://api.telegram.org/bot123456:AAE-x_y9/sendMessage"


class TestRedactBotToken:
    def test_masks_token_in_string_values(self):
        event = redact_bot_token(
            None, "info", {"event": f"POST {_URL}", "url": _URL, "attempt": 2}
        )
        assert event == {
            "event": "POST https://api.telegram.org/bot***/sendMessage",
            "url": "https://api.telegram.org/bot***/sendMessage",
            "attempt": 2,
        }

    def test_leaves_other_text_untouched(self):
        event = redact_bot_token(None, "info", {"event": "task_created", "space": "bot 101"})
        assert event == {"event": "task_created", "space": "bot 101"}

    def test_httpx_record_redacted_when_rendered(self, monkeypatch):
        monkeypatch.setenv("DOMA_LOG_FORMAT", "json")
        setup_logging()
        formatter = logging.getLogger().handlers[0].formatter

        record = logging.LogRecord(
            "httpx",
            logging.INFO,
            __file__,
            1,
            'HTTP Request: POST %s "%s"',
            (_URL, "HTTP/1.1 200 OK"),
            None,
        )
        rendered = json.loads(formatter.format(record))

        assert "AAE-x_y9" not in json.dumps(rendered)
        assert rendered["event"] == (
            'HTTP Request: POST https://api.telegram.org/bot***/sendMessage "HTTP/1.1 200 OK"'
        )
        assert rendered["logger"] == "httpx"

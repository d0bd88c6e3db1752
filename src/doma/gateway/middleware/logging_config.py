"""structlog 配置模块

dev 模式：pretty print 可读输出
json 模式：结构化 JSON 输出

Telegram 通知的请求 URL 中带有 Bot Token（httpx 会在 INFO 级别打印），
所有日志在渲染前统一脱敏。
"""

import logging
import os
import re

import structlog

# https://api.telegram.org/bot<id>:<secret>/sendMessage
_BOT_TOKEN_RE = re.compile(r"/bot\d+:[\w-]+")
_BOT_TOKEN_MASK = "/bot***"


def _mask(value: str) -> str:
    return _BOT_TOKEN_RE.sub(_BOT_TOKEN_MASK, value)


def redact_bot_token(
    logger: logging.Logger, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """把事件中所有字符串值里的 Bot Token 替换为掩码"""
    for key, value in event_dict.items():
        if isinstance(value, str):
            event_dict[key] = _mask(value)
    return event_dict


def setup_logging() -> None:
    """初始化 structlog 配置

    根据 DOMA_LOG_FORMAT 环境变量选择渲染模式：
    - "json": 结构化 JSON 输出（生产环境）
    - "dev" (默认): pretty print 可读输出

    DOMA_LOG_LEVEL 控制根 logger 级别（默认 INFO）。
    """
    log_format = os.environ.get("DOMA_LOG_FORMAT", "dev")
    log_level = os.environ.get("DOMA_LOG_LEVEL", "INFO")

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer(ensure_ascii=False)
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # 第三方库（httpx）的日志经 foreign_pre_chain 进入，同样在渲染前脱敏
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            redact_bot_token,
            renderer,
        ],
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

"""structlog 配置

CLI 批处理与 gateway 共用同一套日志管道：
structlog 事件与标准库 logging（uvicorn、aiosqlite 等）统一渲染。
"""

import logging
import os

import structlog

# 第三方库噪声日志，默认只保留 WARNING 以上
_NOISY_LOGGERS = ("aiosqlite", "asyncio")


def setup_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """初始化 structlog 配置

    Args:
        log_format: "json" 输出结构化 JSON；"dev" 输出可读文本。
            缺省读取 TASKCADENCE_LOG_FORMAT，默认 "dev"
        log_level: 日志级别，缺省读取 TASKCADENCE_LOG_LEVEL，默认 "INFO"
    """
    log_format = log_format or os.environ.get("TASKCADENCE_LOG_FORMAT", "dev")
    log_level = log_level or os.environ.get("TASKCADENCE_LOG_LEVEL", "INFO")

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer(
            ensure_ascii=False
        )
        # JSON 模式下异常栈需转成字符串字段
        shared_processors.append(structlog.processors.format_exc_info)
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

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store 与引擎配置

实例通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from fastapi import Request
from taskcadence.core.config import EngineConfig
from taskcadence.core.store import StoreGroup

from .services.recurrence_service import RecurrenceService


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_engine_config(request: Request) -> EngineConfig:
    """从 app.state 获取引擎配置，未初始化时使用默认值"""
    return getattr(request.app.state, "engine_config", None) or EngineConfig()


def get_recurrence_service(request: Request) -> RecurrenceService:
    return RecurrenceService(get_store_group(request), get_engine_config(request))

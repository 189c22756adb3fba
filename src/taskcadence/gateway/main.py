"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭 + 引擎配置加载 + 路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from taskcadence.core.config import get_db_path, load_engine_config
from taskcadence.core.logging_config import setup_logging
from taskcadence.core.store import create_store_group

from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import health, recurrences

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 DB，关闭时清理连接"""
    db_path = get_db_path()
    store_group = await create_store_group(db_path)
    app.state.store_group = store_group

    engine_config = load_engine_config()
    app.state.engine_config = engine_config
    await log.ainfo(
        "gateway_started",
        db_path=db_path,
        catch_up=engine_config.catch_up,
        max_occurrences_per_rule=engine_config.max_occurrences_per_rule,
    )

    yield

    if hasattr(app.state, "store_group") and app.state.store_group:
        await app.state.store_group.conn.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="TaskCadence Gateway",
        version="0.1.0",
        description="重复任务规则管理与批处理触发 API",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging，Logging 位于最外层）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    setup_logging()

    app.include_router(recurrences.router, tags=["recurrences"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()

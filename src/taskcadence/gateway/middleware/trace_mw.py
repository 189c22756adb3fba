"""TraceMiddleware -- 为单条规则操作绑定 rule_id

从 /api/recurrences/{rule_id} 路径中提取 rule_id，
使该请求内的所有日志（含批处理之外的规则编辑）可按规则检索。
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

_PREFIX = "/api/recurrences/"

# 同前缀下的静态路由，不是 rule_id
_STATIC_SEGMENTS = frozenset({"process", "patterns", "statistics", "upcoming"})


def extract_rule_id(path: str) -> str | None:
    """从请求路径提取 rule_id，非规则路径返回 None"""
    if not path.startswith(_PREFIX):
        return None
    segment = path[len(_PREFIX):].split("/", 1)[0]
    if not segment or segment in _STATIC_SEGMENTS:
        return None
    return segment


class TraceMiddleware(BaseHTTPMiddleware):
    """规则级追踪中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rule_id = extract_rule_id(request.url.path)
        if rule_id:
            structlog.contextvars.bind_contextvars(rule_id=rule_id)

        return await call_next(request)

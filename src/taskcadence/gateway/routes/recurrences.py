"""重复规则路由

POST   /api/recurrences/process: 管理端触发一次批处理，返回 BatchResult。
GET    /api/recurrences: 某用户的规则列表。
POST   /api/recurrences: 为模板任务创建规则。
GET    /api/recurrences/patterns: 频率目录与日期选项。
GET    /api/recurrences/statistics: 规则统计。
GET    /api/recurrences/upcoming: 各活跃规则的下一次截止日期。
GET    /api/recurrences/{rule_id}: 规则详情（含健康状态与预览）。
PATCH  /api/recurrences/{rule_id}: 部分更新规则。
DELETE /api/recurrences/{rule_id}: 删除规则，已生成任务保留。

错误响应统一为 {"error": {"code", "message"}}：
- 422: 规则配置非法
- 404: 规则或模板任务不存在
- 409: 规则被并发修改
"""

from datetime import date

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from starlette.responses import JSONResponse
from taskcadence.core.exceptions import (
    InvalidRuleConfiguration,
    PersistenceConflict,
    TemplateUnavailable,
)
from taskcadence.core.models import RecurrenceRule

from ..deps import get_recurrence_service
from ..services.recurrence_service import RecurrenceService

router = APIRouter(prefix="/api/recurrences")


class CreateRuleRequest(BaseModel):
    """规则创建请求体"""

    owner_id: str = Field(description="规则所属用户 ID")
    template_task_id: str = Field(description="模板任务 ID")
    frequency: str = Field(description="daily / weekly / monthly / yearly")
    interval: int = Field(default=1, description="间隔单位数")
    days_of_week: list[int] = Field(default_factory=list, description="1=周一..7=周日")
    days_of_month: list[int] = Field(default_factory=list, description="1..31")
    end_date: date | None = Field(default=None, description="结束日期（不含）")
    start_date: date | None = Field(default=None, description="起始参考日期，默认今天")
    skip_weekends: bool = Field(default=False, description="是否启用周末调整")


class UpdateRuleRequest(BaseModel):
    """规则更新请求体，未提供的字段保持不变"""

    frequency: str | None = None
    interval: int | None = None
    days_of_week: list[int] | None = None
    days_of_month: list[int] | None = None
    end_date: date | None = None
    skip_weekends: bool | None = None


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
    )


def _rule_not_found(rule_id: str) -> JSONResponse:
    return _error(404, "RULE_NOT_FOUND", f"Recurrence rule {rule_id} does not exist")


def serialize_rule(rule: RecurrenceRule) -> dict:
    """规则 -> JSON 可序列化字典（日期集合输出为有序列表）"""
    return {
        "rule_id": rule.rule_id,
        "owner_id": rule.owner_id,
        "template_task_id": rule.template_task_id,
        "frequency": rule.frequency.value,
        "interval": rule.interval,
        "days_of_week": sorted(rule.days_of_week),
        "days_of_month": sorted(rule.days_of_month),
        "end_date": rule.end_date.isoformat() if rule.end_date else None,
        "anchor_date": rule.anchor_date.isoformat(),
        "last_generated": rule.last_generated.isoformat(),
        "generated_count": rule.generated_count,
        "skip_weekends": rule.skip_weekends,
        "state": rule.state.value,
        "version": rule.version,
        "created_at": rule.created_at.isoformat(),
        "updated_at": rule.updated_at.isoformat(),
    }


@router.post("/process")
async def process_due(
    as_of: date | None = Query(default=None, description="截止日期，默认今天"),
    service: RecurrenceService = Depends(get_recurrence_service),
):
    """生成截至 as_of（含）到期的所有重复任务"""
    result = await service.process_due(as_of)
    return result.model_dump(mode="json")


@router.get("")
async def list_rules(
    owner_id: str = Query(description="规则所属用户 ID"),
    service: RecurrenceService = Depends(get_recurrence_service),
):
    """查询用户的规则列表，按 created_at 倒序"""
    rules = await service.list_rules(owner_id)
    return {"rules": [serialize_rule(rule) for rule in rules]}


@router.post("")
async def create_rule(
    body: CreateRuleRequest,
    service: RecurrenceService = Depends(get_recurrence_service),
):
    """创建重复规则

    - 201: 创建成功
    - 404: 模板任务不存在
    - 422: 配置非法
    """
    try:
        rule = await service.create_rule(
            owner_id=body.owner_id,
            template_task_id=body.template_task_id,
            frequency=body.frequency,
            interval=body.interval,
            end_date=body.end_date,
            days_of_week=body.days_of_week,
            days_of_month=body.days_of_month,
            start_date=body.start_date,
            skip_weekends=body.skip_weekends,
        )
    except InvalidRuleConfiguration as e:
        return _error(422, "INVALID_RULE_CONFIGURATION", str(e))
    except TemplateUnavailable:
        return _error(
            404,
            "TEMPLATE_NOT_FOUND",
            f"Template task {body.template_task_id} does not exist",
        )

    return JSONResponse(status_code=201, content=serialize_rule(rule))


@router.get("/patterns")
async def get_patterns(
    service: RecurrenceService = Depends(get_recurrence_service),
):
    """频率目录 + 星期/月内日期选项（供规则表单使用）"""
    return {
        "patterns": {
            frequency.value: info for frequency, info in service.get_patterns().items()
        },
        "days_of_week": service.get_days_of_week_options(),
        "days_of_month": service.get_days_of_month_options(),
    }


@router.get("/statistics")
async def get_statistics(
    owner_id: str = Query(description="规则所属用户 ID"),
    service: RecurrenceService = Depends(get_recurrence_service),
):
    stats = await service.get_statistics(owner_id)
    return stats.model_dump(mode="json")


@router.get("/upcoming")
async def get_upcoming(
    owner_id: str = Query(description="规则所属用户 ID"),
    limit: int | None = Query(default=None, ge=1, le=100, description="返回条数"),
    service: RecurrenceService = Depends(get_recurrence_service),
):
    upcoming = await service.get_upcoming(owner_id, limit)
    return {"upcoming": [item.model_dump(mode="json") for item in upcoming]}


@router.get("/{rule_id}")
async def get_rule(
    rule_id: str,
    service: RecurrenceService = Depends(get_recurrence_service),
):
    """规则详情，附带健康状态与接下来的截止日期预览"""
    rule = await service.get_rule(rule_id)
    if rule is None:
        return _rule_not_found(rule_id)

    health = await service.get_health(rule)
    return {
        "rule": serialize_rule(rule),
        "health": health.value,
        "next_due_dates": [d.isoformat() for d in service.preview(rule)],
    }


@router.patch("/{rule_id}")
async def update_rule(
    rule_id: str,
    body: UpdateRuleRequest,
    service: RecurrenceService = Depends(get_recurrence_service),
):
    """部分更新规则；end_date 显式传 null 表示清除"""
    changes = body.model_dump(exclude_unset=True)
    try:
        rule = await service.update_rule(rule_id, **changes)
    except InvalidRuleConfiguration as e:
        return _error(422, "INVALID_RULE_CONFIGURATION", str(e))
    except PersistenceConflict:
        return _error(
            409,
            "RULE_CONFLICT",
            f"Recurrence rule {rule_id} was modified concurrently",
        )

    if rule is None:
        return _rule_not_found(rule_id)
    return serialize_rule(rule)


@router.delete("/{rule_id}")
async def delete_rule(
    rule_id: str,
    service: RecurrenceService = Depends(get_recurrence_service),
):
    deleted = await service.delete_rule(rule_id)
    if not deleted:
        return _rule_not_found(rule_id)
    return {"rule_id": rule_id, "deleted": True}

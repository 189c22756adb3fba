"""RecurrenceRule Domain Model

每条规则持有自己的生成游标 last_generated，规则之间互不影响。
days_of_week / days_of_month 在内存中为有界整数集合，落库为有序 JSON 数组。
"""

from collections.abc import Iterable
from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from ..config import MAX_INTERVAL
from ..exceptions import InvalidRuleConfiguration
from .enums import Frequency, RuleState

WEEKDAY_RANGE = range(1, 8)
MONTH_DAY_RANGE = range(1, 32)


class RecurrenceRule(BaseModel):
    """重复规则数据模型

    last_generated 为原始（未经周末调整）occurrence 日期，单调不减。
    version 为乐观锁计数，每次写入递增。
    """

    rule_id: str = Field(description="唯一标识，ULID 格式")
    owner_id: str = Field(description="规则所属用户 ID")
    template_task_id: str = Field(description="模板任务 ID")
    frequency: Frequency = Field(description="重复频率")
    interval: int = Field(default=1, ge=1, le=MAX_INTERVAL, description="间隔单位数")
    days_of_week: frozenset[int] = Field(
        default_factory=frozenset,
        description="ISO 星期序号集合（1=周一..7=周日），仅 weekly 有效",
    )
    days_of_month: frozenset[int] = Field(
        default_factory=frozenset,
        description="月内日期集合（1..31），仅 monthly 有效",
    )
    end_date: date | None = Field(default=None, description="结束日期（不含）")
    anchor_date: date = Field(description="规则创建时的参考日期")
    last_generated: date = Field(description="生成游标")
    generated_count: int = Field(default=0, ge=0, description="游标推进次数")
    skip_weekends: bool = Field(default=False, description="是否启用周末调整")
    state: RuleState = Field(default=RuleState.ACTIVE, description="规则状态")
    version: int = Field(default=1, ge=1, description="乐观锁版本号")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")

    @field_validator("days_of_week")
    @classmethod
    def _check_days_of_week(cls, value: frozenset[int]) -> frozenset[int]:
        invalid = sorted(d for d in value if d not in WEEKDAY_RANGE)
        if invalid:
            raise ValueError(f"days_of_week 超出 1..7: {invalid}")
        return value

    @field_validator("days_of_month")
    @classmethod
    def _check_days_of_month(cls, value: frozenset[int]) -> frozenset[int]:
        invalid = sorted(d for d in value if d not in MONTH_DAY_RANGE)
        if invalid:
            raise ValueError(f"days_of_month 超出 1..31: {invalid}")
        return value

    @property
    def is_dormant(self) -> bool:
        return self.state == RuleState.DORMANT


def _coerce_days(
    values: Iterable[int] | None,
    allowed: range,
    field: str,
) -> frozenset[int]:
    if values is None:
        return frozenset()
    days: set[int] = set()
    for value in values:
        # bool 是 int 子类，显式排除
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidRuleConfiguration(f"{field} 只能包含整数: {value!r}", field=field)
        if value not in allowed:
            raise InvalidRuleConfiguration(
                f"{field} 取值 {value} 超出 {allowed.start}..{allowed.stop - 1}",
                field=field,
            )
        days.add(value)
    return frozenset(days)


def validate_rule_config(
    frequency: Frequency | str,
    interval: int,
    days_of_week: Iterable[int] | None = None,
    days_of_month: Iterable[int] | None = None,
) -> tuple[Frequency, frozenset[int], frozenset[int]]:
    """在边界处校验规则配置

    Args:
        frequency: 频率（枚举或字符串）
        interval: 间隔
        days_of_week: 星期序号集合
        days_of_month: 月内日期集合

    Returns:
        (frequency, days_of_week, days_of_month) 规范化后的元组

    Raises:
        InvalidRuleConfiguration: 任一字段非法
    """
    try:
        freq = Frequency(frequency)
    except ValueError as e:
        raise InvalidRuleConfiguration(
            f"未知的重复频率: {frequency!r}", field="frequency"
        ) from e

    if isinstance(interval, bool) or not isinstance(interval, int):
        raise InvalidRuleConfiguration(f"interval 必须为整数: {interval!r}", field="interval")
    if interval < 1 or interval > MAX_INTERVAL:
        raise InvalidRuleConfiguration(
            f"interval 必须在 1..{MAX_INTERVAL} 之间: {interval}",
            field="interval",
        )

    weekdays = _coerce_days(days_of_week, WEEKDAY_RANGE, "days_of_week")
    month_days = _coerce_days(days_of_month, MONTH_DAY_RANGE, "days_of_month")
    return freq, weekdays, month_days

"""Occurrence 日期计算

纯函数：给定规则和参考日期，计算下一个候选 occurrence 日期。
仅做日历日期运算，不涉及时区。返回值严格大于参考日期。

- daily:   参考日期 + interval 天
- weekly:  从参考日期次日起逐日扫描，星期命中且所在周距 anchor 周为 interval 的整数倍
- monthly: 参考月内严格晚于参考日的最小选定日；否则 interval 个月后的最小选定日
- yearly:  参考年 + interval，月日取自 anchor（2 月 29 日在平年落到 28 日）
"""

import calendar
from datetime import date, timedelta

from .exceptions import InvalidRuleConfiguration
from .models.enums import Frequency
from .models.rule import RecurrenceRule
from .weekend import skip_weekend


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> date:
    """构造日期，day 超出当月天数时落到月末"""
    return date(year, month, min(day, last_day_of_month(year, month)))


def add_months(d: date, n: int) -> date:
    """月份加法，day 超出目标月天数时落到月末"""
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    return clamp_day(year, month, d.day)


def _next_daily(rule: RecurrenceRule, reference_date: date) -> date:
    return reference_date + timedelta(days=rule.interval)


def _next_weekly(rule: RecurrenceRule, reference_date: date) -> date:
    weekdays = rule.days_of_week or frozenset({reference_date.isoweekday()})
    anchor_monday = rule.anchor_date - timedelta(days=rule.anchor_date.weekday())

    candidate = reference_date + timedelta(days=1)
    # weekdays 非空，最多 interval + 1 周内必然命中
    while True:
        week_index = (candidate - anchor_monday).days // 7
        if candidate.isoweekday() in weekdays and week_index % rule.interval == 0:
            return candidate
        candidate += timedelta(days=1)


def _next_monthly(rule: RecurrenceRule, reference_date: date) -> date:
    month_days = sorted(rule.days_of_month) or [rule.anchor_date.day]

    # 参考月内是否还有未到的选定日
    for day in month_days:
        candidate = clamp_day(reference_date.year, reference_date.month, day)
        if candidate > reference_date:
            return candidate

    target = add_months(reference_date.replace(day=1), rule.interval)
    return clamp_day(target.year, target.month, month_days[0])


def _next_yearly(rule: RecurrenceRule, reference_date: date) -> date:
    year = reference_date.year + rule.interval
    return clamp_day(year, rule.anchor_date.month, rule.anchor_date.day)


_CALCULATORS = {
    Frequency.DAILY: _next_daily,
    Frequency.WEEKLY: _next_weekly,
    Frequency.MONTHLY: _next_monthly,
    Frequency.YEARLY: _next_yearly,
}


def next_candidate(rule: RecurrenceRule, reference_date: date) -> date:
    """计算下一个候选 occurrence 日期

    Args:
        rule: 重复规则
        reference_date: 参考日期（通常为 rule.last_generated）

    Returns:
        严格晚于 reference_date 的候选日期（未经周末调整）
    """
    return _CALCULATORS[rule.frequency](rule, reference_date)


def due_date_for(rule: RecurrenceRule, occurrence: date) -> date:
    """将原始 occurrence 转换为任务截止日期（按规则决定是否做周末调整）"""
    return skip_weekend(occurrence) if rule.skip_weekends else occurrence


def ensure_schedulable(rule: RecurrenceRule, field: str | None = None) -> None:
    """确认规则的下一个 occurrence 落在可表示的日期范围内（不晚于 9999-12-31）

    Raises:
        InvalidRuleConfiguration: 下一个 occurrence 超出日期范围
    """
    try:
        due_date_for(rule, next_candidate(rule, rule.last_generated))
    except (ValueError, OverflowError) as e:
        raise InvalidRuleConfiguration(
            f"下一个 occurrence 超出可表示的日期范围: {e}", field=field
        ) from e


def upcoming_occurrences(rule: RecurrenceRule, limit: int) -> list[date]:
    """从当前游标起预览接下来的 limit 个截止日期

    遵守周末调整与 end_date；休眠规则返回空列表。
    周末调整后与上一个截止日期重合的 occurrence 被合并。
    到达日期上限（9999-12-31）时提前结束。
    """
    if rule.is_dormant or limit <= 0:
        return []

    dates: list[date] = []
    cursor = rule.last_generated
    previous_due = due_date_for(rule, cursor) if rule.generated_count > 0 else None
    while len(dates) < limit:
        try:
            cursor = next_candidate(rule, cursor)
            due = due_date_for(rule, cursor)
        except (ValueError, OverflowError):
            break
        if rule.end_date is not None and due >= rule.end_date:
            break
        if previous_due is not None and due <= previous_due:
            continue
        dates.append(due)
        previous_due = due
    return dates

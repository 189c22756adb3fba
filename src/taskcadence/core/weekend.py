"""周末调整策略

周六提前到周五，周日顺延到周一，工作日不变。
纯函数、全定义、幂等且单调不减。
"""

from datetime import date, timedelta

_SATURDAY = 6
_SUNDAY = 7


def skip_weekend(d: date) -> date:
    """将落在周末的日期调整到最近的工作日"""
    weekday = d.isoweekday()
    if weekday == _SATURDAY:
        return d - timedelta(days=1)
    if weekday == _SUNDAY:
        return d + timedelta(days=1)
    return d

"""重复规则读侧查询

统计、upcoming 预览与规则健康状态，均为只读操作。
"""

from collections import Counter

from .models.batch import RecurrenceStatistics, UpcomingOccurrence
from .models.enums import RuleHealth
from .models.rule import RecurrenceRule
from .occurrence import upcoming_occurrences
from .store.protocols import RuleStore, TaskStore


async def get_statistics(rule_store: RuleStore, owner_id: str) -> RecurrenceStatistics:
    """统计某用户的规则总数、活跃/休眠数与按频率分布"""
    rules = await rule_store.list_rules_for_owner(owner_id)
    dormant = sum(1 for rule in rules if rule.is_dormant)
    by_frequency = Counter(rule.frequency for rule in rules)
    return RecurrenceStatistics(
        total=len(rules),
        active=len(rules) - dormant,
        dormant=dormant,
        by_frequency=dict(by_frequency),
    )


async def get_upcoming(
    rule_store: RuleStore,
    owner_id: str,
    limit: int = 5,
) -> list[UpcomingOccurrence]:
    """某用户各活跃规则的下一次截止日期，按日期正序取前 limit 条"""
    rules = await rule_store.list_rules_for_owner(owner_id)
    upcoming: list[UpcomingOccurrence] = []
    for rule in rules:
        dates = upcoming_occurrences(rule, 1)
        if not dates:
            continue
        upcoming.append(
            UpcomingOccurrence(
                rule_id=rule.rule_id,
                template_task_id=rule.template_task_id,
                frequency=rule.frequency,
                due_date=dates[0],
            )
        )
    upcoming.sort(key=lambda item: (item.due_date, item.rule_id))
    return upcoming[:limit]


async def describe_health(task_store: TaskStore, rule: RecurrenceRule) -> RuleHealth:
    """规则对用户可见的健康状态

    - ENDED: 已到达 end_date（"recurrence ended"）
    - BROKEN: 模板任务已删除（"recurrence broken - template missing"）
    """
    if rule.is_dormant:
        return RuleHealth.ENDED
    template = await task_store.get_task(rule.template_task_id)
    if template is None:
        return RuleHealth.BROKEN
    return RuleHealth.ACTIVE

"""枚举定义

包含 Frequency、RuleState 状态机、RuleHealth、TaskStatus、TaskPriority，
以及 VALID_RULE_TRANSITIONS 合法流转映射。
"""

from enum import StrEnum


class Frequency(StrEnum):
    """重复频率"""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class RuleState(StrEnum):
    """重复规则状态机

    ACTIVE -> DORMANT（到达 end_date）。用户编辑不改变状态；删除是移除而非状态。
    """

    ACTIVE = "ACTIVE"
    DORMANT = "DORMANT"


VALID_RULE_TRANSITIONS: dict[RuleState, set[RuleState]] = {
    RuleState.ACTIVE: {RuleState.DORMANT},
    # 休眠规则仅保留用于历史/统计
    RuleState.DORMANT: set(),
}


class RuleHealth(StrEnum):
    """规则对用户可见的健康状态"""

    ACTIVE = "active"
    # 已到达 end_date: "recurrence ended"
    ENDED = "ended"
    # 模板任务缺失: "recurrence broken - template missing"
    BROKEN = "broken"


class TaskStatus(StrEnum):
    """任务状态"""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskPriority(StrEnum):
    """任务优先级"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


def validate_rule_transition(from_state: RuleState, to_state: RuleState) -> bool:
    """验证规则状态流转是否合法

    Args:
        from_state: 当前状态
        to_state: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    allowed = VALID_RULE_TRANSITIONS.get(from_state, set())
    return to_state in allowed

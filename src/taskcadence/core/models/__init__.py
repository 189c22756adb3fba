"""taskcadence Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .batch import BatchResult, RecurrenceStatistics, UpcomingOccurrence
from .enums import (
    VALID_RULE_TRANSITIONS,
    Frequency,
    RuleHealth,
    RuleState,
    TaskPriority,
    TaskStatus,
    validate_rule_transition,
)
from .rule import RecurrenceRule, validate_rule_config
from .task import Task

__all__ = [
    # 枚举
    "Frequency",
    "RuleState",
    "RuleHealth",
    "TaskStatus",
    "TaskPriority",
    # 状态机
    "VALID_RULE_TRANSITIONS",
    "validate_rule_transition",
    # Rule
    "RecurrenceRule",
    "validate_rule_config",
    # Task
    "Task",
    # 结果
    "BatchResult",
    "RecurrenceStatistics",
    "UpcomingOccurrence",
]

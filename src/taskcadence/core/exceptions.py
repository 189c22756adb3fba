"""重复任务引擎异常体系

RecurrenceError 为基础异常，recoverable 标记是否可通过重试恢复。
"""


class RecurrenceError(Exception):
    """重复任务引擎基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 是否可通过重试恢复
        """
        super().__init__(message)
        self.recoverable = recoverable


class InvalidRuleConfiguration(RecurrenceError):
    """规则配置非法（interval 越界、日期集合越界等）

    在规则创建/更新时抛出，非法规则不会进入批处理。
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message, recoverable=False)
        self.field = field


class TemplateUnavailable(RecurrenceError):
    """模板任务已不存在

    批处理中作为单条规则的失败上报，游标保持不变，下次运行重试。
    """

    def __init__(self, rule_id: str | None, template_task_id: str) -> None:
        super().__init__(
            f"模板任务不存在: {template_task_id} (rule={rule_id})",
            recoverable=True,
        )
        self.rule_id = rule_id
        self.template_task_id = template_task_id


class PersistenceConflict(RecurrenceError):
    """规则游标被并发修改（version 不匹配）

    处理器内部重试该规则，不作为批处理失败返回给调用方。
    """

    def __init__(self, rule_id: str, message: str | None = None) -> None:
        super().__init__(
            message or f"规则游标并发冲突: {rule_id}",
            recoverable=True,
        )
        self.rule_id = rule_id

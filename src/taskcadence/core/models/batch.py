"""批处理结果与查询结果模型"""

from datetime import date

from pydantic import BaseModel, Field

from .enums import Frequency


class BatchResult(BaseModel):
    """process_due_recurrences 的返回值"""

    generated: int = Field(default=0, description="本次生成的任务数")
    skipped: int = Field(default=0, description="尚未到期而跳过的规则数")
    failed: list[str] = Field(default_factory=list, description="失败的规则 ID")
    dormant: list[str] = Field(default_factory=list, description="本次进入休眠的规则 ID")
    task_ids: list[str] = Field(default_factory=list, description="本次生成的任务 ID")


class RecurrenceStatistics(BaseModel):
    """用户重复规则统计"""

    total: int = 0
    active: int = 0
    dormant: int = 0
    by_frequency: dict[Frequency, int] = Field(default_factory=dict)


class UpcomingOccurrence(BaseModel):
    """某条规则的下一次 occurrence"""

    rule_id: str
    template_task_id: str
    frequency: Frequency
    due_date: date

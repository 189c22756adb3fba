"""Task Domain Model

模板任务与生成的任务实例共用同一模型。
生成实例通过 source_rule_id 记录来源，仅作溯源，不参与正确性判断。
"""

from datetime import date, datetime

from pydantic import BaseModel, Field

from .enums import TaskPriority, TaskStatus


class Task(BaseModel):
    """Task 数据模型"""

    task_id: str = Field(description="唯一标识，ULID 格式")
    owner_id: str = Field(description="所属用户 ID")
    title: str = Field(description="任务标题")
    description: str = Field(default="", description="任务描述")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="优先级")
    category: str | None = Field(default=None, description="分类")
    assignee_id: str | None = Field(default=None, description="执行人 ID")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="当前状态")
    progress: int = Field(default=0, ge=0, le=100, description="进度百分比")
    completed_at: datetime | None = Field(default=None, description="完成时间")
    due_date: date | None = Field(default=None, description="截止日期")
    source_rule_id: str | None = Field(default=None, description="生成该任务的规则 ID")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")

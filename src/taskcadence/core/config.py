"""配置模块 -- 可通过环境变量覆盖

包含数据库路径以及批处理引擎（EngineConfig）的可调参数。
"""

import os
from pathlib import Path

import structlog
from pydantic import BaseModel, Field

log = structlog.get_logger()


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("TASKCADENCE_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "TASKCADENCE_DB_PATH",
        str(_get_base_dir() / "sqlite" / "taskcadence.db"),
    )


# 规则间隔上限（沿用规则表单的取值范围）
MAX_INTERVAL: int = 365

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class EngineConfig(BaseModel):
    """批处理引擎配置

    环境变量:
        TASKCADENCE_CATCH_UP: 是否在一次运行中补齐所有逾期的 occurrence
        TASKCADENCE_MAX_OCCURRENCES_PER_RULE: 单条规则单次运行最多生成数
        TASKCADENCE_MAX_CONFLICT_RETRIES: 游标并发冲突时的重试次数
        TASKCADENCE_UPCOMING_LIMIT: upcoming 查询的默认条数
    """

    catch_up: bool = Field(
        default=True,
        description="True: 补齐逾期 occurrence；False: 每条规则每次运行最多一个",
    )
    max_occurrences_per_rule: int = Field(
        default=366,
        ge=1,
        description="补齐模式下单条规则单次运行的生成上限",
    )
    max_conflict_retries: int = Field(
        default=3,
        ge=0,
        description="PersistenceConflict 重试次数",
    )
    upcoming_limit: int = Field(
        default=5,
        ge=1,
        description="upcoming 查询默认返回条数",
    )

    @property
    def occurrences_per_run(self) -> int:
        """单条规则单次运行实际允许的生成数"""
        return self.max_occurrences_per_rule if self.catch_up else 1


def _read_int(
    env_var: str,
    kwargs: dict,
    key: str,
    fallback: int,
    minimum: int,
) -> None:
    if val := os.environ.get(env_var):
        try:
            parsed = int(val)
        except ValueError:
            parsed = None
        if parsed is not None and parsed >= minimum:
            kwargs[key] = parsed
        else:
            log.warning(
                "invalid_engine_config",
                env_var=env_var,
                value=val,
                fallback=fallback,
            )


def load_engine_config() -> EngineConfig:
    """从环境变量加载引擎配置

    非法取值记录 warning 并使用默认值，不阻塞启动。
    """
    kwargs: dict = {}

    if val := os.environ.get("TASKCADENCE_CATCH_UP"):
        normalized = val.strip().lower()
        if normalized in _TRUE_VALUES:
            kwargs["catch_up"] = True
        elif normalized in _FALSE_VALUES:
            kwargs["catch_up"] = False
        else:
            log.warning(
                "invalid_engine_config",
                env_var="TASKCADENCE_CATCH_UP",
                value=val,
                fallback=True,
            )

    _read_int(
        "TASKCADENCE_MAX_OCCURRENCES_PER_RULE", kwargs, "max_occurrences_per_rule", 366, 1
    )
    _read_int("TASKCADENCE_MAX_CONFLICT_RETRIES", kwargs, "max_conflict_retries", 3, 0)
    _read_int("TASKCADENCE_UPCOMING_LIMIT", kwargs, "upcoming_limit", 5, 1)

    return EngineConfig(**kwargs)

"""CLI 入口模块 -- python -m taskcadence.core <command>

支持的命令：
  process-due [--as-of YYYY-MM-DD]  生成截至指定日期到期的重复任务
  stats <owner_id>                  输出某用户的重复规则统计
"""

import asyncio
import sys
from datetime import date

from .config import get_db_path, load_engine_config
from .logging_config import setup_logging

_USAGE = """用法: python -m taskcadence.core <command>
命令:
  process-due [--as-of YYYY-MM-DD]  生成截至指定日期到期的重复任务
  stats <owner_id>                  输出某用户的重复规则统计"""


def parse_as_of(args: list[str]) -> date | None:
    """解析 --as-of 参数，缺省返回 None（即今天）

    Raises:
        ValueError: 参数缺失或日期格式非法
    """
    if "--as-of" not in args:
        return None
    idx = args.index("--as-of")
    if idx + 1 >= len(args):
        raise ValueError("--as-of 需要一个日期参数")
    return date.fromisoformat(args[idx + 1])


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print(_USAGE)
        sys.exit(1)

    command = sys.argv[1]
    args = sys.argv[2:]
    setup_logging()

    if command == "process-due":
        try:
            as_of = parse_as_of(args)
        except ValueError as e:
            print(f"参数错误: {e}")
            sys.exit(1)
        asyncio.run(process_due(as_of))
    elif command == "stats":
        if not args:
            print("用法: python -m taskcadence.core stats <owner_id>")
            sys.exit(1)
        asyncio.run(print_statistics(args[0]))
    else:
        print(f"未知命令: {command}")
        print("可用命令: process-due, stats")
        sys.exit(1)


async def process_due(as_of: date | None) -> None:
    """执行一次批处理"""
    from .processor import RecurrenceProcessor
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path)
    try:
        processor = RecurrenceProcessor(store_group, load_engine_config())
        result = await processor.process_due_recurrences(as_of)
        print(
            f"生成 {result.generated} 个任务，跳过 {result.skipped} 条规则，"
            f"失败 {len(result.failed)} 条，休眠 {len(result.dormant)} 条"
        )
        for rule_id in result.failed:
            print(f"  失败规则: {rule_id}")
    finally:
        await store_group.conn.close()


async def print_statistics(owner_id: str) -> None:
    """输出用户规则统计"""
    from .queries import get_statistics
    from .store import create_store_group

    store_group = await create_store_group(get_db_path())
    try:
        stats = await get_statistics(store_group.rule_store, owner_id)
        print(f"总数: {stats.total}  活跃: {stats.active}  休眠: {stats.dormant}")
        for frequency, count in sorted(stats.by_frequency.items()):
            print(f"  {frequency}: {count}")
    finally:
        await store_group.conn.close()


if __name__ == "__main__":
    main()

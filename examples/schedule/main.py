#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Schedule 使用示例

演示如何使用 YAML 配置文件创建调度器，以及 wait_for 的用法
"""

import asyncio
import logging
import sys
from pathlib import Path

# 添加项目路径
ROOT_DIR = Path(__file__).parent.parent.parent
sys.path.insert(0, str(ROOT_DIR / "src"))

from cadence.logs import install_logs
from cadence.time import (
    Scheduler,
    is_schedule_timeout_error,
    load_config_from_file,
    schedule,
    wait_for,
)

logger = logging.getLogger(__name__)

CONFIG_FILE = Path(__file__).parent / "config.yaml"


# ======================== 示例任务 ========================


class FakeJob:
    """模拟一个需要轮询状态的后台任务"""

    def __init__(self, ready_after: int = 3):
        self.ready_after = ready_after
        self.polls = 0

    async def status(self) -> dict:
        self.polls += 1
        status = "completed" if self.polls > self.ready_after else "pending"
        logger.info(f"poll #{self.polls}: status={status}")
        return {"status": status}


def heartbeat() -> None:
    logger.info("heartbeat")


# ======================== 示例 ========================


async def example_poll_until_completed(config) -> None:
    """按配置轮询，直到任务完成"""
    job = FakeJob()
    options = config.get_schedule("poll_status").to_options()

    run = schedule(
        job.status,
        delay=options.delay,
        repeat=lambda value, _: value is None or value["status"] != "completed",
        timeout=options.timeout,
    )
    result = await run()
    logger.info(f"任务完成: {result}, polls={job.polls}")


async def example_heartbeat_until_timeout(config) -> None:
    """无限重复的心跳，由 timeout 终止"""
    run = Scheduler.from_config(heartbeat, config.get_schedule("heartbeat"))
    try:
        await run()
    except Exception as e:
        if not is_schedule_timeout_error(e):
            raise
        logger.info(f"心跳结束: {e}")


async def example_wait_for() -> None:
    """等待一个标志位被置位"""
    flag = {"ready": False}
    asyncio.get_running_loop().call_later(0.3, flag.__setitem__, "ready", True)

    await wait_for(lambda _: flag["ready"], delay=0.05, timeout=1.0)
    logger.info("标志位已就绪")


async def main() -> None:
    config = load_config_from_file(str(CONFIG_FILE))
    install_logs(config.get_log_config())

    await example_poll_until_completed(config)
    await example_heartbeat_until_timeout(config)
    await example_wait_for()


if __name__ == "__main__":
    asyncio.run(main())

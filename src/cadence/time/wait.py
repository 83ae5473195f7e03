"""
条件等待模块

wait_for 完全由 schedule 组合而成：执行空操作，repeat 为 is_complete 的取反。
等待、超时和定时器清理全部复用调度器的实现。

使用示例：
    # 每 0.1 秒检查一次，最多等待 5 秒
    await wait_for(lambda _: server.is_ready(), delay=0.1, timeout=5.0)

    # 线性增长的检查间隔
    await wait_for(check_ready, delay=lambda i: (i + 1) * 0.1)
"""

import inspect
from typing import Any, Awaitable, Callable, Optional, Union

from cadence.time.scheduler import schedule
from cadence.time.types import ComputedDelay, ConstantDelay, Predicate, ScheduleOptions

CompleteFunc = Callable[[int], Union[bool, Awaitable[bool]]]


def _noop() -> None:
    return None


def _negate(is_complete: CompleteFunc) -> Predicate:
    async def should_repeat(_value: Any, iteration: int) -> bool:
        done = is_complete(iteration)
        if inspect.isawaitable(done):
            done = await done
        return not done

    return Predicate(should_repeat)


def _poll_delay(delay: Union[float, Callable[[int], float]]):
    if callable(delay):
        return ComputedDelay(lambda _value, iteration: delay(iteration))
    return ConstantDelay(float(delay))


async def wait_for(
    is_complete: CompleteFunc,
    delay: Union[float, Callable[[int], float]],
    timeout: Optional[float] = None,
) -> None:
    """
    等待条件满足

    先立即检查一次 is_complete(0)，未满足则等待 delay 后以下一个迭代序号再次检查。

    Args:
        is_complete: 条件函数 (iteration) -> bool，可为异步函数
        delay: 检查间隔（秒），或函数 (iteration) -> 秒
        timeout: 总超时时间（秒），None 或 0 表示不超时

    Raises:
        ScheduleTimeoutError: 等待超时
        Exception: is_complete 抛出的异常
    """
    options = ScheduleOptions(
        delay=_poll_delay(delay),
        repeat=_negate(is_complete),
        timeout=timeout,
    )
    await schedule(_noop, options)()

"""
调度器模块

把一个同步或异步函数包装成可重复执行的异步调用：

- 按 repeat 策略决定是否继续下一次迭代（无/固定次数/无限/条件函数）
- 按 delay 策略计算每次迭代前的等待时间（固定/按迭代计算）
- 可选的总超时（Timeout Guard），覆盖整个迭代链而不是单次迭代
- 任何结束路径（成功、失败、超时）都会取消全部定时器，且结果只产生一次

特殊约定：
- 未配置 repeat（或 repeat=False）：无条件执行一次
- repeat=0：不执行任何调用，但仍会等待一次 delay 后返回 None

使用示例：
    # 每 0.5 秒执行一次，共 3 次
    run = schedule(fetch_status, delay=0.5, repeat=3)
    result = await run(task_id)

    # 轮询直到状态为 completed，最多 30 秒
    run = schedule(
        fetch_status,
        delay=1.0,
        repeat=lambda value, _: value is None or value["status"] != "completed",
        timeout=30.0,
    )
    result = await run(task_id)
"""

import asyncio
import functools
import inspect
import itertools
import time
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Generic,
    Optional,
    Set,
    Tuple,
    TypeVar,
    Union,
)

from cadence.logs import get_logger
from cadence.time.config import ScheduleConfig
from cadence.time.errors import ScheduleTimeoutError
from cadence.time.timer import CancellableSleep, CancellableTimer
from cadence.time.types import (
    FixedCount,
    IterationState,
    NoRepeat,
    ScheduleOptions,
)

T = TypeVar("T")

UnitOfWork = Callable[..., Union[T, Awaitable[T]]]

# 调用 id，仅用于日志关联
_run_ids = itertools.count(1)

# 超时后仍在执行中的迭代链，保持引用直到其自然结束
_detached_chains: Set[asyncio.Task] = set()


class _RunSettled(Exception):
    """调用已结束（被 Timeout Guard 抢先），迭代链应立即停止"""


class ScheduleRun(Generic[T]):
    """
    单次调用的执行过程

    每次调用 Scheduler 都会创建一个新的 ScheduleRun，拥有独立的迭代状态和定时器。
    """

    def __init__(
        self,
        func: UnitOfWork,
        options: ScheduleOptions,
        args: Tuple[Any, ...],
        kwargs: Dict[str, Any],
    ):
        self.run_id = next(_run_ids)
        self._logger = get_logger(__name__, run_id=self.run_id)
        self._func = func
        self._options = options
        self._args = args
        self._kwargs = kwargs
        self._name = getattr(func, "__qualname__", repr(func))
        self._loop = asyncio.get_running_loop()
        self._outcome: asyncio.Future = self._loop.create_future()
        self._sleep: Optional[CancellableSleep] = None
        self._guard: Optional[CancellableTimer] = None
        self._chain: Optional[asyncio.Task] = None
        self._start_time = 0.0
        self.state: IterationState[T] = IterationState()

    @property
    def settled(self) -> bool:
        return self._outcome.done()

    def _extra(self) -> Dict[str, Any]:
        return {"extra_fields": {"iteration": self.state.iteration}}

    async def run(self) -> Optional[T]:
        """执行迭代链并等待唯一的结果"""
        self._start_time = time.monotonic()
        self._logger.debug(
            f"schedule: 开始执行, func={self._name}, delay={self._options.delay}, "
            f"repeat={self._options.repeat}, timeout={self._options.timeout}",
            extra=self._extra(),
        )

        if self._options.timeout is not None:
            self._guard = CancellableTimer(
                self._options.timeout, self._on_timeout, loop=self._loop
            )

        self._chain = self._loop.create_task(self._drive())
        try:
            return await self._outcome
        finally:
            self._cleanup()
            if self._outcome.cancelled():
                # 调用方被取消，迭代链随之取消
                self._chain.cancel()
            elif not self._chain.done():
                _detached_chains.add(self._chain)
                self._chain.add_done_callback(_detached_chains.discard)

    async def _drive(self) -> None:
        try:
            value = await self._iterate()
        except _RunSettled:
            return
        except asyncio.CancelledError:
            if not self.settled:
                self._outcome.cancel()
            raise
        except Exception as e:
            self._settle(error=e)
        except BaseException as e:
            # KeyboardInterrupt、SystemExit 交付给调用方后继续向事件循环传播
            self._settle(error=e)
            if isinstance(e, (KeyboardInterrupt, SystemExit)):
                raise
        else:
            self._settle(result=value)

    async def _iterate(self) -> Optional[T]:
        repeat = self._options.repeat

        if isinstance(repeat, NoRepeat):
            await self._suspend(yield_without_delay=False)
            return await self._invoke()

        if isinstance(repeat, FixedCount) and repeat.count == 0:
            await self._suspend(yield_without_delay=False)
            return None

        while True:
            state = self.state
            keep = await repeat.should_continue(state.latest_value, state.iteration)
            self._ensure_open()
            if not keep:
                return state.latest_value

            await self._suspend(yield_without_delay=True)
            value = await self._invoke()
            self.state = state.advance(value)

    async def _suspend(self, yield_without_delay: bool) -> None:
        """
        按 delay 策略挂起

        Args:
            yield_without_delay: 未配置 delay 时是否仍让出一次事件循环
        """
        state = self.state
        seconds = self._options.delay.resolve(state.latest_value, state.iteration)
        if seconds is None:
            if not yield_without_delay:
                return
            seconds = 0.0

        self._sleep = CancellableSleep(seconds, loop=self._loop)
        try:
            await self._sleep.wait()
        except asyncio.CancelledError:
            if self.settled:
                raise _RunSettled()
            raise
        finally:
            self._sleep = None
        self._ensure_open()

    async def _invoke(self) -> T:
        self._ensure_open()
        result = self._func(*self._args, **self._kwargs)
        if inspect.isawaitable(result):
            result = await result
            # 执行期间可能已被 Timeout Guard 抢先结束
            self._ensure_open()
        self._logger.debug(f"schedule: 调用完成, func={self._name}", extra=self._extra())
        return result

    def _ensure_open(self) -> None:
        if self.settled:
            raise _RunSettled()

    def _on_timeout(self) -> None:
        elapsed = time.monotonic() - self._start_time
        self._logger.warning(
            f"schedule: 调度超时, func={self._name}, timeout={self._options.timeout}s, "
            f"elapsed={elapsed:.3f}s",
            extra=self._extra(),
        )
        self._settle(error=ScheduleTimeoutError(self._options.timeout))

    def _settle(
        self,
        result: Optional[T] = None,
        error: Optional[BaseException] = None,
    ) -> bool:
        """
        产生调用结果，只有第一次生效

        Returns:
            本次是否真正产生了结果
        """
        if self._outcome.done():
            self._logger.debug(
                f"schedule: 调用已结束, 丢弃迟到的结果, func={self._name}, error={error}",
                extra=self._extra(),
            )
            return False

        # 结果可见之前先清理定时器
        self._cleanup()

        elapsed = time.monotonic() - self._start_time
        if error is not None:
            self._logger.debug(
                f"schedule: 执行失败, func={self._name}, elapsed={elapsed:.3f}s, error={error!r}",
                extra=self._extra(),
            )
            self._outcome.set_exception(error)
        else:
            self._logger.debug(
                f"schedule: 执行完成, func={self._name}, elapsed={elapsed:.3f}s",
                extra=self._extra(),
            )
            self._outcome.set_result(result)
        return True

    def _cleanup(self) -> None:
        if self._guard is not None:
            self._guard.cancel()
        if self._sleep is not None:
            self._sleep.cancel()


class Scheduler(Generic[T]):
    """
    可重复执行的异步调用

    每次 await 都会启动一个独立的 ScheduleRun，多次并发调用互不影响。

    使用示例：
        scheduler = Scheduler(fetch_status, ScheduleOptions(delay=0.5, repeat=3))
        result = await scheduler(task_id)
    """

    def __init__(self, func: UnitOfWork, options: Optional[ScheduleOptions] = None):
        """
        Args:
            func: 每次迭代执行的函数（同步或异步）
            options: 调度选项，None 表示只执行一次
        """
        functools.update_wrapper(self, func)
        self.func = func
        self.options = options if options is not None else ScheduleOptions()

    @classmethod
    def from_config(cls, func: UnitOfWork, config: ScheduleConfig) -> "Scheduler[T]":
        """
        从配置创建调度器

        Args:
            func: 每次迭代执行的函数
            config: 调度配置
        """
        return cls(func, config.to_options())

    async def __call__(self, *args: Any, **kwargs: Any) -> Optional[T]:
        run: ScheduleRun[T] = ScheduleRun(self.func, self.options, args, kwargs)
        return await run.run()

    def __repr__(self) -> str:
        return f"Scheduler(func={getattr(self.func, '__qualname__', self.func)!r}, options={self.options!r})"


def _build_options(
    options: Optional[ScheduleOptions],
    delay: Any,
    repeat: Any,
    timeout: Optional[float],
) -> ScheduleOptions:
    if options is not None:
        if delay is not None or repeat is not None or timeout is not None:
            raise TypeError("options 与 delay/repeat/timeout 参数不能同时使用")
        return options
    return ScheduleOptions(delay=delay, repeat=repeat, timeout=timeout)


def schedule(
    func: UnitOfWork,
    options: Optional[ScheduleOptions] = None,
    *,
    delay: Any = None,
    repeat: Any = None,
    timeout: Optional[float] = None,
) -> Scheduler:
    """
    把函数包装为按策略重复执行的异步调用

    Args:
        func: 每次迭代执行的函数（同步或异步）
        options: 调度选项，与 delay/repeat/timeout 参数二选一
        delay: 每次迭代前的等待时间（秒），或函数 (value, iteration) -> 秒
        repeat: None/False 执行一次；True 无限重复；整数为次数；
                或函数 (value, iteration) -> bool（可为异步），返回 True 继续
        timeout: 整个调用的总超时时间（秒），None 或 0 表示不超时

    Returns:
        Scheduler 实例，await scheduler(*args, **kwargs) 得到最后一次调用的结果，
        从未调用时为 None

    Raises:
        TypeError: 同时传入 options 和关键字参数，或参数类型不支持
        ValueError: 负数的 delay 或 repeat
    """
    return Scheduler(func, _build_options(options, delay, repeat, timeout))


def scheduled(
    options: Optional[ScheduleOptions] = None,
    *,
    delay: Any = None,
    repeat: Any = None,
    timeout: Optional[float] = None,
):
    """
    调度装饰器

    使用示例：
        @scheduled(delay=1.0, repeat=lambda value, _: not value, timeout=30.0)
        async def is_ready(url: str) -> bool:
            ...

        ready = await is_ready("http://localhost:8080/healthz")
    """
    built = _build_options(options, delay, repeat, timeout)

    def decorator(func: UnitOfWork) -> Scheduler:
        return Scheduler(func, built)

    return decorator

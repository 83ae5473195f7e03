"""
调度选项与迭代状态

delay / repeat 两个选项在构造 ScheduleOptions 时一次性归一化为带标签的变体，
调度过程中不再对原始参数做类型判断：

- delay:  NoDelay | ConstantDelay | ComputedDelay
- repeat: NoRepeat | FixedCount | Unbounded | Predicate

时间单位均为秒。latest_value 以 None 表示"尚未产生结果"。
"""

import inspect
from dataclasses import dataclass, field
from typing import (
    Any,
    Awaitable,
    Callable,
    Generic,
    Optional,
    TypeVar,
    Union,
)

T = TypeVar("T")

DelayFunc = Callable[[Optional[Any], int], float]
RepeatFunc = Callable[[Optional[Any], int], Union[bool, Awaitable[bool]]]


# ============================================================================
# Delay Resolver
# ============================================================================


@dataclass(frozen=True)
class NoDelay:
    """未配置延迟：不挂起"""

    def resolve(self, value: Optional[Any], iteration: int) -> Optional[float]:
        return None


@dataclass(frozen=True)
class ConstantDelay:
    """固定延迟（秒）"""

    seconds: float

    def __post_init__(self):
        if self.seconds < 0:
            raise ValueError(f"delay 不能为负数: {self.seconds}")

    def resolve(self, value: Optional[Any], iteration: int) -> Optional[float]:
        return self.seconds


@dataclass(frozen=True)
class ComputedDelay:
    """
    按迭代计算的延迟

    func 以迭代开始前的状态调用：上一次成功调用的返回值（首次为 None）
    和即将执行的迭代序号。负数结果按 0 处理。
    """

    func: DelayFunc

    def resolve(self, value: Optional[Any], iteration: int) -> Optional[float]:
        return max(0.0, float(self.func(value, iteration)))


Delay = Union[NoDelay, ConstantDelay, ComputedDelay]


# ============================================================================
# Repeat Evaluator
# ============================================================================


@dataclass(frozen=True)
class NoRepeat:
    """未配置重复：无条件执行一次（由调度器处理，不参与逐次判定）"""


@dataclass(frozen=True)
class FixedCount:
    """固定次数：执行迭代 0..count-1"""

    count: int

    def __post_init__(self):
        if self.count < 0:
            raise ValueError(f"repeat 次数不能为负数: {self.count}")

    async def should_continue(self, value: Optional[Any], iteration: int) -> bool:
        return iteration < self.count


@dataclass(frozen=True)
class Unbounded:
    """无限重复，直到超时或外部取消"""

    async def should_continue(self, value: Optional[Any], iteration: int) -> bool:
        return True


@dataclass(frozen=True)
class Predicate:
    """条件重复：func 返回 True 时继续，支持同步和异步函数"""

    func: RepeatFunc

    async def should_continue(self, value: Optional[Any], iteration: int) -> bool:
        result = self.func(value, iteration)
        if inspect.isawaitable(result):
            result = await result
        return bool(result)


Repeat = Union[NoRepeat, FixedCount, Unbounded, Predicate]


def normalize_delay(delay: Any) -> Delay:
    """
    归一化 delay 参数

    Args:
        delay: None、非负数值、函数 (value, iteration) -> 秒，或已归一化的变体

    Raises:
        TypeError: 不支持的类型
        ValueError: 负数延迟
    """
    if delay is None:
        return NoDelay()
    if isinstance(delay, (NoDelay, ConstantDelay, ComputedDelay)):
        return delay
    if isinstance(delay, bool):
        raise TypeError("delay 不支持 bool 类型")
    if isinstance(delay, (int, float)):
        return ConstantDelay(float(delay))
    if callable(delay):
        return ComputedDelay(delay)
    raise TypeError(f"不支持的 delay 类型: {type(delay).__name__}")


def normalize_repeat(repeat: Any) -> Repeat:
    """
    归一化 repeat 参数

    Args:
        repeat: None/False（执行一次）、True（无限）、非负整数（次数）、
                函数 (value, iteration) -> bool 或已归一化的变体

    Raises:
        TypeError: 不支持的类型
        ValueError: 负数次数
    """
    if repeat is None or repeat is False:
        return NoRepeat()
    if repeat is True:
        return Unbounded()
    if isinstance(repeat, (NoRepeat, FixedCount, Unbounded, Predicate)):
        return repeat
    if isinstance(repeat, int):
        return FixedCount(repeat)
    if callable(repeat):
        return Predicate(repeat)
    raise TypeError(f"不支持的 repeat 类型: {type(repeat).__name__}")


def normalize_timeout(timeout: Any) -> Optional[float]:
    """归一化 timeout 参数，None、0 或负数表示不超时"""
    if timeout is None:
        return None
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
        raise TypeError(f"不支持的 timeout 类型: {type(timeout).__name__}")
    if timeout <= 0:
        return None
    return float(timeout)


@dataclass(frozen=True)
class ScheduleOptions:
    """
    调度选项

    Attributes:
        delay: 每次迭代前的等待时间
        repeat: 重复策略
        timeout: 整个调用的总超时时间（秒），None 表示不超时

    使用示例：
        options = ScheduleOptions(delay=0.5, repeat=3, timeout=10.0)
        options = ScheduleOptions(
            delay=lambda _, i: (i + 1) * 0.1,
            repeat=lambda value, _: value is None or value["status"] != "done",
        )
    """

    delay: Any = field(default_factory=NoDelay)
    repeat: Any = field(default_factory=NoRepeat)
    timeout: Optional[float] = None

    def __post_init__(self):
        # frozen dataclass 需要通过 object.__setattr__ 写入归一化结果
        object.__setattr__(self, "delay", normalize_delay(self.delay))
        object.__setattr__(self, "repeat", normalize_repeat(self.repeat))
        object.__setattr__(self, "timeout", normalize_timeout(self.timeout))


@dataclass(frozen=True)
class IterationState(Generic[T]):
    """单次调用的迭代状态，通过 advance() 生成下一状态"""

    iteration: int = 0
    latest_value: Optional[T] = None

    def advance(self, value: T) -> "IterationState[T]":
        return IterationState(iteration=self.iteration + 1, latest_value=value)

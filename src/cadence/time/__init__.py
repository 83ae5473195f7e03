"""
调度相关工具模块

包含：
- schedule/scheduled/Scheduler: 按 repeat/delay/timeout 策略重复执行函数
- wait_for: 轮询等待条件满足
- ScheduleTimeoutError/is_schedule_timeout_error: 超时错误及其判定
- CancellableTimer/CancellableSleep: 可取消的定时器
- ScheduleConfig/load_config: 调度配置加载
"""

from cadence.time.config import (
    AppConfig,
    ConfigLoader,
    ScheduleConfig,
    load_config,
    load_config_from_file,
    parse_duration,
)
from cadence.time.errors import (
    SCHEDULE_TIMEOUT,
    ScheduleTimeoutError,
    is_schedule_timeout_error,
)
from cadence.time.scheduler import Scheduler, ScheduleRun, schedule, scheduled
from cadence.time.timer import CancellableSleep, CancellableTimer
from cadence.time.types import (
    ComputedDelay,
    ConstantDelay,
    FixedCount,
    IterationState,
    NoDelay,
    NoRepeat,
    Predicate,
    ScheduleOptions,
    Unbounded,
)
from cadence.time.wait import wait_for

__all__ = [
    # ===== scheduler 模块 =====
    "schedule",
    "scheduled",
    "Scheduler",
    "ScheduleRun",
    # ===== wait 模块 =====
    "wait_for",
    # ===== errors 模块 =====
    "SCHEDULE_TIMEOUT",
    "ScheduleTimeoutError",
    "is_schedule_timeout_error",
    # ===== timer 模块 =====
    "CancellableTimer",
    "CancellableSleep",
    # ===== types 模块 =====
    "ScheduleOptions",
    "IterationState",
    "NoDelay",
    "ConstantDelay",
    "ComputedDelay",
    "NoRepeat",
    "FixedCount",
    "Unbounded",
    "Predicate",
    # ===== config 模块 =====
    "AppConfig",
    "ConfigLoader",
    "ScheduleConfig",
    "load_config",
    "load_config_from_file",
    "parse_duration",
]

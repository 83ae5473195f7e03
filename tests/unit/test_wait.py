"""
wait_for 条件等待测试
"""

import asyncio
import time

import pytest

from cadence.time.errors import ScheduleTimeoutError, is_schedule_timeout_error
from cadence.time.wait import wait_for

TOLERANCE = 0.08


def flip_after(flag: dict, seconds: float):
    """seconds 秒后把 flag["value"] 置为 True"""
    asyncio.get_running_loop().call_later(seconds, flag.__setitem__, "value", True)


class TestWaitFor:
    """条件等待测试"""

    @pytest.mark.asyncio
    async def test_already_complete(self):
        """测试条件立即满足时不等待"""
        seen = []

        def is_complete(iteration):
            seen.append(iteration)
            return True

        start = time.monotonic()
        await wait_for(is_complete, delay=1.0)
        assert time.monotonic() - start < 0.05
        assert seen == [0]

    @pytest.mark.asyncio
    async def test_short_constant_delay(self):
        """测试短间隔轮询，条件满足后尽快返回"""
        flag = {"value": False}
        flip_after(flag, 0.15)

        start = time.monotonic()
        await wait_for(lambda _: flag["value"], delay=0.015)
        elapsed = time.monotonic() - start

        assert 0.14 <= elapsed <= 0.15 + TOLERANCE

    @pytest.mark.asyncio
    async def test_long_constant_delay(self):
        """测试长间隔轮询，在下一个检查点返回"""
        flag = {"value": False}
        flip_after(flag, 0.15)

        start = time.monotonic()
        await wait_for(lambda _: flag["value"], delay=0.25)
        elapsed = time.monotonic() - start

        assert 0.24 <= elapsed <= 0.25 + TOLERANCE

    @pytest.mark.asyncio
    async def test_linear_delay(self):
        """测试线性增长的检查间隔"""
        flag = {"value": False}
        flip_after(flag, 0.225)
        seen = []

        def is_complete(iteration):
            seen.append(iteration)
            return flag["value"]

        start = time.monotonic()
        await wait_for(is_complete, delay=lambda i: (i + 1) * 0.05)
        elapsed = time.monotonic() - start

        # 检查点: 0, 0.05, 0.15, 0.30
        assert seen == [0, 1, 2, 3]
        assert 0.29 <= elapsed <= 0.30 + TOLERANCE

    @pytest.mark.asyncio
    async def test_timeout_failure(self):
        """测试条件满足前超时"""
        flag = {"value": False}
        flip_after(flag, 0.25)

        start = time.monotonic()
        with pytest.raises(ScheduleTimeoutError) as exc_info:
            await wait_for(lambda _: flag["value"], delay=0.015, timeout=0.15)
        elapsed = time.monotonic() - start

        assert is_schedule_timeout_error(exc_info.value)
        assert 0.14 <= elapsed <= 0.15 + TOLERANCE

    @pytest.mark.asyncio
    async def test_timeout_success(self):
        """测试条件在超时前满足"""
        flag = {"value": False}
        flip_after(flag, 0.15)

        start = time.monotonic()
        await wait_for(lambda _: flag["value"], delay=0.015, timeout=0.5)
        elapsed = time.monotonic() - start

        assert 0.14 <= elapsed <= 0.15 + TOLERANCE

    @pytest.mark.asyncio
    async def test_async_condition_never_concurrent(self):
        """测试异步条件函数不会并发执行"""
        state = {"active": 0, "max_active": 0, "calls": 0}

        async def is_complete(iteration):
            state["active"] += 1
            state["max_active"] = max(state["max_active"], state["active"])
            state["calls"] += 1
            await asyncio.sleep(0.02)
            state["active"] -= 1
            return iteration >= 3

        await wait_for(is_complete, delay=0.005)

        assert state["calls"] == 4
        assert state["max_active"] == 1

    @pytest.mark.asyncio
    async def test_condition_error_propagates(self):
        """测试条件函数异常原样传播"""

        def is_complete(iteration):
            if iteration == 2:
                raise KeyError("missing")
            return False

        with pytest.raises(KeyError):
            await wait_for(is_complete, delay=0.01, timeout=1.0)

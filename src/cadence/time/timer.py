"""
可取消定时器模块

基于 asyncio 事件循环的 call_later 实现：
- CancellableTimer: 到期后执行回调的定时器，可在触发前取消
- CancellableSleep: 可被外部取消的等待，取消后等待方收到 CancelledError

cancel() 是幂等的：对已取消或已触发的定时器再次取消不会报错，只返回 False。
"""

import asyncio
from typing import Any, Callable, Optional


class CancellableTimer:
    """
    可取消的回调定时器

    使用示例：
        timer = CancellableTimer(5.0, on_timeout)
        ...
        timer.cancel()
    """

    def __init__(
        self,
        delay: float,
        callback: Callable[..., Any],
        *args: Any,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        """
        Args:
            delay: 延迟时间（秒），负数按 0 处理
            callback: 到期后执行的回调
            *args: 传递给回调的位置参数
            loop: 事件循环，默认使用当前运行中的循环
        """
        self.delay = max(0.0, float(delay))
        self._loop = loop or asyncio.get_running_loop()
        self._callback = callback
        self._args = args
        self._fired = False
        self._cancelled = False
        self._handle: Optional[asyncio.TimerHandle] = self._loop.call_later(
            self.delay, self._fire
        )

    def _fire(self) -> None:
        self._handle = None
        self._fired = True
        self._callback(*self._args)

    @property
    def fired(self) -> bool:
        """是否已触发"""
        return self._fired

    @property
    def cancelled(self) -> bool:
        """是否已取消"""
        return self._cancelled

    @property
    def active(self) -> bool:
        """是否仍在等待触发"""
        return self._handle is not None

    def cancel(self) -> bool:
        """
        取消定时器

        Returns:
            本次调用是否真正取消了一个等待中的定时器
        """
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        self._cancelled = True
        return True


class CancellableSleep:
    """
    可取消的等待

    delay 为 0 时仍然会让出一次事件循环，而不是同步返回。

    使用示例：
        sleep = CancellableSleep(1.0)
        await sleep.wait()   # 若期间调用 sleep.cancel()，这里抛出 CancelledError
    """

    def __init__(
        self,
        delay: float,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self._loop = loop or asyncio.get_running_loop()
        self._future: asyncio.Future = self._loop.create_future()
        self._timer = CancellableTimer(delay, self._wake, loop=self._loop)

    @property
    def delay(self) -> float:
        return self._timer.delay

    def _wake(self) -> None:
        if not self._future.done():
            self._future.set_result(None)

    async def wait(self) -> None:
        await self._future

    def done(self) -> bool:
        return self._future.done()

    def cancel(self) -> bool:
        """取消等待，幂等"""
        cancelled = self._timer.cancel()
        if not self._future.done():
            self._future.cancel()
            cancelled = True
        return cancelled

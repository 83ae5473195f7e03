"""
调度错误模块

定义 Timeout Guard 抛出的超时错误，以及用于识别该错误的判定函数。

超时错误通过稳定的 code 字段识别，而不是匹配错误信息文本，
因此即使错误信息被修改或本地化，判定依然可靠。
"""

from typing import Optional

# 超时错误的稳定标识
SCHEDULE_TIMEOUT = "SCHEDULE_TIMEOUT"


class ScheduleTimeoutError(Exception):
    """调度超时错误（仅由 Timeout Guard 抛出）"""

    code = SCHEDULE_TIMEOUT

    def __init__(self, timeout: Optional[float] = None, message: str = ""):
        """
        Args:
            timeout: 配置的总超时时间（秒）
            message: 错误信息，为空时自动生成
        """
        self.timeout = timeout
        if not message:
            message = f"调度超时: timeout={timeout}s"
        super().__init__(message)


def is_schedule_timeout_error(error: object) -> bool:
    """
    判断错误是否为 Timeout Guard 产生的超时错误

    Args:
        error: 任意对象（通常是捕获到的异常）

    Returns:
        仅当 error 为 ScheduleTimeoutError 时返回 True

    使用示例：
        try:
            await run()
        except Exception as e:
            if not is_schedule_timeout_error(e):
                raise
    """
    return (
        isinstance(error, ScheduleTimeoutError)
        and getattr(error, "code", None) == SCHEDULE_TIMEOUT
    )

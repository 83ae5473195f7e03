"""
超时错误判定测试
"""

from cadence.time.errors import (
    SCHEDULE_TIMEOUT,
    ScheduleTimeoutError,
    is_schedule_timeout_error,
)


class TestIsScheduleTimeoutError:
    """is_schedule_timeout_error 测试"""

    def test_timeout_error(self):
        """测试识别超时错误"""
        error = ScheduleTimeoutError(1.5)
        assert is_schedule_timeout_error(error)
        assert error.code == SCHEDULE_TIMEOUT
        assert error.timeout == 1.5
        assert "1.5" in str(error)

    def test_custom_message_still_detected(self):
        """测试修改错误信息后仍可识别"""
        assert is_schedule_timeout_error(ScheduleTimeoutError(1, message="等待超时"))

    def test_other_errors(self):
        """测试其它错误不被识别，即使信息相同"""
        message = str(ScheduleTimeoutError(1))
        assert not is_schedule_timeout_error(Exception(message))
        assert not is_schedule_timeout_error(TimeoutError(message))
        assert not is_schedule_timeout_error(SCHEDULE_TIMEOUT)
        assert not is_schedule_timeout_error(None)

    def test_error_with_same_code_attribute(self):
        """测试带相同 code 属性的其它异常不被识别"""

        class FakeError(Exception):
            code = SCHEDULE_TIMEOUT

        assert not is_schedule_timeout_error(FakeError())

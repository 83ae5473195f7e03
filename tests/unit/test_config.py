"""
调度配置测试
"""

import pytest
from pydantic import ValidationError

from cadence.logs import LogConfig
from cadence.time.config import (
    AppConfig,
    ConfigLoader,
    ScheduleConfig,
    load_config,
    load_config_from_file,
    parse_duration,
)
from cadence.time.types import ConstantDelay, FixedCount, NoDelay, NoRepeat, Unbounded

CONFIG_YAML = """
schedules:
  poll_status:
    delay: 500ms
    repeat: 10
    timeout: 30s
  heartbeat:
    delay: 5s
    repeat: true
log:
  level: debug
  formatter: json
"""


class TestParseDuration:
    """时间解析测试"""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, 0.0),
            (3, 3.0),
            (0.5, 0.5),
            ("", 0.0),
            ("2", 2.0),
            ("100ms", 0.1),
            ("1.5s", 1.5),
            ("2m", 120.0),
            ("1h30m", 5400.0),
        ],
    )
    def test_parse(self, value, expected):
        """测试支持的格式"""
        assert parse_duration(value) == pytest.approx(expected)

    @pytest.mark.parametrize("value", ["abc", "10x", True])
    def test_invalid(self, value):
        """测试无法解析的值"""
        with pytest.raises(ValueError):
            parse_duration(value)


class TestScheduleConfig:
    """ScheduleConfig 测试"""

    def test_defaults(self):
        """测试默认值：执行一次、不等待、不超时"""
        options = ScheduleConfig().to_options()
        assert isinstance(options.delay, NoDelay)
        assert isinstance(options.repeat, NoRepeat)
        assert options.timeout is None

    def test_to_options(self):
        """测试转换为调度选项"""
        options = ScheduleConfig(delay="250ms", repeat=4, timeout="2s").to_options()
        assert options.delay == ConstantDelay(0.25)
        assert options.repeat == FixedCount(4)
        assert options.timeout == 2.0

    def test_repeat_true(self):
        """测试 repeat=true 为无限重复"""
        assert isinstance(ScheduleConfig(repeat=True).to_options().repeat, Unbounded)

    def test_negative_repeat(self):
        """测试负数次数"""
        with pytest.raises(ValidationError):
            ScheduleConfig(repeat=-1)

    def test_negative_delay(self):
        """测试负数延迟"""
        with pytest.raises(ValidationError):
            ScheduleConfig(delay=-1)


class TestLoadConfig:
    """配置加载测试"""

    def test_load_from_file(self, temp_dir):
        """测试从 YAML 文件加载"""
        path = temp_dir / "config.yaml"
        path.write_text(CONFIG_YAML, encoding="utf-8")

        config = load_config_from_file(str(path))

        poll = config.get_schedule("poll_status")
        assert poll.delay == pytest.approx(0.5)
        assert poll.repeat == 10
        assert poll.timeout == 30.0
        assert config.get_schedule("heartbeat").repeat is True

        log_config = config.get_log_config()
        assert isinstance(log_config, LogConfig)
        assert log_config.level == "debug"
        assert log_config.formatter == "json"

    def test_missing_file(self, temp_dir):
        """测试文件不存在"""
        with pytest.raises(FileNotFoundError):
            load_config_from_file(str(temp_dir / "missing.yaml"))

    def test_unknown_schedule(self):
        """测试未配置的调度名称"""
        with pytest.raises(KeyError):
            AppConfig().get_schedule("nope")

    def test_dict_overrides_file(self, temp_dir):
        """测试字典配置覆盖文件配置"""
        path = temp_dir / "config.yaml"
        path.write_text(CONFIG_YAML, encoding="utf-8")

        config = load_config(
            config_file=str(path),
            config_dict={"schedules": {"poll_status": {"repeat": 3}}},
        )

        poll = config.get_schedule("poll_status")
        assert poll.repeat == 3
        assert poll.delay == pytest.approx(0.5)

    def test_env_override(self, monkeypatch):
        """测试环境变量覆盖"""
        monkeypatch.setenv("CADENCE_TEST_SCHEDULES__POLL_STATUS__DELAY", "2s")
        monkeypatch.setenv("CADENCE_TEST_SCHEDULES__POLL_STATUS__REPEAT", "5")

        config = load_config(
            config_dict={"schedules": {"poll_status": {"delay": 1}}},
            env_prefix="CADENCE_TEST",
        )

        poll = config.get_schedule("poll_status")
        assert poll.delay == 2.0
        assert poll.repeat == 5

    def test_loader_does_not_mutate_input(self):
        """测试加载器不修改传入的字典"""
        data = {"schedules": {"a": {"repeat": 1}}}
        loader = ConfigLoader().load_from_dict(data)
        loader.load_from_dict({"schedules": {"a": {"repeat": 2}}})

        assert data == {"schedules": {"a": {"repeat": 1}}}
        assert loader.get_config().get_schedule("a").repeat == 2

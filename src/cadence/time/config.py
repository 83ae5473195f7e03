#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
调度配置模块

提供：
- Pydantic 配置模型
- YAML 配置文件加载
- 环境变量覆盖
- 时间字符串解析

示例 YAML 配置:
```yaml
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
  formatter: glog
```
"""

import copy
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator

from cadence.logs import LogConfig
from cadence.time.types import ScheduleOptions

logger = logging.getLogger(__name__)


# ======================== 时间解析工具 ========================


def parse_duration(value: Union[str, int, float, None]) -> float:
    """
    解析时间字符串为秒数

    支持格式:
    - 纯数字: 直接作为秒数
    - "30s": 30 秒
    - "5m": 5 分钟
    - "1h30m": 1 小时 30 分钟
    - "100ms": 100 毫秒

    Args:
        value: 时间字符串或数字

    Returns:
        秒数（float）

    Raises:
        ValueError: 无法解析的字符串
    """
    if value is None:
        return 0.0

    if isinstance(value, bool):
        raise ValueError(f"无法解析时间: {value!r}")

    if isinstance(value, (int, float)):
        return float(value)

    if not isinstance(value, str):
        raise ValueError(f"无法解析时间: {value!r}")

    text = value.strip().lower()
    if not text:
        return 0.0

    # 纯数字
    try:
        return float(text)
    except ValueError:
        pass

    pattern = r"(\d+(?:\.\d+)?)\s*(ms|s|m|h|d)"
    if not re.fullmatch(rf"(?:{pattern}\s*)+", text):
        raise ValueError(f"无法解析时间: {value!r}")

    unit_multipliers = {
        "ms": 0.001,
        "s": 1,
        "m": 60,
        "h": 3600,
        "d": 86400,
    }

    total_seconds = 0.0
    for num_str, unit in re.findall(pattern, text):
        total_seconds += float(num_str) * unit_multipliers[unit]
    return total_seconds


# ======================== 配置模型定义 ========================


class ScheduleConfig(BaseModel):
    """单个调度的配置（repeat 条件函数无法写在配置文件中，只支持 bool 和次数）"""

    delay: Optional[float] = Field(default=None, ge=0, description="迭代间隔（秒），None 表示不等待")
    repeat: Union[bool, int] = Field(default=False, description="false 执行一次，true 无限重复，整数为次数")
    timeout: float = Field(default=0, ge=0, description="总超时时间（秒），0 表示不超时")

    @field_validator("delay", mode="before")
    @classmethod
    def parse_delay(cls, v):
        """解析迭代间隔"""
        if v is None:
            return None
        return parse_duration(v)

    @field_validator("timeout", mode="before")
    @classmethod
    def parse_timeout(cls, v):
        """解析超时时间"""
        return parse_duration(v)

    @field_validator("repeat")
    @classmethod
    def check_repeat(cls, v):
        """重复次数不能为负数"""
        if not isinstance(v, bool) and v < 0:
            raise ValueError(f"repeat 次数不能为负数: {v}")
        return v

    def to_options(self) -> ScheduleOptions:
        """转换为调度选项"""
        return ScheduleOptions(
            delay=self.delay,
            repeat=self.repeat,
            timeout=self.timeout or None,
        )


class AppConfig(BaseModel):
    """
    应用配置根节点

    支持从 YAML 文件加载完整配置
    """

    schedules: Dict[str, ScheduleConfig] = Field(
        default_factory=dict, description="按名称索引的调度配置"
    )
    log: Dict[str, Any] = Field(default_factory=dict, description="日志配置，见 cadence.logs.LogConfig")

    def get_schedule(self, name: str) -> ScheduleConfig:
        """
        按名称获取调度配置

        Raises:
            KeyError: 未配置该名称
        """
        if name not in self.schedules:
            raise KeyError(f"未找到调度配置: {name}")
        return self.schedules[name]

    def get_log_config(self) -> LogConfig:
        """获取日志配置"""
        return LogConfig.from_dict(self.log)


# ======================== 配置加载器 ========================


class ConfigLoader:
    """
    配置加载器

    支持从 YAML 文件、字典或环境变量加载配置
    """

    def __init__(self, config_file: Optional[str] = None):
        """
        初始化配置加载器

        Args:
            config_file: YAML 配置文件路径
        """
        self.config_file = config_file
        self._raw_config: Dict[str, Any] = {}
        self._config: Optional[AppConfig] = None

    def load(self) -> "ConfigLoader":
        """
        加载配置

        Returns:
            self，支持链式调用
        """
        if self.config_file:
            self._load_from_file(self.config_file)
        return self

    def _load_from_file(self, file_path: str) -> None:
        """从文件加载配置"""
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {file_path}")

        with open(path, "r", encoding="utf-8") as f:
            self._raw_config = yaml.safe_load(f) or {}

        logger.info(f"Loaded config from {file_path}")

    def load_from_dict(self, config_dict: Dict[str, Any]) -> "ConfigLoader":
        """
        从字典加载配置（与已有配置深度合并）

        Args:
            config_dict: 配置字典

        Returns:
            self
        """
        self._deep_merge(self._raw_config, copy.deepcopy(config_dict))
        self._config = None
        return self

    def load_from_env(self, prefix: str = "CADENCE") -> "ConfigLoader":
        """
        从环境变量加载配置

        环境变量格式: {PREFIX}_SCHEDULES__POLL_STATUS__DELAY=500ms
        层级之间使用双下划线分隔，以便名称中保留单下划线

        Args:
            prefix: 环境变量前缀

        Returns:
            self
        """
        env_config: Dict[str, Any] = {}

        for key, value in os.environ.items():
            if not key.startswith(f"{prefix}_"):
                continue

            parts = key[len(prefix) + 1 :].lower().split("__")
            self._set_nested_value(env_config, parts, value)

        self._deep_merge(self._raw_config, env_config)
        self._config = None
        return self

    def _set_nested_value(
        self, config: Dict, keys: List[str], value: str
    ) -> None:
        """设置嵌套字典值"""
        for key in keys[:-1]:
            config = config.setdefault(key, {})

        # 尝试转换类型
        final_key = keys[-1]
        if value.lower() in ("true", "false"):
            config[final_key] = value.lower() == "true"
        elif value.isdigit():
            config[final_key] = int(value)
        else:
            try:
                config[final_key] = float(value)
            except ValueError:
                config[final_key] = value

    def _deep_merge(self, base: Dict, override: Dict) -> Dict:
        """深度合并字典"""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value
        return base

    def get_config(self) -> AppConfig:
        """
        获取解析后的配置

        Returns:
            AppConfig 实例
        """
        if self._config is None:
            self._config = AppConfig(**self._raw_config)
        return self._config

    def get_raw_config(self) -> Dict[str, Any]:
        """获取原始配置字典"""
        return self._raw_config


# ======================== 便捷函数 ========================


def load_config(
    config_file: Optional[str] = None,
    config_dict: Optional[Dict[str, Any]] = None,
    env_prefix: Optional[str] = None,
) -> AppConfig:
    """
    加载应用配置

    优先级: env_prefix > config_dict > config_file > 默认值

    Args:
        config_file: YAML 配置文件路径
        config_dict: 配置字典
        env_prefix: 环境变量前缀

    Returns:
        AppConfig 实例

    示例:
        ```python
        config = load_config(config_file="config.yaml")
        run = Scheduler.from_config(fetch_status, config.get_schedule("poll_status"))
        ```
    """
    loader = ConfigLoader(config_file)

    if config_file:
        loader.load()

    if config_dict:
        loader.load_from_dict(config_dict)

    if env_prefix:
        loader.load_from_env(env_prefix)

    return loader.get_config()


def load_config_from_file(file_path: str) -> AppConfig:
    """
    从 YAML 文件加载配置

    Args:
        file_path: YAML 文件路径

    Returns:
        AppConfig 实例
    """
    return load_config(config_file=file_path)

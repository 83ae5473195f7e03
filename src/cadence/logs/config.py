# -*- coding: utf-8 -*-
"""
日志配置模块

支持：
- 多种日志格式（glog、text、json）
- 多种日志级别
- 多种输出目标（stdout、file、both）
"""

import logging
import sys
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .formatter import GlogFormatter, JsonFormatter, TextFormatter


def _get_program_name() -> str:
    """获取程序名称（不包含路径和扩展名）"""
    if sys.argv and sys.argv[0]:
        name = Path(sys.argv[0]).stem
        if name in ("-c", "", "-"):
            return "app"
        return name
    return "app"


class LogFormatter(str, Enum):
    """日志格式枚举"""
    GLOG = "glog"
    TEXT = "text"
    JSON = "json"


class LogLevel(str, Enum):
    """日志级别枚举"""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"
    CRITICAL = "critical"


class LogRedirect(str, Enum):
    """日志重定向目标枚举"""
    STDOUT = "stdout"
    FILE = "file"
    BOTH = "both"  # 同时输出到 stdout 和文件


# 日志级别映射
LEVEL_MAP = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "critical": logging.CRITICAL,
}


@dataclass
class LogConfig:
    """日志配置

    Attributes:
        formatter: 日志格式（glog、text、json）
        level: 日志级别
        filepath: 日志文件目录
        redirect: 输出重定向目标
        report_caller: 是否报告调用者信息
        enable_colors: 是否启用颜色输出
        prefix_name: 日志文件前缀名，为空时使用程序名
        suffix_name: 日志文件后缀名
    """
    formatter: str = "glog"
    level: str = "info"
    filepath: str = "./log"
    redirect: str = "stdout"
    report_caller: bool = True
    enable_colors: bool = False
    prefix_name: str = ""
    suffix_name: str = ".log"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LogConfig":
        """从字典创建配置，忽略未知字段"""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def log_file(self) -> Path:
        """日志文件完整路径"""
        prefix_name = self.prefix_name or _get_program_name()
        return Path(self.filepath) / f"{prefix_name}{self.suffix_name}"


def _build_formatter(config: LogConfig) -> logging.Formatter:
    formatter = config.formatter.lower()
    if formatter == LogFormatter.GLOG.value:
        return GlogFormatter(
            enable_colors=config.enable_colors,
            report_caller=config.report_caller,
        )
    if formatter == LogFormatter.JSON.value:
        return JsonFormatter(report_caller=config.report_caller)
    return TextFormatter(report_caller=config.report_caller)


def install_logs(config: Optional[LogConfig] = None, name: Optional[str] = None) -> None:
    """安装日志配置

    Args:
        config: 日志配置，如果为 None 则使用默认配置
        name: 日志记录器名称，None 表示根日志记录器
    """
    if config is None:
        config = LogConfig()

    level = LEVEL_MAP.get(config.level.lower(), logging.INFO)
    formatter = _build_formatter(config)

    target_logger = logging.getLogger(name)
    target_logger.setLevel(level)

    # 清除现有处理器
    target_logger.handlers.clear()

    redirect = config.redirect.lower()

    if redirect in ("stdout", "", "both"):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        target_logger.addHandler(console_handler)

    if redirect in ("file", "both"):
        log_file = config.log_file()
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        target_logger.addHandler(file_handler)

    logger = logging.getLogger(__name__)
    logger.info(
        f"日志初始化完成: level={config.level}, formatter={config.formatter}, "
        f"redirect={config.redirect}, filepath={config.filepath}"
    )


def get_logger(
    name: Optional[str] = None, run_id: Optional[int] = None
) -> Union[logging.Logger, logging.LoggerAdapter]:
    """获取日志记录器

    Args:
        name: 日志记录器名称
        run_id: 调度调用 ID，用于关联同一次调用的日志

    Returns:
        logging.Logger 或带 run_id 前缀的 LoggerAdapter
    """
    logger = logging.getLogger(name)

    if run_id is not None:
        return LoggerAdapter(logger, {"run_id": run_id})

    return logger


class LoggerAdapter(logging.LoggerAdapter):
    """带 run_id 前缀的日志适配器"""

    def process(self, msg, kwargs):
        run_id = self.extra.get("run_id")
        if run_id is not None:
            msg = f"[run_id={run_id}] {msg}"
        return msg, kwargs

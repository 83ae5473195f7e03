# -*- coding: utf-8 -*-
"""
日志格式化器

Glog 格式：
[LEVEL] [DATETIME] [PID] [FILE:LINE](FUNC) MESSAGE key=value ...

示例：
[DEBU] [20240917 23:00:00.123456] [12345] [scheduler.py:120](run) [run_id=3] schedule: 开始执行 iteration=0

调度器通过 extra={"extra_fields": {...}} 传入 iteration 等字段（run_id 由 get_logger 加在消息前），
三种格式化器都会输出这些字段。
"""

import json
import logging
import os
import sys
import threading
from datetime import datetime
from typing import Any, Dict


# 获取进程 ID
_PID = os.getpid()


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    fields = getattr(record, "extra_fields", None)
    return fields if isinstance(fields, dict) else {}


class GlogFormatter(logging.Formatter):
    """Google Log 格式化器"""

    # 日志级别缩写映射
    LEVEL_MAP = {
        logging.DEBUG: "DEBU",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERRO",
        logging.CRITICAL: "FATA",
    }

    # 颜色代码
    COLORS = {
        logging.DEBUG: "\033[37m",     # 灰色
        logging.INFO: "\033[36m",      # 青色
        logging.WARNING: "\033[33m",   # 黄色
        logging.ERROR: "\033[31m",     # 红色
        logging.CRITICAL: "\033[35m",  # 紫色
    }
    RESET = "\033[0m"

    def __init__(
        self,
        datefmt: str = "%Y%m%d %H:%M:%S",
        enable_colors: bool = False,
        enable_thread_id: bool = False,
        report_caller: bool = True,
    ):
        """
        Args:
            datefmt: 日期格式
            enable_colors: 是否启用颜色（仅终端生效）
            enable_thread_id: 是否显示线程 ID（而不是进程 ID）
            report_caller: 是否报告调用者信息
        """
        super().__init__()
        self.datefmt = datefmt
        self.enable_colors = enable_colors
        self.enable_thread_id = enable_thread_id
        self.report_caller = report_caller
        self._is_terminal = hasattr(sys.stdout, "isatty") and sys.stdout.isatty()

    def _colorize(self, text: str, level: int) -> str:
        if not self.enable_colors or not self._is_terminal:
            return text
        color = self.COLORS.get(level, "")
        if color:
            return f"{color}{text}{self.RESET}"
        return text

    def format(self, record: logging.LogRecord) -> str:
        parts = []

        level_text = self.LEVEL_MAP.get(record.levelno, "UNKN")
        parts.append(self._colorize(f"[{level_text}]", record.levelno))

        # 时间戳，包含微秒
        timestamp = datetime.fromtimestamp(record.created).strftime(self.datefmt)
        microseconds = int((record.created - int(record.created)) * 1000000)
        parts.append(f"[{timestamp}.{microseconds:06d}]")

        if self.enable_thread_id:
            parts.append(f"[{threading.current_thread().ident}]")
        else:
            parts.append(f"[{_PID}]")

        if self.report_caller:
            filename = os.path.basename(record.pathname)
            parts.append(f"[{filename}:{record.lineno}]({record.funcName})")

        parts.append(record.getMessage())

        for key, value in _extra_fields(record).items():
            parts.append(f"{key}={value}")

        text = " ".join(parts)
        if record.exc_info:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return text


class TextFormatter(logging.Formatter):
    """
    文本格式化器

    输出格式：
    DATETIME - NAME - LEVEL - MESSAGE key=value ...
    """

    def __init__(
        self,
        datefmt: str = "%Y-%m-%d %H:%M:%S",
        report_caller: bool = True,
    ):
        if report_caller:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
        else:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        super().__init__(fmt=fmt, datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        fields = _extra_fields(record)
        if fields:
            text += " " + " ".join(f"{k}={v}" for k, v in fields.items())
        return text


class JsonFormatter(logging.Formatter):
    """JSON 格式化器"""

    def __init__(self, report_caller: bool = True):
        super().__init__()
        self.report_caller = report_caller

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        if self.report_caller:
            log_data["file"] = record.pathname
            log_data["line"] = record.lineno
            log_data["function"] = record.funcName

        log_data.update(_extra_fields(record))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)

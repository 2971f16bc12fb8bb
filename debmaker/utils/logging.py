"""
日志工具 - 统一输出门面

封装 Rich Console，为构建流程提供带时间戳、带阶段标记的统一输出接口。
"""

import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union

from rich.console import Console
from rich.markup import escape


class OutputLevel:
    """输出级别常量"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"


class LogStage:
    """日志阶段标记"""
    INIT = "INIT"
    CONFIG = "CONFIG"
    RESOLVE = "RESOLVE"
    CHECKSUM = "CHECKSUM"
    CONTROL = "CONTROL"
    DATA = "DATA"
    ASSEMBLE = "ASSEMBLE"
    DONE = "DONE"


_LEVEL_ORDER = {
    OutputLevel.DEBUG: 0,
    OutputLevel.INFO: 1,
    OutputLevel.SUCCESS: 1,
    OutputLevel.WARNING: 2,
    OutputLevel.ERROR: 3,
}

_LEVEL_STYLES = {
    OutputLevel.DEBUG: "dim",
    OutputLevel.INFO: "default",
    OutputLevel.SUCCESS: "green",
    OutputLevel.WARNING: "yellow",
}


class OutputFacade:
    """输出门面

    所有输出都经过这里：控制台使用 Rich 着色，日志文件使用纯文本。
    错误信息输出到 stderr。
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._console = Console(file=sys.stdout, highlight=False, log_path=False)
        self._err_console = Console(file=sys.stderr, highlight=False, log_path=False)
        self._file_handle = None  # type: Optional[Any]
        self._log_level = OutputLevel.INFO
        self._date_format = "%Y-%m-%d %H:%M:%S"
        self._time_format = "%H:%M:%S"

    def _get_timestamp(self, include_date: bool = False) -> str:
        now = datetime.now()
        return now.strftime(self._date_format if include_date else self._time_format)

    def _should_output(self, level: str) -> bool:
        current_level = _LEVEL_ORDER.get(self._log_level, 1)
        return _LEVEL_ORDER.get(level, 1) >= current_level

    def _format_plain(self, message: str, level: str, stage: Optional[str]) -> str:
        timestamp = self._get_timestamp(include_date=True)
        if stage:
            return f"[{timestamp}] [{level}] [{stage}] {message}"
        return f"[{timestamp}] [{level}] {message}"

    def _write_to_file(self, message: str, level: str, stage: Optional[str]) -> None:
        if not self._file_handle:
            return
        try:
            self._file_handle.write(self._format_plain(message, level, stage) + "\n")
            self._file_handle.flush()
        except OSError:
            pass  # 日志文件写入失败不影响构建

    def emit(self, message: str, level: str = OutputLevel.INFO, stage: Optional[str] = None) -> None:
        """输出一条消息"""
        if not self._should_output(level):
            return

        with self._lock:
            timestamp = self._get_timestamp()
            text = escape(message)
            if level == OutputLevel.ERROR:
                prefix = f"[dim]{timestamp}[/dim] [bold red]ERROR[/bold red]"
                console = self._err_console
                style = None
            else:
                prefix = f"[dim]{timestamp}[/dim] [bold]{level}[/bold]"
                console = self._console
                style = _LEVEL_STYLES.get(level, "default")

            if stage:
                prefix += f" [cyan]{stage}[/cyan]"
            console.print(f"{prefix} {text}", style=style)

            self._write_to_file(message, level, stage)

    def set_level(self, level: str) -> None:
        """设置输出级别"""
        with self._lock:
            if level in _LEVEL_ORDER and level != OutputLevel.SUCCESS:
                self._log_level = level

    def get_level(self) -> str:
        return self._log_level

    def set_log_file(self, file_path: Union[str, Path]) -> None:
        """设置日志文件（追加模式）"""
        with self._lock:
            self._close_file()
            log_path = Path(file_path)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_handle = open(log_path, 'a', encoding='utf-8')

    def _close_file(self) -> None:
        if self._file_handle:
            try:
                self._file_handle.close()
            except OSError:
                pass
            self._file_handle = None

    def close(self) -> None:
        """关闭输出门面"""
        with self._lock:
            self._close_file()


# 全局输出门面实例
_output_facade: Optional[OutputFacade] = None


def get_output_facade() -> OutputFacade:
    """获取全局输出门面实例"""
    global _output_facade
    if _output_facade is None:
        _output_facade = OutputFacade()
    return _output_facade


def debug(message: str, stage: Optional[str] = None) -> None:
    get_output_facade().emit(message, OutputLevel.DEBUG, stage)


def info(message: str, stage: Optional[str] = None) -> None:
    get_output_facade().emit(message, OutputLevel.INFO, stage)


def success(message: str, stage: Optional[str] = None) -> None:
    get_output_facade().emit(message, OutputLevel.SUCCESS, stage)


def warning(message: str, stage: Optional[str] = None) -> None:
    get_output_facade().emit(message, OutputLevel.WARNING, stage)


def error(message: str, stage: Optional[str] = None) -> None:
    get_output_facade().emit(message, OutputLevel.ERROR, stage)


def set_log_level(level: str) -> None:
    """设置全局日志级别"""
    get_output_facade().set_level(level)


def set_log_file(file_path: Union[str, Path]) -> None:
    """设置全局日志文件"""
    get_output_facade().set_log_file(file_path)


def close_logger() -> None:
    """关闭日志系统"""
    global _output_facade
    if _output_facade:
        _output_facade.close()
        _output_facade = None


def configure_logging(level: str = OutputLevel.INFO, log_file: Optional[Union[str, Path]] = None) -> None:
    """配置日志系统"""
    set_log_level(level)
    if log_file:
        set_log_file(log_file)


class StageLogger:
    """绑定固定阶段标记的日志器"""

    def __init__(self, stage: str):
        self.stage = stage

    def debug(self, message: str) -> None:
        debug(message, self.stage)

    def info(self, message: str) -> None:
        info(message, self.stage)

    def success(self, message: str) -> None:
        success(message, self.stage)

    def warning(self, message: str) -> None:
        warning(message, self.stage)

    def error(self, message: str) -> None:
        error(message, self.stage)


def get_stage_logger(stage: str) -> StageLogger:
    """获取阶段日志器"""
    return StageLogger(stage)


import atexit
atexit.register(close_logger)

"""
日志工具

所有构建输出经过同一个门面：终端输出由 Rich 渲染，
可选的日志文件写入带完整日期的纯文本行。
"""

import atexit
import threading
from datetime import datetime
from pathlib import Path
from typing import IO, Optional, Union

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

    # 库构建
    ASSEMBLE = "ASSEMBLE"
    COMPILE = "COMPILE"
    LOCALE = "LOCALE"

    # 摘要修补
    EXTRACT = "EXTRACT"
    OPTIMIZE = "OPTIMIZE"
    DIGEST = "DIGEST"
    PATCH = "PATCH"
    EXPORT = "EXPORT"
    PUBLISH = "PUBLISH"

    INSTALL = "INSTALL"
    DONE = "DONE"


# 级别 -> (阈值, 终端样式)
_LEVELS = {
    OutputLevel.DEBUG: (10, "dim"),
    OutputLevel.INFO: (20, "default"),
    OutputLevel.SUCCESS: (20, "green"),
    OutputLevel.WARNING: (30, "yellow"),
    OutputLevel.ERROR: (40, "red bold"),
}


class OutputFacade:
    """输出门面

    ERROR 写 stderr，其余写 stdout。多线程构建共用一把锁，保证行不交错。
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._stdout = Console(highlight=False, log_time=False, log_path=False)
        self._stderr = Console(stderr=True, highlight=False)
        self._log_file: Optional[IO[str]] = None
        self.level = OutputLevel.INFO

    def set_level(self, level: str):
        if level in _LEVELS:
            self.level = level

    def enabled_for(self, level: str) -> bool:
        return _LEVELS.get(level, _LEVELS[OutputLevel.INFO])[0] >= _LEVELS[self.level][0]

    def set_log_file(self, file_path: Union[str, Path]):
        """追加写入日志文件，替换已打开的文件"""
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handle = open(path, 'a', encoding='utf-8')
        with self._lock:
            self._close_file()
            self._log_file = handle

    def emit(self, level: str, message: str, stage: Optional[str] = None, **kwargs):
        if not self.enabled_for(level):
            return

        now = datetime.now()
        tag = f"{level} [{stage}]" if stage else level
        style = _LEVELS.get(level, _LEVELS[OutputLevel.INFO])[1]
        # 消息常含路径和方括号，先转义再交给 Rich
        rendered = f"[dim]{now:%H:%M:%S}[/dim] [bold]{escape(tag)}[/bold] {escape(message)}"

        console = self._stderr if level == OutputLevel.ERROR else self._stdout
        with self._lock:
            console.print(rendered, style=style, **kwargs)
            if self._log_file is not None:
                try:
                    self._log_file.write(f"[{now:%Y-%m-%d %H:%M:%S}] {tag} {message}\n")
                    self._log_file.flush()
                except OSError:
                    pass  # 日志文件不可写时只保留终端输出

    def _close_file(self):
        if self._log_file is not None:
            try:
                self._log_file.close()
            except OSError:
                pass
            self._log_file = None

    def close(self):
        with self._lock:
            self._close_file()


_facade: Optional[OutputFacade] = None
_facade_lock = threading.Lock()


def get_output_facade() -> OutputFacade:
    global _facade
    with _facade_lock:
        if _facade is None:
            _facade = OutputFacade()
        return _facade


def debug(message: str, stage: Optional[str] = None, **kwargs):
    get_output_facade().emit(OutputLevel.DEBUG, message, stage, **kwargs)


def info(message: str, stage: Optional[str] = None, **kwargs):
    get_output_facade().emit(OutputLevel.INFO, message, stage, **kwargs)


def success(message: str, stage: Optional[str] = None, **kwargs):
    get_output_facade().emit(OutputLevel.SUCCESS, message, stage, **kwargs)


def warning(message: str, stage: Optional[str] = None, **kwargs):
    get_output_facade().emit(OutputLevel.WARNING, message, stage, **kwargs)


def error(message: str, stage: Optional[str] = None, **kwargs):
    get_output_facade().emit(OutputLevel.ERROR, message, stage, **kwargs)


def configure_logging(level: str = OutputLevel.INFO, log_file: Optional[Union[str, Path]] = None):
    """设置输出级别，并可选地打开日志文件

    Raises:
        OSError: 日志文件无法打开
    """
    facade = get_output_facade()
    facade.set_level(level)
    if log_file:
        facade.set_log_file(log_file)


def close_logger():
    global _facade
    with _facade_lock:
        if _facade is not None:
            _facade.close()
            _facade = None


atexit.register(close_logger)

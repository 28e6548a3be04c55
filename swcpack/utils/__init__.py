"""通用工具模块"""

from .logging import (
    configure_logging,
    LogStage,
    OutputLevel,
)

from .paths import (
    atomic_write,
    ensure_directory,
    safe_path_join,
    format_size,
    is_hidden,
    list_visible_files,
)

__all__ = [
    # 日志相关
    "configure_logging",
    "LogStage",
    "OutputLevel",

    # 路径相关
    "atomic_write",
    "ensure_directory",
    "safe_path_join",
    "format_size",
    "is_hidden",
    "list_visible_files",
]

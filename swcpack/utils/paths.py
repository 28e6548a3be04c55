"""
路径工具
"""

import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path, PurePath
from typing import Iterator, List, Union

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def _read_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


# 进程启动时读取一次，避免并发写入时临时改动 umask
_UMASK = _read_umask()


def ensure_directory(path: Union[str, Path]) -> Path:
    directory = Path(path)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def safe_path_join(base: Union[str, Path], *parts: Union[str, Path]) -> Path:
    """在 base 之下拼接相对路径

    归档条目名来自外部文件，拼接前拒绝绝对路径和 .. 片段。

    Raises:
        ValueError: 片段会逃出 base
    """
    result = Path(base)
    for part in parts:
        relative = PurePath(part)
        if relative.is_absolute() or relative.anchor:
            raise ValueError(f"不允许使用绝对路径: {part}")
        if ".." in relative.parts:
            raise ValueError(f"检测到目录穿越尝试: {part}")
        result = result.joinpath(relative)
    return result


def is_hidden(path: Path) -> bool:
    return path.name.startswith('.')


def list_visible_files(directory: Path) -> List[Path]:
    """递归列出目录下的可见文件（绝对路径，已排序）

    只过滤以 . 开头的文件本身，隐藏目录中的文件照常列出。
    """
    found = [
        (Path(root) / name).absolute()
        for root, _dirs, names in os.walk(directory)
        for name in names
        if not is_hidden(Path(name))
    ]
    return sorted(found)


@contextmanager
def atomic_write(destination: Union[str, Path], suffix: str = ".tmp") -> Iterator[Path]:
    """在目标目录中准备临时文件，正常退出时替换目标

    替换后的文件沿用原文件的权限，新文件使用 umask 决定的默认权限。
    出现异常时目标保持原样，临时文件总会被清理。
    """
    destination = Path(destination)
    ensure_directory(destination.parent)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{destination.name}.", suffix=suffix, dir=destination.parent)
    os.close(fd)
    temp_path = Path(tmp_name)
    try:
        yield temp_path
        # mkstemp 创建的文件只有属主可读写
        if destination.exists():
            shutil.copymode(destination, temp_path)
        else:
            os.chmod(temp_path, 0o666 & ~_UMASK)
        os.replace(temp_path, destination)
    finally:
        temp_path.unlink(missing_ok=True)


def format_size(size_bytes: int) -> str:
    """把字节数格式化为 "512 B"、"1.5 KB" 这样的字符串"""
    size = float(size_bytes)
    for unit in _SIZE_UNITS[:-1]:
        if size < 1024.0:
            break
        size /= 1024.0
    else:
        unit = _SIZE_UNITS[-1]

    if unit == "B":
        return f"{int(size)} B"
    return f"{size:.1f} {unit}"

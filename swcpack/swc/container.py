"""
SWC 容器读写

SWC 是一个 zip 容器；这里提供解压、读取单个条目以及原子重写。
"""

import zipfile
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..utils.paths import atomic_write, safe_path_join

CATALOG_NAME = "catalog.xml"
LIBRARY_SWF = "library.swf"

# 解压进度回调 (current_bytes, total_bytes, current_name)
ExtractCallback = Callable[[int, int, str], None]


class ContainerError(Exception):
    """容器读写错误"""
    pass


def list_entries(archive: Path) -> List[str]:
    """列出容器内所有条目名称"""
    try:
        with zipfile.ZipFile(archive, 'r') as zf:
            return zf.namelist()
    except (OSError, zipfile.BadZipFile) as e:
        raise ContainerError(f"无法读取容器 {archive}: {e}") from e


def read_entry(archive: Path, name: str) -> bytes:
    """读取容器内的单个条目

    Raises:
        ContainerError: 容器无法读取或条目不存在
    """
    try:
        with zipfile.ZipFile(archive, 'r') as zf:
            return zf.read(name)
    except KeyError as e:
        raise ContainerError(f"容器 {archive} 中不存在条目 {name}") from e
    except (OSError, zipfile.BadZipFile) as e:
        raise ContainerError(f"无法读取容器 {archive}: {e}") from e


def extract_container(
    archive: Path,
    output_dir: Path,
    progress_callback: Optional[ExtractCallback] = None,
) -> int:
    """解压容器到目录

    Returns:
        int: 解压的总字节数

    Raises:
        ContainerError: 解压失败或条目路径越界
    """
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        extracted_bytes = 0

        with zipfile.ZipFile(archive, 'r') as zf:
            total_size = sum(info.file_size for info in zf.infolist())

            for info in zf.infolist():
                if progress_callback:
                    progress_callback(extracted_bytes, total_size, info.filename)

                try:
                    extract_path = safe_path_join(output_dir, info.filename)
                except ValueError as e:
                    raise ContainerError(f"容器条目路径不安全: {info.filename}") from e

                if info.is_dir():
                    extract_path.mkdir(parents=True, exist_ok=True)
                    continue

                extract_path.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info) as src, open(extract_path, 'wb') as dst:
                    while True:
                        chunk = src.read(64 * 1024)
                        if not chunk:
                            break
                        dst.write(chunk)

                extracted_bytes += info.file_size

        return extracted_bytes

    except ContainerError:
        raise
    except (OSError, zipfile.BadZipFile) as e:
        raise ContainerError(f"解压容器失败 {archive}: {e}") from e


def rewrite_container(archive: Path, replacements: Dict[str, bytes]) -> None:
    """重写容器，替换指定条目的内容

    其余条目按原顺序、原压缩方式和原元数据写回，内容逐字节不变。
    先写入同目录下的临时文件，全部成功后才替换原文件。

    Raises:
        ContainerError: 读写失败或要替换的条目不存在
    """
    try:
        # 先完整读入再关闭原文件，Windows 上打开中的文件无法被替换
        with zipfile.ZipFile(archive, 'r') as zin:
            missing = set(replacements) - set(zin.namelist())
            if missing:
                raise ContainerError(f"容器 {archive} 中不存在条目: {', '.join(sorted(missing))}")

            comment = zin.comment
            entries = []
            for info in zin.infolist():
                if info.filename in replacements:
                    entries.append((info, replacements[info.filename]))
                else:
                    entries.append((info, zin.read(info)))

        with atomic_write(archive, suffix=".swc.tmp") as temp_path:
            with zipfile.ZipFile(temp_path, 'w') as zout:
                zout.comment = comment
                for info, data in entries:
                    zout.writestr(info, data)

    except ContainerError:
        raise
    except (OSError, zipfile.BadZipFile) as e:
        raise ContainerError(f"重写容器失败 {archive}: {e}") from e

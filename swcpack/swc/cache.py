"""
归档目录缓存

按归档路径缓存解析后的 catalog.xml，一次流水线运行内只解析一次。
"""

import os
import threading
from pathlib import Path
from typing import Dict, Iterable, Union

from .catalog import ArchiveCatalogEntry, SwcCatalog
from .container import CATALOG_NAME, read_entry, rewrite_container


def _cache_key(archive_path: Union[str, Path]) -> Path:
    return Path(os.path.abspath(archive_path))


class ArchiveCatalogCache:
    """归档目录缓存

    生命周期为一次流水线运行；不同归档路径可以并发访问，
    同一路径的加载和导出串行执行。
    """

    def __init__(self):
        self._catalogs: Dict[Path, SwcCatalog] = {}
        self._locks: Dict[Path, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, key: Path) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def get_catalog(self, archive_path: Union[str, Path]) -> SwcCatalog:
        """获取归档的目录，首次访问时从容器中读取

        Raises:
            ContainerError: 归档无法读取
            CatalogError: 目录无法解析
        """
        key = _cache_key(archive_path)
        with self._lock_for(key):
            catalog = self._catalogs.get(key)
            if catalog is None:
                catalog = SwcCatalog.parse(read_entry(key, CATALOG_NAME))
                self._catalogs[key] = catalog
            return catalog

    def get_group(self, archive_paths: Iterable[Union[str, Path]]) -> Dict[Path, SwcCatalog]:
        """批量获取多个归档的目录"""
        return {_cache_key(p): self.get_catalog(p) for p in archive_paths}

    def get_entry(self, archive_path: Union[str, Path], key: str) -> ArchiveCatalogEntry:
        """获取归档中某个库条目（默认签名模式为未签名）"""
        catalog = self.get_catalog(archive_path)
        return ArchiveCatalogEntry(
            archive_path=_cache_key(archive_path),
            key=key,
            digest=catalog.get_digest(key),
        )

    def is_cached(self, archive_path: Union[str, Path]) -> bool:
        with self._guard:
            return _cache_key(archive_path) in self._catalogs

    def export(self, archive_path: Union[str, Path]) -> None:
        """将缓存中的目录写回归档，其余条目保持不变

        Raises:
            KeyError: 归档目录未被加载
            ContainerError: 写回失败
        """
        key = _cache_key(archive_path)
        with self._lock_for(key):
            catalog = self._catalogs[key]
            rewrite_container(key, {CATALOG_NAME: catalog.to_bytes()})

    def clear(self) -> None:
        with self._guard:
            self._catalogs.clear()
            self._locks.clear()

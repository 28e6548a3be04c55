"""
库条目构建器

累积一个输出库（主库或某个区域的资源包）要包含的条目。
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit


class EntryKind(str, Enum):
    """条目类型枚举"""
    CLASS = "class"
    NAMESPACE = "namespace"
    SOURCE = "source"
    FILE = "file"
    RESOURCE_BUNDLE = "resource-bundle"
    STYLESHEET = "stylesheet"


@dataclass(frozen=True)
class ArchiveEntry:
    """库条目

    name 的含义随类型变化：类名、命名空间 URI、库内文件名、资源包名或样式表名。
    条目不携带摘要，摘要只针对打包后的程序映像计算。
    """
    kind: EntryKind
    name: str
    path: Optional[Path] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {'kind': self.kind.value, 'name': self.name}
        if self.path is not None:
            data['path'] = str(self.path).replace('\\', '/')
        return data


@dataclass
class ArchiveSpec:
    """交给编译器的完整构建请求"""
    entries: List[ArchiveEntry]
    output: Path
    source_paths: List[Path] = field(default_factory=list)
    library_paths: List[Path] = field(default_factory=list)
    locales: List[str] = field(default_factory=list)
    debug: bool = True
    compute_digest: bool = True
    directory: Optional[Path] = None

    def entries_of(self, kind: EntryKind) -> List[ArchiveEntry]:
        return [entry for entry in self.entries if entry.kind == kind]

    def to_dict(self) -> Dict[str, Any]:
        """转换为可序列化为 JSON 的字典"""
        return {
            'output': str(self.output),
            'source_paths': [str(p) for p in self.source_paths],
            'library_paths': [str(p) for p in self.library_paths],
            'locales': list(self.locales),
            'debug': self.debug,
            'compute_digest': self.compute_digest,
            'directory': str(self.directory) if self.directory else None,
            'entries': [entry.to_dict() for entry in self.entries],
        }


# RFC 3986 允许出现在 URI 中的字符（含百分号编码）
_URI_CHARS = re.compile(r"^[A-Za-z0-9\-._~:/?#\[\]@!$&'()*+,;=%]+$")
_PERCENT_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")


def parse_namespace_uri(uri: str) -> str:
    """解析命名空间 URI

    Returns:
        str: 原样返回的 URI

    Raises:
        ValueError: URI 无法解析
    """
    if not uri or not _URI_CHARS.match(uri):
        raise ValueError(f"URI 包含非法字符: {uri!r}")
    if _PERCENT_ESCAPE.search(uri):
        raise ValueError(f"URI 百分号编码不完整: {uri!r}")

    parts = urlsplit(uri)
    if ':' in uri.split('/', 1)[0] and not _SCHEME.match(parts.scheme or ''):
        raise ValueError(f"URI scheme 不合法: {uri!r}")
    # 访问 port 会校验端口号，非法时抛出 ValueError
    _ = parts.port
    return uri


class ArchiveBuilder:
    """库条目累积器

    一个实例对应一个输出库；编译之前独占它累积的条目。
    """

    def __init__(self, output: Path, directory: Optional[Path] = None):
        self.output = Path(output)
        self.directory = directory
        self._entries: List[ArchiveEntry] = []

    @property
    def entries(self) -> List[ArchiveEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def add_component(self, class_name: str) -> None:
        """按类名包含组件"""
        self._entries.append(ArchiveEntry(EntryKind.CLASS, class_name))

    def add_namespace(self, uri: str) -> None:
        """按命名空间包含组件

        Raises:
            ValueError: URI 无法解析
        """
        self._entries.append(ArchiveEntry(EntryKind.NAMESPACE, parse_namespace_uri(uri)))

    def add_source(self, source_root: Path) -> None:
        """包含整个源码根下的组件"""
        self._entries.append(ArchiveEntry(EntryKind.SOURCE, str(source_root), Path(source_root)))

    def add_archive_file(self, name: str, file_path: Path) -> None:
        """以指定库内名称包含原始文件"""
        self._entries.append(ArchiveEntry(EntryKind.FILE, name, Path(file_path)))

    def add_resource_bundle(self, bundle: str) -> None:
        """包含资源包引用"""
        self._entries.append(ArchiveEntry(EntryKind.RESOURCE_BUNDLE, bundle))

    def add_stylesheet(self, name: str, path: Path) -> None:
        """包含样式表"""
        self._entries.append(ArchiveEntry(EntryKind.STYLESHEET, name, Path(path)))

    def to_spec(
        self,
        source_paths: List[Path],
        library_paths: List[Path],
        locales: List[str],
        debug: bool = True,
        compute_digest: bool = True,
    ) -> ArchiveSpec:
        """生成编译请求"""
        return ArchiveSpec(
            entries=self.entries,
            output=self.output,
            source_paths=list(source_paths),
            library_paths=list(library_paths),
            locales=list(locales),
            debug=debug,
            compute_digest=compute_digest,
            directory=self.directory,
        )

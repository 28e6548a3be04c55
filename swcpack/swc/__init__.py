"""SWC 容器与目录模块

提供 SWC 容器读写、catalog.xml 摘要记录修改以及目录缓存。
"""

from .cache import ArchiveCatalogCache
from .catalog import (
    ArchiveCatalogEntry,
    CatalogError,
    DigestRecord,
    SwcCatalog,
    DIGEST_ALGORITHM,
    SWC_NAMESPACE,
)
from .container import (
    CATALOG_NAME,
    LIBRARY_SWF,
    ContainerError,
    extract_container,
    list_entries,
    read_entry,
    rewrite_container,
)

__all__ = [
    "ArchiveCatalogCache",
    "ArchiveCatalogEntry",
    "CatalogError",
    "DigestRecord",
    "SwcCatalog",
    "DIGEST_ALGORITHM",
    "SWC_NAMESPACE",
    "CATALOG_NAME",
    "LIBRARY_SWF",
    "ContainerError",
    "extract_container",
    "list_entries",
    "read_entry",
    "rewrite_container",
]

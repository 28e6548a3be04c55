"""构建服务模块

提供库组装、编译、区域资源包和摘要修补的核心功能。
"""

from .archive_builder import ArchiveBuilder, ArchiveEntry, ArchiveSpec, EntryKind
from .artifacts import (
    AttachedArtifact,
    LocalRepositoryResolver,
    ProjectArtifacts,
    install_artifacts,
)
from .assembler import IncludeAssembler, default_include_set
from .build_context import (
    ArchiveIOError,
    BuildContext,
    BuildError,
    ConfigurationError,
    DigestContext,
    TransformError,
    TransformTimeout,
)
from .builder import Builder, BuildResult
from .digest_pipeline import DigestPipeline
from .locale_bundles import LocaleBundleGenerator, LocaleBundleRequest
from .orchestrator import BuildOrchestrator
from .path_resolver import PathResolver
from .transforms import Sha256Digester, create_compiler, create_digester, create_optimizer

__all__ = [
    # 主构建器
    "Builder",
    "BuildResult",
    "BuildOrchestrator",
    "DigestPipeline",

    # 条目组装
    "ArchiveBuilder",
    "ArchiveEntry",
    "ArchiveSpec",
    "EntryKind",
    "IncludeAssembler",
    "PathResolver",
    "default_include_set",

    # 区域资源包
    "LocaleBundleGenerator",
    "LocaleBundleRequest",

    # 制品
    "AttachedArtifact",
    "LocalRepositoryResolver",
    "ProjectArtifacts",
    "install_artifacts",

    # 外部变换
    "Sha256Digester",
    "create_compiler",
    "create_digester",
    "create_optimizer",

    # 上下文与异常
    "BuildContext",
    "DigestContext",
    "BuildError",
    "ConfigurationError",
    "ArchiveIOError",
    "TransformError",
    "TransformTimeout",
]

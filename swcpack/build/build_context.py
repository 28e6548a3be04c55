"""
构建上下文模块

定义构建过程中的共享数据结构和异常类。
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional, TYPE_CHECKING

from ..config.schema import SwcpackConfig

if TYPE_CHECKING:
    from ..swc.cache import ArchiveCatalogCache
    from ..swc.catalog import DigestRecord
    from .archive_builder import ArchiveBuilder
    from .artifacts import ProjectArtifacts
    from .transforms import Compiler, Digester, Optimizer

# 进度回调类型
ProgressCallback = Callable[[str, int, int, str], None]


class BuildError(Exception):
    """构建错误"""
    pass


class ConfigurationError(BuildError):
    """配置错误：缺失或无效的包含项、文件不存在等"""
    pass


class ArchiveIOError(BuildError):
    """归档或清单读写错误"""
    pass


class TransformError(BuildError):
    """外部编译/优化/摘要调用失败"""
    pass


class TransformTimeout(TransformError):
    """外部调用超时"""
    pass


@dataclass
class BuildContext:
    """库构建上下文，包含组装和编译过程中的共享数据"""
    config: SwcpackConfig
    output_path: Path
    compiler: 'Compiler'
    artifacts: 'ProjectArtifacts'
    progress_callback: Optional[ProgressCallback] = None

    # 构建过程中生成的数据
    builder: Optional['ArchiveBuilder'] = None
    archive_path: Optional[Path] = None
    locale_outputs: Dict[str, Path] = field(default_factory=dict)

    build_stats: Dict[str, Any] = None  # type: ignore

    def __post_init__(self):
        if self.build_stats is None:
            self.build_stats = {
                'start_time': 0,
                'end_time': 0,
                'total_entries': 0,
                'archive_size': 0,
                'locale_bundles': 0,
            }

    def report(self, stage: str, progress: int, message: str = "") -> None:
        """向回调报告进度（未设置回调时忽略）"""
        if self.progress_callback:
            self.progress_callback(stage, progress, 100, message)


@dataclass
class DigestContext:
    """摘要修补上下文，对应一个已打包的归档"""
    config: SwcpackConfig
    archive_path: Path
    optimizer: 'Optimizer'
    digester: 'Digester'
    artifacts: 'ProjectArtifacts'
    catalog_cache: 'ArchiveCatalogCache'
    progress_callback: Optional[ProgressCallback] = None
    # 优化映像的名称，None 表示取归档文件名
    publish_name: Optional[str] = None

    # 流水线过程中生成的数据
    scratch_dir: Optional[Path] = None
    library_image: Optional[Path] = None
    optimized_data: Optional[bytes] = None
    digest: Optional['DigestRecord'] = None
    optimized_path: Optional[Path] = None

    build_stats: Dict[str, Any] = None  # type: ignore

    def __post_init__(self):
        if self.build_stats is None:
            self.build_stats = {
                'start_time': 0,
                'end_time': 0,
                'original_size': 0,
                'optimized_size': 0,
            }

    def report(self, stage: str, progress: int, message: str = "") -> None:
        if self.progress_callback:
            self.progress_callback(stage, progress, 100, message)


"""
路径解析器

为原始文件查找所属的根目录，并计算它在库内的相对名称。
"""

import os
from pathlib import Path
from typing import List, Optional, Sequence

from ..config.schema import SwcpackConfig


class PathResolver:
    """按优先级查找文件所属根目录

    候选列表依次为：源码路径、编译源码根（执行期覆盖优先）、资源目录，
    最后回退到项目根目录。每个列表内按顺序比较字符串前缀，第一个命中即返回，
    不比较匹配长度。
    """

    def __init__(
        self,
        source_paths: Sequence[Path],
        compile_source_roots: Sequence[Path],
        resources: Sequence[Path],
        base_dir: Path,
        execution_source_roots: Optional[Sequence[Path]] = None,
    ):
        self.source_paths = list(source_paths)
        self.compile_source_roots = list(compile_source_roots)
        self.execution_source_roots = list(execution_source_roots) if execution_source_roots is not None else None
        self.resources = list(resources)
        self.base_dir = Path(base_dir)

    @classmethod
    def from_config(cls, config: SwcpackConfig) -> 'PathResolver':
        compiler = config.compiler
        return cls(
            source_paths=compiler.source_paths,
            compile_source_roots=compiler.compile_source_roots,
            resources=compiler.resources,
            base_dir=config.base_dir,
            execution_source_roots=compiler.execution_source_roots,
        )

    def candidate_lists(self) -> List[List[Path]]:
        """按优先级返回候选根目录列表"""
        if self.execution_source_roots is not None:
            source_roots = self.execution_source_roots
        else:
            source_roots = self.compile_source_roots

        return [
            self.source_paths,
            source_roots,
            self.resources,
        ]

    def resolve(self, file_path: Path) -> Path:
        """查找文件所属的根目录，找不到时返回项目根目录"""
        absolute_path = os.path.abspath(file_path)

        for roots in self.candidate_lists():
            for root in roots:
                if absolute_path.startswith(os.path.abspath(root)):
                    return Path(root)

        return self.base_dir

    def archive_name(self, file_path: Path) -> str:
        """计算文件在库内的名称

        相对路径越出所属根目录时（项目外部的文件），直接放在库根目录下。
        """
        folder = self.resolve(file_path)
        try:
            relative_path = os.path.relpath(os.path.abspath(file_path), os.path.abspath(folder))
        except ValueError:
            # Windows 上跨盘符无法计算相对路径
            relative_path = '..'
        if relative_path.startswith('..'):
            relative_path = Path(file_path).name

        return relative_path.replace('\\', '/')

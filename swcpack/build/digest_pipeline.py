"""
摘要修补流水线

对已打包的归档执行：解压 → 优化 → 计算摘要 → 修补目录 → 重新导出 → 发布。
"""

import os
import tempfile
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from ..config.schema import Packaging, SwcpackConfig
from ..swc.cache import ArchiveCatalogCache
from ..utils import format_size
from ..utils.logging import info, success, warning, error, LogStage
from .artifacts import ProjectArtifacts
from .build_context import BuildError, DigestContext, ProgressCallback
from .steps.build_step import BuildStep, validate_steps
from .steps.digest_steps import default_digest_steps
from .transforms import Digester, Optimizer


def publish_names(config: SwcpackConfig, archives: Sequence[Path]) -> List[str]:
    """为每个归档分配优化映像的名称（输出文件名和分类器）

    文件名唯一时直接使用；多个归档同名时加上所在目录名，仍然重复再加序号。
    主归档总是保留自己的文件名。
    """
    primary = os.path.abspath(config.get_output())
    counts = Counter(archive.stem for archive in archives)

    def keeps_stem(archive: Path) -> bool:
        return counts[archive.stem] == 1 or os.path.abspath(archive) == primary

    taken = {archive.stem for archive in archives if keeps_stem(archive)}
    names = []
    for archive in archives:
        if keeps_stem(archive):
            names.append(archive.stem)
            continue

        base = f"{archive.parent.name}-{archive.stem}"
        name, index = base, 2
        while name in taken:
            name = f"{base}-{index}"
            index += 1
        taken.add(name)
        names.append(name)
    return names


class DigestPipeline:
    """摘要修补流水线

    每次 execute 使用独立的临时目录，任何退出路径上都会被删除。
    """

    def __init__(self):
        self._steps: List[BuildStep] = default_digest_steps()

    def add_step(self, step: BuildStep, position: Optional[int] = None):
        if position is None:
            self._steps.append(step)
        else:
            self._steps.insert(position, step)

    def remove_step(self, step_name: str):
        self._steps = [step for step in self._steps if step.name != step_name]

    def get_steps(self) -> List[BuildStep]:
        return self._steps.copy()

    def validate_pipeline(self) -> List[str]:
        return validate_steps(self._steps)

    def execute(
        self,
        config: SwcpackConfig,
        archive_path: Path,
        optimizer: Optimizer,
        digester: Digester,
        artifacts: Optional[ProjectArtifacts] = None,
        catalog_cache: Optional[ArchiveCatalogCache] = None,
        progress_callback: Optional[ProgressCallback] = None,
        publish_name: Optional[str] = None,
    ) -> Optional[DigestContext]:
        """处理一个归档

        publish_name 指定优化映像的名称，默认取归档文件名。

        Returns:
            Optional[DigestContext]: 流水线上下文；非 swc 打包类型跳过时返回 None

        Raises:
            BuildError: 任一步骤失败
        """
        if config.project.packaging != Packaging.SWC:
            warning(
                f"打包类型为 {config.project.packaging.value}，只有 swc 需要优化，跳过",
                stage=LogStage.OPTIMIZE,
            )
            return None

        context = DigestContext(
            config=config,
            archive_path=Path(archive_path),
            optimizer=optimizer,
            digester=digester,
            artifacts=artifacts if artifacts is not None else ProjectArtifacts(),
            catalog_cache=catalog_cache if catalog_cache is not None else ArchiveCatalogCache(),
            progress_callback=progress_callback,
            publish_name=publish_name,
        )
        context.build_stats['start_time'] = time.time()

        try:
            info(f"开始优化归档: {context.archive_path}", stage=LogStage.INIT)
            with tempfile.TemporaryDirectory(prefix="swcpack_digest_") as scratch:
                context.scratch_dir = Path(scratch)
                for step in self._steps:
                    step.execute(context)

            # 临时目录已删除
            context.scratch_dir = None
            context.library_image = None

            context.build_stats['end_time'] = time.time()
            elapsed = context.build_stats['end_time'] - context.build_stats['start_time']
            success(f"归档优化完成: {context.archive_path.name}", stage=LogStage.DONE)
            info(f"耗时: {elapsed:.1f}秒")
            info(f"映像大小: {format_size(context.build_stats['original_size'])} -> "
                 f"{format_size(context.build_stats['optimized_size'])}")
            return context

        except BuildError as e:
            context.build_stats['end_time'] = time.time()
            error(f"优化失败: {e}", stage=LogStage.DONE)
            raise
        except Exception as e:
            context.build_stats['end_time'] = time.time()
            error(f"优化失败: {e}", stage=LogStage.DONE)
            raise BuildError(f"优化失败: {e}") from e

    def run_many(
        self,
        config: SwcpackConfig,
        archives: Iterable[Path],
        optimizer: Optimizer,
        digester: Digester,
        artifacts: Optional[ProjectArtifacts] = None,
        workers: Optional[int] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> List[DigestContext]:
        """并发处理多个归档，共享同一个目录缓存

        重复的路径只处理一次；同名归档各自发布到不同的优化映像。
        按输入顺序返回结果，第一个失败的归档抛出异常。
        """
        unique: List[Path] = []
        seen = set()
        for archive in archives:
            key = os.path.abspath(archive)
            if key not in seen:
                seen.add(key)
                unique.append(Path(archive))

        artifacts = artifacts if artifacts is not None else ProjectArtifacts()
        cache = ArchiveCatalogCache()
        workers = workers or config.optimizer.workers
        jobs = list(zip(unique, publish_names(config, unique)))

        def run(archive: Path, name: str) -> Optional[DigestContext]:
            return self.execute(config, archive, optimizer, digester, artifacts, cache, progress_callback, name)

        try:
            if workers <= 1 or len(unique) <= 1:
                results = [run(archive, name) for archive, name in jobs]
            else:
                with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="swcpack-digest") as executor:
                    futures = [executor.submit(run, archive, name) for archive, name in jobs]
                    results = [future.result() for future in futures]
        finally:
            cache.clear()

        return [context for context in results if context is not None]

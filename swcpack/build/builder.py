"""
构建器主类

对外提供统一的构建接口：库构建、归档优化和本地安装，
失败时返回 success=False 的结果而不是抛出异常。
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from ..config.schema import SwcpackConfig
from ..utils.logging import info, warning, LogStage
from .artifacts import (
    ArtifactResolver,
    AttachedArtifact,
    ProjectArtifacts,
    install_artifacts,
)
from .build_context import BuildError, ProgressCallback
from .digest_pipeline import DigestPipeline
from .locale_bundles import LOCALE_BUNDLE_KIND, locale_bundle_output
from .orchestrator import BuildOrchestrator
from .steps.digest_steps import OPTIMIZED_KIND
from .transforms import (
    Compiler,
    Digester,
    Optimizer,
    create_compiler,
    create_digester,
    create_optimizer,
)


@dataclass
class BuildResult:
    """构建结果"""
    success: bool
    output_path: Optional[Path] = None
    output_size: Optional[int] = None
    build_time: Optional[float] = None
    artifacts: List[AttachedArtifact] = field(default_factory=list)
    digests: List[str] = field(default_factory=list)
    installed: List[Path] = field(default_factory=list)
    error: Optional[str] = None


class Builder:
    """swcpack 构建器

    编译器、优化器和摘要计算器可以直接注入；未注入时按配置创建。
    """

    def __init__(
        self,
        compiler: Optional[Compiler] = None,
        optimizer: Optional[Optimizer] = None,
        digester: Optional[Digester] = None,
        artifact_resolver: Optional[ArtifactResolver] = None,
    ):
        self.compiler = compiler
        self.optimizer = optimizer
        self.digester = digester
        self.orchestrator = BuildOrchestrator(artifact_resolver)
        self.digest_pipeline = DigestPipeline()

    def _optimizer_configured(self, config: SwcpackConfig) -> bool:
        return (
            self.optimizer is not None
            or bool(config.optimizer.command)
            or bool(config.optimizer.entry_point)
        )

    def build(
        self,
        config: SwcpackConfig,
        progress_callback: Optional[ProgressCallback] = None,
        skip_optimize: bool = False,
    ) -> BuildResult:
        """构建库，随后（按配置）优化主归档

        Returns:
            BuildResult: 构建结果
        """
        start_time = time.time()
        artifacts = ProjectArtifacts()

        try:
            compiler = self.compiler or create_compiler(config)
            context = self.orchestrator.execute(
                config,
                compiler,
                artifacts=artifacts,
                progress_callback=progress_callback,
            )

            digests = []
            if not skip_optimize and config.optimizer.enabled:
                if self._optimizer_configured(config):
                    digest_context = self.digest_pipeline.execute(
                        config,
                        context.archive_path,
                        self.optimizer or create_optimizer(config),
                        self.digester or create_digester(config),
                        artifacts=artifacts,
                        progress_callback=progress_callback,
                    )
                    if digest_context is not None and digest_context.digest is not None:
                        digests.append(digest_context.digest.hexdigest)
                else:
                    info("未配置优化器，跳过优化", stage=LogStage.OPTIMIZE)

            output_path = artifacts.primary
            return BuildResult(
                success=True,
                output_path=output_path,
                output_size=output_path.stat().st_size if output_path and output_path.exists() else None,
                build_time=time.time() - start_time,
                artifacts=artifacts.attached,
                digests=digests,
            )

        except BuildError as e:
            return BuildResult(
                success=False,
                build_time=time.time() - start_time,
                error=str(e),
            )

    def optimize(
        self,
        config: SwcpackConfig,
        archives: Optional[Sequence[Path]] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> BuildResult:
        """对已打包的归档执行摘要修补流水线

        未指定归档时处理主输出。
        """
        start_time = time.time()
        artifacts = ProjectArtifacts()
        targets = list(archives) if archives else [config.get_output()]

        try:
            contexts = self.digest_pipeline.run_many(
                config,
                targets,
                self.optimizer or create_optimizer(config),
                self.digester or create_digester(config),
                artifacts=artifacts,
                progress_callback=progress_callback,
            )
            return BuildResult(
                success=True,
                output_path=targets[0],
                output_size=targets[0].stat().st_size if targets[0].exists() else None,
                build_time=time.time() - start_time,
                artifacts=artifacts.attached,
                digests=[c.digest.hexdigest for c in contexts if c.digest is not None],
            )

        except BuildError as e:
            return BuildResult(
                success=False,
                build_time=time.time() - start_time,
                error=str(e),
            )

    def install(self, config: SwcpackConfig, artifacts: Optional[ProjectArtifacts] = None) -> BuildResult:
        """把构建输出安装到本地仓库

        未传入 artifacts 时从构建目录中查找已有的输出。
        """
        start_time = time.time()
        try:
            if artifacts is None:
                artifacts = discover_artifacts(config)
            installed = install_artifacts(config, artifacts)
            return BuildResult(
                success=True,
                output_path=artifacts.primary,
                build_time=time.time() - start_time,
                artifacts=artifacts.attached,
                installed=installed,
            )
        except BuildError as e:
            return BuildResult(
                success=False,
                build_time=time.time() - start_time,
                error=str(e),
            )

    def get_orchestrator(self) -> BuildOrchestrator:
        """获取库构建编排器，用于自定义构建流程"""
        return self.orchestrator

    def get_digest_pipeline(self) -> DigestPipeline:
        return self.digest_pipeline

    def validate_build_pipeline(self) -> List[str]:
        """验证两条流水线的完整性

        Returns:
            List[str]: 验证错误列表，空列表表示验证通过
        """
        return self.orchestrator.validate_pipeline() + self.digest_pipeline.validate_pipeline()


def discover_artifacts(config: SwcpackConfig) -> ProjectArtifacts:
    """根据构建目录中已有的文件重建制品列表"""
    artifacts = ProjectArtifacts()
    primary = config.get_output()
    artifacts.set_primary(primary)

    for locale in config.compiler.runtime_locales:
        bundle = locale_bundle_output(config, locale)
        if bundle.exists():
            artifacts.attach(LOCALE_BUNDLE_KIND, locale, bundle)
        else:
            warning(f"未找到 {locale} 资源包: {bundle}", stage=LogStage.INSTALL)

    optimized = config.build_dir / f"{primary.stem}.swf"
    if optimized.exists():
        artifacts.attach(OPTIMIZED_KIND, None, optimized)

    return artifacts

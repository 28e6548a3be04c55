"""
库构建编排模块

使用管道模式依次执行组装、编译和区域资源包步骤。
"""

import time
from pathlib import Path
from typing import List, Optional

from ..config.schema import SwcpackConfig
from ..utils import format_size
from ..utils.logging import info, success, error, debug, LogStage
from .artifacts import ArtifactResolver, ProjectArtifacts
from .build_context import BuildContext, BuildError, ProgressCallback
from .steps.build_step import BuildStep, validate_steps
from .steps.compile_step import CompileStep
from .steps.include_assembly_step import IncludeAssemblyStep
from .steps.locale_bundle_step import LocaleBundleStep
from .transforms import Compiler


class BuildOrchestrator:
    """库构建编排器，负责协调构建步骤的执行"""

    def __init__(self, artifact_resolver: Optional[ArtifactResolver] = None):
        self.artifact_resolver = artifact_resolver
        self._steps: List[BuildStep] = []
        self._init_default_steps()

    def _init_default_steps(self):
        self._steps = [
            IncludeAssemblyStep(self.artifact_resolver),
            CompileStep(),
            LocaleBundleStep(),
        ]

    def add_step(self, step: BuildStep, position: Optional[int] = None):
        """添加构建步骤"""
        if position is None:
            self._steps.append(step)
        else:
            self._steps.insert(position, step)

    def remove_step(self, step_name: str):
        """移除构建步骤"""
        self._steps = [step for step in self._steps if step.name != step_name]

    def get_steps(self) -> List[BuildStep]:
        """获取所有构建步骤"""
        return self._steps.copy()

    def execute(
        self,
        config: SwcpackConfig,
        compiler: Compiler,
        artifacts: Optional[ProjectArtifacts] = None,
        output_path: Optional[Path] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> BuildContext:
        """执行库构建

        Returns:
            BuildContext: 构建上下文，包含所有构建结果

        Raises:
            BuildError: 构建失败
        """
        context = BuildContext(
            config=config,
            output_path=output_path or config.get_output(),
            compiler=compiler,
            artifacts=artifacts if artifacts is not None else ProjectArtifacts(),
            progress_callback=progress_callback,
        )

        context.build_stats['start_time'] = time.time()

        try:
            info(f"开始构建库: {context.output_path}", stage=LogStage.INIT)
            debug(
                f"构建配置: packaging={config.project.packaging.value} "
                f"locales={','.join(config.compiler.locales)} "
                f"runtime_locales={','.join(config.compiler.runtime_locales) or '-'}",
                stage=LogStage.INIT,
            )

            for step in self._steps:
                info(f"执行步骤: {step.description}", stage=LogStage.INIT)
                step.execute(context)

            context.build_stats['end_time'] = time.time()
            build_time = context.build_stats['end_time'] - context.build_stats['start_time']

            success(f"库构建成功: {context.output_path}", stage=LogStage.DONE)
            info(f"构建时间: {build_time:.1f}秒")
            info(f"条目数量: {context.build_stats['total_entries']}")
            info(f"库大小: {format_size(context.build_stats['archive_size'])}")
            if context.locale_outputs:
                info(f"区域资源包: {', '.join(context.locale_outputs)}")

            return context

        except BuildError as e:
            context.build_stats['end_time'] = time.time()
            error(f"构建失败: {e}", stage=LogStage.DONE)
            raise
        except Exception as e:
            context.build_stats['end_time'] = time.time()
            error(f"构建失败: {e}", stage=LogStage.DONE)
            raise BuildError(f"构建失败: {e}") from e

    def validate_pipeline(self) -> List[str]:
        """验证构建管道的完整性

        Returns:
            List[str]: 验证错误列表，空列表表示验证通过
        """
        return validate_steps(self._steps)

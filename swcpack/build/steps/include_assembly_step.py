"""
包含项组装步骤模块

确定库中要包含的条目；未配置任何包含项时推断默认包含集。
"""

from typing import Optional, Tuple

from ...utils.logging import info, success, warning, debug, error, LogStage
from ..archive_builder import ArchiveBuilder
from ..artifacts import ArtifactResolver, LocalRepositoryResolver
from ..assembler import IncludeAssembler, resolve_include_set
from ..build_context import BuildContext, BuildError
from .build_step import BuildStep


class IncludeAssemblyStep(BuildStep[BuildContext]):
    """包含项组装步骤"""

    def __init__(self, artifact_resolver: Optional[ArtifactResolver] = None):
        super().__init__("assemble", "组装库条目")
        self.artifact_resolver = artifact_resolver

    def get_progress_range(self) -> Tuple[int, int]:
        return (0, 40)

    def execute(self, context: BuildContext) -> None:
        config = context.config
        progress_start, progress_end = self.get_progress_range()
        info(f"组装库条目: {context.output_path.name}", stage=LogStage.ASSEMBLE)
        context.report("组装条目", progress_start, "解析包含项...")

        try:
            resolver = self.artifact_resolver or LocalRepositoryResolver(config.repositories)
            builder = ArchiveBuilder(context.output_path, config.compiler.directory)

            include = resolve_include_set(config)
            IncludeAssembler(config, artifact_resolver=resolver).assemble(include, builder)

            if config.compiler.add_descriptor:
                descriptor = config.project.descriptor
                if not descriptor.exists():
                    warning(f"构建描述文件不存在: {descriptor}", stage=LogStage.ASSEMBLE)
                builder.add_archive_file(config.descriptor_entry_name(), descriptor)

            context.builder = builder
            context.build_stats['total_entries'] = len(builder)

            for idx, entry in enumerate(builder.entries[:20]):
                debug(f"条目[{idx}]: {entry.kind.value} {entry.name}", stage=LogStage.ASSEMBLE)

            context.report("组装条目", progress_end, f"共 {len(builder)} 个条目")
            success(f"条目组装完成: {len(builder)} 个条目", stage=LogStage.ASSEMBLE)

        except BuildError as e:
            error(f"组装失败: {e}", stage=LogStage.ASSEMBLE)
            raise
        except Exception as e:
            error(f"组装过程异常: {e}", stage=LogStage.ASSEMBLE)
            raise BuildError(f"组装过程异常: {e}") from e

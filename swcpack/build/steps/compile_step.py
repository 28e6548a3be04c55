"""
编译步骤模块

把组装好的条目交给编译器，生成库文件。
"""

from typing import Tuple

from ...utils import format_size
from ...utils.logging import info, success, debug, error, LogStage
from ..build_context import BuildContext, BuildError, TransformError
from ..transforms import call_with_timeout
from .build_step import BuildStep


class CompileStep(BuildStep[BuildContext]):
    """编译步骤

    primary 为 True 时把输出登记为项目主制品；区域资源包构建不登记。
    """

    def __init__(self, primary: bool = True):
        super().__init__("compile", "编译库")
        self.primary = primary

    def get_progress_range(self) -> Tuple[int, int]:
        return (40, 80)

    def execute(self, context: BuildContext) -> None:
        if context.builder is None:
            raise BuildError("尚未组装库条目，无法编译")

        compiler_config = context.config.compiler
        progress_start, progress_end = self.get_progress_range()
        info(f"编译库: {context.output_path}", stage=LogStage.COMPILE)
        context.report("编译", progress_start, "调用编译器...")

        try:
            spec = context.builder.to_spec(
                source_paths=compiler_config.source_paths,
                library_paths=compiler_config.library_paths,
                locales=compiler_config.locales,
                debug=compiler_config.debug,
                compute_digest=compiler_config.compute_digest,
            )
            debug(
                f"编译请求: entries={len(spec.entries)} sources={len(spec.source_paths)} "
                f"libraries={len(spec.library_paths)} locales={','.join(spec.locales)}",
                stage=LogStage.COMPILE,
            )

            archive_path = call_with_timeout(
                "编译", context.compiler.build, spec,
                timeout=compiler_config.timeout_sec, stage=LogStage.COMPILE,
            )
            if archive_path is None or not archive_path.exists():
                raise TransformError(f"编译未生成输出文件: {archive_path}")

            context.archive_path = archive_path
            context.build_stats['archive_size'] = archive_path.stat().st_size
            if self.primary:
                context.artifacts.set_primary(archive_path)

            context.report("编译", progress_end, f"输出大小: {format_size(context.build_stats['archive_size'])}")
            success(f"编译完成: {archive_path.name}", stage=LogStage.COMPILE)

        except BuildError as e:
            error(f"编译失败: {e}", stage=LogStage.COMPILE)
            raise
        except Exception as e:
            error(f"编译过程异常: {e}", stage=LogStage.COMPILE)
            raise BuildError(f"编译过程异常: {e}") from e

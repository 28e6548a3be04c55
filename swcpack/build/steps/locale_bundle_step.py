"""
区域资源包步骤模块

主库编译完成后，为每个运行时区域生成独立的资源包。
"""

from typing import Tuple

from ...utils.logging import info, error, LogStage
from ..build_context import BuildContext, BuildError
from ..locale_bundles import LocaleBundleGenerator
from .build_step import BuildStep


class LocaleBundleStep(BuildStep[BuildContext]):
    """区域资源包步骤"""

    def __init__(self):
        super().__init__("locales", "生成区域资源包")

    def get_progress_range(self) -> Tuple[int, int]:
        return (80, 100)

    def execute(self, context: BuildContext) -> None:
        progress_start, progress_end = self.get_progress_range()
        runtime_locales = context.config.compiler.runtime_locales

        if not runtime_locales:
            context.report("区域资源包", progress_end, "未配置运行时区域")
            return

        if context.archive_path is None:
            raise BuildError("主库尚未编译，无法生成区域资源包")

        info(f"生成区域资源包: {', '.join(runtime_locales)}", stage=LogStage.LOCALE)
        context.report("区域资源包", progress_start, f"{len(runtime_locales)} 个区域")

        try:
            generator = LocaleBundleGenerator(context.config, context.compiler, context.artifacts)
            context.locale_outputs = generator.generate(context.archive_path)
            context.build_stats['locale_bundles'] = len(context.locale_outputs)
            context.report("区域资源包", progress_end, f"已生成 {len(context.locale_outputs)} 个资源包")

        except BuildError as e:
            error(f"区域资源包生成失败: {e}", stage=LogStage.LOCALE)
            raise
        except Exception as e:
            error(f"区域资源包生成异常: {e}", stage=LogStage.LOCALE)
            raise BuildError(f"区域资源包生成异常: {e}") from e

"""
摘要修补步骤模块

解压 → 优化 → 计算摘要 → 修补目录 → 重新导出 → 发布优化映像。
任一步骤失败都会中止流水线，不做重试，也不发布部分结果。
"""

import os
from typing import Tuple

from ...swc.catalog import CatalogError
from ...swc.container import LIBRARY_SWF, ContainerError, extract_container
from ...utils import format_size
from ...utils.logging import info, success, debug, error, LogStage
from ...utils.paths import atomic_write
from ..build_context import ArchiveIOError, BuildError, ConfigurationError, DigestContext
from ..transforms import call_with_timeout
from .build_step import BuildStep

OPTIMIZED_KIND = "swf"


class DigestStep(BuildStep[DigestContext]):
    """摘要流水线步骤的公共部分：统一的错误转换和日志"""

    stage = LogStage.DIGEST

    def execute(self, context: DigestContext) -> None:
        try:
            self.run(context)
        except (ContainerError, CatalogError) as e:
            error(f"{self.description}失败: {e}", stage=self.stage)
            raise ArchiveIOError(f"{self.description}失败 {context.archive_path}: {e}") from e
        except BuildError as e:
            error(f"{self.description}失败: {e}", stage=self.stage)
            raise
        except Exception as e:
            error(f"{self.description}过程异常: {e}", stage=self.stage)
            raise BuildError(f"{self.description}过程异常: {e}") from e

    def run(self, context: DigestContext) -> None:
        raise NotImplementedError


class ExtractStep(DigestStep):
    """解压归档，定位程序映像"""

    stage = LogStage.EXTRACT

    def __init__(self):
        super().__init__("extract", "解压归档")

    def get_progress_range(self) -> Tuple[int, int]:
        return (0, 20)

    def run(self, context: DigestContext) -> None:
        archive = context.archive_path
        if not archive.exists():
            raise ConfigurationError(f"Library file not found: {archive}")
        if context.scratch_dir is None:
            raise BuildError("未设置临时目录")

        progress_start, progress_end = self.get_progress_range()
        info(f"解压归档: {archive}", stage=self.stage)

        def extract_progress(current: int, total: int, name: str) -> None:
            if total > 0:
                progress = progress_start + int((current / total) * (progress_end - progress_start))
                context.report("解压", progress, f"解压: {name}")

        extracted = extract_container(archive, context.scratch_dir, extract_progress)
        debug(f"解压 {format_size(extracted)} 到 {context.scratch_dir}", stage=self.stage)

        image = context.scratch_dir / LIBRARY_SWF
        if not image.is_file():
            raise ConfigurationError(f"归档中没有程序映像 {LIBRARY_SWF}: {archive}")

        context.library_image = image
        context.build_stats['original_size'] = image.stat().st_size
        context.report("解压", progress_end, f"映像大小: {format_size(context.build_stats['original_size'])}")


class OptimizeStep(DigestStep):
    """调用优化器处理程序映像"""

    stage = LogStage.OPTIMIZE

    def __init__(self):
        super().__init__("optimize", "优化映像")

    def get_progress_range(self) -> Tuple[int, int]:
        return (20, 50)

    def run(self, context: DigestContext) -> None:
        if context.library_image is None:
            raise BuildError("尚未解压程序映像")

        progress_start, progress_end = self.get_progress_range()
        context.report("优化", progress_start, "调用优化器...")

        data = context.library_image.read_bytes()
        optimized = call_with_timeout(
            "优化", context.optimizer.optimize, data,
            timeout=context.config.optimizer.timeout_sec, stage=self.stage,
        )

        context.optimized_data = optimized
        context.build_stats['optimized_size'] = len(optimized)

        original = context.build_stats['original_size']
        ratio = (1 - len(optimized) / original) * 100 if original > 0 else 0.0
        success(
            f"优化完成: {format_size(original)} -> {format_size(len(optimized))} ({ratio:.1f}%)",
            stage=self.stage,
        )
        context.report("优化", progress_end, f"优化后大小: {format_size(len(optimized))}")


class ComputeDigestStep(DigestStep):
    """对优化后的映像计算摘要"""

    stage = LogStage.DIGEST

    def __init__(self):
        super().__init__("digest", "计算摘要")

    def get_progress_range(self) -> Tuple[int, int]:
        return (50, 65)

    def run(self, context: DigestContext) -> None:
        if context.optimized_data is None:
            raise BuildError("尚未生成优化映像")

        signed = context.config.optimizer.signed
        record = call_with_timeout(
            "摘要",
            context.digester.digest,
            context.optimized_data,
            signed,
            timeout=context.config.optimizer.timeout_sec,
            stage=self.stage,
        )

        context.digest = record
        debug(f"{record.algorithm} signed={record.signed} {record.hexdigest}", stage=self.stage)
        context.report("摘要", self.get_progress_range()[1], record.hexdigest[:16])


class PatchCatalogStep(DigestStep):
    """用新摘要替换目录中程序映像的摘要"""

    stage = LogStage.PATCH

    def __init__(self):
        super().__init__("patch", "修补目录")

    def get_progress_range(self) -> Tuple[int, int]:
        return (65, 80)

    def run(self, context: DigestContext) -> None:
        if context.digest is None:
            raise BuildError("尚未计算摘要")

        catalog = context.catalog_cache.get_catalog(context.archive_path)
        catalog.set_digest(LIBRARY_SWF, context.digest)
        info(f"已更新 {LIBRARY_SWF} 的 {context.digest.algorithm} 摘要", stage=self.stage)
        context.report("修补目录", self.get_progress_range()[1])


class ExportStep(DigestStep):
    """把修补后的目录写回归档"""

    stage = LogStage.EXPORT

    def __init__(self):
        super().__init__("export", "重新导出归档")

    def get_progress_range(self) -> Tuple[int, int]:
        return (80, 90)

    def run(self, context: DigestContext) -> None:
        context.catalog_cache.export(context.archive_path)
        success(f"归档已更新: {context.archive_path.name}", stage=self.stage)
        context.report("导出", self.get_progress_range()[1])


class PublishStep(DigestStep):
    """写出优化后的映像并登记为附加制品

    主归档的映像不带分类器，其他归档以映像名称作为分类器。
    """

    stage = LogStage.PUBLISH

    def __init__(self):
        super().__init__("publish", "发布优化映像")

    def get_progress_range(self) -> Tuple[int, int]:
        return (90, 100)

    def run(self, context: DigestContext) -> None:
        if context.optimized_data is None:
            raise BuildError("尚未生成优化映像")

        build_dir = context.config.build_dir
        build_dir.mkdir(parents=True, exist_ok=True)
        name = context.publish_name or context.archive_path.stem
        output = build_dir / f"{name}.swf"

        with atomic_write(output, suffix=".swf.tmp") as temp_path:
            temp_path.write_bytes(context.optimized_data)

        primary = os.path.abspath(context.config.get_output())
        classifier = None if os.path.abspath(context.archive_path) == primary else name
        context.artifacts.attach(OPTIMIZED_KIND, classifier, output)
        context.optimized_path = output

        success(f"已发布优化映像: {output}", stage=self.stage)
        context.report("发布", self.get_progress_range()[1], output.name)


def default_digest_steps() -> list:
    """摘要修补流水线的默认步骤"""
    return [
        ExtractStep(),
        OptimizeStep(),
        ComputeDigestStep(),
        PatchCatalogStep(),
        ExportStep(),
        PublishStep(),
    ]

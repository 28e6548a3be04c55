"""
包含指令组装

把 IncludeModel 中的各类包含指令转换为 ArchiveBuilder 条目。
"""

from pathlib import Path
from typing import List, Optional

from ..config.schema import LOCALE_TOKEN, ArtifactCoordinate, IncludeModel, SwcpackConfig
from ..utils.logging import debug, info, warning, LogStage
from ..utils.paths import list_visible_files
from .archive_builder import ArchiveBuilder
from .artifacts import ArtifactResolver
from .build_context import ArchiveIOError, BuildError, ConfigurationError
from .path_resolver import PathResolver

RESOURCE_BUNDLE_CLASSIFIER = "resource-bundle"
RESOURCE_BUNDLE_TYPE = "properties"


def default_include_set(config: SwcpackConfig) -> IncludeModel:
    """未指定任何包含项时的默认包含集

    源码路径（去掉资源包目录）加上所有资源目录下的可见文件。
    """
    compiler = config.compiler
    sources = [p for p in compiler.source_paths if p != compiler.resource_bundle_path]

    files: List[Optional[str]] = []
    for resource_dir in compiler.resources:
        if not resource_dir.exists():
            continue
        files.extend(str(f) for f in list_visible_files(resource_dir))

    return IncludeModel(sources=sources, files=files)


def resolve_include_set(config: SwcpackConfig) -> IncludeModel:
    """返回实际生效的包含集"""
    if config.include.is_absent():
        warning("未指定任何包含项，默认包含源码和资源目录", stage=LogStage.ASSEMBLE)
        return default_include_set(config)
    return config.include


def resolve_resource_file(name: str, config: SwcpackConfig) -> Path:
    """解析原始文件引用

    绝对路径直接使用；否则依次尝试项目根目录和各资源目录，都不存在时返回项目根目录下的路径。
    """
    path = Path(name)
    if path.is_absolute():
        return path

    candidate = config.base_dir / path
    if candidate.exists():
        return candidate

    for resource_dir in config.compiler.resources:
        candidate = resource_dir / path
        if candidate.exists():
            return candidate

    return config.base_dir / path


class IncludeAssembler:
    """包含指令组装器

    按固定顺序处理各类包含项：类、文件、命名空间、资源包、资源包清单、源码根、样式表。
    每一类相互独立，未设置的类别直接跳过。
    """

    def __init__(
        self,
        config: SwcpackConfig,
        resolver: Optional[PathResolver] = None,
        artifact_resolver: Optional[ArtifactResolver] = None,
    ):
        self.config = config
        self.resolver = resolver or PathResolver.from_config(config)
        self.artifact_resolver = artifact_resolver

    def assemble(self, include: IncludeModel, builder: ArchiveBuilder) -> ArchiveBuilder:
        """把包含集写入 builder

        Raises:
            ConfigurationError: 包含项无效
            ArchiveIOError: 清单制品无法解析或读取
        """
        self._add_classes(include, builder)
        self._add_files(include, builder)
        self._add_namespaces(include, builder)
        self._add_resource_bundles(include, builder)
        self._add_resource_bundle_artifacts(include, builder)
        self._add_sources(include, builder)
        self._add_stylesheets(include, builder)
        return builder

    def _add_classes(self, include: IncludeModel, builder: ArchiveBuilder) -> None:
        if include.classes is None:
            return
        for class_name in include.classes:
            builder.add_component(class_name)

    def _add_files(self, include: IncludeModel, builder: ArchiveBuilder) -> None:
        if include.files is None:
            return
        for include_file in include.files:
            if include_file is None:
                raise ConfigurationError("不能包含空文件引用")

            file_path = resolve_resource_file(include_file, self.config)
            name = self.resolver.archive_name(file_path)
            debug(f"文件 {file_path} -> {name}", stage=LogStage.ASSEMBLE)
            builder.add_archive_file(name, file_path)

    def _add_namespaces(self, include: IncludeModel, builder: ArchiveBuilder) -> None:
        if include.namespaces is None:
            return
        for uri in include.namespaces:
            try:
                builder.add_namespace(uri)
            except ValueError as e:
                raise ConfigurationError(f"Invalid URI {uri}") from e

    def _add_resource_bundles(self, include: IncludeModel, builder: ArchiveBuilder) -> None:
        if include.resource_bundles is None:
            return
        for bundle in include.resource_bundles:
            builder.add_resource_bundle(bundle)

    def _add_resource_bundle_artifacts(self, include: IncludeModel, builder: ArchiveBuilder) -> None:
        if include.resource_bundle_artifacts is None:
            return
        for coordinate in include.resource_bundle_artifacts:
            for bundle in self.read_bundle_manifest(coordinate):
                builder.add_resource_bundle(bundle)

    def read_bundle_manifest(self, coordinate: ArtifactCoordinate) -> List[str]:
        """解析资源包清单制品并返回其中的资源包名称

        Raises:
            ConfigurationError: 未配置制品解析器
            ArchiveIOError: 解析或读取失败
        """
        if self.artifact_resolver is None:
            raise ConfigurationError(f"无法解析资源包清单 {coordinate}: 未配置制品解析器")

        manifest = coordinate.model_copy(update={
            'classifier': RESOURCE_BUNDLE_CLASSIFIER,
            'type': RESOURCE_BUNDLE_TYPE,
        })
        try:
            manifest_file = self.artifact_resolver.resolve(manifest)
        except BuildError:
            raise
        except Exception as e:
            raise ArchiveIOError(f"无法解析资源包清单 {manifest}: {e}") from e

        try:
            text = Path(manifest_file).read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            raise ArchiveIOError(f"读取资源包清单失败 {manifest} ({manifest_file}): {e}") from e

        bundles = text.split()
        info(f"资源包清单 {manifest}: {len(bundles)} 个资源包", stage=LogStage.ASSEMBLE)
        return bundles

    def _add_sources(self, include: IncludeModel, builder: ArchiveBuilder) -> None:
        if include.sources is None:
            return
        for source in include.sources:
            if source is None:
                raise ConfigurationError("不能包含空源码路径")
            # 含区域占位符的路径在编译时才展开，允许暂不存在
            if LOCALE_TOKEN not in source.name and not source.exists():
                raise ConfigurationError(f"File {source.name} not found ({source})")
            builder.add_source(source)

    def _add_stylesheets(self, include: IncludeModel, builder: ArchiveBuilder) -> None:
        if include.stylesheets is None:
            return
        for sheet in include.stylesheets:
            if not sheet.path.exists():
                raise ConfigurationError(f"Stylesheet not found: {sheet.path}")
            builder.add_stylesheet(sheet.name, sheet.path)

"""
配置 Schema 定义

使用 Pydantic 定义 swcpack.yaml 的配置模型，支持验证和类型检查。
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

LOCALE_TOKEN = "{locale}"


class Packaging(str, Enum):
    """打包类型枚举"""
    SWC = "swc"
    SWF = "swf"


class ArtifactCoordinate(BaseModel):
    """制品坐标模型"""
    group_id: str = Field(..., description="组 ID", min_length=1)
    artifact_id: str = Field(..., description="制品 ID", min_length=1)
    version: str = Field(..., description="版本号", min_length=1)
    classifier: Optional[str] = Field(None, description="分类器")
    type: str = Field("swc", description="制品类型")

    def __str__(self) -> str:
        parts = [self.group_id, self.artifact_id, self.type]
        if self.classifier:
            parts.append(self.classifier)
        parts.append(self.version)
        return ":".join(parts)


class StylesheetModel(BaseModel):
    """样式表模型"""
    name: str = Field(..., description="样式表名称", min_length=1)
    path: Path = Field(..., description="样式表文件路径")


class ProjectModel(BaseModel):
    """项目信息模型"""
    group_id: str = Field(..., description="组 ID", min_length=1)
    artifact_id: str = Field(..., description="制品 ID", min_length=1)
    version: str = Field(..., description="版本号", min_length=1)
    packaging: Packaging = Field(Packaging.SWC, description="打包类型")
    base_dir: Path = Field(Path("."), description="项目根目录")
    build_dir: Path = Field(Path("target"), description="构建输出目录")
    final_name: Optional[str] = Field(None, description="输出文件基础名称")
    descriptor: Path = Field(Path("pom.xml"), description="构建描述文件")

    @field_validator('group_id', 'artifact_id')
    @classmethod
    def validate_identity(cls, v: str) -> str:
        """验证组 ID 和制品 ID"""
        if not re.match(r'^[A-Za-z0-9_.\-]+$', v):
            raise ValueError("只能包含字母、数字、'.'、'_' 和 '-'")
        return v

    def get_final_name(self) -> str:
        """获取输出文件基础名称"""
        return self.final_name or f"{self.artifact_id}-{self.version}"


class CompilerModel(BaseModel):
    """编译配置模型"""
    source_paths: List[Path] = Field(
        default_factory=lambda: [Path("src/main/flex"), Path("src/main/locales/{locale}")],
        description="源码路径列表"
    )
    compile_source_roots: List[Path] = Field(default_factory=list, description="构建声明的编译源码根")
    execution_source_roots: Optional[List[Path]] = Field(
        None, description="执行期覆盖的编译源码根（优先于 compile_source_roots）"
    )
    resources: List[Path] = Field(
        default_factory=lambda: [Path("src/main/resources")],
        description="资源目录列表"
    )
    resource_bundle_path: Path = Field(Path("src/main/locales/{locale}"), description="资源包目录模板")
    library_paths: List[Path] = Field(default_factory=list, description="库路径列表")
    locales: List[str] = Field(default_factory=lambda: ["en_US"], description="编译进主库的区域")
    runtime_locales: List[str] = Field(default_factory=list, description="生成独立资源包的区域")
    runtime_bundles: Optional[List[str]] = Field(None, description="运行时资源包名称（为空时扫描区域目录）")
    locale_libraries: Dict[str, List[Path]] = Field(default_factory=dict, description="各区域额外的库路径")
    locale_workers: int = Field(1, description="并行生成资源包的线程数", ge=1, le=32)
    debug: bool = Field(True, description="是否生成可调试的库")
    compute_digest: bool = Field(True, description="是否计算库摘要")
    add_descriptor: bool = Field(True, description="是否在库中包含构建描述文件")
    output: Optional[Path] = Field(None, description="输出 SWC 路径")
    directory: Optional[Path] = Field(None, description="RSL 输出目录")
    command: Optional[List[str]] = Field(None, description="编译命令（支持 {spec} 和 {output} 占位符）")
    entry_point: Optional[str] = Field(None, description="编译函数引用 module:function")
    timeout_sec: int = Field(600, description="编译超时时间（秒）", ge=1, le=7200)

    @field_validator('runtime_locales', 'locales')
    @classmethod
    def validate_locales(cls, v: List[str]) -> List[str]:
        """验证区域代码"""
        for locale in v:
            if not re.match(r'^[A-Za-z]{2,3}(_[A-Za-z0-9]{2,8})*$', locale):
                raise ValueError(f"区域代码格式不正确: {locale}")
        return v

    @model_validator(mode='after')
    def validate_transform(self) -> 'CompilerModel':
        """command 与 entry_point 只能二选一"""
        if self.command and self.entry_point:
            raise ValueError("command 和 entry_point 不能同时设置")
        return self


class IncludeModel(BaseModel):
    """包含指令模型

    每一项都可以省略；省略（None）与空列表含义不同，见 is_absent。
    """
    classes: Optional[List[str]] = Field(None, description="包含的类名")
    files: Optional[List[Optional[str]]] = Field(None, description="包含的原始文件")
    namespaces: Optional[List[str]] = Field(None, description="包含的命名空间 URI")
    resource_bundles: Optional[List[str]] = Field(None, description="包含的资源包名称")
    resource_bundle_artifacts: Optional[List[ArtifactCoordinate]] = Field(
        None, description="资源包清单制品"
    )
    sources: Optional[List[Optional[Path]]] = Field(None, description="包含的源码根")
    stylesheets: Optional[List[StylesheetModel]] = Field(None, description="包含的样式表")

    def is_absent(self) -> bool:
        """所有包含项都未设置

        空列表视为"已设置"，只有 None 才算缺省。
        """
        return all(
            value is None
            for value in (
                self.classes,
                self.files,
                self.namespaces,
                self.resource_bundles,
                self.resource_bundle_artifacts,
                self.sources,
                self.stylesheets,
            )
        )


class OptimizerModel(BaseModel):
    """优化器配置模型"""
    enabled: bool = Field(True, description="build 命令完成后是否执行优化")
    signed: bool = Field(False, description="是否生成签名摘要")
    signing_key: Optional[str] = Field(None, description="签名摘要使用的密钥")
    command: Optional[List[str]] = Field(None, description="优化命令（支持 {input} 和 {output} 占位符）")
    entry_point: Optional[str] = Field(None, description="优化函数引用 module:function")
    digest_entry_point: Optional[str] = Field(None, description="摘要函数引用 module:function")
    timeout_sec: int = Field(300, description="优化/摘要超时时间（秒）", ge=1, le=3600)
    workers: int = Field(1, description="并行处理的归档数量", ge=1, le=32)

    @model_validator(mode='after')
    def validate_transform(self) -> 'OptimizerModel':
        """command 与 entry_point 只能二选一"""
        if self.command and self.entry_point:
            raise ValueError("command 和 entry_point 不能同时设置")
        return self


class ConfigModel(BaseModel):
    """配置元信息模型"""
    version: int = Field(1, description="配置 schema 版本", ge=1)

    @field_validator('version')
    @classmethod
    def validate_config_version(cls, v: int) -> int:
        SUPPORTED_VERSIONS = [1]
        if v not in SUPPORTED_VERSIONS:
            raise ValueError(f"不支持的配置版本 {v}，支持的版本: {SUPPORTED_VERSIONS}")
        return v


class SwcpackConfig(BaseModel):
    """swcpack 主配置模型

    这是整个配置文件的根模型，包含所有配置部分。
    """

    config: ConfigModel = Field(default_factory=ConfigModel, description="配置元信息")

    project: ProjectModel = Field(..., description="项目信息")

    compiler: CompilerModel = Field(default_factory=CompilerModel, description="编译配置")
    include: IncludeModel = Field(default_factory=IncludeModel, description="包含指令")
    optimizer: OptimizerModel = Field(default_factory=OptimizerModel, description="优化配置")
    repositories: List[Path] = Field(default_factory=list, description="本地制品仓库目录")

    model_config = {
        "extra": "forbid",
        "validate_assignment": True,
        "str_strip_whitespace": True,
    }

    @model_validator(mode='after')
    def anchor_relative_paths(self) -> 'SwcpackConfig':
        """将相对路径锚定到项目根目录

        include.files 不在此处理，组装时按资源查找规则解析。
        """
        project = self.project
        if not project.base_dir.is_absolute():
            project.base_dir = project.base_dir.resolve()
        base = project.base_dir

        def anchor(path: Optional[Path]) -> Optional[Path]:
            if path is None or path.is_absolute():
                return path
            return base / path

        project.build_dir = anchor(project.build_dir)
        project.descriptor = anchor(project.descriptor)

        compiler = self.compiler
        compiler.source_paths = [anchor(p) for p in compiler.source_paths]
        compiler.compile_source_roots = [anchor(p) for p in compiler.compile_source_roots]
        if compiler.execution_source_roots is not None:
            compiler.execution_source_roots = [anchor(p) for p in compiler.execution_source_roots]
        compiler.resources = [anchor(p) for p in compiler.resources]
        compiler.resource_bundle_path = anchor(compiler.resource_bundle_path)
        compiler.library_paths = [anchor(p) for p in compiler.library_paths]
        compiler.locale_libraries = {
            locale: [anchor(p) for p in paths]
            for locale, paths in compiler.locale_libraries.items()
        }
        compiler.output = anchor(compiler.output)
        compiler.directory = anchor(compiler.directory)

        include = self.include
        if include.sources is not None:
            include.sources = [anchor(p) for p in include.sources]
        if include.stylesheets is not None:
            for sheet in include.stylesheets:
                sheet.path = anchor(sheet.path)

        self.repositories[:] = [anchor(p) for p in self.repositories]
        return self

    @property
    def base_dir(self) -> Path:
        return self.project.base_dir

    @property
    def build_dir(self) -> Path:
        return self.project.build_dir

    def get_output(self) -> Path:
        """获取主 SWC 输出路径"""
        if self.compiler.output:
            return self.compiler.output
        return self.build_dir / f"{self.project.get_final_name()}.swc"

    def get_locale_path(self, locale: str) -> Path:
        """获取某个区域的资源包目录"""
        return Path(str(self.compiler.resource_bundle_path).replace(LOCALE_TOKEN, locale))

    def descriptor_entry_name(self) -> str:
        """构建描述文件在库中的固定路径"""
        return f"maven/{self.project.group_id}/{self.project.artifact_id}/pom.xml"

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        data = self.model_dump(exclude_none=True, by_alias=True)

        def convert_values(obj):
            if isinstance(obj, dict):
                return {k: convert_values(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [convert_values(item) for item in obj]
            elif isinstance(obj, Enum):
                return obj.value
            elif isinstance(obj, Path):
                return str(obj).replace('\\', '/')
            else:
                return obj

        return convert_values(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SwcpackConfig':
        """从字典创建配置实例"""
        return cls.model_validate(data)



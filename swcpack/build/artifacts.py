"""
制品管理

提供制品坐标解析（本地仓库布局）、附加制品登记和本地安装。
"""

import shutil
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from ..config.schema import ArtifactCoordinate, SwcpackConfig
from ..utils.logging import info, success, LogStage
from .build_context import ArchiveIOError, ConfigurationError

RESOURCE_BUNDLE_KIND = "resource-bundle"

# 制品种类 -> 安装时的扩展名，未列出的种类直接用作扩展名
KIND_EXTENSIONS = {
    RESOURCE_BUNDLE_KIND: "rb.swc",
}


def kind_extension(kind: str) -> str:
    return KIND_EXTENSIONS.get(kind, kind)


def repository_path(
    group_id: str,
    artifact_id: str,
    version: str,
    type: str,
    classifier: Optional[str] = None,
) -> Path:
    """计算制品在 Maven 仓库布局中的相对路径"""
    file_name = f"{artifact_id}-{version}"
    if classifier:
        file_name += f"-{classifier}"
    file_name += f".{type}"
    return Path(*group_id.split('.')) / artifact_id / version / file_name


class ArtifactResolver(Protocol):
    """制品解析接口"""

    def resolve(self, coordinate: ArtifactCoordinate) -> Path:
        """解析坐标为磁盘上的文件，失败时抛出 ArchiveIOError"""
        ...


class LocalRepositoryResolver:
    """在本地仓库目录中按顺序查找制品"""

    def __init__(self, repositories: Sequence[Path]):
        self.repositories = [Path(p) for p in repositories]

    def resolve(self, coordinate: ArtifactCoordinate) -> Path:
        relative = repository_path(
            coordinate.group_id,
            coordinate.artifact_id,
            coordinate.version,
            coordinate.type,
            coordinate.classifier,
        )
        for repository in self.repositories:
            candidate = repository / relative
            if candidate.is_file():
                return candidate

        searched = ", ".join(str(r) for r in self.repositories) or "(未配置仓库)"
        raise ArchiveIOError(f"无法解析制品 {coordinate}: 在 {searched} 中找不到 {relative.as_posix()}")


@dataclass(frozen=True)
class AttachedArtifact:
    """附加制品"""
    kind: str
    classifier: Optional[str]
    file: Path


class ArtifactPublisher(Protocol):
    """附加制品登记接口"""

    def attach(self, kind: str, classifier: Optional[str], file: Path) -> None:
        ...


class ProjectArtifacts:
    """记录一次构建的主制品和附加制品

    attach 可以从多个线程调用（并行生成区域资源包时）。
    """

    def __init__(self):
        self._lock = threading.Lock()
        self.primary: Optional[Path] = None
        self._attached: List[AttachedArtifact] = []

    def set_primary(self, file: Path) -> None:
        self.primary = Path(file)

    def attach(self, kind: str, classifier: Optional[str], file: Path) -> None:
        artifact = AttachedArtifact(kind, classifier, Path(file))
        with self._lock:
            # 同一 kind + classifier 只保留最后一次登记
            self._attached = [
                a for a in self._attached
                if (a.kind, a.classifier) != (kind, classifier)
            ]
            self._attached.append(artifact)

    @property
    def attached(self) -> List[AttachedArtifact]:
        with self._lock:
            return list(self._attached)

    def find(self, kind: str, classifier: Optional[str] = None) -> Optional[AttachedArtifact]:
        for artifact in self.attached:
            if artifact.kind == kind and artifact.classifier == classifier:
                return artifact
        return None


def install_artifacts(config: SwcpackConfig, artifacts: ProjectArtifacts) -> List[Path]:
    """将主制品和附加制品复制到第一个本地仓库

    Returns:
        List[Path]: 安装后的文件路径

    Raises:
        ConfigurationError: 未配置仓库或主制品不存在
        ArchiveIOError: 复制失败
    """
    if not config.repositories:
        raise ConfigurationError("未配置本地仓库 (repositories)，无法安装")
    if artifacts.primary is None or not artifacts.primary.exists():
        raise ConfigurationError(f"主制品不存在: {artifacts.primary}")

    repository = config.repositories[0]
    project = config.project
    packaging = project.packaging.value

    targets = [(artifacts.primary, packaging, None)]
    targets.extend((a.file, a.kind, a.classifier) for a in artifacts.attached)

    installed = []
    for source, kind, classifier in targets:
        destination = repository / repository_path(
            project.group_id, project.artifact_id, project.version, kind_extension(kind), classifier
        )
        info(f"安装 {source.name} -> {destination}", stage=LogStage.INSTALL)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, destination)
        except OSError as e:
            raise ArchiveIOError(f"安装制品失败 {source}: {e}") from e
        installed.append(destination)

    success(f"已安装 {len(installed)} 个制品到 {repository}", stage=LogStage.INSTALL)
    return installed

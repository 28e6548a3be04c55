"""
区域资源包生成

主库编译完成后，为每个运行时区域派生一次只含资源包的构建。
每次派生构建只依赖它自己的请求，可以在线程池中并行执行。
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from ..config.schema import IncludeModel, SwcpackConfig
from ..utils.logging import info, success, warning, LogStage
from .artifacts import RESOURCE_BUNDLE_KIND, ProjectArtifacts
from .build_context import BuildContext, TransformError
from .steps.compile_step import CompileStep
from .steps.include_assembly_step import IncludeAssemblyStep
from .transforms import Compiler

LOCALE_BUNDLE_KIND = RESOURCE_BUNDLE_KIND


@dataclass(frozen=True)
class LocaleBundleRequest:
    """一个区域资源包的构建请求"""
    locale: str
    bundles: List[str]
    output: Path


def locale_bundle_output(config: SwcpackConfig, locale: str) -> Path:
    """区域资源包的输出路径: <build_dir>/<final_name>-<locale>.rb.swc"""
    return config.build_dir / f"{config.project.get_final_name()}-{locale}.rb.swc"


def discover_bundle_names(config: SwcpackConfig, locale: str) -> List[str]:
    """获取某个区域要打包的资源包名称

    配置了 runtime_bundles 时直接使用，否则取区域目录下 *.properties 文件名。
    """
    if config.compiler.runtime_bundles is not None:
        return list(config.compiler.runtime_bundles)

    locale_dir = config.get_locale_path(locale)
    if not locale_dir.is_dir():
        return []
    return sorted(p.stem for p in locale_dir.glob("*.properties") if p.is_file())


def create_requests(config: SwcpackConfig) -> List[LocaleBundleRequest]:
    """根据 runtime_locales 创建构建请求"""
    requests = []
    for locale in config.compiler.runtime_locales:
        bundles = discover_bundle_names(config, locale)
        if not bundles:
            warning(f"区域 {locale} 没有找到资源包", stage=LogStage.LOCALE)
        requests.append(LocaleBundleRequest(locale, bundles, locale_bundle_output(config, locale)))
    return requests


def derive_locale_config(request: LocaleBundleRequest, config: SwcpackConfig, primary: Path) -> SwcpackConfig:
    """派生区域资源包的构建配置

    唯一的源码路径是区域目录，库路径是主库加上该区域额外配置的库。
    """
    compiler = config.compiler
    locale_compiler = compiler.model_copy(update={
        'source_paths': [config.get_locale_path(request.locale)],
        'library_paths': [Path(primary)] + list(compiler.locale_libraries.get(request.locale, [])),
        'locales': [request.locale],
        'runtime_locales': [],
        'add_descriptor': False,
        'output': request.output,
        'directory': None,
    })
    return config.model_copy(update={
        'compiler': locale_compiler,
        'include': IncludeModel(resource_bundles=list(request.bundles)),
    })


def build_locale_bundle(
    request: LocaleBundleRequest,
    config: SwcpackConfig,
    primary: Path,
    compiler: Compiler,
) -> Path:
    """执行一次区域资源包构建（组装 + 编译），返回输出文件

    Raises:
        BuildError: 组装或编译失败
    """
    info(f"生成 {request.locale} 资源包: {', '.join(request.bundles) or '(空)'}", stage=LogStage.LOCALE)

    locale_config = derive_locale_config(request, config, primary)
    context = BuildContext(
        config=locale_config,
        output_path=request.output,
        compiler=compiler,
        # 区域构建不登记主制品，附加制品由生成器统一登记
        artifacts=ProjectArtifacts(),
    )

    for step in (IncludeAssemblyStep(), CompileStep(primary=False)):
        step.execute(context)

    if context.archive_path is None:
        raise TransformError(f"{request.locale} 资源包未生成")
    return context.archive_path


class LocaleBundleGenerator:
    """区域资源包生成器"""

    def __init__(
        self,
        config: SwcpackConfig,
        compiler: Compiler,
        artifacts: ProjectArtifacts,
        workers: Optional[int] = None,
    ):
        self.config = config
        self.compiler = compiler
        self.artifacts = artifacts
        self.workers = workers or config.compiler.locale_workers

    def generate(
        self,
        primary: Path,
        requests: Optional[List[LocaleBundleRequest]] = None,
    ) -> Dict[str, Path]:
        """生成全部区域资源包并登记为附加制品

        Returns:
            Dict[str, Path]: 区域 -> 资源包文件
        """
        if requests is None:
            requests = create_requests(self.config)
        if not requests:
            return {}

        outputs: Dict[str, Path] = {}
        if self.workers <= 1 or len(requests) == 1:
            for request in requests:
                outputs[request.locale] = build_locale_bundle(request, self.config, primary, self.compiler)
        else:
            with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="swcpack-locale") as executor:
                futures = [
                    (request, executor.submit(build_locale_bundle, request, self.config, primary, self.compiler))
                    for request in requests
                ]
                # 按请求顺序收集，第一个失败的请求抛出异常
                for request, future in futures:
                    outputs[request.locale] = future.result()

        for locale, output in outputs.items():
            self.artifacts.attach(LOCALE_BUNDLE_KIND, locale, output)

        success(f"已生成 {len(outputs)} 个区域资源包", stage=LogStage.LOCALE)
        return outputs

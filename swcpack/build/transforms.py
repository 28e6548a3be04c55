"""
外部变换接口

编译器、优化器和摘要计算都是外部协作方，这里只定义调用约定并提供
基于命令行或 Python 入口函数的适配器。流水线步骤通过 call_with_timeout
调用它们，命令行适配器另外受 subprocess 超时限制。
"""

import hashlib
import hmac
import importlib
import json
import subprocess
import tempfile
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from pathlib import Path
from typing import Any, Callable, List, Optional, Protocol

from ..config.schema import SwcpackConfig
from ..swc.catalog import DIGEST_ALGORITHM, DigestRecord
from ..utils.logging import debug, warning, LogStage
from .archive_builder import ArchiveSpec
from .build_context import BuildError, ConfigurationError, TransformError, TransformTimeout


class Compiler(Protocol):
    """编译器：build(spec) -> 打包好的库文件"""

    def build(self, spec: ArchiveSpec) -> Path:
        ...


class Optimizer(Protocol):
    """优化器：optimize(bytes) -> bytes"""

    def optimize(self, data: bytes) -> bytes:
        ...


class Digester(Protocol):
    """摘要计算：digest(bytes, signed) -> DigestRecord"""

    def digest(self, data: bytes, signed: bool) -> DigestRecord:
        ...


def load_entry_point(reference: str) -> Callable[..., Any]:
    """加载 module:function 形式的入口函数

    Raises:
        ConfigurationError: 引用格式错误或无法导入
    """
    module_name, sep, attr_path = reference.partition(':')
    if not sep or not module_name or not attr_path:
        raise ConfigurationError(f"入口函数引用格式应为 module:function: {reference}")

    try:
        target: Any = importlib.import_module(module_name)
        for attr in attr_path.split('.'):
            target = getattr(target, attr)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"无法加载入口函数 {reference}: {e}") from e

    if not callable(target):
        raise ConfigurationError(f"入口函数不可调用: {reference}")
    return target


def call_with_timeout(
    name: str,
    func: Callable[..., Any],
    *args: Any,
    timeout: float,
    stage: str = LogStage.OPTIMIZE,
) -> Any:
    """在工作线程中调用函数并限制等待时间

    Raises:
        TransformTimeout: 超时
        TransformError: 函数抛出非 BuildError 的异常
    """
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"swcpack-{name}")
    try:
        future = executor.submit(func, *args)
        try:
            return future.result(timeout=timeout)
        except FutureTimeout as e:
            if not future.cancel():
                warning(f"{name} 超时 ({timeout} 秒)，调用仍在后台线程中运行，结果将被丢弃", stage=stage)
            raise TransformTimeout(f"{name} 超时 ({timeout} 秒)") from e
        except BuildError:
            raise
        except Exception as e:
            raise TransformError(f"{name} 失败: {e}") from e
    finally:
        # 超时的调用无法中断，不等待它结束
        executor.shutdown(wait=False)


def _run_command(name: str, command: List[str], timeout: float, stage: str) -> None:
    debug(f"{name} 命令: {' '.join(command)}", stage=stage)
    try:
        result = subprocess.run(command, capture_output=True, text=True, timeout=timeout)
    except subprocess.TimeoutExpired as e:
        raise TransformTimeout(f"{name} 超时 ({timeout} 秒): {command[0]}") from e
    except OSError as e:
        raise TransformError(f"无法执行 {name} 命令 {command[0]}: {e}") from e

    if result.returncode != 0:
        output = (result.stderr or result.stdout or "").strip()
        raise TransformError(f"{name} 命令返回 {result.returncode}: {output[-2000:]}")


def _substitute(command: List[str], **values: str) -> List[str]:
    substituted = []
    for arg in command:
        for key, value in values.items():
            arg = arg.replace('{' + key + '}', value)
        substituted.append(arg)
    return substituted


class CommandCompiler:
    """通过外部命令编译

    构建请求写成 JSON 文件，命令参数中的 {spec} 和 {output} 会被替换。
    """

    def __init__(self, command: List[str], timeout: float = 600):
        self.command = list(command)
        self.timeout = timeout

    def build(self, spec: ArchiveSpec) -> Path:
        spec.output.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(prefix="swcpack_spec_") as temp_dir:
            spec_path = Path(temp_dir) / "spec.json"
            spec_path.write_text(json.dumps(spec.to_dict(), ensure_ascii=False, indent=2), encoding='utf-8')
            command = _substitute(self.command, spec=str(spec_path), output=str(spec.output))
            _run_command("编译", command, self.timeout, LogStage.COMPILE)

        if not spec.output.exists():
            raise TransformError(f"编译命令未生成输出文件: {spec.output}")
        return spec.output


class EntryPointCompiler:
    """通过 Python 入口函数编译，函数签名为 func(spec) -> 路径"""

    def __init__(self, func: Callable[[ArchiveSpec], Any]):
        self.func = func

    def build(self, spec: ArchiveSpec) -> Path:
        result = self.func(spec)
        output = Path(result) if result is not None else spec.output
        if not output.exists():
            raise TransformError(f"编译未生成输出文件: {output}")
        return output


class CommandOptimizer:
    """通过外部命令优化程序映像，命令参数中的 {input} 和 {output} 会被替换"""

    def __init__(self, command: List[str], timeout: float = 300):
        self.command = list(command)
        self.timeout = timeout

    def optimize(self, data: bytes) -> bytes:
        with tempfile.TemporaryDirectory(prefix="swcpack_opt_") as temp_dir:
            input_path = Path(temp_dir) / "input.swf"
            output_path = Path(temp_dir) / "output.swf"
            input_path.write_bytes(data)
            command = _substitute(self.command, input=str(input_path), output=str(output_path))
            _run_command("优化", command, self.timeout, LogStage.OPTIMIZE)

            if not output_path.exists():
                raise TransformError("优化命令未生成输出文件")
            return output_path.read_bytes()


class EntryPointOptimizer:
    """通过 Python 入口函数优化，函数签名为 func(bytes) -> bytes"""

    def __init__(self, func: Callable[[bytes], bytes]):
        self.func = func

    def optimize(self, data: bytes) -> bytes:
        result = self.func(data)
        if not isinstance(result, (bytes, bytearray)):
            raise TransformError(f"优化函数返回了 {type(result).__name__}，应为 bytes")
        return bytes(result)


class Sha256Digester:
    """SHA-256 摘要

    签名模式使用 HMAC-SHA256，密钥来自 optimizer.signing_key。
    """

    def __init__(self, signing_key: Optional[str] = None):
        self.signing_key = signing_key

    def digest(self, data: bytes, signed: bool) -> DigestRecord:
        if signed:
            if not self.signing_key:
                raise ConfigurationError("签名摘要需要配置 optimizer.signing_key")
            value = hmac.new(self.signing_key.encode('utf-8'), data, hashlib.sha256).digest()
        else:
            value = hashlib.sha256(data).digest()
        return DigestRecord(algorithm=DIGEST_ALGORITHM, signed=signed, value=value)


class EntryPointDigester:
    """通过 Python 入口函数计算摘要，函数签名为 func(bytes, signed) -> DigestRecord"""

    def __init__(self, func: Callable[[bytes, bool], DigestRecord]):
        self.func = func

    def digest(self, data: bytes, signed: bool) -> DigestRecord:
        result = self.func(data, signed)
        if not isinstance(result, DigestRecord):
            raise TransformError(f"摘要函数返回了 {type(result).__name__}，应为 DigestRecord")
        return result


def create_compiler(config: SwcpackConfig) -> Compiler:
    """根据配置创建编译器

    Raises:
        ConfigurationError: 未配置编译器
    """
    compiler = config.compiler
    if compiler.command:
        return CommandCompiler(compiler.command, compiler.timeout_sec)
    if compiler.entry_point:
        return EntryPointCompiler(load_entry_point(compiler.entry_point))
    raise ConfigurationError("未配置编译器 (compiler.command 或 compiler.entry_point)")


def create_optimizer(config: SwcpackConfig) -> Optimizer:
    """根据配置创建优化器

    Raises:
        ConfigurationError: 未配置优化器
    """
    optimizer = config.optimizer
    if optimizer.command:
        return CommandOptimizer(optimizer.command, optimizer.timeout_sec)
    if optimizer.entry_point:
        return EntryPointOptimizer(load_entry_point(optimizer.entry_point))
    raise ConfigurationError("未配置优化器 (optimizer.command 或 optimizer.entry_point)")


def create_digester(config: SwcpackConfig) -> Digester:
    """根据配置创建摘要计算器，默认使用 SHA-256"""
    optimizer = config.optimizer
    if optimizer.digest_entry_point:
        return EntryPointDigester(load_entry_point(optimizer.digest_entry_point))
    return Sha256Digester(optimizer.signing_key)

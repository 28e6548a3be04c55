"""
外部变换单元测试

测试入口函数加载、超时控制、命令适配器和 SHA-256 摘要。
"""

import hashlib
import hmac
import sys
import threading
from pathlib import Path

import pytest

from swcpack.build.archive_builder import ArchiveBuilder
from swcpack.build.build_context import ConfigurationError, TransformError, TransformTimeout
from swcpack.build.transforms import (
    CommandCompiler,
    CommandOptimizer,
    EntryPointCompiler,
    EntryPointDigester,
    EntryPointOptimizer,
    Sha256Digester,
    call_with_timeout,
    create_compiler,
    create_digester,
    create_optimizer,
    load_entry_point,
)
from swcpack.swc.catalog import DigestRecord


class TestLoadEntryPoint:
    """入口函数加载测试"""

    def test_load(self):
        func = load_entry_point("os.path:join")
        assert func("a", "b") == str(Path("a") / "b")

    def test_bad_format(self):
        with pytest.raises(ConfigurationError):
            load_entry_point("os.path.join")

    def test_missing_module(self):
        with pytest.raises(ConfigurationError):
            load_entry_point("swcpack_missing_module:func")

    def test_not_callable(self):
        with pytest.raises(ConfigurationError):
            load_entry_point("os:sep")


class TestCallWithTimeout:
    """超时控制测试"""

    def test_returns_result(self):
        assert call_with_timeout("test", lambda a, b: a + b, 1, 2, timeout=5) == 3

    def test_timeout(self):
        release = threading.Event()
        try:
            with pytest.raises(TransformTimeout):
                call_with_timeout("slow", release.wait, 10, timeout=0.05)
        finally:
            release.set()

    def test_timeout_warns_about_running_call(self, capsys):
        release = threading.Event()
        try:
            with pytest.raises(TransformTimeout):
                call_with_timeout("slow-optimizer", release.wait, 10, timeout=0.05)
            out = capsys.readouterr().out
        finally:
            release.set()

        assert "WARNING" in out
        assert "slow-optimizer" in out

    def test_wraps_unexpected_errors(self):
        def boom():
            raise RuntimeError("kaboom")

        with pytest.raises(TransformError, match="kaboom") as exc_info:
            call_with_timeout("boom", boom, timeout=5)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_build_errors_pass_through(self):
        def misconfigured():
            raise ConfigurationError("no key")

        with pytest.raises(ConfigurationError):
            call_with_timeout("config", misconfigured, timeout=5)


class TestSha256Digester:
    """SHA-256 摘要测试"""

    def test_unsigned(self):
        record = Sha256Digester().digest(b"data", signed=False)
        assert record == DigestRecord("SHA-256", False, hashlib.sha256(b"data").digest())

    def test_signed_uses_hmac(self):
        record = Sha256Digester("secret").digest(b"data", signed=True)
        expected = hmac.new(b"secret", b"data", hashlib.sha256).digest()
        assert record.signed is True
        assert record.value == expected

    def test_signed_without_key(self):
        with pytest.raises(ConfigurationError):
            Sha256Digester().digest(b"data", signed=True)


class TestEntryPointAdapters:
    """入口函数适配器测试"""

    def test_optimizer_requires_bytes(self):
        with pytest.raises(TransformError):
            EntryPointOptimizer(lambda data: "text").optimize(b"x")
        assert EntryPointOptimizer(lambda data: bytearray(data[::-1])).optimize(b"ab") == b"ba"

    def test_digester_requires_record(self):
        with pytest.raises(TransformError):
            EntryPointDigester(lambda data, signed: b"raw").digest(b"x", False)

    def test_compiler_checks_output(self, tmp_path):
        spec = ArchiveBuilder(tmp_path / "out.swc").to_spec([], [], ["en_US"])
        with pytest.raises(TransformError):
            EntryPointCompiler(lambda s: None).build(spec)

        def compile_ok(s):
            s.output.write_bytes(b"swc")
            return s.output

        assert EntryPointCompiler(compile_ok).build(spec) == tmp_path / "out.swc"


class TestCommandAdapters:
    """命令行适配器测试"""

    def test_command_optimizer(self):
        script = "import sys; data = open(sys.argv[1], 'rb').read(); open(sys.argv[2], 'wb').write(data[::-1])"
        optimizer = CommandOptimizer([sys.executable, "-c", script, "{input}", "{output}"], timeout=30)
        assert optimizer.optimize(b"abc") == b"cba"

    def test_command_failure(self):
        optimizer = CommandOptimizer([sys.executable, "-c", "import sys; sys.exit(3)"], timeout=30)
        with pytest.raises(TransformError, match="3"):
            optimizer.optimize(b"abc")

    def test_command_timeout(self):
        optimizer = CommandOptimizer([sys.executable, "-c", "import time; time.sleep(10)"], timeout=0.2)
        with pytest.raises(TransformTimeout):
            optimizer.optimize(b"abc")

    def test_command_not_found(self):
        optimizer = CommandOptimizer(["swcpack-no-such-command", "{input}"], timeout=5)
        with pytest.raises(TransformError):
            optimizer.optimize(b"abc")

    def test_command_compiler_writes_spec(self, tmp_path):
        script = (
            "import json, sys, shutil; spec = json.load(open(sys.argv[1], encoding='utf-8')); "
            "open(sys.argv[2], 'w').write(','.join(e['name'] for e in spec['entries']))"
        )
        builder = ArchiveBuilder(tmp_path / "out" / "lib.swc")
        builder.add_component("com.example.Widget")
        builder.add_resource_bundle("Foo")

        compiler = CommandCompiler([sys.executable, "-c", script, "{spec}", "{output}"], timeout=30)
        output = compiler.build(builder.to_spec([], [], ["en_US"]))

        assert output.read_text() == "com.example.Widget,Foo"


class TestFactories:
    """按配置创建变换"""

    def test_compiler_required(self, make_config):
        with pytest.raises(ConfigurationError):
            create_compiler(make_config())

    def test_command_compiler(self, make_config):
        compiler = create_compiler(make_config(compiler={"command": ["compc"], "timeout_sec": 42}))
        assert isinstance(compiler, CommandCompiler)
        assert compiler.timeout == 42

    def test_entry_point_optimizer(self, make_config):
        optimizer = create_optimizer(make_config(optimizer={"entry_point": "conftest:reverse_optimizer"}))
        assert optimizer.optimize(b"ab") == b"ba"

    def test_optimizer_required(self, make_config):
        with pytest.raises(ConfigurationError):
            create_optimizer(make_config())

    def test_default_digester(self, make_config):
        digester = create_digester(make_config(optimizer={"signing_key": "k"}))
        assert isinstance(digester, Sha256Digester)
        assert digester.signing_key == "k"

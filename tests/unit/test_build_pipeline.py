"""
构建流水线单元测试

测试构建编排器、构建步骤、构建上下文和 Builder 门面。
"""

import hashlib
from unittest.mock import MagicMock

import pytest

from conftest import reverse_optimizer
from swcpack.build.archive_builder import EntryKind
from swcpack.build.build_context import BuildContext, BuildError
from swcpack.build.builder import Builder, discover_artifacts
from swcpack.build.orchestrator import BuildOrchestrator
from swcpack.build.steps.build_step import BuildStep
from swcpack.build.transforms import EntryPointOptimizer
from swcpack.swc import SwcCatalog, read_entry


class MockBuildStep(BuildStep):
    """模拟构建步骤"""

    def __init__(self, name="mock", progress_range=(0, 10)):
        super().__init__(name, "Mock step")
        self._progress_range = progress_range
        self.execute_context = None

    def get_progress_range(self):
        return self._progress_range

    def execute(self, context):
        self.execute_context = context
        context.build_stats['mock_processed'] = True


class TestBuildContext:
    """BuildContext 测试"""

    def test_default_stats(self, make_config, tmp_path):
        context = BuildContext(
            config=make_config(),
            output_path=tmp_path / "out.swc",
            compiler=MagicMock(),
            artifacts=MagicMock(),
        )
        assert context.build_stats['total_entries'] == 0
        assert context.locale_outputs == {}

    def test_report_without_callback(self, make_config, tmp_path):
        context = BuildContext(make_config(), tmp_path / "out.swc", MagicMock(), MagicMock())
        context.report("stage", 10, "message")

    def test_report_with_callback(self, make_config, tmp_path):
        callback = MagicMock()
        context = BuildContext(make_config(), tmp_path / "out.swc", MagicMock(), MagicMock(), callback)
        context.report("stage", 10, "message")
        callback.assert_called_once_with("stage", 10, 100, "message")


class TestBuildOrchestrator:
    """BuildOrchestrator 测试"""

    def test_default_steps(self):
        orchestrator = BuildOrchestrator()
        assert [s.name for s in orchestrator.get_steps()] == ["assemble", "compile", "locales"]
        assert orchestrator.validate_pipeline() == []

    def test_remove_step_breaks_validation(self):
        orchestrator = BuildOrchestrator()
        orchestrator.remove_step("locales")
        errors = orchestrator.validate_pipeline()
        assert any("100%" in e for e in errors)

    def test_add_step(self, make_config, fake_compiler):
        orchestrator = BuildOrchestrator()
        step = MockBuildStep()
        orchestrator.add_step(step)

        context = orchestrator.execute(make_config(), fake_compiler)
        assert step.execute_context is context
        assert context.build_stats['mock_processed'] is True

    def test_primary_build(self, make_config, fake_compiler, project_dir):
        config = make_config(include={"classes": ["com.example.Widget"]})
        context = orchestrator_execute(config, fake_compiler)

        spec = fake_compiler.specs[0]
        assert spec.output == config.get_output()
        assert spec.locales == ["en_US"]
        assert spec.compute_digest is True
        assert [(e.kind, e.name) for e in spec.entries] == [
            (EntryKind.CLASS, "com.example.Widget"),
            (EntryKind.FILE, "maven/com.example/widgets/pom.xml"),
        ]
        assert spec.entries[-1].path == project_dir / "pom.xml"
        assert context.archive_path == config.get_output()
        assert context.build_stats['total_entries'] == 2

    def test_descriptor_disabled(self, make_config, fake_compiler):
        config = make_config(
            compiler={"add_descriptor": False, "compute_digest": False},
            include={"classes": ["A"]},
        )
        orchestrator_execute(config, fake_compiler)

        spec = fake_compiler.specs[0]
        assert [e.name for e in spec.entries] == ["A"]
        assert spec.compute_digest is False

    def test_compiler_error_wrapped(self, make_config):
        compiler = MagicMock()
        compiler.build.side_effect = RuntimeError("compc crashed")

        with pytest.raises(BuildError, match="compc crashed"):
            BuildOrchestrator().execute(make_config(), compiler)

    def test_progress_callback(self, make_config, fake_compiler):
        calls = []
        BuildOrchestrator().execute(
            make_config(),
            fake_compiler,
            progress_callback=lambda stage, current, total, message: calls.append(current),
        )
        assert calls[0] == 0
        assert calls[-1] == 100


def orchestrator_execute(config, compiler):
    return BuildOrchestrator().execute(config, compiler)


class TestBuilder:
    """Builder 门面测试"""

    def test_build_and_optimize(self, make_config, fake_compiler):
        config = make_config(compiler={"runtime_locales": ["pt_BR"]})
        builder = Builder(compiler=fake_compiler, optimizer=EntryPointOptimizer(reverse_optimizer))

        result = builder.build(config)

        assert result.success, result.error
        assert result.output_path == config.get_output()
        assert result.output_size > 0
        assert {(a.kind, a.classifier) for a in result.artifacts} == {("resource-bundle", "pt_BR"), ("swf", None)}

        image = (config.build_dir / "widgets-1.0.0.swf").read_bytes()
        catalog = SwcCatalog.parse(read_entry(config.get_output(), "catalog.xml"))
        assert catalog.get_digest().value == hashlib.sha256(image).digest()
        assert result.digests == [catalog.get_digest().hexdigest]

    def test_skip_optimize(self, make_config, fake_compiler):
        builder = Builder(compiler=fake_compiler, optimizer=EntryPointOptimizer(reverse_optimizer))
        result = builder.build(make_config(), skip_optimize=True)

        assert result.success
        assert result.artifacts == []
        assert result.digests == []

    def test_optimizer_not_configured(self, make_config, fake_compiler):
        result = Builder(compiler=fake_compiler).build(make_config())
        assert result.success
        assert result.digests == []

    def test_missing_compiler_fails(self, make_config):
        result = Builder().build(make_config())
        assert not result.success
        assert "compiler" in result.error

    def test_optimize_missing_archive(self, make_config):
        builder = Builder(optimizer=EntryPointOptimizer(reverse_optimizer))
        result = builder.optimize(make_config())
        assert not result.success
        assert "Library file not found" in result.error

    def test_install(self, make_config, fake_compiler, project_dir):
        config = make_config(
            compiler={"runtime_locales": ["pt_BR"]},
            repositories=["repo"],
        )
        builder = Builder(compiler=fake_compiler, optimizer=EntryPointOptimizer(reverse_optimizer))
        assert builder.build(config).success

        result = builder.install(config)
        assert result.success, result.error

        version_dir = project_dir / "repo/com/example/widgets/1.0.0"
        assert sorted(p.name for p in version_dir.iterdir()) == [
            "widgets-1.0.0-pt_BR.rb.swc",
            "widgets-1.0.0.swc",
            "widgets-1.0.0.swf",
        ]
        assert len(result.installed) == 3

    def test_install_without_repository(self, make_config, fake_compiler):
        config = make_config()
        builder = Builder(compiler=fake_compiler)
        assert builder.build(config).success

        result = builder.install(config)
        assert not result.success
        assert "repositories" in result.error

    def test_discover_artifacts_skips_missing(self, make_config):
        config = make_config(compiler={"runtime_locales": ["pt_BR"]})
        artifacts = discover_artifacts(config)
        assert artifacts.primary == config.get_output()
        assert artifacts.attached == []

    def test_pipelines_valid(self):
        assert Builder().validate_build_pipeline() == []

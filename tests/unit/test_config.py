"""
配置系统单元测试

测试配置模型验证、路径锚定和加载器功能。
"""


import pytest
from pydantic import ValidationError

from swcpack.config.loader import ConfigError, ConfigLoader, ConfigValidationError, load_config, validate_config
from swcpack.config.schema import (
    ArtifactCoordinate,
    CompilerModel,
    IncludeModel,
    OptimizerModel,
    Packaging,
    ProjectModel,
    SwcpackConfig,
)


class TestProjectModel:
    """ProjectModel 测试"""

    def test_default_final_name(self):
        """未设置 final_name 时使用 artifact-version"""
        project = ProjectModel(group_id="com.example", artifact_id="widgets", version="1.0.0")
        assert project.get_final_name() == "widgets-1.0.0"
        assert project.packaging == Packaging.SWC

    def test_custom_final_name(self):
        project = ProjectModel(group_id="g", artifact_id="a", version="1", final_name="custom")
        assert project.get_final_name() == "custom"

    def test_invalid_artifact_id(self):
        with pytest.raises(ValidationError):
            ProjectModel(group_id="com.example", artifact_id="bad id", version="1.0.0")


class TestCompilerModel:
    """CompilerModel 测试"""

    def test_defaults(self):
        compiler = CompilerModel()
        assert compiler.locales == ["en_US"]
        assert compiler.runtime_locales == []
        assert compiler.runtime_bundles is None
        assert compiler.compute_digest is True
        assert compiler.add_descriptor is True
        assert compiler.execution_source_roots is None

    def test_invalid_locale(self):
        with pytest.raises(ValidationError):
            CompilerModel(runtime_locales=["en US"])

    def test_command_and_entry_point_exclusive(self):
        with pytest.raises(ValidationError):
            CompilerModel(command=["compc"], entry_point="pkg.mod:build")

    def test_optimizer_command_and_entry_point_exclusive(self):
        with pytest.raises(ValidationError):
            OptimizerModel(command=["opt"], entry_point="pkg.mod:optimize")


class TestIncludeModel:
    """IncludeModel 测试"""

    def test_absent_when_nothing_set(self):
        assert IncludeModel().is_absent()

    def test_empty_list_counts_as_present(self):
        """空列表不等于未设置"""
        assert not IncludeModel(classes=[]).is_absent()
        assert not IncludeModel(stylesheets=[]).is_absent()

    def test_coordinate_str(self):
        coordinate = ArtifactCoordinate(group_id="com.example", artifact_id="bundles", version="2.0")
        assert str(coordinate) == "com.example:bundles:swc:2.0"
        with_classifier = coordinate.model_copy(update={'classifier': 'resource-bundle', 'type': 'properties'})
        assert str(with_classifier) == "com.example:bundles:properties:resource-bundle:2.0"


class TestSwcpackConfig:
    """SwcpackConfig 测试"""

    def test_paths_anchored_to_base_dir(self, make_config, project_dir):
        config = make_config(
            compiler={"library_paths": ["libs/framework.swc"]},
            include={"sources": ["src/main/flex"], "files": ["assets/logo.png"]},
        )
        assert config.base_dir == project_dir
        assert config.build_dir == project_dir / "target"
        assert config.compiler.source_paths[0] == project_dir / "src/main/flex"
        assert config.compiler.library_paths == [project_dir / "libs/framework.swc"]
        assert config.include.sources == [project_dir / "src/main/flex"]
        # 文件引用在组装时解析
        assert config.include.files == ["assets/logo.png"]

    def test_output_paths(self, make_config, project_dir):
        config = make_config()
        assert config.get_output() == project_dir / "target" / "widgets-1.0.0.swc"
        assert config.get_locale_path("pt_BR") == project_dir / "src/main/locales/pt_BR"
        assert config.descriptor_entry_name() == "maven/com.example/widgets/pom.xml"

    def test_explicit_output(self, make_config, project_dir):
        config = make_config(compiler={"output": "out/lib.swc"})
        assert config.get_output() == project_dir / "out/lib.swc"

    def test_extra_fields_forbidden(self, project_dir):
        with pytest.raises(ValidationError):
            SwcpackConfig.from_dict({
                "project": {"group_id": "g", "artifact_id": "a", "version": "1", "base_dir": str(project_dir)},
                "unknown": True,
            })

    def test_to_dict_uses_plain_values(self, make_config):
        data = make_config().to_dict()
        assert data["project"]["packaging"] == "swc"
        assert isinstance(data["project"]["base_dir"], str)


class TestConfigLoader:
    """ConfigLoader 测试"""

    def test_load_relative_base_dir(self, tmp_path):
        """base_dir 相对于配置文件所在目录解析"""
        config_dir = tmp_path / "conf"
        config_dir.mkdir()
        config_file = config_dir / "swcpack.yaml"
        config_file.write_text(
            "project:\n"
            "  group_id: com.example\n"
            "  artifact_id: widgets\n"
            "  version: 1.0.0\n"
            "  base_dir: ../project\n"
            "compiler:\n"
            "  runtime_locales: [pt_BR]\n",
            encoding='utf-8',
        )

        config = load_config(config_file)
        assert config.base_dir == (tmp_path / "project").resolve()
        assert config.compiler.runtime_locales == ["pt_BR"]

    def test_rejects_non_yaml(self, tmp_path):
        config_file = tmp_path / "swcpack.json"
        config_file.write_text("{}", encoding='utf-8')
        with pytest.raises(ConfigError):
            ConfigLoader().load_from_file(config_file)

    def test_empty_file(self, tmp_path):
        config_file = tmp_path / "swcpack.yaml"
        config_file.write_text("", encoding='utf-8')
        with pytest.raises(ConfigError, match="为空"):
            load_config(config_file)

    def test_validation_errors(self, tmp_path):
        config_file = tmp_path / "swcpack.yaml"
        config_file.write_text("project:\n  group_id: g\n", encoding='utf-8')

        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(config_file)
        assert "artifact_id" in exc_info.value.format_errors()

        errors = validate_config(config_file)
        assert errors
        assert any("version" in [str(item) for item in e["loc"]] for e in errors)

    def test_missing_file(self, tmp_path):
        errors = validate_config(tmp_path / "missing.yaml")
        assert errors[0]["type"] == "config_error"

    def test_save_and_reload(self, make_config, tmp_path):
        config = make_config(compiler={"runtime_locales": ["pt_BR"]})
        output = tmp_path / "saved" / "swcpack.yaml"
        ConfigLoader().save_to_file(config, output)

        reloaded = load_config(output)
        assert reloaded.base_dir == config.base_dir
        assert reloaded.compiler.runtime_locales == ["pt_BR"]
        assert reloaded.get_output() == config.get_output()

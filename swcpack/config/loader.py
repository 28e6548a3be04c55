"""
配置加载器

读取 swcpack.yaml，把 project.base_dir 锚定到配置文件所在目录后交给 Pydantic 验证。
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Union

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .schema import SwcpackConfig

CONFIG_SUFFIXES = ('.yaml', '.yml')


class ConfigError(Exception):
    """配置错误基类"""
    pass


class ConfigValidationError(ConfigError):
    """配置验证错误，errors 为 Pydantic 的错误字典列表"""

    def __init__(self, message: str, errors: List[Dict[str, Any]]):
        super().__init__(message)
        self.errors = errors

    def format_errors(self) -> str:
        lines = []
        for item in self.errors:
            where = ".".join(str(part) for part in item.get('loc', ()))
            lines.append(f"{where or '<根>'}: {item.get('msg', '未知错误')}")
            if where and item.get('input') not in (None, ''):
                lines.append(f"  输入值: {item['input']}")
        return "\n".join(lines)


def _plain(data: Any) -> Any:
    # ruamel 的 CommentedMap/CommentedSeq 转成普通容器
    return json.loads(json.dumps(data))


class ConfigLoader:
    """YAML 配置读写"""

    def __init__(self):
        self.yaml = YAML()
        self.yaml.width = 4096

    def _read(self, config_path: Path) -> Dict[str, Any]:
        if not config_path.is_file():
            raise ConfigError(f"配置文件不存在: {config_path}")
        if config_path.suffix.lower() not in CONFIG_SUFFIXES:
            raise ConfigError(f"配置文件必须是 .yaml 或 .yml 格式: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                raw = self.yaml.load(f)
        except YAMLError as e:
            raise ConfigError(f"YAML 解析错误: {e}") from e
        except OSError as e:
            raise ConfigError(f"读取配置文件失败: {e}") from e

        if raw is None:
            raise ConfigError("配置文件为空")
        if not isinstance(raw, dict):
            raise ConfigError("配置文件顶层必须是映射")
        return _plain(raw)

    def load_from_file(self, config_path: Union[str, Path]) -> SwcpackConfig:
        """加载并验证配置文件

        Raises:
            ConfigError: 文件无法读取或解析
            ConfigValidationError: 字段验证失败
        """
        config_path = Path(config_path)
        data = self._read(config_path)

        project = data.get('project')
        if isinstance(project, dict):
            base_dir = Path(str(project.get('base_dir', '.')))
            if not base_dir.is_absolute():
                project['base_dir'] = str((config_path.parent.resolve() / base_dir).resolve())

        try:
            return SwcpackConfig.from_dict(data)
        except ValidationError as e:
            raise ConfigValidationError("配置验证失败", list(e.errors())) from e

    def save_to_file(self, config: SwcpackConfig, output_path: Union[str, Path]) -> None:
        output_path = Path(output_path)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, 'w', encoding='utf-8') as f:
                self.yaml.dump(config.to_dict(), f)
        except (OSError, YAMLError) as e:
            raise ConfigError(f"保存配置文件失败: {e}") from e

    def validate_file(self, config_path: Union[str, Path]) -> List[Dict[str, Any]]:
        """返回错误列表，空列表表示配置有效"""
        try:
            self.load_from_file(config_path)
        except ConfigValidationError as e:
            return e.errors
        except ConfigError as e:
            return [{'loc': [], 'msg': str(e), 'type': 'config_error'}]
        return []


config_loader = ConfigLoader()


def load_config(config_path: Union[str, Path]) -> SwcpackConfig:
    return config_loader.load_from_file(config_path)


def validate_config(config_path: Union[str, Path]) -> List[Dict[str, Any]]:
    return config_loader.validate_file(config_path)


def save_config(config: SwcpackConfig, output_path: Union[str, Path]) -> None:
    config_loader.save_to_file(config, output_path)

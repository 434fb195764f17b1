"""
配置加载器

负责从 YAML 文件、CI 环境变量和命令行覆盖项组装打包配置并进行验证。
优先级：YAML 文件 < 环境变量 < 命令行参数。
"""

import copy
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .schema import PackagingConfig


# (section, field) -> 候选环境变量，按顺序取第一个非空值
ENVIRONMENT_VARIABLES: Dict[Tuple[str, str], Tuple[str, ...]] = {
    ('identity', 'release_tag'): ('RELPACK_RELEASE_TAG', 'CIRCLE_TAG'),
    ('identity', 'branch_name'): ('RELPACK_BRANCH', 'CIRCLE_BRANCH'),
    ('identity', 'commit_hash'): ('RELPACK_COMMIT', 'CIRCLE_SHA1'),
    ('metadata', 'product_name'): ('RELPACK_PRODUCT', 'BINARY'),
    ('metadata', 'target_platform'): ('RELPACK_TARGET_PLATFORM', 'TARGET_OS'),
    ('metadata', 'job_name'): ('RELPACK_JOB', 'CIRCLE_JOB'),
    ('sources', 'binary_path'): ('RELPACK_BINARY_PATH',),
    ('sources', 'asset_dir'): ('RELPACK_ASSET_DIR',),
    ('output', 'dist_dir'): ('RELPACK_DIST_DIR',),
    ('output', 'source_date_epoch'): ('SOURCE_DATE_EPOCH',),
}

# 相对路径需要按配置文件所在目录解析的字段
PATH_FIELDS: List[Tuple[str, str]] = [
    ('sources', 'binary_path'),
    ('sources', 'asset_dir'),
    ('output', 'dist_dir'),
    ('output', 'staging_dir'),
]


class ConfigError(Exception):
    """配置错误基类"""
    pass


class ConfigValidationError(ConfigError):
    """配置验证错误"""

    def __init__(self, message: str, errors: List[Dict[str, Any]]):
        super().__init__(message)
        self.errors = errors

    def format_errors(self) -> str:
        """格式化错误信息为人类可读的格式"""
        formatted = []
        for error in self.errors:
            loc = " -> ".join(str(item) for item in error.get('loc', []))
            msg = error.get('msg', '未知错误')
            input_val = error.get('input', '')

            if loc:
                formatted.append(f"字段 '{loc}': {msg}")
                if input_val:
                    formatted.append(f"  输入值: {input_val}")
            else:
                formatted.append(f"根级别: {msg}")

        return "\n".join(formatted)

    def format_errors_json(self) -> str:
        """格式化错误信息为 JSON 格式"""
        return json.dumps(self.errors, ensure_ascii=False, indent=2, default=str)


@dataclass
class ValidationResult:
    """配置验证结果"""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    config: Optional[PackagingConfig] = None


def merge_config_data(*layers: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """按顺序深度合并配置层，后面的层覆盖前面的层

    值为 None 的项视为未设置，不会覆盖已有值。
    """
    merged: Dict[str, Any] = {}

    def merge_into(target: Dict[str, Any], source: Mapping[str, Any]) -> None:
        for key, value in source.items():
            if value is None:
                continue
            if isinstance(value, Mapping) and isinstance(target.get(key), dict):
                merge_into(target[key], value)
            elif isinstance(value, Mapping):
                target[key] = {}
                merge_into(target[key], value)
            else:
                target[key] = value

    for layer in layers:
        if layer:
            merge_into(merged, layer)

    return merged


class ConfigLoader:
    """配置加载器"""

    def __init__(self):
        self.yaml = YAML()
        self.yaml.preserve_quotes = True
        self.yaml.width = 4096  # 避免长行自动换行

    def read_file_data(self, config_path: Union[str, Path]) -> Dict[str, Any]:
        """读取 YAML 配置文件为字典（不做 schema 验证）

        相对路径按配置文件所在目录解析。

        Raises:
            ConfigError: 文件不存在、格式错误或解析失败
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise ConfigError(f"配置文件不存在: {config_path}")

        if not config_path.is_file():
            raise ConfigError(f"配置路径不是文件: {config_path}")

        if config_path.suffix.lower() not in ['.yaml', '.yml']:
            raise ConfigError(f"配置文件必须是 .yaml 或 .yml 格式: {config_path}")

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                raw_data = self.yaml.load(f)
        except YAMLError as e:
            raise ConfigError(f"YAML 解析错误: {e}") from e
        except OSError as e:
            raise ConfigError(f"文件读取错误: {e}") from e

        if raw_data is None:
            raise ConfigError("配置文件为空")

        if not isinstance(raw_data, dict):
            raise ConfigError("配置文件根级别必须是对象/字典格式")

        # ruamel 的 CommentedMap 转为普通 dict，便于后续合并
        data = json.loads(json.dumps(raw_data, default=str))
        self._resolve_relative_paths(data, config_path.parent)
        return data

    def load_from_file(self, config_path: Union[str, Path]) -> PackagingConfig:
        """从文件加载配置

        Raises:
            ConfigError: 配置加载或验证错误
        """
        return self.load_from_dict(self.read_file_data(config_path))

    def load_from_dict(self, data: Dict[str, Any], base_path: Optional[Path] = None) -> PackagingConfig:
        """从字典加载配置

        Args:
            data: 配置数据字典
            base_path: 相对路径的基准路径

        Raises:
            ConfigValidationError: 配置验证错误
        """
        if base_path:
            data = copy.deepcopy(data)
            self._resolve_relative_paths(data, base_path)

        try:
            return PackagingConfig.from_dict(data)
        except ValidationError as e:
            raise ConfigValidationError("配置验证失败", e.errors()) from e

    def environment_overrides(self, environ: Mapping[str, str]) -> Dict[str, Any]:
        """从 CI 环境变量映射中提取配置覆盖项

        Args:
            environ: 环境变量映射（调用方传入，通常是 os.environ）

        Returns:
            Dict: 可与其它配置层合并的嵌套字典
        """
        overrides: Dict[str, Any] = {}

        for (section, key), names in ENVIRONMENT_VARIABLES.items():
            for name in names:
                value = environ.get(name)
                if value:
                    overrides.setdefault(section, {})[key] = value
                    break

        # CI 默认布局：target/<TARGET>/release/<BINARY>
        sources = overrides.setdefault('sources', {})
        if 'binary_path' not in sources and environ.get('TARGET') and environ.get('BINARY'):
            sources['binary_path'] = str(Path('target') / environ['TARGET'] / 'release' / environ['BINARY'])
        if not sources:
            del overrides['sources']

        return overrides

    def source_date_epoch_override(self, environ: Mapping[str, str]) -> Dict[str, Any]:
        """读取 SOURCE_DATE_EPOCH（不需要启用 CI 环境变量映射）"""
        value = environ.get('SOURCE_DATE_EPOCH')
        return {'output': {'source_date_epoch': value}} if value else {}

    def load_from_environment(
        self,
        environ: Mapping[str, str],
        base_data: Optional[Mapping[str, Any]] = None,
    ) -> PackagingConfig:
        """从环境变量构建配置，可叠加在已有配置数据之上

        Raises:
            ConfigValidationError: 配置验证错误
        """
        return self.load_from_dict(merge_config_data(base_data, self.environment_overrides(environ)))

    def save_to_file(self, config: PackagingConfig, output_path: Union[str, Path]) -> None:
        """保存配置到 YAML 文件

        Raises:
            ConfigError: 保存错误
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(output_path, 'w', encoding='utf-8') as f:
                self.yaml.dump(config.to_dict(), f)
        except (OSError, YAMLError) as e:
            raise ConfigError(f"保存配置文件失败: {e}") from e

    def validate_file(self, config_path: Union[str, Path]) -> List[Dict[str, Any]]:
        """验证配置文件并返回错误列表，空列表表示验证通过"""
        try:
            self.load_from_file(config_path)
            return []
        except ConfigValidationError as e:
            return e.errors
        except ConfigError as e:
            return [{
                'loc': [],
                'msg': str(e),
                'type': 'config_error'
            }]

    def _resolve_relative_paths(self, data: Dict[str, Any], base_path: Path) -> None:
        """解析配置中的相对路径"""
        for section, key in PATH_FIELDS:
            current = data.get(section)
            if not isinstance(current, dict):
                continue
            path_value = current.get(key)
            if isinstance(path_value, str) and path_value and not Path(path_value).is_absolute():
                current[key] = str((base_path / path_value).resolve())


# 全局加载器实例
config_loader = ConfigLoader()


def load_config(config_path: Union[str, Path]) -> PackagingConfig:
    """便捷函数：加载配置文件"""
    return config_loader.load_from_file(config_path)


def load_config_from_environment(
    environ: Mapping[str, str],
    base_data: Optional[Mapping[str, Any]] = None,
) -> PackagingConfig:
    """便捷函数：从环境变量映射构建配置"""
    return config_loader.load_from_environment(environ, base_data)


def validate_config(config_path: Union[str, Path]) -> List[Dict[str, Any]]:
    """便捷函数：验证配置文件"""
    return config_loader.validate_file(config_path)


def validate_config_with_result(config_or_path: Union[PackagingConfig, str, Path]) -> ValidationResult:
    """验证配置并返回详细结果"""
    try:
        if isinstance(config_or_path, (str, Path)):
            config = load_config(config_or_path)
        else:
            config = config_or_path
        return ValidationResult(is_valid=True, config=config)

    except ConfigValidationError as e:
        error_messages = []
        for error in e.errors:
            loc = " -> ".join(str(item) for item in error.get('loc', []))
            msg = error.get('msg', '未知错误')
            error_messages.append(f"字段 '{loc}': {msg}" if loc else f"根级别: {msg}")
        return ValidationResult(is_valid=False, errors=error_messages)

    except ConfigError as e:
        return ValidationResult(is_valid=False, errors=[f"配置加载失败: {e}"])


def save_config(config: PackagingConfig, output_path: Union[str, Path]) -> None:
    """便捷函数：保存配置文件"""
    config_loader.save_to_file(config, output_path)

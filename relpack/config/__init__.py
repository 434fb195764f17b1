"""配置和 Schema 模块

提供打包配置的加载、环境变量映射、验证和保存功能。
"""

from .schema import (
    ArchiveFormat,
    BuildIdentity,
    BuildMetadata,
    OutputModel,
    PackagingConfig,
    SourcesModel,
)
from .loader import (
    ConfigLoader,
    ConfigValidationError,
    ConfigError,
    ValidationResult,
    load_config,
    load_config_from_environment,
    merge_config_data,
    validate_config,
    validate_config_with_result,
    save_config,
    config_loader,
)

__all__ = [
    # 模型
    "ArchiveFormat",
    "BuildIdentity",
    "BuildMetadata",
    "OutputModel",
    "PackagingConfig",
    "SourcesModel",

    # 加载器
    "ConfigLoader",
    "ValidationResult",

    # 异常类
    "ConfigError",
    "ConfigValidationError",

    # 便捷函数
    "load_config",
    "load_config_from_environment",
    "merge_config_data",
    "validate_config",
    "validate_config_with_result",
    "save_config",

    # 单例
    "config_loader",
]

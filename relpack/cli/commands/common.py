"""
命令间共享的配置组装逻辑

进程环境只在这里读取一次，之后配置以不可变对象的形式传入核心。
"""

import os
from typing import Any, Dict, Mapping, Optional

from ...config import ArchiveFormat, config_loader, merge_config_data


def flag_overrides(
    tag: Optional[str] = None,
    branch: Optional[str] = None,
    commit: Optional[str] = None,
    product: Optional[str] = None,
    target_platform: Optional[str] = None,
    job: Optional[str] = None,
    binary: Optional[str] = None,
    assets: Optional[str] = None,
    dist: Optional[str] = None,
    archive_format: Optional[ArchiveFormat] = None,
    level: Optional[int] = None,
    force: bool = False,
) -> Dict[str, Any]:
    """把命令行参数转换为配置覆盖层（None 表示未指定）"""
    return {
        'identity': {
            'release_tag': tag,
            'branch_name': branch,
            'commit_hash': commit,
        },
        'metadata': {
            'product_name': product,
            'target_platform': target_platform,
            'job_name': job,
        },
        'sources': {
            'binary_path': binary,
            'asset_dir': assets,
        },
        'output': {
            'dist_dir': dist,
            'archive_format': archive_format.value if archive_format else None,
            'compression_level': level,
            'overwrite': True if force else None,
        },
    }


def collect_config_data(
    config_file: Optional[str],
    from_env: bool,
    overrides: Mapping[str, Any],
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """按 文件 < 环境变量 < 命令行 的优先级合并配置数据

    SOURCE_DATE_EPOCH 总是读取；其它 CI 变量只在 from_env 时读取。

    Raises:
        ConfigError: 配置文件读取失败
    """
    file_data = config_loader.read_file_data(config_file) if config_file else None
    environ = environ if environ is not None else os.environ
    if from_env:
        env_data = config_loader.environment_overrides(environ)
    else:
        env_data = config_loader.source_date_epoch_override(environ)
    return merge_config_data(file_data, env_data, overrides)

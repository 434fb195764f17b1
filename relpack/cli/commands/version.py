"""
Version 命令实现

只解析版本号（可选同时生成归档名），输出给 CI 脚本使用。
"""

from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from ...build.errors import PackagingError
from ...build.naming import ArchiveNamer
from ...build.version import VersionResolver
from ...config import ArchiveFormat, BuildIdentity, BuildMetadata, ConfigError
from ...utils.logging import OutputLevel, set_log_level
from .common import collect_config_data, flag_overrides


err_console = Console(stderr=True)


def version_command(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="YAML 配置文件路径"),
    from_env: bool = typer.Option(False, "--from-env", help="从 CI 环境变量读取身份与元数据"),
    tag: Optional[str] = typer.Option(None, "--tag", help="发布标签"),
    branch: Optional[str] = typer.Option(None, "--branch", help="分支名"),
    commit: Optional[str] = typer.Option(None, "--commit", help="提交哈希"),
    product: Optional[str] = typer.Option(None, "--product", help="产品（二进制）名称"),
    target_platform: Optional[str] = typer.Option(None, "--target-platform", help="目标平台标识"),
    job: Optional[str] = typer.Option(None, "--job", help="构建任务名称"),
    archive_format: Optional[ArchiveFormat] = typer.Option(None, "--format", help="归档格式"),
    with_archive_name: bool = typer.Option(False, "--archive-name", help="同时输出归档文件名"),
    export: bool = typer.Option(False, "--export", help="以 `export NAME=value` 形式输出"),
) -> None:
    """解析版本号

    示例:
        relpack version --from-env
        relpack version --branch main --commit abcdef1234567
        relpack version --from-env --archive-name --export >> "$BASH_ENV"
    """
    # 标准输出只留给结果
    set_log_level(OutputLevel.WARNING)

    try:
        data = collect_config_data(
            config,
            from_env,
            flag_overrides(
                tag=tag, branch=branch, commit=commit,
                product=product, target_platform=target_platform, job=job,
                archive_format=archive_format,
            ),
        )
        identity = BuildIdentity.model_validate(data.get('identity', {}))
        metadata = BuildMetadata.model_validate(data.get('metadata', {}))
        fmt = ArchiveFormat(data.get('output', {}).get('archive_format', ArchiveFormat.TAR_GZ.value))
    except (ConfigError, ValidationError, ValueError) as e:
        err_console.print(f"[red]配置错误[/red]: {escape(str(e))}")
        raise typer.Exit(1)

    try:
        values = {'VERSION': VersionResolver().resolve(identity)}
        if with_archive_name:
            values['ARCHIVE_NAME'] = ArchiveNamer(fmt).name(values['VERSION'], metadata)
    except PackagingError as e:
        err_console.print(f"[red]✗ 解析失败[/red] ({e.stage})")
        err_console.print(str(e), markup=False)
        raise typer.Exit(1)

    for key, value in values.items():
        if export:
            typer.echo(f"export {key}={value}")
        elif len(values) == 1:
            typer.echo(value)
        else:
            typer.echo(f"{key}={value}")

"""
Package 命令实现

执行完整的打包流程：解析版本 -> 命名 -> 暂存 -> 写入归档。
"""

import traceback
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from ...config import ArchiveFormat, ConfigError, ConfigValidationError, config_loader
from ...utils.logging import OutputLevel, set_log_file, set_log_level
from ...utils.paths import format_size
from .common import collect_config_data, flag_overrides


console = Console()
err_console = Console(stderr=True)


def package_command(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="YAML 配置文件路径"),
    from_env: bool = typer.Option(False, "--from-env", help="从 CI 环境变量读取身份与元数据"),
    tag: Optional[str] = typer.Option(None, "--tag", help="发布标签"),
    branch: Optional[str] = typer.Option(None, "--branch", help="分支名"),
    commit: Optional[str] = typer.Option(None, "--commit", help="提交哈希"),
    product: Optional[str] = typer.Option(None, "--product", help="产品（二进制）名称"),
    target_platform: Optional[str] = typer.Option(None, "--target-platform", help="目标平台标识"),
    job: Optional[str] = typer.Option(None, "--job", help="构建任务名称"),
    binary: Optional[str] = typer.Option(None, "--binary", help="编译好的可执行文件路径"),
    assets: Optional[str] = typer.Option(None, "--assets", help="静态资源目录"),
    dist: Optional[str] = typer.Option(None, "--dist", help="归档输出目录"),
    archive_format: Optional[ArchiveFormat] = typer.Option(None, "--format", help="归档格式"),
    level: Optional[int] = typer.Option(None, "--level", help="压缩级别"),
    force: bool = typer.Option(False, "--force", "-f", help="覆盖已存在的归档"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="日志输出文件"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出详细调试日志 (DEBUG 级别)"),
) -> None:
    """打包发布归档

    示例:
        relpack package --from-env
        relpack package --tag v1.2.0 --product svc --target-platform linux-arm64 \\
            --job aarch64 --binary target/release/svc --assets ui/build --dist /tmp/dist
        relpack package -c relpack.yaml --force
    """
    from ...build.builder import Packager

    if verbose:
        set_log_level(OutputLevel.DEBUG)

    if log_file:
        try:
            set_log_file(log_file)
        except OSError as e:
            err_console.print(f"[yellow]无法写入日志文件 {log_file}: {e}[/yellow]")

    try:
        data = collect_config_data(
            config,
            from_env,
            flag_overrides(
                tag=tag, branch=branch, commit=commit,
                product=product, target_platform=target_platform, job=job,
                binary=binary, assets=assets, dist=dist,
                archive_format=archive_format, level=level, force=force,
            ),
        )
        config_obj = config_loader.load_from_dict(data)
    except ConfigValidationError as e:
        err_console.print("[red]配置验证失败:[/red]")
        err_console.print(e.format_errors(), markup=False)
        raise typer.Exit(1)
    except ConfigError as e:
        err_console.print(f"[red]配置错误[/red]: {escape(str(e))}")
        raise typer.Exit(1)

    def progress_callback(stage: str, current: int, total: int, message: str = "") -> None:
        if total > 0:
            percentage = (current / total) * 100
            console.print(f"[blue]{stage}[/blue]: {message} ({percentage:.0f}%)", highlight=False)

    try:
        result = Packager().package(config_obj, progress_callback if verbose else None)
    except Exception as e:
        err_console.print(f"[red]✗ 打包过程中发生意外错误[/red]: {escape(str(e))}")
        if log_file or verbose:
            err_console.print(traceback.format_exc(), markup=False)
        raise typer.Exit(1)

    if not result.success:
        err_console.print(f"[red]✗ 打包失败[/red] ({result.failed_stage})")
        err_console.print(result.error, markup=False)
        if log_file:
            err_console.print(f"[yellow]请检查日志文件 {log_file} 获取详细信息。[/yellow]")
        raise typer.Exit(1)

    console.print(f"[green]✓ 归档已生成[/green]: {escape(str(result.output_path))}")
    console.print(f"[blue]版本[/blue]: {escape(result.version or '')}")
    console.print(f"[blue]文件数[/blue]: {result.file_count}")
    console.print(f"[blue]大小[/blue]: {format_size(result.output_size or 0)}")
    console.print(f"[blue]SHA-256[/blue]: {result.sha256}")

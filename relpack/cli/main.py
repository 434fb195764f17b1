"""
relpack CLI 主入口

提供命令行接口，支持 package/version/validate/inspect/extract 等命令。
"""

import sys
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .. import __version__
from ..config import (
    ArchiveFormat,
    BuildIdentity,
    BuildMetadata,
    ConfigError,
    OutputModel,
    PackagingConfig,
    SourcesModel,
    save_config,
)
from ..utils import configure_logging
from .commands import extract, inspect, package, validate, version


# 创建主应用
app = typer.Typer(
    name="relpack",
    help="relpack - CI 发布归档打包工具",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# 控制台输出
console = Console()


def version_callback(value: bool) -> None:
    """显示版本信息"""
    if value:
        console.print(f"relpack v{__version__}")
        raise typer.Exit()


def verbose_callback(verbose: bool) -> None:
    """配置详细输出"""
    configure_logging(level="DEBUG" if verbose else "INFO")


@app.callback()
def main(
    show_version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="显示版本信息"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        callback=verbose_callback,
        help="启用详细输出"
    )
) -> None:
    """relpack - CI 发布归档打包工具

    使用 --help 查看可用命令的详细信息。
    """
    pass


# 注册子命令
app.command("package", help="打包发布归档")(package.package_command)
app.command("version", help="解析版本号")(version.version_command)
app.command("validate", help="验证配置文件")(validate.validate_command)
app.command("inspect", help="检查归档内容")(inspect.inspect_command)
app.command("extract", help="提取归档内容")(extract.extract_command)


@app.command("info")
def info_command() -> None:
    """显示系统信息"""
    import zstandard

    from ..build.compressor import CompressorFactory

    console.print("[bold]relpack 系统信息[/bold]")
    console.print()

    table = Table(title="版本信息")
    table.add_column("组件", style="cyan")
    table.add_column("版本", style="green")

    table.add_row("relpack", __version__)
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    table.add_row("zstandard", zstandard.__version__)

    console.print(table)
    console.print()

    fmt_table = Table(title="支持的归档格式")
    fmt_table.add_column("格式", style="cyan")
    fmt_table.add_column("后缀", style="green")
    fmt_table.add_column("压缩级别", style="yellow")

    for fmt in CompressorFactory.get_available_formats():
        fmt_table.add_row(fmt.value, fmt.suffix, f"1-{fmt.max_level}")

    console.print(fmt_table)


@app.command("example")
def example_command(
    output: str = typer.Option(
        "relpack.yaml",
        "--output", "-o",
        help="输出配置文件路径"
    )
) -> None:
    """生成示例配置文件"""
    config = PackagingConfig(
        identity=BuildIdentity(branch_name="main", commit_hash="abcdef1234567"),
        metadata=BuildMetadata(
            product_name="svc",
            target_platform="linux-arm64",
            job_name="aarch64",
        ),
        sources=SourcesModel(
            binary_path="target/aarch64-unknown-linux-gnu/release/svc",
            asset_dir="ui/build",
        ),
        output=OutputModel(
            dist_dir="/tmp/dist",
            archive_format=ArchiveFormat.TAR_GZ,
        ),
    )

    try:
        save_config(config, output)
    except ConfigError as e:
        console.print(f"[red]生成示例配置失败: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print(f"✓ 示例配置文件已生成: [green]{escape(output)}[/green]")
    console.print("请根据需要修改配置文件，然后运行:")
    console.print(f"  [cyan]relpack package -c {escape(output)}[/cyan]")


if __name__ == "__main__":
    app()

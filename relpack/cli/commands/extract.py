"""
Extract 命令实现

把归档恢复到目录，用于校验发布内容。
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from ...build.compressor import CompressionError, CompressorFactory, DecompressionError
from ...utils.paths import format_size


console = Console()


def extract_command(
    archive: str = typer.Argument(..., help="归档文件路径"),
    output_dir: str = typer.Option("./extracted", "--dir", "-d", help="输出目录"),
    force: bool = typer.Option(False, "--force", "-f", help="允许解压到非空目录"),
) -> None:
    """提取归档内容

    示例:
        relpack extract svc-v1.2.0-linux-arm64-aarch64.tar.gz
        relpack extract svc.tar.gz -d output/
    """
    archive_path = Path(archive)
    output_path = Path(output_dir)

    if not archive_path.is_file():
        console.print(f"[red]归档文件不存在: {escape(str(archive_path))}[/red]")
        raise typer.Exit(1)

    if output_path.exists() and not force:
        if not output_path.is_dir() or any(output_path.iterdir()):
            console.print(f"[red]输出目录不为空: {escape(str(output_path))}[/red]")
            console.print("使用 --force 参数强制解压")
            raise typer.Exit(1)

    console.print(f"正在提取归档: [cyan]{escape(str(archive_path))}[/cyan]")
    console.print(f"输出目录: [cyan]{escape(str(output_path))}[/cyan]")

    try:
        compressor = CompressorFactory.for_path(archive_path)
        with open(archive_path, 'rb') as f:
            extracted = compressor.decompress_to_directory(f, output_path)
    except (CompressionError, DecompressionError, OSError) as e:
        console.print(f"[red]提取失败: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]✓ 提取完成[/green]: {format_size(extracted)}")

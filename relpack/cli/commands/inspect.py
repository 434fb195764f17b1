"""
Inspect 命令实现

列出归档中的条目（权限、大小、路径）和归档的 SHA-256。
"""

import json
import stat
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ...build.checksum import calculate_archive_hash
from ...build.compressor import CompressionError, CompressorFactory, DecompressionError
from ...utils.paths import format_size


console = Console()


def inspect_command(
    archive: str = typer.Argument(..., help="归档文件路径"),
    json_output: bool = typer.Option(False, "--json", help="输出 JSON 格式"),
) -> None:
    """检查归档内容

    示例:
        relpack inspect /tmp/dist/svc-v1.2.0-linux-arm64-aarch64.tar.gz
        relpack inspect svc.tar.gz --json
    """
    archive_path = Path(archive)

    if not archive_path.is_file():
        console.print(f"[red]归档文件不存在: {escape(str(archive_path))}[/red]")
        raise typer.Exit(1)

    try:
        compressor = CompressorFactory.for_path(archive_path)
        with open(archive_path, 'rb') as f:
            members = compressor.list_members(f)
        sha256 = calculate_archive_hash(archive_path)
    except (CompressionError, DecompressionError, OSError) as e:
        console.print(f"[red]检查归档失败: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    entries = [
        {
            "name": member.name,
            "type": "dir" if member.isdir() else "file",
            "mode": stat.filemode(member.mode | (stat.S_IFDIR if member.isdir() else stat.S_IFREG)),
            "size": member.size,
        }
        for member in members
    ]

    if json_output:
        data = {
            "archive": str(archive_path),
            "format": compressor.get_format().value,
            "size": archive_path.stat().st_size,
            "sha256": sha256,
            "entries": entries,
        }
        console.print_json(json.dumps(data, ensure_ascii=False))
        return

    table = Table(title=escape(archive_path.name))
    table.add_column("权限", style="cyan", no_wrap=True)
    table.add_column("大小", style="green", justify="right")
    table.add_column("路径")

    for entry in entries:
        size = "-" if entry["type"] == "dir" else format_size(entry["size"])
        table.add_row(entry["mode"], size, escape(entry["name"]))

    console.print(table)
    console.print(f"[blue]格式[/blue]: {compressor.get_format().value}")
    console.print(f"[blue]条目数[/blue]: {len(entries)}")
    console.print(f"[blue]SHA-256[/blue]: {sha256}")

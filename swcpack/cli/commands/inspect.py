"""
Inspect 命令实现

显示 SWC 归档的条目和目录中的库摘要。
"""

import json
import zipfile
from pathlib import Path
from typing import Any, Dict

import typer
from rich.console import Console
from rich.table import Table

from ...swc import CATALOG_NAME, CatalogError, ContainerError, SwcCatalog, read_entry
from ...utils import format_size


console = Console()


def read_archive_info(archive_path: Path) -> Dict[str, Any]:
    """读取归档的条目列表和目录摘要

    Raises:
        ContainerError: 归档无法读取
        CatalogError: 目录无法解析
    """
    try:
        with zipfile.ZipFile(archive_path, 'r') as zf:
            entries = [
                {
                    "name": info.filename,
                    "size": info.file_size,
                    "compressed_size": info.compress_size,
                    "crc": f"{info.CRC:08x}",
                }
                for info in zf.infolist()
            ]
    except (OSError, zipfile.BadZipFile) as e:
        raise ContainerError(f"无法读取容器 {archive_path}: {e}") from e

    catalog = SwcCatalog.parse(read_entry(archive_path, CATALOG_NAME))
    libraries = []
    for library_path in catalog.library_paths():
        libraries.append({
            "path": library_path,
            "digests": [
                {
                    "type": record.algorithm,
                    "signed": record.signed,
                    "value": record.hexdigest,
                }
                for record in catalog.get_digests(library_path)
            ],
        })

    return {
        "archive": str(archive_path),
        "size": archive_path.stat().st_size,
        "namespace": catalog.namespace,
        "entries": entries,
        "libraries": libraries,
        "files": catalog.file_paths(),
    }


def inspect_command(
    archive: str = typer.Argument(..., help="SWC 归档路径"),
    json_output: bool = typer.Option(False, "--json", help="输出 JSON 格式"),
    show_entries: bool = typer.Option(False, "--entries", help="显示归档条目列表"),
) -> None:
    """检查 SWC 归档

    示例:
        swcpack inspect target/lib-1.0.swc
        swcpack inspect target/lib-1.0.swc --json
    """
    archive_path = Path(archive)

    if not archive_path.exists():
        console.print(f"[red]归档文件不存在: {archive_path}[/red]")
        raise typer.Exit(1)

    try:
        data = read_archive_info(archive_path)
    except (ContainerError, CatalogError) as e:
        console.print(f"[red]检查归档失败: {e}[/red]")
        raise typer.Exit(1)

    if json_output:
        typer.echo(json.dumps(data, ensure_ascii=False, indent=2))
        return

    _display_archive_info(data, show_entries)


def _display_archive_info(data: Dict[str, Any], show_entries: bool) -> None:
    console.print("[bold]归档信息[/bold]")
    console.print()

    basic_table = Table(title="基本信息")
    basic_table.add_column("属性", style="cyan")
    basic_table.add_column("值", style="green")
    basic_table.add_row("文件", data["archive"])
    basic_table.add_row("大小", format_size(data["size"]))
    basic_table.add_row("目录命名空间", data["namespace"] or "-")
    basic_table.add_row("条目数", str(len(data["entries"])))
    basic_table.add_row("登记文件数", str(len(data["files"])))
    console.print(basic_table)
    console.print()

    digest_table = Table(title="库摘要")
    digest_table.add_column("库", style="cyan")
    digest_table.add_column("算法", style="green")
    digest_table.add_column("签名", style="yellow")
    digest_table.add_column("摘要值", style="white")
    for library in data["libraries"]:
        if not library["digests"]:
            digest_table.add_row(library["path"], "-", "-", "-")
        for digest in library["digests"]:
            digest_table.add_row(
                library["path"],
                digest["type"],
                "是" if digest["signed"] else "否",
                digest["value"],
            )
    console.print(digest_table)

    if show_entries:
        console.print()
        entries_table = Table(title=f"条目列表 ({len(data['entries'])} 个)")
        entries_table.add_column("名称", style="cyan")
        entries_table.add_column("大小", style="green")
        entries_table.add_column("压缩后", style="yellow")
        entries_table.add_column("CRC", style="white")
        for entry in data["entries"]:
            entries_table.add_row(
                entry["name"],
                format_size(entry["size"]),
                format_size(entry["compressed_size"]),
                entry["crc"],
            )
        console.print(entries_table)

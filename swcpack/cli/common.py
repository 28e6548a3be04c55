"""
CLI 公共工具

配置加载、进度显示和结果输出在多个子命令之间共用。
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..build.builder import BuildResult
from ..config import load_config, ConfigError, ConfigValidationError
from ..config.schema import SwcpackConfig
from ..utils import format_size


console = Console()


def load_config_or_exit(config: str) -> SwcpackConfig:
    """加载配置文件，失败时打印错误并退出"""
    config_path = Path(config)
    if not config_path.exists():
        console.print(f"[red]配置文件不存在: {config_path}[/red]")
        raise typer.Exit(1)

    try:
        console.print(f"[cyan]正在加载配置文件[/cyan]: {config_path}")
        return load_config(config_path)
    except ConfigValidationError as e:
        console.print("[red]配置验证失败:[/red]")
        console.print(e.format_errors())
        raise typer.Exit(1)
    except ConfigError as e:
        console.print(f"[red]配置错误[/red]: {e}")
        raise typer.Exit(1)


def progress_callback(stage: str, current: int, total: int, message: str = "") -> None:
    """进度回调函数，显示进度"""
    if total > 0:
        percentage = (current / total) * 100
        if message:
            console.print(f"[blue]{stage}[/blue]: {message} ({percentage:.0f}%)")
        else:
            console.print(f"[blue]{stage}[/blue]: {percentage:.0f}%")


def print_result(result: BuildResult, title: str) -> None:
    """显示构建结果，失败时退出"""
    if not result.success:
        console.print(f"[red]✗ {title}失败[/red]: {result.error}")
        raise typer.Exit(1)

    console.print(f"[green]✓ {title}完成[/green]")

    table = Table(title=f"{title}结果")
    table.add_column("属性", style="cyan")
    table.add_column("值", style="green")

    if result.output_path:
        table.add_row("输出文件", str(result.output_path))
    if result.output_size is not None:
        table.add_row("文件大小", format_size(result.output_size))
    if result.build_time is not None:
        table.add_row("耗时", f"{result.build_time:.1f}秒")
    for digest in result.digests:
        table.add_row("摘要", digest)
    for artifact in result.artifacts:
        label = artifact.kind if not artifact.classifier else f"{artifact.kind} ({artifact.classifier})"
        table.add_row("附加制品", f"{label}: {artifact.file}")
    for path in result.installed:
        table.add_row("已安装", str(path))

    console.print(table)

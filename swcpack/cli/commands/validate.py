"""
Validate 命令实现

验证配置文件，并检查构建前就能发现的问题。
"""

import json
from pathlib import Path
from typing import List

import typer
from rich.console import Console
from rich.table import Table

from ...config import load_config, validate_config, ConfigError
from ...config.schema import LOCALE_TOKEN, SwcpackConfig


console = Console()


def collect_warnings(config: SwcpackConfig) -> List[str]:
    """检查配置中可能导致构建失败的设置"""
    warnings = []
    compiler = config.compiler

    if not compiler.command and not compiler.entry_point:
        warnings.append("未配置编译器 (compiler.command 或 compiler.entry_point)")

    optimizer = config.optimizer
    if optimizer.enabled and not optimizer.command and not optimizer.entry_point:
        warnings.append("optimizer.enabled 为 true 但未配置优化器，构建时将跳过优化")
    if optimizer.signed and not optimizer.signing_key and not optimizer.digest_entry_point:
        warnings.append("optimizer.signed 为 true 但未配置 signing_key")

    for path in compiler.source_paths:
        if LOCALE_TOKEN not in str(path) and not path.exists():
            warnings.append(f"源码路径不存在: {path}")

    for locale in compiler.runtime_locales:
        locale_dir = config.get_locale_path(locale)
        if not locale_dir.is_dir():
            warnings.append(f"区域 {locale} 的资源目录不存在: {locale_dir}")

    if config.include.resource_bundle_artifacts and not config.repositories:
        warnings.append("配置了 resource_bundle_artifacts 但没有配置 repositories")

    if compiler.add_descriptor and not config.project.descriptor.exists():
        warnings.append(f"构建描述文件不存在: {config.project.descriptor}")

    return warnings


def validate_command(
    config: str = typer.Option("swcpack.yaml", "--config", "-c", help="配置文件路径"),
    json_output: bool = typer.Option(False, "--json", help="输出 JSON 格式的错误信息"),
    show_warnings: bool = typer.Option(True, "--warnings/--no-warnings", help="显示警告信息"),
) -> None:
    """验证配置文件

    检查配置文件的语法和语义正确性。

    示例:
        swcpack validate -c swcpack.yaml
        swcpack validate -c swcpack.yaml --json
    """
    config_path = Path(config)

    if not config_path.exists():
        console.print(f"[red]配置文件不存在: {config_path}[/red]")
        raise typer.Exit(1)

    if not json_output:
        console.print(f"正在验证配置文件: [cyan]{config_path}[/cyan]")

    errors = validate_config(config_path)

    if errors:
        if json_output:
            error_data = {
                "file": str(config_path),
                "errors": errors,
                "error_count": len(errors),
            }
            typer.echo(json.dumps(error_data, ensure_ascii=False, indent=2, default=str))
        else:
            console.print(f"[red]配置文件验证失败 ({len(errors)} 个错误):[/red]")
            console.print()

            table = Table(title="验证错误")
            table.add_column("位置", style="cyan", no_wrap=True)
            table.add_column("错误信息", style="red")
            table.add_column("输入值", style="yellow")

            for error in errors:
                location = " -> ".join(str(item) for item in error.get('loc', []))
                message = error.get('msg', '未知错误')
                input_value = str(error.get('input', ''))
                if len(input_value) > 50:
                    input_value = input_value[:47] + "..."

                table.add_row(location or "根级别", message, input_value or "-")

            console.print(table)

        raise typer.Exit(1)

    warnings: List[str] = []
    if show_warnings:
        try:
            warnings = collect_warnings(load_config(config_path))
        except ConfigError as e:
            console.print(f"[red]配置错误: {e}[/red]")
            raise typer.Exit(1)

    if json_output:
        typer.echo(json.dumps(
            {"file": str(config_path), "errors": [], "warnings": warnings},
            ensure_ascii=False,
            indent=2,
        ))
        return

    console.print("[green]✓ 配置文件验证通过[/green]")
    for warning in warnings:
        console.print(f"[yellow]⚠ {warning}[/yellow]")

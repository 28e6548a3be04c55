"""
swcpack CLI 主入口

提供命令行接口，支持 build/optimize/inspect/validate/install 等命令。
"""

import sys
from importlib import metadata
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..config import ConfigError, ConfigValidationError, config_loader
from ..config.schema import SwcpackConfig
from ..swc import DIGEST_ALGORITHM, SWC_NAMESPACE
from ..utils import configure_logging
from ..utils.logging import OutputLevel
from .commands import build, inspect, install, optimize, validate


app = typer.Typer(
    name="swcpack",
    help="swcpack - 组件库 SWC 打包与优化工具",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

console = Console()


EXAMPLE_CONFIG: Dict[str, Any] = {
    "config": {"version": 1},
    "project": {
        "group_id": "com.example",
        "artifact_id": "example-lib",
        "version": "1.0.0",
        "packaging": "swc",
    },
    "compiler": {
        "source_paths": ["src/main/flex", "src/main/locales/{locale}"],
        "resources": ["src/main/resources"],
        "locales": ["en_US"],
        "runtime_locales": ["pt_BR"],
        "command": ["compc-wrapper", "--spec", "{spec}", "--output", "{output}"],
        "timeout_sec": 600,
    },
    "include": {
        "sources": ["src/main/flex"],
        "namespaces": ["http://www.example.com/2009/example"],
    },
    "optimizer": {
        "enabled": True,
        "signed": False,
        "command": ["swf-optimizer", "{input}", "{output}"],
        "timeout_sec": 300,
    },
    "repositories": ["repository"],
}


def version_callback(value: bool) -> None:
    """显示版本信息"""
    if value:
        console.print(f"swcpack v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="显示版本信息",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出详细调试日志 (DEBUG 级别)"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="日志输出文件"),
) -> None:
    """swcpack - 组件库 SWC 打包与优化工具

    使用 --help 查看可用命令的详细信息。
    """
    level = OutputLevel.DEBUG if verbose else OutputLevel.INFO
    try:
        configure_logging(level=level, log_file=log_file)
    except OSError:
        console.print(f"[yellow]无法写入日志文件: {log_file}[/yellow]")


# 注册子命令
app.command("build", help="构建库")(build.build_command)
app.command("optimize", help="优化归档并更新摘要")(optimize.optimize_command)
app.command("inspect", help="检查归档信息")(inspect.inspect_command)
app.command("validate", help="验证配置文件")(validate.validate_command)
app.command("install", help="安装构建输出到本地仓库")(install.install_command)


@app.command("info")
def info_command() -> None:
    """显示系统信息"""
    console.print("[bold]swcpack 系统信息[/bold]")
    console.print()

    table = Table(title="版本信息")
    table.add_column("组件", style="cyan")
    table.add_column("版本", style="green")

    table.add_row("swcpack", __version__)
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    for dist in ("pydantic", "ruamel.yaml", "typer", "rich"):
        try:
            table.add_row(dist, metadata.version(dist))
        except metadata.PackageNotFoundError:
            table.add_row(dist, "未安装")

    console.print(table)
    console.print()

    format_table = Table(title="归档格式")
    format_table.add_column("属性", style="cyan")
    format_table.add_column("值", style="green")
    format_table.add_row("目录命名空间", SWC_NAMESPACE)
    format_table.add_row("摘要算法", DIGEST_ALGORITHM)
    format_table.add_row("签名摘要", "HMAC-SHA256 (optimizer.signing_key)")
    console.print(format_table)


@app.command("example")
def example_command(
    output: str = typer.Option(
        "swcpack.yaml",
        "--output", "-o",
        help="输出配置文件路径",
    ),
) -> None:
    """生成示例配置文件"""
    output_path = Path(output)

    try:
        # 写出前先确认示例本身能通过验证
        SwcpackConfig.from_dict(EXAMPLE_CONFIG)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            config_loader.yaml.dump(EXAMPLE_CONFIG, f)
    except (ConfigError, ConfigValidationError, OSError, ValueError) as e:
        console.print(f"[red]生成示例配置失败: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"✓ 示例配置文件已生成: [green]{output_path}[/green]")
    console.print("请根据需要修改配置文件，然后运行:")
    console.print(f"  [cyan]swcpack build -c {output_path}[/cyan]")


if __name__ == "__main__":
    app()

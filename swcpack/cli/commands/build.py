"""
Build 命令实现

组装并编译库，生成区域资源包，随后按配置优化主归档。
"""

import typer

from ..common import console, load_config_or_exit, print_result, progress_callback


def build_command(
    config: str = typer.Option("swcpack.yaml", "--config", "-c", help="配置文件路径"),
    skip_optimize: bool = typer.Option(False, "--skip-optimize", help="只构建，不执行优化和摘要修补"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="不显示进度"),
) -> None:
    """构建库

    示例:
        swcpack build -c swcpack.yaml
        swcpack build -c swcpack.yaml --skip-optimize
    """
    from ...build.builder import Builder

    config_obj = load_config_or_exit(config)

    console.print("[cyan]开始构建库...[/cyan]")
    result = Builder().build(
        config_obj,
        progress_callback=None if quiet else progress_callback,
        skip_optimize=skip_optimize,
    )
    print_result(result, "构建")

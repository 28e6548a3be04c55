"""
Optimize 命令实现

对已打包的归档执行摘要修补流水线。
"""

from pathlib import Path
from typing import List, Optional

import typer

from ..common import console, load_config_or_exit, print_result, progress_callback


def optimize_command(
    archives: Optional[List[Path]] = typer.Argument(None, help="要处理的归档（默认为主输出）"),
    config: str = typer.Option("swcpack.yaml", "--config", "-c", help="配置文件路径"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="不显示进度"),
) -> None:
    """优化归档中的程序映像并更新目录摘要

    示例:
        swcpack optimize -c swcpack.yaml
        swcpack optimize -c swcpack.yaml target/a.swc target/b.swc
    """
    from ...build.builder import Builder

    config_obj = load_config_or_exit(config)

    console.print("[cyan]开始优化归档...[/cyan]")
    result = Builder().optimize(
        config_obj,
        archives=archives or None,
        progress_callback=None if quiet else progress_callback,
    )
    print_result(result, "优化")

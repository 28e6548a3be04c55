"""
Install 命令实现

把构建目录中的输出安装到第一个本地仓库。
"""

import typer

from ..common import load_config_or_exit, print_result


def install_command(
    config: str = typer.Option("swcpack.yaml", "--config", "-c", help="配置文件路径"),
) -> None:
    """安装构建输出到本地仓库

    示例:
        swcpack install -c swcpack.yaml
    """
    from ...build.builder import Builder

    config_obj = load_config_or_exit(config)
    result = Builder().install(config_obj)
    print_result(result, "安装")

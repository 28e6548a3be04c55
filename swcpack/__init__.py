"""
swcpack - 组件库 SWC 打包与优化系统

Packages a compiled component library into an SWC archive and re-signs its program image.
"""

__version__ = "0.1.0"
__author__ = "Project Team"
__license__ = "MIT"

from .config.schema import SwcpackConfig
from .build.builder import Builder

__all__ = ["SwcpackConfig", "Builder", "__version__"]

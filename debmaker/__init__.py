"""
debmaker - 声明式 Debian 二进制包 (.deb) 构建工具

A declarative Debian binary package builder.
"""

__version__ = "0.1.0"
__author__ = "Project Team"
__license__ = "MIT"

from .config.schema import DebSpec
from .build.builder import Builder

__all__ = ["DebSpec", "Builder", "__version__"]

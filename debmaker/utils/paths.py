"""
路径工具

提供路径处理相关的工具函数。
"""

import posixpath
from pathlib import Path
from typing import Union


def ensure_directory(path: Union[str, Path]) -> Path:
    """确保目录存在

    Args:
        path: 目录路径

    Returns:
        Path: 目录路径
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def normalize_deb_path(path: Union[str, Path]) -> str:
    """规范化包内路径

    统一使用正斜杠，折叠 ``.`` 与多余分隔符，去掉开头的 ``/``。
    包根目录返回空字符串。

    Args:
        path: 原始包内路径

    Returns:
        str: 规范化后的相对路径（不带结尾 ``/``）

    Raises:
        ValueError: 路径试图穿越到包根目录之外
    """
    normalized = posixpath.normpath(str(path).replace('\\', '/'))
    if normalized == '..' or normalized.startswith('../'):
        raise ValueError(f"包内路径不能穿越到包根目录之外: {path}")
    normalized = normalized.lstrip('/')
    return '' if normalized == '.' else normalized


def format_size(size_bytes: int) -> str:
    """格式化文件大小

    Args:
        size_bytes: 字节数

    Returns:
        str: 格式化的大小字符串
    """
    if size_bytes == 0:
        return "0 B"

    units = ["B", "KB", "MB", "GB", "TB"]
    unit_index = 0
    size = float(size_bytes)

    while size >= 1024.0 and unit_index < len(units) - 1:
        size /= 1024.0
        unit_index += 1

    if unit_index == 0:
        return f"{int(size)} {units[unit_index]}"
    return f"{size:.1f} {units[unit_index]}"

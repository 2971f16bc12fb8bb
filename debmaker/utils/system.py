"""
系统探测工具

通过 dpkg 获取当前主机的 Debian 架构名称。
"""

import subprocess


class ArchitectureDetectionError(Exception):
    """架构探测失败"""
    pass


def detect_architecture() -> str:
    """运行 ``dpkg --print-architecture`` 获取主机架构

    Returns:
        str: 架构名称，例如 ``amd64``

    Raises:
        ArchitectureDetectionError: dpkg 不存在或执行失败
    """
    try:
        result = subprocess.run(
            ["dpkg", "--print-architecture"],
            capture_output=True,
            text=True,
            check=True,
            timeout=30,
        )
    except (OSError, subprocess.SubprocessError) as e:
        raise ArchitectureDetectionError(f'无法执行 "dpkg --print-architecture": {e}') from e

    arch = result.stdout.strip()
    if not arch:
        raise ArchitectureDetectionError('"dpkg --print-architecture" 没有输出架构名称')
    return arch

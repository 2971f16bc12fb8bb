"""
校验和计算

为 md5sums 清单计算文件内容摘要。摘要算法由 Debian 的 md5sums 约定决定，
不用于安全校验。
"""

import hashlib
from pathlib import Path
from typing import Union

from .build_context import ChecksumError

DEFAULT_CHUNK_SIZE = 16 * 1024


class ChecksumComputer:
    """流式文件摘要计算器

    每次调用 :meth:`compute` 都使用新的哈希对象，实例本身不保存状态。
    """

    def __init__(self, algorithm: str = "md5", chunk_size: int = DEFAULT_CHUNK_SIZE):
        """初始化计算器

        Args:
            algorithm: hashlib 算法名称
            chunk_size: 每次读取的块大小
        """
        self.algorithm = algorithm.lower()
        if self.algorithm not in hashlib.algorithms_available:
            raise ValueError(f"不支持的哈希算法: {algorithm}")
        if chunk_size <= 0:
            raise ValueError("读取块大小必须大于 0")
        self.chunk_size = chunk_size

    def _new_hasher(self):
        if self.algorithm == "md5":
            return hashlib.md5(usedforsecurity=False)
        return hashlib.new(self.algorithm)

    def compute(self, path: Union[str, Path], size: int) -> str:
        """读取文件的前 ``size`` 个字节并返回十六进制摘要

        按声明的大小读取，而不是读到 EOF：文件在解析后被截断会被视为错误。

        Args:
            path: 文件路径
            size: 声明的文件大小（字节）

        Returns:
            str: 十六进制摘要

        Raises:
            ChecksumError: 打开或读取失败，或在读满 ``size`` 字节前遇到 EOF
        """
        hasher = self._new_hasher()
        remaining = size
        try:
            with open(path, 'rb') as f:
                while remaining > 0:
                    chunk = f.read(min(self.chunk_size, remaining))
                    if not chunk:
                        raise ChecksumError(
                            f"读取文件 {path} 时提前结束: 期望 {size} 字节，实际 {size - remaining} 字节"
                        )
                    hasher.update(chunk)
                    remaining -= len(chunk)
        except OSError as e:
            raise ChecksumError(f"读取文件失败 {path}: {e}") from e
        return hasher.hexdigest()


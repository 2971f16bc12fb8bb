"""
压缩器抽象接口和实现

为 control / data 两个内层 tar 归档提供统一的写入和读取接口，支持 gzip 和 zstd。
"""

import io
import tarfile
from abc import ABC, abstractmethod
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional

import zstandard as zstd

TAR_FORMAT = tarfile.GNU_FORMAT


class CompressionAlgorithm(str, Enum):
    """内层 tar 归档压缩算法"""
    GZIP = "gzip"
    ZSTD = "zstd"


class CompressionError(Exception):
    """压缩相关错误"""
    pass


class Compressor(ABC):
    """tar 归档压缩器抽象基类"""

    def __init__(self, level: int):
        self.level = level

    @abstractmethod
    def get_algorithm(self) -> CompressionAlgorithm:
        """获取压缩算法"""
        pass

    @property
    @abstractmethod
    def suffix(self) -> str:
        """归档文件扩展名，例如 ``gz``"""
        pass

    def archive_name(self, base: str) -> str:
        """``control`` -> ``control.tar.gz``"""
        return f"{base}.tar.{self.suffix}"

    @abstractmethod
    @contextmanager
    def open_writer(self, path: Path) -> Iterator[tarfile.TarFile]:
        """打开一个写入到 ``path`` 的 tar 归档"""
        pass

    @abstractmethod
    @contextmanager
    def open_reader(self, data: bytes) -> Iterator[tarfile.TarFile]:
        """以流方式读取内存中的压缩 tar 归档"""
        pass


class GzipCompressor(Compressor):
    """gzip 压缩器"""

    def __init__(self, level: int = 9):
        if not 1 <= level <= 9:
            raise CompressionError("gzip 压缩级别必须在 1-9 之间")
        super().__init__(level)

    def get_algorithm(self) -> CompressionAlgorithm:
        return CompressionAlgorithm.GZIP

    @property
    def suffix(self) -> str:
        return "gz"

    @contextmanager
    def open_writer(self, path: Path) -> Iterator[tarfile.TarFile]:
        with tarfile.open(path, "w:gz", compresslevel=self.level, format=TAR_FORMAT) as tar:
            yield tar

    @contextmanager
    def open_reader(self, data: bytes) -> Iterator[tarfile.TarFile]:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
            yield tar


class ZstdCompressor(Compressor):
    """Zstd 压缩器"""

    def __init__(self, level: int = 19):
        if not 1 <= level <= 22:
            raise CompressionError("Zstd 压缩级别必须在 1-22 之间")
        super().__init__(level)
        self._cctx = zstd.ZstdCompressor(level=level)
        self._dctx = zstd.ZstdDecompressor()

    def get_algorithm(self) -> CompressionAlgorithm:
        return CompressionAlgorithm.ZSTD

    @property
    def suffix(self) -> str:
        return "zst"

    @contextmanager
    def open_writer(self, path: Path) -> Iterator[tarfile.TarFile]:
        with open(path, 'wb') as raw:
            with self._cctx.stream_writer(raw, closefd=False) as writer:
                # tarfile 的流模式不需要可 seek 的文件对象
                with tarfile.open(fileobj=writer, mode="w|", format=TAR_FORMAT) as tar:
                    yield tar

    @contextmanager
    def open_reader(self, data: bytes) -> Iterator[tarfile.TarFile]:
        with self._dctx.stream_reader(io.BytesIO(data)) as reader:
            with tarfile.open(fileobj=reader, mode="r|") as tar:
                yield tar


class CompressorFactory:
    """压缩器工厂"""

    @staticmethod
    def create_compressor(algorithm: CompressionAlgorithm, level: Optional[int] = None) -> Compressor:
        """创建压缩器

        Args:
            algorithm: 压缩算法
            level: 压缩级别，None 表示使用算法默认值

        Raises:
            CompressionError: 不支持的算法或级别
        """
        algorithm = CompressionAlgorithm(algorithm)
        if algorithm == CompressionAlgorithm.GZIP:
            return GzipCompressor() if level is None else GzipCompressor(level)
        if algorithm == CompressionAlgorithm.ZSTD:
            return ZstdCompressor() if level is None else ZstdCompressor(level)
        raise CompressionError(f"不支持的压缩算法: {algorithm}")

    @staticmethod
    def for_member_name(name: str) -> Compressor:
        """根据 ar 成员名（如 ``data.tar.zst``）选择压缩器"""
        if name.endswith(".tar.gz"):
            return GzipCompressor()
        if name.endswith(".tar.zst"):
            return ZstdCompressor()
        raise CompressionError(f"无法识别的归档成员: {name}")

    @staticmethod
    def get_available_algorithms() -> List[CompressionAlgorithm]:
        return list(CompressionAlgorithm)

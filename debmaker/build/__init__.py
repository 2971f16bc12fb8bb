"""构建服务模块

提供 deb 包构建的核心功能。
"""

from .builder import Builder, BuildResult
from .build_context import (
    BuildContext,
    BuildError,
    ResolutionError,
    ChecksumError,
    ArchiveWriteError,
    AssemblyError,
)
from .build_pipeline import BuildPipeline
from .checksum import ChecksumComputer
from .resolver import FileTreeResolver, infer_ancestors, resolve_entries
from .control_archive import ControlArchiveBuilder
from .data_archive import ContentArchiveBuilder
from .assembler import PackageAssembler
from .ar import ArWriter, ArFormatError
from .compressor import (
    Compressor,
    CompressorFactory,
    CompressionAlgorithm,
    CompressionError,
    GzipCompressor,
    ZstdCompressor,
)
from .models import (
    AuxFile,
    ChecksumManifestLine,
    ContentEntry,
    EntryKind,
    PackageMetadata,
    ResolvedEntry,
    Symlink,
    build_manifest,
)

__all__ = [
    # 主构建器
    "Builder",
    "BuildResult",
    "BuildPipeline",
    "BuildContext",

    # 错误
    "BuildError",
    "ResolutionError",
    "ChecksumError",
    "ArchiveWriteError",
    "AssemblyError",

    # 组件
    "ChecksumComputer",
    "FileTreeResolver",
    "infer_ancestors",
    "resolve_entries",
    "ControlArchiveBuilder",
    "ContentArchiveBuilder",
    "PackageAssembler",

    # ar 容器
    "ArWriter",
    "ArFormatError",

    # 压缩相关
    "Compressor",
    "CompressorFactory",
    "CompressionAlgorithm",
    "CompressionError",
    "GzipCompressor",
    "ZstdCompressor",

    # 数据模型
    "AuxFile",
    "ChecksumManifestLine",
    "ContentEntry",
    "EntryKind",
    "PackageMetadata",
    "ResolvedEntry",
    "Symlink",
    "build_manifest",
]

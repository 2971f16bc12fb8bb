"""
构建上下文模块

定义构建过程中的共享数据结构和异常类。
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from .compressor import Compressor
from .models import ChecksumManifestLine, PackageMetadata, ResolvedEntry

if TYPE_CHECKING:
    from ..config.schema import DebSpec

# 进度回调类型: (阶段, 当前, 总数, 消息)
ProgressCallback = Callable[[str, int, int, str], None]


class BuildError(Exception):
    """构建错误基类"""
    kind = "build"


class ResolutionError(BuildError):
    """源路径不存在或无法遍历"""
    kind = "resolution"


class ChecksumError(BuildError):
    """计算校验和时读取失败或数据长度不符"""
    kind = "checksum"


class ArchiveWriteError(BuildError):
    """写入 control / data 归档失败"""
    kind = "archive_write"


class AssemblyError(BuildError):
    """写入外层 ar 容器失败"""
    kind = "assembly"


@dataclass
class BuildContext:
    """构建上下文

    显式持有临时目录和各阶段产物，在步骤之间传递。
    """
    spec: 'DebSpec'
    output_dir: Path
    scratch_dir: Path
    progress_callback: Optional[ProgressCallback] = None

    # 构建过程中生成的数据
    compressor: Optional[Compressor] = None
    metadata: Optional[PackageMetadata] = None
    entries: Optional[List[ResolvedEntry]] = None
    manifest: Optional[List[ChecksumManifestLine]] = None
    control_archive: Optional[Path] = None
    data_archive: Optional[Path] = None
    package_path: Optional[Path] = None

    # 统计信息
    build_stats: Dict[str, Any] = field(default_factory=lambda: {
        'start_time': 0.0,
        'end_time': 0.0,
        'total_files': 0,
        'total_directories': 0,
        'total_symlinks': 0,
        'installed_size': 0,
        'control_size': 0,
        'data_size': 0,
        'package_size': 0,
    })

    def report(self, stage: str, percent: int, message: str = "") -> None:
        """向调用方报告进度"""
        if self.progress_callback:
            self.progress_callback(stage, percent, 100, message)

"""
构建器主类

对外提供统一的构建接口，内部使用管道模式组织构建步骤。
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, TYPE_CHECKING

from .build_context import BuildError, ProgressCallback
from .build_pipeline import BuildPipeline

if TYPE_CHECKING:
    from ..config.schema import DebSpec


@dataclass
class BuildResult:
    """构建结果"""
    success: bool
    output_path: Optional[Path] = None
    output_size: Optional[int] = None
    build_time: Optional[float] = None
    installed_size: Optional[int] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None  # resolution / checksum / archive_write / assembly


class Builder:
    """deb 包构建器"""

    def __init__(self):
        self.pipeline = BuildPipeline()

    def build(
        self,
        spec: 'DebSpec',
        output_dir: Path,
        scratch_dir: Path,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> BuildResult:
        """构建 deb 包

        Args:
            spec: 描述（版本和架构必须已确定）
            output_dir: 输出目录
            scratch_dir: 临时目录
            progress_callback: 进度回调函数

        Returns:
            BuildResult: 构建结果，失败时带有错误类型
        """
        try:
            context = self.pipeline.execute(spec, output_dir, scratch_dir, progress_callback)
        except BuildError as e:
            return BuildResult(success=False, error=str(e), error_kind=e.kind)

        stats = context.build_stats
        return BuildResult(
            success=True,
            output_path=context.package_path,
            output_size=stats['package_size'],
            build_time=stats['end_time'] - stats['start_time'],
            installed_size=stats['installed_size'],
        )

    def get_pipeline(self) -> BuildPipeline:
        """获取构建管道，用于自定义构建流程"""
        return self.pipeline

    def validate_build_pipeline(self) -> List[str]:
        """验证构建管道的完整性"""
        return self.pipeline.validate_pipeline()

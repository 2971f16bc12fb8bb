"""
数据归档步骤模块

把解析后的文件树写入数据归档。
"""

from typing import Tuple

from ...utils import format_size
from ...utils.logging import LogStage, error, info, success
from ..build_context import ArchiveWriteError, BuildContext, BuildError
from ..data_archive import ContentArchiveBuilder
from .build_step import BuildStep


class DataArchiveStep(BuildStep):
    """数据归档步骤"""

    def __init__(self):
        super().__init__("data", "生成数据归档")

    def get_progress_range(self) -> Tuple[int, int]:
        return (50, 85)

    def execute(self, context: BuildContext) -> None:
        if context.entries is None:
            raise BuildError("缺少解析后的文件树")

        builder = ContentArchiveBuilder(context.compressor)
        output_path = context.scratch_dir / builder.archive_name
        start, end = self.get_progress_range()
        context.report("数据归档", start, builder.archive_name)
        info(f"生成 {builder.archive_name}", stage=LogStage.DATA)

        try:
            builder.build(context.entries, context.spec.symlinks(), output_path)
        except ArchiveWriteError as e:
            error(f"生成 {builder.archive_name} 失败: {e}", stage=LogStage.DATA)
            raise

        context.data_archive = output_path
        context.build_stats['data_size'] = output_path.stat().st_size

        context.report("数据归档", end, f"大小 {format_size(context.build_stats['data_size'])}")
        success(f"已生成临时文件 {builder.archive_name}", stage=LogStage.DATA)

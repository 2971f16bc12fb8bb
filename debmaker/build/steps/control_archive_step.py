"""
控制归档步骤模块

生成 control 归档到临时目录。
"""

from typing import Tuple

from ...utils import format_size
from ...utils.logging import LogStage, error, info, success
from ..build_context import ArchiveWriteError, BuildContext, BuildError
from ..control_archive import ControlArchiveBuilder
from .build_step import BuildStep


class ControlArchiveStep(BuildStep):
    """控制归档步骤"""

    def __init__(self):
        super().__init__("control", "生成控制归档")

    def get_progress_range(self) -> Tuple[int, int]:
        return (30, 50)

    def execute(self, context: BuildContext) -> None:
        if context.metadata is None or context.manifest is None:
            raise BuildError("缺少包元数据或校验和清单")

        builder = ControlArchiveBuilder(context.compressor)
        output_path = context.scratch_dir / builder.archive_name
        start, end = self.get_progress_range()
        context.report("控制归档", start, builder.archive_name)
        info(f"生成 {builder.archive_name}", stage=LogStage.CONTROL)

        try:
            builder.build(context.metadata, context.manifest, context.spec.aux_files(), output_path)
        except ArchiveWriteError as e:
            error(f"生成 {builder.archive_name} 失败: {e}", stage=LogStage.CONTROL)
            raise

        context.control_archive = output_path
        context.build_stats['control_size'] = output_path.stat().st_size

        context.report("控制归档", end, f"大小 {format_size(context.build_stats['control_size'])}")
        success(f"已生成临时文件 {builder.archive_name}", stage=LogStage.CONTROL)

"""
deb 组装步骤模块

把 debian-binary 和两个内层归档写入最终的 deb 文件。
"""

from typing import Tuple

from ...utils import ensure_directory, format_size
from ...utils.logging import LogStage, error, info, success
from ..assembler import PackageAssembler
from ..build_context import AssemblyError, BuildContext, BuildError
from .build_step import BuildStep


class PackageAssemblyStep(BuildStep):
    """deb 组装步骤"""

    def __init__(self):
        super().__init__("assemble", "组装 deb 文件")
        self.assembler = PackageAssembler()

    def get_progress_range(self) -> Tuple[int, int]:
        return (85, 100)

    def execute(self, context: BuildContext) -> None:
        if not context.control_archive or not context.data_archive or context.metadata is None:
            raise BuildError("缺少控制归档或数据归档")

        try:
            ensure_directory(context.output_dir)
        except OSError as e:
            raise AssemblyError(f"无法创建输出目录 {context.output_dir}: {e}") from e

        output_path = context.output_dir / context.metadata.package_filename
        start, end = self.get_progress_range()
        context.report("组装 deb", start, output_path.name)
        info(f"组装 deb 文件: {output_path}", stage=LogStage.ASSEMBLE)

        try:
            self.assembler.assemble(context.control_archive, context.data_archive, output_path)
        except AssemblyError as e:
            error(f"组装 deb 文件失败: {e}", stage=LogStage.ASSEMBLE)
            raise

        context.package_path = output_path
        context.build_stats['package_size'] = output_path.stat().st_size

        context.report("组装 deb", end, f"完成，大小 {format_size(context.build_stats['package_size'])}")
        success(f"已创建 {output_path.name}", stage=LogStage.ASSEMBLE)

"""
构建管道模块

使用管道模式协调构建步骤的执行。
"""

import time
from pathlib import Path
from typing import List, Optional, TYPE_CHECKING

from ..utils.logging import LogStage, debug, error, info, success
from .build_context import BuildContext, BuildError, ProgressCallback
from .compressor import CompressionError, CompressorFactory
from .steps import BuildStep, ControlArchiveStep, DataArchiveStep, PackageAssemblyStep, ResolveStep

if TYPE_CHECKING:
    from ..config.schema import DebSpec


class BuildPipeline:
    """构建管道，负责协调构建步骤的执行"""

    def __init__(self):
        self._steps: List[BuildStep] = []
        self._init_default_steps()

    def _init_default_steps(self) -> None:
        """控制归档必须先于数据归档，与最终 ar 成员顺序一致"""
        self._steps = [
            ResolveStep(),
            ControlArchiveStep(),
            DataArchiveStep(),
            PackageAssemblyStep(),
        ]

    def add_step(self, step: BuildStep, position: Optional[int] = None) -> None:
        """添加构建步骤"""
        if position is None:
            self._steps.append(step)
        else:
            self._steps.insert(position, step)

    def remove_step(self, step_name: str) -> None:
        """移除构建步骤"""
        self._steps = [step for step in self._steps if step.name != step_name]

    def get_steps(self) -> List[BuildStep]:
        """获取所有构建步骤"""
        return self._steps.copy()

    def execute(
        self,
        spec: 'DebSpec',
        output_dir: Path,
        scratch_dir: Path,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> BuildContext:
        """执行构建管道

        Args:
            spec: 已确定版本和架构的描述
            output_dir: deb 输出目录
            scratch_dir: 存放中间归档的临时目录，由调用方创建和清理
            progress_callback: 进度回调函数

        Returns:
            BuildContext: 构建上下文，包含所有构建结果

        Raises:
            BuildError: 任一步骤失败；出错时已写出的文件保留在磁盘上
        """
        context = BuildContext(
            spec=spec,
            output_dir=Path(output_dir),
            scratch_dir=Path(scratch_dir),
            progress_callback=progress_callback,
        )
        context.build_stats['start_time'] = time.time()

        try:
            context.compressor = CompressorFactory.create_compressor(
                spec.compression.algo, spec.compression.effective_level()
            )
        except CompressionError as e:
            raise BuildError(f"压缩配置无效: {e}") from e

        info(f"开始构建 deb 包: {spec.control.pkg_name}", stage=LogStage.INIT)
        debug(
            f"构建配置: compression={context.compressor.get_algorithm().value} "
            f"level={context.compressor.level} content={len(spec.content)} "
            f"debian={len(spec.debian)} link={len(spec.link)} scratch={context.scratch_dir}",
            stage=LogStage.INIT,
        )

        try:
            for step in self._steps:
                info(f"执行步骤: {step.description}", stage=LogStage.INIT)
                step.execute(context)
        except BuildError as e:
            context.build_stats['end_time'] = time.time()
            error(f"构建失败 ({e.kind}): {e}", stage=LogStage.DONE)
            raise

        context.build_stats['end_time'] = time.time()
        build_time = context.build_stats['end_time'] - context.build_stats['start_time']
        success(f"deb 包构建成功: {context.package_path}", stage=LogStage.DONE)
        info(f"构建时间: {build_time:.1f}秒")
        return context

    def validate_pipeline(self) -> List[str]:
        """验证构建管道的完整性

        Returns:
            List[str]: 验证错误列表，空列表表示验证通过
        """
        errors = []

        if not self._steps:
            errors.append("构建管道中没有步骤")
            return errors

        prev_end = 0
        for step in self._steps:
            start, end = step.get_progress_range()
            if start != prev_end:
                errors.append(f"步骤 '{step.name}' 的进度范围不连续: 期望起始 {prev_end}%, 实际 {start}%")
            if start >= end:
                errors.append(f"步骤 '{step.name}' 的进度范围无效: {start}% - {end}%")
            prev_end = end

        if prev_end != 100:
            errors.append(f"构建管道的总进度范围不是100%: {prev_end}%")

        return errors

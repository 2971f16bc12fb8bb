"""
内容解析步骤模块

把描述中的内容条目展开为完整的文件树并计算校验和。
"""

from typing import Optional, Tuple

from ...utils import format_size
from ...utils.logging import LogStage, debug, error, info, success
from ..build_context import BuildContext, BuildError, ChecksumError, ResolutionError
from ..models import build_manifest
from ..resolver import FileTreeResolver
from .build_step import BuildStep


class ResolveStep(BuildStep):
    """内容解析步骤"""

    def __init__(self, resolver: Optional[FileTreeResolver] = None):
        super().__init__("resolve", "解析内容文件树")
        self.resolver = resolver or FileTreeResolver()

    def get_progress_range(self) -> Tuple[int, int]:
        return (0, 30)

    def execute(self, context: BuildContext) -> None:
        start, end = self.get_progress_range()
        info("解析内容文件树", stage=LogStage.RESOLVE)

        try:
            context.metadata = context.spec.to_metadata()
        except ValueError as e:
            raise BuildError(f"包元数据不完整: {e}") from e

        content = context.spec.content_entries()
        context.report("解析内容", start, f"{len(content)} 个内容条目")

        try:
            entries = self.resolver.resolve(content)
        except (ResolutionError, ChecksumError) as e:
            error(f"解析内容失败: {e}", stage=LogStage.RESOLVE)
            raise

        context.entries = entries
        context.manifest = build_manifest(entries)

        stats = context.build_stats
        stats['total_directories'] = sum(1 for e in entries if e.is_directory)
        stats['total_files'] = sum(1 for e in entries if e.is_file)
        stats['total_symlinks'] = sum(1 for e in entries if e.is_symlink)
        stats['installed_size'] = sum(line.size for line in context.manifest)

        context.report("解析内容", end, f"找到 {len(entries)} 个条目")
        success("内容解析完成", stage=LogStage.RESOLVE)
        info(f"  目录: {stats['total_directories']}  文件: {stats['total_files']}  符号链接: {stats['total_symlinks']}")
        info(f"  安装大小: {format_size(stats['installed_size'])}")

        for idx, line in enumerate(context.manifest[:20]):
            debug(f"md5sums[{idx}]: {line.format()}", stage=LogStage.CHECKSUM)
        if len(context.manifest) > 20:
            debug(f"... 还有 {len(context.manifest) - 20} 行未列出", stage=LogStage.CHECKSUM)

"""
数据归档构建器

按解析顺序把目录、普通文件、符号链接写入 data.tar.*，最后追加显式符号链接。
条目的大小等元数据直接使用解析阶段的结果，不重新 stat。
"""

import tarfile
import time
from pathlib import Path
from typing import List, Optional

from ..utils.logging import LogStage, debug
from .build_context import ArchiveWriteError
from .compressor import Compressor, GzipCompressor
from .models import ResolvedEntry, Symlink

EXPLICIT_LINK_MODE = 0o755


class ContentArchiveBuilder:
    """数据归档构建器"""

    def __init__(self, compressor: Optional[Compressor] = None):
        self.compressor = compressor or GzipCompressor()

    @property
    def archive_name(self) -> str:
        return self.compressor.archive_name("data")

    def build(self, entries: List[ResolvedEntry], links: List[Symlink], output_path: Path) -> Path:
        """写入数据归档

        Args:
            entries: 解析后的条目（目录、文件、符号链接）
            links: 显式符号链接，按声明顺序追加
            output_path: 归档输出路径

        Returns:
            Path: 归档路径

        Raises:
            ArchiveWriteError: 源文件不可读或写入失败
        """
        try:
            with self.compressor.open_writer(output_path) as tar:
                for entry in entries:
                    self._add_entry(tar, entry)

                now = int(time.time())
                for link in links:
                    info = self._tar_info(link.name, EXPLICIT_LINK_MODE, now)
                    info.type = tarfile.SYMTYPE
                    info.linkname = link.target
                    tar.addfile(info)
                    debug(f"已添加符号链接 {link.name} -> {link.target}", stage=LogStage.DATA)
        except ArchiveWriteError:
            raise
        except (OSError, tarfile.TarError) as e:
            raise ArchiveWriteError(f"写入 {self.archive_name} 失败: {e}") from e

        return output_path

    def _add_entry(self, tar: tarfile.TarFile, entry: ResolvedEntry) -> None:
        info = self._tar_info(entry.deb_path, entry.mode, int(entry.mtime))

        if entry.is_directory:
            info.type = tarfile.DIRTYPE
            if not info.name.endswith("/"):
                info.name += "/"
            tar.addfile(info)
            debug(f"已添加目录 {info.name}", stage=LogStage.DATA)
        elif entry.is_symlink:
            info.type = tarfile.SYMTYPE
            info.linkname = entry.link_target or ""
            tar.addfile(info)
            debug(f"已添加符号链接 {entry.deb_path}", stage=LogStage.DATA)
        else:
            info.type = tarfile.REGTYPE
            info.size = entry.size
            try:
                with open(entry.source, 'rb') as f:
                    # tarfile 只读取 info.size 字节，文件变短时抛出 OSError
                    tar.addfile(info, f)
            except OSError as e:
                raise ArchiveWriteError(f"写入文件 {entry.source} 失败: {e}") from e
            debug(f"已添加文件 {entry.deb_path}", stage=LogStage.DATA)

    @staticmethod
    def _tar_info(name: str, mode: int, mtime: int) -> tarfile.TarInfo:
        info = tarfile.TarInfo(name=name)
        info.mode = mode
        info.mtime = mtime
        info.uid = info.gid = 0
        info.uname = info.gname = "root"
        return info

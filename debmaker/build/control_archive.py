"""
控制归档构建器

生成 control.tar.*，依次包含 control、md5sums 以及维护者脚本等附加文件。
"""

import io
import os
import tarfile
import time
from pathlib import Path
from typing import List, Optional

from debian.deb822 import Deb822

from ..utils.logging import LogStage, debug
from .build_context import ArchiveWriteError
from .compressor import Compressor, GzipCompressor
from .models import AuxFile, ChecksumManifestLine, PackageMetadata

CONTROL_MEMBER_MODE = 0o644


def format_control_value(value: str) -> str:
    """把多行值转换为 control 续行格式，空行写作 `` .``"""
    if "\n" not in value:
        return value
    first, *rest = value.splitlines()
    return "\n".join([first] + [f" {line}" if line.strip() else " ." for line in rest])


def build_control_paragraph(metadata: PackageMetadata, installed_size: int) -> Deb822:
    """构造 control 段落

    固定字段在前，附加字段按声明顺序在后。
    """
    paragraph = Deb822()
    paragraph["Package"] = metadata.name
    paragraph["Version"] = metadata.version
    paragraph["Architecture"] = metadata.architecture
    paragraph["Maintainer"] = metadata.maintainer
    paragraph["Installed-Size"] = str(installed_size)
    paragraph["Description"] = format_control_value(metadata.description)
    for key, value in metadata.attributes.items():
        paragraph[key] = format_control_value(value)
    return paragraph


def render_control(metadata: PackageMetadata, installed_size: int) -> str:
    """生成 control 文件内容"""
    return build_control_paragraph(metadata, installed_size).dump()


def render_md5sums(manifest: List[ChecksumManifestLine]) -> str:
    """``<摘要>  <路径>``，每个普通文件一行，保持清单顺序"""
    return "".join(line.format() + "\n" for line in manifest)


def installed_size(manifest: List[ChecksumManifestLine]) -> int:
    """清单中所有普通文件大小之和（字节）"""
    return sum(line.size for line in manifest)


class ControlArchiveBuilder:
    """控制归档构建器"""

    def __init__(self, compressor: Optional[Compressor] = None):
        self.compressor = compressor or GzipCompressor()

    @property
    def archive_name(self) -> str:
        return self.compressor.archive_name("control")

    def build(
        self,
        metadata: PackageMetadata,
        manifest: List[ChecksumManifestLine],
        aux_files: List[AuxFile],
        output_path: Path,
    ) -> Path:
        """写入控制归档

        Args:
            metadata: 包元数据
            manifest: md5sums 清单
            aux_files: 附加文件，按顺序写入
            output_path: 归档输出路径

        Returns:
            Path: 归档路径

        Raises:
            ArchiveWriteError: 附加文件不可读或写入失败
        """
        now = int(time.time())
        control_text = render_control(metadata, installed_size(manifest))
        md5sums_text = render_md5sums(manifest)

        try:
            with self.compressor.open_writer(output_path) as tar:
                self._add_text(tar, "control", control_text, now)
                debug(f"已添加 control 到 {self.archive_name}", stage=LogStage.CONTROL)

                self._add_text(tar, "md5sums", md5sums_text, now)
                debug(f"已添加 md5sums 到 {self.archive_name} ({len(manifest)} 行)", stage=LogStage.CONTROL)

                for aux in aux_files:
                    self._add_file(tar, aux)
                    debug(f"已添加 {aux.deb_path} 到 {self.archive_name}", stage=LogStage.CONTROL)
        except ArchiveWriteError:
            raise
        except (OSError, tarfile.TarError) as e:
            raise ArchiveWriteError(f"写入 {self.archive_name} 失败: {e}") from e

        return output_path

    @staticmethod
    def _add_text(tar: tarfile.TarFile, name: str, text: str, mtime: int) -> None:
        data = text.encode("utf-8")
        info = tarfile.TarInfo(name=name)
        info.size = len(data)
        info.mode = CONTROL_MEMBER_MODE
        info.mtime = mtime
        info.uname = info.gname = "root"
        tar.addfile(info, io.BytesIO(data))

    @staticmethod
    def _add_file(tar: tarfile.TarFile, aux: AuxFile) -> None:
        """按原样复制附加文件，保留权限和修改时间"""
        try:
            st = os.stat(aux.source)
            info = tarfile.TarInfo(name=aux.deb_path)
            info.size = st.st_size
            info.mode = st.st_mode & 0o7777
            info.mtime = int(st.st_mtime)
            info.uname = info.gname = "root"
            with open(aux.source, 'rb') as f:
                tar.addfile(info, f)
        except OSError as e:
            raise ArchiveWriteError(f"无法读取附加文件 {aux.source}: {e}") from e

"""
deb 包组装器

写出外层 ar 容器：debian-binary、控制归档、数据归档，顺序固定。
"""

from pathlib import Path

from ..utils.logging import LogStage, debug
from .ar import ArFormatError, ArWriter
from .build_context import AssemblyError

DEBIAN_BINARY_NAME = "debian-binary"
DEBIAN_BINARY_CONTENT = b"2.0\n"


class PackageAssembler:
    """deb 包组装器"""

    def assemble(self, control_archive: Path, data_archive: Path, output_path: Path) -> Path:
        """组装 deb 包

        Args:
            control_archive: 控制归档路径，成员名取其文件名
            data_archive: 数据归档路径，成员名取其文件名
            output_path: deb 输出路径

        Returns:
            Path: deb 路径

        Raises:
            AssemblyError: 全局头或任一成员写入失败
        """
        control_archive = Path(control_archive)
        data_archive = Path(data_archive)

        try:
            with open(output_path, 'wb') as f:
                writer = ArWriter(f)
                writer.write_global_header()

                writer.add_bytes(DEBIAN_BINARY_NAME, DEBIAN_BINARY_CONTENT)
                debug(f"已添加 {DEBIAN_BINARY_NAME}", stage=LogStage.ASSEMBLE)

                for archive in (control_archive, data_archive):
                    size = writer.add_file(archive.name, archive)
                    debug(f"已添加 {archive.name} ({size} 字节)", stage=LogStage.ASSEMBLE)
        except (OSError, ArFormatError) as e:
            raise AssemblyError(f"写入 deb 文件 {output_path} 失败: {e}") from e

        return Path(output_path)

"""
构建数据模型

定义打包流水线各阶段之间传递的数据结构。
这些结构在构建开始前由配置转换得到，构建过程中只读。
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional


class EntryKind(str, Enum):
    """解析后条目类型"""
    DIRECTORY = "directory"
    FILE = "file"
    SYMLINK = "symlink"


@dataclass(frozen=True)
class ContentEntry:
    """用户声明的内容条目：主机上的源路径 -> 包内目标路径"""
    source: Path
    deb_path: str


@dataclass(frozen=True)
class AuxFile:
    """控制归档中的附加文件（维护者脚本等）"""
    source: Path
    deb_path: str


@dataclass(frozen=True)
class Symlink:
    """显式声明的绝对符号链接

    ``target`` 是链接指向的路径，``name`` 是链接本身在包内的路径。
    """
    target: str
    name: str


@dataclass(frozen=True)
class ResolvedEntry:
    """解析后的条目，归档构建器消费的最小单元"""
    deb_path: str  # 规范化的包内路径，目录以 "/" 结尾
    kind: EntryKind
    mode: int  # 权限位
    mtime: float
    source: Optional[Path] = None  # 合成目录没有源路径
    size: int = 0  # 目录和符号链接恒为 0
    link_target: Optional[str] = None  # 仅符号链接
    checksum: Optional[str] = None  # 仅普通文件

    @property
    def is_directory(self) -> bool:
        return self.kind == EntryKind.DIRECTORY

    @property
    def is_file(self) -> bool:
        return self.kind == EntryKind.FILE

    @property
    def is_symlink(self) -> bool:
        return self.kind == EntryKind.SYMLINK


@dataclass(frozen=True)
class ChecksumManifestLine:
    """md5sums 清单中的一行"""
    deb_path: str
    checksum: str
    size: int = 0

    def format(self) -> str:
        return f"{self.checksum}  {self.deb_path}"


@dataclass(frozen=True)
class PackageMetadata:
    """包元数据，对应 control 文件中的字段"""
    name: str
    version: str
    architecture: str
    maintainer: str
    description: str
    attributes: Dict[str, str] = field(default_factory=dict)  # 保持插入顺序
    preinst: Optional[Path] = None
    postinst: Optional[Path] = None
    prerm: Optional[Path] = None
    postrm: Optional[Path] = None

    @property
    def package_filename(self) -> str:
        """``<name>_<version>_<architecture>.deb``"""
        return f"{self.name}_{self.version}_{self.architecture}.deb"

    def maintainer_scripts(self) -> Dict[str, Path]:
        """按约定成员名返回已配置的维护者脚本"""
        scripts = {
            "preinst": self.preinst,
            "postinst": self.postinst,
            "prerm": self.prerm,
            "postrm": self.postrm,
        }
        return {name: path for name, path in scripts.items() if path is not None}


def build_manifest(entries: List[ResolvedEntry]) -> List[ChecksumManifestLine]:
    """从解析结果中提取 md5sums 清单（只包含普通文件，保持原有顺序）"""
    return [
        ChecksumManifestLine(deb_path=entry.deb_path, checksum=entry.checksum, size=entry.size)
        for entry in entries
        if entry.is_file and entry.checksum
    ]

"""
配置 Schema 定义

使用 Pydantic 定义 deb 描述文件的 YAML 模型，支持验证和类型检查，
并负责转换为构建流水线使用的数据结构。
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..build.compressor import CompressionAlgorithm
from ..build.models import AuxFile, ContentEntry, PackageMetadata, Symlink
from ..utils.paths import normalize_deb_path


PACKAGE_NAME_PATTERN = re.compile(r'^[a-z0-9][a-z0-9+.\-]+$')
FIELD_NAME_PATTERN = re.compile(r"^[!-9;-~]+$")  # 可打印 ASCII，不含冒号和空白

MAINTAINER_SCRIPT_NAMES = ("preinst", "postinst", "prerm", "postrm")

# 由 control 段固定字段生成，不能出现在 other-attrs 中
RESERVED_FIELDS = ("Package", "Version", "Architecture", "Maintainer", "Installed-Size", "Description")


class ControlModel(BaseModel):
    """control 段：包元数据"""
    model_config = ConfigDict(populate_by_name=True, extra="forbid", str_strip_whitespace=True)

    pkg_name: str = Field(..., alias="pkg-name", description="包名", min_length=2)
    version: Optional[str] = Field(None, description="版本号（可由命令行覆盖）")
    architecture: Optional[str] = Field(None, description="目标架构（可由命令行覆盖）")
    maintainer: str = Field("", description="维护者")
    description: str = Field("", description="包描述")
    other_attrs: Dict[str, str] = Field(
        default_factory=dict,
        alias="other-attrs",
        description="附加的 control 字段，按声明顺序输出",
    )
    preinst: Optional[Path] = Field(None, description="preinst 脚本路径")
    postinst: Optional[Path] = Field(None, description="postinst 脚本路径")
    prerm: Optional[Path] = Field(None, description="prerm 脚本路径")
    postrm: Optional[Path] = Field(None, description="postrm 脚本路径")

    @field_validator('pkg_name')
    @classmethod
    def validate_pkg_name(cls, v: str) -> str:
        """Debian 包名只允许小写字母、数字和 + - ."""
        if not PACKAGE_NAME_PATTERN.match(v):
            raise ValueError("包名只能包含小写字母、数字和 + - .，且必须以字母或数字开头")
        return v

    @field_validator('version', 'architecture', mode='before')
    @classmethod
    def validate_no_blank(cls, v: Any) -> Optional[str]:
        # YAML 会把 1.0 之类的版本号解析成数字
        if v is None:
            return None
        v = str(v).strip()
        if not v or any(ch.isspace() for ch in v) or '_' in v:
            raise ValueError("不能为空，且不能包含空白或下划线")
        return v

    @field_validator('other_attrs', mode='before')
    @classmethod
    def validate_other_attrs(cls, v: Any) -> Any:
        """字段名必须合法，值统一转为字符串"""
        if v is None:
            return {}
        if not isinstance(v, dict):
            return v
        cleaned = {}
        reserved = {name.lower() for name in RESERVED_FIELDS}
        seen = set()
        for key, value in v.items():
            key = str(key).strip()
            if not FIELD_NAME_PATTERN.match(key):
                raise ValueError(f"control 字段名无效: {key!r}")
            if key.lower() in reserved:
                raise ValueError(f"control 字段 {key!r} 由固定字段生成，不能在 other-attrs 中重复")
            if key.lower() in seen:
                raise ValueError(f"control 字段重复（不区分大小写）: {key!r}")
            seen.add(key.lower())
            cleaned[key] = "" if value is None else str(value)
        return cleaned

    @field_validator('preinst', 'postinst', 'prerm', 'postrm', mode='before')
    @classmethod
    def validate_script_path(cls, v: Any) -> Any:
        # 模板渲染后未提供的脚本变量会变成空字符串
        if isinstance(v, str) and not v.strip():
            return None
        return v


class FileEntryModel(BaseModel):
    """源路径 -> 包内路径"""
    model_config = ConfigDict(populate_by_name=True, extra="forbid", str_strip_whitespace=True)

    path: Path = Field(..., description="主机上的源文件或目录")
    deb_path: str = Field(..., alias="deb-path", description="包内路径")

    @field_validator('deb_path')
    @classmethod
    def validate_deb_path(cls, v: str) -> str:
        return normalize_deb_path(v)


class SymlinkModel(BaseModel):
    """显式绝对符号链接"""
    model_config = ConfigDict(populate_by_name=True, extra="forbid", str_strip_whitespace=True)

    link_from: str = Field(..., alias="from", description="链接指向的目标", min_length=1)
    link_to: str = Field(..., alias="to", description="链接在包内的路径", min_length=1)


class CompressionModel(BaseModel):
    """压缩配置模型"""
    model_config = ConfigDict(extra="forbid")

    algo: CompressionAlgorithm = Field(CompressionAlgorithm.GZIP, description="压缩算法")
    level: Optional[int] = Field(None, description="压缩级别，留空使用算法默认值", ge=1, le=22)

    @model_validator(mode='after')
    def validate_compression_level(self) -> 'CompressionModel':
        """验证压缩级别对算法的适用性"""
        if self.level is not None and self.algo == CompressionAlgorithm.GZIP and self.level > 9:
            raise ValueError("gzip 压缩级别必须在 1-9 之间")
        return self

    def effective_level(self) -> int:
        if self.level is not None:
            return self.level
        return 9 if self.algo == CompressionAlgorithm.GZIP else 19


class ConfigModel(BaseModel):
    """配置元信息模型"""
    version: int = Field(1, description="配置 schema 版本", ge=1)

    @field_validator('version')
    @classmethod
    def validate_config_version(cls, v: int) -> int:
        supported_versions = [1]
        if v not in supported_versions:
            raise ValueError(f"不支持的配置版本 {v}，支持的版本: {supported_versions}")
        return v


class DebSpec(BaseModel):
    """deb 描述文件根模型"""

    config: ConfigModel = Field(default_factory=ConfigModel, description="配置元信息")
    control: ControlModel = Field(..., description="包元数据")
    debian: List[FileEntryModel] = Field(default_factory=list, description="控制归档附加文件")
    content: List[FileEntryModel] = Field(default_factory=list, description="数据归档内容")
    link: List[SymlinkModel] = Field(default_factory=list, description="显式符号链接")
    compression: CompressionModel = Field(default_factory=CompressionModel, description="压缩配置")

    model_config = {
        "extra": "forbid",
        "validate_assignment": True,
        "str_strip_whitespace": True,
    }

    @field_validator('debian', 'content', 'link', mode='before')
    @classmethod
    def validate_optional_lists(cls, v: Any) -> Any:
        return [] if v is None else v

    @model_validator(mode='after')
    def validate_control_members(self) -> 'DebSpec':
        """debian 段不能覆盖流水线自动生成的成员，也不能与维护者脚本重名"""
        names = [entry.deb_path for entry in self.debian]
        for reserved in ("control", "md5sums"):
            if reserved in names:
                raise ValueError(f"debian 段不能包含自动生成的成员: {reserved}")
        for script in MAINTAINER_SCRIPT_NAMES:
            if getattr(self.control, script) is not None and script in names:
                raise ValueError(f"维护者脚本 {script} 同时出现在 control 和 debian 段")
        return self

    def is_complete(self) -> bool:
        """版本和架构都已确定"""
        return bool(self.control.version and self.control.architecture)

    def to_metadata(self) -> PackageMetadata:
        """转换为包元数据

        Raises:
            ValueError: 版本或架构尚未确定
        """
        if not self.control.version:
            raise ValueError("缺少包版本号")
        if not self.control.architecture:
            raise ValueError("缺少目标架构")
        return PackageMetadata(
            name=self.control.pkg_name,
            version=self.control.version,
            architecture=self.control.architecture,
            maintainer=self.control.maintainer,
            description=self.control.description,
            attributes=dict(self.control.other_attrs),
            preinst=self.control.preinst,
            postinst=self.control.postinst,
            prerm=self.control.prerm,
            postrm=self.control.postrm,
        )

    def content_entries(self) -> List[ContentEntry]:
        return [ContentEntry(source=Path(e.path), deb_path=e.deb_path) for e in self.content]

    def aux_files(self) -> List[AuxFile]:
        """debian 段文件在前，维护者脚本按约定名追加在后"""
        files = [AuxFile(source=Path(e.path), deb_path=e.deb_path) for e in self.debian]
        for name in MAINTAINER_SCRIPT_NAMES:
            script = getattr(self.control, name)
            if script is not None:
                files.append(AuxFile(source=Path(script), deb_path=name))
        return files

    def symlinks(self) -> List[Symlink]:
        return [Symlink(target=l.link_from, name=l.link_to) for l in self.link]

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式（使用 YAML 中的字段名）"""
        data = self.model_dump(exclude_none=True, by_alias=True)

        def convert_values(obj):
            if isinstance(obj, dict):
                return {k: convert_values(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [convert_values(item) for item in obj]
            elif isinstance(obj, Enum):
                return obj.value
            elif isinstance(obj, Path):
                return str(obj)
            return obj

        return convert_values(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DebSpec':
        """从字典创建配置实例"""
        return cls.model_validate(data)

    def with_overrides(
        self,
        version: Optional[str] = None,
        architecture: Optional[str] = None,
        description: Optional[str] = None,
    ) -> 'DebSpec':
        """返回应用了命令行覆盖项的新实例"""
        updates: Dict[str, Union[str, None]] = {}
        if version:
            updates['version'] = version
        if architecture:
            updates['architecture'] = architecture
        if description:
            updates['description'] = description
        if not updates:
            return self
        control = ControlModel.model_validate({**self.control.model_dump(), **updates})
        return self.model_copy(update={'control': control})

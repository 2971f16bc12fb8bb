"""
ar 容器写入

deb 包的外层格式是 System V / GNU 风格的 ar 归档：
8 字节全局头 ``!<arch>\\n``，之后每个成员是 60 字节的成员头加成员数据，
数据长度为奇数时补一个 ``\\n`` 使下一个成员头按 2 字节对齐。
"""

import shutil
import time
from pathlib import Path
from typing import BinaryIO, Optional, Union

AR_MAGIC = b"!<arch>\n"
AR_FMAG = b"`\n"
AR_HEADER_SIZE = 60
AR_NAME_LEN = 16
DEFAULT_MEMBER_MODE = 0o100644


class ArFormatError(Exception):
    """ar 格式错误"""
    pass


def build_member_header(
    name: str,
    size: int,
    mtime: Optional[int] = None,
    uid: int = 0,
    gid: int = 0,
    mode: int = DEFAULT_MEMBER_MODE,
) -> bytes:
    """构造 60 字节的成员头

    Raises:
        ArFormatError: 名称过长或字段超出宽度
    """
    if mtime is None:
        mtime = int(time.time())
    encoded_name = name.encode("ascii")
    if len(encoded_name) > AR_NAME_LEN:
        raise ArFormatError(f"成员名 {name!r} 超过 {AR_NAME_LEN} 字节")

    fields = [
        (encoded_name, 16),
        (str(int(mtime)).encode(), 12),
        (str(int(uid)).encode(), 6),
        (str(int(gid)).encode(), 6),
        (format(mode, "o").encode(), 8),
        (str(int(size)).encode(), 10),
    ]
    header = b""
    for value, width in fields:
        if len(value) > width:
            raise ArFormatError(f"ar 成员头字段超出宽度: {value!r}")
        header += value.ljust(width, b" ")
    header += AR_FMAG

    if len(header) != AR_HEADER_SIZE:
        raise ArFormatError("ar 成员头长度不是 60 字节")
    return header


class ArWriter:
    """ar 归档写入器

    先调用 :meth:`write_global_header`，再按顺序写入成员。
    """

    def __init__(self, stream: BinaryIO):
        self._stream = stream
        self._header_written = False

    def write_global_header(self) -> None:
        if self._header_written:
            raise ArFormatError("全局头已经写入")
        self._stream.write(AR_MAGIC)
        self._header_written = True

    def add_bytes(self, name: str, data: bytes, mtime: Optional[int] = None, mode: int = DEFAULT_MEMBER_MODE) -> None:
        """写入内存中的成员"""
        self._check_header()
        self._stream.write(build_member_header(name, len(data), mtime=mtime, mode=mode))
        self._stream.write(data)
        self._pad(len(data))

    def add_file(self, name: str, path: Union[str, Path], mtime: Optional[int] = None,
                 mode: int = DEFAULT_MEMBER_MODE) -> int:
        """以流方式写入文件成员，返回成员大小"""
        self._check_header()
        path = Path(path)
        size = path.stat().st_size
        self._stream.write(build_member_header(name, size, mtime=mtime, mode=mode))
        with open(path, 'rb') as f:
            shutil.copyfileobj(f, self._stream)
        self._pad(size)
        return size

    def _check_header(self) -> None:
        if not self._header_written:
            raise ArFormatError("必须先写入全局头")

    def _pad(self, size: int) -> None:
        if size % 2 == 1:
            self._stream.write(b"\n")

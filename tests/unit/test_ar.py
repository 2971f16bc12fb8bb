"""
ar 容器和 deb 组装单元测试

测试成员头格式、对齐填充以及 deb 成员顺序。
"""

import io

import pytest
from debian.arfile import ArError, ArFile

from debmaker.build.ar import (
    AR_HEADER_SIZE,
    AR_MAGIC,
    ArFormatError,
    ArWriter,
    build_member_header,
)
from debmaker.build.assembler import PackageAssembler
from debmaker.build.build_context import AssemblyError


class TestMemberHeader:
    """build_member_header 测试"""

    def test_layout(self):
        """测试 60 字节成员头的字段布局"""
        header = build_member_header("debian-binary", 4, mtime=1_600_000_000)

        assert len(header) == AR_HEADER_SIZE
        assert header[0:16] == b"debian-binary   "
        assert header[16:28] == b"1600000000  "
        assert header[28:34] == b"0     "
        assert header[34:40] == b"0     "
        assert header[40:48] == b"100644  "
        assert header[48:58] == b"4         "
        assert header[58:60] == b"`\n"

    def test_name_too_long(self):
        """测试成员名超过 16 字节"""
        with pytest.raises(ArFormatError):
            build_member_header("a-very-long-member-name", 1)


class TestArWriter:
    """ArWriter 测试"""

    def test_header_required(self):
        """测试未写全局头时不能写成员"""
        writer = ArWriter(io.BytesIO())
        with pytest.raises(ArFormatError):
            writer.add_bytes("x", b"data")

    def test_global_header_once(self):
        """测试全局头只能写一次"""
        writer = ArWriter(io.BytesIO())
        writer.write_global_header()
        with pytest.raises(ArFormatError):
            writer.write_global_header()

    def test_odd_size_padding(self):
        """测试奇数长度成员补一个换行"""
        stream = io.BytesIO()
        writer = ArWriter(stream)
        writer.write_global_header()
        writer.add_bytes("odd", b"abc", mtime=0)
        writer.add_bytes("even", b"ab", mtime=0)

        data = stream.getvalue()
        first_end = len(AR_MAGIC) + AR_HEADER_SIZE + 3
        assert data[first_end:first_end + 1] == b"\n"
        assert len(data) == len(AR_MAGIC) + 2 * AR_HEADER_SIZE + 4 + 2

    def test_add_file_streams_content(self, tmp_path):
        """测试以文件形式写入成员"""
        src = tmp_path / "payload.bin"
        src.write_bytes(b"12345")
        stream = io.BytesIO()
        writer = ArWriter(stream)
        writer.write_global_header()

        assert writer.add_file("payload.bin", src) == 5
        assert stream.getvalue().endswith(b"12345\n")


class TestArFileCompatibility:
    """写出的归档可以被 python-debian 读取"""

    def test_read_back(self, tmp_path):
        """测试读取写入的成员"""
        path = tmp_path / "test.a"
        with open(path, "wb") as f:
            writer = ArWriter(f)
            writer.write_global_header()
            writer.add_bytes("first", b"one", mtime=42)
            writer.add_bytes("second", b"two!", mtime=43)

        members = ArFile(str(path)).getmembers()

        assert [m.name for m in members] == ["first", "second"]
        assert [m.size for m in members] == [3, 4]
        assert members[0].mtime == 42
        assert members[0].read() == b"one"
        assert members[1].read() == b"two!"

    def test_not_an_archive(self, tmp_path):
        """测试非 ar 文件"""
        path = tmp_path / "plain.txt"
        path.write_bytes(b"not an archive")

        with pytest.raises(ArError):
            ArFile(str(path))


class TestPackageAssembler:
    """PackageAssembler 测试"""

    def test_member_order(self, tmp_path):
        """测试成员顺序：debian-binary、控制归档、数据归档"""
        control = tmp_path / "control.tar.gz"
        control.write_bytes(b"control-bytes")
        data = tmp_path / "data.tar.gz"
        data.write_bytes(b"data-bytes!")
        output = tmp_path / "demo_1.0_amd64.deb"

        PackageAssembler().assemble(control, data, output)

        assert output.read_bytes().startswith(AR_MAGIC + b"debian-binary   ")
        members = ArFile(str(output)).getmembers()
        assert [m.name for m in members] == ["debian-binary", "control.tar.gz", "data.tar.gz"]
        assert members[0].read() == b"2.0\n"
        assert members[1].read() == b"control-bytes"
        assert members[2].read() == b"data-bytes!"

    def test_zstd_member_names(self, tmp_path):
        """测试成员名取自归档文件名"""
        control = tmp_path / "control.tar.zst"
        control.write_bytes(b"c")
        data = tmp_path / "data.tar.zst"
        data.write_bytes(b"d")
        output = tmp_path / "out.deb"

        PackageAssembler().assemble(control, data, output)

        assert ArFile(str(output)).getnames() == [
            "debian-binary", "control.tar.zst", "data.tar.zst",
        ]

    def test_missing_archive(self, tmp_path):
        """测试内层归档不存在"""
        data = tmp_path / "data.tar.gz"
        data.write_bytes(b"d")

        with pytest.raises(AssemblyError):
            PackageAssembler().assemble(tmp_path / "control.tar.gz", data, tmp_path / "out.deb")

    def test_unwritable_output(self, tmp_path):
        """测试输出目录不存在"""
        control = tmp_path / "control.tar.gz"
        control.write_bytes(b"c")
        data = tmp_path / "data.tar.gz"
        data.write_bytes(b"d")

        with pytest.raises(AssemblyError) as exc_info:
            PackageAssembler().assemble(control, data, tmp_path / "missing" / "out.deb")
        assert exc_info.value.kind == "assembly"

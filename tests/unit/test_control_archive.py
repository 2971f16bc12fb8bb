"""
控制归档构建器单元测试

测试 control 文本生成、md5sums 格式、附加文件复制和错误处理。
"""

import os
import tarfile

import pytest
from debian.deb822 import Deb822

from debmaker.build.build_context import ArchiveWriteError
from debmaker.build.compressor import ZstdCompressor
from debmaker.build.control_archive import (
    ControlArchiveBuilder,
    format_control_value,
    installed_size,
    render_control,
    render_md5sums,
)
from debmaker.build.models import AuxFile, ChecksumManifestLine, PackageMetadata


def _metadata(**overrides):
    values = dict(
        name="demo",
        version="1.0.0",
        architecture="amd64",
        maintainer="Dev <dev@example.com>",
        description="Demo package",
        attributes={"Section": "utils", "Depends": "libc6"},
    )
    values.update(overrides)
    return PackageMetadata(**values)


def _manifest():
    return [
        ChecksumManifestLine(deb_path="usr/bin/demo", checksum="a" * 32, size=100),
        ChecksumManifestLine(deb_path="usr/share/demo/data", checksum="b" * 32, size=23),
    ]


def _read_members(path):
    with tarfile.open(path, "r:gz") as tar:
        return {m.name: (m, tar.extractfile(m).read()) for m in tar.getmembers()}, tar.getnames()


class TestControlText:
    """control 文本生成测试"""

    def test_field_order(self):
        """测试固定字段在前，附加字段按插入顺序在后"""
        text = render_control(_metadata(), 123)

        assert text == (
            "Package: demo\n"
            "Version: 1.0.0\n"
            "Architecture: amd64\n"
            "Maintainer: Dev <dev@example.com>\n"
            "Installed-Size: 123\n"
            "Description: Demo package\n"
            "Section: utils\n"
            "Depends: libc6\n"
        )

    def test_multiline_description(self):
        """测试多行值使用续行，空行写作 ' .'"""
        assert format_control_value("short\nlong line\n\nmore") == "short\n long line\n .\n more"
        assert format_control_value("single") == "single"

    def test_multiline_rendered_and_parsed(self):
        """测试多行描述生成后可以被 Deb822 解析回同一段落"""
        text = render_control(_metadata(description="short\nlong line\n\nmore"), 1)

        assert "Description: short\n long line\n .\n more\nSection: utils\n" in text
        paragraph = Deb822(text)
        assert list(paragraph) == [
            "Package", "Version", "Architecture", "Maintainer", "Installed-Size", "Description",
            "Section", "Depends",
        ]
        assert paragraph["Description"].splitlines()[0] == "short"
        assert paragraph["Depends"] == "libc6"

    def test_installed_size_is_byte_sum(self):
        """测试安装大小为普通文件字节数之和"""
        assert installed_size(_manifest()) == 123
        assert installed_size([]) == 0

    def test_md5sums_format(self):
        """测试 md5sums 行使用两个空格分隔"""
        assert render_md5sums(_manifest()) == (
            f"{'a' * 32}  usr/bin/demo\n"
            f"{'b' * 32}  usr/share/demo/data\n"
        )


class TestControlArchiveBuilder:
    """ControlArchiveBuilder 测试"""

    def test_archive_name(self):
        """测试归档名随压缩算法变化"""
        assert ControlArchiveBuilder().archive_name == "control.tar.gz"
        assert ControlArchiveBuilder(ZstdCompressor()).archive_name == "control.tar.zst"

    def test_member_order_and_content(self, tmp_path):
        """测试成员顺序：control、md5sums、附加文件"""
        postinst = tmp_path / "postinst.sh"
        postinst.write_text("#!/bin/sh\nexit 0\n")
        postinst.chmod(0o755)
        conffiles = tmp_path / "conffiles"
        conffiles.write_text("/etc/demo.conf\n")

        output = tmp_path / "control.tar.gz"
        ControlArchiveBuilder().build(
            _metadata(),
            _manifest(),
            [AuxFile(source=conffiles, deb_path="conffiles"), AuxFile(source=postinst, deb_path="postinst")],
            output,
        )

        members, names = _read_members(output)
        assert names == ["control", "md5sums", "conffiles", "postinst"]
        assert b"Installed-Size: 123\n" in members["control"][1]
        assert members["md5sums"][1].decode().splitlines()[0] == f"{'a' * 32}  usr/bin/demo"
        assert members["postinst"][1] == b"#!/bin/sh\nexit 0\n"

    def test_aux_file_mode_and_mtime_preserved(self, tmp_path):
        """测试附加文件保留权限和修改时间"""
        script = tmp_path / "prerm"
        script.write_text("#!/bin/sh\n")
        script.chmod(0o750)
        os.utime(script, (1_600_000_000, 1_600_000_000))

        output = tmp_path / "control.tar.gz"
        ControlArchiveBuilder().build(_metadata(), [], [AuxFile(source=script, deb_path="prerm")], output)

        members, _ = _read_members(output)
        info = members["prerm"][0]
        assert info.mode == 0o750
        assert info.mtime == 1_600_000_000
        assert members["control"][0].mode == 0o644

    def test_zstd_archive(self, tmp_path):
        """测试 zstd 压缩的控制归档可读"""
        compressor = ZstdCompressor(level=3)
        output = tmp_path / "control.tar.zst"
        ControlArchiveBuilder(compressor).build(_metadata(), _manifest(), [], output)

        with compressor.open_reader(output.read_bytes()) as tar:
            names = [m.name for m in tar]
        assert names == ["control", "md5sums"]

    def test_missing_aux_file(self, tmp_path):
        """测试附加文件不存在时报错"""
        with pytest.raises(ArchiveWriteError):
            ControlArchiveBuilder().build(
                _metadata(), [], [AuxFile(source=tmp_path / "missing", deb_path="postinst")],
                tmp_path / "control.tar.gz",
            )

    def test_error_kind(self):
        """测试错误类型标记"""
        assert ArchiveWriteError.kind == "archive_write"

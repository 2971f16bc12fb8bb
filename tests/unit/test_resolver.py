"""
文件树解析器单元测试

测试目录展开、上级目录补齐、排序去重、符号链接处理和错误处理。
"""

import os
import socket
import stat

import pytest

from debmaker.build.build_context import ChecksumError, ResolutionError
from debmaker.build.checksum import ChecksumComputer
from debmaker.build.models import ContentEntry, EntryKind, build_manifest
from debmaker.build.resolver import FileTreeResolver, entry_mode, infer_ancestors


def _paths(entries):
    return [e.deb_path for e in entries]


class TestInferAncestors:
    """infer_ancestors 测试"""

    def test_nothing_emitted(self):
        """测试从根目录开始补齐"""
        assert infer_ancestors("usr/share/doc", set()) == ["usr", "usr/share", "usr/share/doc"]

    def test_stops_at_emitted(self):
        """测试遇到已输出目录时停止"""
        assert infer_ancestors("usr/share/doc", {"usr"}) == ["usr/share", "usr/share/doc"]

    def test_already_emitted(self):
        """测试目录本身已输出"""
        assert infer_ancestors("usr/bin", {"usr", "usr/bin"}) == []

    def test_package_root(self):
        """测试包根目录不生成条目"""
        assert infer_ancestors("", set()) == []

    def test_does_not_mutate_emitted(self):
        """测试不修改传入的集合"""
        emitted = {"etc"}
        infer_ancestors("etc/app/conf.d", emitted)
        assert emitted == {"etc"}


class TestEntryMode:
    """entry_mode 测试"""

    def test_plain_file(self):
        assert entry_mode(stat.S_IFREG | 0o600) == 0o644

    def test_executable_bits_preserved(self):
        """测试只保留源文件各自的可执行位"""
        assert entry_mode(stat.S_IFREG | 0o750) == 0o754
        assert entry_mode(stat.S_IFREG | 0o744) == 0o744

    def test_all_executable_bits(self):
        assert entry_mode(stat.S_IFREG | 0o755) == 0o755
        assert entry_mode(stat.S_IFREG | 0o711) == 0o755


class TestFileTreeResolver:
    """FileTreeResolver 测试"""

    def test_directory_scenario(self, tmp_path):
        """测试目录映射：usr/、usr/bin/、usr/bin/app 依次输出"""
        bin_dir = tmp_path / "pkgroot" / "usr" / "bin"
        bin_dir.mkdir(parents=True)
        app = bin_dir / "app"
        app.write_bytes(b"hello")

        entries = FileTreeResolver().resolve([ContentEntry(source=bin_dir, deb_path="usr/bin")])

        assert _paths(entries) == ["usr/", "usr/bin/", "usr/bin/app"]
        assert [e.kind for e in entries] == [EntryKind.DIRECTORY, EntryKind.DIRECTORY, EntryKind.FILE]
        assert entries[2].checksum == "5d41402abc4b2a76b9719d911017c592"
        assert entries[2].size == 5
        assert entries[2].source == app

    def test_single_file_infers_parents(self, tmp_path):
        """测试单个文件会补齐所有上级目录"""
        src = tmp_path / "app.conf"
        src.write_text("key=value\n")

        entries = FileTreeResolver().resolve([ContentEntry(source=src, deb_path="etc/app/app.conf")])

        assert _paths(entries) == ["etc/", "etc/app/", "etc/app/app.conf"]
        assert entries[0].mode == 0o755
        assert entries[0].source is None

    def test_file_at_top_level(self, tmp_path):
        """测试映射到包根目录下的文件不需要补齐目录"""
        src = tmp_path / "README"
        src.write_text("readme")

        entries = FileTreeResolver().resolve([ContentEntry(source=src, deb_path="README")])

        assert _paths(entries) == ["README"]

    def test_empty_directory(self, tmp_path):
        """测试空目录只生成一个目录条目"""
        empty = tmp_path / "empty"
        empty.mkdir()

        entries = FileTreeResolver().resolve([ContentEntry(source=empty, deb_path="var")])

        assert _paths(entries) == ["var/"]
        assert entries[0].is_directory

    def test_directories_deduplicated(self, tmp_path):
        """测试目录条目和推断的上级目录只出现一次"""
        share = tmp_path / "share"
        (share / "doc").mkdir(parents=True)
        (share / "doc" / "README").write_text("doc")
        lib = tmp_path / "lib.so"
        lib.write_bytes(b"\x7fELF")

        entries = FileTreeResolver().resolve([
            ContentEntry(source=lib, deb_path="usr/share/lib.so"),
            ContentEntry(source=share, deb_path="usr/share"),
        ])

        dirs = [e.deb_path for e in entries if e.is_directory]
        assert dirs == ["usr/", "usr/share/", "usr/share/doc/"]
        assert len(dirs) == len(set(dirs))

    def test_ordering_directories_first(self, tmp_path):
        """测试目录排序在前，文件和符号链接保持发现顺序"""
        root = tmp_path / "root"
        (root / "b").mkdir(parents=True)
        (root / "a").mkdir()
        (root / "b" / "z.txt").write_text("z")
        (root / "a" / "y.txt").write_text("y")
        os.symlink("y.txt", root / "a" / "link")
        extra = tmp_path / "extra.txt"
        extra.write_text("extra")

        entries = FileTreeResolver().resolve([
            ContentEntry(source=extra, deb_path="opt/pkg/zz/extra.txt"),
            ContentEntry(source=root, deb_path="opt/pkg"),
        ])

        kinds = [e.kind for e in entries]
        first_non_dir = kinds.index(EntryKind.FILE)
        assert all(k == EntryKind.DIRECTORY for k in kinds[:first_non_dir])
        assert all(k != EntryKind.DIRECTORY for k in kinds[first_non_dir:])

        dirs = [e.deb_path for e in entries if e.is_directory]
        assert dirs == sorted(dirs)
        assert dirs == ["opt/", "opt/pkg/", "opt/pkg/a/", "opt/pkg/b/", "opt/pkg/zz/"]

        files = [e.deb_path for e in entries if e.is_file]
        assert files == ["opt/pkg/zz/extra.txt", "opt/pkg/a/y.txt", "opt/pkg/b/z.txt"]

        links = [e for e in entries if e.is_symlink]
        assert [e.deb_path for e in links] == ["opt/pkg/a/link"]
        assert links[0].link_target == "y.txt"
        assert links[0].checksum is None

    def test_every_file_has_ancestors(self, tmp_path):
        """测试每个文件的所有上级目录都出现在目录列表中"""
        root = tmp_path / "tree"
        (root / "x" / "y" / "z").mkdir(parents=True)
        (root / "x" / "y" / "z" / "deep.txt").write_text("deep")
        (root / "x" / "top.txt").write_text("top")

        entries = FileTreeResolver().resolve([ContentEntry(source=root, deb_path="srv/data")])
        dirs = {e.deb_path for e in entries if e.is_directory}

        for entry in entries:
            if entry.is_directory:
                continue
            parts = entry.deb_path.split("/")[:-1]
            for depth in range(1, len(parts) + 1):
                assert "/".join(parts[:depth]) + "/" in dirs

    def test_source_symlink_not_followed(self, tmp_path):
        """测试源路径本身是符号链接时按符号链接处理，不补齐上级目录"""
        target_dir = tmp_path / "real"
        target_dir.mkdir()
        (target_dir / "file").write_text("content")
        link = tmp_path / "alias"
        os.symlink(target_dir, link)

        entries = FileTreeResolver().resolve([ContentEntry(source=link, deb_path="usr/lib/alias")])

        assert len(entries) == 1
        assert entries[0].is_symlink
        assert entries[0].link_target == str(target_dir)

    def test_symlink_target_trimmed(self, tmp_path):
        """测试符号链接目标去掉首尾空白"""
        link = tmp_path / "padded"
        os.symlink(" target ", link)

        entries = FileTreeResolver().resolve([ContentEntry(source=link, deb_path="padded")])

        assert entries[0].link_target == "target"

    def test_root_mapping_emits_no_root_entry(self, tmp_path):
        """测试目录映射到包根目录时不生成根目录条目"""
        root = tmp_path / "pkgroot"
        (root / "etc").mkdir(parents=True)
        (root / "etc" / "app.conf").write_text("conf")

        entries = FileTreeResolver().resolve([ContentEntry(source=root, deb_path="/")])

        assert _paths(entries) == ["etc/", "etc/app.conf"]

    def test_executable_mode(self, tmp_path):
        """测试可执行位保留"""
        script = tmp_path / "run.sh"
        script.write_text("#!/bin/sh\n")
        script.chmod(0o700)

        entries = FileTreeResolver().resolve([ContentEntry(source=script, deb_path="run.sh")])

        assert entries[0].mode == 0o744

    def test_executable_mode_all_classes(self, tmp_path):
        """测试组和其他用户的可执行位同样保留"""
        script = tmp_path / "run.sh"
        script.write_text("#!/bin/sh\n")
        script.chmod(0o755)

        entries = FileTreeResolver().resolve([ContentEntry(source=script, deb_path="run.sh")])

        assert entries[0].mode == 0o755

    def test_duplicate_destinations_kept(self, tmp_path):
        """测试重复的包内路径都会保留"""
        first = tmp_path / "a.conf"
        first.write_text("first")
        second = tmp_path / "b.conf"
        second.write_text("second")

        entries = FileTreeResolver().resolve([
            ContentEntry(source=first, deb_path="etc/app.conf"),
            ContentEntry(source=second, deb_path="etc/app.conf"),
        ])

        files = [e for e in entries if e.is_file]
        assert [e.source for e in files] == [first, second]

    def test_deterministic_manifest(self, tmp_path):
        """测试重复解析得到相同的清单"""
        root = tmp_path / "data"
        root.mkdir()
        for name in ("one", "two", "three"):
            (root / name).write_text(name * 10)

        resolver = FileTreeResolver()
        first = build_manifest(resolver.resolve([ContentEntry(source=root, deb_path="usr/share/data")]))
        second = build_manifest(resolver.resolve([ContentEntry(source=root, deb_path="usr/share/data")]))

        assert [line.format() for line in first] == [line.format() for line in second]

    def test_missing_source(self, tmp_path):
        """测试源路径不存在"""
        with pytest.raises(ResolutionError):
            FileTreeResolver().resolve([ContentEntry(source=tmp_path / "missing", deb_path="x")])

    def test_path_traversal_rejected(self, tmp_path):
        """测试包内路径不能穿越包根目录"""
        src = tmp_path / "f"
        src.write_text("f")

        with pytest.raises(ResolutionError):
            FileTreeResolver().resolve([ContentEntry(source=src, deb_path="../etc/passwd")])

    def test_unsupported_file_type(self, tmp_path):
        """测试不支持的文件类型（套接字）"""
        sock_path = tmp_path / "s.sock"
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.bind(str(sock_path))
            with pytest.raises(ResolutionError, match="不支持的文件类型"):
                FileTreeResolver().resolve([ContentEntry(source=sock_path, deb_path="run/s.sock")])
        finally:
            sock.close()

    def test_checksum_error_propagates(self, tmp_path):
        """测试校验和错误不会被包装为解析错误"""
        src = tmp_path / "f"
        src.write_text("data")

        class FailingComputer(ChecksumComputer):
            def compute(self, path, size):
                raise ChecksumError("boom")

        with pytest.raises(ChecksumError):
            FileTreeResolver(FailingComputer()).resolve([ContentEntry(source=src, deb_path="f")])

"""
校验和计算单元测试

测试流式摘要计算、按声明大小读取以及错误处理。
"""

import hashlib

import pytest

from debmaker.build.build_context import ChecksumError
from debmaker.build.checksum import ChecksumComputer


class TestChecksumComputer:
    """ChecksumComputer 测试"""

    def test_known_digest(self, tmp_path):
        """测试已知内容的 md5 摘要"""
        path = tmp_path / "hello.txt"
        path.write_bytes(b"hello")

        assert ChecksumComputer().compute(path, 5) == "5d41402abc4b2a76b9719d911017c592"

    def test_empty_file(self, tmp_path):
        """测试空文件"""
        path = tmp_path / "empty"
        path.write_bytes(b"")

        assert ChecksumComputer().compute(path, 0) == "d41d8cd98f00b204e9800998ecf8427e"

    def test_chunked_read_matches_hashlib(self, tmp_path):
        """测试跨多个读取块的文件"""
        data = bytes(range(256)) * 300
        path = tmp_path / "big.bin"
        path.write_bytes(data)

        computer = ChecksumComputer(chunk_size=1000)
        assert computer.compute(path, len(data)) == hashlib.md5(data).hexdigest()

    def test_reads_only_declared_size(self, tmp_path):
        """测试文件在解析后变长时只读取声明的大小"""
        path = tmp_path / "grown.txt"
        path.write_bytes(b"hello world")

        assert ChecksumComputer().compute(path, 5) == hashlib.md5(b"hello").hexdigest()

    def test_truncated_file_raises(self, tmp_path):
        """测试文件比声明的大小短时报错"""
        path = tmp_path / "short.txt"
        path.write_bytes(b"abc")

        with pytest.raises(ChecksumError, match="提前结束"):
            ChecksumComputer().compute(path, 10)

    def test_missing_file_raises(self, tmp_path):
        """测试文件不存在"""
        with pytest.raises(ChecksumError):
            ChecksumComputer().compute(tmp_path / "missing", 1)

    def test_independent_calls(self, tmp_path):
        """测试多次调用之间不共享哈希状态"""
        first = tmp_path / "a"
        first.write_bytes(b"same")
        second = tmp_path / "b"
        second.write_bytes(b"same")

        computer = ChecksumComputer()
        assert computer.compute(first, 4) == computer.compute(second, 4)

    def test_checksum_error_kind(self):
        """测试错误类型标记"""
        assert ChecksumError.kind == "checksum"

    def test_invalid_algorithm(self):
        """测试不支持的算法"""
        with pytest.raises(ValueError):
            ChecksumComputer(algorithm="not-a-hash")

    def test_invalid_chunk_size(self):
        """测试非法的块大小"""
        with pytest.raises(ValueError):
            ChecksumComputer(chunk_size=0)

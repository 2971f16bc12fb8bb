"""
文件树解析器

把用户声明的内容条目展开为扁平的、带类型的条目列表：
目录（排序、去重，并补齐所有上级目录）、普通文件（带校验和）、符号链接。
"""

import os
import posixpath
import stat
import time
from pathlib import Path
from typing import AbstractSet, Iterator, List, Optional, Set, Tuple

from ..utils.logging import LogStage, debug, warning
from ..utils.paths import normalize_deb_path
from .build_context import ResolutionError
from .checksum import ChecksumComputer
from .models import ContentEntry, EntryKind, ResolvedEntry

BASE_MODE = 0o644
EXEC_BITS = 0o111
SYNTHETIC_DIR_MODE = 0o755


def entry_mode(st_mode: int) -> int:
    """基础权限 0644，保留源文件的可执行位"""
    return BASE_MODE | (st_mode & EXEC_BITS)


def infer_ancestors(directory: str, emitted: AbstractSet[str]) -> List[str]:
    """计算需要补齐的目录

    从 ``directory`` 开始逐级向上，直到遇到已经输出过的目录或包根目录为止。
    不修改 ``emitted``。

    Args:
        directory: 规范化的包内目录路径（不带结尾 ``/``），空字符串表示包根目录
        emitted: 已输出的目录集合

    Returns:
        List[str]: 尚未输出的目录，由浅到深排列
    """
    missing = []
    current = directory
    while current and current not in emitted:
        missing.append(current)
        current = posixpath.dirname(current)
    missing.reverse()
    return missing


class FileTreeResolver:
    """文件树解析器"""

    def __init__(self, checksum_computer: Optional[ChecksumComputer] = None):
        self.checksum_computer = checksum_computer or ChecksumComputer()

    def resolve(self, entries: List[ContentEntry]) -> List[ResolvedEntry]:
        """解析内容条目

        Args:
            entries: 按声明顺序排列的内容条目

        Returns:
            List[ResolvedEntry]: 目录（按路径排序）+ 普通文件 + 符号链接

        Raises:
            ResolutionError: 源路径不存在或无法遍历
            ChecksumError: 计算校验和失败
        """
        emitted: Set[str] = set()
        directories: List[ResolvedEntry] = []
        files: List[ResolvedEntry] = []
        symlinks: List[ResolvedEntry] = []

        for entry in entries:
            source = Path(entry.source)
            deb_path = self._normalize(entry.deb_path)
            st = self._lstat(source)

            if stat.S_ISDIR(st.st_mode):
                if not deb_path:
                    # 映射到包根目录时，根目录本身不生成条目
                    emitted.add(deb_path)
                self._add_directories(posixpath.dirname(deb_path), emitted, directories)
                self._walk(source, deb_path, emitted, directories, files, symlinks)
            elif stat.S_ISLNK(st.st_mode):
                symlinks.append(self._symlink_entry(source, deb_path, st))
            elif stat.S_ISREG(st.st_mode):
                files.append(self._file_entry(source, deb_path, st))
                self._add_directories(posixpath.dirname(deb_path), emitted, directories)
            else:
                raise ResolutionError(f"不支持的文件类型: {source}")

        self._warn_duplicates(files + symlinks)

        directories.sort(key=lambda e: e.deb_path)
        return directories + files + symlinks

    def _normalize(self, deb_path: str) -> str:
        try:
            return normalize_deb_path(deb_path)
        except ValueError as e:
            raise ResolutionError(str(e)) from e

    def _lstat(self, path: Path) -> os.stat_result:
        try:
            return os.lstat(path)
        except OSError as e:
            raise ResolutionError(f"无法读取源路径 {path}: {e}") from e

    def _add_directories(self, directory: str, emitted: Set[str], directories: List[ResolvedEntry]) -> None:
        """补齐 ``directory`` 及其尚未输出的上级目录"""
        now = time.time()
        for path in infer_ancestors(directory, emitted):
            emitted.add(path)
            directories.append(ResolvedEntry(
                deb_path=path + "/",
                kind=EntryKind.DIRECTORY,
                mode=SYNTHETIC_DIR_MODE,
                mtime=now,
            ))
            debug(f"补齐目录 {path}/", stage=LogStage.RESOLVE)

    def _walk(
        self,
        root: Path,
        deb_root: str,
        emitted: Set[str],
        directories: List[ResolvedEntry],
        files: List[ResolvedEntry],
        symlinks: List[ResolvedEntry],
    ) -> None:
        """递归遍历目录，按名称顺序输出"""
        for path, deb_path, st in self._iter_tree(root, deb_root):
            if stat.S_ISDIR(st.st_mode):
                if deb_path in emitted:
                    continue
                emitted.add(deb_path)
                directories.append(ResolvedEntry(
                    deb_path=deb_path + "/",
                    kind=EntryKind.DIRECTORY,
                    mode=entry_mode(st.st_mode),
                    mtime=st.st_mtime,
                    source=path,
                ))
                debug(f"目录 {path} -> {deb_path}/", stage=LogStage.RESOLVE)
            elif stat.S_ISLNK(st.st_mode):
                symlinks.append(self._symlink_entry(path, deb_path, st))
            elif stat.S_ISREG(st.st_mode):
                files.append(self._file_entry(path, deb_path, st))
            else:
                raise ResolutionError(f"不支持的文件类型: {path}")

    def _iter_tree(self, directory: Path, deb_dir: str) -> Iterator[Tuple[Path, str, os.stat_result]]:
        """先返回目录本身，再按名称顺序返回其内容（不跟随符号链接）"""
        yield directory, deb_dir, self._lstat(directory)

        try:
            with os.scandir(directory) as it:
                children = sorted(it, key=lambda e: e.name)
        except OSError as e:
            raise ResolutionError(f"无法遍历目录 {directory}: {e}") from e

        for child in children:
            path = Path(child.path)
            deb_path = posixpath.join(deb_dir, child.name) if deb_dir else child.name
            try:
                is_dir = child.is_dir(follow_symlinks=False)
            except OSError as e:
                raise ResolutionError(f"无法读取源路径 {path}: {e}") from e
            if is_dir:
                yield from self._iter_tree(path, deb_path)
            else:
                yield path, deb_path, self._lstat(path)

    def _file_entry(self, source: Path, deb_path: str, st: os.stat_result) -> ResolvedEntry:
        if not deb_path:
            raise ResolutionError(f"文件不能映射到包根目录: {source}")
        checksum = self.checksum_computer.compute(source, st.st_size)
        debug(f"文件 {source} -> {deb_path} ({checksum})", stage=LogStage.RESOLVE)
        return ResolvedEntry(
            deb_path=deb_path,
            kind=EntryKind.FILE,
            mode=entry_mode(st.st_mode),
            mtime=st.st_mtime,
            source=source,
            size=st.st_size,
            checksum=checksum,
        )

    def _symlink_entry(self, source: Path, deb_path: str, st: os.stat_result) -> ResolvedEntry:
        if not deb_path:
            raise ResolutionError(f"符号链接不能映射到包根目录: {source}")
        try:
            target = os.readlink(source).strip()
        except OSError as e:
            raise ResolutionError(f"无法读取符号链接 {source}: {e}") from e
        debug(f"符号链接 {deb_path} -> {target}", stage=LogStage.RESOLVE)
        return ResolvedEntry(
            deb_path=deb_path,
            kind=EntryKind.SYMLINK,
            mode=entry_mode(st.st_mode),
            mtime=st.st_mtime,
            source=source,
            link_target=target,
        )

    @staticmethod
    def _warn_duplicates(entries: List[ResolvedEntry]) -> None:
        # 重复的包内路径不报错，归档中后写入的条目会覆盖先写入的
        seen: Set[str] = set()
        for entry in entries:
            if entry.deb_path in seen:
                warning(f"包内路径重复，后声明的条目将覆盖前者: {entry.deb_path}", stage=LogStage.RESOLVE)
            seen.add(entry.deb_path)


def resolve_entries(entries: List[ContentEntry]) -> List[ResolvedEntry]:
    """便捷函数：解析内容条目"""
    return FileTreeResolver().resolve(entries)

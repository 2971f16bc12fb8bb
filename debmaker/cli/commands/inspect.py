"""
Inspect 命令实现

读取 deb 包的 ar 成员、control 字段和数据归档文件列表。
"""

import json
import tarfile
from pathlib import Path
from typing import Any, Dict, List

import typer
from debian.arfile import ArError, ArFile
from debian.deb822 import Deb822
from rich.console import Console
from rich.table import Table

from ...build.compressor import CompressionError, CompressorFactory
from ...utils import format_size


console = Console()

CONTROL_MEMBER_NAMES = ("control", "./control")


def inspect_command(
    package: str = typer.Argument(..., help="deb 包路径"),
    json_output: bool = typer.Option(False, "--json", help="输出 JSON 格式"),
    show_files: bool = typer.Option(False, "--files", help="显示数据归档文件列表"),
) -> None:
    """检查 deb 包

    显示 ar 成员、control 字段，可选显示数据归档中的条目。

    示例:
        debmaker inspect dist/app_1.0.0_amd64.deb
        debmaker inspect dist/app_1.0.0_amd64.deb --files --json
    """
    package_path = Path(package)

    if not package_path.exists():
        console.print(f"[red]deb 文件不存在: {package_path}[/red]")
        raise typer.Exit(1)

    try:
        data = read_package(package_path, show_files)
    except (ArError, CompressionError, tarfile.TarError, OSError, KeyError) as e:
        console.print(f"[red]检查 deb 包失败: {e}[/red]")
        raise typer.Exit(1)

    if json_output:
        typer.echo(json.dumps(data, ensure_ascii=False, indent=2))
    else:
        _display_package_info(data, show_files)


def read_package(package_path: Path, include_files: bool = False) -> Dict[str, Any]:
    """读取 deb 包信息

    Raises:
        ArError: 不是合法的 ar 归档
        KeyError: 缺少 control 归档或 control 文件
    """
    archive = ArFile(str(package_path))
    members = archive.getmembers()

    data: Dict[str, Any] = {
        "file": str(package_path),
        "members": [
            {"name": m.name, "size": m.size, "mode": oct(m.fmode), "mtime": m.mtime}
            for m in members
        ],
    }

    control_member = next((m for m in members if m.name.startswith("control.tar")), None)
    if control_member is None:
        raise KeyError("缺少 control 归档成员")

    compressor = CompressorFactory.for_member_name(control_member.name)
    paragraph = None
    with compressor.open_reader(control_member.read()) as tar:
        for info in tar:
            if info.name in CONTROL_MEMBER_NAMES:
                paragraph = Deb822(tar.extractfile(info).read().decode("utf-8"))
                break
    if paragraph is None:
        raise KeyError("control 归档中缺少 control 文件")
    data["control"] = {str(key): value for key, value in paragraph.items()}

    if include_files:
        data_member = next((m for m in members if m.name.startswith("data.tar")), None)
        if data_member is None:
            raise KeyError("缺少 data 归档成员")
        data["files"] = _list_archive(
            CompressorFactory.for_member_name(data_member.name), data_member.read()
        )

    return data


def _list_archive(compressor, payload: bytes) -> List[Dict[str, Any]]:
    entries = []
    with compressor.open_reader(payload) as tar:
        for info in tar:
            if info.isdir():
                kind = "directory"
            elif info.issym():
                kind = "symlink"
            else:
                kind = "file"
            entries.append({
                "path": info.name,
                "type": kind,
                "mode": oct(info.mode),
                "size": info.size,
                "link_target": info.linkname or None,
            })
    return entries


def _display_package_info(data: Dict[str, Any], show_files: bool) -> None:
    """显示包信息（人类可读格式）"""
    console.print(f"[bold]deb 包信息[/bold]: {data['file']}")
    console.print()

    members_table = Table(title="ar 成员")
    members_table.add_column("名称", style="cyan")
    members_table.add_column("大小", style="green")
    members_table.add_column("权限", style="yellow")
    for member in data["members"]:
        members_table.add_row(member["name"], format_size(member["size"]), member["mode"])
    console.print(members_table)
    console.print()

    control_table = Table(title="control 字段")
    control_table.add_column("字段", style="cyan")
    control_table.add_column("值", style="green")
    for key, value in data["control"].items():
        control_table.add_row(key, value)
    console.print(control_table)
    console.print()

    if show_files:
        files = data.get("files", [])
        files_table = Table(title=f"文件列表 ({len(files)} 个条目)")
        files_table.add_column("路径", style="cyan")
        files_table.add_column("类型", style="magenta")
        files_table.add_column("权限", style="yellow")
        files_table.add_column("大小", style="green")
        for entry in files:
            path = entry["path"]
            if entry["link_target"]:
                path = f"{path} -> {entry['link_target']}"
            files_table.add_row(path, entry["type"], entry["mode"], format_size(entry["size"]))
        console.print(files_table)
        console.print()

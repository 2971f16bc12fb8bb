"""
Build 命令实现

根据描述文件构建 deb 包的核心命令。
"""

import sys
import tempfile
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console

from ...config import (
    ConfigError,
    ConfigValidationError,
    TemplateError,
    build_template_vars,
    config_loader,
)
from ...config.schema import DebSpec
from ...utils import ArchitectureDetectionError, detect_architecture, format_size
from ...utils.logging import OutputLevel, set_log_file, set_log_level


console = Console()


def build_command(
    spec_file: Optional[str] = typer.Option(None, "--spec-file", "-s", help="描述文件路径，省略时从标准输入读取"),
    output_dir: str = typer.Option(".", "--output-dir", "-o", help="deb 输出目录"),
    version: Optional[str] = typer.Option(None, "--version", help="包版本号，覆盖描述文件中的值"),
    arch: Optional[str] = typer.Option(None, "--arch", help="目标架构，省略时使用 dpkg --print-architecture"),
    desc: Optional[str] = typer.Option(None, "--desc", help="包描述，覆盖描述文件中的值"),
    pkg_name: Optional[str] = typer.Option(None, "--pkg-name", help="模板变量 pkg_name"),
    postinst: Optional[str] = typer.Option(None, "--postinst", help="模板变量 postinst"),
    prerm: Optional[str] = typer.Option(None, "--prerm", help="模板变量 prerm"),
    files: Optional[List[str]] = typer.Option(None, "--file", help="模板变量 files: deb_path=source，可重复"),
    dirs: Optional[List[str]] = typer.Option(None, "--dir", help="模板变量 files: deb_dir=\"src1 src2\"，可重复"),
    force: bool = typer.Option(False, "--force", "-f", help="强制覆盖已存在的输出文件"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="日志输出文件"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出详细调试日志 (DEBUG 级别)"),
) -> None:
    """构建 deb 包

    描述文件先作为 Jinja2 模板渲染，再解析为 YAML。

    示例:
        debmaker build -s debmaker.yaml --version 1.2.0 -o dist
        cat debmaker.yaml | debmaker build --arch arm64 --file usr/bin/app=./app
    """
    from ...build.builder import Builder

    # 初始化日志：在任何输出前设置
    set_log_level(OutputLevel.DEBUG if verbose else OutputLevel.INFO)

    if log_file:
        try:
            set_log_file(log_file)
        except OSError:
            console.print(f"[yellow]无法写入日志文件: {log_file}[/yellow]")

    try:
        template_vars = build_template_vars(pkg_name, postinst, prerm, files, dirs)
        spec = _load_spec(spec_file, template_vars)
        spec = spec.with_overrides(version=version, architecture=arch, description=desc)

        if not spec.control.architecture:
            spec = spec.with_overrides(architecture=detect_architecture())
            console.print(f"[blue]目标架构[/blue]: {spec.control.architecture} (dpkg 探测)")

        if not spec.control.version:
            console.print("[red]缺少包版本号[/red]: 请在描述文件中设置 control.version 或使用 --version")
            raise typer.Exit(1)

    except ConfigValidationError as e:
        console.print("[red]描述文件验证失败:[/red]")
        console.print(e.format_errors())
        raise typer.Exit(1)
    except ValidationError as e:
        console.print("[red]命令行覆盖项无效:[/red]")
        console.print(ConfigValidationError("覆盖项验证失败", e.errors()).format_errors())
        raise typer.Exit(1)
    except (ConfigError, TemplateError) as e:
        console.print(f"[red]配置错误[/red]: {e}")
        raise typer.Exit(1)
    except ArchitectureDetectionError as e:
        console.print(f"[red]无法确定目标架构[/red]: {e}")
        console.print("请使用 --arch 参数指定")
        raise typer.Exit(1)

    output_path = Path(output_dir) / spec.to_metadata().package_filename

    # 检查输出文件
    if output_path.exists() and not force:
        console.print(f"[red]输出文件已存在: {output_path}[/red]")
        console.print("使用 --force 参数强制覆盖")
        raise typer.Exit(1)

    def progress_callback(stage: str, current: int, total: int, message: str = "") -> None:
        """进度回调函数，显示进度"""
        if total > 0:
            percentage = (current / total) * 100
            if message:
                console.print(f"[blue]{stage}[/blue]: {message} ({percentage:.0f}%)")
            else:
                console.print(f"[blue]{stage}[/blue]: {percentage:.0f}%")

    console.print(f"[cyan]开始构建 deb 包[/cyan]: {spec.control.pkg_name} {spec.control.version}")
    if verbose:
        console.print("[dim]已启用详细模式 -- 将输出调试级日志[/dim]")

    builder = Builder()
    with tempfile.TemporaryDirectory(prefix="debmaker-") as scratch_dir:
        result = builder.build(spec, Path(output_dir), Path(scratch_dir), progress_callback=progress_callback)

    if not result.success:
        console.print(f"[red]✗ 构建失败[/red] ({result.error_kind}): {result.error}")
        if log_file:
            console.print(f"[yellow]请检查日志文件 {log_file} 获取详细信息。[/yellow]")
        raise typer.Exit(1)

    console.print(f"[green]✓ deb 包构建完成[/green]: {result.output_path}")
    console.print(f"[blue]文件大小[/blue]: {format_size(result.output_size or 0)}")
    console.print(f"[blue]Installed-Size[/blue]: {result.installed_size}")


def _load_spec(spec_file: Optional[str], template_vars) -> DebSpec:
    """加载描述文件，未指定文件时读取标准输入"""
    if spec_file:
        console.print(f"[cyan]正在加载描述文件[/cyan]: {spec_file}")
        return config_loader.load_from_file(Path(spec_file), template_vars)

    console.print("[cyan]正在从标准输入读取描述文件[/cyan]")
    return config_loader.load_from_text(sys.stdin.read(), Path.cwd(), template_vars)

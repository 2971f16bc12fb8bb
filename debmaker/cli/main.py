"""
debmaker CLI 主入口

提供命令行接口，支持 build/validate/inspect/example/info 等命令。
"""

import sys
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .. import __version__
from ..config import ConfigError, save_config
from ..utils import configure_logging
from .commands import build, inspect, validate


# 创建主应用
app = typer.Typer(
    name="debmaker",
    help="debmaker - 从 YAML 描述文件构建 Debian 二进制包 (.deb)",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# 控制台输出
console = Console()


def version_callback(value: bool) -> None:
    """显示版本信息"""
    if value:
        console.print(f"debmaker v{__version__}")
        raise typer.Exit()


def verbose_callback(verbose: bool) -> None:
    """配置详细输出"""
    configure_logging(level="DEBUG" if verbose else "INFO")


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="显示版本信息"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        callback=verbose_callback,
        help="启用详细输出"
    )
) -> None:
    """debmaker - 从 YAML 描述文件构建 Debian 二进制包

    使用 --help 查看可用命令的详细信息。
    """
    pass


# 注册子命令
app.command("build", help="构建 deb 包")(build.build_command)
app.command("validate", help="验证描述文件")(validate.validate_command)
app.command("inspect", help="检查 deb 包内容")(inspect.inspect_command)


@app.command("info")
def info_command() -> None:
    """显示系统信息"""
    import zstandard

    from ..build.compressor import CompressionAlgorithm, CompressorFactory

    console.print("[bold]debmaker 系统信息[/bold]")
    console.print()

    table = Table(title="版本信息")
    table.add_column("组件", style="cyan")
    table.add_column("版本", style="green")

    table.add_row("debmaker", __version__)
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")

    console.print(table)
    console.print()

    algo_table = Table(title="支持的压缩算法")
    algo_table.add_column("算法", style="cyan")
    algo_table.add_column("归档后缀", style="yellow")
    algo_table.add_column("状态", style="green")

    for algo in CompressorFactory.get_available_algorithms():
        compressor = CompressorFactory.create_compressor(algo)
        status = "✓ 可用"
        if algo == CompressionAlgorithm.ZSTD:
            status = f"✓ 可用 (zstandard {zstandard.__version__})"
        algo_table.add_row(algo.value, compressor.suffix, status)

    console.print(algo_table)


@app.command("example")
def example_command(
    output: str = typer.Option(
        "debmaker.yaml",
        "--output", "-o",
        help="输出描述文件路径"
    )
) -> None:
    """生成示例描述文件"""
    from ..config.schema import DebSpec

    spec = DebSpec.from_dict({
        "control": {
            "pkg-name": "example-app",
            "version": "1.0.0",
            "maintainer": "Example Maintainer <maintainer@example.com>",
            "description": "Example application\nLonger description of the example application.",
            "other-attrs": {
                "Section": "utils",
                "Priority": "optional",
                "Depends": "libc6",
            },
            "postinst": "./scripts/postinst",
        },
        "content": [
            {"path": "./build/example-app", "deb-path": "usr/bin/example-app"},
            {"path": "./share", "deb-path": "usr/share/example-app"},
        ],
        "link": [
            {"from": "/usr/bin/example-app", "to": "usr/bin/example"},
        ],
    })

    try:
        save_config(spec, output)
    except ConfigError as e:
        console.print(f"[red]生成示例描述文件失败: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"✓ 示例描述文件已生成: [green]{output}[/green]")
    console.print("请根据需要修改描述文件，然后运行:")
    console.print(f"  [cyan]debmaker build -s {output} --arch amd64 -o dist[/cyan]")


if __name__ == "__main__":
    app()

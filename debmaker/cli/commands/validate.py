"""
Validate 命令实现

验证描述文件的命令。
"""

import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ...config import validate_config


console = Console()


def validate_command(
    spec_file: str = typer.Option(..., "--spec-file", "-s", help="描述文件路径"),
    json_output: bool = typer.Option(False, "--json", help="输出 JSON 格式的错误信息"),
) -> None:
    """验证描述文件

    渲染模板（变量为空）后检查 YAML 语法和字段语义。

    示例:
        debmaker validate -s debmaker.yaml
        debmaker validate -s debmaker.yaml --json
    """
    spec_path = Path(spec_file)

    if not spec_path.exists():
        console.print(f"[red]描述文件不存在: {spec_path}[/red]")
        raise typer.Exit(1)

    if not json_output:
        console.print(f"正在验证描述文件: [cyan]{spec_path}[/cyan]")

    errors = validate_config(spec_path)

    if json_output:
        result = {
            "file": str(spec_path),
            "valid": not errors,
            "errors": [
                {
                    "loc": [str(item) for item in error.get('loc', [])],
                    "msg": error.get('msg', ''),
                    "type": error.get('type', ''),
                }
                for error in errors
            ],
        }
        typer.echo(json.dumps(result, ensure_ascii=False, indent=2))
        if errors:
            raise typer.Exit(1)
        return

    if not errors:
        console.print("[green]✓ 描述文件验证通过[/green]")
        return

    console.print(f"[red]✗ 发现 {len(errors)} 个错误:[/red]")

    table = Table(title="验证错误")
    table.add_column("位置", style="cyan")
    table.add_column("错误信息", style="red")
    table.add_column("输入值", style="yellow")

    for error in errors:
        location = " -> ".join(str(item) for item in error.get('loc', []))
        message = error.get('msg', '未知错误')
        input_value = str(error.get('input', ''))
        if len(input_value) > 50:
            input_value = input_value[:47] + "..."

        table.add_row(location or "根级别", message, input_value or "-")

    console.print(table)
    raise typer.Exit(1)

"""
描述文件模板渲染

描述文件在解析为 YAML 之前先作为 Jinja2 模板渲染，
命令行的 --pkg-name / --postinst / --prerm / --file / --dir 参数以模板变量的形式注入。
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import jinja2


class TemplateError(Exception):
    """模板渲染错误"""
    pass


@dataclass
class TemplateVars:
    """模板变量"""
    pkg_name: str = ""
    postinst: str = ""
    prerm: str = ""
    files: List[Dict[str, str]] = field(default_factory=list)

    def add_file(self, deb_path: str, path: str) -> None:
        self.files.append({"deb_path": deb_path, "path": path})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pkg_name": self.pkg_name,
            "postinst": self.postinst,
            "prerm": self.prerm,
            "files": list(self.files),
        }


def parse_file_flag(value: str) -> Dict[str, str]:
    """解析 ``--file deb_path=source``"""
    deb_path, sep, path = value.partition("=")
    if not sep or not deb_path.strip() or not path.strip():
        raise TemplateError(f"--file 参数格式应为 deb_path=source: {value!r}")
    return {"deb_path": deb_path.strip(), "path": path.strip()}


def parse_dir_flag(value: str) -> List[Dict[str, str]]:
    """解析 ``--dir deb_dir="src1 src2"``，每个源文件映射到 deb_dir/<文件名>"""
    deb_dir, sep, sources = value.partition("=")
    if not sep or not deb_dir.strip():
        raise TemplateError(f"--dir 参数格式应为 deb_dir=\"src1 src2\": {value!r}")
    deb_dir = deb_dir.strip()
    return [
        {"deb_path": f"{deb_dir.rstrip('/')}/{os.path.basename(source)}", "path": source}
        for source in sources.split()
    ]


def _from_cwd(path: Optional[str]) -> str:
    """命令行给出的路径相对于当前工作目录，而不是描述文件所在目录"""
    if not path:
        return ""
    return os.path.abspath(path)


def build_template_vars(
    pkg_name: Optional[str] = None,
    postinst: Optional[str] = None,
    prerm: Optional[str] = None,
    files: Optional[List[str]] = None,
    dirs: Optional[List[str]] = None,
) -> TemplateVars:
    """根据命令行参数构造模板变量

    脚本和源文件路径转换为基于当前工作目录的绝对路径。
    """
    template_vars = TemplateVars(
        pkg_name=pkg_name or "",
        postinst=_from_cwd(postinst),
        prerm=_from_cwd(prerm),
    )
    for value in files or []:
        entry = parse_file_flag(value)
        template_vars.add_file(entry["deb_path"], _from_cwd(entry["path"]))
    for value in dirs or []:
        for entry in parse_dir_flag(value):
            template_vars.add_file(entry["deb_path"], _from_cwd(entry["path"]))
    return template_vars


def render_spec_template(text: str, template_vars: Optional[TemplateVars] = None) -> str:
    """渲染描述文件模板

    Args:
        text: 原始描述文件文本
        template_vars: 模板变量，未提供的变量渲染为空字符串

    Returns:
        str: 渲染后的 YAML 文本

    Raises:
        TemplateError: 模板语法错误或渲染失败
    """
    env = jinja2.Environment(autoescape=False, keep_trailing_newline=True)
    try:
        template = env.from_string(text)
        return template.render(**(template_vars or TemplateVars()).to_dict())
    except jinja2.TemplateError as e:
        raise TemplateError(f"描述文件模板渲染失败: {e}") from e

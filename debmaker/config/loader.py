"""
配置加载器

负责渲染描述文件模板、解析 YAML 并使用 Pydantic 进行验证。
"""

import copy
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ..utils.logging import LogStage, get_stage_logger
from .schema import DebSpec, MAINTAINER_SCRIPT_NAMES
from .template import TemplateError, TemplateVars, render_spec_template

logger = get_stage_logger(LogStage.CONFIG)


class ConfigError(Exception):
    """配置错误基类"""
    pass


class ConfigValidationError(ConfigError):
    """配置验证错误"""

    def __init__(self, message: str, errors: List[Dict[str, Any]]):
        super().__init__(message)
        self.errors = errors

    def format_errors(self) -> str:
        """格式化错误信息为人类可读的格式"""
        formatted = []
        for error in self.errors:
            loc = " -> ".join(str(item) for item in error.get('loc', []))
            msg = error.get('msg', '未知错误')
            input_val = error.get('input', '')

            if loc:
                formatted.append(f"字段 '{loc}': {msg}")
                if input_val:
                    formatted.append(f"  输入值: {input_val}")
            else:
                formatted.append(f"根级别: {msg}")

        return "\n".join(formatted)

    def format_errors_json(self) -> str:
        """格式化错误信息为 JSON 格式"""
        return json.dumps(self.errors, ensure_ascii=False, indent=2, default=str)


class ConfigLoader:
    """配置加载器"""

    def __init__(self):
        self.yaml = YAML()
        self.yaml.preserve_quotes = True
        self.yaml.width = 4096  # 避免长行自动换行

    def load_from_file(
        self,
        config_path: Union[str, Path],
        template_vars: Optional[TemplateVars] = None,
    ) -> DebSpec:
        """从文件加载描述文件

        Args:
            config_path: 描述文件路径
            template_vars: 模板变量

        Returns:
            DebSpec: 验证后的描述

        Raises:
            ConfigError: 加载或验证错误
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise ConfigError(f"描述文件不存在: {config_path}")

        if not config_path.is_file():
            raise ConfigError(f"描述文件路径不是文件: {config_path}")

        try:
            text = config_path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigError(f"文件读取错误: {e}") from e

        logger.debug(f"加载描述文件: {config_path}")
        return self.load_from_text(text, config_path.resolve().parent, template_vars)

    def load_from_text(
        self,
        text: str,
        base_path: Optional[Path] = None,
        template_vars: Optional[TemplateVars] = None,
    ) -> DebSpec:
        """从文本加载描述（先渲染模板，再解析 YAML）

        Args:
            text: 描述文件文本
            base_path: 相对路径的基准目录，默认当前工作目录
            template_vars: 模板变量

        Raises:
            ConfigError: 加载或验证错误
        """
        try:
            rendered = render_spec_template(text, template_vars)
        except TemplateError as e:
            raise ConfigError(str(e)) from e

        try:
            raw_data = self.yaml.load(rendered)
        except YAMLError as e:
            raise ConfigError(f"YAML 解析错误: {e}") from e

        if raw_data is None:
            raise ConfigError("描述文件为空")

        if not isinstance(raw_data, dict):
            raise ConfigError("描述文件根级别必须是对象/字典格式")

        return self.load_from_dict(raw_data, base_path or Path.cwd())

    def load_from_dict(self, data: Dict[str, Any], base_path: Optional[Path] = None) -> DebSpec:
        """从字典加载描述

        Args:
            data: 描述数据字典
            base_path: 相对路径的基准路径

        Raises:
            ConfigValidationError: 配置验证错误
        """
        if base_path:
            data = copy.deepcopy(data)
            self._resolve_relative_paths(data, base_path)

        try:
            spec = DebSpec.from_dict(data)
        except ValidationError as e:
            logger.debug(f"描述文件验证失败: {e.error_count()} 个错误")
            raise ConfigValidationError("描述文件验证失败", e.errors()) from e

        logger.debug(
            f"描述文件已加载: {spec.control.pkg_name} content={len(spec.content)} "
            f"debian={len(spec.debian)} link={len(spec.link)}"
        )
        return spec

    def save_to_file(self, config: DebSpec, output_path: Union[str, Path]) -> None:
        """保存描述到文件

        Raises:
            ConfigError: 保存错误
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(output_path, 'w', encoding='utf-8') as f:
                self.yaml.dump(config.to_dict(), f)
        except (OSError, YAMLError) as e:
            raise ConfigError(f"保存描述文件失败: {e}") from e

    def validate_file(self, config_path: Union[str, Path]) -> List[Dict[str, Any]]:
        """验证描述文件并返回错误列表，空列表表示验证通过"""
        try:
            self.load_from_file(config_path)
            return []
        except ConfigValidationError as e:
            return e.errors
        except ConfigError as e:
            return [{
                'loc': [],
                'msg': str(e),
                'type': 'config_error'
            }]

    def _resolve_relative_paths(self, data: Dict[str, Any], base_path: Path) -> None:
        """把源路径解析为相对于描述文件所在目录的绝对路径"""
        control = data.get('control')
        if isinstance(control, dict):
            for key in MAINTAINER_SCRIPT_NAMES:
                if key in control:
                    control[key] = self._resolve(control[key], base_path)

        for section in ('debian', 'content'):
            items = data.get(section)
            if not isinstance(items, list):
                continue
            for item in items:
                if isinstance(item, dict) and 'path' in item:
                    item['path'] = self._resolve(item['path'], base_path)

    @staticmethod
    def _resolve(value: Any, base_path: Path) -> Any:
        if not isinstance(value, str) or not value.strip():
            return value
        path = Path(value.strip())
        if path.is_absolute():
            return str(path)
        # 不调用 resolve()，避免把作为内容的符号链接解析成目标
        return str(base_path / path)


# 全局加载器实例
config_loader = ConfigLoader()


def load_config(
    config_path: Union[str, Path],
    template_vars: Optional[TemplateVars] = None,
) -> DebSpec:
    """便捷函数：加载描述文件"""
    return config_loader.load_from_file(config_path, template_vars)


def validate_config(config_path: Union[str, Path]) -> List[Dict[str, Any]]:
    """便捷函数：验证描述文件"""
    return config_loader.validate_file(config_path)


def save_config(config: DebSpec, output_path: Union[str, Path]) -> None:
    """便捷函数：保存描述文件"""
    config_loader.save_to_file(config, output_path)

"""配置和 Schema 模块

提供 deb 描述文件的模板渲染、加载、验证和保存功能。
"""

from .schema import DebSpec
from .loader import (
    ConfigLoader,
    ConfigValidationError,
    ConfigError,
    load_config,
    validate_config,
    save_config,
    config_loader,
)
from .template import TemplateError, TemplateVars, build_template_vars, render_spec_template

__all__ = [
    # 主要类
    "DebSpec",
    "ConfigLoader",
    "TemplateVars",

    # 异常类
    "ConfigError",
    "ConfigValidationError",
    "TemplateError",

    # 便捷函数
    "load_config",
    "validate_config",
    "save_config",
    "build_template_vars",
    "render_spec_template",

    # 单例
    "config_loader",
]

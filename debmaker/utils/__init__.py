"""通用工具模块"""

from .logging import (
    configure_logging,
    get_stage_logger,
    StageLogger,
    LogStage,
    OutputLevel,
)

from .paths import (
    ensure_directory,
    format_size,
    normalize_deb_path,
)

from .system import ArchitectureDetectionError, detect_architecture

__all__ = [
    # 日志相关
    "configure_logging",
    "get_stage_logger",
    "StageLogger",
    "LogStage",
    "OutputLevel",

    # 路径相关
    "ensure_directory",
    "format_size",
    "normalize_deb_path",

    # 系统相关
    "ArchitectureDetectionError",
    "detect_architecture",
]

"""构建步骤"""

from .build_step import BuildStep
from .resolve_step import ResolveStep
from .control_archive_step import ControlArchiveStep
from .data_archive_step import DataArchiveStep
from .package_assembly_step import PackageAssemblyStep

__all__ = [
    "BuildStep",
    "ResolveStep",
    "ControlArchiveStep",
    "DataArchiveStep",
    "PackageAssemblyStep",
]

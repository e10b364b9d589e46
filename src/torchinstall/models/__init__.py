"""Data models for torchinstall."""

from torchinstall.models.config import AdvancedConfig, AppConfig, DetectionConfig, IndexConfig
from torchinstall.models.environment import TargetEnvironment
from torchinstall.models.installation import ChannelSelection, CudaDetection, InstallCommand
from torchinstall.models.options import PACKAGE_NAMES, InstallOptions

__all__ = [
    "AdvancedConfig",
    "AppConfig",
    "ChannelSelection",
    "CudaDetection",
    "DetectionConfig",
    "IndexConfig",
    "InstallCommand",
    "InstallOptions",
    "PACKAGE_NAMES",
    "TargetEnvironment",
]

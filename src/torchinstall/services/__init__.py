"""Installer services."""

from .channels import index_url_for, select_channel
from .command import PipInstaller, UvInstaller, build_install_command, get_installer, package_specifiers
from .detection import CudaDetector
from .environment import EnvironmentResolver, create_environment, detect_active_environment
from .executor import InstallationExecutor

__all__ = [
    "CudaDetector",
    "EnvironmentResolver",
    "InstallationExecutor",
    "PipInstaller",
    "UvInstaller",
    "build_install_command",
    "create_environment",
    "detect_active_environment",
    "get_installer",
    "index_url_for",
    "package_specifiers",
    "select_channel",
]

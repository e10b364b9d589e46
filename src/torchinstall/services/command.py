"""Install command synthesis."""

import os
import re
import shutil
import subprocess
import sys
from abc import ABC, abstractmethod

from torchinstall.exceptions import MissingToolError, NoPackagesSelectedError
from torchinstall.logger import get_logger
from torchinstall.models.environment import TargetEnvironment
from torchinstall.models.installation import ChannelSelection, InstallCommand
from torchinstall.models.options import InstallOptions
from torchinstall.services.channels import index_url_for
from torchinstall.services.environment import UV_INSTALL_HINT
from torchinstall.utils.subprocess_executor import SubprocessExecutor

logger = get_logger(__name__)

# System interpreters from this version on refuse unmanaged installs (PEP 668)
EXTERNALLY_MANAGED_SINCE = (3, 11)


def package_spec(name: str, version: str | None) -> str:
    """Return a requirement specifier: bare name, or name==version when pinned."""
    if not version:
        return name
    return f"{name}=={version}"


def package_specifiers(options: InstallOptions) -> list[str]:
    """
    Build specifiers for every selected package.

    Raises:
        NoPackagesSelectedError: If all packages were deselected
    """
    specs = [package_spec(name, version) for name, version in options.selected_packages()]
    if not specs:
        raise NoPackagesSelectedError()
    return specs


def system_python_version(timeout: float | None = 10.0) -> tuple[int, int]:
    """Return (major, minor) of the system ``python3``, falling back to the running interpreter."""
    try:
        result = SubprocessExecutor.run_sync(
            "python3",
            "-c",
            "import sys; print(f'{sys.version_info.major}.{sys.version_info.minor}')",
            check=True,
            timeout=timeout,
        )
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError):
        return sys.version_info[:2]

    match = re.match(r"(\d+)\.(\d+)", result.stdout.decode("utf-8", errors="replace").strip())
    if not match:
        return sys.version_info[:2]
    return int(match.group(1)), int(match.group(2))


class Installer(ABC):
    """Knows how to invoke one package manager against a target environment."""

    name = ""

    def ensure_available(self) -> None:
        """Raise MissingToolError if the installer cannot be run."""

    @abstractmethod
    def base_argv(self, target: TargetEnvironment) -> list[str]:
        """Installer invocation up to, but not including, the package specifiers."""
        pass


class PipInstaller(Installer):
    """pip, either the environment's own or the one on PATH for system installs."""

    name = "pip"

    def __init__(self, version_timeout: float | None = 10.0) -> None:
        self.version_timeout = version_timeout

    def base_argv(self, target: TargetEnvironment) -> list[str]:
        if target.is_venv:
            assert target.bin_dir is not None
            pip = target.bin_dir / ("pip.exe" if os.name == "nt" else "pip")
            # uv-created and conda environments may come without a pip script
            if pip.exists() or not target.bin_dir.exists():
                return [str(pip), "install"]
            return [target.python_executable, "-m", "pip", "install"]

        argv = ["pip", "install"]
        if system_python_version(self.version_timeout) >= EXTERNALLY_MANAGED_SINCE:
            argv.append("--break-system-packages")
        return argv


class UvInstaller(Installer):
    """``uv pip``, pointed at the environment's interpreter."""

    name = "uv"

    def ensure_available(self) -> None:
        if not shutil.which("uv"):
            raise MissingToolError("uv", UV_INSTALL_HINT)

    def base_argv(self, target: TargetEnvironment) -> list[str]:
        if target.is_venv:
            return ["uv", "pip", "install", "--python", target.python_executable]
        return ["uv", "pip", "install", "--system", "--break-system-packages"]


def get_installer(options: InstallOptions, version_timeout: float | None = 10.0) -> Installer:
    return UvInstaller() if options.use_uv else PipInstaller(version_timeout)


def build_install_command(
    options: InstallOptions,
    channel: ChannelSelection,
    target: TargetEnvironment,
    index_base_url: str = "https://download.pytorch.org/whl",
    version_timeout: float | None = 10.0,
) -> InstallCommand:
    """
    Combine packages, installer and channel into the final command.

    Args:
        options: Install options
        channel: Selected wheel channel
        target: Resolved target environment
        index_base_url: Base URL of the PyTorch wheel index
        version_timeout: Timeout in seconds for querying the system Python version

    Returns:
        Install command

    Raises:
        NoPackagesSelectedError: If all packages were deselected
        MissingToolError: If the chosen package manager is not installed
    """
    packages = package_specifiers(options)

    installer = get_installer(options, version_timeout)
    installer.ensure_available()

    index_url = index_url_for(channel.tag, index_base_url)
    argv = [*installer.base_argv(target), *packages, "--index-url", index_url]

    command = InstallCommand(argv=argv, packages=packages, index_url=index_url)
    logger.debug(f"Synthesized install command: {command.render()}")
    return command

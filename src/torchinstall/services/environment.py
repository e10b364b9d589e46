"""Target environment resolution and virtual environment creation."""

import os
import shutil
import subprocess
import sys
from collections.abc import Mapping
from pathlib import Path

from torchinstall.exceptions import EnvironmentCreationError, EnvironmentResolutionError, MissingToolError
from torchinstall.logger import get_logger
from torchinstall.models.environment import TargetEnvironment
from torchinstall.models.options import InstallOptions
from torchinstall.utils.subprocess_executor import SubprocessExecutor

logger = get_logger(__name__)

UV_INSTALL_HINT = "curl -LsSf https://astral.sh/uv/install.sh | sh"

# Checked in order; the first one set wins
ACTIVE_ENV_MARKERS = ("VIRTUAL_ENV", "CONDA_PREFIX")


def detect_active_environment(environ: Mapping[str, str] | None = None) -> Path | None:
    """
    Return the currently activated virtualenv or conda environment, if any.

    Args:
        environ: Environment variables to inspect (defaults to os.environ)

    Returns:
        Environment path or None
    """
    environ = os.environ if environ is None else environ
    for marker in ACTIVE_ENV_MARKERS:
        value = environ.get(marker)
        if value:
            return Path(value)
    return None


def create_environment(path: Path, use_uv: bool = False) -> bool:
    """
    Create a virtual environment at ``path`` unless it already exists.

    Args:
        path: Environment directory
        use_uv: Create with ``uv venv`` instead of the venv module

    Returns:
        True if the environment was created, False if it already existed

    Raises:
        MissingToolError: If uv was requested but is not installed
        EnvironmentCreationError: If the creation command fails
    """
    if path.exists():
        logger.warning(f"Virtual environment already exists: {path}")
        return False

    logger.info(f"Creating virtual environment: {path}")

    if use_uv:
        if not shutil.which("uv"):
            raise MissingToolError("uv", UV_INSTALL_HINT)
        tool = "uv"
        argv = ("uv", "venv", str(path))
    else:
        tool = "venv"
        argv = (sys.executable, "-m", "venv", str(path))

    try:
        SubprocessExecutor.run_sync(*argv, check=True)
    except subprocess.CalledProcessError as e:
        raise EnvironmentCreationError(str(path), tool, e.returncode) from e
    except FileNotFoundError as e:
        raise EnvironmentCreationError(str(path), tool) from e

    logger.info(f"Created: {path}")
    return True


class EnvironmentResolver:
    """Decides which Python environment the packages go into."""

    def __init__(self, environ: Mapping[str, str] | None = None, cwd: Path | None = None) -> None:
        """
        Initialize resolver.

        Args:
            environ: Environment variable snapshot (defaults to os.environ)
            cwd: Base directory for relative --venv paths (defaults to the process cwd)
        """
        self.environ = dict(os.environ if environ is None else environ)
        self.cwd = cwd

    def resolve(self, options: InstallOptions) -> TargetEnvironment:
        """
        Resolve the target environment.

        Precedence: --venv, then an active environment, then --system.

        Raises:
            EnvironmentResolutionError: If none of the above applies
        """
        if options.auto_venv:
            path = self._absolute(options.venv_path)
            source = "created" if create_environment(path, use_uv=options.use_uv) else "existing"
            return TargetEnvironment(kind="venv", path=path, source=source)

        active = detect_active_environment(self.environ)
        if active is not None:
            return TargetEnvironment(kind="venv", path=active, source="active")

        if options.use_system:
            return TargetEnvironment(kind="system", source="system")

        raise EnvironmentResolutionError()

    def has_active_environment(self) -> bool:
        return detect_active_environment(self.environ) is not None

    def _absolute(self, venv_path: str) -> Path:
        path = Path(venv_path).expanduser()
        if not path.is_absolute():
            path = (self.cwd or Path.cwd()) / path
        return path.resolve()

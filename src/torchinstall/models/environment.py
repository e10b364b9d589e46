"""Target environment models."""

import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict


class TargetEnvironment(BaseModel):
    """The Python environment packages will be installed into."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["venv", "system"]
    path: Path | None = None
    # created / existing (--venv), active (VIRTUAL_ENV / CONDA_PREFIX), system (--system)
    source: Literal["created", "existing", "active", "system"]

    @property
    def is_venv(self) -> bool:
        return self.kind == "venv"

    @property
    def bin_dir(self) -> Path | None:
        """Directory holding the environment's executables."""
        if self.path is None:
            return None
        return self.path / ("Scripts" if os.name == "nt" else "bin")

    @property
    def python_executable(self) -> str:
        """Interpreter used for installation targeting and verification."""
        if self.bin_dir is None:
            return "python3"
        return str(self.bin_dir / ("python.exe" if os.name == "nt" else "python"))

    def describe(self) -> str:
        if self.path is None:
            return "system Python"
        return str(self.path)

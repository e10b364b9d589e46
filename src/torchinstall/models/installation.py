"""Detection results and install command models."""

import shlex

from pydantic import BaseModel, ConfigDict


class CudaDetection(BaseModel):
    """Result of probing the machine for a CUDA toolkit."""

    model_config = ConfigDict(frozen=True)

    version: str | None = None
    source: str | None = None  # Probe that produced the version (nvcc, nvidia-smi, ...)

    @property
    def found(self) -> bool:
        return bool(self.version)


class ChannelSelection(BaseModel):
    """PyTorch wheel channel chosen for a CUDA version."""

    model_config = ConfigDict(frozen=True)

    tag: str
    cuda_version: str | None = None
    warning: str | None = None

    @property
    def is_cpu(self) -> bool:
        return self.tag == "cpu"


class InstallCommand(BaseModel):
    """Fully synthesized installer invocation."""

    model_config = ConfigDict(frozen=True)

    argv: list[str]
    packages: list[str]
    index_url: str

    def render(self) -> str:
        """Return the command as a single shell-quoted string."""
        return shlex.join(self.argv)

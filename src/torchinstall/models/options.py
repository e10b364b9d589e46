"""Install options built from the command line."""

from pydantic import BaseModel, ConfigDict

PACKAGE_NAMES = ("torch", "torchvision", "torchaudio")


class InstallOptions(BaseModel):
    """Everything the user asked for, fixed for the rest of the run."""

    model_config = ConfigDict(frozen=True)

    install_torch: bool = True
    install_torchvision: bool = True
    install_torchaudio: bool = True
    torch_version: str | None = None
    torchvision_version: str | None = None
    torchaudio_version: str | None = None

    use_uv: bool = False
    use_system: bool = False
    auto_venv: bool = False
    venv_path: str = ".venv"

    cuda_override: str | None = None
    force_cpu: bool = False
    dry_run: bool = False

    def selected_packages(self) -> list[tuple[str, str | None]]:
        """Return (name, pinned version) for each package to install, in install order."""
        selected = []
        for name in PACKAGE_NAMES:
            if getattr(self, f"install_{name}"):
                selected.append((name, getattr(self, f"{name}_version") or None))
        return selected

    @property
    def package_manager(self) -> str:
        return "uv" if self.use_uv else "pip"

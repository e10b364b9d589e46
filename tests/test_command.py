import shutil
import sys
from pathlib import Path

import pytest

from torchinstall.exceptions import MissingToolError, NoPackagesSelectedError
from torchinstall.models.environment import TargetEnvironment
from torchinstall.models.installation import ChannelSelection
from torchinstall.models.options import InstallOptions
from torchinstall.services import command as command_module
from torchinstall.services.command import (
    Installer,
    build_install_command,
    package_spec,
    package_specifiers,
    system_python_version,
)
from torchinstall.utils.subprocess_executor import SubprocessExecutor

CPU = ChannelSelection(tag="cpu")
CU121 = ChannelSelection(tag="cu121", cuda_version="12.1")


@pytest.fixture
def venv(tmp_path: Path) -> TargetEnvironment:
    bin_dir = tmp_path / "venv" / "bin"
    bin_dir.mkdir(parents=True)
    (bin_dir / "pip").touch()
    (bin_dir / "python").touch()
    return TargetEnvironment(kind="venv", path=tmp_path / "venv", source="active")


@pytest.fixture
def with_uv(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(shutil, "which", lambda name: "/usr/bin/uv" if name == "uv" else None)


SYSTEM = TargetEnvironment(kind="system", source="system")


def test_package_spec() -> None:
    assert package_spec("torch", None) == "torch"
    assert package_spec("torch", "") == "torch"
    assert package_spec("torch", "2.4.0") == "torch==2.4.0"


def test_package_specifiers_order() -> None:
    options = InstallOptions(torchaudio_version="2.4.0")
    assert package_specifiers(options) == ["torch", "torchvision", "torchaudio==2.4.0"]


def test_no_packages_selected() -> None:
    options = InstallOptions(install_torch=False, install_torchvision=False, install_torchaudio=False)

    with pytest.raises(NoPackagesSelectedError) as exc_info:
        build_install_command(options, CPU, SYSTEM)

    assert exc_info.value.exit_code == 1


def test_pip_in_venv(venv: TargetEnvironment) -> None:
    cmd = build_install_command(InstallOptions(), CU121, venv)

    assert cmd.argv == [
        str(venv.path / "bin" / "pip"),
        "install",
        "torch",
        "torchvision",
        "torchaudio",
        "--index-url",
        "https://download.pytorch.org/whl/cu121",
    ]
    assert cmd.packages == ["torch", "torchvision", "torchaudio"]
    assert cmd.index_url == "https://download.pytorch.org/whl/cu121"


def test_pip_in_venv_without_pip_script(venv: TargetEnvironment) -> None:
    assert venv.path is not None
    (venv.path / "bin" / "pip").unlink()

    cmd = build_install_command(InstallOptions(), CPU, venv)

    assert cmd.argv[:4] == [str(venv.path / "bin" / "python"), "-m", "pip", "install"]


def test_pip_system_modern_python(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(command_module, "system_python_version", lambda timeout=None: (3, 12))

    cmd = build_install_command(InstallOptions(use_system=True), CPU, SYSTEM)

    assert cmd.argv[:3] == ["pip", "install", "--break-system-packages"]


def test_pip_system_older_python(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(command_module, "system_python_version", lambda timeout=None: (3, 10))

    cmd = build_install_command(InstallOptions(use_system=True), CPU, SYSTEM)

    assert cmd.argv[:3] == ["pip", "install", "torch"]


def test_uv_in_venv(venv: TargetEnvironment, with_uv: None) -> None:
    cmd = build_install_command(InstallOptions(use_uv=True, torch_version="2.4.0"), CU121, venv)

    assert cmd.render() == (
        f"uv pip install --python {venv.python_executable} "
        "torch==2.4.0 torchvision torchaudio --index-url https://download.pytorch.org/whl/cu121"
    )


def test_uv_system(with_uv: None) -> None:
    cmd = build_install_command(InstallOptions(use_uv=True, use_system=True), CPU, SYSTEM)

    assert cmd.argv[:5] == ["uv", "pip", "install", "--system", "--break-system-packages"]


def test_uv_missing(venv: TargetEnvironment, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(shutil, "which", lambda name: None)

    with pytest.raises(MissingToolError) as exc_info:
        build_install_command(InstallOptions(use_uv=True), CPU, venv)

    assert exc_info.value.tool == "uv"
    assert "curl -LsSf https://astral.sh/uv/install.sh | sh" in (exc_info.value.hint or "")


def test_custom_index_base_url(venv: TargetEnvironment) -> None:
    cmd = build_install_command(InstallOptions(), CU121, venv, index_base_url="https://mirror.example.com/whl")
    assert cmd.argv[-2:] == ["--index-url", "https://mirror.example.com/whl/cu121"]


def test_installer_is_abstract() -> None:
    with pytest.raises(TypeError):
        Installer()  # type: ignore[abstract]


def test_system_pip_uses_configured_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[object] = []

    def fake_version(timeout: float | None = None) -> tuple[int, int]:
        seen.append(timeout)
        return (3, 12)

    monkeypatch.setattr(command_module, "system_python_version", fake_version)

    build_install_command(InstallOptions(use_system=True), CPU, SYSTEM, version_timeout=2.5)

    assert seen == [2.5]


def test_system_python_version_parses_output(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[dict[str, object]] = []

    class Result:
        stdout = b"3.12\n"

    def fake_run(*args: str, **kwargs: object) -> Result:
        calls.append(kwargs)
        return Result()

    monkeypatch.setattr(SubprocessExecutor, "run_sync", staticmethod(fake_run))

    assert system_python_version(timeout=4.0) == (3, 12)
    assert calls[0]["timeout"] == 4.0


def test_system_python_version_falls_back_when_python3_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(*args: str, **kwargs: object) -> object:
        raise FileNotFoundError(args[0])

    monkeypatch.setattr(SubprocessExecutor, "run_sync", staticmethod(fake_run))

    assert system_python_version() == sys.version_info[:2]

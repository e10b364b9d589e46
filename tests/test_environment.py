import shutil
import subprocess
import sys
from pathlib import Path

import pytest
from structlog.testing import capture_logs

from torchinstall.exceptions import EnvironmentCreationError, EnvironmentResolutionError, MissingToolError
from torchinstall.models.options import InstallOptions
from torchinstall.services.environment import EnvironmentResolver, create_environment, detect_active_environment
from torchinstall.utils.subprocess_executor import SubprocessExecutor


class FakeResult:
    returncode = 0
    stdout = b""
    stderr = b""


@pytest.fixture
def fake_venv_tool(monkeypatch: pytest.MonkeyPatch) -> list[tuple[str, ...]]:
    """Replace environment creation with one that just makes the directory."""
    calls: list[tuple[str, ...]] = []

    def fake_run(*args: str, **kwargs: object) -> FakeResult:
        calls.append(args)
        Path(args[-1]).mkdir(parents=True)
        return FakeResult()

    monkeypatch.setattr(SubprocessExecutor, "run_sync", staticmethod(fake_run))
    return calls


def test_detect_active_environment_prefers_virtual_env() -> None:
    environ = {"VIRTUAL_ENV": "/work/.venv", "CONDA_PREFIX": "/opt/conda"}
    assert detect_active_environment(environ) == Path("/work/.venv")


def test_detect_active_environment_conda() -> None:
    assert detect_active_environment({"CONDA_PREFIX": "/opt/conda"}) == Path("/opt/conda")


def test_detect_active_environment_none() -> None:
    assert detect_active_environment({"VIRTUAL_ENV": ""}) is None


def test_create_environment_uses_venv_module(tmp_path: Path, fake_venv_tool: list[tuple[str, ...]]) -> None:
    path = tmp_path / "env"

    assert create_environment(path) is True
    assert fake_venv_tool == [(sys.executable, "-m", "venv", str(path))]


def test_create_environment_is_idempotent(tmp_path: Path, fake_venv_tool: list[tuple[str, ...]]) -> None:
    path = tmp_path / "env"

    assert create_environment(path) is True
    with capture_logs() as logs:
        assert create_environment(path) is False

    assert len(fake_venv_tool) == 1
    assert any(entry["log_level"] == "warning" and "already exists" in entry["event"] for entry in logs)


def test_create_environment_with_uv(
    tmp_path: Path, fake_venv_tool: list[tuple[str, ...]], monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(shutil, "which", lambda name: "/usr/bin/uv" if name == "uv" else None)
    path = tmp_path / "env"

    create_environment(path, use_uv=True)

    assert fake_venv_tool == [("uv", "venv", str(path))]


def test_create_environment_with_missing_uv(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(shutil, "which", lambda name: None)

    with pytest.raises(MissingToolError) as exc_info:
        create_environment(tmp_path / "env", use_uv=True)

    assert "astral.sh/uv/install.sh" in (exc_info.value.hint or "")


def test_create_environment_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_run(*args: str, **kwargs: object) -> FakeResult:
        raise subprocess.CalledProcessError(1, args)

    monkeypatch.setattr(SubprocessExecutor, "run_sync", staticmethod(fake_run))

    with pytest.raises(EnvironmentCreationError):
        create_environment(tmp_path / "env")


def test_resolve_auto_venv_creates_relative_path(tmp_path: Path, fake_venv_tool: list[tuple[str, ...]]) -> None:
    resolver = EnvironmentResolver(environ={}, cwd=tmp_path)

    target = resolver.resolve(InstallOptions(auto_venv=True, venv_path="myenv"))

    assert target.kind == "venv"
    assert target.source == "created"
    assert target.path == (tmp_path / "myenv").resolve()
    assert target.path.is_dir()


def test_resolve_auto_venv_reuses_existing(tmp_path: Path, fake_venv_tool: list[tuple[str, ...]]) -> None:
    (tmp_path / ".venv").mkdir()
    resolver = EnvironmentResolver(environ={}, cwd=tmp_path)

    target = resolver.resolve(InstallOptions(auto_venv=True))

    assert target.source == "existing"
    assert fake_venv_tool == []


def test_resolve_auto_venv_creates_even_in_dry_run(tmp_path: Path, fake_venv_tool: list[tuple[str, ...]]) -> None:
    resolver = EnvironmentResolver(environ={}, cwd=tmp_path)

    target = resolver.resolve(InstallOptions(auto_venv=True, venv_path="myenv", dry_run=True))

    assert target.path == (tmp_path / "myenv").resolve()
    assert target.source == "created"
    assert target.path.is_dir()
    assert len(fake_venv_tool) == 1


def test_auto_venv_takes_precedence_over_active(tmp_path: Path, fake_venv_tool: list[tuple[str, ...]]) -> None:
    resolver = EnvironmentResolver(environ={"VIRTUAL_ENV": "/somewhere/else"}, cwd=tmp_path)

    target = resolver.resolve(InstallOptions(auto_venv=True, dry_run=True))

    assert target.path == (tmp_path / ".venv").resolve()


def test_resolve_active_environment() -> None:
    resolver = EnvironmentResolver(environ={"CONDA_PREFIX": "/opt/conda"})

    target = resolver.resolve(InstallOptions(use_system=True))

    assert target.kind == "venv"
    assert target.source == "active"
    assert target.path == Path("/opt/conda")


def test_resolve_system() -> None:
    target = EnvironmentResolver(environ={}).resolve(InstallOptions(use_system=True))

    assert target.kind == "system"
    assert target.path is None
    assert target.python_executable == "python3"


def test_resolve_nothing_fails_with_guidance() -> None:
    with pytest.raises(EnvironmentResolutionError) as exc_info:
        EnvironmentResolver(environ={}).resolve(InstallOptions())

    hint = exc_info.value.hint or ""
    assert "--venv" in hint
    assert "--system" in hint
    assert exc_info.value.exit_code == 1

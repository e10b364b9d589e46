import os

import pytest

from torchinstall import config as config_module
from torchinstall.models.config import AppConfig


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every test without an active venv, settings overrides or a config file."""
    for name in list(os.environ):
        if name in ("VIRTUAL_ENV", "CONDA_PREFIX") or name.startswith("TORCHINSTALL_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config_module._config_manager, "_config", AppConfig())

"""Configuration management for torchinstall."""

import os
import sys
from pathlib import Path
from typing import Any

import yaml

from torchinstall.models.config import AppConfig


class ConfigManager:
    """Manages installer settings with YAML file and environment variable support."""

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialize configuration manager.

        Args:
            config_path: Path to config file. If None, uses TORCHINSTALL_CONFIG_PATH
                        environment variable or defaults to platform-specific config directory
        """
        if config_path is None:
            env_path = os.getenv("TORCHINSTALL_CONFIG_PATH")
            if env_path:
                config_path = Path(env_path).expanduser()
            else:
                if sys.platform == "win32":
                    # Windows: %APPDATA%\torchinstall
                    config_dir = Path(os.getenv("APPDATA", str(Path.home()))) / "torchinstall"
                elif sys.platform == "darwin":
                    # macOS: ~/Library/Application Support/torchinstall
                    config_dir = Path.home() / "Library" / "Application Support" / "torchinstall"
                else:
                    # Linux/Unix: ~/.config/torchinstall
                    config_dir = Path.home() / ".config" / "torchinstall"

                config_path = config_dir / "config.yaml"

        self.config_path = config_path
        self._config: AppConfig | None = None

    def load(self) -> AppConfig:
        """Load configuration from file and apply environment variable overrides.

        Returns:
            Loaded configuration
        """
        config_data: dict[str, Any] = {}

        # 1. Load from YAML file if it exists
        if self.config_path.exists():
            with open(self.config_path, encoding="utf-8") as f:
                config_data = yaml.safe_load(f) or {}

        # 2. Create config object (applies defaults)
        config = AppConfig(**config_data)

        # 3. Apply environment variable overrides
        return self._apply_env_overrides(config)

    def _apply_env_overrides(self, config: AppConfig) -> AppConfig:
        """Apply environment variable overrides.

        Environment variables use the format: TORCHINSTALL_<KEY>
        Examples:
            - TORCHINSTALL_INDEX_BASE_URL=https://mirror.example.com/whl
            - TORCHINSTALL_CUDA_HOME=/opt/cuda
            - TORCHINSTALL_LOG_LEVEL=DEBUG

        Args:
            config: Base configuration

        Returns:
            Configuration with environment overrides applied
        """
        updates: dict[str, dict[str, Any]] = {}

        if base_url := os.getenv("TORCHINSTALL_INDEX_BASE_URL"):
            updates.setdefault("index", {})["base_url"] = base_url
        if cuda_home := os.getenv("TORCHINSTALL_CUDA_HOME"):
            updates.setdefault("detection", {})["cuda_home"] = cuda_home
        if timeout := os.getenv("TORCHINSTALL_PROBE_TIMEOUT"):
            try:
                seconds = float(timeout)
            except ValueError:
                seconds = 0.0
            # Invalid or non-positive values are ignored
            if 0 < seconds < float("inf"):
                updates.setdefault("detection", {})["probe_timeout"] = seconds
        if level := os.getenv("TORCHINSTALL_LOG_LEVEL"):
            if level.upper() in ("WARNING", "INFO", "DEBUG", "TRACE"):
                updates.setdefault("advanced", {})["log_level"] = level.upper()

        if not updates:
            return config

        # Re-validate so field validators run on overridden values
        data = config.model_dump()
        for section, values in updates.items():
            data[section].update(values)
        return AppConfig(**data)

    def get_config(self) -> AppConfig:
        """Get configuration (singleton pattern).

        Returns:
            Current configuration
        """
        if self._config is None:
            self._config = self.load()
        return self._config

    def reload(self) -> AppConfig:
        """Reload configuration from file.

        Returns:
            Reloaded configuration
        """
        self._config = self.load()
        return self._config


# Global configuration manager instance
_config_manager = ConfigManager()


def get_config() -> AppConfig:
    """Get global installer configuration.

    Returns:
        Installer configuration
    """
    return _config_manager.get_config()

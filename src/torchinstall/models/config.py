"""Configuration data models for torchinstall."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class IndexConfig(BaseModel):
    """PyTorch wheel index configuration."""

    base_url: str = "https://download.pytorch.org/whl"

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize the base URL so channel tags can be appended."""
        return v.rstrip("/")


class DetectionConfig(BaseModel):
    """CUDA detection configuration."""

    cuda_home: Path = Path("/usr/local/cuda")
    probe_timeout: float = 10.0  # Seconds allowed for each probe command

    @field_validator("cuda_home", mode="before")
    @classmethod
    def expand_cuda_home(cls, v: str | Path) -> Path:
        """Expand user path for cuda_home."""
        if isinstance(v, str):
            return Path(v).expanduser()
        return v


class AdvancedConfig(BaseModel):
    """Advanced configuration."""

    log_level: Literal["WARNING", "INFO", "DEBUG", "TRACE"] = "INFO"


class AppConfig(BaseModel):
    """Application configuration."""

    index: IndexConfig = Field(default_factory=IndexConfig)
    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    advanced: AdvancedConfig = Field(default_factory=AdvancedConfig)

"""Utilities for torchinstall."""

from torchinstall.utils.subprocess_executor import SubprocessExecutor

__all__ = ["SubprocessExecutor"]

"""Centralized exception hierarchy for torchinstall.

Every error carries the message shown to the user, an optional hint with the
next thing to try, and the process exit code the CLI should return.
"""


class TorchInstallError(Exception):
    """Base exception for all installer errors."""

    def __init__(self, message: str, hint: str | None = None, exit_code: int = 1, **params: object) -> None:
        """
        Initialize the error.

        Args:
            message: User-facing message
            hint: Optional actionable guidance
            exit_code: Exit code returned by the CLI
            **params: Extra context included in structured logs
        """
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.exit_code = exit_code
        self.params = params

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message}\n{self.hint}"
        return self.message


class UsageError(TorchInstallError):
    """Raised when the command line cannot be interpreted."""


class NoPackagesSelectedError(TorchInstallError):
    """Raised when every package was deselected."""

    def __init__(self) -> None:
        super().__init__("No packages selected for installation")


class EnvironmentResolutionError(TorchInstallError):
    """Raised when no target Python environment could be determined."""

    def __init__(self) -> None:
        super().__init__(
            "No virtual environment detected",
            hint=(
                "Use --venv to auto-create one, or activate an existing venv\n"
                "Or use --system to force system install (not recommended)"
            ),
        )


class EnvironmentCreationError(TorchInstallError):
    """Raised when creating a virtual environment fails."""

    def __init__(self, path: str, tool: str, returncode: int | None = None) -> None:
        super().__init__(
            f"Failed to create virtual environment with {tool}: {path}",
            path=path,
            tool=tool,
            returncode=returncode,
        )


class MissingToolError(TorchInstallError):
    """Raised when a required external tool is not on PATH."""

    def __init__(self, tool: str, install_hint: str | None = None) -> None:
        super().__init__(
            f"{tool} not found",
            hint=f"Install with: {install_hint}" if install_hint else None,
            tool=tool,
        )
        self.tool = tool


class InstallCommandError(TorchInstallError):
    """Raised when the package installer exits with a non-zero code."""

    def __init__(self, command: str, returncode: int) -> None:
        super().__init__(
            f"Install command failed with exit code {returncode}: {command}",
            command=command,
            returncode=returncode,
        )
        self.returncode = returncode


class VerificationError(TorchInstallError):
    """Raised when the post-install import check fails."""

    def __init__(self, python: str, returncode: int) -> None:
        super().__init__(
            f"Verification failed: {python} could not import torch (exit code {returncode})",
            python=python,
            returncode=returncode,
        )
        self.returncode = returncode

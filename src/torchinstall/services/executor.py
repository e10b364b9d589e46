"""Install command execution and post-install verification."""

import os
import sys
from typing import TextIO

from torchinstall.exceptions import InstallCommandError, MissingToolError, VerificationError
from torchinstall.logger import get_logger
from torchinstall.models.environment import TargetEnvironment
from torchinstall.models.installation import InstallCommand
from torchinstall.utils.subprocess_executor import SubprocessExecutor

logger = get_logger(__name__)

RULE = "=" * 42

VERIFY_SNIPPET = """\
import torch
print(f'PyTorch version: {torch.__version__}')
print(f'CUDA available: {torch.cuda.is_available()}')
if torch.cuda.is_available():
    print(f'CUDA version: {torch.version.cuda}')
    print(f'cuDNN version: {torch.backends.cudnn.version()}')
    print(f'GPU: {torch.cuda.get_device_name(0)}')
"""


class InstallationExecutor:
    """Prints the install command, runs it and verifies the result."""

    def __init__(self, out: TextIO | None = None) -> None:
        """
        Initialize executor.

        Args:
            out: Stream for user-facing output (defaults to the current sys.stdout)
        """
        self._out = out

    @property
    def out(self) -> TextIO:
        return self._out if self._out is not None else sys.stdout

    def _print(self, text: str = "") -> None:
        print(text, file=self.out)

    def report_command(self, command: InstallCommand) -> None:
        self._print()
        self._print(RULE)
        self._print("Install command:")
        self._print(f"  {command.render()}")
        self._print(RULE)

    def execute(
        self,
        command: InstallCommand,
        target: TargetEnvironment,
        dry_run: bool = False,
        show_activation_hint: bool = False,
    ) -> None:
        """
        Print and (unless dry-run) run the install command, then verify.

        Args:
            command: Install command
            target: Environment the command installs into
            dry_run: Only print the command
            show_activation_hint: Print how to activate the environment afterwards

        Raises:
            InstallCommandError: If the installer exits non-zero
            VerificationError: If torch cannot be imported afterwards
        """
        self.report_command(command)

        if dry_run:
            self._print("(dry-run mode - not executing)")
            return

        self._print()
        self._print("Installing...")
        self.out.flush()
        returncode = self._run(command.argv)
        if returncode != 0:
            raise InstallCommandError(command.render(), returncode)

        self._print()
        self._print("Installation complete!")
        logger.info("Installation complete", packages=command.packages, index_url=command.index_url)

        if show_activation_hint and target.bin_dir is not None:
            activate = target.bin_dir / ("activate.bat" if os.name == "nt" else "activate")
            self._print()
            self._print("To activate the virtual environment:")
            self._print(f"  {activate}" if os.name == "nt" else f"  source {activate}")

        self.verify(target)

    def verify(self, target: TargetEnvironment) -> None:
        """Import torch with the target interpreter and print runtime facts."""
        python = target.python_executable
        if target.is_venv and not os.path.exists(python):
            python = "python3"

        self._print()
        self._print("Verifying installation...")
        self.out.flush()
        returncode = self._run([python, "-c", VERIFY_SNIPPET])
        if returncode != 0:
            raise VerificationError(python, returncode)

    @staticmethod
    def _run(argv: list[str]) -> int:
        try:
            return SubprocessExecutor.run_attached(*argv)
        except FileNotFoundError as e:
            raise MissingToolError(argv[0]) from e

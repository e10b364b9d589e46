"""Subprocess execution utilities with automatic logging."""

import subprocess
from pathlib import Path

from torchinstall.logger import get_logger

logger = get_logger(__name__)


class SubprocessExecutor:
    """Executes subprocess commands with automatic debug logging."""

    @staticmethod
    def run_sync(
        *args: str,
        cwd: Path | str | None = None,
        env: dict[str, str] | None = None,
        check: bool = False,
        timeout: float | None = None,
    ) -> subprocess.CompletedProcess[bytes]:
        """
        Execute a synchronous subprocess command, capturing its output.

        Args:
            *args: Command arguments
            cwd: Working directory
            env: Environment variables
            check: Whether to raise exception on non-zero exit code
            timeout: Timeout in seconds

        Returns:
            subprocess.CompletedProcess object

        Raises:
            subprocess.CalledProcessError: If check=True and returncode != 0
            subprocess.TimeoutExpired: If timeout is exceeded
            FileNotFoundError: If the executable does not exist
        """
        cmd_str = " ".join(args)
        logger.debug(f"Executing sync subprocess: {cmd_str}")
        if cwd:
            logger.debug(f"Working directory: {cwd}")

        cwd_arg = str(cwd) if cwd else None

        try:
            result = subprocess.run(args, check=check, capture_output=True, cwd=cwd_arg, env=env, timeout=timeout)

            # Log outputs at debug level
            if result.stdout:
                stdout_str = result.stdout.decode("utf-8", errors="replace")
                logger.debug(f"Subprocess stdout: {stdout_str}")
            if result.stderr:
                stderr_str = result.stderr.decode("utf-8", errors="replace")
                logger.debug(f"Subprocess stderr: {stderr_str}")

            return result

        except subprocess.TimeoutExpired:
            logger.error(f"Subprocess timeout after {timeout}s: {cmd_str}")
            raise
        except Exception as e:
            logger.debug(f"Subprocess execution failed: {cmd_str} - {e}")
            raise

    @staticmethod
    def run_attached(
        *args: str,
        cwd: Path | str | None = None,
        env: dict[str, str] | None = None,
    ) -> int:
        """
        Execute a command with stdout/stderr attached to the terminal.

        Used for long-running steps whose progress the user should see live.

        Returns:
            Process exit code
        """
        cmd_str = " ".join(args)
        logger.debug(f"Executing attached subprocess: {cmd_str}")

        cwd_arg = str(cwd) if cwd else None
        try:
            result = subprocess.run(args, cwd=cwd_arg, env=env)
        except Exception as e:
            logger.error(f"Subprocess execution failed: {cmd_str} - {e}")
            raise

        if result.returncode != 0:
            logger.error(f"Subprocess exited with code {result.returncode}: {cmd_str}")
        return result.returncode

"""CUDA toolkit version detection."""

import json
import re
import shutil
import subprocess
from collections.abc import Callable
from pathlib import Path

from torchinstall.logger import get_logger
from torchinstall.models.installation import CudaDetection
from torchinstall.utils.subprocess_executor import SubprocessExecutor

logger = get_logger(__name__)

NVCC_PATTERN = re.compile(r"release\s+(\d+\.\d+)")
NVIDIA_SMI_PATTERN = re.compile(r"CUDA Version:\s*(\d+\.\d+)")
VERSION_TXT_PATTERN = re.compile(r"CUDA Version\s+(\d+\.\d+)")
LIBCUDART_PATTERN = re.compile(r"libcudart\.so\.(\d+\.\d+)")
MAJOR_MINOR_PATTERN = re.compile(r"^(\d+\.\d+)")


class CudaDetector:
    """
    Detects the installed CUDA toolkit version.

    Probes are tried in order and the first one that yields a ``major.minor``
    version wins. A probe whose tool or file is missing simply yields nothing.
    """

    def __init__(self, cuda_home: Path = Path("/usr/local/cuda"), timeout: float | None = 10.0) -> None:
        """
        Initialize detector.

        Args:
            cuda_home: Conventional CUDA installation directory
            timeout: Timeout in seconds for each probe command
        """
        self.cuda_home = cuda_home
        self.timeout = timeout

    def probes(self) -> list[tuple[str, Callable[[], str | None]]]:
        """Ordered (name, probe) pairs."""
        return [
            ("nvcc", self._probe_nvcc),
            ("nvidia-smi", self._probe_nvidia_smi),
            (str(self.cuda_home), self._probe_cuda_home),
            ("ldconfig", self._probe_ldconfig),
        ]

    def detect(self) -> CudaDetection:
        """Run the probes and return the first detected version."""
        for source, probe in self.probes():
            version = probe()
            if version:
                logger.info(f"Detected CUDA from {source}: {version}")
                return CudaDetection(version=version, source=source)
            logger.debug(f"No CUDA version from {source}")

        return CudaDetection()

    def _run(self, *args: str) -> str | None:
        """Run a probe command, returning stdout or None if it is unavailable or fails."""
        if not shutil.which(args[0]):
            return None
        try:
            result = SubprocessExecutor.run_sync(*args, check=True, timeout=self.timeout)
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError):
            return None
        return result.stdout.decode("utf-8", errors="replace")

    def _probe_nvcc(self) -> str | None:
        output = self._run("nvcc", "--version")
        if not output:
            return None
        match = NVCC_PATTERN.search(output)
        return match.group(1) if match else None

    def _probe_nvidia_smi(self) -> str | None:
        # Reports the highest CUDA version the driver supports
        output = self._run("nvidia-smi")
        if not output:
            return None
        match = NVIDIA_SMI_PATTERN.search(output)
        return match.group(1) if match else None

    def _probe_cuda_home(self) -> str | None:
        if not self.cuda_home.is_dir():
            return None

        version_txt = self.cuda_home / "version.txt"
        version_json = self.cuda_home / "version.json"
        try:
            if version_txt.is_file():
                match = VERSION_TXT_PATTERN.search(version_txt.read_text(encoding="utf-8", errors="replace"))
                return match.group(1) if match else None
            if version_json.is_file():
                return self._parse_version_json(version_json.read_text(encoding="utf-8", errors="replace"))
        except OSError as e:
            logger.debug(f"Failed to read CUDA version file: {e}")
        return None

    @staticmethod
    def _parse_version_json(text: str) -> str | None:
        """
        Extract major.minor from a CUDA ``version.json``.

        Toolkits ship ``{"cuda": {"version": "12.1.1", ...}}``; a plain
        ``{"cuda": "12.1.1"}`` is accepted too.
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            return None
        if not isinstance(data, dict):
            return None

        entry = data.get("cuda")
        if isinstance(entry, dict):
            entry = entry.get("version")
        if not isinstance(entry, str):
            return None

        match = MAJOR_MINOR_PATTERN.match(entry.strip())
        return match.group(1) if match else None

    def _probe_ldconfig(self) -> str | None:
        # ldconfig often lives in /sbin, which is not on PATH for regular users
        ldconfig = "ldconfig" if shutil.which("ldconfig") else "/sbin/ldconfig"
        output = self._run(ldconfig, "-p")
        if not output:
            return None
        for line in output.splitlines():
            if "libcudart.so" in line:
                # Only the first registry entry is considered
                match = LIBCUDART_PATTERN.search(line)
                return match.group(1) if match else None
        return None

"""Entry point: detect CUDA, build the PyTorch install command and run it."""

import sys
from collections.abc import Mapping, Sequence
from typing import TextIO

from torchinstall.cli import parse_options
from torchinstall.config import get_config
from torchinstall.exceptions import TorchInstallError
from torchinstall.logger import get_logger
from torchinstall.models.installation import CudaDetection, InstallCommand
from torchinstall.models.options import InstallOptions
from torchinstall.services.channels import select_channel
from torchinstall.services.command import build_install_command, package_specifiers
from torchinstall.services.detection import CudaDetector
from torchinstall.services.environment import EnvironmentResolver
from torchinstall.services.executor import RULE, InstallationExecutor

logger = get_logger(__name__)


def resolve_cuda(options: InstallOptions, detector: CudaDetector, out: TextIO) -> CudaDetection:
    """Apply --cpu / --cuda, falling back to probing the machine."""
    if options.force_cpu:
        print("Using the CPU build", file=out)
        return CudaDetection()

    if options.cuda_override:
        print(f"Requested CUDA: {options.cuda_override}", file=out)
        return CudaDetection(version=options.cuda_override, source="--cuda")

    print("Detecting CUDA version...", file=out)
    detection = detector.detect()
    if detection.found:
        print(f"Detected CUDA: {detection.version} (from {detection.source})", file=out)
    else:
        print("CUDA not detected, installing the CPU build.", file=out)
    return detection


def run(
    options: InstallOptions,
    environ: Mapping[str, str] | None = None,
    detector: CudaDetector | None = None,
    out: TextIO | None = None,
) -> InstallCommand:
    """
    Run one installation.

    Args:
        options: Parsed install options
        environ: Environment variable snapshot (defaults to os.environ)
        detector: CUDA detector (defaults to one built from settings)
        out: Stream for the report (defaults to sys.stdout)

    Returns:
        The install command that was printed (and run unless dry-run)

    Raises:
        TorchInstallError: On any user-facing failure
    """
    config = get_config()
    out = out or sys.stdout
    detector = detector or CudaDetector(
        cuda_home=config.detection.cuda_home,
        timeout=config.detection.probe_timeout,
    )

    print(RULE, file=out)
    print("PyTorch Auto Installer", file=out)
    print(RULE, file=out)
    print(f"Package manager: {options.package_manager}", file=out)

    # Fail before touching the filesystem when nothing would be installed
    package_specifiers(options)

    resolver = EnvironmentResolver(environ)
    target = resolver.resolve(options)
    if target.is_venv:
        print(f"Virtual environment: {target.describe()}", file=out)
    else:
        print("Installing to system Python (--system)", file=out)

    detection = resolve_cuda(options, detector, out)
    channel = select_channel(detection.version)
    print(f"PyTorch CUDA tag: {channel.tag}", file=out)

    print(file=out)
    print("Packages to install:", file=out)
    for name, version in options.selected_packages():
        print(f"  {name}: {version or 'latest'}", file=out)

    command = build_install_command(
        options,
        channel,
        target,
        config.index.base_url,
        version_timeout=config.detection.probe_timeout,
    )
    logger.info(
        "Install plan ready",
        channel=channel.tag,
        cuda_version=detection.version,
        cuda_source=detection.source,
        target=target.describe(),
        dry_run=options.dry_run,
    )

    InstallationExecutor(out).execute(
        command,
        target,
        dry_run=options.dry_run,
        show_activation_hint=options.auto_venv and not resolver.has_active_environment(),
    )
    return command


def main(argv: Sequence[str] | None = None) -> int:
    """Console entry point; returns the process exit code."""
    try:
        options = parse_options(argv)
        run(options)
    except SystemExit as e:
        # --help
        return e.code if isinstance(e.code, int) else 0
    except TorchInstallError as e:
        logger.debug(e.message, error=type(e).__name__, **e.params)
        print(f"Error: {e.message}", file=sys.stderr)
        if e.hint:
            print(e.hint, file=sys.stderr)
        return e.exit_code
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

"""Command line interface for torchinstall."""

import argparse
from collections.abc import Sequence
from typing import NoReturn

from torchinstall.exceptions import UsageError
from torchinstall.logger import get_logger
from torchinstall.models.options import PACKAGE_NAMES, InstallOptions

logger = get_logger(__name__)

EPILOG = """
Examples:
  torchinstall --venv                   # Create .venv and install
  torchinstall --uv --venv              # uv + auto-created .venv
  torchinstall --venv myenv             # Create myenv and install
  torchinstall --cuda 11.8              # Use the CUDA 11.8 wheels
  torchinstall --torch 2.4.0            # Pin the torch version
  torchinstall --only-torch             # torch only
  torchinstall --cpu                    # CPU wheels

Virtual environment:
  --venv        create a virtual environment and install into it
  --system      install into the system Python (not recommended)
  (neither)     an activated virtual environment is required
"""


class InstallerArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports bad input as a UsageError instead of exiting with code 2."""

    def error(self, message: str) -> NoReturn:
        raise UsageError(message, hint=self.format_help())


def build_parser() -> argparse.ArgumentParser:
    parser = InstallerArgumentParser(
        prog="torchinstall",
        description="Detect the CUDA version and install matching PyTorch packages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EPILOG,
        allow_abbrev=False,
    )

    manager = parser.add_argument_group("Package manager options")
    manager.add_argument("--uv", action="store_true", help="Install with uv")
    manager.add_argument(
        "--system",
        action="store_true",
        help="Install into the system Python (pip --break-system-packages / uv --system)",
    )
    manager.add_argument(
        "--venv",
        nargs="?",
        const=".venv",
        default=None,
        metavar="PATH",
        help="Create a virtual environment automatically (default: .venv)",
    )

    cuda = parser.add_argument_group("CUDA options")
    cuda.add_argument(
        "--cuda", nargs="?", const="", default=None, metavar="VERSION", help="CUDA version (e.g. 11.8, 12.1, 12.4)"
    )
    cuda.add_argument("--cpu", action="store_true", help="Install the CPU build")

    packages = parser.add_argument_group("Package options")
    for name in PACKAGE_NAMES:
        packages.add_argument(
            f"--{name}",
            dest=f"{name}_version",
            nargs="?",
            const="",
            default=None,
            metavar="VERSION",
            help=f"{name} version (e.g. 2.4.0)" if name == "torch" else f"{name} version",
        )
    for name in PACKAGE_NAMES:
        packages.add_argument(
            f"--no-{name}",
            dest=f"install_{name}",
            action="store_false",
            help=f"Do not install {name}",
        )
    packages.add_argument("--only-torch", action="store_true", help="Install torch only")

    other = parser.add_argument_group("Other options")
    other.add_argument("--dry-run", action="store_true", help="Print the command without running it")

    return parser


def _optional_value(flag: str, value: str | None, meaning: str) -> str | None:
    # A value flag followed by another flag or by nothing parses as ""
    if value is not None and not value.strip():
        logger.warning(f"{flag} given without a value, {meaning}")
        return None
    return value.strip() if value is not None else None


def parse_options(argv: Sequence[str] | None = None) -> InstallOptions:
    """
    Parse command line arguments into install options.

    Raises:
        UsageError: On unknown flags or stray arguments
        SystemExit: After printing --help
    """
    args = build_parser().parse_args(argv)

    versions = {
        f"{name}_version": _optional_value(f"--{name}", getattr(args, f"{name}_version"), "installing latest")
        for name in PACKAGE_NAMES
    }

    return InstallOptions(
        install_torch=args.install_torch,
        install_torchvision=args.install_torchvision and not args.only_torch,
        install_torchaudio=args.install_torchaudio and not args.only_torch,
        **versions,
        use_uv=args.uv,
        use_system=args.system,
        auto_venv=args.venv is not None,
        venv_path=args.venv or ".venv",
        cuda_override=_optional_value("--cuda", args.cuda, "detecting automatically"),
        force_cpu=args.cpu,
        dry_run=args.dry_run,
    )

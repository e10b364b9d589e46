"""Mapping from CUDA versions to PyTorch wheel channels.

The fallbacks pick the nearest known channel. This is best effort: a CUDA
release newer than the table is assumed to run wheels built for the newest
known channel, which usually but not always holds.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

from torchinstall.logger import get_logger
from torchinstall.models.installation import ChannelSelection

logger = get_logger(__name__)

CPU_TAG = "cpu"
OLDER_TAG = "cu118"
MID_TAG = "cu121"
NEWER_TAG = "cu124"

MAJOR_MINOR_PATTERN = re.compile(r"^(\d+)\.(\d+)")


@dataclass(frozen=True)
class ChannelRule:
    """A single row of the channel table."""

    matches: Callable[[int, int], bool]
    tag: str
    warning: str | None = None  # Format string receiving {version}


# Checked top to bottom; the last row always matches
CHANNEL_RULES: tuple[ChannelRule, ...] = (
    ChannelRule(lambda major, minor: major == 11 and minor in (6, 7, 8), OLDER_TAG),
    ChannelRule(lambda major, minor: major == 12 and minor in (0, 1), MID_TAG),
    ChannelRule(lambda major, minor: major == 12 and 2 <= minor <= 6, NEWER_TAG),
    ChannelRule(
        lambda major, minor: major == 11,
        OLDER_TAG,
        "CUDA {version} is old, using " + OLDER_TAG,
    ),
    ChannelRule(
        lambda major, minor: True,
        NEWER_TAG,
        "CUDA {version} is not supported, trying " + NEWER_TAG,
    ),
)


def select_channel(cuda_version: str | None) -> ChannelSelection:
    """
    Map a CUDA version string to a PyTorch wheel channel.

    Args:
        cuda_version: Version such as "12.1" or "12.1.105"; empty or None means CPU

    Returns:
        Selected channel, with a warning when a fallback rule was used
    """
    if not cuda_version:
        return ChannelSelection(tag=CPU_TAG)

    match = MAJOR_MINOR_PATTERN.match(cuda_version.strip())
    if not match:
        warning = f"CUDA {cuda_version} is not supported, trying {NEWER_TAG}"
        logger.warning(warning)
        return ChannelSelection(tag=NEWER_TAG, cuda_version=cuda_version, warning=warning)

    major, minor = int(match.group(1)), int(match.group(2))
    major_minor = f"{major}.{minor}"

    for rule in CHANNEL_RULES:
        if rule.matches(major, minor):
            warning = rule.warning.format(version=major_minor) if rule.warning else None
            if warning:
                logger.warning(warning)
            return ChannelSelection(tag=rule.tag, cuda_version=major_minor, warning=warning)

    raise AssertionError("channel table has no catch-all rule")


def index_url_for(tag: str, base_url: str = "https://download.pytorch.org/whl") -> str:
    """Return the wheel index URL for a channel tag."""
    base = base_url.rstrip("/")
    if tag == CPU_TAG:
        return f"{base}/cpu"
    return f"{base}/{tag}"

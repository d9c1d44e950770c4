"""GPU architecture classification.

The lspci descriptor of the AMD GPU is matched against an ordered list of
patterns; the first match wins and anything unmatched is UNKNOWN. The
resulting bucket only selects safe encoder parameters (B-frames and
reference frames).
"""

from __future__ import annotations

import re
from enum import Enum


class GpuArchitecture(Enum):
    """Coarse AMD GPU generation."""

    RDNA3 = "rdna3"
    RDNA2 = "rdna2"
    RDNA1 = "rdna1"
    VEGA = "vega"
    POLARIS = "polaris"
    GCN = "gcn"
    UNKNOWN = "unknown"


# Newest generations first: "RX 5700" must hit RDNA1 before the Polaris
# "RX 5x0" rule sees it.
ARCHITECTURE_PATTERNS: tuple[tuple[GpuArchitecture, re.Pattern[str]], ...] = tuple(
    (arch, re.compile(pattern, re.IGNORECASE))
    for arch, pattern in (
        (
            GpuArchitecture.RDNA3,
            r"navi\s*3\d|rx\s*7\d{3}|phoenix|hawk\s*point|strix",
        ),
        (
            GpuArchitecture.RDNA2,
            r"navi\s*2\d|rx\s*6\d{3}|rembrandt|van\s*gogh|mendocino|raphael",
        ),
        (
            GpuArchitecture.RDNA1,
            r"navi\s*1\d|rx\s*5\d{3}",
        ),
        (
            GpuArchitecture.VEGA,
            r"vega|radeon\s*vii|renoir|cezanne|lucienne|picasso|raven|barcelo",
        ),
        (
            GpuArchitecture.POLARIS,
            r"polaris|ellesmere|baffin|lexa|rx\s*[45]\d0\b",
        ),
        (
            GpuArchitecture.GCN,
            r"tonga|fiji|hawaii|bonaire|tahiti|pitcairn|oland",
        ),
    )
)


def classify_architecture(descriptor: str | None) -> GpuArchitecture:
    """Classify a GPU descriptor string into an architecture bucket.

    Args:
        descriptor: GPU model text, typically the lspci device description
            such as "Advanced Micro Devices, Inc. [AMD/ATI] Navi 21
            [Radeon RX 6800/6800 XT / 6900 XT] (rev c1)".

    Returns:
        The first matching bucket, or GpuArchitecture.UNKNOWN.
    """
    if not descriptor:
        return GpuArchitecture.UNKNOWN
    for arch, pattern in ARCHITECTURE_PATTERNS:
        if pattern.search(descriptor):
            return arch
    return GpuArchitecture.UNKNOWN

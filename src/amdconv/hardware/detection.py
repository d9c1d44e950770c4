"""AMD GPU and driver detection.

Runs the system diagnostic tools once per run and keeps their raw output in
a HardwareReport; backend selection itself is the pure decide_backend().
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from amdconv.config.models import Codec
from amdconv.hardware.architecture import GpuArchitecture, classify_architecture
from amdconv.hardware.probe import (
    Backend,
    BackendSupport,
    CapabilityDecision,
    decide_backend,
    parse_amf_support,
    parse_vaapi_support,
)
from amdconv.tools.detection import run_probe
from amdconv.tools.models import ToolRegistry

logger = logging.getLogger(__name__)

AMD_VENDOR_ID = "0x1002"

DRI_DIR = Path("/dev/dri")
DRM_SYSFS_DIR = Path("/sys/class/drm")
MODULE_SYSFS_DIR = Path("/sys/module")

_GPU_CLASS_PATTERN = re.compile(r"\b(VGA|Display|3D)\b", re.IGNORECASE)
_AMD_PATTERN = re.compile(r"\b(AMD|ATI)\b|Advanced Micro Devices", re.IGNORECASE)


@dataclass(frozen=True)
class HardwareReport:
    """Raw results of hardware probing."""

    gpu_descriptor: str | None
    render_device: str | None
    driver_info: str
    lspci_output: str = ""
    vainfo_output: str = ""
    encoders_output: str = ""

    @property
    def has_amd_gpu(self) -> bool:
        return self.gpu_descriptor is not None

    @property
    def architecture(self) -> GpuArchitecture:
        return classify_architecture(self.gpu_descriptor)

    @property
    def vaapi(self) -> BackendSupport:
        return parse_vaapi_support(self.vainfo_output)

    @property
    def amf(self) -> BackendSupport:
        return parse_amf_support(self.encoders_output)


def find_amd_gpu(lspci_output: str) -> str | None:
    """Return the device description of the first AMD display controller.

    Args:
        lspci_output: Output of ``lspci``, one device per line, e.g.
            "03:00.0 VGA compatible controller: Advanced Micro Devices,
            Inc. [AMD/ATI] Navi 21 [Radeon RX 6800/6800 XT / 6900 XT]".

    Returns:
        Text after the device class, or None if no AMD GPU is listed.
    """
    for line in lspci_output.splitlines():
        if not _GPU_CLASS_PATTERN.search(line) or not _AMD_PATTERN.search(line):
            continue
        _, sep, description = line.partition(": ")
        return description.strip() if sep else line.strip()
    return None


def _read_vendor(render_node: Path, sysfs_dir: Path) -> str | None:
    vendor_file = sysfs_dir / render_node.name / "device" / "vendor"
    try:
        return vendor_file.read_text().strip().lower()
    except OSError:
        return None


def find_render_device(
    dri_dir: Path = DRI_DIR, sysfs_dir: Path = DRM_SYSFS_DIR
) -> str | None:
    """Find the DRM render node to use for VA-API.

    Prefers a node whose PCI vendor is AMD; otherwise the first node.

    Returns:
        Path such as "/dev/dri/renderD128", or None if there are none.
    """
    nodes = sorted(dri_dir.glob("renderD*"))
    for node in nodes:
        if _read_vendor(node, sysfs_dir) == AMD_VENDOR_ID:
            return str(node)
    if nodes:
        logger.debug("No AMD render node identified, using %s", nodes[0])
        return str(nodes[0])
    return None


def get_driver_info(module_dir: Path = MODULE_SYSFS_DIR) -> str:
    """Describe the loaded AMD kernel driver."""
    amdgpu = module_dir / "amdgpu"
    if amdgpu.is_dir():
        try:
            version = (amdgpu / "version").read_text().strip() or "unknown"
        except OSError:
            version = "unknown"
        return f"amdgpu kernel driver (version: {version})"
    if (module_dir / "radeon").is_dir():
        return "radeon kernel driver (legacy)"
    return "unknown"


def _tool_output(registry: ToolRegistry, name: str, *args: str) -> str:
    path = registry.path_of(name)
    if path is None:
        logger.debug("%s not available, skipping", name)
        return ""
    stdout, stderr, rc = run_probe([path, *args])
    if rc != 0:
        logger.debug("%s exited with %d: %s", name, rc, stderr.strip())
    # vainfo reports errors and the libva banner on stderr
    return stdout + stderr


def probe_hardware(registry: ToolRegistry) -> HardwareReport:
    """Probe the GPU, render node, driver and encoders.

    Missing tools contribute empty output; probing never raises.

    Args:
        registry: Detected external tools.

    Returns:
        HardwareReport with the raw tool outputs.
    """
    logger.debug("Detecting hardware capabilities...")
    lspci_output = _tool_output(registry, "lspci")
    gpu = find_amd_gpu(lspci_output)
    render_device = find_render_device()

    # DRM display mode works without a running X or Wayland session
    vainfo_args: tuple[str, ...] = ()
    if render_device:
        vainfo_args = ("--display", "drm", "--device", render_device)
    vainfo_output = _tool_output(registry, "vainfo", *vainfo_args)

    report = HardwareReport(
        gpu_descriptor=gpu,
        render_device=render_device,
        driver_info=get_driver_info(),
        lspci_output=lspci_output,
        vainfo_output=vainfo_output,
        encoders_output=registry.ffmpeg.encoders_output,
    )

    if gpu:
        logger.info("AMD GPU detected: %s", gpu)
        logger.debug("Architecture: %s", report.architecture.value)
    else:
        logger.warning("No AMD GPU detected. Falling back to CPU encoding.")
    if render_device:
        logger.debug("Render device: %s", render_device)
    logger.debug("Using AMD driver: %s", report.driver_info)
    for line in vainfo_output.splitlines():
        if "VAProfile" in line:
            logger.debug("  %s", line.strip())
    return report


def select_backend(
    report: HardwareReport, requested_codec: Codec, *, hwaccel_enabled: bool = True
) -> CapabilityDecision:
    """Decide the backend for a run from a hardware report.

    VA-API needs a render node; without one a VA-API decision falls back
    to software.
    """
    decision = decide_backend(
        report.gpu_descriptor,
        report.vainfo_output,
        report.encoders_output,
        requested_codec,
        hwaccel_enabled=hwaccel_enabled,
    )
    if decision.backend is Backend.VAAPI and not report.render_device:
        return decision.with_software(
            "VA-API reported but no render device found, using CPU encoding"
        )
    return decision

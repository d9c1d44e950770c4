"""AMD GPU detection and encoding backend selection."""

from amdconv.hardware.architecture import GpuArchitecture, classify_architecture
from amdconv.hardware.detection import (
    HardwareReport,
    find_amd_gpu,
    find_render_device,
    get_driver_info,
    probe_hardware,
    select_backend,
)
from amdconv.hardware.probe import (
    BACKEND_LABELS,
    Backend,
    BackendSupport,
    CapabilityDecision,
    decide_backend,
    parse_amf_support,
    parse_vaapi_support,
)

__all__ = [
    "BACKEND_LABELS",
    "Backend",
    "BackendSupport",
    "CapabilityDecision",
    "GpuArchitecture",
    "HardwareReport",
    "classify_architecture",
    "decide_backend",
    "find_amd_gpu",
    "find_render_device",
    "get_driver_info",
    "parse_amf_support",
    "parse_vaapi_support",
    "probe_hardware",
    "select_backend",
]

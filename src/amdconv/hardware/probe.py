"""Encoding backend selection.

Turns the raw outputs of lspci, vainfo and ``ffmpeg -encoders`` into one
decision per run: which backend encodes, and with which codec.

Priority is fixed: AMF for the requested codec, then VA-API for the
requested codec, then each codec of the downgrade chain (AV1 -> HEVC ->
H.264) on AMF then VA-API, and finally software encoding with the requested
codec. Missing hardware never fails the run; it only degrades to software.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum
from types import MappingProxyType

from amdconv.config.models import Codec
from amdconv.hardware.architecture import GpuArchitecture, classify_architecture


class Backend(Enum):
    """Path that performs the encode."""

    AMF = "amf"  # Proprietary AMD Advanced Media Framework
    VAAPI = "vaapi"  # Open Mesa driver path
    SOFTWARE = "software"  # CPU encoders


BACKEND_LABELS = MappingProxyType(
    {
        Backend.AMF: "AMF (proprietary driver path)",
        Backend.VAAPI: "VA-API (open source driver path)",
        Backend.SOFTWARE: "CPU (software encoding)",
    }
)

# Codecs tried, in order, when the requested one has no hardware encoder
DOWNGRADE_CHAIN: MappingProxyType[Codec, tuple[Codec, ...]] = MappingProxyType(
    {
        Codec.AV1: (Codec.AV1, Codec.HEVC, Codec.H264),
        Codec.HEVC: (Codec.HEVC, Codec.H264),
        Codec.H264: (Codec.H264,),
    }
)

_VAAPI_PROFILE_CODECS = MappingProxyType(
    {"H264": Codec.H264, "HEVC": Codec.HEVC, "AV1": Codec.AV1}
)

_VAAPI_ENCODE_PATTERN = re.compile(
    r"VAProfile(H264|HEVC|AV1)\w*\s*:\s*VAEntrypointEncSlice(?:LP)?\b"
)
_VAAPI_PROFILE_PATTERN = re.compile(r"VAProfile\w+")
_AMF_ENCODER_PATTERN = re.compile(r"\b(h264|hevc|av1)_amf\b")


@dataclass(frozen=True)
class BackendSupport:
    """Whether a backend is present and which codecs it can encode."""

    present: bool = False
    codecs: frozenset[Codec] = frozenset()

    def supports(self, codec: Codec) -> bool:
        return self.present and codec in self.codecs


def parse_vaapi_support(vainfo_output: str | None) -> BackendSupport:
    """Read VA-API encode support from ``vainfo`` output.

    The driver is present when vainfo reports a VA-API version or lists
    any profile. A codec is encodable when one of its profiles exposes an
    ``VAEntrypointEncSlice`` (or low-power ``EncSliceLP``) entrypoint.
    """
    if not vainfo_output:
        return BackendSupport()
    present = "VA-API version" in vainfo_output or bool(
        _VAAPI_PROFILE_PATTERN.search(vainfo_output)
    )
    codecs = frozenset(
        _VAAPI_PROFILE_CODECS[match.group(1)]
        for match in _VAAPI_ENCODE_PATTERN.finditer(vainfo_output)
    )
    return BackendSupport(present=present, codecs=codecs)


def parse_amf_support(encoders_output: str | None) -> BackendSupport:
    """Read AMF encoder availability from ``ffmpeg -encoders`` output."""
    if not encoders_output:
        return BackendSupport()
    codecs = frozenset(
        Codec(match.group(1))
        for match in _AMF_ENCODER_PATTERN.finditer(encoders_output)
    )
    return BackendSupport(present=bool(codecs), codecs=codecs)


@dataclass(frozen=True)
class CapabilityDecision:
    """Outcome of backend selection for a run."""

    architecture: GpuArchitecture
    backend: Backend
    requested_codec: Codec
    effective_codec: Codec
    amf: BackendSupport = BackendSupport()
    vaapi: BackendSupport = BackendSupport()
    reason: str | None = None

    @property
    def downgraded(self) -> bool:
        """True if the codec was changed to fit the hardware."""
        return self.effective_codec is not self.requested_codec

    @property
    def is_hardware(self) -> bool:
        return self.backend is not Backend.SOFTWARE

    def with_software(self, reason: str) -> CapabilityDecision:
        """Return a copy that encodes in software with the requested codec."""
        return replace(
            self,
            backend=Backend.SOFTWARE,
            effective_codec=self.requested_codec,
            reason=reason,
        )


def decide_backend(
    gpu_descriptor: str | None,
    vainfo_output: str | None,
    encoders_output: str | None,
    requested_codec: Codec,
    *,
    hwaccel_enabled: bool = True,
) -> CapabilityDecision:
    """Choose the encoding backend and effective codec.

    Pure function of the probe outputs; it runs nothing itself.

    Args:
        gpu_descriptor: AMD GPU description from lspci, or None if no AMD
            GPU was found.
        vainfo_output: Raw vainfo output (empty or None if unavailable).
        encoders_output: Raw ``ffmpeg -encoders`` output.
        requested_codec: Codec the user asked for.
        hwaccel_enabled: False when hardware encoding was disabled.

    Returns:
        CapabilityDecision. ``reason`` explains any software fallback.
    """
    architecture = classify_architecture(gpu_descriptor)
    amf = parse_amf_support(encoders_output)
    vaapi = parse_vaapi_support(vainfo_output)

    def decision(
        backend: Backend, codec: Codec, reason: str | None = None
    ) -> CapabilityDecision:
        return CapabilityDecision(
            architecture=architecture,
            backend=backend,
            requested_codec=requested_codec,
            effective_codec=codec,
            amf=amf,
            vaapi=vaapi,
            reason=reason,
        )

    if not hwaccel_enabled:
        return decision(
            Backend.SOFTWARE,
            requested_codec,
            "Hardware acceleration disabled, using CPU encoding",
        )

    if not gpu_descriptor:
        return decision(
            Backend.SOFTWARE,
            requested_codec,
            "No AMD GPU detected, falling back to CPU encoding",
        )

    for codec in DOWNGRADE_CHAIN[requested_codec]:
        if amf.supports(codec):
            return decision(Backend.AMF, codec)
        if vaapi.supports(codec):
            return decision(Backend.VAAPI, codec)

    if not amf.present and not vaapi.present:
        reason = "No hardware encoder available, falling back to CPU encoding"
    else:
        reason = (
            f"No hardware encoder for {requested_codec.value}, "
            "falling back to CPU encoding"
        )
    return decision(Backend.SOFTWARE, requested_codec, reason)

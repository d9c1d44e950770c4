"""Tests for encoding backend selection."""

import pytest

from amdconv.config.models import Codec
from amdconv.hardware.architecture import GpuArchitecture
from amdconv.hardware.probe import (
    Backend,
    BackendSupport,
    decide_backend,
    parse_amf_support,
    parse_vaapi_support,
)

NAVI21 = "Advanced Micro Devices, Inc. [AMD/ATI] Navi 21 [Radeon RX 6800 XT]"

VAINFO_H264_ONLY = """\
vainfo: VA-API version: 1.20 (libva 2.20.0)
      VAProfileH264Main               : VAEntrypointVLD
      VAProfileH264Main               : VAEntrypointEncSliceLP
      VAProfileHEVCMain               : VAEntrypointVLD
"""

VAINFO_ALL = """\
vainfo: VA-API version: 1.20 (libva 2.20.0)
      VAProfileH264High               : VAEntrypointEncSlice
      VAProfileHEVCMain               : VAEntrypointEncSlice
      VAProfileAV1Profile0            : VAEntrypointEncSlice
"""

ENCODERS_HEVC_AMF = " V....D hevc_amf             AMD AMF HEVC encoder (codec hevc)\n"


class TestParseVaapiSupport:
    """Tests for parse_vaapi_support function."""

    def test_encode_entrypoints(self, vainfo_rdna2: str) -> None:
        support = parse_vaapi_support(vainfo_rdna2)
        assert support.present
        assert support.codecs == frozenset({Codec.H264, Codec.HEVC})

    def test_decode_only_profile_is_not_encodable(self, vainfo_rdna2: str) -> None:
        assert not parse_vaapi_support(vainfo_rdna2).supports(Codec.AV1)

    def test_low_power_entrypoint(self) -> None:
        support = parse_vaapi_support(VAINFO_H264_ONLY)
        assert support.codecs == frozenset({Codec.H264})

    def test_driver_error(self) -> None:
        output = "libva error: vaGetDriverNameByIndex() failed with unknown libva error"
        assert parse_vaapi_support(output) == BackendSupport()

    @pytest.mark.parametrize("output", [None, ""])
    def test_no_output(self, output: str | None) -> None:
        assert not parse_vaapi_support(output).present


class TestParseAmfSupport:
    """Tests for parse_amf_support function."""

    def test_lists_amf_encoders(self, encoders_amf: str) -> None:
        support = parse_amf_support(encoders_amf)
        assert support.present
        assert support.codecs == frozenset({Codec.H264, Codec.HEVC})

    def test_no_amf(self) -> None:
        output = " V....D libx264              libx264 H.264 (codec h264)\n"
        assert not parse_amf_support(output).present


class TestDecideBackend:
    """Tests for decide_backend function."""

    def test_amf_preferred_over_vaapi(
        self, vainfo_rdna2: str, encoders_amf: str
    ) -> None:
        decision = decide_backend(NAVI21, vainfo_rdna2, encoders_amf, Codec.HEVC)
        assert decision.backend is Backend.AMF
        assert decision.effective_codec is Codec.HEVC
        assert decision.architecture is GpuArchitecture.RDNA2
        assert not decision.downgraded
        assert decision.is_hardware
        assert decision.reason is None

    def test_vaapi_without_amf(self, vainfo_rdna2: str) -> None:
        decision = decide_backend(NAVI21, vainfo_rdna2, "", Codec.H264)
        assert decision.backend is Backend.VAAPI
        assert decision.effective_codec is Codec.H264

    def test_av1_downgrades_to_hevc(self, vainfo_rdna2: str) -> None:
        """AV1 without hardware support falls to the next codec in the chain."""
        decision = decide_backend(NAVI21, vainfo_rdna2, "", Codec.AV1)
        assert decision.backend is Backend.VAAPI
        assert decision.effective_codec is Codec.HEVC
        assert decision.requested_codec is Codec.AV1
        assert decision.downgraded

    def test_hevc_downgrades_to_h264(self) -> None:
        decision = decide_backend(NAVI21, VAINFO_H264_ONLY, "", Codec.HEVC)
        assert decision.effective_codec is Codec.H264

    def test_chain_prefers_vaapi_for_requested_codec_over_amf_downgrade(
        self,
    ) -> None:
        """VA-API AV1 beats AMF HEVC when AV1 is requested."""
        decision = decide_backend(NAVI21, VAINFO_ALL, ENCODERS_HEVC_AMF, Codec.AV1)
        assert decision.backend is Backend.VAAPI
        assert decision.effective_codec is Codec.AV1

    def test_h264_is_never_upgraded(self) -> None:
        decision = decide_backend(NAVI21, "", ENCODERS_HEVC_AMF, Codec.H264)
        assert decision.backend is Backend.SOFTWARE
        assert decision.effective_codec is Codec.H264
        assert decision.reason is not None
        assert "No hardware encoder for h264" in decision.reason

    def test_no_gpu(self, vainfo_rdna2: str, encoders_amf: str) -> None:
        decision = decide_backend(None, vainfo_rdna2, encoders_amf, Codec.HEVC)
        assert decision.backend is Backend.SOFTWARE
        assert decision.effective_codec is Codec.HEVC
        assert decision.architecture is GpuArchitecture.UNKNOWN
        assert decision.reason == "No AMD GPU detected, falling back to CPU encoding"

    def test_no_hardware_encoder(self) -> None:
        decision = decide_backend(NAVI21, "", "", Codec.H264)
        assert decision.backend is Backend.SOFTWARE
        assert decision.reason is not None
        assert decision.reason.startswith("No hardware encoder available")

    def test_hwaccel_disabled(self, vainfo_rdna2: str, encoders_amf: str) -> None:
        decision = decide_backend(
            NAVI21, vainfo_rdna2, encoders_amf, Codec.AV1, hwaccel_enabled=False
        )
        assert decision.backend is Backend.SOFTWARE
        assert decision.effective_codec is Codec.AV1
        assert not decision.downgraded
        assert decision.reason is not None
        assert "disabled" in decision.reason


class TestCapabilityDecision:
    """Tests for CapabilityDecision helpers."""

    def test_with_software_restores_requested_codec(self, vainfo_rdna2: str) -> None:
        decision = decide_backend(NAVI21, vainfo_rdna2, "", Codec.AV1)
        fallback = decision.with_software("no render device")
        assert fallback.backend is Backend.SOFTWARE
        assert fallback.effective_codec is Codec.AV1
        assert fallback.reason == "no render device"
        assert fallback.vaapi == decision.vaapi

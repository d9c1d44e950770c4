"""Tests for ffprobe media inspection."""

import json
import subprocess
from decimal import Decimal
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from amdconv.exceptions import MediaProbeError
from amdconv.introspector.ffprobe import (
    FFprobeIntrospector,
    MediaInfo,
    parse_ffprobe_output,
)

SAMPLE_OUTPUT = {
    "streams": [
        {"codec_type": "audio", "codec_name": "aac", "duration": "93.1"},
        {
            "codec_type": "video",
            "codec_name": "h264",
            "width": 1920,
            "height": 1080,
            "duration": "93.200000",
        },
    ],
    "format": {"duration": "93.210000", "bit_rate": "4500000"},
}


class TestParseFfprobeOutput:
    """Tests for parse_ffprobe_output function."""

    def test_reads_container_duration(self) -> None:
        info = parse_ffprobe_output(Path("a.mkv"), SAMPLE_OUTPUT)
        assert info.duration == Decimal("93.210000")
        assert info.video_codec == "h264"
        assert info.resolution == "1920x1080"
        assert info.bit_rate == 4500000

    def test_falls_back_to_video_stream_duration(self) -> None:
        data = {**SAMPLE_OUTPUT, "format": {"duration": "N/A"}}
        info = parse_ffprobe_output(Path("a.mkv"), data)
        assert info.duration == Decimal("93.200000")

    @pytest.mark.parametrize("value", ["N/A", "", "0", "-4", "nan", "garbage"])
    def test_unusable_duration(self, value: str) -> None:
        data = {
            "format": {"duration": value},
            "streams": [{"codec_type": "video"}],
        }
        assert parse_ffprobe_output(Path("a.mkv"), data).duration is None

    def test_audio_only_file(self) -> None:
        data = {
            "format": {"duration": "180"},
            "streams": [{"codec_type": "audio", "codec_name": "flac"}],
        }
        info = parse_ffprobe_output(Path("a.flac"), data)
        assert info.video_codec is None
        assert info.resolution is None
        assert info.duration == Decimal("180")


class TestMediaInfoDescribe:
    """Tests for MediaInfo.describe."""

    def test_full_summary(self) -> None:
        info = parse_ffprobe_output(Path("a.mkv"), SAMPLE_OUTPUT)
        assert info.describe() == "h264 | 1920x1080 | 93.21s | 4500000bps"

    def test_unknown_values(self) -> None:
        assert MediaInfo(path=Path("a.mkv")).describe() == "unknown | ?"


class TestFFprobeIntrospector:
    """Tests for FFprobeIntrospector."""

    @pytest.fixture
    def media_file(self, tmp_path: Path) -> Path:
        path = tmp_path / "clip.mkv"
        path.write_bytes(b"\x1a\x45\xdf\xa3")
        return path

    def test_missing_file(self, tmp_path: Path) -> None:
        introspector = FFprobeIntrospector("/usr/bin/ffprobe")
        with pytest.raises(MediaProbeError, match="File not found"):
            introspector.get_media_info(tmp_path / "missing.mkv")

    def test_parses_ffprobe_json(self, media_file: Path) -> None:
        result = MagicMock(stdout=json.dumps(SAMPLE_OUTPUT))
        with patch(
            "amdconv.introspector.ffprobe.subprocess.run", return_value=result
        ) as mock_run:
            info = FFprobeIntrospector("/usr/bin/ffprobe").get_media_info(media_file)

        assert info.path == media_file
        assert info.duration == Decimal("93.210000")
        args = mock_run.call_args.args[0]
        assert args[0] == "/usr/bin/ffprobe"
        assert args[-1] == str(media_file)
        assert "-show_format" in args

    def test_ffprobe_failure(self, media_file: Path) -> None:
        error = subprocess.CalledProcessError(
            1, ["ffprobe"], stderr="Invalid data found when processing input\n"
        )
        with patch("amdconv.introspector.ffprobe.subprocess.run", side_effect=error):
            with pytest.raises(MediaProbeError, match="Invalid data found"):
                FFprobeIntrospector("ffprobe").get_media_info(media_file)

    def test_invalid_json(self, media_file: Path) -> None:
        result = MagicMock(stdout="{not json")
        with patch("amdconv.introspector.ffprobe.subprocess.run", return_value=result):
            with pytest.raises(MediaProbeError, match="Invalid ffprobe output"):
                FFprobeIntrospector("ffprobe").get_media_info(media_file)

    def test_missing_format_section(self, media_file: Path) -> None:
        result = MagicMock(stdout=json.dumps({"streams": []}))
        with patch("amdconv.introspector.ffprobe.subprocess.run", return_value=result):
            with pytest.raises(MediaProbeError, match="Missing 'format'"):
                FFprobeIntrospector("ffprobe").get_media_info(media_file)

    def test_timeout(self, media_file: Path) -> None:
        error = subprocess.TimeoutExpired(["ffprobe"], 60)
        with patch("amdconv.introspector.ffprobe.subprocess.run", side_effect=error):
            with pytest.raises(MediaProbeError, match="timed out"):
                FFprobeIntrospector("ffprobe").get_media_info(media_file)


"""Shared test fixtures for amdconv."""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from amdconv.config.loader import clear_config_cache
from amdconv.logging import ConsoleHandler


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test isolation."""
    dir_path = tempfile.mkdtemp()
    yield Path(dir_path)
    shutil.rmtree(dir_path, ignore_errors=True)


@pytest.fixture(autouse=True)
def amdconv_data_dir(temp_dir: Path):
    """Point AMDCONV_DATA_DIR at an empty temporary directory.

    Keeps tests away from the user's ~/.amdconv config and profiles.
    """
    data_dir = temp_dir / ".amdconv"
    data_dir.mkdir(parents=True, exist_ok=True)
    clear_config_cache()

    env = {"AMDCONV_DATA_DIR": str(data_dir)}
    with patch.dict(os.environ, env):
        for name in list(os.environ):
            if name.startswith("AMDCONV_") and name not in env:
                os.environ.pop(name)
        yield data_dir
    clear_config_cache()


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Remove handlers installed by configure_logging during a test."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        # Exact type check leaves pytest's own FileHandler subclass alone
        if isinstance(handler, ConsoleHandler) or type(handler) is logging.FileHandler:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


@pytest.fixture
def video_tree(temp_dir: Path) -> Path:
    """Create a directory with a few (empty) input videos."""
    video_dir = temp_dir / "videos"
    video_dir.mkdir()
    (video_dir / "movie.mkv").write_bytes(b"\x00" * 1000)
    (video_dir / "clip.mov").write_bytes(b"\x00" * 500)
    (video_dir / "notes.txt").write_text("not a video")

    nested = video_dir / "season1"
    nested.mkdir()
    (nested / "episode.MP4").write_bytes(b"\x00" * 200)
    return video_dir


@pytest.fixture
def vainfo_rdna2() -> str:
    """vainfo output for an RX 6800 XT on Mesa (H.264 and HEVC encode)."""
    return _VAINFO_RDNA2


@pytest.fixture
def encoders_amf() -> str:
    """ffmpeg -encoders excerpt listing the AMF and VA-API encoders."""
    return _ENCODERS_AMF


@pytest.fixture
def lspci_rdna2() -> str:
    """lspci output with a Navi 21 GPU."""
    return _LSPCI_RDNA2


_VAINFO_RDNA2 = """\
libva info: VA-API version 1.20.0
vainfo: VA-API version: 1.20 (libva 2.20.0)
vainfo: Driver version: Mesa Gallium driver 24.0.5 for AMD Radeon RX 6800 XT
vainfo: Supported profile and entrypoints
      VAProfileMPEG2Simple            : VAEntrypointVLD
      VAProfileH264ConstrainedBaseline: VAEntrypointVLD
      VAProfileH264ConstrainedBaseline: VAEntrypointEncSlice
      VAProfileH264Main               : VAEntrypointVLD
      VAProfileH264Main               : VAEntrypointEncSlice
      VAProfileH264High               : VAEntrypointVLD
      VAProfileH264High               : VAEntrypointEncSlice
      VAProfileHEVCMain               : VAEntrypointVLD
      VAProfileHEVCMain               : VAEntrypointEncSlice
      VAProfileHEVCMain10             : VAEntrypointVLD
      VAProfileHEVCMain10             : VAEntrypointEncSlice
      VAProfileAV1Profile0            : VAEntrypointVLD
      VAProfileNone                   : VAEntrypointVideoProc
"""

_ENCODERS_AMF = """\
Encoders:
 V..... = Video
 ------
 V....D libx264              libx264 H.264 / AVC / MPEG-4 AVC (codec h264)
 V....D h264_amf             AMD AMF H.264 Encoder (codec h264)
 V....D h264_vaapi           H.264/AVC (VAAPI) (codec h264)
 V....D hevc_amf             AMD AMF HEVC encoder (codec hevc)
 V....D hevc_vaapi           H.265/HEVC (VAAPI) (codec hevc)
 A....D aac                  AAC (Advanced Audio Coding)
"""

_LSPCI_RDNA2 = """\
00:00.0 Host bridge: Advanced Micro Devices, Inc. [AMD] Starship/Matisse Root Complex
03:00.0 VGA compatible controller: Advanced Micro Devices, Inc. [AMD/ATI] \
Navi 21 [Radeon RX 6800/6800 XT / 6900 XT] (rev c1)
03:00.1 Audio device: Advanced Micro Devices, Inc. [AMD/ATI] Navi 21 HDMI Audio
"""

"""Tests for input discovery and output paths."""

from pathlib import Path

import pytest

from amdconv.config.models import Container
from amdconv.jobs.discovery import collect_inputs, is_video_file, resolve_output_path


class TestIsVideoFile:
    """Tests for is_video_file function."""

    @pytest.mark.parametrize("name", ["a.mkv", "b.MOV", "c.m2ts", "d.3gp", "e.vob"])
    def test_supported(self, name: str) -> None:
        assert is_video_file(Path(name))

    @pytest.mark.parametrize("name", ["a.txt", "b.srt", "noext", "c.mkv.part"])
    def test_unsupported(self, name: str) -> None:
        assert not is_video_file(Path(name))


class TestCollectInputs:
    """Tests for collect_inputs function."""

    def test_directory_expands_recursively(self, video_tree: Path) -> None:
        inputs = collect_inputs([video_tree])
        assert inputs == [
            video_tree / "clip.mov",
            video_tree / "movie.mkv",
            video_tree / "season1" / "episode.MP4",
        ]

    def test_files_are_kept_even_if_missing(self, tmp_path: Path) -> None:
        """Missing files stay in the list so the batch can report them."""
        missing = tmp_path / "gone.mkv"
        assert collect_inputs([missing]) == [missing]

    def test_explicit_file_is_not_filtered_by_extension(self, tmp_path: Path) -> None:
        path = tmp_path / "recording.bin"
        path.write_bytes(b"\x00")
        assert collect_inputs([path]) == [path]

    def test_order_is_preserved(self, video_tree: Path) -> None:
        first = video_tree / "movie.mkv"
        second = video_tree / "clip.mov"
        assert collect_inputs([first, second]) == [first, second]

    def test_no_paths_uses_cwd(self, video_tree: Path) -> None:
        """Only files directly in the directory are picked up."""
        assert collect_inputs([], cwd=video_tree) == [
            video_tree / "clip.mov",
            video_tree / "movie.mkv",
        ]

    def test_no_paths_gives_relative_names(
        self, video_tree: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(video_tree)
        assert collect_inputs([]) == [Path("clip.mov"), Path("movie.mkv")]

    def test_empty_directory(self, tmp_path: Path) -> None:
        assert collect_inputs([tmp_path]) == []


class TestResolveOutputPath:
    """Tests for resolve_output_path function."""

    def test_flat_output(self) -> None:
        path = resolve_output_path(
            Path("videos/season1/episode.MP4"), Path("out"), Container.MKV
        )
        assert path == Path("out/episode.mkv")

    def test_keep_tree_relative_input(self) -> None:
        path = resolve_output_path(
            Path("a/b/clip.mov"), Path("out"), Container.MP4, keep_tree=True
        )
        assert path == Path("out/a/b/clip.mp4")

    def test_keep_tree_never_escapes_output_dir(self) -> None:
        path = resolve_output_path(
            Path("../shows/./clip.mov"), Path("out"), Container.MP4, keep_tree=True
        )
        assert path == Path("out/shows/clip.mp4")

    def test_keep_tree_absolute_inside_cwd(self, tmp_path: Path) -> None:
        base = tmp_path.resolve()
        path = resolve_output_path(
            base / "a" / "clip.mov",
            Path("out"),
            Container.MP4,
            keep_tree=True,
            cwd=base,
        )
        assert path == Path("out/a/clip.mp4")

    def test_keep_tree_absolute_outside_cwd(self, tmp_path: Path) -> None:
        base = tmp_path.resolve()
        path = resolve_output_path(
            base / "elsewhere" / "clip.mov",
            Path("out"),
            Container.WEBM,
            keep_tree=True,
            cwd=base / "work",
        )
        assert path == Path("out/clip.webm")

    def test_keep_tree_file_in_cwd(self) -> None:
        path = resolve_output_path(
            Path("clip.mov"), Path("out"), Container.MOV, keep_tree=True
        )
        assert path == Path("out/clip.mov")

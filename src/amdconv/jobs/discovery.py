"""Input file discovery and output path resolution."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from amdconv.config.models import Container

logger = logging.getLogger(__name__)

INPUT_EXTENSIONS: tuple[str, ...] = (
    "mov",
    "mkv",
    "avi",
    "flv",
    "m2ts",
    "ts",
    "mp4",
    "webm",
    "wmv",
    "m4v",
    "3gp",
    "ogv",
    "mpeg",
    "mpg",
    "vob",
)


def is_video_file(path: Path) -> bool:
    """Return True if the file extension is a supported input format."""
    return path.suffix.lower().lstrip(".") in INPUT_EXTENSIONS


def collect_inputs(paths: Sequence[Path], cwd: Path | None = None) -> list[Path]:
    """Expand command-line paths into the list of input files.

    Files are kept as given, even when they do not exist, so the batch can
    report them. Directories expand recursively to supported video files.
    With no paths, the supported files directly in ``cwd`` are used.

    Returns:
        Input files in processing order.
    """
    if not paths:
        base = cwd or Path.cwd()
        found = sorted(p for p in base.iterdir() if p.is_file() and is_video_file(p))
        # Relative names keep log lines and --keep-tree paths short
        return [p.relative_to(base) if cwd is None else p for p in found]

    inputs: list[Path] = []
    for path in paths:
        if path.is_dir():
            found = sorted(
                p for p in path.rglob("*") if p.is_file() and is_video_file(p)
            )
            logger.debug("Found %d video files in %s", len(found), path)
            inputs.extend(found)
        else:
            inputs.append(path)
    return inputs


def resolve_output_path(
    input_path: Path,
    output_dir: Path,
    container: Container,
    keep_tree: bool = False,
    cwd: Path | None = None,
) -> Path:
    """Compute the output file for an input.

    The output keeps the input's stem with the container as extension. With
    ``keep_tree`` the input's directory, relative to the working directory,
    is recreated under ``output_dir``.

    Example:
        >>> resolve_output_path(Path("a/b/clip.mov"), Path("out"), Container.MP4, True)
        PosixPath('out/a/b/clip.mp4')
    """
    filename = f"{input_path.stem}.{container.value}"
    if not keep_tree:
        return output_dir / filename

    parent = input_path.parent
    if parent.is_absolute():
        try:
            parent = parent.relative_to((cwd or Path.cwd()).resolve())
        except ValueError:
            logger.debug(
                "%s is outside the working directory, not keeping tree", input_path
            )
            return output_dir / filename
    # Drop any ".." so output never escapes output_dir
    parts = [part for part in parent.parts if part not in ("..", ".")]
    return output_dir.joinpath(*parts, filename)

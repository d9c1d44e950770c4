"""Configuration profile management.

Profiles store named sets of conversion settings so a batch can be repeated
with ``--load-conf NAME``. Each profile is a flat ``NAME.conf`` file of
``KEY="value"`` lines with ``#`` comments, for example::

    # amdconv profile
    CODEC="hevc"
    PRESET="highcompression"
    TARGET_SIZE="700M"

Files are parsed line by line (never executed) and validated with a pydantic
model that rejects unknown keys.

Search order for ``load_profile``:
1. The profiles directory (~/.amdconv/profiles/ by default)
2. The current working directory
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from amdconv.config.models import RunConfig
from amdconv.config.run import RunSource
from amdconv.exceptions import AmdconvError

logger = logging.getLogger(__name__)

PROFILE_SUFFIX = ".conf"

# Profile name: letters, digits, hyphen and underscore only
PROFILE_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")

_LINE_PATTERN = re.compile(r'^([A-Z][A-Z0-9_]*)="(.*)"$')

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})
_FALSE_VALUES = frozenset({"false", "0", "no", "off"})


class ProfileError(AmdconvError):
    """Error loading, validating or saving a profile."""


class ProfileNotFoundError(ProfileError):
    """Profile does not exist."""

    def __init__(self, name: str, searched: list[Path]) -> None:
        self.name = name
        self.searched = searched
        locations = ", ".join(str(p) for p in searched)
        super().__init__(f"Profile not found: {name} (searched {locations})")


class ProfileSettings(BaseModel):
    """Validated contents of a profile file.

    Field aliases are the upper-case keys used on disk. Empty strings mean
    "not set" and load as None.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    codec: str | None = Field(default=None, alias="CODEC")
    preset: str | None = Field(default=None, alias="PRESET")
    quality: int | None = Field(default=None, alias="QUALITY_VAL")
    audio_bitrate: str | None = Field(default=None, alias="AUDIO_BITRATE")
    container: str | None = Field(default=None, alias="CONTAINER")
    scale: str | None = Field(default=None, alias="SCALE")
    fps: str | None = Field(default=None, alias="FPS")
    trim: str | None = Field(default=None, alias="TRIM")
    deinterlace: bool | None = Field(default=None, alias="DEINTERLACE")
    denoise: str | None = Field(default=None, alias="DENOISE")
    crop: str | None = Field(default=None, alias="CROP")
    no_vbaq: bool | None = Field(default=None, alias="NO_VBAQ")
    no_preanalysis: bool | None = Field(default=None, alias="NO_PREANALYSIS")
    no_opengop: bool | None = Field(default=None, alias="NO_OPENGOP")
    texture_preserve: bool | None = Field(default=None, alias="TEXTURE_PRESERVE")
    target_size: str | None = Field(default=None, alias="TARGET_SIZE")
    output_dir: str | None = Field(default=None, alias="OUTPUT_DIR")
    keep_tree: bool | None = Field(default=None, alias="KEEP_TREE")
    no_hwaccel: bool | None = Field(default=None, alias="NO_HWACCEL")

    @field_validator("*", mode="before")
    @classmethod
    def empty_string_is_unset(cls, v: object) -> object:
        """Treat KEY="" as an unset value."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator(
        "deinterlace",
        "no_vbaq",
        "no_preanalysis",
        "no_opengop",
        "texture_preserve",
        "keep_tree",
        "no_hwaccel",
        mode="before",
    )
    @classmethod
    def parse_flag(cls, v: object) -> object:
        """Accept true/false style strings for boolean keys."""
        if isinstance(v, str):
            lowered = v.strip().lower()
            if not lowered:
                return None
            if lowered in _TRUE_VALUES:
                return True
            if lowered in _FALSE_VALUES:
                return False
            raise ValueError(f"expected true or false, got {v!r}")
        return v

    def to_source(self) -> RunSource:
        """Convert to a RunSource for layering over lower-precedence values."""
        return RunSource(**self.model_dump())

    @classmethod
    def from_run_config(cls, config: RunConfig) -> ProfileSettings:
        """Capture the persistable settings of a resolved run."""
        return cls(
            codec=config.codec.value,
            preset=config.preset.value,
            quality=config.quality,
            audio_bitrate=config.audio_bitrate,
            container=config.container.value,
            scale=config.scale,
            fps=config.fps,
            trim=config.trim,
            deinterlace=config.deinterlace,
            denoise=config.denoise.value if config.denoise else None,
            crop=config.crop,
            no_vbaq=config.no_vbaq,
            no_preanalysis=config.no_preanalysis,
            no_opengop=config.no_opengop,
            texture_preserve=config.texture_preserve,
            target_size=config.target_size,
            output_dir=str(config.output_dir),
            keep_tree=config.keep_tree,
            no_hwaccel=config.no_hwaccel,
        )


@dataclass(frozen=True)
class Profile:
    """A profile loaded from disk."""

    name: str
    path: Path
    settings: ProfileSettings


@dataclass(frozen=True)
class ProfileSummary:
    """Name, codec and preset of a profile, for listings."""

    name: str
    path: Path
    codec: str | None
    preset: str | None


def validate_profile_name(name: str) -> None:
    """Check that a profile name is safe to use as a file name.

    Raises:
        ProfileError: If the name is empty or contains other characters
            than letters, digits, hyphen and underscore.
    """
    if not name or not PROFILE_NAME_PATTERN.match(name):
        raise ProfileError(
            f"Invalid profile name: {name!r}. "
            "Use only letters, digits, hyphen and underscore."
        )


def parse_profile_lines(text: str) -> dict[str, str]:
    """Parse ``KEY="value"`` lines into a dict.

    Blank lines and ``#`` comments are skipped. Later keys win.

    Raises:
        ProfileError: If a line is neither a comment nor an assignment.
    """
    values: dict[str, str] = {}
    for lineno, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        match = _LINE_PATTERN.match(line)
        if not match:
            raise ProfileError(f"line {lineno}: expected KEY=\"value\", got {line!r}")
        values[match.group(1)] = match.group(2)
    return values


def parse_profile(text: str, name: str = "<string>") -> ProfileSettings:
    """Parse and validate profile file contents.

    Args:
        text: File contents.
        name: Profile name, used in error messages.

    Returns:
        Validated settings.

    Raises:
        ProfileError: If the text is malformed or contains unknown keys or
            invalid values.
    """
    try:
        values = parse_profile_lines(text)
    except ProfileError as e:
        raise ProfileError(f"Invalid profile '{name}': {e}") from e

    try:
        return ProfileSettings.model_validate(values)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise ProfileError(f"Invalid profile '{name}': {problems}") from e


def find_profile(name: str, profiles_dir: Path, cwd: Path | None = None) -> Path:
    """Locate a profile file by name.

    Raises:
        ProfileError: If the name is invalid.
        ProfileNotFoundError: If no file exists in any search location.
    """
    validate_profile_name(name)
    filename = f"{name}{PROFILE_SUFFIX}"
    candidates = [profiles_dir / filename, (cwd or Path.cwd()) / filename]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    raise ProfileNotFoundError(name, [c.parent for c in candidates])


def load_profile(name: str, profiles_dir: Path, cwd: Path | None = None) -> Profile:
    """Load a profile by name.

    Args:
        name: Profile name (without .conf extension).
        profiles_dir: Directory holding saved profiles.
        cwd: Fallback directory (defaults to the working directory).

    Returns:
        Loaded profile.

    Raises:
        ProfileNotFoundError: If profile doesn't exist.
        ProfileError: If profile is invalid or unreadable.
    """
    path = find_profile(name, profiles_dir, cwd)
    logger.info("Loading configuration: %s", path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ProfileError(f"Cannot read profile {path}: {e}") from e
    return Profile(name=name, path=path, settings=parse_profile(text, name))


def render_profile(
    name: str, settings: ProfileSettings, generated_at: datetime | None = None
) -> str:
    """Render settings as profile file text.

    Every key is written, with unset values as empty strings.
    """
    timestamp = (generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    lines = [
        "# amdconv profile",
        f"# Generated: {timestamp}",
        f"# Profile: {name}",
        "",
    ]
    for field_name, field_info in ProfileSettings.model_fields.items():
        value = getattr(settings, field_name)
        if value is None:
            text = ""
        elif isinstance(value, bool):
            text = "true" if value else "false"
        else:
            text = str(value)
        if '"' in text or "\n" in text:
            raise ProfileError(
                f"Cannot save {field_info.alias}: value contains a quote or newline"
            )
        lines.append(f'{field_info.alias}="{text}"')
    return "\n".join(lines) + "\n"


def save_profile(name: str, settings: ProfileSettings, profiles_dir: Path) -> Path:
    """Write a profile to ``profiles_dir/NAME.conf``, replacing any existing one.

    Returns:
        Path of the written file.

    Raises:
        ProfileError: If the name is invalid or the file cannot be written.
    """
    validate_profile_name(name)
    path = profiles_dir / f"{name}{PROFILE_SUFFIX}"
    try:
        profiles_dir.mkdir(parents=True, exist_ok=True)
        path.write_text(render_profile(name, settings), encoding="utf-8")
    except OSError as e:
        raise ProfileError(f"Cannot write profile {path}: {e}") from e
    logger.debug("Saved profile %s to %s", name, path)
    return path


def _summarize(path: Path) -> ProfileSummary:
    try:
        values = parse_profile_lines(path.read_text(encoding="utf-8"))
    except (OSError, ProfileError) as e:
        logger.debug("Unreadable profile %s: %s", path, e)
        values = {}
    return ProfileSummary(
        name=path.stem,
        path=path,
        codec=values.get("CODEC") or None,
        preset=values.get("PRESET") or None,
    )


def list_profiles(profiles_dir: Path, cwd: Path | None = None) -> list[ProfileSummary]:
    """List profiles in the profiles directory and the working directory.

    Returns:
        Summaries sorted by name within each location, profiles directory
        first. Hidden files are skipped.
    """
    summaries: list[ProfileSummary] = []
    seen: set[Path] = set()
    for directory in (profiles_dir, cwd or Path.cwd()):
        if not directory.is_dir():
            continue
        for path in sorted(directory.glob(f"*{PROFILE_SUFFIX}")):
            resolved = path.resolve()
            if resolved in seen or not path.is_file() or path.name.startswith("."):
                continue
            seen.add(resolved)
            summaries.append(_summarize(path))
    return summaries

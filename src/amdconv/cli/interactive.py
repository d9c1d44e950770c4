"""Interactive configuration builder (--conf)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import click

from amdconv.config.models import Codec, DenoiseLevel, Preset
from amdconv.config.run import RESOLUTION_PRESETS, RunSource


@dataclass
class InteractiveResult:
    """Answers collected by the interactive builder."""

    source: RunSource
    save_as: str | None = None
    start: bool = False
    inputs: list[Path] = field(default_factory=list)


def _choice(text: str, values: list[str], default: str | None = None) -> str:
    return click.prompt(
        text,
        type=click.Choice(values, case_sensitive=False),
        default=default,
        show_choices=True,
    )


def _describe(source: RunSource) -> list[str]:
    lines = [f"Codec: {source.codec}", f"Preset: {source.preset}"]
    if source.scale:
        lines.append(f"Resolution: {source.scale}")
    if source.quality is not None:
        lines.append(f"Quality: {source.quality}")
    lines.append(f"Audio: {source.audio_bitrate}")
    lines.append(f"VBAQ: {'Disabled' if source.no_vbaq else 'Enabled'}")
    lines.append(
        f"Pre-analysis: {'Disabled' if source.no_preanalysis else 'Enabled'}"
    )
    if source.texture_preserve:
        lines.append("Texture Preservation: Enabled")
    if source.target_size:
        lines.append(f"Target size: {source.target_size}")
    lines.append(f"Output: {source.output_dir}")
    return lines


def run_interactive() -> InteractiveResult:
    """Ask for conversion settings with click prompts.

    Returns:
        The collected settings as a RunSource, plus whether to save them as
        a profile and whether to start converting right away.
    """
    click.echo(click.style("Interactive Configuration Builder", fg="cyan", bold=True))
    click.echo(click.style("-" * 40, fg="cyan"))

    source = RunSource()
    source.codec = _choice("Video codec", [c.value for c in Codec], Codec.H264.value)
    source.preset = _choice(
        "Quality preset", [p.value for p in Preset], Preset.BALANCED.value
    )

    if click.confirm("Apply resolution preset?", default=False):
        source.scale = _choice("Resolution", list(RESOLUTION_PRESETS))

    if click.confirm("Custom quality value?", default=False):
        source.quality = click.prompt(
            "Quality value (16-32, lower = better)", type=int, default=22
        )

    source.audio_bitrate = click.prompt("Audio bitrate", default="128k")

    if click.confirm("Configure advanced options?", default=False):
        click.echo(click.style("Advanced Options:", fg="yellow"))
        source.no_vbaq = not click.confirm(
            "Enable VBAQ? (better texture detail)", default=True
        )
        source.no_preanalysis = not click.confirm(
            "Enable pre-analysis? (better quality)", default=True
        )
        source.no_opengop = not click.confirm(
            "Enable Open GOP? (better compression)", default=True
        )
        source.texture_preserve = click.confirm(
            "Enable texture preservation? (better detail)", default=False
        )
        if click.confirm("Target specific file size?", default=False):
            source.target_size = click.prompt("Target size (e.g. 100M, 1G)")

    if click.confirm("Apply video filters?", default=False):
        source.deinterlace = click.confirm("Deinterlace?", default=False)
        if click.confirm("Apply denoising?", default=False):
            source.denoise = _choice("Denoise level", [d.value for d in DenoiseLevel])
        if click.confirm("Set framerate?", default=False):
            source.fps = click.prompt("Framerate (e.g. 30, 60)")
        if click.confirm("Crop video?", default=False):
            source.crop = click.prompt("Crop (width:height:x:y)")

    source.output_dir = click.prompt("Output directory", default="output")

    result = InteractiveResult(source=source)
    if click.confirm("Save this configuration as a profile?", default=False):
        result.save_as = click.prompt("Profile name")

    click.echo()
    click.echo(click.style("Configuration Summary:", fg="green"))
    for line in _describe(source):
        click.echo(f"  {line}")

    result.start = click.confirm("Start conversion with these settings?", default=True)
    if result.start:
        answer = click.prompt(
            "Files or directories (space separated, empty for current directory)",
            default="",
            show_default=False,
        )
        result.inputs = [Path(part) for part in answer.split()]
    return result

"""GPU and dependency reports for the amdconv command.

Backs the --gpu-info, --check-deps and --install-deps flags.
"""

from __future__ import annotations

import click

from amdconv.config.models import Codec
from amdconv.exceptions import InstallError
from amdconv.executor.presets import hardware_bframes
from amdconv.hardware import (
    BACKEND_LABELS,
    BackendSupport,
    HardwareReport,
    select_backend,
)
from amdconv.tools import (
    RequirementLevel,
    ToolRegistry,
    check_requirements,
    install_dependencies,
)

from .exit_codes import ExitCode
from .output import error_exit


def _format_status(available: bool) -> str:
    """Format status for display."""
    return "✓" if available else "✗"


def _format_codecs(support: BackendSupport) -> str:
    if not support.present:
        return "not available"
    if not support.codecs:
        return "present, no encode profiles"
    return ", ".join(codec.value for codec in Codec if codec in support.codecs)


def show_gpu_info(report: HardwareReport, requested_codec: Codec) -> ExitCode:
    """Print the GPU and encoder capability report.

    Args:
        report: Hardware probe results.
        requested_codec: Codec used to show which backend would be chosen.

    Returns:
        ExitCode.SUCCESS; a missing GPU is reported, not an error.
    """
    click.echo("AMD GPU Information")
    click.echo("=" * 40)
    click.echo(f"  GPU:           {report.gpu_descriptor or 'not detected'}")
    click.echo(f"  Architecture:  {report.architecture.value}")
    click.echo(f"  Render device: {report.render_device or 'none'}")
    click.echo(f"  Driver:        {report.driver_info}")
    click.echo()
    click.echo("Hardware Encoders:")
    click.echo("-" * 20)
    click.echo(f"  AMF:    {_format_codecs(report.amf)}")
    click.echo(f"  VA-API: {_format_codecs(report.vaapi)}")
    click.echo()

    decision = select_backend(report, requested_codec)
    click.echo(f"Selected for {requested_codec.value}:")
    click.echo("-" * 20)
    click.echo(f"  Backend: {BACKEND_LABELS[decision.backend]}")
    codec_line = decision.effective_codec.value
    if decision.downgraded:
        codec_line += f" (downgraded from {requested_codec.value})"
    click.echo(f"  Codec:   {codec_line}")
    if decision.is_hardware:
        bframes = hardware_bframes(decision.architecture, decision.effective_codec)
        if bframes is not None:
            click.echo(f"  B-frames: {bframes[0]} (refs {bframes[1]})")
    if decision.reason:
        click.echo(f"  Note:    {decision.reason}")
    return ExitCode.SUCCESS


def show_dependency_report(registry: ToolRegistry) -> ExitCode:
    """Print tool availability and unmet requirements.

    Returns:
        ExitCode.FAILURE if a required tool is missing.
    """
    click.echo("Dependency Check")
    click.echo("=" * 40)
    for name in ("ffmpeg", "ffprobe", "vainfo", "lspci"):
        tool = registry.get_tool(name)
        available = tool is not None and tool.is_available()
        version = tool.version if tool is not None and tool.version else ""
        if available:
            detail = version or "available"
            path = f" ({tool.path})" if tool is not None and tool.path else ""
            click.echo(f"  {_format_status(True)} {name:<8} {detail}{path}")
        else:
            click.echo(f"  {_format_status(False)} {name:<8} not found")

    ffmpeg = registry.ffmpeg
    if ffmpeg.is_available():
        click.echo()
        click.echo("FFmpeg Encoders:")
        click.echo("-" * 20)
        for encoder in (
            "h264_amf",
            "hevc_amf",
            "av1_amf",
            "h264_vaapi",
            "hevc_vaapi",
            "av1_vaapi",
            "libx264",
            "libx265",
            "libsvtav1",
        ):
            status = _format_status(ffmpeg.has_encoder(encoder))
            click.echo(f"  {status} {encoder}")
        click.echo(f"  Hardware decode: {', '.join(sorted(ffmpeg.hwaccels)) or 'none'}")

    report = check_requirements(registry)
    required = report.get_messages(RequirementLevel.REQUIRED)
    recommended = report.get_messages(RequirementLevel.RECOMMENDED)
    if required or recommended:
        click.echo()
    for message in required:
        click.echo(click.style(f"  ✗ {message}", fg="red"))
    for message in recommended:
        click.echo(click.style(f"  ⚠ {message}", fg="yellow"))

    if not report.required_satisfied:
        return ExitCode.FAILURE
    return ExitCode.SUCCESS


def install_action(registry: ToolRegistry) -> ExitCode:
    """Install missing dependencies, exiting with an error on failure."""
    try:
        install_dependencies(registry)
    except InstallError as e:
        error_exit(str(e))
    return ExitCode.SUCCESS

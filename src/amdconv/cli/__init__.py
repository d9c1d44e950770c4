"""Command-line interface for amdconv."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from amdconv import __version__
from amdconv.config import (
    RunConfigBuilder,
    RunSource,
    get_config,
    load_config_file,
    run_source_from_file,
)
from amdconv.config.logging_factory import build_logging_config
from amdconv.config.models import AppConfig, RunConfig, is_valid_pair
from amdconv.config.profiles import ProfileError, load_profile
from amdconv.exceptions import (
    ConfigValidationError,
    InstallError,
    ToolNotFoundError,
)
from amdconv.hardware import CapabilityDecision, probe_hardware, select_backend
from amdconv.introspector import FFprobeIntrospector
from amdconv.jobs import BatchRunner, collect_inputs
from amdconv.logging import configure_logging, log_success
from amdconv.tools import ToolRegistry, detect_all_tools, install_dependencies

from .doctor import install_action, show_dependency_report, show_gpu_info
from .exit_codes import ExitCode
from .interactive import run_interactive
from .output import (
    error_exit,
    log_backend,
    log_run_settings,
    log_summary,
    print_banner,
)
from .profiles import list_profiles_action, save_profile_action

logger = logging.getLogger(__name__)

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def split_format_suffix(args: tuple[str, ...]) -> tuple[list[str], str | None]:
    """Strip a trailing ``to FORMAT`` from the positional arguments.

    Example:
        >>> split_format_suffix(("a.mov", "b.mov", "to", "mkv"))
        (['a.mov', 'b.mov'], 'mkv')
    """
    if len(args) >= 2 and args[-2].lower() == "to":
        return list(args[:-2]), args[-1]
    return list(args), None


def _flag(value: bool) -> bool | None:
    """Map an unset flag to None so it does not override profile values."""
    return True if value else None


def _build_run_config(
    app_config: AppConfig,
    cli_source: RunSource,
    load_conf: str | None,
    interactive_source: RunSource | None = None,
) -> RunConfig:
    builder = RunConfigBuilder()
    builder.apply(run_source_from_file(load_config_file()), source_name="config")

    if load_conf:
        try:
            profile = load_profile(load_conf, app_config.profiles_dir)
        except ProfileError as e:
            error_exit(str(e))
        builder.apply(profile.settings.to_source(), source_name=f"profile:{load_conf}")
        log_success(logger, "Configuration loaded")

    builder.apply(cli_source, source_name="cli")
    if interactive_source is not None:
        builder.apply(interactive_source, source_name="interactive")

    try:
        return builder.build()
    except ConfigValidationError as e:
        for message in e.errors:
            logger.error(message)
        sys.exit(ExitCode.FAILURE)


def _require_ffmpeg(app_config: AppConfig, dry_run: bool) -> ToolRegistry:
    """Detect tools, installing dependencies when ffmpeg is missing."""
    registry = detect_all_tools(app_config.tools)
    if registry.ffmpeg.is_available():
        return registry
    if dry_run:
        logger.warning("FFmpeg not found; commands are shown for a default install")
        return registry

    logger.warning("FFmpeg not found. Attempting to install dependencies...")
    try:
        install_dependencies(registry)
    except InstallError as e:
        error_exit(f"FFmpeg installation failed: {e}")

    registry = detect_all_tools(app_config.tools)
    try:
        registry.require("ffmpeg")
    except ToolNotFoundError as e:
        error_exit(f"FFmpeg installation failed. Please install manually: {e}")
    return registry


def _fit_container(
    decision: CapabilityDecision, config: RunConfig
) -> CapabilityDecision:
    """Fall back to software when a downgraded codec does not fit the container."""
    if is_valid_pair(decision.effective_codec, config.container):
        return decision
    return decision.with_software(
        f"{decision.effective_codec.value} cannot be stored in "
        f"{config.container.value}, using CPU encoding"
    )


@click.command(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, "-v", "--version", prog_name="amdconv")
@click.argument("files", nargs=-1)
@click.option("-d", "--debug", is_flag=True, help="Debug logging, verbose ffmpeg.")
@click.option("--dry-run", is_flag=True, help="Print commands without running.")
@click.option("-o", "--output", "output_dir", help="Output directory.")
@click.option("-c", "--codec", help="Video codec: h264, hevc, av1.")
@click.option(
    "-p",
    "--preset",
    help="Quality preset: maxquality, balanced, fast, highcompression, streaming.",
)
@click.option("-q", "--quality", help="Quality override (16-32, lower = better).")
@click.option("-a", "--audio-bitrate", help="Audio bitrate (e.g. 128k).")
@click.option("-f", "--format", "container", help="Container: mp4, mkv, mov, webm.")
@click.option("-r", "--resolution", help="Resolution preset (480p..8K) or WxH.")
@click.option("--keep-tree", is_flag=True, help="Preserve directory structure.")
@click.option("--no-hwaccel", is_flag=True, help="Disable hardware acceleration.")
@click.option(
    "--force", is_flag=True, help="Overwrite outputs, process without duration."
)
@click.option("--no-vbaq", is_flag=True, help="Disable variance based AQ (AMF).")
@click.option("--no-preanalysis", is_flag=True, help="Disable pre-analysis (AMF).")
@click.option("--no-opengop", is_flag=True, help="Disable open GOP (AMF).")
@click.option(
    "--texture-preserve", is_flag=True, help="Favour fine texture and film grain."
)
@click.option("--target-size", help="Target output size (e.g. 700M, 1.5G).")
@click.option("--scale", help="Scale to WxH (-1 keeps aspect ratio).")
@click.option("--fps", help="Output frame rate (e.g. 30, 30000/1001).")
@click.option("--trim", help="Trim to START:DURATION.")
@click.option("--deinterlace", is_flag=True, help="Deinterlace video.")
@click.option("--denoise", help="Denoise level: low, medium, high.")
@click.option("--crop", help="Crop W:H:X:Y.")
@click.option("--save-conf", metavar="NAME", help="Save settings as a profile.")
@click.option("--load-conf", metavar="NAME", help="Load a saved profile.")
@click.option("--list-conf", is_flag=True, help="List saved profiles.")
@click.option("--conf", is_flag=True, help="Interactive configuration builder.")
@click.option("--gpu-info", is_flag=True, help="Show GPU and encoder support.")
@click.option("--check-deps", is_flag=True, help="Check external dependencies.")
@click.option("--install-deps", is_flag=True, help="Install dependencies (root).")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.pass_context
def main(
    ctx: click.Context,
    files: tuple[str, ...],
    debug: bool,
    dry_run: bool,
    output_dir: str | None,
    codec: str | None,
    preset: str | None,
    quality: str | None,
    audio_bitrate: str | None,
    container: str | None,
    resolution: str | None,
    keep_tree: bool,
    no_hwaccel: bool,
    force: bool,
    no_vbaq: bool,
    no_preanalysis: bool,
    no_opengop: bool,
    texture_preserve: bool,
    target_size: str | None,
    scale: str | None,
    fps: str | None,
    trim: str | None,
    deinterlace: bool,
    denoise: str | None,
    crop: str | None,
    save_conf: str | None,
    load_conf: str | None,
    list_conf: bool,
    conf: bool,
    gpu_info: bool,
    check_deps: bool,
    install_deps: bool,
    log_file: Path | None,
) -> None:
    """Batch convert videos with AMD GPU hardware acceleration.

    FILES may be video files or directories (searched recursively). With no
    FILES, supported videos in the current directory are converted. A
    trailing "to FORMAT" is shorthand for --format FORMAT.

    \b
    Examples:
      amdconv video.mov
      amdconv -c hevc -p highcompression *.mkv to mp4
      amdconv --target-size 700M --keep-tree videos/
      amdconv --save-conf archive -c hevc -p maxquality
    """
    args, format_suffix = split_format_suffix(files)
    if format_suffix:
        container = format_suffix

    try:
        app_config = get_config()
        logging_config = build_logging_config(
            app_config.logging, level="debug" if debug else None
        )
    except ValueError as e:
        click.echo(f"Error: Invalid configuration: {e}", err=True)
        sys.exit(ExitCode.FAILURE)

    # Console only until a conversion actually starts
    configure_logging(logging_config, file_enabled=False)

    if list_conf:
        sys.exit(list_profiles_action(app_config.profiles_dir))
    if check_deps:
        sys.exit(show_dependency_report(detect_all_tools(app_config.tools)))
    if install_deps:
        configure_logging(logging_config, log_file)
        sys.exit(install_action(detect_all_tools(app_config.tools)))

    cli_source = RunSource(
        codec=codec,
        preset=preset,
        quality=quality,
        audio_bitrate=audio_bitrate,
        container=container,
        output_dir=output_dir,
        scale=scale or resolution,
        crop=crop,
        fps=fps,
        trim=trim,
        deinterlace=_flag(deinterlace),
        denoise=denoise,
        target_size=target_size,
        no_vbaq=_flag(no_vbaq),
        no_preanalysis=_flag(no_preanalysis),
        no_opengop=_flag(no_opengop),
        texture_preserve=_flag(texture_preserve),
        keep_tree=_flag(keep_tree),
        no_hwaccel=_flag(no_hwaccel),
        force=_flag(force),
        dry_run=_flag(dry_run),
        debug=_flag(debug),
    )

    interactive = run_interactive() if conf else None
    run_config = _build_run_config(
        app_config,
        cli_source,
        load_conf,
        interactive.source if interactive else None,
    )

    if gpu_info:
        registry = detect_all_tools(app_config.tools)
        sys.exit(show_gpu_info(probe_hardware(registry), run_config.codec))

    if interactive is not None and interactive.save_as:
        save_profile_action(interactive.save_as, run_config, app_config.profiles_dir)
    if save_conf:
        save_profile_action(save_conf, run_config, app_config.profiles_dir)
        if not args:
            sys.exit(ExitCode.SUCCESS)
    if interactive is not None:
        if not interactive.start:
            sys.exit(ExitCode.SUCCESS)
        args = [str(p) for p in interactive.inputs]

    log_path = configure_logging(logging_config, log_file)
    print_banner()
    logger.info("=== Starting AMD GPU Batch Conversion v%s ===", __version__)
    if log_path is not None:
        logger.info("Log file: %s", log_path)
    for warning in run_config.warnings:
        logger.warning(warning)

    inputs = collect_inputs([Path(a) for a in args])
    if not inputs:
        click.echo(ctx.get_usage())
        error_exit("No input files found")

    registry = _require_ffmpeg(app_config, run_config.dry_run)
    report = probe_hardware(registry)
    decision = select_backend(
        report, run_config.codec, hwaccel_enabled=not run_config.no_hwaccel
    )
    decision = _fit_container(decision, run_config)
    log_backend(decision)
    log_run_settings(run_config, decision)

    ffprobe_path = registry.path_of("ffprobe")
    introspector = FFprobeIntrospector(ffprobe_path) if ffprobe_path else None
    if run_config.target_size and introspector is None:
        logger.warning(
            "ffprobe not found; input durations for --target-size are unknown"
        )

    runner = BatchRunner(
        run_config,
        decision,
        ffmpeg_path=registry.path_of("ffmpeg") or "ffmpeg",
        introspector=introspector,
        render_device=report.render_device,
    )
    summary = runner.run(inputs)
    log_summary(summary, log_path)
    sys.exit(summary.exit_code)

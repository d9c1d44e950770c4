"""Profile listing and saving for the amdconv command."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from amdconv.config.models import RunConfig
from amdconv.config.profiles import (
    ProfileError,
    ProfileSettings,
    list_profiles,
    save_profile,
)
from amdconv.logging import log_success

from .exit_codes import ExitCode
from .output import error_exit

logger = logging.getLogger(__name__)


def list_profiles_action(profiles_dir: Path) -> ExitCode:
    """Print saved profiles as "name (codec/preset)" lines."""
    summaries = list_profiles(profiles_dir)
    if not summaries:
        click.echo(f"No profiles found in {profiles_dir}")
        click.echo("\nTo create one: amdconv --save-conf NAME [OPTIONS]")
        return ExitCode.SUCCESS

    click.echo(click.style("Available Profiles:", fg="blue"))
    for summary in summaries:
        bullet = click.style("•", fg="green")
        codec = summary.codec or "-"
        preset = summary.preset or "-"
        click.echo(f"  {bullet} {summary.name} ({codec}/{preset})")
    return ExitCode.SUCCESS


def save_profile_action(name: str, config: RunConfig, profiles_dir: Path) -> Path:
    """Save the resolved run settings under ``name``, exiting on failure."""
    try:
        path = save_profile(name, ProfileSettings.from_run_config(config), profiles_dir)
    except ProfileError as e:
        error_exit(str(e))
    log_success(logger, "Configuration saved to: %s", path)
    return path

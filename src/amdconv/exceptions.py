"""Exceptions shared across amdconv packages."""


class AmdconvError(Exception):
    """Base exception for amdconv errors."""


class ConfigValidationError(AmdconvError):
    """Run configuration failed validation.

    Raised before any file is touched, so the run aborts without side
    effects.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = errors
        super().__init__("; ".join(errors))


class ToolNotFoundError(AmdconvError):
    """A required external tool is not installed."""

    def __init__(self, name: str, hint: str | None = None) -> None:
        self.name = name
        self.hint = hint
        message = f"{name} not found"
        if hint:
            message = f"{message} ({hint})"
        super().__init__(message)


class InstallError(AmdconvError):
    """Dependency installation could not be completed."""


class MediaProbeError(AmdconvError):
    """Raised when ffprobe cannot read a media file."""

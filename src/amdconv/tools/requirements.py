"""Tool requirements and dependency checks.

Defines which external tools amdconv needs and checks a ToolRegistry
against them for --check-deps.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from amdconv.tools.models import ToolRegistry


class RequirementLevel(Enum):
    """Severity level of a requirement."""

    REQUIRED = "required"  # Conversions cannot run without this
    RECOMMENDED = "recommended"  # Works, but degraded


INSTALL_HINT = "Run: sudo amdconv --install-deps"


@dataclass(frozen=True)
class ToolRequirement:
    """One tool that a feature depends on."""

    tool_name: str
    feature_name: str
    level: RequirementLevel = RequirementLevel.REQUIRED
    min_version: tuple[int, ...] | None = None
    install_hint: str = INSTALL_HINT


@dataclass(frozen=True)
class RequirementCheckResult:
    requirement: ToolRequirement
    message: str | None = None

    @property
    def satisfied(self) -> bool:
        return self.message is None


@dataclass
class RequirementsReport:
    """Outcome of checking every requirement."""

    results: list[RequirementCheckResult] = field(default_factory=list)

    @property
    def all_satisfied(self) -> bool:
        return all(r.satisfied for r in self.results)

    @property
    def required_satisfied(self) -> bool:
        return all(
            r.satisfied
            for r in self.results
            if r.requirement.level is RequirementLevel.REQUIRED
        )

    def get_messages(self, level: RequirementLevel | None = None) -> list[str]:
        """Messages for unmet requirements, optionally of one level only."""
        return [
            r.message
            for r in self.results
            if r.message is not None
            and (level is None or r.requirement.level is level)
        ]


REQUIREMENTS: tuple[ToolRequirement, ...] = (
    ToolRequirement("ffmpeg", "Video Conversion"),
    # AMF and VA-API encoders arrived in the 4.x series
    ToolRequirement(
        "ffmpeg",
        "Hardware Encoders",
        RequirementLevel.RECOMMENDED,
        min_version=(4, 0),
        install_hint="Upgrade ffmpeg through your package manager",
    ),
    ToolRequirement("ffprobe", "Media Probing", RequirementLevel.RECOMMENDED),
    ToolRequirement("vainfo", "VA-API Detection", RequirementLevel.RECOMMENDED),
    ToolRequirement("lspci", "GPU Detection", RequirementLevel.RECOMMENDED),
)


def check_requirement(
    registry: ToolRegistry, requirement: ToolRequirement
) -> RequirementCheckResult:
    """Check one requirement against the detected tools."""
    name = requirement.tool_name
    tool = registry.get_tool(name)
    prefix = f"{requirement.feature_name}: {name}"

    if tool is None or not tool.is_available():
        return RequirementCheckResult(
            requirement, f"{prefix} not found. {requirement.install_hint}"
        )

    minimum = requirement.min_version
    # Unparseable versions (git builds) are given the benefit of the doubt
    if minimum and tool.version_tuple is not None and not tool.meets_version(minimum):
        wanted = ".".join(str(v) for v in minimum)
        return RequirementCheckResult(
            requirement,
            f"{prefix} version {tool.version} < required {wanted}. "
            f"{requirement.install_hint}",
        )
    return RequirementCheckResult(requirement)


def check_requirements(
    registry: ToolRegistry,
    requirements: tuple[ToolRequirement, ...] = REQUIREMENTS,
) -> RequirementsReport:
    """Check every requirement against the tool registry."""
    return RequirementsReport(
        results=[check_requirement(registry, req) for req in requirements]
    )

"""
Exception types raised while resolving, planning and building packages.

Resolution and planning errors abort a run before any subprocess is started.
Build and install failures are not raised; they are recorded per package in
the build report.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence


class RaurError(Exception):
    """Base exception for raur."""
    pass


class ResolveError(RaurError):
    """The dependency graph for a request could not be built."""
    pass


class PackageNotFoundError(ResolveError):
    """A requested package does not exist."""

    def __init__(self, names: Iterable[str]):
        self.names: List[str] = sorted(names)
        super().__init__(f"Package(s) not found: {', '.join(self.names)}")


class MissingDependencyError(ResolveError):
    """A dependency of a requested package does not exist."""

    def __init__(self, name: str, required_by: Iterable[str]):
        self.name = name
        self.required_by: List[str] = sorted(required_by)
        super().__init__(
            f"Dependency '{name}' not found (required by {', '.join(self.required_by)})"
        )


class CycleError(ResolveError):
    """The dependency graph contains a cycle."""

    def __init__(self, path: Sequence[str]):
        self.path: List[str] = list(path)
        super().__init__(f"Dependency cycle detected: {' -> '.join(self.path)}")


class MetadataUnavailableError(ResolveError):
    """Package metadata could not be fetched or was malformed."""
    pass


class PlanError(RaurError):
    """A build order could not be computed."""
    pass


class PlanCycleError(PlanError):
    """A cycle was found while ordering the build plan."""

    def __init__(self, names: Iterable[str]):
        self.names: List[str] = sorted(names)
        super().__init__(f"Cannot order packages, cycle among: {', '.join(self.names)}")


class StagingError(RaurError):
    """A recipe could not be downloaded or extracted."""
    pass


class ConfigurationError(RaurError):
    """The environment cannot run builds or installs as configured."""
    pass


class InterruptedRun(RaurError):
    """An interrupt arrived while a subprocess was running.

    The subprocess was allowed to finish; ``status`` is its exit status.
    """

    def __init__(self, status: int):
        self.status = status
        super().__init__(f"Interrupted; subprocess exited with status {status}")

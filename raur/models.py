"""
Core data models for dependency resolution and builds.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Mapping, Optional, Set, Tuple

from .version import Version, compare


_NAME_RE = re.compile(r"^[A-Za-z0-9@_+][A-Za-z0-9@._+-]*$")
_DEPENDENCY_RE = re.compile(r"^(?P<name>[^<>=]+?)\s*(?:(?P<op>>=|<=|=|<|>)\s*(?P<version>\S+))?$")


def validate_name(name: str) -> str:
    """Return ``name`` unchanged if it is a valid package name."""
    if not isinstance(name, str) or not _NAME_RE.match(name):
        raise ValueError(f"Invalid package name: {name!r}")
    return name


def is_debug_package(name: str) -> bool:
    """Debug split packages are never built or updated on their own."""
    lowered = name.lower()
    return lowered.endswith(("-debug", "-dbg", "-dbgsym", "-debuginfo"))


@dataclass(frozen=True)
class Dependency:
    """A dependency as declared by a recipe, e.g. ``foo>=1.2``."""

    name: str
    operator: Optional[str] = None
    version: Optional[str] = None

    @classmethod
    def parse(cls, text: str) -> "Dependency":
        match = _DEPENDENCY_RE.match(text.strip())
        if not match:
            raise ValueError(f"Invalid dependency: {text!r}")
        return cls(
            name=validate_name(match.group("name").strip()),
            operator=match.group("op"),
            version=match.group("version"),
        )

    def satisfied_by(self, installed_version: Optional[str]) -> bool:
        """Check whether an installed version meets this dependency."""
        if installed_version is None:
            return False
        if self.operator is None:
            return True
        required = Version.parse(self.version)
        installed = Version.parse(installed_version)
        if required.release is None:
            # a constraint without pkgrel matches any release of that version
            installed = Version(installed.epoch, installed.upstream)
        result = compare(installed, required)
        if self.operator == "=":
            return result == 0
        if self.operator == ">=":
            return result >= 0
        if self.operator == "<=":
            return result <= 0
        if self.operator == ">":
            return result > 0
        return result < 0

    def __str__(self) -> str:
        if self.operator is None:
            return self.name
        return f"{self.name}{self.operator}{self.version}"


@dataclass(frozen=True)
class PackageMetadata:
    """Validated metadata for one recipe."""

    name: str
    version: str
    build_dependencies: FrozenSet[str]
    runtime_dependencies: FrozenSet[str]
    recipe_source: str
    constraints: Mapping[str, Dependency] = field(default_factory=dict)
    package_base: Optional[str] = None
    description: Optional[str] = None
    maintainer: Optional[str] = None
    popularity: float = 0.0

    @property
    def dependencies(self) -> FrozenSet[str]:
        return self.build_dependencies | self.runtime_dependencies

    def requirement_for(self, name: str) -> Dependency:
        return self.constraints.get(name, Dependency(name))


@dataclass(frozen=True)
class AurPackage:
    """A search or info result as shown to the user."""

    name: str
    version: Optional[str] = None
    description: Optional[str] = None
    popularity: float = 0.0
    maintainer: Optional[str] = None


class NodeState(Enum):
    PENDING = "pending"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    SATISFIED = "satisfied"
    FAILED = "failed"


@dataclass
class DependencyNode:
    """A package in the dependency graph."""

    name: str
    state: NodeState = NodeState.PENDING
    metadata: Optional[PackageMetadata] = None
    dependents: Set[str] = field(default_factory=set)
    installed_version: Optional[str] = None
    from_repository: bool = False


@dataclass
class DependencyGraph:
    """Packages discovered for one request, keyed by name."""

    roots: FrozenSet[str]
    nodes: Dict[str, DependencyNode] = field(default_factory=dict)

    def __contains__(self, name: str) -> bool:
        return name in self.nodes

    def __getitem__(self, name: str) -> DependencyNode:
        return self.nodes[name]

    def to_build(self) -> List[str]:
        return sorted(n for n, node in self.nodes.items() if node.state is NodeState.RESOLVED)

    def satisfied(self) -> List[str]:
        return sorted(n for n, node in self.nodes.items() if node.state is NodeState.SATISFIED)

    def repository_packages(self) -> List[str]:
        return sorted(n for n, node in self.nodes.items() if node.from_repository)

    def dependencies_of(self, name: str) -> List[str]:
        """Dependencies of ``name`` that are present in the graph."""
        metadata = self.nodes[name].metadata
        if metadata is None:
            return []
        return sorted(dep for dep in metadata.dependencies if dep in self.nodes)


@dataclass(frozen=True)
class BuildPlan:
    """Ordered build sequence produced from a resolved graph."""

    order: Tuple[str, ...]
    requires: Mapping[str, FrozenSet[str]]
    metadata: Mapping[str, PackageMetadata]
    roots: FrozenSet[str] = frozenset()
    repository_packages: Tuple[str, ...] = ()

    def __iter__(self):
        return iter(self.order)

    def __len__(self) -> int:
        return len(self.order)

    def dependents_of(self, name: str) -> List[str]:
        """Plan entries that depend on ``name`` directly or transitively."""
        affected: List[str] = []
        frontier = [name]
        seen = {name}
        while frontier:
            current = frontier.pop()
            for entry in self.order:
                if entry not in seen and current in self.requires.get(entry, ()):
                    seen.add(entry)
                    affected.append(entry)
                    frontier.append(entry)
        return [entry for entry in self.order if entry in affected]


class Outcome(Enum):
    BUILT = "built"
    ALREADY_SATISFIED = "already_satisfied"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class BuildResult:
    """Outcome of one plan entry."""

    name: str
    outcome: Outcome
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome in (Outcome.BUILT, Outcome.ALREADY_SATISFIED)


@dataclass
class BuildReport:
    """Ordered BuildResult log for one run."""

    results: List[BuildResult] = field(default_factory=list)

    def add(self, result: BuildResult) -> None:
        self.results.append(result)

    def outcome_of(self, name: str) -> Optional[Outcome]:
        for result in self.results:
            if result.name == name:
                return result.outcome
        return None

    @property
    def succeeded(self) -> bool:
        return all(result.ok for result in self.results)

    @property
    def failures(self) -> List[BuildResult]:
        return [result for result in self.results if not result.ok]

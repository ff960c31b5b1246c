"""
Interfaces for the collaborators used by the resolver and build orchestrator.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from .models import PackageMetadata


class MetadataClient(Protocol):
    """Look up package metadata by name."""

    def lookup(self, names: Sequence[str]) -> Dict[str, Optional[PackageMetadata]]:
        ...


class InstalledSetOracle(Protocol):
    """Answer questions about the local package database."""

    def query(self, name: str) -> Optional[str]:
        ...

    def foreign(self) -> Dict[str, str]:
        ...

    def in_repositories(self, name: str) -> bool:
        ...


class RecipeStager(Protocol):
    """Produce a local directory containing a package's build recipe."""

    def stage(self, metadata: PackageMetadata, workdir: Path) -> Path:
        ...


class BuildRunner(Protocol):
    """Run the unprivileged build step."""

    def build(self, workdir: Path) -> int:
        ...

    def package_list(self, workdir: Path) -> List[Path]:
        ...


class Installer(Protocol):
    """Run the privileged install and removal steps."""

    def preflight(self) -> None:
        ...

    def install(self, artifacts: Iterable[Path], as_dependency: bool = False) -> int:
        ...

    def install_repository(self, names: Iterable[str]) -> int:
        ...

    def remove(self, names: Iterable[str]) -> int:
        ...

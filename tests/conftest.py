"""Shared fakes for raur tests."""

from typing import Dict, Iterable, List, Optional, Sequence

import pytest

from raur.errors import MetadataUnavailableError
from raur.models import Dependency, PackageMetadata


def make_metadata(
    name: str,
    version: str = "1.0-1",
    depends: Iterable[str] = (),
    makedepends: Iterable[str] = (),
) -> PackageMetadata:
    constraints = {}
    runtime = set()
    build = set()
    for texts, target in ((depends, runtime), (makedepends, build)):
        for text in texts:
            dep = Dependency.parse(text)
            target.add(dep.name)
            if dep.operator is not None:
                constraints[dep.name] = dep
    return PackageMetadata(
        name=name,
        version=version,
        build_dependencies=frozenset(build),
        runtime_dependencies=frozenset(runtime),
        recipe_source=f"https://aur.archlinux.org/cgit/aur.git/snapshot/{name}.tar.gz",
        constraints=constraints,
        package_base=name,
    )


class FakeClient:
    def __init__(self, packages: Iterable[PackageMetadata], fail: bool = False) -> None:
        self.packages = {pkg.name: pkg for pkg in packages}
        self.fail = fail
        self.calls: List[List[str]] = []

    def lookup(self, names: Sequence[str]) -> Dict[str, Optional[PackageMetadata]]:
        self.calls.append(list(names))
        if self.fail:
            raise MetadataUnavailableError("network down")
        return {name: self.packages.get(name) for name in names}


class FakeOracle:
    def __init__(
        self,
        installed: Optional[Dict[str, str]] = None,
        repositories: Iterable[str] = (),
        foreign: Optional[Dict[str, str]] = None,
    ) -> None:
        self.installed = dict(installed or {})
        self.repositories = set(repositories)
        self._foreign = dict(foreign or {})

    def query(self, name: str) -> Optional[str]:
        return self.installed.get(name)

    def foreign(self) -> Dict[str, str]:
        return dict(self._foreign)

    def in_repositories(self, name: str) -> bool:
        return name in self.repositories


@pytest.fixture
def meta():
    return make_metadata


@pytest.fixture
def client_factory():
    return FakeClient


@pytest.fixture
def oracle_factory():
    return FakeOracle

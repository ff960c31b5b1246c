"""
Parsers for recipe files published alongside each AUR package.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .models import Dependency, PackageMetadata, validate_name


logger = logging.getLogger(__name__)

_BUILD_KEYS = ("makedepends", "checkdepends")
_RUNTIME_KEYS = ("depends",)


def parse_srcinfo(text: str) -> Dict[str, Dict[str, List[str]]]:
    """Parse a .SRCINFO file into sections.

    Args:
        text: Contents of the .SRCINFO file

    Returns:
        Mapping with a ``"pkgbase"`` entry and one entry per ``pkgname``,
        each mapping keys to the list of values assigned to them
    """
    sections: Dict[str, Dict[str, List[str]]] = {}
    current: Optional[Dict[str, List[str]]] = None

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = (part.strip() for part in line.split("=", 1))
        if key == "pkgbase":
            current = sections.setdefault("pkgbase", {"pkgbase": [value]})
            continue
        if key == "pkgname":
            current = sections.setdefault(value, {"pkgname": [value]})
            continue
        if current is None:
            continue
        current.setdefault(key, []).append(value)

    return sections


def _values(section: Dict[str, List[str]], key: str, arch: str) -> List[str]:
    return section.get(key, []) + section.get(f"{key}_{arch}", [])


def srcinfo_to_metadata(
    text: str,
    name: str,
    recipe_source: str,
    arch: str = "x86_64",
) -> Optional[PackageMetadata]:
    """Build PackageMetadata for ``name`` from a .SRCINFO file.

    Values set in the package's own section override those from pkgbase.
    Returns None if the file does not describe ``name`` or lacks a version.
    Raises ValueError for an invalid dependency or package base name.
    """
    sections = parse_srcinfo(text)
    base = sections.get("pkgbase")
    if base is None:
        return None
    package = sections.get(name)
    if package is None:
        if base.get("pkgbase", [None])[0] != name:
            return None
        package = {}

    def lookup(key: str) -> List[str]:
        if key in package or f"{key}_{arch}" in package:
            return _values(package, key, arch)
        return _values(base, key, arch)

    pkgver = lookup("pkgver")
    if not pkgver:
        return None
    version = pkgver[0]
    pkgrel = lookup("pkgrel")
    if pkgrel:
        version = f"{version}-{pkgrel[0]}"
    epoch = lookup("epoch")
    if epoch and epoch[0] not in ("", "0"):
        version = f"{epoch[0]}:{version}"

    constraints: Dict[str, Dependency] = {}
    build_deps = set()
    runtime_deps = set()
    for keys, target in ((_BUILD_KEYS, build_deps), (_RUNTIME_KEYS, runtime_deps)):
        for key in keys:
            for value in lookup(key):
                dep = Dependency.parse(value)
                target.add(dep.name)
                if dep.operator is not None:
                    constraints[dep.name] = dep

    description = lookup("pkgdesc")
    return PackageMetadata(
        name=name,
        version=version,
        build_dependencies=frozenset(build_deps),
        runtime_dependencies=frozenset(runtime_deps),
        recipe_source=recipe_source,
        constraints=constraints,
        package_base=validate_name(base["pkgbase"][0]),
        description=description[0] if description else None,
    )


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def parse_pkgbuild_version(text: str) -> Optional[str]:
    """Extract ``pkgver-pkgrel`` from a PKGBUILD.

    Only literal assignments are understood. A pkgver or pkgrel computed by
    shell expansion makes the version unknowable without running the
    PKGBUILD, so None is returned.
    """
    pkgver: Optional[str] = None
    pkgrel: Optional[str] = None

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        if key not in ("pkgver", "pkgrel"):
            continue
        value = _unquote(value.strip())
        if "$" in value or "(" in value:
            logger.debug("Dynamic %s in PKGBUILD: %s", key, value)
            return None
        if key == "pkgver":
            pkgver = value
        else:
            pkgrel = value
        if pkgver is not None and pkgrel is not None:
            break

    if pkgver is None:
        return None
    if pkgrel is None:
        return pkgver
    return f"{pkgver}-{pkgrel}"

"""
Metadata clients for the AUR RPC interface and its GitHub mirror.
"""

from __future__ import annotations

import logging
import subprocess
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

import requests

from .config import Settings
from .errors import MetadataUnavailableError
from .interfaces import MetadataClient
from .models import AurPackage, Dependency, PackageMetadata, validate_name
from .srcinfo import srcinfo_to_metadata


logger = logging.getLogger(__name__)


def _chunks(items: Sequence[str], size: int) -> Iterable[Sequence[str]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


def _string_list(entry: Dict[str, Any], key: str) -> List[str]:
    value = entry.get(key) or []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise MetadataUnavailableError(f"Malformed '{key}' in metadata for {entry.get('Name')}")
    return value


def _optional_string(entry: Dict[str, Any], key: str) -> Optional[str]:
    value = entry.get(key)
    if value is not None and not isinstance(value, str):
        raise MetadataUnavailableError(f"Malformed '{key}' in metadata for {entry.get('Name')}")
    return value


def _popularity(entry: Dict[str, Any]) -> float:
    value = entry.get("Popularity") or 0.0
    if isinstance(value, bool):
        raise MetadataUnavailableError(f"Malformed 'Popularity' in metadata for {entry.get('Name')}")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise MetadataUnavailableError(
            f"Malformed 'Popularity' in metadata for {entry.get('Name')}: {value!r}"
        ) from e


class AurRpcClient(MetadataClient):
    """Client for the AUR RPC v5 interface."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None) -> None:
        self.settings = settings
        self.session = session or requests.Session()

    def lookup(self, names: Sequence[str]) -> Dict[str, Optional[PackageMetadata]]:
        wanted = sorted(set(names))
        found: Dict[str, Optional[PackageMetadata]] = {name: None for name in wanted}
        for batch in _chunks(wanted, self.settings.rpc_batch_size):
            params = [("v", "5"), ("type", "info")] + [("arg[]", name) for name in batch]
            logger.info("Fetching metadata for %s", ", ".join(batch))
            for entry in self._request(params):
                metadata = self._to_metadata(entry)
                if metadata.name in found:
                    found[metadata.name] = metadata
        return found

    def search(self, term: str) -> List[AurPackage]:
        """Search package names and descriptions, most popular first."""
        packages = []
        for entry in self._request([("v", "5"), ("type", "search"), ("arg", term)]):
            packages.append(AurPackage(
                name=_optional_string(entry, "Name") or "",
                version=_optional_string(entry, "Version"),
                description=_optional_string(entry, "Description"),
                popularity=_popularity(entry),
                maintainer=_optional_string(entry, "Maintainer"),
            ))
        packages.sort(key=lambda pkg: pkg.popularity, reverse=True)
        return packages

    def _request(self, params: List) -> List[Dict[str, Any]]:
        try:
            with self.session.get(
                self.settings.rpc_url, params=params, timeout=self.settings.request_timeout
            ) as response:
                response.raise_for_status()
                data = response.json()
        except requests.RequestException as e:
            raise MetadataUnavailableError(f"AUR RPC request failed: {e}") from e
        except ValueError as e:
            raise MetadataUnavailableError(f"AUR RPC returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise MetadataUnavailableError("AUR RPC returned an unexpected response")
        if data.get("type") == "error":
            raise MetadataUnavailableError(f"AUR RPC error: {data.get('error')}")
        results = data.get("results")
        if not isinstance(results, list) or not all(isinstance(r, dict) for r in results):
            raise MetadataUnavailableError("AUR RPC response has no results list")
        return results

    def _to_metadata(self, entry: Dict[str, Any]) -> PackageMetadata:
        name = entry.get("Name")
        version = entry.get("Version")
        if not isinstance(name, str) or not isinstance(version, str):
            raise MetadataUnavailableError(f"Malformed metadata entry: {entry!r}")
        try:
            validate_name(name)
        except ValueError as e:
            raise MetadataUnavailableError(str(e)) from e

        constraints: Dict[str, Dependency] = {}

        def collect(*keys: str) -> frozenset:
            names = set()
            for key in keys:
                for text in _string_list(entry, key):
                    try:
                        dep = Dependency.parse(text)
                    except ValueError as e:
                        raise MetadataUnavailableError(str(e)) from e
                    names.add(dep.name)
                    if dep.operator is not None:
                        constraints[dep.name] = dep
            return frozenset(names)

        runtime = collect("Depends")
        build = collect("MakeDepends", "CheckDepends")
        package_base = _optional_string(entry, "PackageBase") or name
        try:
            validate_name(package_base)
        except ValueError as e:
            raise MetadataUnavailableError(f"Invalid package base for {name}: {e}") from e
        url_path = _optional_string(entry, "URLPath") or f"/cgit/aur.git/snapshot/{package_base}.tar.gz"

        return PackageMetadata(
            name=name,
            version=version,
            build_dependencies=build,
            runtime_dependencies=runtime,
            recipe_source=f"{self.settings.aur_url}{url_path}",
            constraints=constraints,
            package_base=package_base,
            description=_optional_string(entry, "Description"),
            maintainer=_optional_string(entry, "Maintainer"),
            popularity=_popularity(entry),
        )


class MirrorClient(MetadataClient):
    """Client for the GitHub mirror of the AUR, one branch per package.

    Packages whose branch has no .SRCINFO are looked up with ``fallback``
    (normally the AUR RPC) when one is given.
    """

    def __init__(
        self,
        settings: Settings,
        session: Optional[requests.Session] = None,
        fallback: Optional[MetadataClient] = None,
    ) -> None:
        self.settings = settings
        self.session = session or requests.Session()
        self.fallback = fallback

    def lookup(self, names: Sequence[str]) -> Dict[str, Optional[PackageMetadata]]:
        wanted = sorted(set(names))
        logger.info("Fetching .SRCINFO for %s", ", ".join(wanted))
        with ThreadPoolExecutor(max_workers=self.settings.mirror_workers) as executor:
            texts = list(executor.map(lambda n: self._fetch_raw(n, ".SRCINFO"), wanted))

        found: Dict[str, Optional[PackageMetadata]] = {}
        for name, text in zip(wanted, texts):
            if text is None:
                found[name] = None
                continue
            try:
                metadata = srcinfo_to_metadata(text, name, self.recipe_source(name))
            except ValueError as e:
                raise MetadataUnavailableError(f"Malformed .SRCINFO for {name}: {e}") from e
            if metadata is None:
                raise MetadataUnavailableError(f"Malformed .SRCINFO for {name}")
            found[name] = metadata

        missing = [name for name in wanted if found[name] is None]
        if missing and self.fallback is not None:
            logger.warning(
                "No .SRCINFO on the GitHub mirror for %s; falling back to the AUR RPC",
                ", ".join(missing),
            )
            found.update(self.fallback.lookup(missing))
        return found

    def fetch_pkgbuild(self, name: str) -> Optional[str]:
        return self._fetch_raw(name, "PKGBUILD")

    def search(self, term: str) -> List[str]:
        """Mirror branch names containing ``term``, sorted."""
        cmd = ["git", "ls-remote", "--heads", self.settings.mirror_git_url]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=300)
        except (subprocess.TimeoutExpired, FileNotFoundError) as e:
            raise MetadataUnavailableError(f"git ls-remote failed: {e}") from e
        if result.returncode != 0:
            raise MetadataUnavailableError(
                f"git ls-remote failed with status {result.returncode}: {result.stderr.strip()}"
            )

        branches = []
        for line in result.stdout.splitlines():
            parts = line.split()
            if len(parts) < 2:
                continue
            branch = parts[1]
            if branch.startswith("refs/heads/"):
                branch = branch[len("refs/heads/"):]
            if term in branch:
                branches.append(branch)
        return sorted(branches)

    def recipe_source(self, name: str) -> str:
        return f"git+{self.settings.mirror_git_url}#branch={name}"

    def _fetch_raw(self, name: str, filename: str) -> Optional[str]:
        url = f"{self.settings.mirror_raw_url}/{name}/{filename}"
        try:
            with self.session.get(url, timeout=self.settings.request_timeout) as response:
                if response.status_code == 404:
                    return None
                response.raise_for_status()
                return response.text
        except requests.RequestException as e:
            raise MetadataUnavailableError(f"Failed to fetch {url}: {e}") from e


@dataclass
class MetadataCache:
    """Per-run cache in front of a metadata client."""

    client: MetadataClient
    entries: Dict[str, Optional[PackageMetadata]] = field(default_factory=dict)

    def lookup(self, names: Sequence[str]) -> Dict[str, Optional[PackageMetadata]]:
        missing = sorted({name for name in names if name not in self.entries})
        if len(missing) < len(set(names)):
            logger.debug("Cache hit: metadata for %d package(s)", len(set(names)) - len(missing))
        if missing:
            self.entries.update(self.client.lookup(missing))
        return {name: self.entries.get(name) for name in names}


def make_client(settings: Settings, session: Optional[requests.Session] = None) -> MetadataClient:
    if settings.use_mirror:
        fallback = AurRpcClient(settings, session=session) if settings.mirror_fallback else None
        return MirrorClient(settings, session=session, fallback=fallback)
    return AurRpcClient(settings, session=session)

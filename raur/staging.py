"""
Recipe staging: download or clone build recipes into the build directory.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import tarfile
from pathlib import Path
from typing import List, Optional

import requests
from tqdm import tqdm

from .config import Settings
from .errors import StagingError
from .interfaces import RecipeStager as RecipeStagerProtocol
from .models import PackageMetadata


logger = logging.getLogger(__name__)


class RecipeStager(RecipeStagerProtocol):
    """Stage AUR snapshot tarballs or mirror branches."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None) -> None:
        self.settings = settings
        self.session = session or requests.Session()

    def stage(self, metadata: PackageMetadata, workdir: Path) -> Path:
        """Stage the recipe for ``metadata`` under ``workdir``.

        Args:
            metadata: Package whose recipe should be staged
            workdir: Directory that receives one subdirectory per recipe

        Returns:
            Directory containing the PKGBUILD

        Raises:
            StagingError: The recipe could not be fetched or extracted
        """
        base = metadata.package_base or metadata.name
        workdir = Path(workdir)
        target = workdir / base
        try:
            workdir.mkdir(parents=True, exist_ok=True)
            if target.exists():
                shutil.rmtree(target)
        except OSError as e:
            raise StagingError(f"Cannot prepare {target}: {e}") from e

        source = metadata.recipe_source
        if source.startswith("git+"):
            url, _, branch = source[len("git+"):].partition("#branch=")
            self._clone(url, branch or None, target)
        else:
            self._fetch_snapshot(source, workdir, base)

        if not (target / "PKGBUILD").is_file():
            raise StagingError(f"No PKGBUILD found in staged recipe for {metadata.name}")
        return target

    def _clone(self, url: str, branch: Optional[str], target: Path) -> None:
        cmd = ["git", "clone", "--depth", "1"]
        if branch:
            cmd += ["--single-branch", "--branch", branch]
        cmd += [url, str(target)]
        logger.info("Cloning %s%s", url, f" ({branch})" if branch else "")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=600)
        except (subprocess.TimeoutExpired, FileNotFoundError) as e:
            raise StagingError(f"git clone failed: {e}") from e
        if result.returncode != 0:
            raise StagingError(f"git clone failed for {url}: {result.stderr.strip()}")

    def _fetch_snapshot(self, url: str, workdir: Path, base: str) -> None:
        archive = workdir / f"{base}.tar.gz"
        logger.info("Downloading %s", url)
        try:
            with self.session.get(url, stream=True, timeout=self.settings.request_timeout) as response:
                response.raise_for_status()
                total_size = int(response.headers.get("content-length", 0))
                with open(archive, "wb") as f:
                    with tqdm(total=total_size, unit="B", unit_scale=True, desc=base, leave=False) as pbar:
                        for chunk in response.iter_content(chunk_size=8192):
                            f.write(chunk)
                            pbar.update(len(chunk))
        except (requests.RequestException, OSError) as e:
            raise StagingError(f"Failed to download {url}: {e}") from e

        try:
            with tarfile.open(archive, "r:gz") as tar:
                root = workdir.resolve()
                for member in tar.getmembers():
                    destination = (workdir / member.name).resolve()
                    if root not in destination.parents and destination != root:
                        raise StagingError(f"Refusing to extract {member.name} outside {workdir}")
                    if member.issym() or member.islnk():
                        raise StagingError(f"Refusing to extract link {member.name}")
                tar.extractall(workdir)
        except (tarfile.TarError, OSError) as e:
            raise StagingError(f"Failed to extract {archive}: {e}") from e
        finally:
            archive.unlink(missing_ok=True)


def clean_build_dirs(build_dir: Path) -> List[Path]:
    """Remove every recipe directory (one containing a PKGBUILD) under ``build_dir``."""
    removed: List[Path] = []
    build_dir = Path(build_dir)
    if not build_dir.is_dir():
        return removed
    for entry in sorted(build_dir.iterdir()):
        if entry.is_dir() and (entry / "PKGBUILD").is_file():
            shutil.rmtree(entry)
            logger.info("Removed: %s", entry)
            removed.append(entry)
    return removed

"""
Unprivileged build step driven by makepkg.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List

from .config import Settings
from .interfaces import BuildRunner
from .process import run_to_completion


logger = logging.getLogger(__name__)


class MakepkgRunner(BuildRunner):
    """Build a staged recipe as the invoking user."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def build(self, workdir: Path) -> int:
        cmd = ["makepkg", "--noconfirm"]
        if self.settings.clean_build:
            cmd.append("--cleanbuild")
        logger.info("Building in %s", workdir)
        return run_to_completion(cmd, cwd=workdir)

    def package_list(self, workdir: Path) -> List[Path]:
        """Package files produced by the last build, debug packages excluded."""
        result = subprocess.run(
            ["makepkg", "--packagelist"],
            cwd=str(workdir),
            capture_output=True,
            text=True,
            timeout=60,
        )
        if result.returncode != 0:
            logger.warning("makepkg --packagelist failed in %s: %s", workdir, result.stderr.strip())
            return []
        artifacts = []
        for line in result.stdout.splitlines():
            path = Path(line.strip())
            if not line.strip() or "-debug-" in path.name:
                continue
            if path.exists():
                artifacts.append(path)
            else:
                logger.debug("Listed package %s was not built", path)
        return artifacts

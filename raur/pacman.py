"""
Local package database queries and the privileged pacman installer.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .config import Settings
from .errors import ConfigurationError, RaurError
from .interfaces import Installer, InstalledSetOracle
from .process import run_to_completion


logger = logging.getLogger(__name__)


def _parse_package_lines(output: str) -> Dict[str, str]:
    packages = {}
    for line in output.splitlines():
        parts = line.split()
        if len(parts) >= 2:
            packages[parts[0]] = parts[1]
    return packages


class LocalDatabase(InstalledSetOracle):
    """Installed-set queries answered by pacman."""

    def query(self, name: str) -> Optional[str]:
        result = self._pacman("-Q", "--", name)
        if result.returncode != 0:
            return None
        return _parse_package_lines(result.stdout).get(name)

    def foreign(self) -> Dict[str, str]:
        """Installed packages not found in any sync repository."""
        result = self._pacman("-Qm")
        if result.returncode != 0:
            # pacman exits non-zero with no output when nothing matches
            if result.stderr.strip():
                raise RaurError(f"pacman -Qm failed: {result.stderr.strip()}")
            return {}
        return _parse_package_lines(result.stdout)

    def in_repositories(self, name: str) -> bool:
        result = self._pacman("-Sp", "--print-format", "%n", "--", name)
        return result.returncode == 0

    def _pacman(self, *args: str) -> subprocess.CompletedProcess:
        cmd = ["pacman", *args]
        try:
            return subprocess.run(cmd, capture_output=True, text=True, timeout=30)
        except FileNotFoundError as e:
            raise ConfigurationError("pacman not found; raur only runs on Arch-based systems") from e
        except subprocess.TimeoutExpired as e:
            raise RaurError(f"{' '.join(cmd)} timed out") from e


class PacmanInstaller(Installer):
    """Install and remove packages with pacman under an elevation command.

    ``_run_privileged`` is the only place raur asks for elevated privileges.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def preflight(self) -> None:
        """Fail before any build starts if installing would be impossible."""
        if os.geteuid() == 0:
            raise ConfigurationError("Refusing to build packages as root; run raur as a regular user")
        if not self.settings.allow_elevation:
            raise ConfigurationError(
                "Installing packages requires elevated privileges, but elevation is disabled"
            )
        if shutil.which(self.settings.elevation_command) is None:
            raise ConfigurationError(
                f"Elevation command '{self.settings.elevation_command}' not found in PATH"
            )

    def install(self, artifacts: Iterable[Path], as_dependency: bool = False) -> int:
        args = ["-U", "--noconfirm"]
        if as_dependency:
            args.append("--asdeps")
        return self._run_privileged(args + ["--"] + [str(path) for path in artifacts])

    def install_repository(self, names: Iterable[str]) -> int:
        return self._run_privileged(["-S", "--needed", "--asdeps", "--noconfirm", "--", *names])

    def remove(self, names: Iterable[str]) -> int:
        args: List[str] = ["-Rns"]
        if self.settings.noconfirm:
            args.append("--noconfirm")
        return self._run_privileged(args + ["--"] + list(names))

    def _run_privileged(self, args: List[str]) -> int:
        if not self.settings.allow_elevation:
            raise ConfigurationError("Elevation is disabled")
        cmd = [self.settings.elevation_command, "pacman", *args]
        logger.info("Running: %s", " ".join(cmd))
        return run_to_completion(cmd)

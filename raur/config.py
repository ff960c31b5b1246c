"""
Runtime settings.
"""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass, field, replace
from pathlib import Path


def _default_build_dir() -> Path:
    override = os.environ.get("RAUR_BUILD_DIR")
    if override:
        return Path(override).expanduser()
    cache_home = os.environ.get("XDG_CACHE_HOME") or Path.home() / ".cache"
    return Path(cache_home) / "raur"


@dataclass(frozen=True)
class Settings:
    """Settings shared by the metadata clients, stager and orchestrator."""

    aur_url: str = "https://aur.archlinux.org"
    rpc_url: str = "https://aur.archlinux.org/rpc/"
    mirror_git_url: str = "https://github.com/archlinux/aur.git"
    mirror_raw_url: str = "https://raw.githubusercontent.com/archlinux/aur"
    use_mirror: bool = False
    mirror_fallback: bool = True
    build_dir: Path = field(default_factory=_default_build_dir)
    elevation_command: str = "sudo"
    allow_elevation: bool = True
    rpc_batch_size: int = 100
    mirror_workers: int = 8
    request_timeout: float = 30.0
    keep_build_dirs: bool = False
    clean_build: bool = False
    noconfirm: bool = False

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "Settings":
        """Overlay command-line flags on the defaults."""
        settings = cls()
        overrides = {}
        if getattr(args, "github", False):
            overrides["use_mirror"] = True
        if getattr(args, "build_dir", None):
            overrides["build_dir"] = Path(args.build_dir).expanduser()
        if getattr(args, "no_elevation", False):
            overrides["allow_elevation"] = False
        if getattr(args, "keep", False):
            overrides["keep_build_dirs"] = True
        if getattr(args, "cleanbuild", False):
            overrides["clean_build"] = True
        if getattr(args, "noconfirm", False):
            overrides["noconfirm"] = True
        return replace(settings, **overrides)

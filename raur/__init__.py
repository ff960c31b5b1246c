"""
raur - a simple AUR helper

Resolves AUR packages together with their dependencies, builds them with
makepkg and installs the results with pacman.
"""

__version__ = "0.1.0"

from .cli import main

__all__ = ["main"]

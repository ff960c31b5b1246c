"""
Detection of installed AUR packages with newer versions available.
"""

from __future__ import annotations

import logging
from typing import List, Tuple

from .interfaces import InstalledSetOracle, MetadataClient
from .models import is_debug_package
from .version import compare


logger = logging.getLogger(__name__)


def find_updates(oracle: InstalledSetOracle, client: MetadataClient) -> List[Tuple[str, str, str]]:
    """Find foreign packages whose AUR version is newer than the installed one.

    Args:
        oracle: Local package database
        client: Metadata client used to fetch the current AUR versions

    Returns:
        Sorted list of (name, installed version, available version)
    """
    installed = {
        name: version
        for name, version in oracle.foreign().items()
        if not is_debug_package(name)
    }
    if not installed:
        return []

    remote = client.lookup(sorted(installed))
    updates = []
    for name in sorted(installed):
        metadata = remote.get(name)
        if metadata is None:
            logger.warning("%s is not in the AUR; skipping", name)
            continue
        if compare(metadata.version, installed[name]) > 0:
            updates.append((name, installed[name], metadata.version))
        elif compare(metadata.version, installed[name]) < 0:
            logger.debug("%s %s is newer than the AUR (%s)", name, installed[name], metadata.version)
    return updates

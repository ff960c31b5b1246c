"""
Blocking subprocess helper for build and install commands.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Optional, Sequence

from .errors import InterruptedRun


logger = logging.getLogger(__name__)


def run_to_completion(cmd: Sequence[str], cwd: Optional[Path] = None) -> int:
    """Run ``cmd`` with inherited output and wait for it to exit.

    The child runs in its own session so a terminal interrupt is delivered
    only to us. An interrupt received while waiting does not stop the child;
    once it exits, InterruptedRun is raised carrying its exit status.

    Returns:
        The exit status of the command
    """
    logger.debug("Running: %s", " ".join(cmd))
    proc = subprocess.Popen(list(cmd), cwd=str(cwd) if cwd else None, start_new_session=True)
    interrupted = False
    while True:
        try:
            status = proc.wait()
            break
        except KeyboardInterrupt:
            interrupted = True
            logger.warning("Interrupt received, waiting for %s to finish", cmd[0])
    if interrupted:
        raise InterruptedRun(status)
    return status

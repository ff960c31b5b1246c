"""
Build orchestration: stage, build and install each planned package in order.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Callable, Dict

from .config import Settings
from .errors import InterruptedRun, StagingError
from .interfaces import BuildRunner, InstalledSetOracle, Installer, RecipeStager
from .models import BuildPlan, BuildReport, BuildResult, Outcome
from .version import compare


logger = logging.getLogger(__name__)


class BuildOrchestrator:
    """Execute a build plan one package at a time.

    The build step always runs as the invoking user. Only the installer is
    allowed to elevate, and only after a successful build.
    """

    def __init__(
        self,
        oracle: InstalledSetOracle,
        stager: RecipeStager,
        runner: BuildRunner,
        installer: Installer,
        settings: Settings,
    ) -> None:
        self.oracle = oracle
        self.stager = stager
        self.runner = runner
        self.installer = installer
        self.settings = settings
        self.cancelled = False

    def execute(self, plan: BuildPlan, needed: bool = True) -> BuildReport:
        """Build and install every entry of ``plan``.

        Args:
            plan: Plan produced by the planner
            needed: Requested packages that are already installed at the
                planned version count as satisfied instead of being rebuilt

        Returns:
            BuildReport with one result per plan entry, in plan order

        Raises:
            ConfigurationError: Installing is impossible as configured; raised
                before anything is built
        """
        self.installer.preflight()
        report = BuildReport()
        skipped: Dict[str, str] = {}

        if plan.repository_packages:
            logger.info("Installing repository dependencies: %s", " ".join(plan.repository_packages))
            status = self._wait(self.installer.install_repository, plan.repository_packages)
            if status != 0:
                reason = f"repository dependencies failed to install (status {status})"
                for name in plan.order:
                    report.add(self._record(BuildResult(name, Outcome.SKIPPED, reason)))
                return report

        for name in plan.order:
            if self.cancelled:
                report.add(self._record(BuildResult(name, Outcome.SKIPPED, "run cancelled")))
                continue
            if name in skipped:
                report.add(self._record(BuildResult(name, Outcome.SKIPPED, skipped[name])))
                continue

            try:
                result = self._process(plan, name, needed)
            except KeyboardInterrupt:
                self.cancelled = True
                result = BuildResult(name, Outcome.SKIPPED, "run cancelled")
            report.add(self._record(result))

            if result.outcome is Outcome.FAILED:
                for dependent in plan.dependents_of(name):
                    skipped.setdefault(dependent, f"dependency failed: {name}")

        return report

    def _process(self, plan: BuildPlan, name: str, needed: bool) -> BuildResult:
        metadata = plan.metadata[name]

        installed = self.oracle.query(name)
        if installed is not None and (needed or name not in plan.roots):
            if compare(installed, metadata.version) >= 0:
                return BuildResult(name, Outcome.ALREADY_SATISFIED, f"{installed} is installed")

        try:
            workdir = self.stager.stage(metadata, self.settings.build_dir)
        except StagingError as e:
            return BuildResult(name, Outcome.FAILED, f"staging failed: {e}")

        try:
            status = self._wait(self.runner.build, workdir)
            if self.cancelled:
                return BuildResult(name, Outcome.SKIPPED, "run cancelled")
            if status != 0:
                return BuildResult(name, Outcome.FAILED, f"makepkg exited with status {status}")

            artifacts = self.runner.package_list(workdir)
            if not artifacts:
                return BuildResult(name, Outcome.FAILED, "makepkg produced no packages")

            status = self._wait(self.installer.install, artifacts, name not in plan.roots)
            if status != 0:
                return BuildResult(name, Outcome.FAILED, f"pacman exited with status {status}")
        except (OSError, subprocess.SubprocessError) as e:
            return BuildResult(name, Outcome.FAILED, str(e))

        if not self.settings.keep_build_dirs:
            shutil.rmtree(workdir, ignore_errors=True)
        return BuildResult(name, Outcome.BUILT)

    def _wait(self, step: Callable[..., int], *args) -> int:
        try:
            return step(*args)
        except InterruptedRun as e:
            logger.warning("Stopping after the current step")
            self.cancelled = True
            return e.status

    @staticmethod
    def _record(result: BuildResult) -> BuildResult:
        if result.outcome is Outcome.FAILED:
            logger.error("%s: failed (%s)", result.name, result.reason)
        elif result.outcome is Outcome.SKIPPED:
            logger.warning("%s: skipped (%s)", result.name, result.reason)
        else:
            logger.info("%s: %s", result.name, result.outcome.value.replace("_", " "))
        return result

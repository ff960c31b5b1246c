"""
Command-line interface for raur.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .aur_client import AurRpcClient, MetadataCache, MirrorClient, make_client
from .builder import BuildOrchestrator
from .config import Settings
from .errors import RaurError
from .makepkg import MakepkgRunner
from .models import is_debug_package, validate_name
from .pacman import LocalDatabase, PacmanInstaller
from .planner import plan
from .reporting import export_report_csv, print_summary, save_report_json
from .resolver import DependencyResolver
from .srcinfo import parse_pkgbuild_version
from .staging import RecipeStager, clean_build_dirs
from .updates import find_updates


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_ERROR = 2


def prompt_yes(question: str, noconfirm: bool = False) -> bool:
    """Ask a yes/no question; an empty answer means yes."""
    if noconfirm:
        return True
    try:
        answer = input(f"{question} [Y/n] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("", "y", "yes")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="raur",
        description="Simple AUR helper: resolve, build and install AUR packages",
    )
    parser.add_argument(
        "--github",
        action="store_true",
        help="Use the GitHub mirror of the AUR instead of the AUR RPC",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--build-dir",
        default=None,
        help="Directory recipes are staged and built in. Default: ~/.cache/raur",
    )
    parser.add_argument(
        "--no-elevation",
        action="store_true",
        help="Never request elevated privileges; installs will be refused",
    )

    subparsers = parser.add_subparsers(dest="command", metavar="command")

    search = subparsers.add_parser("search", help="Search AUR packages")
    search.add_argument("query")

    for name, aliases, help_text in (
        ("install", ["i"], "Install AUR packages with their dependencies"),
        ("update", ["u"], "Update installed AUR packages"),
    ):
        sub = subparsers.add_parser(name, aliases=aliases, help=help_text)
        if name == "install":
            sub.add_argument("packages", nargs="+")
            sub.add_argument(
                "--needed",
                action="store_true",
                help="Do not rebuild requested packages that are already installed",
            )
        sub.add_argument("--noconfirm", action="store_true", help="Do not ask for confirmation")
        sub.add_argument("--keep", action="store_true", help="Keep build directories after installing")
        sub.add_argument("--cleanbuild", action="store_true", help="Remove $srcdir before building")
        sub.add_argument(
            "--report-dir",
            default=None,
            help="Write the build report as JSON and CSV into this directory",
        )

    info = subparsers.add_parser("info", help="Show package information")
    info.add_argument("package")

    subparsers.add_parser("clean", help="Clean build directories")

    uninstall = subparsers.add_parser("uninstall", aliases=["r"], help="Uninstall packages")
    uninstall.add_argument("packages", nargs="+")
    uninstall.add_argument("--noconfirm", action="store_true", help="Do not ask for confirmation")

    return parser


def cmd_search(args: argparse.Namespace, settings: Settings) -> int:
    if settings.use_mirror:
        logger.info("Searching GitHub mirror for '%s'", args.query)
        branches = MirrorClient(settings).search(args.query)
        print(f"\nFound {len(branches)} packages (github mirror):")
        for branch in branches:
            print(f"\n{branch}")
        return EXIT_OK

    packages = AurRpcClient(settings).search(args.query)
    print(f"\nFound {len(packages)} packages:")
    for pkg in packages:
        print(f"\n{pkg.name} {pkg.version or ''}")
        if pkg.description:
            print(f"  {pkg.description}")
        print(f"  Popularity: {pkg.popularity:.2f}")
    return EXIT_OK


def cmd_info(args: argparse.Namespace, settings: Settings) -> int:
    name = validate_name(args.package)
    client = make_client(settings)
    metadata = client.lookup([name]).get(name)
    if metadata is None:
        if isinstance(client, MirrorClient):
            pkgbuild = client.fetch_pkgbuild(name)
            version = parse_pkgbuild_version(pkgbuild) if pkgbuild else None
            if version:
                print(f"\nPackage: {name} (from github mirror)")
                print(f"Version (from PKGBUILD): {version}")
                print("Note: no .SRCINFO found; dependencies are unknown.")
                return EXIT_OK
        logger.error("Package '%s' not found", name)
        return EXIT_FAILED

    print(f"\nPackage: {metadata.name}")
    print(f"Version: {metadata.version}")
    if not metadata.recipe_source.startswith("git+"):
        print(f"Maintainer: {metadata.maintainer or 'None'}")
        print(f"Popularity: {metadata.popularity:.2f}")
    if metadata.description:
        print(f"\nDescription:\n  {metadata.description}")
    for title, deps in (
        ("Dependencies", metadata.runtime_dependencies),
        ("Build Dependencies", metadata.build_dependencies),
    ):
        if deps:
            print(f"\n{title}:")
            for dep in sorted(deps):
                print(f"  - {metadata.requirement_for(dep)}")
    return EXIT_OK


def _build(
    names: List[str],
    args: argparse.Namespace,
    settings: Settings,
    needed: bool,
    client: Optional[MetadataCache] = None,
) -> int:
    oracle = LocalDatabase()
    resolver = DependencyResolver(client or MetadataCache(make_client(settings)), oracle)
    graph = resolver.resolve(names, needed=needed)
    build_plan = plan(graph)

    if not build_plan.order:
        logger.info("Nothing to do; all requested packages are installed")
        return EXIT_OK

    logger.info("Packages to build (%d): %s", len(build_plan), " ".join(build_plan.order))
    if build_plan.repository_packages:
        logger.info("Repository dependencies: %s", " ".join(build_plan.repository_packages))
    if not prompt_yes("Proceed?", settings.noconfirm):
        logger.info("Aborted")
        return EXIT_FAILED

    orchestrator = BuildOrchestrator(
        oracle=oracle,
        stager=RecipeStager(settings),
        runner=MakepkgRunner(settings),
        installer=PacmanInstaller(settings),
        settings=settings,
    )
    report = orchestrator.execute(build_plan, needed=needed)
    print_summary(report)

    if getattr(args, "report_dir", None):
        output_dir = Path(args.report_dir)
        label = "-".join(sorted(names))[:60]
        logger.info("Report saved to: %s", save_report_json(report, output_dir, label))
        export_report_csv(report, output_dir, label)

    return EXIT_OK if report.succeeded else EXIT_FAILED


def cmd_install(args: argparse.Namespace, settings: Settings) -> int:
    names = []
    for name in args.packages:
        if is_debug_package(name):
            logger.info("Skipping debug package install request: %s", name)
            continue
        names.append(name)
    if not names:
        return EXIT_OK
    return _build(names, args, settings, needed=args.needed)


def cmd_update(args: argparse.Namespace, settings: Settings) -> int:
    logger.info("Checking for updates...")
    client = MetadataCache(make_client(settings))
    updates = find_updates(LocalDatabase(), client)
    if not updates:
        logger.info("All AUR packages are up-to-date")
        return EXIT_OK

    for name, installed, available in updates:
        logger.info("  %s %s -> %s", name, installed, available)
    logger.info("Updating %d package(s)...", len(updates))
    return _build([name for name, _, _ in updates], args, settings, needed=False, client=client)


def cmd_clean(args: argparse.Namespace, settings: Settings) -> int:
    logger.info("Cleaning build directories in %s...", settings.build_dir)
    removed = clean_build_dirs(settings.build_dir)
    logger.info("Removed %d build director%s", len(removed), "y" if len(removed) == 1 else "ies")
    return EXIT_OK


def cmd_uninstall(args: argparse.Namespace, settings: Settings) -> int:
    names = [
        name for name in map(validate_name, args.packages)
        if prompt_yes(f"Really uninstall {name}?", settings.noconfirm)
    ]
    if not names:
        return EXIT_OK
    status = PacmanInstaller(settings).remove(names)
    if status != 0:
        logger.error("Failed to remove %s", " ".join(names))
        return EXIT_FAILED
    logger.info("Successfully removed %s", " ".join(names))
    return EXIT_OK


COMMANDS = {
    "search": cmd_search,
    "install": cmd_install,
    "i": cmd_install,
    "update": cmd_update,
    "u": cmd_update,
    "info": cmd_info,
    "clean": cmd_clean,
    "uninstall": cmd_uninstall,
    "r": cmd_uninstall,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s" if not args.verbose else "%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_usage(sys.stderr)
        print("error: 'raur' requires a subcommand but one was not provided", file=sys.stderr)
        return EXIT_ERROR

    settings = Settings.from_args(args)
    try:
        return COMMANDS[args.command](args, settings)
    except (RaurError, ValueError) as e:
        logger.error("error: %s", e)
        return EXIT_ERROR
    except KeyboardInterrupt:
        logger.error("Interrupted")
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())

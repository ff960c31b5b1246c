#!/usr/bin/env python3
"""
Example script showing how to use raur as a library.

None of these examples build or install anything; they only query the AUR
and the local pacman database.
"""

from raur.aur_client import AurRpcClient, MetadataCache, make_client
from raur.config import Settings
from raur.pacman import LocalDatabase
from raur.planner import plan
from raur.resolver import DependencyResolver
from raur.updates import find_updates


def example_search():
    """Example: Search the AUR."""
    print("="*60)
    print("Example 1: Search")
    print("="*60)

    packages = AurRpcClient(Settings()).search("aur helper")
    for pkg in packages[:5]:
        print(f"{pkg.name:<30} {pkg.version or '':<20} {pkg.popularity:.2f}")


def example_build_plan(package="yay"):
    """Example: Resolve dependencies and print the build order."""
    print("\n" + "="*60)
    print(f"Example 2: Build plan for {package}")
    print("="*60)

    settings = Settings()
    resolver = DependencyResolver(MetadataCache(make_client(settings)), LocalDatabase())
    graph = resolver.resolve([package], needed=False)
    build_plan = plan(graph)

    print(f"\nBuild order: {' -> '.join(build_plan.order)}")
    print(f"Already satisfied: {', '.join(graph.satisfied()) or 'none'}")
    print(f"From repositories: {', '.join(build_plan.repository_packages) or 'none'}")


def example_mirror_plan(package="yay"):
    """Example: Same plan, using the GitHub mirror for metadata."""
    print("\n" + "="*60)
    print(f"Example 3: Build plan for {package} (GitHub mirror)")
    print("="*60)

    settings = Settings(use_mirror=True)
    resolver = DependencyResolver(make_client(settings), LocalDatabase())
    build_plan = plan(resolver.resolve([package], needed=False))
    print(f"\nBuild order: {' -> '.join(build_plan.order)}")


def example_updates():
    """Example: List available updates for installed AUR packages."""
    print("\n" + "="*60)
    print("Example 4: Available updates")
    print("="*60)

    updates = find_updates(LocalDatabase(), make_client(Settings()))
    for name, installed, available in updates:
        print(f"{name}: {installed} -> {available}")
    if not updates:
        print("All AUR packages are up-to-date")


if __name__ == "__main__":
    import logging
    import sys

    from raur.errors import RaurError

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    print("raur - Example Usage")
    print("="*60)
    print("\nNOTE: These examples require network access and an Arch-based system.")

    try:
        example_search()
        example_build_plan()
        # example_mirror_plan()
        example_updates()
    except RaurError as e:
        print(f"\nError running examples: {e}", file=sys.stderr)
        sys.exit(1)

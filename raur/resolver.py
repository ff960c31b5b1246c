"""
Dependency graph construction for requested packages.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, Set, Tuple

from .aur_client import MetadataCache
from .errors import CycleError, MissingDependencyError, PackageNotFoundError
from .interfaces import InstalledSetOracle, MetadataClient
from .models import DependencyGraph, DependencyNode, NodeState, validate_name


logger = logging.getLogger(__name__)


class DependencyResolver:
    """Expand requested packages into a graph of packages to build."""

    def __init__(self, client: MetadataClient, oracle: InstalledSetOracle) -> None:
        """Initialize the resolver.

        Args:
            client: Metadata client, wrapped in a per-run cache if needed
            oracle: Local package database
        """
        self.metadata = client if isinstance(client, MetadataCache) else MetadataCache(client)
        self.oracle = oracle

    def resolve(self, root_names: Iterable[str], needed: bool = True) -> DependencyGraph:
        """Resolve the transitive build requirements of ``root_names``.

        Args:
            root_names: Packages requested by the user
            needed: Treat requested packages that are already installed as
                satisfied instead of rebuilding them

        Returns:
            Graph whose RESOLVED nodes must be built and whose SATISFIED
            nodes are already met by the local system or its repositories

        Raises:
            PackageNotFoundError: A requested package does not exist
            MissingDependencyError: A dependency does not exist anywhere
            CycleError: The dependencies form a cycle
            MetadataUnavailableError: Metadata could not be fetched
        """
        roots = frozenset(validate_name(name) for name in root_names)
        graph = DependencyGraph(roots=roots)
        for name in roots:
            graph.nodes[name] = DependencyNode(name=name)

        logger.info("Resolving dependencies for %s", ", ".join(sorted(roots)))
        frontier = sorted(roots)
        while frontier:
            frontier = self._expand(graph, frontier, needed)

        self._check_cycles(graph)
        logger.info(
            "Resolved %d package(s) to build, %d already satisfied",
            len(graph.to_build()),
            len(graph.satisfied()),
        )
        return graph

    def _expand(self, graph: DependencyGraph, frontier: List[str], needed: bool) -> List[str]:
        """Resolve one frontier and return the next one."""
        to_lookup: List[str] = []
        for name in frontier:
            node = graph.nodes[name]
            installed = self.oracle.query(name)
            if installed is not None and self._installed_satisfies(graph, node, installed, needed):
                logger.debug("%s %s is already installed", name, installed)
                node.state = NodeState.SATISFIED
                node.installed_version = installed
                continue
            to_lookup.append(name)

        if not to_lookup:
            return []

        results = self.metadata.lookup(to_lookup)
        missing_roots: List[str] = []
        next_frontier: Set[str] = set()

        for name in to_lookup:
            node = graph.nodes[name]
            metadata = results.get(name)
            if metadata is None:
                if name in graph.roots:
                    missing_roots.append(name)
                elif self.oracle.in_repositories(name):
                    logger.debug("%s is provided by the sync repositories", name)
                    node.state = NodeState.SATISFIED
                    node.from_repository = True
                else:
                    raise MissingDependencyError(name, node.dependents)
                continue

            node.metadata = metadata
            node.state = NodeState.RESOLVED
            for dep in sorted(metadata.dependencies):
                if dep not in graph:
                    graph.nodes[dep] = DependencyNode(name=dep, dependents={name})
                    next_frontier.add(dep)
                    continue
                dep_node = graph[dep]
                dep_node.dependents.add(name)
                if (
                    dep_node.state is NodeState.SATISFIED
                    and not dep_node.from_repository
                    and not metadata.requirement_for(dep).satisfied_by(dep_node.installed_version)
                ):
                    logger.info(
                        "%s %s does not satisfy %s, rebuilding",
                        dep, dep_node.installed_version, metadata.requirement_for(dep),
                    )
                    dep_node.state = NodeState.PENDING
                    dep_node.installed_version = None
                    next_frontier.add(dep)

        if missing_roots:
            raise PackageNotFoundError(missing_roots)
        return sorted(next_frontier)

    def _installed_satisfies(
        self, graph: DependencyGraph, node: DependencyNode, installed: str, needed: bool
    ) -> bool:
        if node.name in graph.roots and not needed:
            return False
        for dependent in node.dependents:
            metadata = graph.nodes[dependent].metadata
            if metadata is not None and not metadata.requirement_for(node.name).satisfied_by(installed):
                return False
        return True

    def _check_cycles(self, graph: DependencyGraph) -> None:
        """Walk the packages to build and fail on the first cycle found.

        Nodes on the active path are marked RESOLVING and returned to
        RESOLVED once all of their dependencies have been walked.
        """
        done: Set[str] = set()
        for start in graph.to_build():
            if start in done:
                continue
            path: List[str] = []
            stack: List[Tuple[str, Iterator[str]]] = []

            def enter(name: str) -> None:
                graph.nodes[name].state = NodeState.RESOLVING
                path.append(name)
                deps = [
                    dep for dep in graph.dependencies_of(name)
                    if graph.nodes[dep].state in (NodeState.RESOLVED, NodeState.RESOLVING)
                ]
                stack.append((name, iter(deps)))

            enter(start)
            while stack:
                name, deps = stack[-1]
                dep = next(deps, None)
                if dep is None:
                    stack.pop()
                    path.pop()
                    graph.nodes[name].state = NodeState.RESOLVED
                    done.add(name)
                    continue
                if dep in done:
                    continue
                if graph.nodes[dep].state is NodeState.RESOLVING:
                    cycle = path[path.index(dep):] + [dep]
                    for on_path in path:
                        graph.nodes[on_path].state = NodeState.RESOLVED
                    raise CycleError(cycle)
                enter(dep)


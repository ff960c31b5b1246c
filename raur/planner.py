"""
Build ordering for a resolved dependency graph.
"""

from __future__ import annotations

import heapq
import logging
from typing import Dict, FrozenSet, List, Set

from .errors import PlanCycleError
from .models import BuildPlan, DependencyGraph


logger = logging.getLogger(__name__)


def plan(graph: DependencyGraph) -> BuildPlan:
    """Order the packages to build so dependencies come first.

    Only RESOLVED nodes are planned; satisfied nodes need no build. Among
    packages that are ready at the same time, the lexically smallest name
    is built first.

    Args:
        graph: Graph returned by the resolver

    Returns:
        BuildPlan in build order

    Raises:
        PlanCycleError: The packages to build cannot be ordered
    """
    to_build = graph.to_build()
    members = set(to_build)

    requires: Dict[str, FrozenSet[str]] = {}
    dependents: Dict[str, Set[str]] = {name: set() for name in to_build}
    for name in to_build:
        deps = frozenset(dep for dep in graph.dependencies_of(name) if dep in members)
        requires[name] = deps
        for dep in deps:
            dependents[dep].add(name)

    remaining = {name: len(deps) for name, deps in requires.items()}
    ready = [name for name, count in remaining.items() if count == 0]
    heapq.heapify(ready)

    order: List[str] = []
    while ready:
        name = heapq.heappop(ready)
        order.append(name)
        for dependent in dependents[name]:
            remaining[dependent] -= 1
            if remaining[dependent] == 0:
                heapq.heappush(ready, dependent)

    if len(order) != len(to_build):
        raise PlanCycleError(name for name in to_build if name not in order)

    logger.debug("Build order: %s", " ".join(order))
    return BuildPlan(
        order=tuple(order),
        requires=requires,
        metadata={name: graph.nodes[name].metadata for name in order},
        roots=frozenset(graph.roots),
        repository_packages=tuple(graph.repository_packages()),
    )

"""Tests for build ordering."""

import pytest

from raur.errors import PlanCycleError
from raur.models import DependencyGraph, DependencyNode, NodeState
from raur.planner import plan
from raur.resolver import DependencyResolver

from conftest import FakeClient, FakeOracle, make_metadata


def resolved(packages, roots, installed=None, repositories=()):
    resolver = DependencyResolver(FakeClient(packages), FakeOracle(installed, repositories))
    return resolver.resolve(roots)


def test_dependencies_come_first():
    graph = resolved(
        [
            make_metadata("p", depends=["q", "r"]),
            make_metadata("q", depends=["s"]),
            make_metadata("r"),
            make_metadata("s"),
        ],
        ["p"],
        installed={"s": "1.0-1"},
    )

    build_plan = plan(graph)

    assert build_plan.order == ("q", "r", "p")
    assert build_plan.requires["p"] == frozenset({"q", "r"})
    assert build_plan.requires["q"] == frozenset()
    assert build_plan.roots == frozenset({"p"})
    assert "s" not in build_plan.metadata


def test_all_resolved_order():
    packages = [
        make_metadata("p", depends=["q", "r"]),
        make_metadata("q", depends=["s"]),
        make_metadata("r"),
        make_metadata("s"),
    ]

    build_plan = plan(resolved(packages, ["p"]))

    assert build_plan.order == ("r", "s", "q", "p")
    assert list(build_plan) == ["r", "s", "q", "p"]
    assert len(build_plan) == 4


def test_plan_is_deterministic():
    packages = [make_metadata(name) for name in ("zeta", "alpha", "mid")]
    orders = {plan(resolved(packages, ["zeta", "mid", "alpha"])).order for _ in range(5)}

    assert orders == {("alpha", "mid", "zeta")}


def test_repository_packages_are_listed_not_built():
    graph = resolved(
        [make_metadata("p", makedepends=["cmake", "q"]), make_metadata("q")],
        ["p"],
        repositories=["cmake"],
    )

    build_plan = plan(graph)

    assert build_plan.order == ("q", "p")
    assert build_plan.repository_packages == ("cmake",)


def test_cycle_in_graph_is_rejected():
    graph = DependencyGraph(roots=frozenset({"a"}))
    graph.nodes["a"] = DependencyNode(
        name="a", state=NodeState.RESOLVED, metadata=make_metadata("a", depends=["b"])
    )
    graph.nodes["b"] = DependencyNode(
        name="b", state=NodeState.RESOLVED, metadata=make_metadata("b", depends=["a"])
    )
    graph.nodes["c"] = DependencyNode(name="c", state=NodeState.RESOLVED, metadata=make_metadata("c"))

    with pytest.raises(PlanCycleError) as excinfo:
        plan(graph)

    assert excinfo.value.names == ["a", "b"]


def test_empty_graph_gives_empty_plan():
    graph = resolved([make_metadata("p")], ["p"], installed={"p": "1.0-1"})

    build_plan = plan(graph)

    assert build_plan.order == ()
    assert len(build_plan) == 0

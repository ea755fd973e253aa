# tests/test_framework.py
"""
Tests for the pluggable analysis contract.
"""

from guaranteed_defs.flowgraph import FlowGraph
from guaranteed_defs.framework import (
    Confluence,
    FlowProblem,
    PointGraph,
    check_monotonicity,
)
from guaranteed_defs.gen import compute_gen_sets
from guaranteed_defs.guaranteed_defs import GuaranteedDefsProblem


class _DropEverything:
    """A transfer that is not monotone: it empties any non-empty input."""

    confluence = Confluence.JOIN

    def __init__(self, universe):
        self.universe = universe

    def entry_initial_flow(self):
        return self.universe.empty()

    def new_initial_flow(self):
        return self.universe.empty()

    def merge(self, a, b):
        return a | b

    def flow_through(self, point, in_value):
        return self.universe.full() if in_value.is_empty() else self.universe.empty()

    def equal(self, a, b):
        return a == b


class TestProtocols:

    def test_guaranteed_defs_problem_is_a_flow_problem(self, straight_line):
        gen = compute_gen_sets(straight_line.graph)
        assert isinstance(GuaranteedDefsProblem(gen.universe, gen), FlowProblem)
        assert GuaranteedDefsProblem.confluence is Confluence.MEET

    def test_plain_object_is_not_a_flow_problem(self):
        assert not isinstance(object(), FlowProblem)

    def test_flow_graph_is_a_point_graph(self):
        assert isinstance(FlowGraph("g"), PointGraph)


class TestCheckMonotonicity:

    def _samples(self, universe):
        members = list(universe)
        samples = [universe.empty(), universe.full()]
        samples += [universe.singleton(v) for v in members]
        return samples

    def test_guaranteed_defs_transfer_is_monotone(self, counting_loop):
        gen = compute_gen_sets(counting_loop.graph)
        problem = GuaranteedDefsProblem(gen.universe, gen)
        samples = self._samples(gen.universe)
        for point in counting_loop.graph:
            assert check_monotonicity(
                problem, point, samples, lambda a, b: a <= b
            )

    def test_detects_violation(self, counting_loop):
        gen = compute_gen_sets(counting_loop.graph)
        problem = _DropEverything(gen.universe)
        samples = self._samples(gen.universe)
        assert not check_monotonicity(
            problem, counting_loop.init, samples, lambda a, b: a <= b
        )

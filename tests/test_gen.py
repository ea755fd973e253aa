# tests/test_gen.py
"""
Tests for GEN-set precomputation.
"""

import pytest

from guaranteed_defs.errors import InvalidPointError
from guaranteed_defs.flowgraph import (
    ArrayRef,
    AssignStmt,
    Constant,
    FieldRef,
    FlowGraph,
    IdentityStmt,
    InvokeExpr,
    InvokeStmt,
    Local,
    NopStmt,
    build_flow_graph,
)
from guaranteed_defs.gen import (
    GenSetTable,
    collect_universe,
    compute_gen_sets,
    generated_set,
)


class TestGeneratedSet:

    def test_local_assignment(self, straight_line):
        g = straight_line
        universe = collect_universe(g.graph)
        assert generated_set(g.a, universe).to_tuple() == (g.x,)

    def test_non_definition(self, straight_line):
        g = straight_line
        universe = collect_universe(g.graph)
        assert generated_set(g.entry, universe).is_empty()
        assert generated_set(g.b, universe).is_empty()

    def test_identity_statement(self, x):
        graph = build_flow_graph("f", [IdentityStmt(x, "@this: Foo")])
        gen = compute_gen_sets(graph)
        assert gen[graph.points[0]].to_tuple() == (x,)

    @pytest.mark.parametrize(
        "target",
        [
            FieldRef(Local("o"), "f"),
            FieldRef(None, "Counter.count"),
            ArrayRef(Local("arr"), Constant(0)),
        ],
        ids=["instance-field", "static-field", "array-element"],
    )
    def test_compound_targets_generate_nothing(self, target):
        graph = build_flow_graph("f", [AssignStmt(target, Constant(1))])
        gen = compute_gen_sets(graph)
        assert gen[graph.points[0]].is_empty()

    def test_invoke_generates_nothing(self, x):
        graph = build_flow_graph("f", [InvokeStmt(InvokeExpr("g", (x,)))])
        assert compute_gen_sets(graph)[graph.points[0]].is_empty()


class TestCollectUniverse:

    def test_declared_locals(self, diamond):
        assert list(collect_universe(diamond.graph)) == [diamond.x]

    def test_undeclared_targets_are_appended(self, x):
        z = Local("z")
        graph = FlowGraph("g", [x])
        graph.add_point(AssignStmt(z, Constant(1)))
        assert list(collect_universe(graph)) == [x, z]

    def test_declared_but_never_defined(self, x, y):
        graph = FlowGraph("g", [x, y])
        graph.add_point(AssignStmt(x, Constant(1)))
        universe = collect_universe(graph)
        assert list(universe) == [x, y]


class TestGenSetTable:

    def test_one_entry_per_point(self, counting_loop):
        gen = compute_gen_sets(counting_loop.graph)
        assert len(gen) == len(counting_loop.graph)
        assert set(gen) == set(counting_loop.graph)

    def test_at_most_singleton(self, counting_loop):
        gen = compute_gen_sets(counting_loop.graph)
        assert all(len(s) <= 1 for s in gen.values())

    def test_defined_locals(self, counting_loop):
        g = counting_loop
        gen = compute_gen_sets(g.graph)
        assert gen.defined_locals() == (g.i, g.t)

    def test_foreign_point(self, straight_line, diamond):
        gen = compute_gen_sets(straight_line.graph)
        with pytest.raises(InvalidPointError):
            gen[diamond.c]

    def test_table_is_read_only(self, straight_line):
        gen = compute_gen_sets(straight_line.graph)
        with pytest.raises(TypeError):
            gen[straight_line.a] = gen.universe.empty()

    def test_shares_the_given_universe(self, straight_line):
        universe = collect_universe(straight_line.graph)
        gen = GenSetTable(straight_line.graph, universe)
        assert gen.universe is universe
        assert gen[straight_line.a].universe is universe

    def test_repr(self, diamond):
        assert repr(compute_gen_sets(diamond.graph)) == (
            "GenSetTable(points=4, definitions=1)"
        )

    def test_empty_graph_has_empty_table(self):
        gen = compute_gen_sets(FlowGraph("empty"))
        assert len(gen) == 0
        assert gen.defined_locals() == ()

    def test_nop_only(self):
        graph = FlowGraph("g")
        graph.add_point(NopStmt())
        assert compute_gen_sets(graph).defined_locals() == ()

# tests/conftest.py
"""
Shared flow-graph fixtures.

Each fixture returns a ``SimpleNamespace`` holding the graph, its points
under short names and the locals involved, so tests can refer to
``g.entry``, ``g.a``, ``g.x`` and so on.
"""

from types import SimpleNamespace

import pytest

from guaranteed_defs.flowgraph import (
    AssignStmt,
    BinaryExpr,
    Constant,
    FlowGraph,
    GotoStmt,
    IfStmt,
    Local,
    NopStmt,
    ReturnStmt,
    build_flow_graph,
)


@pytest.fixture
def x():
    return Local("x", "int")


@pytest.fixture
def y():
    return Local("y", "int")


@pytest.fixture
def straight_line(x):
    """entry → A → B, A defines x."""
    graph = FlowGraph("straight_line", [x])
    entry = graph.add_point(NopStmt())
    a = graph.add_point(AssignStmt(x, Constant(1)))
    b = graph.add_point(ReturnStmt(x))
    graph.add_edge(entry, a)
    graph.add_edge(a, b)
    return SimpleNamespace(graph=graph, entry=entry, a=a, b=b, x=x)


def _diamond(x, b_defines_x):
    graph = FlowGraph("diamond", [x])
    entry = graph.add_point(NopStmt())
    a = graph.add_point(AssignStmt(x, Constant(1)))
    if b_defines_x:
        b = graph.add_point(AssignStmt(x, Constant(2)))
    else:
        b = graph.add_point(NopStmt())
    c = graph.add_point(ReturnStmt(x))
    graph.add_edge(entry, a)
    graph.add_edge(entry, b)
    graph.add_edge(a, c)
    graph.add_edge(b, c)
    return SimpleNamespace(graph=graph, entry=entry, a=a, b=b, c=c, x=x)


@pytest.fixture
def diamond(x):
    """entry → {A, B} → C; only A defines x."""
    return _diamond(x, b_defines_x=False)


@pytest.fixture
def diamond_both(x):
    """entry → {A, B} → C; both A and B define x."""
    return _diamond(x, b_defines_x=True)


@pytest.fixture
def self_loop(x):
    """entry → L, L → L, L → M; L defines x."""
    graph = FlowGraph("self_loop", [x])
    entry = graph.add_point(NopStmt())
    loop = graph.add_point(AssignStmt(x, Constant(0)))
    after = graph.add_point(ReturnStmt(x))
    graph.add_edge(entry, loop)
    graph.add_edge(loop, loop)
    graph.add_edge(loop, after)
    return SimpleNamespace(graph=graph, entry=entry, loop=loop, after=after, x=x)


@pytest.fixture
def counting_loop():
    """A while loop built from a linear body::

        0        i = 0
        head:    if i >= 10 goto done
        2        t = i * 2
        3        i = i + 1
        4        goto head
        done:    return t
    """
    i, t = Local("i", "int"), Local("t", "int")
    graph = build_flow_graph(
        "counting_loop",
        [
            AssignStmt(i, Constant(0)),
            ("head", IfStmt(BinaryExpr(">=", i, Constant(10)), "done")),
            AssignStmt(t, BinaryExpr("*", i, Constant(2))),
            AssignStmt(i, BinaryExpr("+", i, Constant(1))),
            GotoStmt("head"),
            ("done", ReturnStmt(t)),
        ],
        locals=[i, t],
    )
    init, head, body, incr, back, done = graph.points
    return SimpleNamespace(
        graph=graph, init=init, head=head, body=body, incr=incr,
        back=back, done=done, i=i, t=t,
    )


@pytest.fixture
def loop_without_defs(x):
    """entry: x = 1; head ↔ body (body defines nothing); head → exit.

    x is guaranteed inside and after the loop; a solver that seeded interior
    points with ∅ instead of ⊤ would lose it at the loop head.
    """
    graph = FlowGraph("loop_without_defs", [x])
    entry = graph.add_point(AssignStmt(x, Constant(1)))
    head = graph.add_point(NopStmt())
    body = graph.add_point(NopStmt())
    exit_ = graph.add_point(ReturnStmt(x))
    graph.add_edge(entry, head)
    graph.add_edge(head, body)
    graph.add_edge(body, head)
    graph.add_edge(head, exit_)
    return SimpleNamespace(
        graph=graph, entry=entry, head=head, body=body, exit=exit_, x=x
    )

"""
guaranteed_defs.framework
=========================

The contract a forward dataflow problem supplies to the fixpoint engine.

A problem is a *strategy value*: any object with the attributes and methods
of :class:`FlowProblem`.  The engine never subclasses or inspects it beyond
this protocol, so the same engine serves must- and may-analyses alike.

Theory
------
A forward problem is defined by:

1.  an **entry value** -- the fact held at every entry point, never
    recomputed from predecessors;
2.  an **interior initial value** -- the fact every other point starts from
    before its first merge.  For a must-analysis (meet = ∩) this is ⊤, the
    universal set, so that the first intersection at a join point is not
    emptied before real information arrives;
3.  a **merge** operator combining the OUT facts of two predecessors;
4.  a **transfer** function ``OUT(p) = f_p(IN(p))``.

Public API
----------
    Confluence          - MEET (must) / JOIN (may)
    FlowProblem         - protocol implemented by concrete analyses
    PointGraph          - protocol implemented by analysable graphs
    check_monotonicity  - debugging helper
"""

from __future__ import annotations

import enum
from typing import Any, Callable, Protocol, Sequence, TypeVar, runtime_checkable

L = TypeVar("L")


class Confluence(enum.Enum):
    """How facts arriving over several edges are combined."""

    JOIN = "join"   # may analysis: ⊔ (union-like)
    MEET = "meet"   # must analysis: ⊓ (intersection-like)


@runtime_checkable
class FlowProblem(Protocol[L]):
    """Protocol for a forward dataflow problem over lattice values ``L``."""

    confluence: Confluence

    def entry_initial_flow(self) -> L:
        """Fact at the entry point(s)."""
        ...

    def new_initial_flow(self) -> L:
        """Starting fact of every non-entry point."""
        ...

    def merge(self, a: L, b: L) -> L:
        """Combine the facts of two incoming edges."""
        ...

    def flow_through(self, point: Any, in_value: L) -> L:
        """Transfer function: the fact after *point* given the fact before it.

        Must return a new value (or an immutable one); the engine treats
        *in_value* as frozen.
        """
        ...

    def equal(self, a: L, b: L) -> bool:
        ...


def check_monotonicity(
    problem: FlowProblem[L],
    point: Any,
    samples: Sequence[L],
    leq: Callable[[L, L], bool],
) -> bool:
    """Check that ``problem.flow_through(point, ·)`` is monotone on *samples*.

    For every pair ``(a, b)`` with ``leq(a, b)``, verifies that
    ``leq(f(a), f(b))``.  This can only detect violations, not prove
    monotonicity.
    """
    for a in samples:
        for b in samples:
            if leq(a, b):
                fa = problem.flow_through(point, a)
                fb = problem.flow_through(point, b)
                if not leq(fa, fb):
                    return False
    return True


@runtime_checkable
class PointGraph(Protocol):
    """What the engine needs from an external control-flow graph.

    :class:`~guaranteed_defs.flowgraph.FlowGraph` implements it; any other
    graph exposing these members can be analysed as well.
    """

    name: str

    @property
    def entries(self) -> Sequence[Any]:
        ...

    def __iter__(self) -> Any:
        ...

    def __contains__(self, point: object) -> bool:
        ...

    def predecessors_of(self, point: Any) -> Sequence[Any]:
        ...

    def successors_of(self, point: Any) -> Sequence[Any]:
        ...

    def reverse_postorder(self) -> Sequence[Any]:
        ...

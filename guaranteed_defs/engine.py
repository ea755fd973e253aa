"""
guaranteed_defs.engine
======================

Round-robin fixpoint engine for forward dataflow problems.

The engine is generic over a :class:`~guaranteed_defs.framework.FlowProblem`
(entry value, interior initial value, merge, transfer) and any graph
implementing :class:`~guaranteed_defs.framework.PointGraph`.

Algorithm
---------
::

    IN(h)  = entry_initial_flow()                 for every head h
    IN(p)  = new_initial_flow()                   for every other point p
    OUT(p) = flow_through(p, IN(p))               for every point p

    repeat
        for p in order, p not a head:
            IN(p)  = merge(OUT(q) for q in pred(p))
            OUT(p) = flow_through(p, IN(p))
    until a full pass changes no OUT

The heads are the graph's entries plus every point without predecessors,
as in Soot's ``UnitGraph``.  Head facts are never recomputed from
predecessors, so a back edge into an entry does not weaken the entry fact,
and dead code starting at a pred-less point is analysed from ∅.

Every merge and transfer reads immutable values published by earlier steps
and produces a new value; nothing is updated in place.

Termination follows from the finite height of the lattice: for a monotone
problem started from ⊤ (must) or ⊥ (may), every OUT value moves in one
direction only, and can do so at most *height* times.

States
------
``CONSTRUCTING`` → ``ITERATING`` → ``CONVERGED``.  Construction blocks until
``CONVERGED``; afterwards the engine is read-only.
"""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Generic, List, Mapping, Optional, Tuple, TypeVar

from .config import IterationOrder, SolverConfig
from .errors import (
    ConvergenceError,
    ErrorCode,
    InvalidPointError,
    InvariantViolationError,
    MalformedGraphError,
)
from .framework import FlowProblem, PointGraph

logger = logging.getLogger(__name__)

L = TypeVar("L")


class SolverState(enum.Enum):
    CONSTRUCTING = "constructing"
    ITERATING = "iterating"
    CONVERGED = "converged"


# ===========================================================================
# RESULT
# ===========================================================================

@dataclass(frozen=True)
class FlowResult(Generic[L]):
    """Converged facts of one solver run.

    Attributes
    ----------
    facts_in : Mapping
        Point → fact before the point.
    facts_out : Mapping
        Point → fact after the point.
    passes : int
        Number of full passes, including the final pass that changed
        nothing.
    elapsed_seconds : float
        Wall-clock time spent iterating.
    order : IterationOrder
        Traversal order used for each pass.
    """

    facts_in: Mapping[Any, L]
    facts_out: Mapping[Any, L]
    passes: int
    elapsed_seconds: float
    order: IterationOrder

    def fact_at(self, point: Any, *, before: bool = True) -> L:
        facts = self.facts_in if before else self.facts_out
        try:
            return facts[point]
        except KeyError:
            raise InvalidPointError(point) from None

    def items_in(self):
        return self.facts_in.items()


# ===========================================================================
# SOLVER
# ===========================================================================

class ForwardFlowSolver(Generic[L]):
    """Solve a forward :class:`FlowProblem` over a graph to its fixpoint.

    Parameters
    ----------
    graph : PointGraph
        The control-flow graph.  Its edges are read once, at construction.
    problem : FlowProblem[L]
        Entry value, interior value, merge and transfer.
    config : SolverConfig, optional
        Iteration order and safety options.

    Raises
    ------
    MalformedGraphError
        If the graph cannot enumerate its points and edges consistently.
    ConvergenceError
        If ``config.max_passes`` is exceeded.
    InvariantViolationError
        If ``config.check_invariants`` is set and the converged facts do
        not satisfy the fixpoint equations.
    """

    def __init__(
        self,
        graph: PointGraph,
        problem: FlowProblem[L],
        config: Optional[SolverConfig] = None,
    ) -> None:
        if not isinstance(problem, FlowProblem):
            raise TypeError(f"{problem!r} does not implement FlowProblem")
        self.state = SolverState.CONSTRUCTING
        self.graph = graph
        self.problem = problem
        self.config = config or SolverConfig()
        self.name = getattr(graph, "name", "<anonymous>")
        self.passes = 0
        self._elapsed = 0.0

        logger.info(
            "[%s]     Solving %s forward problem...",
            self.name,
            problem.confluence.value,
        )
        self._points, self._entries, self._preds = self._snapshot_graph()
        self._order = self._traversal_order()

        # Seed: entry points get the entry value, everything else the
        # interior value; OUT starts as the transfer of the seeded IN.
        self._in: Dict[Any, L] = {}
        self._out: Dict[Any, L] = {}
        for point in self._points:
            if point in self._entries:
                self._in[point] = problem.entry_initial_flow()
            else:
                self._in[point] = problem.new_initial_flow()
            self._out[point] = problem.flow_through(point, self._in[point])

        self._solve()

    # ----- construction helpers ---------------------------------------------

    def _snapshot_graph(self) -> Tuple[List[Any], frozenset, Dict[Any, Tuple]]:
        graph = self.graph
        validate = getattr(graph, "validate", None)
        if validate is not None:
            validate()

        points = list(graph)
        members = set(points)
        if len(members) != len(points):
            raise MalformedGraphError(
                f"flow graph {self.name!r} enumerates a point twice",
                code=ErrorCode.INCONSISTENT_EDGES,
            )
        if not points:
            raise MalformedGraphError(
                f"flow graph {self.name!r} has no points",
                code=ErrorCode.EMPTY_GRAPH,
            )

        entries = frozenset(graph.entries)
        foreign = entries - members
        if foreign:
            raise MalformedGraphError(
                f"entries {sorted(map(repr, foreign))} are not points of "
                f"{self.name!r}",
                code=ErrorCode.FOREIGN_ENTRY,
            )

        preds: Dict[Any, Tuple] = {}
        for point in points:
            incoming = tuple(graph.predecessors_of(point))
            for pred in incoming:
                if pred not in members:
                    raise MalformedGraphError(
                        f"{point!r} has foreign predecessor {pred!r}",
                        code=ErrorCode.FOREIGN_EDGE_ENDPOINT,
                        point=point,
                    )
            preds[point] = incoming

        orphans = [p for p in points if not preds[p] and p not in entries]
        if orphans:
            logger.debug(
                "[%s]     %d point(s) without predecessors treated as heads",
                self.name,
                len(orphans),
            )
        return points, entries.union(orphans), preds

    def _traversal_order(self) -> List[Any]:
        if self.config.order is IterationOrder.DECLARATION:
            return list(self._points)
        order = list(self.graph.reverse_postorder())
        if len(order) != len(self._points) or set(order) != set(self._points):
            raise MalformedGraphError(
                f"reverse post-order of {self.name!r} does not cover its points",
                code=ErrorCode.INCONSISTENT_EDGES,
            )
        return order

    # ----- iteration ---------------------------------------------------------

    def _solve(self) -> None:
        self.state = SolverState.ITERATING
        max_passes = self.config.max_passes
        t0 = time.monotonic()

        while True:
            if max_passes is not None and self.passes >= max_passes:
                raise ConvergenceError(
                    f"[{self.name}] no fixpoint after {max_passes} passes",
                    passes=self.passes,
                )
            self.passes += 1
            changed = self._pass(self._in, self._out)
            if self.config.log_passes:
                logger.debug(
                    "[%s]     pass %d: %d OUT value(s) changed",
                    self.name,
                    self.passes,
                    changed,
                )
            if not changed:
                break

        self._elapsed = time.monotonic() - t0
        self.state = SolverState.CONVERGED
        logger.info(
            "[%s]     Converged after %d pass(es) over %d point(s)",
            self.name,
            self.passes,
            len(self._points),
        )
        if self.config.check_invariants:
            self.check_invariants()

    def _pass(self, facts_in: Dict[Any, L], facts_out: Dict[Any, L]) -> int:
        """One full pass; returns the number of OUT values that changed."""
        problem = self.problem
        changed = 0
        for point in self._order:
            if point in self._entries:
                continue
            new_in = self._merge_incoming(self._preds[point], facts_out)
            new_out = problem.flow_through(point, new_in)
            if not problem.equal(new_out, facts_out[point]):
                changed += 1
            facts_in[point] = new_in
            facts_out[point] = new_out
        return changed

    def _merge_incoming(self, preds: Tuple, facts_out: Mapping[Any, L]) -> L:
        merge = self.problem.merge
        result = facts_out[preds[0]]
        for pred in preds[1:]:
            result = merge(result, facts_out[pred])
        return result

    def run_extra_pass(self) -> bool:
        """Run one more pass on copies of the converged facts.

        Returns ``True`` if any OUT value would change (which would mean
        the engine stopped early).  The engine's own state is untouched.
        """
        self._require_converged()
        return self._pass(dict(self._in), dict(self._out)) > 0

    def check_invariants(self) -> None:
        """Verify the converged facts against the fixpoint equations."""
        self._require_converged()
        problem = self.problem
        entry_value = problem.entry_initial_flow()
        for point in self._points:
            if point in self._entries:
                expected_in = entry_value
            else:
                expected_in = self._merge_incoming(self._preds[point], self._out)
            if not problem.equal(self._in[point], expected_in):
                raise InvariantViolationError(
                    f"[{self.name}] IN({point!r}) = {self._in[point]!r}, "
                    f"expected {expected_in!r}",
                    point=point,
                )
            expected_out = problem.flow_through(point, self._in[point])
            if not problem.equal(self._out[point], expected_out):
                raise InvariantViolationError(
                    f"[{self.name}] OUT({point!r}) = {self._out[point]!r}, "
                    f"expected {expected_out!r}",
                    point=point,
                )

    # ----- queries -----------------------------------------------------------

    def flow_before(self, point: Any) -> L:
        """IN(point)."""
        self._require_point(point)
        return self._in[point]

    def flow_after(self, point: Any) -> L:
        """OUT(point)."""
        self._require_point(point)
        return self._out[point]

    def result(self) -> FlowResult[L]:
        self._require_converged()
        return FlowResult(
            facts_in=MappingProxyType(dict(self._in)),
            facts_out=MappingProxyType(dict(self._out)),
            passes=self.passes,
            elapsed_seconds=self._elapsed,
            order=self.config.order,
        )

    @property
    def order(self) -> Tuple[Any, ...]:
        return tuple(self._order)

    def _require_point(self, point: Any) -> None:
        if point not in self._in:
            raise InvalidPointError(point, self.name)

    def _require_converged(self) -> None:
        if self.state is not SolverState.CONVERGED:
            raise InvariantViolationError(
                f"[{self.name}] solver is {self.state.value}, not converged"
            )

    def __repr__(self) -> str:
        return (
            f"ForwardFlowSolver(graph={self.name!r}, state={self.state.value}, "
            f"passes={self.passes})"
        )

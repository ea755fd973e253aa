"""
guaranteed_defs.guaranteed_defs
===============================

Find all locals guaranteed to be defined at (just before) a given program
point.

A local is *guaranteed defined* before ``p`` when every control path from
an entry of the procedure to ``p`` passes through a definition of that
local.  This is a forward must-analysis over the powerset of the
procedure's locals:

==================  ===========================================
Direction           forward
Confluence          meet (∩)
Entry value         ∅
Interior value      all locals of the procedure (⊤)
Transfer            OUT(p) = IN(p) ∪ GEN(p)
==================  ===========================================

Usage example
-------------
::

    from guaranteed_defs import GuaranteedDefs, build_flow_graph

    graph = build_flow_graph("f", body, locals=[x, y])
    defs = GuaranteedDefs(graph)
    for point in graph:
        print(point, defs.guaranteed_defs_at(point))
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from .config import SolverConfig
from .engine import ForwardFlowSolver
from .errors import InvalidPointError
from .flowgraph import Local
from .flowset import FlowSet, VariableUniverse
from .framework import Confluence
from .gen import GenSetTable, collect_universe

logger = logging.getLogger(__name__)


class GuaranteedDefsProblem:
    """The guaranteed-definitions problem as a strategy for the engine."""

    confluence = Confluence.MEET

    def __init__(
        self, universe: VariableUniverse[Local], gen_sets: Mapping[Any, FlowSet[Local]]
    ) -> None:
        self.universe = universe
        self.gen_sets = gen_sets

    def entry_initial_flow(self) -> FlowSet[Local]:
        return self.universe.empty()

    def new_initial_flow(self) -> FlowSet[Local]:
        # ⊤: intersections at join points may only remove locals
        return self.universe.full()

    def merge(self, a: FlowSet[Local], b: FlowSet[Local]) -> FlowSet[Local]:
        return a & b

    def flow_through(self, point: Any, in_value: FlowSet[Local]) -> FlowSet[Local]:
        return in_value | self.gen_sets[point]

    def equal(self, a: FlowSet[Local], b: FlowSet[Local]) -> bool:
        return a == b


class GuaranteedDefs:
    """Locals guaranteed to be defined just before each program point.

    The analysis runs to completion in the constructor.  Afterwards the
    per-point answers are frozen tuples; nothing refers back to the
    solver's working state.

    Parameters
    ----------
    graph : PointGraph
        Statement-level flow graph of one procedure.
    config : SolverConfig, optional
        Solver options.
    """

    def __init__(self, graph, config: Optional[SolverConfig] = None) -> None:
        self.name = getattr(graph, "name", "<anonymous>")
        logger.info("[%s]     Constructing GuaranteedDefs...", self.name)

        self.universe = collect_universe(graph)
        self.gen_sets = GenSetTable(graph, self.universe)
        solver = ForwardFlowSolver(
            graph, GuaranteedDefsProblem(self.universe, self.gen_sets), config
        )
        result = solver.result()

        before: Dict[Any, Tuple[Local, ...]] = {}
        after: Dict[Any, Tuple[Local, ...]] = {}
        for point in graph:
            before[point] = result.facts_in[point].to_tuple()
            after[point] = result.facts_out[point].to_tuple()
        self._before = MappingProxyType(before)
        self._after = MappingProxyType(after)
        self.passes = result.passes
        self.elapsed_seconds = result.elapsed_seconds

    # ----- queries -----------------------------------------------------------

    def guaranteed_defs_at(self, point: Any) -> Tuple[Local, ...]:
        """Locals guaranteed to be defined just before *point*.

        Duplicate-free, in declaration order.

        Raises
        ------
        InvalidPointError
            If *point* is not part of the analysed graph.
        """
        try:
            return self._before[point]
        except (KeyError, TypeError):
            raise InvalidPointError(point, self.name) from None

    # Soot-style spelling
    get_guaranteed_defs = guaranteed_defs_at

    def guaranteed_defs_after(self, point: Any) -> Tuple[Local, ...]:
        """Locals guaranteed to be defined just after *point*."""
        try:
            return self._after[point]
        except (KeyError, TypeError):
            raise InvalidPointError(point, self.name) from None

    def is_guaranteed(self, local: Local, point: Any) -> bool:
        return local in self.guaranteed_defs_at(point)

    def possibly_undefined_uses(self) -> List[Tuple[Any, Local]]:
        """``(point, local)`` pairs where *point* reads a local that is not
        guaranteed to be defined on every path reaching it."""
        results: List[Tuple[Any, Local]] = []
        for point, defined in self._before.items():
            uses = getattr(point, "uses", None)
            if uses is None:
                continue
            reported = set()
            for local in uses():
                if local not in defined and local not in reported:
                    reported.add(local)
                    results.append((point, local))
        return results

    @property
    def points(self) -> Tuple[Any, ...]:
        return tuple(self._before)

    def as_dict(self) -> Dict[str, List[str]]:
        """``repr(point)`` → names of guaranteed locals, for reports."""
        return {
            repr(point): [local.name for local in defined]
            for point, defined in self._before.items()
        }

    def __contains__(self, point: object) -> bool:
        try:
            return point in self._before
        except TypeError:
            return False

    def __iter__(self) -> Iterator[Any]:
        return iter(self._before)

    def __len__(self) -> int:
        return len(self._before)

    def __repr__(self) -> str:
        return (
            f"GuaranteedDefs(graph={self.name!r}, points={len(self._before)}, "
            f"locals={len(self.universe)}, passes={self.passes})"
        )


def analyse(graph, **options: Any) -> GuaranteedDefs:
    """Run the analysis on *graph*; *options* are :class:`SolverConfig` fields."""
    config = SolverConfig.from_mapping(options) if options else None
    return GuaranteedDefs(graph, config)

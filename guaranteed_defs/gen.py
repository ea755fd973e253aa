"""
guaranteed_defs.gen
===================

GEN sets: the locals each program point unconditionally defines.

A point generates ``{v}`` when its statement is a definition whose target
is exactly the local ``v``.  Assignments to fields, array elements or any
other compound location generate nothing: they do not give a local a
value.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Tuple

from .errors import InvalidPointError
from .flowgraph import Local
from .flowset import FlowSet, VariableUniverse

logger = logging.getLogger(__name__)


def defined_local(point: Any):
    """The local *point* defines, or ``None``.

    Works on any point exposing ``is_definition()`` and ``def_target()``.
    """
    if not point.is_definition():
        return None
    target = point.def_target()
    if isinstance(target, Local):
        return target
    return None


def generated_set(point: Any, universe: VariableUniverse[Local]) -> FlowSet[Local]:
    """GEN(point) as a flow set over *universe*."""
    local = defined_local(point)
    if local is None:
        return universe.empty()
    return universe.singleton(local)


def collect_universe(graph) -> VariableUniverse[Local]:
    """Declared locals of *graph*, then undeclared definition targets.

    Undeclared targets are appended in order of first appearance so that
    GEN(p) is always a subset of the universe.
    """
    declared = tuple(getattr(graph, "locals", ()))
    known = set(declared)
    extra: List[Local] = []
    for point in graph:
        local = defined_local(point)
        if local is not None and local not in known:
            known.add(local)
            extra.append(local)
    if extra:
        logger.debug(
            "[%s]     %d undeclared local(s) defined: %s",
            getattr(graph, "name", "<anonymous>"),
            len(extra),
            ", ".join(str(v) for v in extra),
        )
    return VariableUniverse([*declared, *extra])


class GenSetTable(Mapping[Any, FlowSet[Local]]):
    """Read-only map point → GEN(point), computed once per point."""

    def __init__(self, graph, universe: VariableUniverse[Local]) -> None:
        self.universe = universe
        self._graph_name = getattr(graph, "name", "")
        table: Dict[Any, FlowSet[Local]] = {}
        for point in graph:
            table[point] = generated_set(point, universe)
        self._table = MappingProxyType(table)

    def __getitem__(self, point: Any) -> FlowSet[Local]:
        try:
            return self._table[point]
        except KeyError:
            raise InvalidPointError(point, self._graph_name) from None

    def __iter__(self) -> Iterator[Any]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def defined_locals(self) -> Tuple[Local, ...]:
        """Locals defined somewhere in the graph, in universe order."""
        defined = set()
        for gen in self._table.values():
            defined |= gen.as_set()
        return tuple(v for v in self.universe if v in defined)

    def __repr__(self) -> str:
        n_defs = sum(1 for gen in self._table.values() if gen)
        return f"GenSetTable(points={len(self._table)}, definitions={n_defs})"


def compute_gen_sets(graph) -> GenSetTable:
    """Build the universe of *graph* and its GEN table in one go."""
    return GenSetTable(graph, collect_universe(graph))

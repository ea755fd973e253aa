"""
guaranteed_defs.flowgraph
=========================

Statement-level control-flow graphs for a single procedure.

The analysis itself only needs a graph that can

* enumerate its program points,
* report predecessors and successors of each point,
* name its entry point(s) and the locals the procedure declares, and
* tell, for each point, whether it defines a local and which one.

This module provides a small concrete model of such a graph, close to a
Jimple body: every :class:`ProgramPoint` wraps exactly one statement, and
definition statements (:class:`AssignStmt`, :class:`IdentityStmt`) expose
their left-hand side through :meth:`Statement.def_target`.

Public API
----------
    Local, FieldRef, ArrayRef, Constant, BinaryExpr, InvokeExpr
                      - values
    AssignStmt, IdentityStmt, InvokeStmt, IfStmt, GotoStmt,
    ReturnStmt, NopStmt
                      - statements
    ProgramPoint      - one node of the graph
    FlowGraph         - the graph for one procedure
    build_flow_graph  - build a FlowGraph from a linear statement body

Typical usage::

    from guaranteed_defs.flowgraph import (
        Local, Constant, AssignStmt, IfStmt, ReturnStmt, build_flow_graph,
    )

    x = Local("x")
    graph = build_flow_graph("f", [
        IfStmt(Constant(True), "L1"),
        AssignStmt(x, Constant(1)),
        ("L1", ReturnStmt(x)),
    ], locals=[x])
    print(graph.to_dot())
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import (
    Any,
    Dict,
    Iterable,
    Iterator,
    List,
    Optional,
    Sequence,
    Set,
    Tuple,
    Union,
)

from .errors import ErrorCode, InvalidPointError, MalformedGraphError

logger = logging.getLogger(__name__)


# ===========================================================================
# VALUES
# ===========================================================================

@dataclass(frozen=True)
class Local:
    """A method-local storage location."""

    name: str
    type_name: str = ""

    def uses(self) -> Tuple["Local", ...]:
        return (self,)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class FieldRef:
    """``base.field`` (instance field) or ``Class.field`` when *base* is None."""

    base: Optional[Local]
    field: str

    def uses(self) -> Tuple[Local, ...]:
        return (self.base,) if self.base is not None else ()

    def __str__(self) -> str:
        return f"{self.base}.{self.field}" if self.base else self.field


@dataclass(frozen=True)
class ArrayRef:
    """``base[index]``."""

    base: Local
    index: Any

    def uses(self) -> Tuple[Local, ...]:
        return (self.base, *_uses_of(self.index))

    def __str__(self) -> str:
        return f"{self.base}[{self.index}]"


@dataclass(frozen=True)
class Constant:
    value: Any

    def uses(self) -> Tuple[Local, ...]:
        return ()

    def __str__(self) -> str:
        return repr(self.value)


@dataclass(frozen=True)
class BinaryExpr:
    op: str
    left: Any
    right: Any

    def uses(self) -> Tuple[Local, ...]:
        return (*_uses_of(self.left), *_uses_of(self.right))

    def __str__(self) -> str:
        return f"{self.left} {self.op} {self.right}"


@dataclass(frozen=True)
class InvokeExpr:
    method: str
    args: Tuple[Any, ...] = ()
    receiver: Optional[Local] = None

    def uses(self) -> Tuple[Local, ...]:
        used: List[Local] = []
        if self.receiver is not None:
            used.append(self.receiver)
        for arg in self.args:
            used.extend(_uses_of(arg))
        return tuple(used)

    def __str__(self) -> str:
        args = ", ".join(str(a) for a in self.args)
        prefix = f"{self.receiver}." if self.receiver is not None else ""
        return f"{prefix}{self.method}({args})"


def _uses_of(value: Any) -> Tuple[Local, ...]:
    """Locals read when *value* is evaluated."""
    uses = getattr(value, "uses", None)
    if uses is None:
        return ()
    return tuple(uses())


# ===========================================================================
# STATEMENTS
# ===========================================================================

class Statement:
    """Base class of the statement kinds a program point may carry."""

    def is_definition(self) -> bool:
        return False

    def def_target(self) -> Any:
        """Left-hand side of a definition statement, else ``None``."""
        return None

    def uses(self) -> Tuple[Local, ...]:
        return ()

    def branch_target(self) -> Optional[str]:
        return None

    def falls_through(self) -> bool:
        return True


@dataclass(frozen=True, eq=False)
class AssignStmt(Statement):
    """``target = value``."""

    target: Any
    value: Any

    def is_definition(self) -> bool:
        return True

    def def_target(self) -> Any:
        return self.target

    def uses(self) -> Tuple[Local, ...]:
        # a compound target reads its base (and index) without defining them
        used = list(_uses_of(self.value))
        if not isinstance(self.target, Local):
            used.extend(_uses_of(self.target))
        return tuple(used)

    def __str__(self) -> str:
        return f"{self.target} = {self.value}"


@dataclass(frozen=True, eq=False)
class IdentityStmt(Statement):
    """``target := @parameter0`` / ``target := @this``."""

    target: Local
    source: str

    def is_definition(self) -> bool:
        return True

    def def_target(self) -> Any:
        return self.target

    def __str__(self) -> str:
        return f"{self.target} := {self.source}"


@dataclass(frozen=True, eq=False)
class InvokeStmt(Statement):
    expr: InvokeExpr

    def uses(self) -> Tuple[Local, ...]:
        return self.expr.uses()

    def __str__(self) -> str:
        return str(self.expr)


@dataclass(frozen=True, eq=False)
class IfStmt(Statement):
    """Conditional jump to *target_label*; falls through otherwise."""

    condition: Any
    target_label: str

    def uses(self) -> Tuple[Local, ...]:
        return _uses_of(self.condition)

    def branch_target(self) -> Optional[str]:
        return self.target_label

    def __str__(self) -> str:
        return f"if {self.condition} goto {self.target_label}"


@dataclass(frozen=True, eq=False)
class GotoStmt(Statement):
    target_label: str

    def branch_target(self) -> Optional[str]:
        return self.target_label

    def falls_through(self) -> bool:
        return False

    def __str__(self) -> str:
        return f"goto {self.target_label}"


@dataclass(frozen=True, eq=False)
class ReturnStmt(Statement):
    value: Any = None

    def uses(self) -> Tuple[Local, ...]:
        return _uses_of(self.value)

    def falls_through(self) -> bool:
        return False

    def __str__(self) -> str:
        return "return" if self.value is None else f"return {self.value}"


@dataclass(frozen=True, eq=False)
class NopStmt(Statement):
    def __str__(self) -> str:
        return "nop"


# ===========================================================================
# PROGRAM POINT
# ===========================================================================

class ProgramPoint:
    """One node of a :class:`FlowGraph`.

    Points hash by identity.  Their predecessor and successor lists are
    owned by the graph and exposed here as read-only tuples; no analysis
    keeps state on a point.
    """

    __slots__ = ("stmt", "label", "index", "_preds", "_succs")

    def __init__(
        self, stmt: Statement, label: Optional[str] = None, index: int = -1
    ) -> None:
        self.stmt = stmt
        self.label = label
        self.index = index
        self._preds: List["ProgramPoint"] = []
        self._succs: List["ProgramPoint"] = []

    @property
    def predecessors(self) -> Tuple["ProgramPoint", ...]:
        return tuple(self._preds)

    @property
    def successors(self) -> Tuple["ProgramPoint", ...]:
        return tuple(self._succs)

    def is_definition(self) -> bool:
        return self.stmt.is_definition()

    def def_target(self) -> Any:
        return self.stmt.def_target()

    def uses(self) -> Tuple[Local, ...]:
        return self.stmt.uses()

    def __repr__(self) -> str:
        tag = f"{self.label}: " if self.label else ""
        return f"P{self.index}({tag}{self.stmt})"


# ===========================================================================
# FLOW GRAPH
# ===========================================================================

class FlowGraph:
    """Statement-level control-flow graph of one procedure.

    Attributes
    ----------
    name : str
        Name of the procedure (used in log lines and DOT output).
    locals : tuple[Local, ...]
        Locals declared by the procedure, in declaration order.
    """

    def __init__(self, name: str, locals: Iterable[Local] = ()) -> None:
        self.name = name
        self.locals: Tuple[Local, ...] = tuple(dict.fromkeys(locals))
        self._points: List[ProgramPoint] = []
        self._members: Set[ProgramPoint] = set()
        self._entries: List[ProgramPoint] = []
        self._labels: Dict[str, ProgramPoint] = {}

    # ----- graph mutation ---------------------------------------------------

    def declare_local(self, local: Local) -> Local:
        if local not in self.locals:
            self.locals = (*self.locals, local)
        return local

    def add_point(
        self, stmt: Statement, label: Optional[str] = None
    ) -> ProgramPoint:
        """Create a point for *stmt*, register it and return it."""
        if label is not None and label in self._labels:
            raise MalformedGraphError(
                f"label {label!r} is used twice in {self.name!r}",
                code=ErrorCode.DUPLICATE_LABEL,
                label=label,
            )
        point = ProgramPoint(stmt, label=label, index=len(self._points))
        self._points.append(point)
        self._members.add(point)
        if label is not None:
            self._labels[label] = point
        return point

    def add_edge(self, src: ProgramPoint, dst: ProgramPoint) -> None:
        """Add the control-flow edge ``src → dst`` (idempotent)."""
        for end in (src, dst):
            if end not in self._members:
                raise MalformedGraphError(
                    f"edge endpoint {end!r} is not a point of {self.name!r}",
                    code=ErrorCode.FOREIGN_EDGE_ENDPOINT,
                    point=end,
                )
        if dst in src._succs:
            return
        src._succs.append(dst)
        dst._preds.append(src)

    def mark_entry(self, point: ProgramPoint) -> None:
        if point not in self._members:
            raise MalformedGraphError(
                f"entry {point!r} is not a point of {self.name!r}",
                code=ErrorCode.FOREIGN_ENTRY,
                point=point,
            )
        if point not in self._entries:
            self._entries.append(point)

    # ----- queries ----------------------------------------------------------

    @property
    def points(self) -> Tuple[ProgramPoint, ...]:
        return tuple(self._points)

    @property
    def entries(self) -> Tuple[ProgramPoint, ...]:
        """Entry points; the first point added when none was marked."""
        if self._entries:
            return tuple(self._entries)
        return tuple(self._points[:1])

    def point_for_label(self, label: str) -> ProgramPoint:
        try:
            return self._labels[label]
        except KeyError:
            raise MalformedGraphError(
                f"no statement labelled {label!r} in {self.name!r}",
                code=ErrorCode.UNKNOWN_LABEL,
                label=label,
            ) from None

    def predecessors_of(self, point: ProgramPoint) -> Tuple[ProgramPoint, ...]:
        self._require(point)
        return point.predecessors

    def successors_of(self, point: ProgramPoint) -> Tuple[ProgramPoint, ...]:
        self._require(point)
        return point.successors

    def __iter__(self) -> Iterator[ProgramPoint]:
        return iter(self._points)

    def __len__(self) -> int:
        return len(self._points)

    def __contains__(self, point: object) -> bool:
        return point in self._members

    def edges(self) -> Iterator[Tuple[ProgramPoint, ProgramPoint]]:
        for src in self._points:
            for dst in src._succs:
                yield src, dst

    def reverse_postorder(self) -> List[ProgramPoint]:
        """Reverse post-order from the entries, unreachable points appended.

        Iterative DFS, so deep straight-line bodies do not hit the recursion
        limit.
        """
        visited: Set[ProgramPoint] = set()

        def postorder(roots: Iterable[ProgramPoint]) -> List[ProgramPoint]:
            post: List[ProgramPoint] = []
            for root in roots:
                if root in visited:
                    continue
                visited.add(root)
                stack = [(root, iter(root._succs))]
                while stack:
                    node, succs = stack[-1]
                    for succ in succs:
                        if succ not in visited:
                            visited.add(succ)
                            stack.append((succ, iter(succ._succs)))
                            break
                    else:
                        stack.pop()
                        post.append(node)
            return post

        order = postorder(self.entries)
        order.reverse()
        unreachable = [p for p in self._points if p not in visited]
        if unreachable:
            tail = postorder(unreachable)
            tail.reverse()
            order.extend(tail)
            logger.debug(
                "[%s]     %d unreachable point(s)", self.name, len(unreachable)
            )
        return order

    def validate(self) -> None:
        """Raise :class:`MalformedGraphError` if the graph is inconsistent.

        Cycles, including self-loops, are allowed.
        """
        if not self._points:
            raise MalformedGraphError(
                f"flow graph {self.name!r} has no points",
                code=ErrorCode.EMPTY_GRAPH,
            )
        for entry in self.entries:
            if entry not in self._members:
                raise MalformedGraphError(
                    f"entry {entry!r} is not a point of {self.name!r}",
                    code=ErrorCode.FOREIGN_ENTRY,
                    point=entry,
                )
        for point in self._points:
            for succ in point._succs:
                if succ not in self._members:
                    raise MalformedGraphError(
                        f"{point!r} has foreign successor {succ!r}",
                        code=ErrorCode.FOREIGN_EDGE_ENDPOINT,
                        point=point,
                    )
                if point not in succ._preds:
                    raise MalformedGraphError(
                        f"edge {point!r} -> {succ!r} missing from predecessors",
                        code=ErrorCode.INCONSISTENT_EDGES,
                        point=point,
                    )
            for pred in point._preds:
                if pred not in self._members or point not in pred._succs:
                    raise MalformedGraphError(
                        f"edge {pred!r} -> {point!r} missing from successors",
                        code=ErrorCode.INCONSISTENT_EDGES,
                        point=point,
                    )

    def _require(self, point: ProgramPoint) -> None:
        if point not in self._members:
            raise InvalidPointError(point, self.name)

    # ----- serialisation helpers --------------------------------------------

    def to_dot(self, title: Optional[str] = None) -> str:
        """Return a Graphviz DOT representation of this graph."""
        lines = [f'digraph "{_dot_escape(self.name)}" {{']
        if title:
            lines.append(f'  label="{_dot_escape(title)}";')
        lines.append("  node [shape=box, fontname=monospace, fontsize=10];")
        entries = set(self.entries)
        for point in self._points:
            color = ""
            if point in entries:
                color = ', style=filled, fillcolor="#ccffcc"'
            lines.append(
                f'  P{point.index} [label="{_dot_escape(repr(point))}"'
                f"{color}];"
            )
        for src, dst in self.edges():
            lines.append(f"  P{src.index} -> P{dst.index};")
        lines.append("}")
        return "\n".join(lines)

    def to_graphviz(self, title: Optional[str] = None):
        """Return :meth:`to_dot` as a renderable :class:`graphviz.Source`
        (requires the ``viz`` extra)."""
        import graphviz

        return graphviz.Source(self.to_dot(title), filename=f"{self.name}.gv")

    def __repr__(self) -> str:
        n_edges = sum(len(p._succs) for p in self._points)
        return (
            f"FlowGraph(name={self.name!r}, points={len(self._points)}, "
            f"edges={n_edges}, locals={len(self.locals)})"
        )


def _dot_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


# ===========================================================================
# BUILDER
# ===========================================================================

BodyItem = Union[Statement, Tuple[str, Statement]]


def build_flow_graph(
    name: str,
    body: Sequence[BodyItem],
    locals: Iterable[Local] = (),
) -> FlowGraph:
    """Build a statement-level :class:`FlowGraph` from a linear body.

    Parameters
    ----------
    name : str
        Procedure name.
    body : sequence
        Statements, or ``(label, statement)`` pairs for jump targets.
    locals : iterable of Local
        Declared locals.  Locals defined or read by the body but not
        listed are declared in order of first appearance.

    Notes
    -----
    Each statement falls through to the next one unless it is a
    ``goto`` or ``return``.  ``goto`` and ``if`` add an edge to the
    labelled statement.  The first statement is the entry.
    """
    graph = FlowGraph(name, locals)
    for item in body:
        if isinstance(item, tuple):
            label, stmt = item
        else:
            label, stmt = None, item
        graph.add_point(stmt, label=label)
        target = stmt.def_target()
        for local in (target, *stmt.uses()):
            if isinstance(local, Local):
                graph.declare_local(local)

    points = graph.points
    for i, point in enumerate(points):
        stmt = point.stmt
        if stmt.falls_through() and i + 1 < len(points):
            graph.add_edge(point, points[i + 1])
        label = stmt.branch_target()
        if label is not None:
            graph.add_edge(point, graph.point_for_label(label))

    logger.debug("Built %r", graph)
    return graph

"""
guaranteed_defs.flowset
=======================

Finite powerset lattice over a fixed, enumerable universe of variables.

A :class:`FlowSet` is an immutable subset of a :class:`VariableUniverse`.
Every operation returns a fresh value, so a solver can hold on to a set it
has published without worrying that a later meet or transfer rewrites it
behind its back.

Ordered by inclusion, the flow sets of a universe ``U`` form the lattice
``(2^U, ⊆, ∅, U)`` whose height is ``|U|``; this bounds the number of
times any single fact can change during fixpoint iteration.

Public API
----------
    VariableUniverse    - ordered, duplicate-free collection of variables
    FlowSet             - immutable subset of a universe
"""

from __future__ import annotations

from typing import (
    AbstractSet,
    Dict,
    FrozenSet,
    Generic,
    Hashable,
    Iterable,
    Iterator,
    Tuple,
    TypeVar,
)

from .errors import UniverseMismatchError, UnknownLocalError

V = TypeVar("V", bound=Hashable)


# ===========================================================================
# UNIVERSE
# ===========================================================================

class VariableUniverse(Generic[V]):
    """The fixed set of variables a family of flow sets is drawn from.

    Iteration order is the order in which variables were supplied, with
    duplicates dropped.  That order is used whenever a flow set has to be
    turned into a sequence.
    """

    __slots__ = ("_order", "_index", "_full", "_empty")

    def __init__(self, variables: Iterable[V] = ()) -> None:
        index: Dict[V, int] = {}
        for var in variables:
            if var not in index:
                index[var] = len(index)
        self._index = index
        self._order: Tuple[V, ...] = tuple(index)
        self._full = FlowSet(self, frozenset(index))
        self._empty = FlowSet(self, frozenset())

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[V]:
        return iter(self._order)

    def __contains__(self, var: object) -> bool:
        return var in self._index

    def __repr__(self) -> str:
        return f"VariableUniverse({list(self._order)!r})"

    def index(self, var: V) -> int:
        """Position of *var* in declaration order."""
        try:
            return self._index[var]
        except KeyError:
            raise UnknownLocalError(
                f"{var!r} is not part of the variable universe", local=var
            ) from None

    def extended(self, extra: Iterable[V]) -> "VariableUniverse[V]":
        """Return a new universe with *extra* appended (existing order kept)."""
        return VariableUniverse([*self._order, *extra])

    # ----- flow set constructors -------------------------------------------

    def empty(self) -> "FlowSet[V]":
        """⊥ under inclusion: no variable."""
        return self._empty

    def full(self) -> "FlowSet[V]":
        """⊤ under inclusion: every variable of the universe."""
        return self._full

    def singleton(self, var: V) -> "FlowSet[V]":
        self._check(var)
        return FlowSet(self, frozenset((var,)))

    def from_iterable(self, variables: Iterable[V]) -> "FlowSet[V]":
        members = frozenset(variables)
        for var in members:
            self._check(var)
        return FlowSet(self, members)

    def _check(self, var: V) -> None:
        if var not in self._index:
            raise UnknownLocalError(
                f"{var!r} is not part of the variable universe", local=var
            )


# ===========================================================================
# FLOW SET
# ===========================================================================

class FlowSet(Generic[V]):
    """An immutable subset of a :class:`VariableUniverse`.

    Instances are normally obtained from the universe
    (:meth:`VariableUniverse.empty`, :meth:`VariableUniverse.full`, ...)
    rather than constructed directly.  Two flow sets can only be combined
    when they share the same universe object.
    """

    __slots__ = ("_universe", "_members")

    def __init__(
        self, universe: VariableUniverse[V], members: FrozenSet[V]
    ) -> None:
        self._universe = universe
        self._members = members

    @property
    def universe(self) -> VariableUniverse[V]:
        return self._universe

    @property
    def members(self) -> FrozenSet[V]:
        return self._members

    # ----- lattice operations ----------------------------------------------

    def union(self, other: "FlowSet[V]") -> "FlowSet[V]":
        self._same_universe(other)
        if other._members <= self._members:
            return self
        return FlowSet(self._universe, self._members | other._members)

    def intersection(self, other: "FlowSet[V]") -> "FlowSet[V]":
        self._same_universe(other)
        if self._members <= other._members:
            return self
        return FlowSet(self._universe, self._members & other._members)

    def difference(self, other: "FlowSet[V]") -> "FlowSet[V]":
        self._same_universe(other)
        return FlowSet(self._universe, self._members - other._members)

    def issubset(self, other: "FlowSet[V]") -> bool:
        self._same_universe(other)
        return self._members <= other._members

    def with_local(self, var: V) -> "FlowSet[V]":
        """Return this set plus *var*."""
        return self.union(self._universe.singleton(var))

    def copy(self) -> "FlowSet[V]":
        """Clone.  Flow sets are immutable, so the clone may be ``self``."""
        return self

    __or__ = union
    __and__ = intersection
    __sub__ = difference
    __le__ = issubset

    # ----- container protocol ----------------------------------------------

    def is_empty(self) -> bool:
        return not self._members

    def __bool__(self) -> bool:
        return bool(self._members)

    def __len__(self) -> int:
        return len(self._members)

    def __contains__(self, var: object) -> bool:
        return var in self._members

    def __iter__(self) -> Iterator[V]:
        return iter(self.to_tuple())

    def to_tuple(self) -> Tuple[V, ...]:
        """Members in universe (declaration) order."""
        return tuple(v for v in self._universe if v in self._members)

    def as_set(self) -> AbstractSet[V]:
        return self._members

    # ----- equality ---------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FlowSet):
            return NotImplemented
        return (
            self._universe is other._universe
            and self._members == other._members
        )

    def __hash__(self) -> int:
        return hash((id(self._universe), self._members))

    def __repr__(self) -> str:
        return "{" + ", ".join(repr(v) for v in self.to_tuple()) + "}"

    def _same_universe(self, other: "FlowSet[V]") -> None:
        if other._universe is not self._universe:
            raise UniverseMismatchError(
                "cannot combine flow sets drawn from different universes"
            )

"""Solver configuration."""

from __future__ import annotations

import enum
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional

from .errors import ConfigurationError


class IterationOrder(enum.Enum):
    """Order in which a full pass visits the points of the graph."""

    REVERSE_POSTORDER = "rpo"   # predecessors before successors (fastest)
    DECLARATION = "declaration"  # order in which points were added


@dataclass(frozen=True)
class SolverConfig:
    """Configuration for :class:`~guaranteed_defs.engine.ForwardFlowSolver`."""

    order: IterationOrder = IterationOrder.REVERSE_POSTORDER
    # Safety bound on full passes; None = unbounded (finite lattice height)
    max_passes: Optional[int] = None
    # Re-check the fixpoint equations and the entry fact after convergence
    check_invariants: bool = False
    # DEBUG log line per pass
    log_passes: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.order, IterationOrder):
            raise ConfigurationError(f"invalid iteration order {self.order!r}")
        if self.max_passes is not None and (
            isinstance(self.max_passes, bool)
            or not isinstance(self.max_passes, int)
            or self.max_passes < 1
        ):
            raise ConfigurationError(
                f"max_passes must be a positive int or None, got {self.max_passes!r}"
            )

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "SolverConfig":
        """Build a config from plain data, e.g. a parsed settings file.

        ``order`` may be given as an :class:`IterationOrder`, its value
        (``"rpo"``, ``"declaration"``) or its name.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(mapping) - known)
        if unknown:
            raise ConfigurationError(
                f"unknown solver option(s): {', '.join(unknown)}"
            )
        values = dict(mapping)
        if "order" in values:
            values["order"] = _parse_order(values["order"])
        return cls(**values)


def _parse_order(raw: Any) -> IterationOrder:
    if isinstance(raw, IterationOrder):
        return raw
    if isinstance(raw, str):
        text = raw.strip().lower()
        for order in IterationOrder:
            if text in (order.value, order.name.lower()):
                return order
    raise ConfigurationError(f"invalid iteration order {raw!r}")

# guaranteed_defs/errors.py
"""
Error types raised by the guaranteed-definitions analysis.

Error Hierarchy:
────────────────
    GuaranteedDefsError (base)
    ├── MalformedGraphError      - graph cannot enumerate points/edges consistently
    ├── InvalidPointError        - query for a point foreign to the analysed graph
    ├── UniverseMismatchError    - flow sets drawn from different universes
    ├── UnknownLocalError        - local outside the variable universe
    ├── ConfigurationError       - bad solver configuration
    ├── ConvergenceError         - pass bound exceeded
    └── InvariantViolationError  - internal invariant failed (a bug)

Error Codes:
────────────
Each error carries a code of the form GD-XXXX:
  - 1000-1999: Graph construction errors
  - 2000-2999: Query errors
  - 3000-3999: Flow set errors
  - 4000-4999: Configuration errors
  - 5000-5999: Solver errors
  - 9000-9999: Internal errors
"""

from __future__ import annotations

from enum import Enum, unique
from typing import Any, Dict, Optional


@unique
class ErrorCode(Enum):
    """Stable identifiers for every error the package raises."""

    # Graph construction (1000-1999)
    EMPTY_GRAPH = 1001
    FOREIGN_ENTRY = 1002
    FOREIGN_EDGE_ENDPOINT = 1003
    INCONSISTENT_EDGES = 1004
    UNKNOWN_LABEL = 1005
    DUPLICATE_LABEL = 1006

    # Queries (2000-2999)
    FOREIGN_POINT = 2001

    # Flow sets (3000-3999)
    UNIVERSE_MISMATCH = 3001
    UNKNOWN_LOCAL = 3002

    # Configuration (4000-4999)
    BAD_CONFIG = 4001

    # Solver (5000-5999)
    PASS_LIMIT = 5001

    # Internal (9000-9999)
    INVARIANT = 9001

    @property
    def code(self) -> str:
        return f"GD-{self.value:04d}"


class GuaranteedDefsError(Exception):
    """Base class for all errors raised by :mod:`guaranteed_defs`."""

    default_code: ErrorCode = ErrorCode.INVARIANT

    def __init__(
        self,
        message: str,
        *,
        code: Optional[ErrorCode] = None,
        **context: Any,
    ) -> None:
        self.message = message
        self.code = code or self.default_code
        self.context: Dict[str, Any] = context
        super().__init__(f"[{self.code.code}] {message}")


class MalformedGraphError(GuaranteedDefsError):
    """The flow graph cannot enumerate its points or edges consistently.

    Cyclic graphs are *not* malformed.
    """

    default_code = ErrorCode.INCONSISTENT_EDGES


class InvalidPointError(GuaranteedDefsError, ValueError):
    """A point that does not belong to the analysed graph was queried."""

    default_code = ErrorCode.FOREIGN_POINT

    def __init__(self, point: Any, graph_name: str = "") -> None:
        where = f" {graph_name!r}" if graph_name else ""
        super().__init__(
            f"{point!r} is not a point of flow graph{where}",
            point=point,
            graph=graph_name,
        )


class UniverseMismatchError(GuaranteedDefsError, ValueError):
    default_code = ErrorCode.UNIVERSE_MISMATCH


class UnknownLocalError(GuaranteedDefsError, KeyError):
    default_code = ErrorCode.UNKNOWN_LOCAL

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return Exception.__str__(self)


class ConfigurationError(GuaranteedDefsError, ValueError):
    default_code = ErrorCode.BAD_CONFIG


class ConvergenceError(GuaranteedDefsError, RuntimeError):
    """The solver hit ``SolverConfig.max_passes`` before reaching a fixpoint."""

    default_code = ErrorCode.PASS_LIMIT


class InvariantViolationError(GuaranteedDefsError, AssertionError):
    """An analysis invariant did not hold after convergence."""

    default_code = ErrorCode.INVARIANT

"""
guaranteed_defs — Guaranteed-Definitions Dataflow Analysis
==========================================================

Computes, for every point of a procedure's control-flow graph, the locals
that already hold a value on *every* control path reaching that point.

Core modules
------------
flowset
    Finite powerset lattice over a fixed variable universe.
flowgraph
    Statement-level control-flow graphs and a builder for linear bodies.
framework
    The strategy contract a forward dataflow problem supplies.
config
    Solver configuration.
engine
    Round-robin fixpoint engine for forward problems.
gen
    GEN-set precomputation.
guaranteed_defs
    The guaranteed-definitions problem and its frozen result store.

Quick start
-----------
>>> from guaranteed_defs import (
...     Local, Constant, AssignStmt, ReturnStmt, GuaranteedDefs, build_flow_graph,
... )
>>> x = Local("x")
>>> graph = build_flow_graph("f", [AssignStmt(x, Constant(1)), ReturnStmt(x)])
>>> defs = GuaranteedDefs(graph)
>>> [defs.guaranteed_defs_at(p) for p in graph]
[(), (Local(name='x', type_name=''),)]
"""

from __future__ import annotations

import importlib
import logging
import sys
from typing import TYPE_CHECKING, List

# ---------------------------------------------------------------------------
# Package metadata
# ---------------------------------------------------------------------------

__version__ = "0.1.0"
__license__ = "LGPL-2.1-or-later"
__all__: List[str] = []          # populated below

_log = logging.getLogger(__name__)
_log.addHandler(logging.NullHandler())

# ---------------------------------------------------------------------------
# Registry: module name → names re-exported at package level
# ---------------------------------------------------------------------------

_CORE_MODULES = {
    "errors": [
        "ErrorCode",
        "GuaranteedDefsError",
        "MalformedGraphError",
        "InvalidPointError",
        "UniverseMismatchError",
        "UnknownLocalError",
        "ConfigurationError",
        "ConvergenceError",
        "InvariantViolationError",
    ],
    "flowset": [
        "VariableUniverse",
        "FlowSet",
    ],
    "flowgraph": [
        "Local",
        "FieldRef",
        "ArrayRef",
        "Constant",
        "BinaryExpr",
        "InvokeExpr",
        "Statement",
        "AssignStmt",
        "IdentityStmt",
        "InvokeStmt",
        "IfStmt",
        "GotoStmt",
        "ReturnStmt",
        "NopStmt",
        "ProgramPoint",
        "FlowGraph",
        "build_flow_graph",
    ],
    "framework": [
        "Confluence",
        "FlowProblem",
        "PointGraph",
        "check_monotonicity",
    ],
    "config": [
        "IterationOrder",
        "SolverConfig",
    ],
    "engine": [
        "SolverState",
        "FlowResult",
        "ForwardFlowSolver",
    ],
    "gen": [
        "GenSetTable",
        "generated_set",
        "collect_universe",
        "compute_gen_sets",
    ],
    "guaranteed_defs": [
        "GuaranteedDefsProblem",
        "GuaranteedDefs",
        "analyse",
    ],
}


def _import_names(module_rel_name: str, names: List[str]) -> None:
    """Import *names* from a submodule and bind them in the package namespace."""
    mod = importlib.import_module(f"{__name__}.{module_rel_name}")
    current_module = sys.modules[__name__]
    for name in names:
        obj = getattr(mod, name, None)
        if obj is None:
            raise AttributeError(
                f"guaranteed_defs.{module_rel_name} does not export '{name}'"
            )
        setattr(current_module, name, obj)
        __all__.append(name)


for _mod, _names in _CORE_MODULES.items():
    _import_names(_mod, _names)

del _mod, _names

# ---------------------------------------------------------------------------
# Package-level utilities
# ---------------------------------------------------------------------------

_LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s"


def configure_logging(verbosity: int = 0) -> logging.Logger:
    """Attach a stderr handler to the ``guaranteed_defs`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    root = logging.getLogger(__name__)
    for handler in list(root.handlers):
        if getattr(handler, "_guaranteed_defs", False):
            root.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt=_LOG_FORMAT, datefmt="%H:%M:%S"))
    handler._guaranteed_defs = True  # type: ignore[attr-defined]
    root.setLevel(level)
    root.addHandler(handler)
    return root


__all__ += ["configure_logging", "__version__"]

if TYPE_CHECKING:
    from .config import IterationOrder as IterationOrder, SolverConfig as SolverConfig
    from .engine import (
        FlowResult as FlowResult,
        ForwardFlowSolver as ForwardFlowSolver,
        SolverState as SolverState,
    )
    from .errors import (
        ConfigurationError as ConfigurationError,
        ConvergenceError as ConvergenceError,
        ErrorCode as ErrorCode,
        GuaranteedDefsError as GuaranteedDefsError,
        InvalidPointError as InvalidPointError,
        InvariantViolationError as InvariantViolationError,
        MalformedGraphError as MalformedGraphError,
        UniverseMismatchError as UniverseMismatchError,
        UnknownLocalError as UnknownLocalError,
    )
    from .flowgraph import (
        ArrayRef as ArrayRef,
        AssignStmt as AssignStmt,
        BinaryExpr as BinaryExpr,
        Constant as Constant,
        FieldRef as FieldRef,
        FlowGraph as FlowGraph,
        GotoStmt as GotoStmt,
        IdentityStmt as IdentityStmt,
        IfStmt as IfStmt,
        InvokeExpr as InvokeExpr,
        InvokeStmt as InvokeStmt,
        Local as Local,
        NopStmt as NopStmt,
        ProgramPoint as ProgramPoint,
        ReturnStmt as ReturnStmt,
        Statement as Statement,
        build_flow_graph as build_flow_graph,
    )
    from .flowset import FlowSet as FlowSet, VariableUniverse as VariableUniverse
    from .framework import (
        Confluence as Confluence,
        FlowProblem as FlowProblem,
        PointGraph as PointGraph,
        check_monotonicity as check_monotonicity,
    )
    from .gen import (
        GenSetTable as GenSetTable,
        collect_universe as collect_universe,
        compute_gen_sets as compute_gen_sets,
        generated_set as generated_set,
    )
    from .guaranteed_defs import (
        GuaranteedDefs as GuaranteedDefs,
        GuaranteedDefsProblem as GuaranteedDefsProblem,
        analyse as analyse,
    )

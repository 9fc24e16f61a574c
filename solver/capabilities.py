"""Solver capability table.

Maps an execution context to the solver ids its engine build can actually run.
Keep the rows in lockstep with the engine builds: a solver listed here that the
engine cannot run only fails at solve time, as an engine failure.
"""

import logging
from typing import Dict, Iterable, Optional

from .context import ExecutionContext
from .definitions import Capabilities
from .errors import UnsupportedSolverError

logger = logging.getLogger(__name__)

# gecode is left out of the native row: the Homebrew ARM64 build crashes in
# its threading code.
CAPABILITY_TABLE: Dict[ExecutionContext, Capabilities] = {
    ExecutionContext.NATIVE: Capabilities(
        available=frozenset({'cbc', 'coinbc', 'cp-sat', 'chuffed'}),
        default='cbc',
    ),
    ExecutionContext.SANDBOXED: Capabilities(
        available=frozenset({'gecode', 'chuffed', 'cbc'}),
        default='gecode',
    ),
}

# Never usable in a context, whatever the configured override says
EXCLUDED_SOLVERS: Dict[ExecutionContext, frozenset] = {
    ExecutionContext.NATIVE: frozenset({'gecode'}),
    ExecutionContext.SANDBOXED: frozenset(),
}


def capabilities_for(
    context: ExecutionContext,
    override: Optional[Iterable[str]] = None
) -> Capabilities:
    """Look up the capability row for a context.

    Args:
        context: Active execution context.
        override: Optional solver list replacing the native row, for hosts
            whose MiniZinc install ships a different solver set. Entries that
            can never run natively (gecode) are dropped. Ignored in the
            sandboxed context, whose set is fixed by the WASM build.

    Returns:
        Capabilities with the available set and default solver.
    """
    row = CAPABILITY_TABLE[context]
    if context is not ExecutionContext.NATIVE or not override:
        return row

    requested = frozenset(s.strip() for s in override if s and s.strip())
    excluded = requested & EXCLUDED_SOLVERS[context]
    if excluded:
        logger.warning(
            f"Ignoring solver override entries not supported in {context.value} mode: "
            f"{', '.join(sorted(excluded))}"
        )
    available = requested - excluded
    if not available:
        return row
    default = row.default if row.default in available else sorted(available)[0]
    return Capabilities(available=available, default=default)


def check_solver(solver_id: str, context: ExecutionContext, capabilities: Capabilities) -> None:
    """Raise UnsupportedSolverError unless the solver is usable in this context."""
    if solver_id not in capabilities.available:
        raise UnsupportedSolverError(solver_id, context.value, capabilities.available)


def resolve_solver(
    solver_id: Optional[str],
    context: ExecutionContext,
    capabilities: Capabilities,
    substitute: bool = False
) -> str:
    """Pick the solver id to submit.

    An empty id means the context default. An unsupported id is rejected unless
    the caller explicitly opts into substitution, in which case the default is
    used and the remap is logged.
    """
    if not solver_id:
        return capabilities.default
    if solver_id in capabilities.available:
        return solver_id
    if not substitute:
        raise UnsupportedSolverError(solver_id, context.value, capabilities.available)
    logger.warning(
        f"Solver '{solver_id}' unavailable in {context.value} mode, "
        f"substituting '{capabilities.default}'"
    )
    return capabilities.default

"""Error taxonomy for the solver core.

Only InitializationError, InputError (and its UnknownScenarioError subclass),
UnsupportedSolverError and SessionStateError are raised to callers. Engine
failures and normalization ambiguities are folded into a SolveResult by the
session; the classes exist so the session can classify what went wrong.
"""

from typing import Iterable, Optional


class SolverError(Exception):
    """Base class for all solver core errors."""


class InitializationError(SolverError):
    """The engine could not be reached or loaded."""


class UnsupportedSolverError(SolverError):
    """Requested solver id is not in the active context's capability set."""

    def __init__(self, solver_id: str, context: str, available: Iterable[str]):
        self.solver_id = solver_id
        self.context = context
        self.available = sorted(available)
        super().__init__(
            f'Solver "{solver_id}" is not available in {context} mode. '
            f'Available solvers: {", ".join(self.available)}.'
        )


class EngineFailure(SolverError):
    """The engine reported an error exit or raised during solve."""

    def __init__(self, message: str, statistics: Optional[dict] = None):
        super().__init__(message)
        self.statistics = statistics


class NormalizationAmbiguity(SolverError):
    """An engine response could not be mapped confidently to a status/solution."""


class InputError(SolverError):
    """Malformed roster input or request; never reaches the engine."""


class UnknownScenarioError(InputError):
    """Scenario id is not registered."""

    def __init__(self, scenario_id: str, known: Iterable[str]):
        self.scenario_id = scenario_id
        self.known = list(known)
        super().__init__(f'Unknown scenario: {scenario_id}. Available: {", ".join(self.known)}')


class SessionStateError(SolverError):
    """Operation is not valid in the session's current state."""


def describe_error(error: BaseException) -> str:
    """Best-effort human readable message for an engine exception."""
    message = str(error).strip()
    if message:
        return message
    return repr(error)

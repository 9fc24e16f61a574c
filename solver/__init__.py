"""Team Solver Package.

Contains the MiniZinc solver core: execution context, capability table,
engine adapters, the solver session and the result normalizer. The
front-end orchestration lives in ``solver.optimizer``.
"""

from .context import ExecutionContext, detect_execution_context, resolve_execution_context
from .capabilities import capabilities_for, resolve_solver
from .definitions import ModelPayload, Player, SolveResult, SolverConfig
from .errors import (
    EngineFailure,
    InitializationError,
    InputError,
    NormalizationAmbiguity,
    SessionStateError,
    SolverError,
    UnknownScenarioError,
    UnsupportedSolverError,
)
from .normalizer import normalize
from .scenarios import get_scenario, list_scenarios
from .session import SessionState, SolverSession

__all__ = [
    'ExecutionContext',
    'detect_execution_context',
    'resolve_execution_context',
    'capabilities_for',
    'resolve_solver',
    'ModelPayload',
    'Player',
    'SolveResult',
    'SolverConfig',
    'EngineFailure',
    'InitializationError',
    'InputError',
    'NormalizationAmbiguity',
    'SessionStateError',
    'SolverError',
    'UnknownScenarioError',
    'UnsupportedSolverError',
    'normalize',
    'get_scenario',
    'list_scenarios',
    'SessionState',
    'SolverSession',
]

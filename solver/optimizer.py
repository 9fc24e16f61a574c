"""Team balance optimizer.

Ties the pieces together for the front-ends: scenario lookup, roster parsing,
payload construction, solver selection, the session solve and team rendering.
Input problems raise before anything reaches the engine; solve-time problems
come back inside the response.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from roster.loader import parse_roster_csv
from roster.payload import build_payload
from roster.teams import TeamAssignment, build_team_assignment

from .capabilities import resolve_solver
from .context import ExecutionContext, resolve_execution_context
from .definitions import DEFAULT_TIME_LIMIT_MS, Player, SolveResult, SolverConfig
from .engines import create_engine
from .errors import InputError
from .scenarios import DEFAULT_SCENARIO, get_scenario, load_model_text
from .session import SolverSession

logger = logging.getLogger(__name__)


@dataclass
class SolveRequest:
    """One solve as requested by a front-end."""
    csv_text: str
    solver_id: Optional[str] = None
    scenario_id: str = DEFAULT_SCENARIO
    time_limit_millis: int = DEFAULT_TIME_LIMIT_MS
    substitute_solver: bool = False
    collect_all_solutions: bool = False


@dataclass
class SolveResponse:
    """Solve outcome plus the rendered team split when there is one."""
    solver: str
    scenario: str
    mode: str
    result: SolveResult
    players: List[Player] = field(default_factory=list)
    teams: Optional[TeamAssignment] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'status': self.result.status,
            'solver': self.solver,
            'scenario': self.scenario,
            'mode': self.mode,
            'solution': self.result.to_dict() if self.result.assignment is not None else None,
            'elapsed_millis': self.result.elapsed_millis,
            'statistics': self.result.statistics,
            'error': self.result.error_detail,
            'players': [p.to_dict() for p in self.players],
            'teams': self.teams.to_dict() if self.teams is not None else None,
        }


class TeamBalanceOptimizer:
    """Front-end facing wrapper around one SolverSession.

    Args:
        session: Session owning the engine for the active execution context.
        default_solver: Solver used when a request names none; falls back to
            the context default.
        models_dir: Override for the bundled model directory.
    """

    def __init__(
        self,
        session: SolverSession,
        default_solver: Optional[str] = None,
        models_dir: Optional[Path] = None
    ):
        self.session = session
        self.default_solver = default_solver
        self.models_dir = models_dir

    @classmethod
    def from_config(cls, context: Optional[ExecutionContext] = None) -> 'TeamBalanceOptimizer':
        """Build an optimizer from utils.config settings."""
        from utils import config

        context = context or resolve_execution_context(config.EXECUTION_CONTEXT)
        engine = create_engine(context, executable=config.MINIZINC_BIN, wasm=config.WASM)
        session = SolverSession(
            engine,
            context,
            solver_override=config.MINIZINC_AVAILABLE_SOLVERS,
            grace_millis=config.SOLVER_GRACE_MS,
        )
        return cls(session, default_solver=config.DEFAULT_SOLVER)

    @property
    def mode(self) -> str:
        return self.session.context.value

    def available_solvers(self) -> List[str]:
        return self.session.capabilities.sorted_solvers()

    def solvers_in_order(self) -> Iterable[str]:
        """Default solver first, then the rest alphabetically."""
        default = self.session.capabilities.default
        return [default] + [s for s in self.available_solvers() if s != default]

    async def start(self) -> None:
        await self.session.init()

    async def close(self) -> None:
        await self.session.close()

    async def solve_request(self, request: SolveRequest) -> SolveResponse:
        """Run one request end to end.

        Raises:
            InputError: Unknown scenario, unusable CSV or a non-positive time limit.
            UnsupportedSolverError: Solver not available and substitution not requested.
            InitializationError: Engine could not be started.
        """
        if request.time_limit_millis is None or request.time_limit_millis <= 0:
            raise InputError(f"Time limit must be a positive number of milliseconds, got {request.time_limit_millis}")
        scenario = get_scenario(request.scenario_id)
        players = parse_roster_csv(request.csv_text)
        payload = build_payload(players)

        capabilities = self.session.capabilities
        solver_id = resolve_solver(
            request.solver_id or self.default_solver,
            self.session.context,
            capabilities,
            substitute=request.substitute_solver,
        )

        try:
            model_text = load_model_text(scenario, self.models_dir)
        except OSError as e:
            raise InputError(f"Model file for scenario '{scenario.id}' is unavailable: {e}") from e

        await self.session.init()
        config = SolverConfig(
            solver_id=solver_id,
            time_limit_millis=request.time_limit_millis,
            collect_all_solutions=request.collect_all_solutions,
        )
        result = await self.session.solve(model_text, payload, config)

        teams = build_team_assignment(players, result.assignment) if result.is_feasible else None
        return SolveResponse(
            solver=solver_id,
            scenario=scenario.id,
            mode=self.mode,
            result=result,
            players=players,
            teams=teams,
        )

"""Solver type definitions and data classes."""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

# Canonical status vocabulary surfaced to callers
STATUS_OPTIMAL = 'OPTIMAL'
STATUS_SATISFIED = 'SATISFIED'
STATUS_UNSATISFIABLE = 'UNSATISFIABLE'
STATUS_UNKNOWN = 'UNKNOWN'
STATUS_ERROR = 'ERROR'

STATUSES = (STATUS_OPTIMAL, STATUS_SATISFIED, STATUS_UNSATISFIABLE, STATUS_UNKNOWN, STATUS_ERROR)
FEASIBLE_STATUSES = (STATUS_OPTIMAL, STATUS_SATISFIED)

# Position name -> (model code, display sort order). Codes must match the .mzn constants.
POSITIONS: Dict[str, Tuple[int, int]] = {
    'forward': (1, 3),
    'midfield': (2, 2),
    'defense': (3, 1),
    'unknown': (0, 99),
}
UNKNOWN_POSITION = 'unknown'

DEFAULT_TIME_LIMIT_MS = 10000


def normalize_position(raw: Optional[str]) -> str:
    """Map a free-text position onto the known position names."""
    if not raw:
        return UNKNOWN_POSITION
    name = str(raw).strip().lower()
    return name if name in POSITIONS else UNKNOWN_POSITION


def position_code(position: str) -> int:
    return POSITIONS.get(position, POSITIONS[UNKNOWN_POSITION])[0]


def position_sort_order(position: str) -> int:
    return POSITIONS.get(position, POSITIONS[UNKNOWN_POSITION])[1]


@dataclass(frozen=True)
class Player:
    """A roster entry. Ratings are passed through unchecked (documented 1-10)."""
    name: str
    rating: int
    position: str = UNKNOWN_POSITION

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'rating': self.rating, 'position': self.position}


@dataclass(frozen=True)
class ModelPayload:
    """Numeric model data, index-aligned with the player list it was built from."""
    player_count: int
    ratings: Tuple[int, ...]
    position_codes: Tuple[int, ...]

    def to_model_data(self) -> Dict[str, Any]:
        """Parameter mapping consumed by the MiniZinc models."""
        return {
            'num_players': self.player_count,
            'ratings': list(self.ratings),
            'position_indices': list(self.position_codes),
        }


@dataclass(frozen=True)
class SolverConfig:
    """Per-solve options supplied by the caller."""
    solver_id: str
    time_limit_millis: int = DEFAULT_TIME_LIMIT_MS
    collect_all_solutions: bool = False

    def engine_options(self) -> Dict[str, Any]:
        """Options handed to the engine alongside the model."""
        return {
            'solver': self.solver_id,
            'time-limit': self.time_limit_millis,
            'statistics': True,
            'all-solutions': self.collect_all_solutions,
        }


@dataclass(frozen=True)
class SolveResult:
    """Canonical outcome of one solve call.

    `assignment[i]` is the team (0 or 1) of player i and is only set when the
    status is OPTIMAL or SATISFIED.
    """
    status: str
    assignment: Optional[Tuple[int, ...]] = None
    statistics: Optional[Dict[str, float]] = None
    elapsed_millis: int = 0
    error_detail: Optional[str] = None

    @property
    def is_feasible(self) -> bool:
        return self.status in FEASIBLE_STATUSES and self.assignment is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'status': self.status,
            'assignment': list(self.assignment) if self.assignment is not None else None,
            'statistics': dict(self.statistics) if self.statistics is not None else None,
            'elapsed_millis': self.elapsed_millis,
            'error_detail': self.error_detail,
        }


@dataclass(frozen=True)
class Capabilities:
    """Solvers usable in one execution context."""
    available: frozenset
    default: str

    def sorted_solvers(self) -> List[str]:
        return sorted(self.available)


@dataclass(frozen=True)
class Scenario:
    """Descriptive metadata for one balance objective."""
    id: str
    display_name: str
    description: str
    model_file: str

    def to_dict(self) -> Dict[str, str]:
        return {
            'id': self.id,
            'name': self.display_name,
            'description': self.description,
        }

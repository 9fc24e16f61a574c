"""Scenario Registry

Maps a scenario id to the MiniZinc model that encodes its balance objective.
The constraint semantics live in the model files under ``solver/mzn``; this
table only describes them.
"""

from pathlib import Path
from typing import Dict, List, Optional

from .definitions import Scenario
from .errors import UnknownScenarioError

MODELS_DIR = Path(__file__).parent / 'mzn'

SCENARIOS: Dict[str, Scenario] = {
    'ratings_only': Scenario(
        id='ratings_only',
        display_name='Ratings Only',
        description='Balance teams by total skill rating only',
        model_file='team_assignment_ratings_only.mzn',
    ),
    'with_positions': Scenario(
        id='with_positions',
        display_name='Ratings + Positions',
        description='Balance ratings AND position distribution (forwards, midfield, defense)',
        model_file='team_assignment_with_positions.mzn',
    ),
    'balanced_positions': Scenario(
        id='balanced_positions',
        display_name='Position-wise Ratings',
        description='Minimize rating difference within each position group (balanced skill per position)',
        model_file='team_assignment_balanced_positions.mzn',
    ),
}

DEFAULT_SCENARIO = 'ratings_only'


def get_scenario(scenario_id: str) -> Scenario:
    """Look up a scenario by id.

    Raises:
        UnknownScenarioError: If the id is not registered.
    """
    try:
        return SCENARIOS[scenario_id]
    except (KeyError, TypeError):
        raise UnknownScenarioError(str(scenario_id), SCENARIOS.keys()) from None


def list_scenarios() -> List[Scenario]:
    return list(SCENARIOS.values())


def load_model_text(scenario: Scenario, models_dir: Optional[Path] = None) -> str:
    """Read the MiniZinc source for a scenario."""
    path = (models_dir or MODELS_DIR) / scenario.model_file
    return path.read_text(encoding='utf-8')

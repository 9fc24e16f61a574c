"""Team rendering.

Translates a 0/1 assignment back into two named rosters with totals and
position counts, and formats them for terminal output.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from solver.definitions import POSITIONS, Player, UNKNOWN_POSITION, position_sort_order


@dataclass
class TeamAssignment:
    """Two-team split of a roster."""
    team_a: List[Player] = field(default_factory=list)
    team_b: List[Player] = field(default_factory=list)
    total_rating_a: int = 0
    total_rating_b: int = 0
    positions_a: Dict[str, int] = field(default_factory=dict)
    positions_b: Dict[str, int] = field(default_factory=dict)

    @property
    def rating_difference(self) -> int:
        return abs(self.total_rating_a - self.total_rating_b)

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'team_a': [p.to_dict() for p in sort_players_by_position(self.team_a)],
            'team_b': [p.to_dict() for p in sort_players_by_position(self.team_b)],
            'total_rating_a': self.total_rating_a,
            'total_rating_b': self.total_rating_b,
            'rating_difference': self.rating_difference,
            'positions_a': dict(self.positions_a),
            'positions_b': dict(self.positions_b),
        }


def split_into_teams(players: Sequence[Player], assignment: Sequence[int]) -> Tuple[List[Player], List[Player]]:
    """Split players by assignment (0 -> team A, 1 -> team B), keeping roster order."""
    team_a: List[Player] = []
    team_b: List[Player] = []
    for idx, team in enumerate(assignment):
        if idx >= len(players):
            break
        if team == 0:
            team_a.append(players[idx])
        else:
            team_b.append(players[idx])
    return team_a, team_b


def sort_players_by_position(players: Sequence[Player]) -> List[Player]:
    """Defense first, then midfield, forward, unknown; alphabetical within a position."""
    return sorted(players, key=lambda p: (position_sort_order(p.position), p.name.lower()))


def count_positions(players: Sequence[Player]) -> Dict[str, int]:
    counts = {name: 0 for name in POSITIONS}
    for player in players:
        pos = player.position if player.position in counts else UNKNOWN_POSITION
        counts[pos] += 1
    return counts


def calculate_total_rating(players: Sequence[Player]) -> int:
    return sum(p.rating for p in players)


def build_team_assignment(players: Sequence[Player], assignment: Sequence[int]) -> TeamAssignment:
    team_a, team_b = split_into_teams(players, assignment)
    return TeamAssignment(
        team_a=team_a,
        team_b=team_b,
        total_rating_a=calculate_total_rating(team_a),
        total_rating_b=calculate_total_rating(team_b),
        positions_a=count_positions(team_a),
        positions_b=count_positions(team_b),
    )


def format_player(player: Player, index: int) -> str:
    return f"  {index + 1:>2}. {player.name:<20} | {player.position:<8} | Rating: {player.rating}"


def format_team_summary(players: Sequence[Player], team_name: str, total_rating: int) -> str:
    lines = [f"{team_name} ({total_rating} rating points):"]
    for i, player in enumerate(sort_players_by_position(players)):
        lines.append(format_player(player, i))
    return '\n'.join(lines)


def format_assignment(teams: TeamAssignment) -> str:
    """Both teams plus the rating difference, ready to print."""
    return '\n'.join([
        format_team_summary(teams.team_a, 'Team A', teams.total_rating_a),
        '',
        format_team_summary(teams.team_b, 'Team B', teams.total_rating_b),
        '',
        f"Rating Difference: {teams.rating_difference}",
    ])

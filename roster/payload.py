"""Model Data Builder - roster to MiniZinc parameters."""

from typing import Sequence

from solver.definitions import ModelPayload, Player, position_code


def build_payload(players: Sequence[Player]) -> ModelPayload:
    """Build the numeric model payload for a roster.

    Position ``i`` of every array refers to ``players[i]``; the team split read
    back from the engine relies on that alignment.
    """
    ratings = tuple(int(p.rating) for p in players)
    codes = tuple(position_code(p.position) for p in players)
    return ModelPayload(player_count=len(players), ratings=ratings, position_codes=codes)

"""Roster Package.

CSV roster input, model payload construction and team rendering.
"""

from .loader import parse_roster_csv, load_roster_csv
from .payload import build_payload
from .teams import TeamAssignment, build_team_assignment, format_assignment

__all__ = [
    'parse_roster_csv',
    'load_roster_csv',
    'build_payload',
    'TeamAssignment',
    'build_team_assignment',
    'format_assignment',
]

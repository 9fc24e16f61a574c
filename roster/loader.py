"""CSV roster loading.

Expected header: ``name,rating,position`` (position optional, matched
case-insensitively). Rows whose rating has no leading integer are skipped;
missing or unrecognized positions become ``unknown``.
"""

import io
import logging
import warnings
from pathlib import Path
from typing import List, Union

import pandas as pd

from solver.definitions import Player, normalize_position
from solver.errors import InputError

logger = logging.getLogger(__name__)

# Leading integer, the way ratings like "8", " 7 " or "8.5" are read
_RATING_PATTERN = r'^\s*([+-]?\d+)'


def parse_roster_csv(csv_text: str) -> List[Player]:
    """Parse CSV text into players, preserving row order.

    Args:
        csv_text: Roster CSV including the header row.

    Returns:
        List of Player in file order.

    Raises:
        InputError: No data rows, missing name/rating columns, unreadable
            CSV, or no row with a usable rating.
    """
    text = (csv_text or '').strip()
    lines = text.splitlines()
    if len(lines) < 2:
        raise InputError('CSV must have at least a header and one data row')

    try:
        with warnings.catch_warnings():
            # Extra trailing fields are dropped without a ParserWarning
            warnings.simplefilter('ignore', pd.errors.ParserWarning)
            df = pd.read_csv(
                io.StringIO(text),
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                engine='python',
                # Never infer an index column from rows with extra trailing fields
                index_col=False,
            )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as e:
        raise InputError(f'Malformed CSV: {e}') from e

    df.columns = [str(c).strip().lower() for c in df.columns]
    if 'name' not in df.columns or 'rating' not in df.columns:
        raise InputError('CSV must contain "name" and "rating" columns')

    df = df.fillna('')
    ratings = pd.to_numeric(
        df['rating'].astype(str).str.extract(_RATING_PATTERN, expand=False),
        errors='coerce',
    )
    has_position = 'position' in df.columns

    players = []
    skipped = 0
    for row_number, (idx, row) in enumerate(df.iterrows(), start=1):
        rating = ratings.loc[idx]
        if pd.isna(rating):
            skipped += 1
            continue
        name = str(row['name']).strip() or f'Player {row_number}'
        position = normalize_position(row['position']) if has_position else 'unknown'
        players.append(Player(name=name, rating=int(rating), position=position))

    if skipped:
        logger.debug(f"Skipped {skipped} roster rows without a numeric rating")
    if not players:
        raise InputError('No valid player data found in CSV')

    return players


def load_roster_csv(path: Union[str, Path]) -> List[Player]:
    """Read and parse a roster CSV file."""
    path = Path(path)
    try:
        text = path.read_text(encoding='utf-8')
    except OSError as e:
        raise InputError(f'Cannot read roster file {path}: {e}') from e
    return parse_roster_csv(text)

"""
Chemistry Lookup persistence and the JSON chemistry index.

The lookup sheet is the normalized pair table (Player 1, Player 2, Chemistry),
sorted by (Player 1, Player 2). The JSON index in the property store is what
the query tools read; a checksum/row-count/timestamp triplet lets consumers
detect staleness without reading the table.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Dict, Optional, Any

from .. import config as cfg
from ..config import ToolConfig, DEFAULT_CONFIG
from ..errors import MissingResourceError
from ..store import Sheet, Workbook, PropertyStore, is_blank
from ..types import ChemistryPair, Thresholds, round_chemistry

logger = logging.getLogger(__name__)

LOOKUP_HEADER = ['Player 1', 'Player 2', 'Chemistry']


def _timestamp(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.isoformat()


# =============================================================================
# Lookup Sheet
# =============================================================================

def sort_pairs(pairs: List[ChemistryPair]) -> List[ChemistryPair]:
    return sorted(pairs, key=lambda p: (p.player1, p.player2))


def write_chemistry_lookup(
    sheet: Sheet,
    pairs: List[ChemistryPair],
    props: Optional[PropertyStore] = None,
    now: Optional[datetime] = None
):
    """
    Replace the lookup table with `pairs`, sorted by (player1, player2).

    Clears old data rows, then rewrites the header and the rows. Running twice
    with the same pairs leaves an identical table.
    """
    if sheet.last_row > 1:
        sheet.clear_contents(2, 1, sheet.last_row - 1, len(LOOKUP_HEADER))

    sheet.set_values(1, 1, [list(LOOKUP_HEADER)])
    rows = [p.to_row() for p in sort_pairs(pairs)]
    if rows:
        sheet.set_values(2, 1, rows)

    if props is not None:
        props.set(cfg.CHEMISTRY_LOOKUP_LAST_MODIFIED, _timestamp(now))

    logger.info("Wrote %d pairs to %s", len(rows), sheet.name)


def read_lookup_rows(sheet: Sheet) -> List[List[Any]]:
    """Raw (player1, player2, chemistry) data rows below the header."""
    if sheet.last_row < 2:
        return []
    return sheet.get_range_values(2, 1, sheet.last_row - 1, len(LOOKUP_HEADER))


def read_chemistry_lookup(sheet: Sheet) -> List[ChemistryPair]:
    """
    Stored pairs in row order (not re-sorted, orientation kept).

    Rows with a blank name are skipped; non-numeric chemistry reads as 0.
    """
    pairs = []
    for p1, p2, value in read_lookup_rows(sheet):
        player1 = '' if is_blank(p1) else str(p1).strip()
        player2 = '' if is_blank(p2) else str(p2).strip()
        if not player1 or not player2:
            continue
        chemistry = round_chemistry(value) if _is_number(value) else 0
        pairs.append(ChemistryPair(player1, player2, chemistry))
    return pairs


def get_lookup_sheet(workbook: Workbook, config: ToolConfig = DEFAULT_CONFIG) -> Sheet:
    sheet = workbook.get_sheet(config.sheets.chemistry_lookup)
    if sheet is None:
        raise MissingResourceError(
            f"{config.sheets.chemistry_lookup} sheet not found. "
            "Run a matrix conversion or preset import first."
        )
    return sheet


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# =============================================================================
# JSON Index
# =============================================================================

@dataclass(frozen=True)
class Freshness:
    """
    Cheap fingerprint of the lookup table.

    Attributes:
        checksum: Sum of name code units and values over all data rows
        row_count: Last used row of the sheet, header included
        pair_count: Number of data rows
        timestamp: When the index was built
    """
    checksum: int
    row_count: int
    pair_count: int
    timestamp: str


def _code_unit_sum(text: str) -> int:
    """Sum of UTF-16 code units; characters above U+FFFF count as surrogate pairs."""
    total = 0
    for ch in text:
        code = ord(ch)
        if code > 0xFFFF:
            code -= 0x10000
            total += 0xD800 + (code >> 10) + 0xDC00 + (code & 0x3FF)
        else:
            total += code
    return total


def compute_checksum(rows: List[List[Any]]) -> int:
    """Per row: UTF-16 code units of str(p1) + str(p2), plus the numeric value."""
    checksum = 0
    for p1, p2, value in rows:
        checksum += _code_unit_sum(f"{p1}{p2}")
        if _is_number(value):
            checksum += value
    return round_chemistry(checksum)


def build_chemistry_json(
    pairs: List[ChemistryPair],
    thresholds: Thresholds,
    timestamp: str
) -> Dict:
    """
    JSON index: {players, pairs: [{p1, p2, v}], thresholds, timestamp}.

    `players` is the sorted set of every name appearing in a pair.
    """
    players = set()
    for pair in pairs:
        players.add(pair.player1)
        players.add(pair.player2)

    return {
        'players': sorted(players),
        'pairs': [{'p1': p.player1, 'p2': p.player2, 'v': p.chemistry} for p in pairs],
        'thresholds': thresholds.to_dict(),
        'timestamp': timestamp,
    }


def _last_row(rows: List[List[Any]]) -> int:
    return len(rows) + 1


def update_chemistry_data_json(
    workbook: Workbook,
    props: PropertyStore,
    config: ToolConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None
) -> Freshness:
    """
    Rebuild the JSON index and freshness triplet from the lookup sheet.

    An empty lookup yields an empty index, so deleted pairs stop showing up
    in queries.

    Returns:
        The freshness fingerprint

    Raises:
        MissingResourceError: If the lookup sheet does not exist
    """
    sheet = get_lookup_sheet(workbook, config)
    rows = read_lookup_rows(sheet)
    if not rows:
        logger.warning("%s has no pairs, writing an empty JSON index", sheet.name)

    timestamp = _timestamp(now)
    pairs = read_chemistry_lookup(sheet)
    data = build_chemistry_json(pairs, config.thresholds, timestamp)

    props.set(cfg.CHEMISTRY_DATA, json.dumps(data))
    props.set(cfg.CHEMISTRY_DATA_TIMESTAMP, timestamp)

    freshness = Freshness(
        checksum=compute_checksum(rows),
        row_count=_last_row(rows),
        pair_count=len(rows),
        timestamp=timestamp
    )
    props.set(cfg.CHEMISTRY_LOOKUP_TIMESTAMP, freshness.timestamp)
    props.set(cfg.CHEMISTRY_LOOKUP_ROWCOUNT, freshness.row_count)
    props.set(cfg.CHEMISTRY_LOOKUP_CHECKSUM, freshness.checksum)

    logger.info(
        "Chemistry JSON updated: %d players, %d pairs, checksum %d",
        len(data['players']), len(data['pairs']), freshness.checksum
    )
    return freshness


def is_index_stale(
    workbook: Workbook,
    props: PropertyStore,
    config: ToolConfig = DEFAULT_CONFIG
) -> bool:
    """Compare the stored row count and checksum against the lookup sheet."""
    sheet = workbook.get_sheet(config.sheets.chemistry_lookup)
    rows = read_lookup_rows(sheet) if sheet is not None else []
    stored_count = props.get(cfg.CHEMISTRY_LOOKUP_ROWCOUNT)
    stored_checksum = props.get(cfg.CHEMISTRY_LOOKUP_CHECKSUM)
    if stored_count is None or stored_checksum is None:
        return True
    return stored_count != str(_last_row(rows)) or stored_checksum != str(compute_checksum(rows))


def load_chemistry_index(props: PropertyStore) -> Dict:
    """
    Parsed JSON index.

    Raises:
        MissingResourceError: If the index has not been built
    """
    raw = props.get(cfg.CHEMISTRY_DATA)
    if not raw:
        raise MissingResourceError(
            "Chemistry data not found. Run refresh-json to rebuild the chemistry index."
        )
    return json.loads(raw)


def get_player_list(props: PropertyStore) -> List[str]:
    return load_chemistry_index(props).get('players', [])


def clear_chemistry_cache(props: PropertyStore):
    """Drop the JSON index (the lookup sheet is untouched)."""
    props.delete(cfg.CHEMISTRY_DATA)
    props.delete(cfg.CHEMISTRY_DATA_TIMESTAMP)
    logger.info("Chemistry JSON cache cleared")

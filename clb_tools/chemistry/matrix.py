"""
Chemistry matrix reading and variant expansion.

The Player Chemistry Matrix sheet holds base characters across row 1 and down
column A. Each nonzero cell becomes a base pair, which is then expanded over
every display-name variant sharing that base.
"""

import logging
from typing import List, Dict, Set, Iterable

from ..names import extract_base_name
from ..store import Sheet, is_blank
from ..types import ChemistryPair, pair_key, round_chemistry
from .rules import apply_chemistry_rules

logger = logging.getLogger(__name__)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def read_chemistry_matrix(sheet: Sheet) -> List[ChemistryPair]:
    """
    Read nonzero cells of the upper triangle (row name <= column name).

    Blank names and non-numeric cells are ignored. Values are rounded half
    away from zero.
    """
    last_row = sheet.last_row
    last_col = sheet.last_column
    if last_row < 2 or last_col < 2:
        return []

    header = sheet.get_range_values(1, 2, 1, last_col - 1)[0]
    data = sheet.get_range_values(2, 1, last_row - 1, last_col)
    pairs = []

    for row in data:
        player1 = '' if is_blank(row[0]) else str(row[0]).strip()
        if not player1:
            continue

        for col_idx, value in enumerate(row[1:]):
            raw_name = header[col_idx]
            player2 = '' if is_blank(raw_name) else str(raw_name).strip()
            if not player2 or not _is_number(value) or value == 0:
                continue
            if player1 <= player2:
                pairs.append(ChemistryPair(player1, player2, round_chemistry(value)))

    logger.info("Read %d base pairs from %s", len(pairs), sheet.name)
    return pairs


def build_variant_map(master_list: Iterable[str]) -> Dict[str, List[str]]:
    """Base name -> display names in master list order."""
    variant_map: Dict[str, List[str]] = {}
    for full_name in master_list:
        variant_map.setdefault(extract_base_name(full_name), []).append(full_name)
    return variant_map


def expand_variants_with_rules(
    pairs: List[ChemistryPair],
    variant_map: Dict[str, List[str]],
    master_list: Iterable[str] = ()
) -> List[ChemistryPair]:
    """
    Expand base pairs across all variants, applying the exception rules.

    The first time an unordered pair is met decides it; later occurrences are
    skipped even if their rule result was zero the first time.

    Args:
        pairs: Base pairs from read_chemistry_matrix
        variant_map: Base name -> variant display names (build_variant_map)
        master_list: All known display names (kept for call-site symmetry
            with apply_mii_color_chemistry; variants come from variant_map)

    Returns:
        Expanded pairs with nonzero chemistry, in generation order
    """
    expanded: List[ChemistryPair] = []
    seen: Set[str] = set()
    dropped = 0

    for base_pair in pairs:
        p1_variants = variant_map.get(base_pair.player1) or [base_pair.player1]
        p2_variants = variant_map.get(base_pair.player2) or [base_pair.player2]

        for p1 in p1_variants:
            for p2 in p2_variants:
                if p1 == p2:
                    continue
                key = pair_key(p1, p2)
                if key in seen:
                    continue
                seen.add(key)

                final = apply_chemistry_rules(p1, p2, base_pair.chemistry)
                if final != 0:
                    expanded.append(ChemistryPair.of(p1, p2, final))
                else:
                    dropped += 1

    logger.info(
        "Expanded %d base pairs into %d variant pairs (%d suppressed by rules)",
        len(pairs), len(expanded), dropped
    )
    return expanded

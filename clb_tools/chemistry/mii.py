"""Mii color chemistry: color-wide rules merged into the expanded pairs."""

import logging
from typing import List, Dict, Set, Iterable

from ..config import ToolConfig, DEFAULT_CONFIG
from ..names import is_mii_character, extract_mii_color
from ..store import Sheet, Workbook, is_blank
from ..types import ChemistryPair, MiiColorMapping, round_chemistry

logger = logging.getLogger(__name__)

MII_COLOR_HEADER = ['Mii Color', 'Character Variant', 'Chemistry']


def ensure_mii_color_sheet(workbook: Workbook, config: ToolConfig = DEFAULT_CONFIG) -> Sheet:
    """Get the Mii color sheet, creating it with just a header if missing."""
    sheet = workbook.get_sheet(config.sheets.mii_color_chemistry)
    if sheet is None:
        sheet = workbook.insert_sheet(config.sheets.mii_color_chemistry)
        sheet.set_values(1, 1, [list(MII_COLOR_HEADER)])
        logger.info("Created empty %s sheet", sheet.name)
    return sheet


def read_mii_color_chemistry(sheet: Sheet) -> List[MiiColorMapping]:
    """Rows with a color and a variant; a non-numeric chemistry cell counts as 0."""
    if sheet is None or sheet.last_row < 2:
        return []

    mappings = []
    for color, variant, value in sheet.get_range_values(2, 1, sheet.last_row - 1, 3):
        color = '' if is_blank(color) else str(color).strip()
        variant = '' if is_blank(variant) else str(variant).strip()
        if not color or not variant:
            continue
        chemistry = round_chemistry(value) if isinstance(value, (int, float)) else 0
        mappings.append(MiiColorMapping(color, variant, chemistry))
    return mappings


def group_miis_by_color(names: Iterable[str]) -> Dict[str, List[str]]:
    """Mii color -> Mii display names, in input order."""
    groups: Dict[str, List[str]] = {}
    for name in names:
        if not is_mii_character(name):
            continue
        color = extract_mii_color(name)
        if color:
            groups.setdefault(color, []).append(name)
    return groups


def apply_mii_color_chemistry(
    pairs: List[ChemistryPair],
    mappings: List[MiiColorMapping],
    master_list: Iterable[str]
) -> List[ChemistryPair]:
    """
    Add (Mii, variant) pairs for every Mii of each mapped color.

    Pairs already present (from the matrix expansion or an earlier mapping)
    are never overwritten. Colors without any known Mii add nothing.

    Returns:
        Input pairs followed by the newly added pairs (unsorted)
    """
    if not mappings:
        return list(pairs)

    miis_by_color = group_miis_by_color(master_list)
    seen: Set[str] = {p.key for p in pairs}
    added: List[ChemistryPair] = []

    for mapping in mappings:
        miis = miis_by_color.get(mapping.mii_color, [])
        if not miis:
            logger.debug("No Mii characters with color %r", mapping.mii_color)
        for mii in miis:
            if mii == mapping.character_variant:
                continue
            pair = ChemistryPair.of(mii, mapping.character_variant, mapping.chemistry)
            if pair.key in seen:
                continue
            seen.add(pair.key)
            added.append(pair)

    logger.info("Mii color chemistry: %d mappings added %d pairs", len(mappings), len(added))
    return list(pairs) + added

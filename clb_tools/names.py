"""
Character name resolution.

Maps the stats editor's fixed character order to project display names
("Red Toad" -> "Toad (Red)") and extracts base name / Mii color metadata
from display names.
"""

import logging
import re
from typing import List, Dict, Optional

from .config import ToolConfig, DEFAULT_CONFIG
from .store import Sheet, Workbook

logger = logging.getLogger(__name__)


# =============================================================================
# Canonical Character Order
# =============================================================================

# Positions 0-100 of every stats preset section. Never reorder.
GAME_CHARACTER_ORDER = (
    "Mario", "Luigi", "Donkey Kong", "Diddy Kong", "Peach", "Daisy",
    "Green Yoshi", "Baby Mario", "Baby Luigi", "Bowser", "Wario",
    "Waluigi", "Green Koopa Troopa", "Red Toad", "Boo", "Toadette",
    "Red Shy Guy", "Birdo", "Monty Mole", "Bowser Jr.",
    "Red Koopa Paratroopa", "Blue Pianta", "Red Pianta",
    "Yellow Pianta", "Blue Noki", "Red Noki", "Green Noki",
    "Hammer Bro", "Toadsworth", "Blue Toad", "Yellow Toad",
    "Green Toad", "Purple Toad", "Blue Magikoopa", "Red Magikoopa",
    "Green Magikoopa", "Yellow Magikoopa", "King Boo", "Petey Piranha",
    "Dixie Kong", "Goomba", "Paragoomba", "Red Koopa Troopa",
    "Green Koopa Paratroopa", "Blue Shy Guy", "Yellow Shy Guy",
    "Green Shy Guy", "Gray Shy Guy", "Gray Dry Bones",
    "Green Dry Bones", "Dark Bones", "Blue Dry Bones", "Fire Bro",
    "Boomerang Bro", "Wiggler", "Blooper", "Funky Kong", "Tiny Kong",
    "Green Kritter", "Blue Kritter", "Red Kritter", "Brown Kritter",
    "King K. Rool", "Baby Peach", "Baby Daisy", "Baby DK", "Red Yoshi",
    "Blue Yoshi", "Yellow Yoshi", "Light Blue Yoshi", "Pink Yoshi",
    "Unused Yoshi 2", "Unused Yoshi", "Unused Toad", "Unused Pianta",
    "Unused Kritter", "Unused Koopa", "Red Mii (M)", "Orange Mii (M)",
    "Yellow Mii (M)", "Light Green Mii (M)", "Green Mii (M)",
    "Blue Mii (M)", "Light Blue Mii (M)", "Pink Mii (M)",
    "Purple Mii (M)", "Brown Mii (M)", "White Mii (M)", "Black Mii (M)",
    "Red Mii (F)", "Orange Mii (F)", "Yellow Mii (F)",
    "Light Green Mii (F)", "Green Mii (F)", "Blue Mii (F)",
    "Light Blue Mii (F)", "Pink Mii (F)", "Purple Mii (F)",
    "Brown Mii (F)", "White Mii (F)", "Black Mii (F)",
)

N_CHARACTERS = len(GAME_CHARACTER_ORDER)

# Recolor groups of the stats editor; only these are rewritten as "Base (Color)"
VARIANT_GROUPS: Dict[str, List[str]] = {
    'Bro': ['Boomerang Bro', 'Fire Bro', 'Hammer Bro'],
    'Dry Bones': ['Dark Bones', 'Blue Dry Bones', 'Gray Dry Bones', 'Green Dry Bones'],
    'Koopa Paratroopa': ['Green Koopa Paratroopa', 'Red Koopa Paratroopa'],
    'Koopa Troopa': ['Green Koopa Troopa', 'Red Koopa Troopa'],
    'Kritter': ['Green Kritter', 'Blue Kritter', 'Red Kritter', 'Brown Kritter'],
    'Magikoopa': ['Blue Magikoopa', 'Green Magikoopa', 'Red Magikoopa', 'Yellow Magikoopa'],
    'Noki': ['Blue Noki', 'Red Noki', 'Green Noki'],
    'Pianta': ['Blue Pianta', 'Red Pianta', 'Yellow Pianta'],
    'Shy Guy': ['Blue Shy Guy', 'Gray Shy Guy', 'Green Shy Guy', 'Red Shy Guy', 'Yellow Shy Guy'],
    'Toad': ['Blue Toad', 'Green Toad', 'Purple Toad', 'Red Toad', 'Yellow Toad'],
    'Yoshi': ['Blue Yoshi', 'Light Blue Yoshi', 'Green Yoshi', 'Pink Yoshi', 'Red Yoshi', 'Yellow Yoshi'],
}

NAME_MAPPING_HEADER = ['Python Name', 'Custom Name']

_PAREN_PREFIX = re.compile(r'^(.+?)\s*\(')
_BRACKET_PREFIX = re.compile(r'^(.+?)\s*\[')
_BRACKET_GROUP = re.compile(r'\[(.+?)\]')
_MII_CANONICAL = re.compile(r'^(.+) Mii \((M|F)\)$')


# =============================================================================
# Display Name Metadata
# =============================================================================

def extract_base_name(name: str) -> str:
    """
    Species/model part of a display name.

    "Toad (Red)" -> "Toad", "Mii [Red]" -> "Mii", "Mario" -> "Mario".
    """
    match = _PAREN_PREFIX.match(name)
    if match:
        return match.group(1).strip()
    match = _BRACKET_PREFIX.match(name)
    if match:
        return match.group(1).strip()
    return name.strip()


def is_mii_character(name: str) -> bool:
    return '[' in name and ']' in name


def extract_mii_color(name: str) -> Optional[str]:
    """Content of the first [...] group, or None."""
    match = _BRACKET_GROUP.search(name)
    return match.group(1).strip() if match else None


def generate_custom_name(canonical_name: str) -> str:
    """
    Default display name for a canonical character name.

    Recolors become "Base (Color)" and Miis become "Mii (Color, Gender)";
    everything else (Baby Mario, King Boo, ...) is returned unchanged.
    """
    for base_name, variants in VARIANT_GROUPS.items():
        if canonical_name in variants:
            if canonical_name.endswith(' ' + base_name):
                prefix = canonical_name[:len(canonical_name) - len(base_name) - 1]
            else:
                # "Dark Bones" does not carry the full base name
                prefix = canonical_name.split(' ')[0]
            return f"{base_name} ({prefix})"

    match = _MII_CANONICAL.match(canonical_name)
    if match:
        return f"Mii ({match.group(1)}, {match.group(2)})"

    return canonical_name


# =============================================================================
# Name Resolver
# =============================================================================

class NameResolver:
    """
    Canonical id <-> display name mapping.

    Resolution order: explicit override, else generate_custom_name, else the
    canonical name verbatim.
    """

    def __init__(self, overrides: Optional[Dict[str, str]] = None):
        self.overrides = dict(overrides or {})
        self._display = [
            self.overrides.get(name) or generate_custom_name(name) or name
            for name in GAME_CHARACTER_ORDER
        ]
        self._index: Dict[str, int] = {}
        for idx, display in enumerate(self._display):
            if display in self._index:
                logger.warning(
                    "Display name %r used by canonical ids %d and %d; keeping %d",
                    display, self._index[display], idx, self._index[display]
                )
                continue
            self._index[display] = idx
        # Raw canonical names resolve too, unless a display name already owns them
        for idx, name in enumerate(GAME_CHARACTER_ORDER):
            self._index.setdefault(name, idx)

    def display_name(self, canonical_id: int) -> str:
        if not 0 <= canonical_id < N_CHARACTERS:
            raise IndexError(
                f"Canonical id {canonical_id} out of range 0..{N_CHARACTERS - 1}"
            )
        return self._display[canonical_id]

    def display_names(self) -> List[str]:
        return list(self._display)

    def canonical_index(self, name: str) -> Optional[int]:
        """Canonical id for a display (or canonical) name; None if unknown."""
        return self._index.get(str(name).strip())

    @classmethod
    def from_workbook(
        cls,
        workbook: Workbook,
        config: ToolConfig = DEFAULT_CONFIG
    ) -> 'NameResolver':
        sheet = workbook.get_sheet(config.sheets.name_mapping)
        return cls(load_name_overrides(sheet) if sheet is not None else {})


def ensure_name_mapping_sheet(workbook: Workbook, config: ToolConfig = DEFAULT_CONFIG) -> Sheet:
    """Create the name mapping sheet, pre-filled with generated names, if missing."""
    sheet = workbook.get_sheet(config.sheets.name_mapping)
    if sheet is not None:
        return sheet

    sheet = workbook.insert_sheet(config.sheets.name_mapping)
    rows = [list(NAME_MAPPING_HEADER)]
    rows.extend([name, generate_custom_name(name)] for name in GAME_CHARACTER_ORDER)
    sheet.set_values(1, 1, rows)
    logger.info("Created %s sheet with %d names", sheet.name, N_CHARACTERS)
    return sheet


def load_name_overrides(sheet: Sheet) -> Dict[str, str]:
    """Canonical name -> custom name for every filled mapping row."""
    overrides: Dict[str, str] = {}
    if sheet.last_row < 2:
        return overrides

    for canonical, custom in sheet.get_range_values(2, 1, sheet.last_row - 1, 2):
        canonical = str(canonical).strip()
        custom = str(custom).strip()
        if canonical and custom:
            overrides[canonical] = custom
    return overrides

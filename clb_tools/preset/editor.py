"""
Matrix-form chemistry editor.

Loads the lookup as a 101x101 grid of preset codes, writes an edited grid back
to the lookup, and lists the relationships of a single character.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Dict, Tuple, Optional, Iterable

import numpy as np

from ..changelog import log_chemistry_change
from ..config import ToolConfig, DEFAULT_CONFIG
from ..errors import ClbToolsError, PresetParseError, UnknownEntityError
from ..names import NameResolver, N_CHARACTERS
from ..store import Workbook, PropertyStore
from ..types import Thresholds, OperationResult, PRESET_NEGATIVE, PRESET_NEUTRAL, PRESET_POSITIVE
from ..chemistry.lookup import write_chemistry_lookup, update_chemistry_data_json, read_chemistry_lookup
from .codec import build_preset_matrix, chemistry_pairs_from_matrix, PRESET_CODES

logger = logging.getLogger(__name__)


@dataclass
class ChemistryChange:
    """One cell edit made in the editor, as preset codes."""
    char1: str
    char2: str
    old_value: int
    new_value: int


@dataclass
class CharacterChemistry:
    name: str
    relationships: List[Tuple[str, int]] = field(default_factory=list)

    @property
    def positive_count(self) -> int:
        return sum(1 for _, code in self.relationships if code == PRESET_POSITIVE)

    @property
    def negative_count(self) -> int:
        return sum(1 for _, code in self.relationships if code == PRESET_NEGATIVE)

    def to_dict(self) -> Dict:
        return {
            'character': self.name,
            'relationships': [{'character': c, 'value': v} for c, v in self.relationships],
            'positiveCount': self.positive_count,
            'negativeCount': self.negative_count,
        }


def get_chemistry_matrix(
    workbook: Workbook,
    resolver: NameResolver,
    thresholds: Thresholds,
    config: ToolConfig = DEFAULT_CONFIG
) -> Tuple[np.ndarray, List[str]]:
    """
    Current lookup as preset codes.

    A missing or empty lookup gives an all-neutral matrix.

    Returns:
        (matrix [101, 101], display names in canonical order)
    """
    sheet = workbook.get_sheet(config.sheets.chemistry_lookup)
    pairs = read_chemistry_lookup(sheet) if sheet is not None else []
    matrix, _ = build_preset_matrix(pairs, resolver, thresholds)
    return matrix, resolver.display_names()


def _validate_matrix(matrix) -> np.ndarray:
    try:
        grid = np.asarray(matrix)
    except ValueError:
        raise PresetParseError("Chemistry matrix rows have unequal lengths") from None
    if grid.shape != (N_CHARACTERS, N_CHARACTERS):
        raise PresetParseError(
            f"Chemistry matrix must be {N_CHARACTERS}x{N_CHARACTERS}, got {'x'.join(map(str, grid.shape))}"
        )
    invalid = ~np.isin(grid, PRESET_CODES)
    if invalid.any():
        i, j = np.argwhere(invalid)[0]
        raise PresetParseError(
            f"Invalid chemistry code {grid[i, j]} at row {i}, column {j}"
        )
    return grid.astype(np.int8)


def update_chemistry_matrix(
    workbook: Workbook,
    props: PropertyStore,
    matrix,
    changes: Iterable[ChemistryChange] = (),
    config: ToolConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None
) -> OperationResult:
    """
    Replace the lookup with the upper triangle of an edited matrix.

    Each entry of `changes` is written to the change log first. Neutral cells
    are not stored.

    Returns:
        OperationResult with total_pairs and changes_logged on success
    """
    try:
        grid = _validate_matrix(matrix)
        changes = list(changes)
        for change in changes:
            log_chemistry_change(
                workbook, change.char1, change.char2, change.old_value, change.new_value,
                config, notes='Chemistry editor', now=now
            )

        resolver = NameResolver.from_workbook(workbook, config)
        pairs = chemistry_pairs_from_matrix(grid, resolver, config.thresholds)

        sheet = workbook.get_or_insert_sheet(config.sheets.chemistry_lookup)
        write_chemistry_lookup(sheet, pairs, props, now=now)
        update_chemistry_data_json(workbook, props, config, now=now)

    except ClbToolsError as e:
        logger.error("Chemistry matrix update failed: %s", e)
        return OperationResult.failed(str(e))

    return OperationResult.ok(
        f"Saved {len(pairs)} chemistry pairs.",
        total_pairs=len(pairs),
        changes_logged=len(changes),
    )


def character_chemistry(
    name: str,
    workbook: Workbook,
    config: ToolConfig = DEFAULT_CONFIG
) -> CharacterChemistry:
    """
    Every non-neutral relationship of one character, in canonical order.

    Raises:
        UnknownEntityError: If the name matches no character
    """
    resolver = NameResolver.from_workbook(workbook, config)
    index = resolver.canonical_index(name)
    if index is None:
        raise UnknownEntityError(f"Character not found: {name}")

    matrix, names = get_chemistry_matrix(workbook, resolver, config.thresholds, config)
    result = CharacterChemistry(name=names[index])
    for other, code in enumerate(matrix[index].tolist()):
        if other != index and code != PRESET_NEUTRAL:
            result.relationships.append((names[other], code))
    return result

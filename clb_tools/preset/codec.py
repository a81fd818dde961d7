"""
Stats preset import/export.

The stats editor's preset is a 228-line comma-separated text file:
- lines 0-100: 101x101 chemistry matrix (0=negative, 1=neutral, 2=positive)
- lines 101-201: 101x30 attribute rows
- lines 202-227: trajectory block (24x25 matrix, 6 names, 6 usage flags)

Rows are positional: row i is GAME_CHARACTER_ORDER[i].
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Dict, Tuple, Optional, Any

import numpy as np

from .. import config as cfg
from ..changelog import log_import_event, log_export_event
from ..chemistry.lookup import (
    write_chemistry_lookup, update_chemistry_data_json, get_lookup_sheet, read_chemistry_lookup
)
from ..config import ToolConfig, DEFAULT_CONFIG
from ..errors import ClbToolsError, PresetParseError, MissingResourceError
from ..names import NameResolver, N_CHARACTERS, ensure_name_mapping_sheet, load_name_overrides
from ..store import Sheet, Workbook, PropertyStore, is_blank
from ..types import (
    ChemistryPair, Thresholds, TrajectoryBlock, OperationResult,
    PRESET_NEGATIVE, PRESET_NEUTRAL, PRESET_POSITIVE, round_chemistry
)
from .tables import (
    PresetColumn, PRESET_ROW_WIDTH, ATTRIBUTE_HEADERS, NUMERIC_FIELDS, PRESERVED_FIELDS,
    ARM_SIDES, CHARACTER_CLASSES, STAR_SWINGS,
    ability_from_indices, ability_label, ability_to_indices, parse_ability,
    star_pitch_from_indices, star_pitch_label, star_pitch_to_indices, parse_star_pitch,
)

logger = logging.getLogger(__name__)


CHEMISTRY_START = 0
STATS_START = N_CHARACTERS                 # 101
TRAJECTORY_START = 2 * N_CHARACTERS        # 202
TRAJECTORY_ROWS = 24
TRAJECTORY_COLUMNS = 25
TRAJECTORY_SLOTS = 6
PRESET_LINE_COUNT = TRAJECTORY_START + TRAJECTORY_ROWS + 2   # 228

PRESET_CODES = (PRESET_NEGATIVE, PRESET_NEUTRAL, PRESET_POSITIVE)

_COLUMN = {header: idx for idx, header in enumerate(ATTRIBUTE_HEADERS)}


@dataclass
class ParsedPreset:
    """
    A fully validated preset.

    Attributes:
        chemistry: [101, 101] preset codes
        stats: [101, 30] raw attribute values
        trajectory: Passthrough trajectory block
    """
    chemistry: np.ndarray
    stats: np.ndarray
    trajectory: TrajectoryBlock


# =============================================================================
# Parsing
# =============================================================================

def _parse_int_row(line: str, expected: int, line_no: int, section: str) -> List[int]:
    """Split one line into exactly `expected` integers; line_no is 1-based."""
    tokens = line.split(',')
    values = []
    for token in tokens:
        try:
            values.append(int(token.strip()))
        except ValueError:
            raise PresetParseError(
                f"Invalid {section} value at line {line_no}: {token.strip()!r}"
            ) from None
    if len(values) != expected:
        raise PresetParseError(
            f"Invalid {section} row at line {line_no}: "
            f"expected {expected} values, found {len(values)}"
        )
    return values


def parse_chemistry_section(lines: List[str], first_line_no: int = 1) -> np.ndarray:
    matrix = np.empty((N_CHARACTERS, N_CHARACTERS), dtype=np.int8)
    for i in range(N_CHARACTERS):
        row = _parse_int_row(lines[i], N_CHARACTERS, first_line_no + i, 'chemistry')
        bad = [v for v in row if v not in PRESET_CODES]
        if bad:
            raise PresetParseError(
                f"Invalid chemistry value at line {first_line_no + i}: {bad[0]} "
                f"(expected one of {', '.join(str(c) for c in PRESET_CODES)})"
            )
        matrix[i] = row
    return matrix


def parse_stats_section(lines: List[str], first_line_no: int = STATS_START + 1) -> np.ndarray:
    stats = np.empty((N_CHARACTERS, PRESET_ROW_WIDTH), dtype=np.int64)
    for i in range(N_CHARACTERS):
        stats[i] = _parse_int_row(lines[i], PRESET_ROW_WIDTH, first_line_no + i, 'stats')
    return stats


def parse_trajectory_section(lines: List[str], first_line_no: int = TRAJECTORY_START + 1) -> TrajectoryBlock:
    matrix = [
        _parse_int_row(lines[i], TRAJECTORY_COLUMNS, first_line_no + i, 'trajectory')
        for i in range(TRAJECTORY_ROWS)
    ]

    names = lines[TRAJECTORY_ROWS].split(',')
    if len(names) != TRAJECTORY_SLOTS:
        raise PresetParseError(
            f"Invalid trajectory names at line {first_line_no + TRAJECTORY_ROWS}: "
            f"expected {TRAJECTORY_SLOTS}, found {len(names)}"
        )

    usage = _parse_int_row(
        lines[TRAJECTORY_ROWS + 1], TRAJECTORY_SLOTS,
        first_line_no + TRAJECTORY_ROWS + 1, 'trajectory usage'
    )
    return TrajectoryBlock(matrix=matrix, names=names, usage=usage)


def parse_preset(text: str) -> ParsedPreset:
    """
    Validate and parse all three sections.

    Raises:
        PresetParseError: On any line-count, token-count or value error
    """
    lines = [line.rstrip('\r') for line in text.split('\n')]
    if len(lines) < PRESET_LINE_COUNT:
        raise PresetParseError(
            f"Invalid preset file: expected at least {PRESET_LINE_COUNT} lines, found {len(lines)}"
        )

    return ParsedPreset(
        chemistry=parse_chemistry_section(lines[CHEMISTRY_START:STATS_START], CHEMISTRY_START + 1),
        stats=parse_stats_section(lines[STATS_START:TRAJECTORY_START], STATS_START + 1),
        trajectory=parse_trajectory_section(
            lines[TRAJECTORY_START:PRESET_LINE_COUNT], TRAJECTORY_START + 1
        ),
    )


# =============================================================================
# Import
# =============================================================================

def chemistry_pairs_from_matrix(
    matrix: np.ndarray,
    resolver: NameResolver,
    thresholds: Thresholds
) -> List[ChemistryPair]:
    """Non-neutral upper-triangle cells as pairs of display names."""
    pairs = []
    rows, cols = np.triu_indices(N_CHARACTERS, k=1)
    for i, j in zip(rows.tolist(), cols.tolist()):
        chemistry = thresholds.from_preset(int(matrix[i, j]))
        if chemistry is None:
            continue
        pairs.append(ChemistryPair.of(
            resolver.display_name(i), resolver.display_name(j), chemistry
        ))
    return pairs


def stats_row_to_sheet_row(
    preset_row: List[int],
    name: str,
    preserved: Dict[str, Any],
    line_no: int
) -> List[Any]:
    """One preset attribute row -> attributes sheet row (ATTRIBUTE_HEADERS order)."""
    col = PresetColumn
    try:
        values = {
            'Name': name,
            'Character Class': CHARACTER_CLASSES.label(preset_row[col.CHARACTER_CLASS]),
            'Captain': 'Yes' if preset_row[col.CAPTAIN] == 1 else 'No',
            'Arm Side': ARM_SIDES.label(preset_row[col.ARM_SIDE]),
            'Batting Side': ARM_SIDES.label(preset_row[col.BATTING_SIDE]),
            'Ability': ability_label(ability_from_indices(
                preset_row[col.FIELDING_ABILITY], preset_row[col.BASERUNNING_ABILITY]
            )),
            'Star Swing': STAR_SWINGS.label(preset_row[col.STAR_SWING]),
            'Star Pitch': star_pitch_label(star_pitch_from_indices(
                preset_row[col.STAR_PITCH], preset_row[col.STAR_PITCH_TYPE]
            )),
        }
    except IndexError as e:
        raise PresetParseError(f"Invalid stats row at line {line_no}: {e}") from None

    for header, index in NUMERIC_FIELDS.items():
        values[header] = int(preset_row[index])
    for header in PRESERVED_FIELDS:
        values[header] = preserved.get(header, '')

    return [values[header] for header in ATTRIBUTE_HEADERS]


def _existing_custom_columns(sheet: Sheet) -> Dict[str, Dict[str, Any]]:
    """Name -> preserved column values from the current attributes sheet."""
    existing: Dict[str, Dict[str, Any]] = {}
    if sheet.last_row < 2:
        return existing

    width = max(sheet.last_column, len(ATTRIBUTE_HEADERS))
    header = [str(h).strip() for h in sheet.get_range_values(1, 1, 1, width)[0]]
    columns = {
        field_name: header.index(field_name) if field_name in header else _COLUMN[field_name]
        for field_name in PRESERVED_FIELDS
    }

    for row in sheet.get_range_values(2, 1, sheet.last_row - 1, width):
        name = '' if is_blank(row[0]) else str(row[0]).strip()
        if name:
            existing[name] = {field_name: row[col] for field_name, col in columns.items()}
    return existing


def build_attribute_rows(
    stats: np.ndarray,
    resolver: NameResolver,
    existing: Dict[str, Dict[str, Any]]
) -> List[List[Any]]:
    rows = []
    for i in range(N_CHARACTERS):
        name = resolver.display_name(i)
        rows.append(stats_row_to_sheet_row(
            [int(v) for v in stats[i]], name, existing.get(name, {}), STATS_START + i + 1
        ))
    return rows


def import_preset(
    text: str,
    workbook: Workbook,
    props: PropertyStore,
    config: ToolConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None
) -> OperationResult:
    """
    Import a full stats preset into the workbook and property store.

    All sections are parsed and converted before anything is written, so a
    bad file leaves the stores untouched.

    Returns:
        OperationResult with chemistry/stats/trajectory counts on success
    """
    try:
        preset = parse_preset(text)

        # Resolve names against the current overrides without creating the sheet yet
        mapping_sheet = workbook.get_sheet(config.sheets.name_mapping)
        resolver = NameResolver(load_name_overrides(mapping_sheet) if mapping_sheet else {})

        pairs = chemistry_pairs_from_matrix(preset.chemistry, resolver, config.thresholds)
        attributes_sheet = workbook.get_sheet(config.sheets.attributes)
        existing = _existing_custom_columns(attributes_sheet) if attributes_sheet else {}
        attribute_rows = build_attribute_rows(preset.stats, resolver, existing)

        # Persist
        ensure_name_mapping_sheet(workbook, config)

        lookup_sheet = workbook.get_or_insert_sheet(config.sheets.chemistry_lookup)
        write_chemistry_lookup(lookup_sheet, pairs, props, now=now)

        attributes_sheet = workbook.get_or_insert_sheet(config.sheets.attributes)
        attributes_sheet.set_values(1, 1, [list(ATTRIBUTE_HEADERS)])
        attributes_sheet.set_values(2, 1, attribute_rows)

        props.set(cfg.TRAJECTORY_DATA, json.dumps(preset.trajectory.to_dict()))

        update_chemistry_data_json(workbook, props, config, now=now)

    except ClbToolsError as e:
        logger.error("Preset import failed: %s", e)
        return OperationResult.failed(str(e))

    positive = sum(1 for p in pairs if config.thresholds.is_positive(p.chemistry))
    negative = len(pairs) - positive
    stats = {
        'chemistry_pairs': len(pairs),
        'characters_updated': len(attribute_rows),
        'trajectory_stored': True,
    }
    log_import_event(workbook, stats, config, now=now)
    logger.info(
        "Imported preset: %d chemistry pairs (%d positive, %d negative), %d characters",
        len(pairs), positive, negative, len(attribute_rows)
    )

    return OperationResult.ok(
        f"Imported {len(pairs)} chemistry pairs and {len(attribute_rows)} characters.",
        total_pairs=len(pairs),
        positive_count=positive,
        negative_count=negative,
        characters_updated=len(attribute_rows),
        trajectory_stored=True,
    )


# =============================================================================
# Export
# =============================================================================

def build_preset_matrix(
    pairs: List[ChemistryPair],
    resolver: NameResolver,
    thresholds: Thresholds
) -> Tuple[np.ndarray, List[str]]:
    """
    101x101 preset codes from stored pairs.

    Every cell starts neutral; both symmetric cells of a known pair get its
    classification.

    Returns:
        (matrix, names that matched no canonical character)
    """
    matrix = np.full((N_CHARACTERS, N_CHARACTERS), PRESET_NEUTRAL, dtype=np.int8)
    skipped: List[str] = []
    for pair in pairs:
        idx1 = resolver.canonical_index(pair.player1)
        idx2 = resolver.canonical_index(pair.player2)
        if idx1 is None or idx2 is None:
            skipped.extend(n for n, idx in ((pair.player1, idx1), (pair.player2, idx2)) if idx is None)
            continue
        code = thresholds.to_preset(pair.chemistry)
        matrix[idx1, idx2] = code
        matrix[idx2, idx1] = code
    return matrix, skipped


def _matrix_lines(matrix: np.ndarray) -> List[str]:
    return [','.join(str(int(v)) for v in row) for row in matrix]


def _label_index(table, value: Any, name: str, header: str) -> int:
    if is_blank(value):
        return 0
    index = table.index(value)
    if index is None:
        logger.warning("Unknown %s %r for %s, exporting index 0", header, value, name)
        return 0
    return index


def _number(value: Any, name: str, header: str) -> int:
    if is_blank(value):
        return 0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return round_chemistry(value)
    try:
        return round_chemistry(float(str(value).strip()))
    except (ValueError, OverflowError):
        logger.warning("Non-numeric %s %r for %s, exporting 0", header, value, name)
        return 0


def sheet_row_to_stats_row(row: List[Any]) -> List[int]:
    """Attributes sheet row (ATTRIBUTE_HEADERS order) -> 30 preset values."""
    name = str(row[_COLUMN['Name']]).strip()
    col = PresetColumn
    out = [0] * PRESET_ROW_WIDTH

    out[col.ARM_SIDE] = _label_index(ARM_SIDES, row[_COLUMN['Arm Side']], name, 'Arm Side')
    out[col.BATTING_SIDE] = _label_index(ARM_SIDES, row[_COLUMN['Batting Side']], name, 'Batting Side')
    out[col.CHARACTER_CLASS] = _label_index(
        CHARACTER_CLASSES, row[_COLUMN['Character Class']], name, 'Character Class'
    )
    out[col.CAPTAIN] = 1 if str(row[_COLUMN['Captain']]).strip() == 'Yes' else 0
    out[col.STAR_SWING] = _label_index(STAR_SWINGS, row[_COLUMN['Star Swing']], name, 'Star Swing')

    out[col.STAR_PITCH], out[col.STAR_PITCH_TYPE] = star_pitch_to_indices(
        parse_star_pitch(str(row[_COLUMN['Star Pitch']]))
    )
    out[col.FIELDING_ABILITY], out[col.BASERUNNING_ABILITY] = ability_to_indices(
        parse_ability(str(row[_COLUMN['Ability']]))
    )

    for header, index in NUMERIC_FIELDS.items():
        out[index] = _number(row[_COLUMN[header]], name, header)
    return out


def build_stats_matrix(
    rows: List[List[Any]],
    resolver: NameResolver
) -> Tuple[np.ndarray, List[str]]:
    """
    101x30 preset attribute values from attributes sheet rows.

    Characters without a sheet row export as all zeros.

    Returns:
        (matrix, names that matched no canonical character)
    """
    stats = np.zeros((N_CHARACTERS, PRESET_ROW_WIDTH), dtype=np.int64)
    skipped: List[str] = []
    for row in rows:
        name = '' if is_blank(row[0]) else str(row[0]).strip()
        if not name:
            continue
        index = resolver.canonical_index(name)
        if index is None:
            skipped.append(name)
            continue
        stats[index] = sheet_row_to_stats_row(row)
    return stats, skipped


def load_trajectory(props: PropertyStore) -> TrajectoryBlock:
    raw = props.get(cfg.TRAJECTORY_DATA)
    if not raw:
        raise MissingResourceError(
            "Trajectory data not found. Import a stats preset first."
        )
    return TrajectoryBlock.from_dict(json.loads(raw))


def export_preset(
    workbook: Workbook,
    props: PropertyStore,
    config: ToolConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None
) -> OperationResult:
    """
    Build the 228-line preset text from the lookup, attributes and trajectory.

    Names that match no canonical character are left out of the export; their
    count is reported in the result (skipped_chemistry_names,
    skipped_attribute_names).

    Returns:
        OperationResult with `text` on success
    """
    try:
        resolver = NameResolver.from_workbook(workbook, config)

        pairs = read_chemistry_lookup(get_lookup_sheet(workbook, config))
        chemistry, skipped_chemistry = build_preset_matrix(pairs, resolver, config.thresholds)

        attributes_sheet = workbook.get_sheet(config.sheets.attributes)
        if attributes_sheet is None or attributes_sheet.last_row < 2:
            raise MissingResourceError(
                f"{config.sheets.attributes} sheet not found or empty"
            )
        attribute_rows = attributes_sheet.get_range_values(
            2, 1, attributes_sheet.last_row - 1, len(ATTRIBUTE_HEADERS)
        )
        stats, skipped_attributes = build_stats_matrix(attribute_rows, resolver)

        trajectory = load_trajectory(props)

    except ClbToolsError as e:
        logger.error("Preset export failed: %s", e)
        return OperationResult.failed(str(e))

    lines = _matrix_lines(chemistry) + _matrix_lines(stats) + trajectory.to_lines()
    unique_skipped = sorted(set(skipped_chemistry))
    if unique_skipped:
        logger.warning(
            "%d lookup names match no character and were not exported: %s",
            len(unique_skipped), ', '.join(unique_skipped)
        )
    if skipped_attributes:
        logger.warning(
            "%d attribute rows match no character and were not exported: %s",
            len(skipped_attributes), ', '.join(skipped_attributes)
        )

    log_export_event(workbook, {
        'line_count': len(lines),
        'trajectory_exported': True,
        'skipped_names': len(unique_skipped) + len(skipped_attributes),
    }, config, now=now)

    return OperationResult.ok(
        f"Exported {len(lines)} lines.",
        text='\n'.join(lines),
        line_count=len(lines),
        skipped_chemistry_names=unique_skipped,
        skipped_attribute_names=skipped_attributes,
    )

import json

import numpy as np
import pytest

from clb_tools import config as cfg
from clb_tools.chemistry.lookup import LOOKUP_HEADER
from clb_tools.config import DEFAULT_CONFIG
from clb_tools.errors import PresetParseError
from clb_tools.names import NameResolver, N_CHARACTERS
from clb_tools.preset.codec import (
    PRESET_LINE_COUNT, parse_preset, import_preset, export_preset, build_preset_matrix,
)
from clb_tools.preset.tables import ATTRIBUTE_HEADERS, PresetColumn
from clb_tools.types import ChemistryPair, Thresholds

from conftest import (
    build_preset_lines, build_preset_text, neutral_chemistry, default_stats_row,
    TRAJECTORY_NAMES, TRAJECTORY_USAGE,
)

SHEETS = DEFAULT_CONFIG.sheets


def attribute_row(workbook, name):
    sheet = workbook.get_sheet(SHEETS.attributes)
    for row in sheet.get_values()[1:]:
        if row[0] == name:
            return dict(zip(ATTRIBUTE_HEADERS, row))
    raise AssertionError(f"{name} not in attributes sheet")


# =============================================================================
# Parsing
# =============================================================================

def test_parse_valid_preset():
    preset = parse_preset(build_preset_text())
    assert preset.chemistry.shape == (N_CHARACTERS, N_CHARACTERS)
    assert preset.stats.shape == (N_CHARACTERS, 30)
    assert preset.trajectory.names == TRAJECTORY_NAMES
    assert preset.trajectory.usage == TRAJECTORY_USAGE
    assert len(preset.trajectory.matrix) == 24


def test_parse_accepts_crlf_line_endings():
    preset = parse_preset(build_preset_text().replace('\n', '\r\n'))
    assert preset.trajectory.names[-1] == 'Custom'


def test_too_few_lines():
    lines = build_preset_lines()[:-1]
    with pytest.raises(PresetParseError, match=f'at least {PRESET_LINE_COUNT} lines'):
        parse_preset('\n'.join(lines))


def test_invalid_chemistry_code_names_line():
    chemistry = neutral_chemistry()
    chemistry[5][7] = 3
    with pytest.raises(PresetParseError, match='line 6'):
        parse_preset(build_preset_text(chemistry=chemistry))


def test_short_chemistry_row():
    lines = build_preset_lines()
    lines[0] = ','.join(['1'] * 100)
    with pytest.raises(PresetParseError, match='expected 101 values, found 100'):
        parse_preset('\n'.join(lines))


def test_short_stats_row_names_line():
    lines = build_preset_lines()
    lines[101] = ','.join(['0'] * 29)
    with pytest.raises(PresetParseError, match='line 102'):
        parse_preset('\n'.join(lines))


def test_non_numeric_trajectory_token():
    lines = build_preset_lines()
    lines[202] = 'x' + lines[202]
    with pytest.raises(PresetParseError, match='line 203'):
        parse_preset('\n'.join(lines))


def test_wrong_trajectory_name_count():
    with pytest.raises(PresetParseError, match='trajectory names'):
        parse_preset(build_preset_text(names=['A', 'B']))


# =============================================================================
# Import
# =============================================================================

def test_single_positive_cell_becomes_one_pair(workbook, props, fixed_now):
    chemistry = neutral_chemistry()
    chemistry[0][1] = 2
    result = import_preset(build_preset_text(chemistry=chemistry), workbook, props, now=fixed_now)

    assert result.success, result.message
    assert result.data['total_pairs'] == 1
    assert workbook.get_sheet(SHEETS.chemistry_lookup).get_values() == [
        LOOKUP_HEADER,
        ['Luigi', 'Mario', DEFAULT_CONFIG.thresholds.positive_min],
    ]


def test_import_counts_and_side_effects(workbook, props, preset_text, fixed_now):
    result = import_preset(preset_text, workbook, props, now=fixed_now)

    assert result.success
    assert result.data['positive_count'] == 1
    assert result.data['negative_count'] == 1
    assert result.data['characters_updated'] == N_CHARACTERS

    assert workbook.get_sheet(SHEETS.name_mapping) is not None
    assert json.loads(props.get(cfg.TRAJECTORY_DATA))['names'] == TRAJECTORY_NAMES
    assert json.loads(props.get(cfg.CHEMISTRY_DATA))['players'] == ['Luigi', 'Mario', 'Wario']

    log = workbook.get_sheet(SHEETS.change_log).get_values()
    assert log[-1][1] == '*** IMPORT ***'
    assert log[-1][2] == '2 chemistry pairs'


def test_import_writes_display_names_and_labels(workbook, props):
    stats = [default_stats_row(i) for i in range(N_CHARACTERS)]
    stats[13][PresetColumn.FIELDING_ABILITY] = 3
    stats[13][PresetColumn.BASERUNNING_ABILITY] = 2
    stats[13][PresetColumn.STAR_PITCH] = 2
    stats[13][PresetColumn.CAPTAIN] = 1
    stats[13][PresetColumn.CHARACTER_CLASS] = 2
    stats[14][PresetColumn.BASERUNNING_ABILITY] = 4
    stats[14][PresetColumn.STAR_PITCH_TYPE] = 2

    assert import_preset(build_preset_text(stats=stats), workbook, props).success

    toad = attribute_row(workbook, 'Toad (Red)')
    assert toad['Ability'] == 'Tongue Catch'
    assert toad['Star Pitch'] == 'Tornado Ball'
    assert toad['Captain'] == 'Yes'
    assert toad['Character Class'] == 'Speed'
    assert toad['Weight'] == 13 + PresetColumn.WEIGHT

    boo = attribute_row(workbook, 'Boo')
    assert boo['Ability'] == 'Teleport'
    assert boo['Star Pitch'] == 'Fastball'
    assert boo['Captain'] == 'No'

    mario = attribute_row(workbook, 'Mario')
    assert mario['Ability'] == 'None'
    assert mario['Star Pitch'] == 'None'
    assert mario['Arm Side'] == 'Right'


def test_out_of_range_label_index_is_rejected(workbook, props):
    stats = [default_stats_row(i) for i in range(N_CHARACTERS)]
    stats[0][PresetColumn.CHARACTER_CLASS] = 7
    result = import_preset(build_preset_text(stats=stats), workbook, props)
    assert not result.success
    assert 'line 102' in result.message


def test_failed_import_persists_nothing(workbook, props):
    chemistry = neutral_chemistry()
    chemistry[100][100] = 9
    result = import_preset(build_preset_text(chemistry=chemistry), workbook, props)
    assert not result.success
    assert workbook.sheet_names() == []
    assert props.keys() == []


def test_import_preserves_custom_columns(workbook, props, preset_text):
    sheet = workbook.insert_sheet(SHEETS.attributes)
    row = [''] * len(ATTRIBUTE_HEADERS)
    row[0] = 'Mario'
    row[ATTRIBUTE_HEADERS.index('Mii')] = 'Yes'
    row[ATTRIBUTE_HEADERS.index('Mii Color')] = 'Red'
    row[ATTRIBUTE_HEADERS.index('Pre-Charge')] = 'Fast'
    sheet.set_values(1, 1, [list(ATTRIBUTE_HEADERS), row])

    assert import_preset(preset_text, workbook, props).success

    mario = attribute_row(workbook, 'Mario')
    assert (mario['Mii'], mario['Mii Color'], mario['Pre-Charge']) == ('Yes', 'Red', 'Fast')
    assert attribute_row(workbook, 'Luigi')['Mii Color'] == ''


# =============================================================================
# Export
# =============================================================================

def test_round_trip_reproduces_preset(workbook, props, preset_text):
    assert import_preset(preset_text, workbook, props).success
    result = export_preset(workbook, props)

    assert result.success, result.message
    assert result.data['line_count'] == PRESET_LINE_COUNT
    assert result.data['text'] == preset_text


def test_export_reports_unmapped_names(workbook, props, preset_text):
    assert import_preset(preset_text, workbook, props).success
    workbook.get_sheet(SHEETS.chemistry_lookup).append_row(['Mario', 'Nobody', 150])

    result = export_preset(workbook, props)
    assert result.success
    assert result.data['skipped_chemistry_names'] == ['Nobody']
    assert result.data['text'] == preset_text

    log = workbook.get_sheet(SHEETS.change_log).get_values()
    assert log[-1][1] == '*** EXPORT ***'
    assert log[-1][5] == '1 unmapped names skipped'


def test_export_requires_trajectory(workbook, props, preset_text):
    assert import_preset(preset_text, workbook, props).success
    props.delete(cfg.TRAJECTORY_DATA)
    result = export_preset(workbook, props)
    assert not result.success
    assert 'Trajectory data not found' in result.message


def test_export_requires_attributes(workbook, props):
    workbook.insert_sheet(SHEETS.chemistry_lookup).set_values(1, 1, [LOOKUP_HEADER])
    result = export_preset(workbook, props)
    assert not result.success
    assert SHEETS.attributes in result.message


def test_export_classification_boundaries():
    pairs = [
        ChemistryPair('Luigi', 'Mario', 100),
        ChemistryPair('Mario', 'Peach', 99),
        ChemistryPair('Daisy', 'Mario', -100),
        ChemistryPair('Mario', 'Wario', -99),
    ]
    matrix, skipped = build_preset_matrix(pairs, NameResolver(), Thresholds())
    assert skipped == []
    assert matrix[0, 1] == matrix[1, 0] == 2
    assert matrix[0, 4] == 1
    assert matrix[0, 5] == matrix[5, 0] == 0
    assert matrix[0, 10] == 1
    np.testing.assert_array_equal(matrix, matrix.T)

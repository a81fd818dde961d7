import numpy as np
import pytest

from clb_tools.chemistry.lookup import read_chemistry_lookup
from clb_tools.config import DEFAULT_CONFIG
from clb_tools.errors import UnknownEntityError
from clb_tools.names import NameResolver, N_CHARACTERS
from clb_tools.preset.codec import import_preset
from clb_tools.preset.editor import (
    ChemistryChange, get_chemistry_matrix, update_chemistry_matrix, character_chemistry,
)
from clb_tools.types import ChemistryPair

SHEETS = DEFAULT_CONFIG.sheets


@pytest.fixture
def imported(workbook, props, preset_text):
    assert import_preset(preset_text, workbook, props).success
    return workbook


def test_empty_workbook_gives_neutral_matrix(workbook):
    resolver = NameResolver()
    matrix, names = get_chemistry_matrix(workbook, resolver, DEFAULT_CONFIG.thresholds)
    np.testing.assert_array_equal(matrix, np.ones((N_CHARACTERS, N_CHARACTERS)))
    assert names == resolver.display_names()


def test_matrix_reflects_lookup(imported):
    matrix, names = get_chemistry_matrix(imported, NameResolver(), DEFAULT_CONFIG.thresholds)
    assert matrix[0, 1] == matrix[1, 0] == 2
    assert matrix[0, 10] == matrix[10, 0] == 0
    assert names[10] == 'Wario'


def test_update_rebuilds_lookup_and_logs_changes(imported, props, fixed_now):
    matrix, _ = get_chemistry_matrix(imported, NameResolver(), DEFAULT_CONFIG.thresholds)
    matrix[2, 3] = matrix[3, 2] = 2
    change = ChemistryChange('Donkey Kong', 'Diddy Kong', 1, 2)

    result = update_chemistry_matrix(imported, props, matrix, [change], now=fixed_now)

    assert result.success, result.message
    assert result.data == {'total_pairs': 3, 'changes_logged': 1}
    pairs = read_chemistry_lookup(imported.get_sheet(SHEETS.chemistry_lookup))
    assert ChemistryPair('Diddy Kong', 'Donkey Kong', 100) in pairs

    log = imported.get_sheet(SHEETS.change_log).get_values()
    assert log[-1][1:] == ['Donkey Kong', 'Diddy Kong', 'Neutral', 'Positive', 'Chemistry editor']


def test_update_rejects_invalid_codes(imported, props):
    matrix, _ = get_chemistry_matrix(imported, NameResolver(), DEFAULT_CONFIG.thresholds)
    matrix[4, 5] = 5
    result = update_chemistry_matrix(imported, props, matrix)
    assert not result.success
    assert 'Invalid chemistry code' in result.message


def test_update_rejects_wrong_shape(workbook, props):
    result = update_chemistry_matrix(workbook, props, [[1, 1], [1, 1]])
    assert not result.success
    assert '101x101' in result.message


def test_character_chemistry(imported):
    mario = character_chemistry('Mario', imported)
    assert mario.relationships == [('Luigi', 2), ('Wario', 0)]
    assert mario.positive_count == 1
    assert mario.negative_count == 1
    assert mario.to_dict()['character'] == 'Mario'


def test_character_chemistry_unknown_name(imported):
    with pytest.raises(UnknownEntityError, match='Nobody'):
        character_chemistry('Nobody', imported)

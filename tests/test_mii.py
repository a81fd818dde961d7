from clb_tools.chemistry.mii import (
    MII_COLOR_HEADER, ensure_mii_color_sheet, read_mii_color_chemistry,
    group_miis_by_color, apply_mii_color_chemistry,
)
from clb_tools.config import DEFAULT_CONFIG
from clb_tools.store import Sheet
from clb_tools.types import ChemistryPair, MiiColorMapping


MASTER = ['Mario', 'Luigi', 'Mii [Red]', 'Mii [Red] 2', 'Mii [Blue]']


def test_sheet_created_with_header(workbook):
    sheet = ensure_mii_color_sheet(workbook, DEFAULT_CONFIG)
    assert sheet.get_values() == [MII_COLOR_HEADER]
    assert ensure_mii_color_sheet(workbook, DEFAULT_CONFIG) is sheet


def test_read_mappings_skips_blank_rows_and_zeroes_text():
    sheet = Sheet('Mii Chemistry Matrix', [
        list(MII_COLOR_HEADER),
        ['Red', 'Mario', 120],
        ['', 'Luigi', 100],
        ['Blue', 'Luigi', 'lots'],
    ])
    assert read_mii_color_chemistry(sheet) == [
        MiiColorMapping('Red', 'Mario', 120),
        MiiColorMapping('Blue', 'Luigi', 0),
    ]


def test_group_miis_by_color():
    assert group_miis_by_color(MASTER) == {
        'Red': ['Mii [Red]', 'Mii [Red] 2'],
        'Blue': ['Mii [Blue]'],
    }


def test_merge_never_overwrites_existing_pairs():
    existing = [ChemistryPair.of('Mario', 'Mii [Red]', 100)]
    mappings = [
        MiiColorMapping('Red', 'Mario', -200),
        MiiColorMapping('Red', 'Luigi', 150),
        MiiColorMapping('Green', 'Mario', 100),
    ]
    merged = apply_mii_color_chemistry(existing, mappings, MASTER)
    assert merged == [
        ChemistryPair('Mario', 'Mii [Red]', 100),
        ChemistryPair('Mario', 'Mii [Red] 2', -200),
        ChemistryPair('Luigi', 'Mii [Red]', 150),
        ChemistryPair('Luigi', 'Mii [Red] 2', 150),
    ]


def test_merge_skips_self_pair_and_repeated_mappings():
    mappings = [
        MiiColorMapping('Blue', 'Mii [Blue]', 100),
        MiiColorMapping('Blue', 'Mario', 100),
        MiiColorMapping('Blue', 'Mario', -100),
    ]
    merged = apply_mii_color_chemistry([], mappings, MASTER)
    assert merged == [ChemistryPair('Mario', 'Mii [Blue]', 100)]


def test_no_mappings_returns_copy():
    pairs = [ChemistryPair('Luigi', 'Mario', 100)]
    merged = apply_mii_color_chemistry(pairs, [], MASTER)
    assert merged == pairs
    assert merged is not pairs

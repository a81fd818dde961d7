import logging

from clb_tools.config import DEFAULT_CONFIG
from clb_tools.names import (
    GAME_CHARACTER_ORDER, N_CHARACTERS, NAME_MAPPING_HEADER,
    extract_base_name, is_mii_character, extract_mii_color, generate_custom_name,
    NameResolver, ensure_name_mapping_sheet, load_name_overrides,
)

import pytest


def test_canonical_order_has_101_characters():
    assert N_CHARACTERS == 101
    assert GAME_CHARACTER_ORDER[0] == 'Mario'
    assert GAME_CHARACTER_ORDER[1] == 'Luigi'
    assert GAME_CHARACTER_ORDER[-1] == 'Black Mii (F)'


@pytest.mark.parametrize('name, base', [
    ('Toad (Red)', 'Toad'),
    ('Mii [Red]', 'Mii'),
    ('Mario', 'Mario'),
    ('  Bowser Jr.  ', 'Bowser Jr.'),
    ('Mii (Red, M)', 'Mii'),
])
def test_extract_base_name(name, base):
    assert extract_base_name(name) == base


def test_mii_detection_needs_brackets():
    assert is_mii_character('Mii [Red]')
    assert not is_mii_character('Mii (Red, M)')
    assert extract_mii_color('Mii [ Light Blue ]') == 'Light Blue'
    assert extract_mii_color('Mario') is None


@pytest.mark.parametrize('canonical, display', [
    ('Red Toad', 'Toad (Red)'),
    ('Light Blue Yoshi', 'Yoshi (Light Blue)'),
    ('Dark Bones', 'Dry Bones (Dark)'),
    ('Hammer Bro', 'Bro (Hammer)'),
    ('Light Green Mii (F)', 'Mii (Light Green, F)'),
    ('Baby Mario', 'Baby Mario'),
    ('King Boo', 'King Boo'),
])
def test_generate_custom_name(canonical, display):
    assert generate_custom_name(canonical) == display


def test_resolver_defaults_and_overrides():
    resolver = NameResolver({'Mario': 'Super Mario'})
    assert resolver.display_name(0) == 'Super Mario'
    assert resolver.display_name(13) == 'Toad (Red)'
    assert resolver.canonical_index('Super Mario') == 0
    assert resolver.canonical_index('Toad (Red)') == 13
    # raw canonical names resolve as well
    assert resolver.canonical_index('Red Toad') == 13
    assert resolver.canonical_index('Nobody') is None
    assert len(resolver.display_names()) == N_CHARACTERS


def test_resolver_rejects_out_of_range_id():
    with pytest.raises(IndexError):
        NameResolver().display_name(N_CHARACTERS)


def test_duplicate_display_name_keeps_first(caplog):
    with caplog.at_level(logging.WARNING, logger='clb_tools.names'):
        resolver = NameResolver({'Mario': 'Plumber', 'Luigi': 'Plumber'})
    assert resolver.canonical_index('Plumber') == 0
    assert 'Plumber' in caplog.text


def test_name_mapping_sheet_created_once(workbook):
    sheet = ensure_name_mapping_sheet(workbook, DEFAULT_CONFIG)
    assert sheet.get_range_values(1, 1, 1, 2)[0] == NAME_MAPPING_HEADER
    assert sheet.last_row == N_CHARACTERS + 1

    sheet.set_values(2, 2, [['Jumpman']])
    again = ensure_name_mapping_sheet(workbook, DEFAULT_CONFIG)
    assert again is sheet
    assert load_name_overrides(again)['Mario'] == 'Jumpman'

    resolver = NameResolver.from_workbook(workbook, DEFAULT_CONFIG)
    assert resolver.display_name(0) == 'Jumpman'

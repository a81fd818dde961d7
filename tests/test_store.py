import pytest

from clb_tools.store import Sheet, Workbook, JsonPropertyStore, is_blank


def test_is_blank():
    assert is_blank(None)
    assert is_blank('  ')
    assert is_blank(float('nan'))
    assert not is_blank(0)
    assert not is_blank('x')


def test_sheet_ranges_are_one_based_and_padded():
    sheet = Sheet('S', [['a', 'b'], ['c']])
    assert sheet.last_row == 2
    assert sheet.last_column == 2
    assert sheet.get_range_values(2, 1, 2, 3) == [['c', '', ''], ['', '', '']]
    with pytest.raises(ValueError):
        sheet.get_range_values(0, 1, 1, 1)


def test_set_values_grows_sheet():
    sheet = Sheet('S')
    sheet.set_values(3, 2, [[1, 2], [3]])
    assert sheet.last_row == 4
    assert sheet.last_column == 3
    assert sheet.get_values()[2] == ['', 1, 2]


def test_clear_contents_blanks_cells():
    sheet = Sheet('S', [['h'], [1], [2]])
    sheet.clear_contents(2, 1, 5, 1)
    assert sheet.last_row == 1
    sheet.append_row(['x'])
    assert sheet.get_values() == [['h'], ['x']]


def test_insert_existing_sheet_fails():
    workbook = Workbook()
    workbook.insert_sheet('S')
    with pytest.raises(ValueError):
        workbook.insert_sheet('S')
    assert workbook.get_or_insert_sheet('S') is workbook.get_sheet('S')


def test_csv_round_trip_restores_numbers(tmp_path):
    workbook = Workbook()
    workbook.insert_sheet('Chemistry Lookup').set_values(1, 1, [
        ['Player 1', 'Player 2', 'Chemistry'],
        ['Luigi', 'Mario', 100],
        ['Mii (Red, M)', 'Peach', -2.5],
        ['Daisy', '', ''],
    ])
    workbook.insert_sheet('Empty')
    workbook.save_csv_dir(str(tmp_path))

    loaded = Workbook.from_csv_dir(str(tmp_path))
    assert sorted(loaded.sheet_names()) == ['Chemistry Lookup', 'Empty']
    assert loaded.get_sheet('Chemistry Lookup').get_values() == [
        ['Player 1', 'Player 2', 'Chemistry'],
        ['Luigi', 'Mario', 100],
        ['Mii (Red, M)', 'Peach', -2.5],
        ['Daisy', '', ''],
    ]
    assert loaded.get_sheet('Empty').last_row == 0


def test_missing_directory_gives_empty_workbook(tmp_path):
    assert Workbook.from_csv_dir(str(tmp_path / 'nope')).sheet_names() == []


def test_json_property_store_persists(tmp_path):
    path = tmp_path / 'props' / 'properties.json'
    store = JsonPropertyStore(str(path))
    store.set('COUNT', 3)
    store.set('NAME', 'x')
    store.delete('NAME')

    reloaded = JsonPropertyStore(str(path))
    assert reloaded.get('COUNT') == '3'
    assert reloaded.get('NAME') is None

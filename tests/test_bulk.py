import pytest

from clb_tools.chemistry.bulk import bulk_update_chemistry, check_bidirectional
from clb_tools.chemistry.lookup import LOOKUP_HEADER, write_chemistry_lookup
from clb_tools.config import DEFAULT_CONFIG
from clb_tools.types import ChemistryPair

SHEETS = DEFAULT_CONFIG.sheets


@pytest.fixture
def lookup(workbook):
    sheet = workbook.insert_sheet(SHEETS.chemistry_lookup)
    write_chemistry_lookup(sheet, [
        ChemistryPair('Luigi', 'Mario', 100),
        ChemistryPair('Bowser', 'Mario', -100),
    ])
    return sheet


def test_bulk_update_adds_changes_and_removes(workbook, props, lookup, fixed_now):
    result = bulk_update_chemistry(
        workbook, props,
        updates=[
            ChemistryPair.of('Mario', 'Luigi', 150),
            ChemistryPair.of('Peach', 'Daisy', 100),
            ChemistryPair.of('Mario', 'Bowser', -100),
        ],
        removals=[('Mario', 'Bowser'), ('Nobody', 'Else')],
        now=fixed_now,
    )

    assert result.success, result.message
    assert result.data == {'added': 1, 'changed': 1, 'removed': 1, 'total_pairs': 2}
    assert lookup.get_values() == [
        LOOKUP_HEADER,
        ['Daisy', 'Peach', 100],
        ['Luigi', 'Mario', 150],
    ]

    log = workbook.get_sheet(SHEETS.change_log).get_values()
    assert len(log) == 4
    assert log[1][1:5] == ['Luigi', 'Mario', 100, 150]
    assert log[3][1:5] == ['Bowser', 'Mario', -100, '']


def test_bulk_update_without_lookup_fails(workbook, props):
    result = bulk_update_chemistry(workbook, props, updates=[ChemistryPair.of('A', 'B', 100)])
    assert not result.success
    assert SHEETS.chemistry_lookup in result.message


def test_bidirectional_check_reports_reversed_and_duplicate_rows():
    issues = check_bidirectional([
        ChemistryPair('A', 'B', 100),
        ChemistryPair('B', 'A', 100),
        ChemistryPair('C', 'D', 50),
        ChemistryPair('C', 'D', 60),
        ChemistryPair('E', 'F', 1),
    ])

    assert [(i.player1, i.player2, i.kind) for i in issues] == [
        ('A', 'B', 'reversed'),
        ('C', 'D', 'duplicate'),
    ]
    assert issues[0].consistent
    assert not issues[1].consistent
    assert issues[1].values == [50, 60]


def test_clean_lookup_has_no_issues():
    assert check_bidirectional([ChemistryPair('A', 'B', 1), ChemistryPair('A', 'C', 1)]) == []

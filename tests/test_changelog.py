import logging

from clb_tools.changelog import (
    CHANGE_LOG_HEADER, log_import_event, log_export_event, log_chemistry_change,
)
from clb_tools.config import DEFAULT_CONFIG
from clb_tools.store import Workbook

SHEETS = DEFAULT_CONFIG.sheets


class ReadOnlyWorkbook(Workbook):
    def insert_sheet(self, name):
        raise PermissionError(f"cannot create {name}")


def test_log_sheet_created_with_header(workbook, fixed_now):
    assert log_chemistry_change(workbook, 'Mario', 'Luigi', 1, 2, now=fixed_now)
    rows = workbook.get_sheet(SHEETS.change_log).get_values()
    assert rows[0] == CHANGE_LOG_HEADER
    assert rows[1] == ['2024-05-01 12:00:00', 'Mario', 'Luigi', 'Neutral', 'Positive', '']


def test_raw_values_when_not_preset(workbook):
    log_chemistry_change(workbook, 'Mario', 'Luigi', None, 150, as_preset=False, notes='Bulk edit')
    row = workbook.get_sheet(SHEETS.change_log).get_values()[1]
    assert row[3:] == ['', 150, 'Bulk edit']


def test_import_and_export_events(workbook):
    log_import_event(workbook, {'chemistry_pairs': 5, 'characters_updated': 101, 'trajectory_stored': True})
    log_export_event(workbook, {'line_count': 228, 'trajectory_exported': True, 'skipped_names': 0})
    rows = workbook.get_sheet(SHEETS.change_log).get_values()
    assert rows[1][1:5] == ['*** IMPORT ***', '5 chemistry pairs', '101 characters', 'Trajectory stored']
    assert rows[2][1:5] == ['*** EXPORT ***', 'Full stats preset', '228 lines', 'With trajectory']


def test_log_failures_are_swallowed(caplog):
    workbook = ReadOnlyWorkbook()
    with caplog.at_level(logging.WARNING, logger='clb_tools.changelog'):
        assert log_import_event(workbook, {}) is False
        assert log_chemistry_change(workbook, 'A', 'B', 0, 2) is False
    assert 'change log' in caplog.text

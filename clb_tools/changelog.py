"""
Chemistry Change Log sheet.

Every write here is best-effort: a failure is logged and swallowed so it never
aborts the import, export or edit that triggered it.
"""

import logging
from datetime import datetime
from typing import Dict, Optional, Any

from .config import ToolConfig, DEFAULT_CONFIG
from .store import Workbook
from .types import PRESET_NEGATIVE, PRESET_NEUTRAL, PRESET_POSITIVE

logger = logging.getLogger(__name__)

CHANGE_LOG_HEADER = ['Timestamp', 'Character 1', 'Character 2', 'Old Value', 'New Value', 'Notes']

PRESET_LABELS = {
    PRESET_NEGATIVE: 'Negative',
    PRESET_NEUTRAL: 'Neutral',
    PRESET_POSITIVE: 'Positive',
}


def _format_time(now: Optional[datetime]) -> str:
    return (now or datetime.now()).strftime('%Y-%m-%d %H:%M:%S')


def _append(workbook: Workbook, config: ToolConfig, row: list):
    sheet = workbook.get_sheet(config.sheets.change_log)
    if sheet is None:
        sheet = workbook.insert_sheet(config.sheets.change_log)
        sheet.set_values(1, 1, [list(CHANGE_LOG_HEADER)])
    sheet.append_row(row)


def log_import_event(
    workbook: Workbook,
    stats: Dict[str, Any],
    config: ToolConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None
) -> bool:
    """Record a preset import. Returns False if the log could not be written."""
    try:
        _append(workbook, config, [
            _format_time(now),
            '*** IMPORT ***',
            f"{stats.get('chemistry_pairs', 0)} chemistry pairs",
            f"{stats.get('characters_updated', 0)} characters",
            'Trajectory stored' if stats.get('trajectory_stored') else 'No trajectory',
            '',
        ])
        return True
    except Exception:
        logger.warning("Could not write import event to change log", exc_info=True)
        return False


def log_export_event(
    workbook: Workbook,
    stats: Dict[str, Any],
    config: ToolConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None
) -> bool:
    """Record a preset export. Returns False if the log could not be written."""
    try:
        skipped = stats.get('skipped_names', 0)
        _append(workbook, config, [
            _format_time(now),
            '*** EXPORT ***',
            'Full stats preset',
            f"{stats.get('line_count', 0)} lines",
            'With trajectory' if stats.get('trajectory_exported') else 'No trajectory',
            f"{skipped} unmapped names skipped" if skipped else '',
        ])
        return True
    except Exception:
        logger.warning("Could not write export event to change log", exc_info=True)
        return False


def log_chemistry_change(
    workbook: Workbook,
    char1: str,
    char2: str,
    old_value: Any,
    new_value: Any,
    config: ToolConfig = DEFAULT_CONFIG,
    notes: str = '',
    as_preset: bool = True,
    now: Optional[datetime] = None
) -> bool:
    """
    Record one pair edit.

    With as_preset, values are preset codes (0/1/2) written as
    Negative/Neutral/Positive; otherwise raw chemistry values are written.
    """
    try:
        _append(workbook, config, [
            _format_time(now),
            char1,
            char2,
            _describe(old_value, as_preset),
            _describe(new_value, as_preset),
            notes,
        ])
        return True
    except Exception:
        logger.warning("Could not log chemistry change %s / %s", char1, char2, exc_info=True)
        return False


def _describe(value: Any, as_preset: bool) -> Any:
    if as_preset and isinstance(value, int) and not isinstance(value, bool):
        return PRESET_LABELS.get(value, 'Unknown')
    return '' if value is None else value

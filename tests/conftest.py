"""Shared fixtures: in-memory stores, a fixed clock and a synthetic preset builder."""

from datetime import datetime, timezone

import pytest

from clb_tools.names import N_CHARACTERS
from clb_tools.preset.tables import PRESET_ROW_WIDTH, PresetColumn
from clb_tools.store import Workbook, PropertyStore, Sheet


FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

TRAJECTORY_NAMES = ['Low', 'Mid', 'High', 'Line', 'Pop', 'Custom']
TRAJECTORY_USAGE = [1, 0, 1, 0, 1, 0]


@pytest.fixture
def workbook():
    return Workbook()


@pytest.fixture
def props():
    return PropertyStore()


@pytest.fixture
def fixed_now():
    return FIXED_NOW


def neutral_chemistry():
    return [[1] * N_CHARACTERS for _ in range(N_CHARACTERS)]


def default_stats_row(seed: int = 0):
    """A valid attribute row: every label index 0, numeric fields from `seed`."""
    row = [0] * PRESET_ROW_WIDTH
    for col in (
        PresetColumn.WEIGHT, PresetColumn.SLAP_HIT_CONTACT, PresetColumn.CHARGE_HIT_CONTACT,
        PresetColumn.SLAP_HIT_POWER, PresetColumn.CHARGE_HIT_POWER, PresetColumn.BUNTING,
        PresetColumn.SPEED, PresetColumn.THROWING_SPEED, PresetColumn.FIELDING,
        PresetColumn.PITCHING_OVERALL, PresetColumn.BATTING_OVERALL,
        PresetColumn.FIELDING_OVERALL, PresetColumn.SPEED_OVERALL,
        PresetColumn.CURVEBALL_SPEED, PresetColumn.FASTBALL_SPEED, PresetColumn.CURVE,
        PresetColumn.HITTING_TRAJECTORY, PresetColumn.HIT_CURVE, PresetColumn.STAMINA,
    ):
        row[col] = seed + col
    return row


def trajectory_rows():
    return [[(r + c) % 7 for c in range(25)] for r in range(24)]


def build_preset_lines(chemistry=None, stats=None, trajectory=None, names=None, usage=None):
    chemistry = chemistry if chemistry is not None else neutral_chemistry()
    stats = stats if stats is not None else [default_stats_row(i) for i in range(N_CHARACTERS)]
    trajectory = trajectory if trajectory is not None else trajectory_rows()
    names = names if names is not None else TRAJECTORY_NAMES
    usage = usage if usage is not None else TRAJECTORY_USAGE

    lines = [','.join(str(v) for v in row) for row in chemistry]
    lines += [','.join(str(v) for v in row) for row in stats]
    lines += [','.join(str(v) for v in row) for row in trajectory]
    lines.append(','.join(names))
    lines.append(','.join(str(v) for v in usage))
    return lines


def build_preset_text(**kwargs):
    return '\n'.join(build_preset_lines(**kwargs))


@pytest.fixture
def preset_text():
    """Neutral chemistry except Mario/Luigi positive and Mario/Wario negative."""
    chemistry = neutral_chemistry()
    chemistry[0][1] = chemistry[1][0] = 2
    chemistry[0][10] = chemistry[10][0] = 0
    return build_preset_text(chemistry=chemistry)


def add_sheet(workbook: Workbook, name: str, rows) -> Sheet:
    sheet = workbook.insert_sheet(name)
    sheet.set_values(1, 1, rows)
    return sheet

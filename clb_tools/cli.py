"""
Command-line interface for CLB Tools.
"""

import click
import json
import logging
import math
import sys
from pathlib import Path

import pandas as pd

from .attributes import AttributeCache, get_player_attributes, clear_all_caches
from .chemistry.bulk import bulk_update_chemistry, check_bidirectional
from .chemistry.convert import convert_matrix_to_lookup
from .chemistry.lookup import get_lookup_sheet, read_chemistry_lookup, update_chemistry_data_json
from .chemistry.query import get_multiple_player_chemistry
from .config import load_config_from_json, DEFAULT_CONFIG
from .errors import ClbToolsError
from .preset.codec import import_preset, export_preset
from .preset.editor import character_chemistry
from .store import Workbook, JsonPropertyStore
from .types import ChemistryPair, OperationResult, round_chemistry


class Session:
    """Stores and configuration shared by every subcommand."""

    def __init__(self, workbook_dir: str, properties_path: str, config):
        self.workbook_dir = workbook_dir
        self.workbook = Workbook.from_csv_dir(workbook_dir)
        self.props = JsonPropertyStore(properties_path)
        self.config = config

    def save(self):
        self.workbook.save_csv_dir(self.workbook_dir)


def _fail(message: str):
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _report(result: OperationResult):
    if not result.success:
        _fail(result.message)
    click.echo(result.message)


@click.group()
@click.option(
    '--workbook', '-w',
    type=click.Path(file_okay=False),
    default='workbook',
    show_default=True,
    help='Directory holding one CSV file per sheet'
)
@click.option(
    '--properties', '-p',
    type=click.Path(dir_okay=False),
    help='Property store JSON file (default: <workbook>/properties.json)'
)
@click.option(
    '--config', '-c',
    type=click.Path(exists=True),
    help='Tool configuration JSON file'
)
@click.option(
    '--verbose/--quiet', '-v/-q',
    default=True,
    help='Verbose output'
)
@click.pass_context
def main(ctx, workbook, properties, config, verbose):
    """CLB Tools: chemistry lookup and stats preset utilities."""
    if verbose:
        logging.basicConfig(
            level=logging.INFO,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    tool_config = load_config_from_json(config) if config else DEFAULT_CONFIG
    properties = properties or str(Path(workbook) / 'properties.json')
    ctx.obj = Session(workbook, properties, tool_config)


# =============================================================================
# Conversion and Cache Maintenance
# =============================================================================

@main.command()
@click.option('--yes', '-y', is_flag=True, help='Overwrite an existing lookup without asking')
@click.pass_obj
def convert(session, yes):
    """Rebuild the Chemistry Lookup from the chemistry matrix."""
    confirm = None if yes else (lambda message: click.confirm(message + " Continue?"))
    result = convert_matrix_to_lookup(
        session.workbook, session.props, session.config, confirm=confirm
    )
    if result.success:
        session.save()
    _report(result)


@main.command('refresh-json')
@click.pass_obj
def refresh_json(session):
    """Rebuild the JSON chemistry index from the lookup sheet."""
    try:
        freshness = update_chemistry_data_json(session.workbook, session.props, session.config)
    except ClbToolsError as e:
        _fail(str(e))

    click.echo(f"JSON index rebuilt from {freshness.pair_count} rows.")


@main.command('clear-cache')
@click.pass_obj
def clear_cache(session):
    """Drop the cached chemistry index and attribute data."""
    clear_all_caches(AttributeCache(session.workbook, session.config), session.props)
    click.echo("Caches cleared.")


# =============================================================================
# Stats Preset
# =============================================================================

@main.command('import-preset')
@click.argument('preset_path', type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def import_preset_cmd(session, preset_path):
    """Import a stats preset file (chemistry, attributes, trajectory)."""
    with open(preset_path, 'r', encoding='utf-8') as f:
        text = f.read()

    result = import_preset(text, session.workbook, session.props, session.config)
    if result.success:
        session.save()
        click.echo(
            f"  Positive: {result.data['positive_count']}  "
            f"Negative: {result.data['negative_count']}"
        )
    _report(result)


@main.command('export-preset')
@click.option('--output', '-o', type=click.Path(dir_okay=False), help='Output file (default: stdout)')
@click.pass_obj
def export_preset_cmd(session, output):
    """Export the workbook as a stats preset."""
    result = export_preset(session.workbook, session.props, session.config)
    if not result.success:
        _fail(result.message)

    session.save()
    if output:
        with open(output, 'w', encoding='utf-8', newline='') as f:
            f.write(result.data['text'])
        click.echo(f"{result.message} Saved to {output}", err=True)
    else:
        click.echo(result.data['text'])

    skipped = len(result.data['skipped_chemistry_names']) + len(result.data['skipped_attribute_names'])
    if skipped:
        click.echo(f"Warning: {skipped} unmapped names were not exported", err=True)


# =============================================================================
# Queries
# =============================================================================

@main.command()
@click.argument('names', nargs=-1, required=True)
@click.pass_obj
def query(session, names):
    """Chemistry of one or more players (JSON)."""
    try:
        report = get_multiple_player_chemistry(list(names), session.props)
    except ClbToolsError as e:
        _fail(str(e))
    click.echo(json.dumps(report, indent=2))


@main.command()
@click.argument('name')
@click.pass_obj
def character(session, name):
    """Every non-neutral relationship of one character (JSON)."""
    try:
        result = character_chemistry(name, session.workbook, session.config)
    except ClbToolsError as e:
        _fail(str(e))
    click.echo(json.dumps(result.to_dict(), indent=2))


@main.command()
@click.argument('names', nargs=-1, required=True)
@click.option('--averages', is_flag=True, help='Include pitching/batting/fielding averages')
@click.pass_obj
def attributes(session, names, averages):
    """Attributes of one or more players (JSON)."""
    cache = AttributeCache(session.workbook, session.config)
    try:
        players = get_player_attributes(list(names), cache)
    except ClbToolsError as e:
        _fail(str(e))
    click.echo(json.dumps(
        [p.to_dict(with_averages=averages) for p in players], indent=2, default=str
    ))


# =============================================================================
# Lookup Maintenance
# =============================================================================

@main.command('check-bidirectional')
@click.pass_obj
def check_bidirectional_cmd(session):
    """Report pairs stored more than once in the lookup."""
    try:
        pairs = read_chemistry_lookup(get_lookup_sheet(session.workbook, session.config))
    except ClbToolsError as e:
        _fail(str(e))

    issues = check_bidirectional(pairs)
    if not issues:
        click.echo(f"No duplicate pairs in {len(pairs)} rows.")
        return

    for issue in issues:
        status = 'consistent' if issue.consistent else 'CONFLICT'
        click.echo(
            f"  {issue.player1} / {issue.player2}: {issue.kind}, "
            f"values {issue.values} ({status})"
        )
    click.echo(f"{len(issues)} pairs stored more than once.")


@main.command('bulk-edit')
@click.argument('csv_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--remove', is_flag=True, help='Remove the listed pairs instead of setting them')
@click.pass_obj
def bulk_edit(session, csv_path, remove):
    """
    Apply pair edits from a CSV file.

    CSV_PATH: columns Player 1, Player 2 and (unless --remove) Chemistry
    """
    df = pd.read_csv(csv_path, dtype={'Player 1': str, 'Player 2': str})
    required = ['Player 1', 'Player 2'] if remove else ['Player 1', 'Player 2', 'Chemistry']
    missing = [c for c in required if c not in df.columns]
    if missing:
        _fail(f"{csv_path} is missing columns: {', '.join(missing)}")

    if remove:
        removals = [(str(r['Player 1']).strip(), str(r['Player 2']).strip()) for _, r in df.iterrows()]
        result = bulk_update_chemistry(
            session.workbook, session.props, removals=removals, config=session.config
        )
    else:
        updates = []
        for position, (_, r) in enumerate(df.iterrows()):
            value = pd.to_numeric(r['Chemistry'], errors='coerce')
            if pd.isna(value) or not math.isfinite(value):
                # header is line 1
                _fail(f"{csv_path} line {position + 2}: invalid Chemistry value {r['Chemistry']!r}")
            updates.append(ChemistryPair.of(
                str(r['Player 1']).strip(), str(r['Player 2']).strip(), round_chemistry(float(value))
            ))
        result = bulk_update_chemistry(
            session.workbook, session.props, updates=updates, config=session.config
        )

    if result.success:
        session.save()
    _report(result)


if __name__ == '__main__':
    main()

"""
Chemistry Lookup validation diagnostic.

Checks the lookup table before it is exported or queried: duplicate and
reversed pairs, names the stats preset cannot place, preset cells claimed
with conflicting codes, values outside the preset thresholds, and whether the
JSON index is stale.

Usage:
    python -m scripts.validate_chemistry workbook/ \
        --properties workbook/properties.json \
        --config clb_config.json
"""

import argparse
import sys
from collections import Counter, defaultdict
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from clb_tools.chemistry.bulk import check_bidirectional
from clb_tools.chemistry.lookup import get_lookup_sheet, read_chemistry_lookup, is_index_stale
from clb_tools.config import load_config_from_json, DEFAULT_CONFIG
from clb_tools.errors import MissingResourceError
from clb_tools.names import NameResolver
from clb_tools.store import Workbook, JsonPropertyStore, PropertyStore


def unmapped_names(pairs, resolver: NameResolver) -> Counter:
    """Lookup names with no canonical character, with occurrence counts."""
    counts = Counter()
    for pair in pairs:
        for name in (pair.player1, pair.player2):
            if resolver.canonical_index(name) is None:
                counts[name] += 1
    return counts


def conflicting_cells(pairs, resolver: NameResolver, thresholds) -> dict:
    """
    Preset cells that two or more lookup rows claim with different codes.

    Display and canonical names resolve to the same character, so the lookup
    can hold "Mario / Luigi" and "Luigi / Mario" (or a renamed variant) as
    separate rows. Export writes whichever comes last into the cell.

    Returns:
        {(row, column): [(pair, code), ...]} for cells with disagreeing codes
    """
    claims = defaultdict(list)
    for pair in pairs:
        idx1 = resolver.canonical_index(pair.player1)
        idx2 = resolver.canonical_index(pair.player2)
        if idx1 is None or idx2 is None:
            continue
        cell = (min(idx1, idx2), max(idx1, idx2))
        claims[cell].append((pair, thresholds.to_preset(pair.chemistry)))
    return {
        cell: entries for cell, entries in claims.items()
        if len({code for _, code in entries}) > 1
    }


def classification_summary(pairs, thresholds) -> dict:
    """Pairs per class; 'neutral' pairs are stored but export as neutral."""
    summary = {'positive': 0, 'negative': 0, 'neutral': 0}
    for pair in pairs:
        if thresholds.is_positive(pair.chemistry):
            summary['positive'] += 1
        elif thresholds.is_negative(pair.chemistry):
            summary['negative'] += 1
        else:
            summary['neutral'] += 1
    return summary


def extreme_pairs_report(pairs, top_n: int = 5):
    """Print the highest and lowest stored values."""
    if not pairs:
        return
    values = np.array([p.chemistry for p in pairs])
    order = np.argsort(values)

    print(f"\n  Most negative:")
    for idx in order[:top_n]:
        p = pairs[idx]
        print(f"    {p.player1} <-> {p.player2}: {p.chemistry}")

    print(f"\n  Most positive:")
    for idx in order[::-1][:top_n]:
        p = pairs[idx]
        print(f"    {p.player1} <-> {p.player2}: {p.chemistry}")


def main():
    parser = argparse.ArgumentParser(description="Validate the Chemistry Lookup")
    parser.add_argument("workbook", help="Workbook directory (one CSV per sheet)")
    parser.add_argument("--properties", help="Property store JSON (default: <workbook>/properties.json)")
    parser.add_argument("--config", help="Tool configuration JSON")
    args = parser.parse_args()

    config = load_config_from_json(args.config) if args.config else DEFAULT_CONFIG
    workbook = Workbook.from_csv_dir(args.workbook)
    properties = Path(args.properties or Path(args.workbook) / 'properties.json')
    props = JsonPropertyStore(str(properties)) if properties.exists() else PropertyStore()

    try:
        pairs = read_chemistry_lookup(get_lookup_sheet(workbook, config))
    except MissingResourceError as e:
        print(f"ERROR: {e}")
        sys.exit(1)

    failed = False

    print("=" * 70)
    print("LOOKUP OVERVIEW")
    print("=" * 70)
    summary = classification_summary(pairs, config.thresholds)
    print(f"  Rows: {len(pairs)}")
    print(f"  Positive: {summary['positive']}  Negative: {summary['negative']}  "
          f"Neutral: {summary['neutral']}")
    if summary['neutral']:
        print(f"  WARNING: {summary['neutral']} rows fall between the thresholds "
              f"and export as neutral.")

    print("\n" + "=" * 70)
    print("DUPLICATE PAIRS")
    print("=" * 70)
    issues = check_bidirectional(pairs)
    if not issues:
        print("  No duplicate pairs found.")
    for issue in issues[:20]:
        status = 'consistent' if issue.consistent else 'CONFLICT'
        print(f"  {issue.player1} / {issue.player2}: {issue.kind} {issue.values} ({status})")
    if any(not issue.consistent for issue in issues):
        failed = True

    print("\n" + "=" * 70)
    print("PRESET MAPPING")
    print("=" * 70)
    resolver = NameResolver.from_workbook(workbook, config)
    unmapped = unmapped_names(pairs, resolver)
    if unmapped:
        print(f"  {len(unmapped)} names have no stats preset slot:")
        for name, count in unmapped.most_common(20):
            print(f"    {name} ({count} rows)")
    else:
        print("  Every name maps to a character.")

    conflicts = conflicting_cells(pairs, resolver, config.thresholds)
    for entries in list(conflicts.values())[:20]:
        claimed = ', '.join(f"{p.player1} / {p.player2} = {p.chemistry}" for p, _ in entries)
        print(f"  CRITICAL: preset cell claimed with different codes: {claimed}")
    if conflicts:
        failed = True

    print("\n" + "=" * 70)
    print("EXTREME PAIRS")
    print("=" * 70)
    extreme_pairs_report(pairs)

    print("\n" + "=" * 70)
    print("JSON INDEX")
    print("=" * 70)
    if is_index_stale(workbook, props, config):
        print("  STALE: run `clb-tools refresh-json` to rebuild the index.")
    else:
        print("  Up to date.")

    print("\nValidation complete.")
    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()

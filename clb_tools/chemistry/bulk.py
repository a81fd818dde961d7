"""
Bulk edits of the Chemistry Lookup and the bidirectional consistency check.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Dict, Tuple, Optional, Iterable

from ..changelog import log_chemistry_change
from ..config import ToolConfig, DEFAULT_CONFIG
from ..errors import ClbToolsError
from ..store import Workbook, PropertyStore
from ..types import ChemistryPair, OperationResult, pair_key
from .lookup import (
    get_lookup_sheet, read_chemistry_lookup, write_chemistry_lookup,
    update_chemistry_data_json
)

logger = logging.getLogger(__name__)


def bulk_update_chemistry(
    workbook: Workbook,
    props: PropertyStore,
    updates: Iterable[ChemistryPair] = (),
    removals: Iterable[Tuple[str, str]] = (),
    config: ToolConfig = DEFAULT_CONFIG,
    now: Optional[datetime] = None
) -> OperationResult:
    """
    Add/replace and remove lookup pairs, then rewrite the lookup.

    Pairs are matched as unordered pairs. Removing a pair that is not stored
    is a no-op. Every actual change goes to the change log.
    """
    try:
        sheet = get_lookup_sheet(workbook, config)
        current: Dict[str, ChemistryPair] = {}
        for pair in read_chemistry_lookup(sheet):
            current.setdefault(pair.key, ChemistryPair.of(pair.player1, pair.player2, pair.chemistry))

        added = changed = removed = 0
        for update in updates:
            pair = ChemistryPair.of(update.player1, update.player2, update.chemistry)
            old = current.get(pair.key)
            if old is not None and old.chemistry == pair.chemistry:
                continue
            current[pair.key] = pair
            if old is None:
                added += 1
            else:
                changed += 1
            log_chemistry_change(
                workbook, pair.player1, pair.player2,
                old.chemistry if old is not None else None, pair.chemistry,
                config, notes='Bulk edit', as_preset=False, now=now
            )

        for name_a, name_b in removals:
            old = current.pop(pair_key(name_a, name_b), None)
            if old is None:
                continue
            removed += 1
            log_chemistry_change(
                workbook, old.player1, old.player2, old.chemistry, None,
                config, notes='Bulk remove', as_preset=False, now=now
            )

        write_chemistry_lookup(sheet, list(current.values()), props, now=now)
        update_chemistry_data_json(workbook, props, config, now=now)

    except ClbToolsError as e:
        logger.error("Bulk chemistry update failed: %s", e)
        return OperationResult.failed(str(e))

    return OperationResult.ok(
        f"{added} added, {changed} changed, {removed} removed.",
        added=added, changed=changed, removed=removed, total_pairs=len(current)
    )


# =============================================================================
# Bidirectional Check
# =============================================================================

@dataclass
class BidirectionalIssue:
    """
    One unordered pair stored more than once.

    kind is 'reversed' when both (A, B) and (B, A) rows exist, 'duplicate'
    when the same orientation repeats.
    """
    player1: str
    player2: str
    kind: str
    values: List[int]

    @property
    def consistent(self) -> bool:
        return len(set(self.values)) == 1


def check_bidirectional(pairs: List[ChemistryPair]) -> List[BidirectionalIssue]:
    """Find unordered pairs stored in more than one lookup row."""
    by_key: Dict[str, List[ChemistryPair]] = {}
    for pair in pairs:
        by_key.setdefault(pair.key, []).append(pair)

    issues = []
    for rows in by_key.values():
        if len(rows) < 2:
            continue
        orientations = {(p.player1, p.player2) for p in rows}
        a, b = sorted((rows[0].player1, rows[0].player2))
        issues.append(BidirectionalIssue(
            player1=a,
            player2=b,
            kind='reversed' if len(orientations) > 1 else 'duplicate',
            values=[p.chemistry for p in rows],
        ))

    issues.sort(key=lambda issue: (issue.player1, issue.player2))
    if issues:
        logger.warning("%d pairs are stored more than once", len(issues))
    return issues

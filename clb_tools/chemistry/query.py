"""
Multi-player chemistry queries over the JSON chemistry index.

Per-player positive/negative partner lists, and for two or more players a
team analysis: internal connections plus characters shared across the roster.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Iterable

from ..store import PropertyStore
from ..types import Thresholds
from .lookup import load_chemistry_index


@dataclass
class PlayerChemistry:
    """Partners of one player, name-sorted."""
    name: str
    positive: List[str]
    negative: List[str]

    @property
    def pos_count(self) -> int:
        return len(self.positive)

    @property
    def neg_count(self) -> int:
        return len(self.negative)

    def to_dict(self) -> Dict:
        return {
            'name': self.name,
            'positive': self.positive,
            'negative': self.negative,
            'posCount': self.pos_count,
            'negCount': self.neg_count,
        }


@dataclass
class Connection:
    player1: str
    player2: str
    type: str  # 'positive' or 'negative'


@dataclass
class TeamAnalysis:
    """
    Roster-level chemistry.

    Attributes:
        internal_positive: Positive pairs inside the requested set
        internal_negative: Negative pairs inside the requested set
        connections: Those pairs, in request order
        shared_positive: Character -> requested players it is positive with
            (>= 2 of them, negative with none)
        shared_negative: Character -> requested players it is negative with
            (>= 2 of them, positive with none)
        mixed: Character -> {'positive': [...], 'negative': [...]}
    """
    internal_positive: int = 0
    internal_negative: int = 0
    connections: List[Connection] = field(default_factory=list)
    shared_positive: Dict[str, List[str]] = field(default_factory=dict)
    shared_negative: Dict[str, List[str]] = field(default_factory=dict)
    mixed: Dict[str, Dict[str, List[str]]] = field(default_factory=dict)

    @property
    def total_connections(self) -> int:
        return len(self.connections)

    def to_dict(self) -> Dict:
        return {
            'internalPositive': self.internal_positive,
            'internalNegative': self.internal_negative,
            'totalConnections': self.total_connections,
            'connections': [
                {'player1': c.player1, 'player2': c.player2, 'type': c.type}
                for c in self.connections
            ],
            'sharedPositive': self.shared_positive,
            'sharedNegative': self.shared_negative,
            'mixed': self.mixed,
        }


class ChemistryIndex:
    """Symmetric name -> partner -> value map built from the JSON index."""

    def __init__(self, pairs: Iterable[Dict], thresholds: Thresholds, players: Iterable[str] = ()):
        self.thresholds = thresholds
        self.players = sorted(set(players))
        self._partners: Dict[str, Dict[str, int]] = {name: {} for name in self.players}
        for pair in pairs:
            p1, p2, value = pair['p1'], pair['p2'], pair['v']
            self._partners.setdefault(p1, {})[p2] = value
            self._partners.setdefault(p2, {})[p1] = value

    @classmethod
    def from_json(cls, data: Dict) -> 'ChemistryIndex':
        raw = data.get('thresholds', {})
        thresholds = Thresholds(positive_min=raw['positive'], negative_max=raw['negative'])
        return cls(data.get('pairs', []), thresholds, data.get('players', []))

    @classmethod
    def from_properties(cls, props: PropertyStore) -> 'ChemistryIndex':
        return cls.from_json(load_chemistry_index(props))

    def value(self, name_a: str, name_b: str) -> int:
        """Stored chemistry; absent pairs are neutral (0)."""
        return self._partners.get(name_a, {}).get(name_b, 0)

    def partners(self, name: str) -> Dict[str, int]:
        return dict(self._partners.get(name, {}))


def query_players(
    names: List[str],
    index: ChemistryIndex,
    thresholds: Optional[Thresholds] = None
) -> List[PlayerChemistry]:
    """Positive and negative partners of each requested name."""
    thresholds = thresholds or index.thresholds
    results = []
    for name in names:
        positive, negative = [], []
        for other, value in index.partners(name).items():
            if thresholds.is_positive(value):
                positive.append(other)
            elif thresholds.is_negative(value):
                negative.append(other)
        results.append(PlayerChemistry(name, sorted(positive), sorted(negative)))
    return results


def team_analysis(
    names: List[str],
    index: ChemistryIndex,
    thresholds: Optional[Thresholds] = None
) -> TeamAnalysis:
    """
    Shared and internal chemistry of a roster.

    Characters outside the roster are classified in priority order
    shared-positive, shared-negative, mixed; a character meeting none of the
    three conditions is left out (per-player results already cover it).
    """
    thresholds = thresholds or index.thresholds
    analysis = TeamAnalysis()
    requested = set(names)

    appearances: Dict[str, Dict[str, List[str]]] = {}
    for name in names:
        for other, value in index.partners(name).items():
            if other in requested:
                continue
            entry = appearances.setdefault(other, {'positive': [], 'negative': []})
            if thresholds.is_positive(value):
                entry['positive'].append(name)
            elif thresholds.is_negative(value):
                entry['negative'].append(name)

    for character in sorted(appearances):
        entry = appearances[character]
        pos_count = len(entry['positive'])
        neg_count = len(entry['negative'])
        if pos_count >= 2 and neg_count == 0:
            analysis.shared_positive[character] = entry['positive']
        elif neg_count >= 2 and pos_count == 0:
            analysis.shared_negative[character] = entry['negative']
        elif pos_count >= 1 and neg_count >= 1:
            analysis.mixed[character] = entry

    for i, p1 in enumerate(names):
        for p2 in names[i + 1:]:
            value = index.value(p1, p2)
            if thresholds.is_positive(value):
                analysis.internal_positive += 1
                analysis.connections.append(Connection(p1, p2, 'positive'))
            elif thresholds.is_negative(value):
                analysis.internal_negative += 1
                analysis.connections.append(Connection(p1, p2, 'negative'))

    return analysis


def get_multiple_player_chemistry(names: List[str], props: PropertyStore) -> Dict:
    """
    Full chemistry report for 1+ players, in the JSON shape the tools display.

    Raises:
        MissingResourceError: If the JSON index has not been built
    """
    if not names:
        return {'players': [], 'teamAnalysis': None}

    index = ChemistryIndex.from_properties(props)
    players = query_players(names, index)
    analysis = team_analysis(names, index) if len(names) >= 2 else None
    return {
        'players': [p.to_dict() for p in players],
        'teamAnalysis': analysis.to_dict() if analysis is not None else None,
    }

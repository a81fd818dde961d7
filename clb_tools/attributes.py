"""
Player attribute reader with a time-limited in-memory cache.

Attribute rows follow the attributes sheet layout written by preset import
(ATTRIBUTE_HEADERS). Derived averages are computed on demand.
"""

import logging
import time
from dataclasses import dataclass, asdict
from typing import List, Dict, Optional, Callable, Any

from .chemistry.lookup import clear_chemistry_cache
from .config import ToolConfig, DEFAULT_CONFIG
from .errors import MissingResourceError
from .preset.tables import ATTRIBUTE_HEADERS
from .store import Workbook, PropertyStore, is_blank

logger = logging.getLogger(__name__)

_COLUMN = {header: idx for idx, header in enumerate(ATTRIBUTE_HEADERS)}


@dataclass
class PlayerAttributes:
    """One attributes sheet row, keyed by field."""
    name: str
    character_class: Any
    arm_side: Any
    batting_side: Any
    weight: Any
    ability: Any

    # Overall
    pitching_overall: Any
    batting_overall: Any
    fielding_overall: Any
    speed_overall: Any

    # Hitting
    hitting_trajectory: Any
    slap_hit_contact: Any
    charge_hit_contact: Any
    slap_hit_power: Any
    charge_hit_power: Any

    # Running
    speed: Any
    bunting: Any

    # Fielding
    throwing_speed: Any
    fielding: Any

    # Pitching
    curveball_speed: Any
    fastball_speed: Any
    curve: Any
    stamina: Any

    @classmethod
    def from_row(cls, name: str, row: List[Any]) -> 'PlayerAttributes':
        def col(header):
            return row[_COLUMN[header]]

        return cls(
            name=name,
            character_class=col('Character Class'),
            arm_side=col('Arm Side'),
            batting_side=col('Batting Side'),
            weight=col('Weight'),
            ability=col('Ability'),
            pitching_overall=col('Pitching Overall'),
            batting_overall=col('Batting Overall'),
            fielding_overall=col('Fielding Overall'),
            speed_overall=col('Speed Overall'),
            hitting_trajectory=col('Hitting Trajectory'),
            slap_hit_contact=col('Slap Hit Contact'),
            charge_hit_contact=col('Charge Hit Contact'),
            slap_hit_power=col('Slap Hit Power'),
            charge_hit_power=col('Charge Hit Power'),
            speed=col('Speed'),
            bunting=col('Bunting'),
            throwing_speed=col('Throwing Speed'),
            fielding=col('Fielding'),
            curveball_speed=col('Curveball Speed'),
            fastball_speed=col('Fastball Speed'),
            curve=col('Curve'),
            stamina=col('Stamina'),
        )

    @property
    def pitching_average(self) -> float:
        """((curveball / 2) + (fastball / 2) + curve + stamina) / 4"""
        return (
            _number(self.curveball_speed) / 2
            + _number(self.fastball_speed) / 2
            + _number(self.curve)
            + _number(self.stamina)
        ) / 4

    @property
    def batting_average(self) -> float:
        """(slap contact + charge contact + slap power + charge power) / 4"""
        return (
            _number(self.slap_hit_contact)
            + _number(self.charge_hit_contact)
            + _number(self.slap_hit_power)
            + _number(self.charge_hit_power)
        ) / 4

    @property
    def fielding_average(self) -> float:
        """(throwing speed + fielding) / 2"""
        return (_number(self.throwing_speed) + _number(self.fielding)) / 2

    def to_dict(self, with_averages: bool = False) -> Dict[str, Any]:
        data = asdict(self)
        if with_averages:
            data['pitching_average'] = self.pitching_average
            data['batting_average'] = self.batting_average
            data['fielding_average'] = self.fielding_average
        return data


def _number(value: Any) -> float:
    """Numeric cell value; blank or non-numeric cells count as 0."""
    if is_blank(value) or isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


@dataclass
class AttributeData:
    rows: Dict[str, List[Any]]
    players: List[str]


class AttributeCache:
    """
    Attributes sheet snapshot, re-read once older than the configured duration.

    Args:
        workbook: Workbook holding the attributes sheet
        config: Tool configuration (sheet name, cache duration)
        clock: Monotonic seconds source (tests pass a fake)
    """

    def __init__(
        self,
        workbook: Workbook,
        config: ToolConfig = DEFAULT_CONFIG,
        clock: Callable[[], float] = time.monotonic
    ):
        self.workbook = workbook
        self.config = config
        self.clock = clock
        self._data: Optional[AttributeData] = None
        self._timestamp: Optional[float] = None

    def _is_fresh(self) -> bool:
        if self._data is None or self._timestamp is None:
            return False
        return self.clock() - self._timestamp < self.config.attribute_cache_seconds

    def get(self) -> Optional[AttributeData]:
        """
        Cached attribute data, re-reading the sheet when stale.

        Returns:
            None when the sheet has no data rows

        Raises:
            MissingResourceError: If the attributes sheet does not exist
        """
        if self._is_fresh():
            return self._data
        return self.refresh()

    def refresh(self) -> Optional[AttributeData]:
        sheet = self.workbook.get_sheet(self.config.sheets.attributes)
        if sheet is None:
            raise MissingResourceError(f"{self.config.sheets.attributes} sheet not found")

        first = self.config.first_data_row
        if sheet.last_row < first:
            return None

        rows: Dict[str, List[Any]] = {}
        for row in sheet.get_range_values(first, 1, sheet.last_row - first + 1, len(ATTRIBUTE_HEADERS)):
            name = '' if is_blank(row[0]) else str(row[0]).strip()
            if name:
                rows[name] = row

        self._data = AttributeData(rows=rows, players=sorted(rows))
        self._timestamp = self.clock()
        logger.info("Attribute cache loaded: %d players", len(rows))
        return self._data

    def invalidate(self):
        self._data = None
        self._timestamp = None


def get_player_attribute_list(cache: AttributeCache) -> List[str]:
    data = cache.get()
    return data.players if data is not None else []


def get_player_attributes(names: List[str], cache: AttributeCache) -> List[PlayerAttributes]:
    """Attributes of each known name, in request order; unknown names are skipped."""
    data = cache.get()
    if data is None:
        return []
    return [
        PlayerAttributes.from_row(name, data.rows[name])
        for name in names
        if name in data.rows
    ]


def get_player_attributes_with_averages(names: List[str], cache: AttributeCache) -> List[Dict[str, Any]]:
    return [p.to_dict(with_averages=True) for p in get_player_attributes(names, cache)]


def clear_all_caches(cache: AttributeCache, props: PropertyStore):
    cache.invalidate()
    clear_chemistry_cache(props)

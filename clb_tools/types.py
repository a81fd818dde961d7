"""
Core data structures for CLB Tools.

Chemistry pairs, thresholds, Mii color mappings, the trajectory passthrough
block and the combined attribute fields of the stats preset.
"""

import math
from dataclasses import dataclass, field
from typing import List, Dict, Optional, Union, Any


# Preset chemistry codes (0/1/2) used by the stats editor
PRESET_NEGATIVE = 0
PRESET_NEUTRAL = 1
PRESET_POSITIVE = 2


@dataclass(frozen=True)
class ChemistryPair:
    """
    Unordered chemistry relationship between two display names.

    Always build through ChemistryPair.of() so that player1 <= player2.
    """
    player1: str
    player2: str
    chemistry: int

    @classmethod
    def of(cls, name_a: str, name_b: str, chemistry: int) -> 'ChemistryPair':
        """Create a pair in canonical (sorted) order."""
        a, b = sorted((name_a, name_b))
        return cls(player1=a, player2=b, chemistry=chemistry)

    @property
    def key(self) -> str:
        return pair_key(self.player1, self.player2)

    def to_row(self) -> List[Any]:
        return [self.player1, self.player2, self.chemistry]


@dataclass(frozen=True)
class MiiColorMapping:
    """Every Mii of mii_color has `chemistry` with character_variant."""
    mii_color: str
    character_variant: str
    chemistry: int


@dataclass(frozen=True)
class Thresholds:
    """
    Chemistry classification cutoffs (both inclusive).

    Attributes:
        positive_min: Values >= this are positive chemistry
        negative_max: Values <= this are negative chemistry
    """
    positive_min: int = 100
    negative_max: int = -100

    def __post_init__(self) -> None:
        if self.negative_max >= self.positive_min:
            raise ValueError(
                "Thresholds.negative_max must be below positive_min "
                f"(got {self.negative_max} >= {self.positive_min})"
            )

    def is_positive(self, value: float) -> bool:
        return value >= self.positive_min

    def is_negative(self, value: float) -> bool:
        return value <= self.negative_max

    def to_preset(self, value: float) -> int:
        """Classify a stored chemistry value as a preset code."""
        if self.is_negative(value):
            return PRESET_NEGATIVE
        if self.is_positive(value):
            return PRESET_POSITIVE
        return PRESET_NEUTRAL

    def from_preset(self, code: int) -> Optional[int]:
        """Chemistry value stored for a preset code (None for neutral)."""
        if code == PRESET_NEGATIVE:
            return self.negative_max
        if code == PRESET_POSITIVE:
            return self.positive_min
        return None

    def to_dict(self) -> Dict[str, int]:
        """JSON index form."""
        return {'positive': self.positive_min, 'negative': self.negative_max}


@dataclass
class TrajectoryBlock:
    """
    Opaque trajectory section of a stats preset.

    Stored and re-emitted verbatim; never interpreted.
    """
    matrix: List[List[int]]  # 24 rows x 25 values
    names: List[str]         # 6 names
    usage: List[int]         # 6 usage flags

    def to_dict(self) -> Dict:
        return {'matrix': self.matrix, 'names': self.names, 'usage': self.usage}

    @classmethod
    def from_dict(cls, data: Dict) -> 'TrajectoryBlock':
        return cls(
            matrix=[list(row) for row in data['matrix']],
            names=list(data['names']),
            usage=list(data['usage'])
        )

    def to_lines(self) -> List[str]:
        lines = [','.join(str(v) for v in row) for row in self.matrix]
        lines.append(','.join(self.names))
        lines.append(','.join(str(v) for v in self.usage))
        return lines


# =============================================================================
# Combined attribute fields
# =============================================================================

@dataclass(frozen=True)
class FieldingAbility:
    index: int


@dataclass(frozen=True)
class BaserunningAbility:
    index: int


# Ability column: a fielding ability, a baserunning ability, or nothing
Ability = Union[FieldingAbility, BaserunningAbility, None]


@dataclass(frozen=True)
class SpecialPitch:
    """A named star pitch (Fireball, Tornado Ball, ...); index > 0."""
    index: int


@dataclass(frozen=True)
class PitchType:
    """Standard star pitch with a pitch type (None, Breaking Ball, ...)."""
    index: int


StarPitch = Union[SpecialPitch, PitchType]


# =============================================================================
# Operation results
# =============================================================================

@dataclass
class OperationResult:
    """
    Outcome of a top-level operation.

    Fatal errors are reported as success=False with a message rather than
    raised, so the caller can render them.
    """
    success: bool
    message: str = ""
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, message: str = "", **data) -> 'OperationResult':
        return cls(success=True, message=message, data=data)

    @classmethod
    def failed(cls, message: str) -> 'OperationResult':
        return cls(success=False, message=message)


def pair_key(name_a: str, name_b: str) -> str:
    """Dedup key for an unordered pair of names."""
    a, b = sorted((name_a, name_b))
    return f"{a}||{b}"


def round_chemistry(value: float) -> int:
    """Round half away from zero (2.5 -> 3, -2.5 -> -3)."""
    if value < 0:
        return -int(math.floor(-value + 0.5))
    return int(math.floor(value + 0.5))

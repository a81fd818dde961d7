"""
Lookup tables of the stats preset format.

Each table is a bidirectional label <-> index mapping. Index lookups are
bounds-checked; label lookups return None for unknown labels.
"""

from dataclasses import dataclass
from typing import Tuple, Optional, Dict

from ..types import (
    Ability, FieldingAbility, BaserunningAbility,
    StarPitch, SpecialPitch, PitchType
)


@dataclass(frozen=True)
class LabelTable:
    name: str
    labels: Tuple[str, ...]

    def __len__(self) -> int:
        return len(self.labels)

    def label(self, index: int) -> str:
        if not 0 <= index < len(self.labels):
            raise IndexError(
                f"{self.name} index {index} out of range 0..{len(self.labels) - 1}"
            )
        return self.labels[index]

    def index(self, label: str) -> Optional[int]:
        try:
            return self.labels.index(str(label).strip())
        except ValueError:
            return None


FIELDING_ABILITIES = LabelTable('fielding ability', (
    "None", "Super Dive", "Super Jump", "Tongue Catch", "Suction Catch",
    "Magical Catch", "Piranha Catch", "Hammer Throw", "Keeper Catch",
    "Clamber", "Ball Dash", "Laser Beam", "Quick Throw",
))

BASERUNNING_ABILITIES = LabelTable('baserunning ability', (
    "None", "Scatter Dive", "Ink Dive", "Angry Attack",
    "Teleport", "Spin Attack", "Burrow", "Enlarge",
))

CHARACTER_CLASSES = LabelTable('character class', (
    "Balanced", "Power", "Speed", "Technique",
))

STAR_PITCHES = LabelTable('star pitch', (
    "Standard", "Fireball", "Tornado Ball", "Barrel Ball", "Banana Ball",
    "Heart Ball", "Flower Ball", "Phony Ball", "Liar Ball",
    "Rainbow Ball", "Suction Ball", "Killer Ball", "Graffiti Ball",
))

STAR_SWINGS = LabelTable('star swing', (
    "Standard", "Fire Swing", "Tornado Swing", "Barrel Swing", "Banana Swing",
    "Heart Swing", "Flower Swing", "Phony Swing", "Liar Swing",
    "Egg Swing", "Cannon Swing", "Breath Swing", "Graffiti Swing",
))

STAR_PITCH_TYPES = LabelTable('star pitch type', (
    "None", "Breaking Ball", "Fastball", "Change-Up",
))

ARM_SIDES = LabelTable('arm side', ("Right", "Left"))


# =============================================================================
# Preset Row Layout (30 columns)
# =============================================================================

class PresetColumn:
    ARM_SIDE = 0
    BATTING_SIDE = 1
    CHARACTER_CLASS = 2
    UNUSED_3 = 3
    WEIGHT = 4
    CAPTAIN = 5
    STAR_PITCH = 6
    STAR_SWING = 7
    FIELDING_ABILITY = 8
    BASERUNNING_ABILITY = 9
    SLAP_HIT_CONTACT = 10
    CHARGE_HIT_CONTACT = 11
    SLAP_HIT_POWER = 12
    CHARGE_HIT_POWER = 13
    BUNTING = 14
    SPEED = 15
    THROWING_SPEED = 16
    FIELDING = 17
    PITCHING_OVERALL = 18
    BATTING_OVERALL = 19
    FIELDING_OVERALL = 20
    SPEED_OVERALL = 21
    CURVEBALL_SPEED = 22
    FASTBALL_SPEED = 23
    CURVE = 24
    UNUSED_25 = 25
    HITTING_TRAJECTORY = 26
    HIT_CURVE = 27
    STAMINA = 28
    STAR_PITCH_TYPE = 29


PRESET_ROW_WIDTH = 30

# Attributes sheet header, as written by preset import
ATTRIBUTE_HEADERS = (
    'Name', 'Character Class', 'Captain', 'Mii', 'Mii Color', 'Arm Side', 'Batting Side', 'Weight',
    'Ability', 'Pitching Overall', 'Batting Overall', 'Fielding Overall', 'Speed Overall',
    'Star Swing', 'Hit Curve', 'Hitting Trajectory', 'Slap Hit Contact', 'Charge Hit Contact',
    'Slap Hit Power', 'Charge Hit Power', 'Speed', 'Bunting', 'Fielding', 'Throwing Speed',
    'Pre-Charge', 'Star Pitch', 'Fastball Speed', 'Curveball Speed', 'Curve', 'Stamina',
)

# Attribute sheet header -> preset column, for plain numeric passthrough fields
NUMERIC_FIELDS: Dict[str, int] = {
    'Weight': PresetColumn.WEIGHT,
    'Pitching Overall': PresetColumn.PITCHING_OVERALL,
    'Batting Overall': PresetColumn.BATTING_OVERALL,
    'Fielding Overall': PresetColumn.FIELDING_OVERALL,
    'Speed Overall': PresetColumn.SPEED_OVERALL,
    'Hit Curve': PresetColumn.HIT_CURVE,
    'Hitting Trajectory': PresetColumn.HITTING_TRAJECTORY,
    'Slap Hit Contact': PresetColumn.SLAP_HIT_CONTACT,
    'Charge Hit Contact': PresetColumn.CHARGE_HIT_CONTACT,
    'Slap Hit Power': PresetColumn.SLAP_HIT_POWER,
    'Charge Hit Power': PresetColumn.CHARGE_HIT_POWER,
    'Speed': PresetColumn.SPEED,
    'Bunting': PresetColumn.BUNTING,
    'Fielding': PresetColumn.FIELDING,
    'Throwing Speed': PresetColumn.THROWING_SPEED,
    'Fastball Speed': PresetColumn.FASTBALL_SPEED,
    'Curveball Speed': PresetColumn.CURVEBALL_SPEED,
    'Curve': PresetColumn.CURVE,
    'Stamina': PresetColumn.STAMINA,
}

# Columns kept from the existing sheet when an import rewrites it
PRESERVED_FIELDS = ('Mii', 'Mii Color', 'Pre-Charge')


# =============================================================================
# Combined Fields
# =============================================================================

def ability_from_indices(fielding_index: int, baserunning_index: int) -> Ability:
    """Nonzero fielding ability wins, then nonzero baserunning ability."""
    FIELDING_ABILITIES.label(fielding_index)
    BASERUNNING_ABILITIES.label(baserunning_index)
    if fielding_index > 0:
        return FieldingAbility(fielding_index)
    if baserunning_index > 0:
        return BaserunningAbility(baserunning_index)
    return None


def ability_to_indices(ability: Ability) -> Tuple[int, int]:
    """(fielding index, baserunning index)."""
    if isinstance(ability, FieldingAbility):
        return ability.index, 0
    if isinstance(ability, BaserunningAbility):
        return 0, ability.index
    return 0, 0


def ability_label(ability: Ability) -> str:
    if isinstance(ability, FieldingAbility):
        return FIELDING_ABILITIES.label(ability.index)
    if isinstance(ability, BaserunningAbility):
        return BASERUNNING_ABILITIES.label(ability.index)
    return "None"


def parse_ability(label: str) -> Ability:
    """Display label -> ability, preferring a baserunning match; unknown -> None."""
    baserunning = BASERUNNING_ABILITIES.index(label)
    if baserunning:
        return BaserunningAbility(baserunning)
    fielding = FIELDING_ABILITIES.index(label)
    if fielding:
        return FieldingAbility(fielding)
    return None


def star_pitch_from_indices(star_pitch_index: int, pitch_type_index: int) -> StarPitch:
    """A nonzero special pitch wins over the pitch type."""
    STAR_PITCHES.label(star_pitch_index)
    STAR_PITCH_TYPES.label(pitch_type_index)
    if star_pitch_index > 0:
        return SpecialPitch(star_pitch_index)
    return PitchType(pitch_type_index)


def star_pitch_to_indices(pitch: StarPitch) -> Tuple[int, int]:
    """(star pitch index, star pitch type index)."""
    if isinstance(pitch, SpecialPitch):
        return pitch.index, 0
    return 0, pitch.index


def star_pitch_label(pitch: StarPitch) -> str:
    if isinstance(pitch, SpecialPitch):
        return STAR_PITCHES.label(pitch.index)
    return STAR_PITCH_TYPES.label(pitch.index)


def parse_star_pitch(label: str) -> StarPitch:
    """Display label -> star pitch, preferring a special pitch; unknown -> PitchType(0)."""
    special = STAR_PITCHES.index(label)
    if special:
        return SpecialPitch(special)
    pitch_type = STAR_PITCH_TYPES.index(label)
    if pitch_type is not None:
        return PitchType(pitch_type)
    return PitchType(0)

"""
Configuration management for CLB Tools.

Sheet names, chemistry thresholds, property keys and JSON loading utilities.
"""

import json
from dataclasses import dataclass, field, asdict
from typing import Dict, Any

from .types import Thresholds


# =============================================================================
# Sheet Names
# =============================================================================

@dataclass(frozen=True)
class SheetNames:
    attributes: str = 'Advanced Attributes'
    chemistry: str = 'Player Chemistry Matrix'
    mii_color_chemistry: str = 'Mii Chemistry Matrix'
    chemistry_lookup: str = 'Chemistry Lookup'
    name_mapping: str = 'Character Name Mapping'
    change_log: str = 'Chemistry Change Log'


# =============================================================================
# Property Store Keys
# =============================================================================

CHEMISTRY_DATA = 'CHEMISTRY_DATA'
CHEMISTRY_DATA_TIMESTAMP = 'CHEMISTRY_DATA_TIMESTAMP'
CHEMISTRY_LOOKUP_TIMESTAMP = 'CHEMISTRY_LOOKUP_TIMESTAMP'
CHEMISTRY_LOOKUP_ROWCOUNT = 'CHEMISTRY_LOOKUP_ROWCOUNT'
CHEMISTRY_LOOKUP_CHECKSUM = 'CHEMISTRY_LOOKUP_CHECKSUM'
CHEMISTRY_LOOKUP_LAST_MODIFIED = 'CHEMISTRY_LOOKUP_LAST_MODIFIED'
TRAJECTORY_DATA = 'TRAJECTORY_DATA'


# =============================================================================
# Tool Configuration
# =============================================================================

@dataclass(frozen=True)
class ToolConfig:
    """
    Central configuration shared by conversion, import/export, editor and query.

    Attributes:
        sheets: Names of the workbook sheets the tools read and write
        thresholds: Positive/negative chemistry cutoffs (inclusive)
        attribute_cache_seconds: Freshness window of the attribute cache
        first_data_row: First row below the header on every sheet (1-based)
    """
    sheets: SheetNames = field(default_factory=SheetNames)
    thresholds: Thresholds = field(default_factory=Thresholds)
    attribute_cache_seconds: float = 5 * 60
    first_data_row: int = 2

    def __post_init__(self) -> None:
        if self.attribute_cache_seconds < 0:
            raise ValueError("ToolConfig.attribute_cache_seconds must be >= 0")


DEFAULT_CONFIG = ToolConfig()


# =============================================================================
# JSON Loading Utilities
# =============================================================================

def config_from_dict(data: Dict[str, Any]) -> ToolConfig:
    """Build a ToolConfig, falling back to defaults for missing keys."""
    default_sheets = asdict(DEFAULT_CONFIG.sheets)
    sheets = SheetNames(**{
        key: data.get('sheets', {}).get(key, value)
        for key, value in default_sheets.items()
    })

    thresholds_data = data.get('thresholds', {})
    thresholds = Thresholds(
        positive_min=int(thresholds_data.get(
            'positive_min', DEFAULT_CONFIG.thresholds.positive_min)),
        negative_max=int(thresholds_data.get(
            'negative_max', DEFAULT_CONFIG.thresholds.negative_max)),
    )

    return ToolConfig(
        sheets=sheets,
        thresholds=thresholds,
        attribute_cache_seconds=float(data.get(
            'attribute_cache_seconds', DEFAULT_CONFIG.attribute_cache_seconds)),
        first_data_row=int(data.get('first_data_row', DEFAULT_CONFIG.first_data_row)),
    )


def load_config_from_json(path: str) -> ToolConfig:
    """
    Load tool configuration from JSON file.

    Expected format (every key optional):
    {
        "sheets": {"chemistry_lookup": "Chemistry Lookup", ...},
        "thresholds": {"positive_min": 100, "negative_max": -100},
        "attribute_cache_seconds": 300
    }
    """
    with open(path, 'r') as f:
        data = json.load(f)
    return config_from_dict(data)


def save_config_to_json(config: ToolConfig, path: str):
    """Save tool configuration to JSON file."""
    data = {
        'sheets': asdict(config.sheets),
        'thresholds': {
            'positive_min': config.thresholds.positive_min,
            'negative_max': config.thresholds.negative_max,
        },
        'attribute_cache_seconds': config.attribute_cache_seconds,
        'first_data_row': config.first_data_row,
    }

    with open(path, 'w') as f:
        json.dump(data, f, indent=2)

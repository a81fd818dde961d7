"""Chemistry conversion, lookup persistence and queries."""

from .rules import apply_chemistry_rules
from .matrix import read_chemistry_matrix, build_variant_map, expand_variants_with_rules
from .mii import read_mii_color_chemistry, apply_mii_color_chemistry
from .lookup import (
    write_chemistry_lookup,
    read_chemistry_lookup,
    update_chemistry_data_json,
    clear_chemistry_cache,
    get_player_list,
)
from .convert import convert_matrix_to_lookup
from .bulk import bulk_update_chemistry, check_bidirectional
from .query import get_multiple_player_chemistry, ChemistryIndex

__all__ = [
    "apply_chemistry_rules",
    "read_chemistry_matrix",
    "build_variant_map",
    "expand_variants_with_rules",
    "read_mii_color_chemistry",
    "apply_mii_color_chemistry",
    "write_chemistry_lookup",
    "read_chemistry_lookup",
    "update_chemistry_data_json",
    "clear_chemistry_cache",
    "get_player_list",
    "convert_matrix_to_lookup",
    "bulk_update_chemistry",
    "check_bidirectional",
    "get_multiple_player_chemistry",
    "ChemistryIndex",
]

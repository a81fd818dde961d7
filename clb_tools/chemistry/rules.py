"""
Chemistry exception rules applied to every expanded variant pair.

Order (first non-default result wins):
1. Species exception: only the default Yoshi variant carries chemistry with
   other Yoshis. This is a carve-out from rule 3.
2. Mii vs Mii: chemistry only between Miis of the same color.
3. Same base, different variant: no chemistry.
4. Otherwise the base value.
"""

from ..names import extract_base_name, is_mii_character, extract_mii_color


EXCEPTION_SPECIES = 'Yoshi'
EXCEPTION_DEFAULT_VARIANT = 'Yoshi (Green)'


def apply_species_exception(name_a: str, name_b: str, base_value: int) -> int:
    """0 for two Yoshi variants unless one of them is the default variant."""
    if extract_base_name(name_a) != EXCEPTION_SPECIES or extract_base_name(name_b) != EXCEPTION_SPECIES:
        return base_value
    if EXCEPTION_DEFAULT_VARIANT in (name_a, name_b):
        return base_value
    return 0


def _is_species_carve_out(name_a: str, name_b: str) -> bool:
    return (
        extract_base_name(name_a) == EXCEPTION_SPECIES
        and extract_base_name(name_b) == EXCEPTION_SPECIES
        and EXCEPTION_DEFAULT_VARIANT in (name_a, name_b)
    )


def apply_chemistry_rules(name_a: str, name_b: str, base_value: int) -> int:
    """
    Final chemistry for one expanded pair.

    Args:
        name_a: First display name
        name_b: Second display name
        base_value: Chemistry read from the base matrix

    Returns:
        Final chemistry value (0 means the pair is dropped)
    """
    species = apply_species_exception(name_a, name_b, base_value)
    if species != base_value:
        return species
    if _is_species_carve_out(name_a, name_b):
        return base_value

    if is_mii_character(name_a) and is_mii_character(name_b):
        if extract_mii_color(name_a) != extract_mii_color(name_b):
            return 0
        return base_value

    if extract_base_name(name_a) == extract_base_name(name_b) and name_a != name_b:
        return 0

    return base_value

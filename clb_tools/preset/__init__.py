"""Stats preset interchange and the matrix-form chemistry editor."""

from .codec import parse_preset, import_preset, export_preset
from .editor import get_chemistry_matrix, update_chemistry_matrix, character_chemistry

__all__ = [
    "parse_preset",
    "import_preset",
    "export_preset",
    "get_chemistry_matrix",
    "update_chemistry_matrix",
    "character_chemistry",
]

"""
Matrix -> lookup conversion pipeline.

Wires the matrix reader, variant expander, Mii color merge and lookup writer
together for one end-to-end run.
"""

import logging
from datetime import datetime
from typing import List, Optional, Callable

from ..config import ToolConfig, DEFAULT_CONFIG
from ..errors import ClbToolsError, MissingResourceError
from ..store import Sheet, Workbook, PropertyStore, is_blank
from ..types import OperationResult
from .lookup import write_chemistry_lookup, update_chemistry_data_json
from .matrix import read_chemistry_matrix, build_variant_map, expand_variants_with_rules
from .mii import ensure_mii_color_sheet, read_mii_color_chemistry, apply_mii_color_chemistry

logger = logging.getLogger(__name__)


def get_master_list(sheet: Sheet, config: ToolConfig = DEFAULT_CONFIG) -> List[str]:
    """Every non-blank name in column A of the attributes sheet, in sheet order."""
    first = config.first_data_row
    if sheet.last_row < first:
        return []
    names = []
    for (value,) in sheet.get_range_values(first, 1, sheet.last_row - first + 1, 1):
        if not is_blank(value):
            names.append(str(value).strip())
    return names


def _require_sheet(workbook: Workbook, name: str, label: str) -> Sheet:
    sheet = workbook.get_sheet(name)
    if sheet is None:
        raise MissingResourceError(f"{label} sheet not found: {name}")
    return sheet


def convert_matrix_to_lookup(
    workbook: Workbook,
    props: PropertyStore,
    config: ToolConfig = DEFAULT_CONFIG,
    confirm: Optional[Callable[[str], bool]] = None,
    now: Optional[datetime] = None
) -> OperationResult:
    """
    Rebuild the Chemistry Lookup from the Player Chemistry Matrix.

    Steps:
    1. Master list of display names from the attributes sheet
    2. Base name -> variants map
    3. Read base pairs from the matrix
    4. Expand variants and apply exception rules
    5. Merge Mii color chemistry
    6. Overwrite the lookup sheet
    7. Refresh the JSON index

    Args:
        workbook: Workbook holding the source and lookup sheets
        props: Property store receiving the JSON index
        config: Tool configuration
        confirm: Asked before overwriting a lookup that already has rows;
            returning False cancels the run without writing anything
        now: Timestamp override (tests)

    Returns:
        OperationResult with total_pairs and mii_mappings on success
    """
    try:
        matrix_sheet = _require_sheet(workbook, config.sheets.chemistry, 'Chemistry Matrix')
        attributes_sheet = _require_sheet(workbook, config.sheets.attributes, 'Advanced Attributes')

        lookup_sheet = workbook.get_sheet(config.sheets.chemistry_lookup)
        if lookup_sheet is not None and lookup_sheet.last_row > 1 and confirm is not None:
            if not confirm(
                f"This will overwrite all data in the {lookup_sheet.name} sheet. "
                "Any manual edits will be lost."
            ):
                return OperationResult.failed("Conversion cancelled.")

        mii_sheet = ensure_mii_color_sheet(workbook, config)
        if lookup_sheet is None:
            lookup_sheet = workbook.insert_sheet(config.sheets.chemistry_lookup)

        master_list = get_master_list(attributes_sheet, config)
        logger.info("Master list: %d characters", len(master_list))

        variant_map = build_variant_map(master_list)
        base_pairs = read_chemistry_matrix(matrix_sheet)
        expanded = expand_variants_with_rules(base_pairs, variant_map, master_list)

        mappings = read_mii_color_chemistry(mii_sheet)
        expanded = apply_mii_color_chemistry(expanded, mappings, master_list)

        write_chemistry_lookup(lookup_sheet, expanded, props, now=now)
        update_chemistry_data_json(workbook, props, config, now=now)

    except ClbToolsError as e:
        logger.error("Matrix conversion failed: %s", e)
        return OperationResult.failed(str(e))

    return OperationResult.ok(
        f"Chemistry Lookup updated with {len(expanded)} pairs "
        f"({len(mappings)} Mii color mappings applied).",
        total_pairs=len(expanded),
        base_pairs=len(base_pairs),
        mii_mappings=len(mappings),
    )

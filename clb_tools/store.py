"""
Tabular and key-value stores consumed by the chemistry tools.

A Workbook is a set of named sheets (rectangular grids addressed with 1-based
row/column numbers, like the spreadsheet the tools were written for). Sheets
persist to a directory of CSV files; properties persist to a JSON file.
"""

import json
import logging
import math
from pathlib import Path
from typing import List, Dict, Optional, Any

import pandas as pd

logger = logging.getLogger(__name__)


def is_blank(value: Any) -> bool:
    """True for cells that hold nothing."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and value.strip() == ''


def _coerce_cell(raw: str) -> Any:
    """Turn a CSV cell back into int/float where it looks numeric."""
    text = raw.strip()
    if text == '':
        return ''
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return raw
    return number if math.isfinite(number) else raw


# =============================================================================
# Sheets
# =============================================================================

class Sheet:
    """In-memory grid of cell values; blank cells are ''."""

    def __init__(self, name: str, rows: Optional[List[List[Any]]] = None):
        self.name = name
        self._rows: List[List[Any]] = [list(r) for r in (rows or [])]

    @property
    def last_row(self) -> int:
        """1-based index of the last row holding a value (0 if empty)."""
        for idx in range(len(self._rows) - 1, -1, -1):
            if any(not is_blank(v) for v in self._rows[idx]):
                return idx + 1
        return 0

    @property
    def last_column(self) -> int:
        """1-based index of the last column holding a value (0 if empty)."""
        last = 0
        for row in self._rows:
            for idx in range(len(row) - 1, last - 1, -1):
                if not is_blank(row[idx]):
                    last = idx + 1
                    break
        return last

    def get_range_values(
        self,
        row: int,
        column: int,
        num_rows: int,
        num_columns: int
    ) -> List[List[Any]]:
        """Read a rectangle, padding cells past the stored data with ''."""
        _check_origin(row, column)
        values = []
        for r in range(row - 1, row - 1 + num_rows):
            source = self._rows[r] if r < len(self._rows) else []
            values.append([
                source[c] if c < len(source) and source[c] is not None else ''
                for c in range(column - 1, column - 1 + num_columns)
            ])
        return values

    def get_values(self) -> List[List[Any]]:
        """The whole data range (1, 1) .. (last_row, last_column)."""
        return self.get_range_values(1, 1, self.last_row, self.last_column)

    def set_values(self, row: int, column: int, values: List[List[Any]]):
        """Write a rectangle of values with its top-left cell at (row, column)."""
        _check_origin(row, column)
        for offset, new_row in enumerate(values):
            r = row - 1 + offset
            while len(self._rows) <= r:
                self._rows.append([])
            target = self._rows[r]
            needed = column - 1 + len(new_row)
            if len(target) < needed:
                target.extend([''] * (needed - len(target)))
            target[column - 1:needed] = list(new_row)

    def clear_contents(self, row: int, column: int, num_rows: int, num_columns: int):
        """Blank out a rectangle."""
        _check_origin(row, column)
        for r in range(row - 1, min(row - 1 + num_rows, len(self._rows))):
            target = self._rows[r]
            for c in range(column - 1, min(column - 1 + num_columns, len(target))):
                target[c] = ''

    def append_row(self, values: List[Any]):
        self.set_values(self.last_row + 1, 1, [values])

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.get_values())


def _check_origin(row: int, column: int):
    if row < 1 or column < 1:
        raise ValueError(f"Sheet ranges are 1-based (got row={row}, column={column})")


class Workbook:
    """Named collection of sheets."""

    def __init__(self, sheets: Optional[Dict[str, Sheet]] = None):
        self._sheets: Dict[str, Sheet] = dict(sheets or {})

    def get_sheet(self, name: str) -> Optional[Sheet]:
        return self._sheets.get(name)

    def insert_sheet(self, name: str) -> Sheet:
        if name in self._sheets:
            raise ValueError(f"Sheet already exists: {name}")
        sheet = Sheet(name)
        self._sheets[name] = sheet
        return sheet

    def get_or_insert_sheet(self, name: str) -> Sheet:
        sheet = self.get_sheet(name)
        return sheet if sheet is not None else self.insert_sheet(name)

    def sheet_names(self) -> List[str]:
        return list(self._sheets)

    @classmethod
    def from_csv_dir(cls, path: str) -> 'Workbook':
        """
        Load every <sheet name>.csv in a directory.

        A missing directory yields an empty workbook.
        """
        directory = Path(path)
        sheets: Dict[str, Sheet] = {}
        if not directory.is_dir():
            logger.info("Workbook directory %s not found, starting empty", directory)
            return cls(sheets)

        for csv_file in sorted(directory.glob('*.csv')):
            try:
                df = pd.read_csv(csv_file, header=None, dtype=str, keep_default_na=False)
            except pd.errors.EmptyDataError:
                sheets[csv_file.stem] = Sheet(csv_file.stem)
                continue
            rows = [[_coerce_cell(v) for v in record] for record in df.itertuples(index=False)]
            sheets[csv_file.stem] = Sheet(csv_file.stem, rows)

        logger.info("Loaded %d sheets from %s", len(sheets), directory)
        return cls(sheets)

    def save_csv_dir(self, path: str):
        """Write each sheet to <sheet name>.csv."""
        directory = Path(path)
        directory.mkdir(parents=True, exist_ok=True)
        for name, sheet in self._sheets.items():
            sheet.to_frame().to_csv(directory / f"{name}.csv", header=False, index=False)


# =============================================================================
# Properties
# =============================================================================

class PropertyStore:
    """String-keyed string properties."""

    def __init__(self, values: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(values or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: Any):
        self._values[key] = str(value)
        self._persist()

    def delete(self, key: str):
        if self._values.pop(key, None) is not None:
            self._persist()

    def keys(self) -> List[str]:
        return list(self._values)

    def _persist(self):
        pass


class JsonPropertyStore(PropertyStore):
    """PropertyStore that rewrites a JSON file on every change."""

    def __init__(self, path: str):
        self.path = Path(path)
        values = {}
        if self.path.exists():
            with open(self.path, 'r') as f:
                values = json.load(f)
        super().__init__(values)

    def _persist(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w') as f:
            json.dump(self._values, f, indent=2)
